"""Command-line front end for flashing firmware images onto a device.

``flash`` runs a full transaction (validate, upload, wait for reboot) and
prints progress as it goes; ``check`` only runs the local image validation.
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer

from fwupdate.models.config import ConfigError, UpdaterConfig, load_config
from fwupdate.models.image import UpdateImage
from fwupdate.models.outcome import Outcome, TransactionResult
from fwupdate.models.reconnect import ReconnectAttempt
from fwupdate.models.status import TransactionState
from fwupdate.services.listeners import TransactionListener
from fwupdate.services.orchestrator import UpdateOrchestrator
from fwupdate.utils.files import format_size, read_image
from fwupdate.utils.validation import ImageValidationError, validate_or_raise

app = typer.Typer(add_completion=False, help="Firmware update controller for embedded devices")


class ConsoleListener(TransactionListener):
    """Prints transaction progress to the terminal."""

    def __init__(self, step: int = 10):
        self.step = step
        self._next_percent = 0

    def on_state_changed(self, state: TransactionState, message: str) -> None:
        if not state.is_terminal:
            typer.echo(message)

    def on_progress(self, percent: int) -> None:
        if percent >= self._next_percent or percent == 100:
            typer.echo(f"  {percent:3d}%")
            self._next_percent = (percent // self.step + 1) * self.step

    def on_outcome(self, outcome: Outcome) -> None:
        if outcome.reason:
            typer.echo(f"Outcome: {outcome.kind.value} ({outcome.reason})")

    def on_reconnect_attempt(self, attempt: ReconnectAttempt) -> None:
        typer.echo(f"  attempt {attempt.attempt}/{attempt.max_attempts}: {attempt.result.value}")

    def on_finished(self, result: TransactionResult) -> None:
        color = typer.colors.GREEN if result.succeeded else typer.colors.RED
        if result.caveat:
            color = typer.colors.YELLOW
        typer.secho(result.reason, fg=color)


def _load(config_path: Optional[Path], **overrides) -> UpdaterConfig:
    try:
        return load_config(config_path, **overrides)
    except ConfigError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc


def _read(image_path: Path) -> UpdateImage:
    try:
        return asyncio.run(read_image(image_path))
    except OSError as exc:
        typer.secho(f"Cannot read image: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc


@app.command()
def flash(
    image_path: Path = typer.Argument(..., help="Firmware image (.bin) to upload."),
    device: Optional[str] = typer.Option(
        None, help="Device base URL (default from config or FWUPDATE_DEVICE_URL)."
    ),
    config_path: Optional[Path] = typer.Option(None, "--config", help="JSON config file."),
    timeout: Optional[float] = typer.Option(None, help="Overall upload timeout in seconds."),
    attempts: Optional[int] = typer.Option(None, help="Reconnect attempts after reboot."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Upload a firmware image and wait for the device to come back."""

    config = _load(
        config_path,
        device_url=device,
        upload_timeout=timeout,
        reconnect_max_attempts=attempts,
    )
    image = _read(image_path)

    if not yes:
        typer.confirm(
            f"Update firmware on {config.device_url}?\n"
            f"  File: {image.name}\n"
            f"  Size: {format_size(image.size)}\n"
            f"The device will reboot after the update.",
            abort=True,
        )

    orchestrator = UpdateOrchestrator(config=config, listeners=[ConsoleListener()])
    result = asyncio.run(orchestrator.run(image))

    if not result.succeeded:
        raise typer.Exit(code=1)


@app.command()
def check(
    image_path: Path = typer.Argument(..., help="Firmware image to validate."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="JSON config file."),
) -> None:
    """Validate an image locally without contacting the device."""

    config = _load(config_path)
    image = _read(image_path)

    try:
        validate_or_raise(image, config)
    except ImageValidationError as exc:
        typer.secho(f"Invalid image ({exc.code}): {exc.message}", fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc

    typer.secho(f"{image.name}: OK ({format_size(image.size)}, md5 {image.md5})", fg=typer.colors.GREEN)


def main() -> None:  # pragma: no cover - thin wrapper
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
