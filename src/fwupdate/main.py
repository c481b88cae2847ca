"""FastAPI control service for the firmware update controller."""

import asyncio
import os
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
import uvicorn

from fwupdate.api.routes import router
from fwupdate.models.config import load_config
from fwupdate.services.listeners import ShutdownGuard
from fwupdate.services.orchestrator import UpdateOrchestrator
from fwupdate.utils.logging import DEFAULT_LOG_FILE, LOG_LEVEL_ENV, setup_logger

CONFIG_PATH_ENV = "FWUPDATE_CONFIG"
SHUTDOWN_GRACE_SECONDS = 30.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown hooks.

    Startup:
    - Initialize logger
    - Load configuration
    - Create the orchestrator with a shutdown guard

    Shutdown:
    - Wait (bounded) for an upload in progress to finish
    """
    logger = setup_logger("fwupdate", DEFAULT_LOG_FILE, level=os.getenv(LOG_LEVEL_ENV, "INFO"))
    logger.info("Firmware update service starting up...")

    config = load_config(os.getenv(CONFIG_PATH_ENV))
    guard = ShutdownGuard()
    app.state.config = config
    app.state.guard = guard
    app.state.orchestrator = UpdateOrchestrator(config=config, guard=guard)

    logger.info(f"Firmware update service ready, device at {config.device_url}")

    yield

    logger.info("Firmware update service shutting down...")
    if not await guard.wait_released(SHUTDOWN_GRACE_SECONDS):
        logger.error("Upload still in progress at shutdown, it will be interrupted")
    task = app.state.orchestrator.task
    if task is not None and not task.done():
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task


app = FastAPI(
    title="Firmware Update Controller",
    description="Uploads firmware images to embedded devices and waits for them to reboot",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "fwupdate", "version": "1.0.0"}


def main():
    """Main entry point for running the server."""
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=int(os.getenv("FWUPDATE_PORT", "12316")),
        log_level="info",
        access_log=True,
    )


if __name__ == "__main__":
    main()
