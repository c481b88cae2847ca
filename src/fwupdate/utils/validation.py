"""Client-side firmware image validation, run before any network activity."""

import logging
from typing import Optional

from fwupdate.models.config import UpdaterConfig
from fwupdate.models.image import UpdateImage
from fwupdate.models.outcome import Outcome

BAD_EXTENSION = "bad-extension"
EMPTY = "empty"
TOO_LARGE = "too-large"


class ImageValidationError(ValueError):
    """Raised by validate_or_raise when an image is unsuitable for upload."""

    def __init__(self, code: str, message: str):
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message


def check_image(image: UpdateImage, config: UpdaterConfig) -> Optional[ImageValidationError]:
    """Run the validation checks in order and return the first failure.

    Checks: extension (case-insensitive), non-empty, size within the configured
    maximum.

    Returns:
        ImageValidationError describing the first failing check, None if valid
    """
    if not image.name.lower().endswith(config.accepted_extension):
        return ImageValidationError(
            BAD_EXTENSION, f"only {config.accepted_extension} files are accepted"
        )
    if image.size <= 0:
        return ImageValidationError(EMPTY, "select a non-empty firmware image")
    if image.size > config.max_image_size:
        return ImageValidationError(
            TOO_LARGE,
            f"image is {image.size} bytes, maximum is {config.max_image_size} bytes",
        )
    return None


def validate(image: UpdateImage, config: UpdaterConfig) -> Optional[Outcome]:
    """Validate an image.

    Returns:
        None if the image may be uploaded, otherwise a ValidationFailure outcome
        whose reason is the failing check's code
    """
    logger = logging.getLogger("fwupdate.validation")
    error = check_image(image, config)
    if error is None:
        logger.debug(f"Image accepted: {image.name} ({image.size} bytes)")
        return None
    logger.warning(f"Image rejected: {image.name}: {error}")
    return Outcome.validation_failure(error.code)


def validate_or_raise(image: UpdateImage, config: UpdaterConfig) -> None:
    """Validate an image, raise ImageValidationError on the first failing check."""
    error = check_image(image, config)
    if error is not None:
        raise error
