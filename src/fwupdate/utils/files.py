"""Firmware image file helpers."""

import logging
from pathlib import Path
from typing import Union

import aiofiles

from fwupdate.models.image import UpdateImage


async def read_image(path: Union[str, Path]) -> UpdateImage:
    """Read a firmware image from disk without blocking the event loop.

    Args:
        path: Image file path

    Returns:
        UpdateImage named after the file

    Raises:
        FileNotFoundError: If the file doesn't exist
        IOError: If the read fails
    """
    logger = logging.getLogger("fwupdate.files")
    image_path = Path(path)

    async with aiofiles.open(image_path, "rb") as f:
        data = await f.read()

    logger.info(f"Read image {image_path.name}: {len(data)} bytes")
    return UpdateImage.from_bytes(image_path.name, data)


def format_size(num_bytes: int) -> str:
    """Render a byte count as B, KB or MB."""
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.2f} MB"
