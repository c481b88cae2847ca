"""Firmware image model."""

import hashlib

from pydantic import BaseModel, ConfigDict, Field, model_validator


class UpdateImage(BaseModel):
    """Binary firmware image selected for upload.

    Immutable once constructed. Suitability (extension, size bounds) is checked
    by the validator, not here, so rejected images can still be described in
    error messages.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Declared file name (e.g., 'firmware.bin')")
    data: bytes = Field(..., repr=False, description="Raw image payload")
    size: int = Field(..., ge=0, description="Declared payload size in bytes")

    @model_validator(mode="after")
    def size_matches_payload(self) -> "UpdateImage":
        """Declared size must agree with the payload actually held."""
        if self.size != len(self.data):
            raise ValueError(
                f"Declared size {self.size} does not match payload length {len(self.data)}"
            )
        return self

    @classmethod
    def from_bytes(cls, name: str, data: bytes) -> "UpdateImage":
        """Build an image whose declared size is the payload length."""
        return cls(name=name, data=data, size=len(data))

    @property
    def md5(self) -> str:
        """Hex MD5 of the payload, used in logs to identify the image."""
        return hashlib.md5(self.data).hexdigest()
