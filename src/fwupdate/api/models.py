"""Pydantic models for HTTP API requests and responses."""

from typing import Optional

from pydantic import BaseModel, Field

from fwupdate.models.status import TransactionState


class UpdateRequest(BaseModel):
    """POST /api/v1.0/update payload.

    Starts a firmware update transaction with an image read from local disk.

    Example:
        {
            "image_path": "./firmware/camera-1.4.2.bin"
        }
    """

    image_path: str = Field(
        ...,
        min_length=1,
        description="Path of the firmware image on the controller host",
        examples=["./firmware/camera-1.4.2.bin"],
    )


class TransactionStatus(BaseModel):
    """Current transaction status, served to dashboards."""

    state: TransactionState = Field(..., description="Current transaction state")
    progress: int = Field(..., ge=0, le=100, description="Upload percentage (0-100)")
    message: str = Field(..., description="Human-readable status description")
    error: Optional[str] = Field(None, description="Failure reason if state == failed")
    image_name: Optional[str] = Field(None, description="Image of the current transaction")
    reconnect_attempt: int = Field(0, ge=0, description="Last liveness probe number")
    reconnect_max_attempts: int = Field(0, ge=0, description="Liveness probe budget")
    caveat: Optional[str] = Field(None, description="Non-fatal caveat on success")


class ProgressResponse(BaseModel):
    """GET /api/v1.0/progress response.

    HTTP status is always 200, application-level status in 'code'.
    """

    code: int = Field(..., description="Application-level status code (200/500)")
    msg: str = Field(..., description="Status message or error description")
    data: TransactionStatus = Field(..., description="Transaction status")


class CommandResponse(BaseModel):
    """Response for POST /update and POST /cancel.

    HTTP status is always 200, real status in 'code' field.
    """

    code: int = Field(default=200, description="Application-level status code (200/400/404/409)")
    msg: str = Field(default="success", description="Result message")
    state: Optional[TransactionState] = Field(None, description="Transaction state after the command")
    progress: Optional[int] = Field(None, description="Upload progress after the command")
