"""API route handlers for the firmware update control service."""

import logging

from fastapi import APIRouter, Request

from fwupdate.api.models import CommandResponse, ProgressResponse, UpdateRequest
from fwupdate.models.status import TransactionState
from fwupdate.services.orchestrator import TransactionInProgressError, UpdateOrchestrator
from fwupdate.utils.files import read_image
from fwupdate.utils.validation import check_image

router = APIRouter(prefix="/api/v1.0")
logger = logging.getLogger("fwupdate.api")


def _orchestrator(request: Request) -> UpdateOrchestrator:
    return request.app.state.orchestrator


@router.get("/progress", response_model=ProgressResponse)
async def get_progress(request: Request):
    """GET /api/v1.0/progress - Query current transaction status.

    Response format (uploading):
        {
            "code": 200,
            "msg": "success",
            "data": {
                "state": "uploading",
                "progress": 45,
                "message": "Uploading firmware.bin...",
                "error": null,
                ...
            }
        }

    A failed transaction is reported with code 500 and the failure reason in msg.
    """
    status = _orchestrator(request).get_status()

    if status.state == TransactionState.FAILED:
        msg = f"Update failed: {status.error}" if status.error else "Update failed"
        return ProgressResponse(code=500, msg=msg, data=status)
    return ProgressResponse(code=200, msg="success", data=status)


@router.post("/update", response_model=CommandResponse)
async def post_update(request: Request, body: UpdateRequest):
    """POST /api/v1.0/update - Start a firmware update in the background.

    Returns code 409 if a transaction is in progress, 404 if the image file is
    missing, 400 if the image fails validation, 200 once the upload started.
    """
    orchestrator = _orchestrator(request)
    status = orchestrator.get_status()

    if orchestrator.state.is_active:
        return CommandResponse(
            code=409,
            msg=f"Transaction in progress: {orchestrator.state.value}",
            state=status.state,
            progress=status.progress,
        )

    try:
        image = await read_image(body.image_path)
    except FileNotFoundError:
        return CommandResponse(code=404, msg=f"Image not found: {body.image_path}")
    except OSError as e:
        logger.error(f"Failed to read image {body.image_path}: {e}")
        return CommandResponse(code=400, msg=f"Cannot read image: {e}")

    error = check_image(image, orchestrator.config)
    if error is not None:
        return CommandResponse(code=400, msg=f"Invalid image ({error.code}): {error.message}")

    try:
        orchestrator.start(image)
    except TransactionInProgressError as e:
        status = orchestrator.get_status()
        return CommandResponse(code=409, msg=str(e), state=status.state, progress=status.progress)

    return CommandResponse(code=200, msg="success", state=orchestrator.state, progress=0)


@router.post("/cancel", response_model=CommandResponse)
async def post_cancel(request: Request):
    """POST /api/v1.0/cancel - Abort the upload in progress.

    Only an upload can be cancelled; once the device has the whole image
    (awaiting outcome, reconnecting) the request is refused with code 409.
    """
    orchestrator = _orchestrator(request)

    if not orchestrator.cancel():
        status = orchestrator.get_status()
        return CommandResponse(
            code=409,
            msg=f"Nothing to cancel in state {status.state.value}",
            state=status.state,
            progress=status.progress,
        )

    status = orchestrator.get_status()
    return CommandResponse(code=200, msg="success", state=status.state, progress=status.progress)
