"""Upload transport: streams a firmware image to the device with progress events."""

import asyncio
import logging
from contextlib import suppress
from typing import AsyncIterator, Optional

import httpx

from fwupdate.models.config import UpdaterConfig
from fwupdate.models.image import UpdateImage
from fwupdate.models.transfer import TransferProgress, TransportEvent, TransportEventKind


class UploadTransport:
    """Issues the multipart upload request and reports its progress.

    Each call to ``send`` yields non-decreasing progress events followed by
    exactly one terminal event (completed, network error, timed out, aborted).
    Transport failures never escape as exceptions; they become terminal events
    carrying the last observed progress percentage.
    """

    def __init__(
        self,
        config: Optional[UpdaterConfig] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize upload transport.

        Args:
            config: Updater configuration (defaults if None)
            http_transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.logger = logging.getLogger("fwupdate.transport")
        self.config = config or UpdaterConfig()
        self._http_transport = http_transport
        self._task: Optional[asyncio.Task] = None
        self._progress: Optional[TransferProgress] = None

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def last_percent(self) -> int:
        """Last progress percentage of the current or most recent upload."""
        return self._progress.percent if self._progress else 0

    async def send(self, image: UpdateImage) -> AsyncIterator[TransportEvent]:
        """Upload an image, yielding progress events then one terminal event.

        Args:
            image: Validated firmware image

        Yields:
            TransportEvent instances; the last one is always terminal

        Raises:
            RuntimeError: If an upload is already in flight on this transport
        """
        if self.in_flight:
            raise RuntimeError("Upload already in flight")

        progress = TransferProgress()
        self._progress = progress
        queue: asyncio.Queue = asyncio.Queue()
        queue.put_nowait(TransportEvent.progress(0))

        self.logger.info(
            f"Uploading {image.name} ({image.size} bytes, md5={image.md5}) "
            f"to {self.config.upload_url}"
        )
        self._task = asyncio.create_task(self._run(image, progress, queue))
        self._task.add_done_callback(
            lambda task: self._report_early_abort(task, progress, queue)
        )

        try:
            while True:
                event = await queue.get()
                yield event
                if event.is_terminal:
                    break
        finally:
            await self._release()

    def abort(self) -> bool:
        """Cancel the in-flight upload.

        Returns:
            True if an upload was in flight and has been cancelled
        """
        if not self.in_flight:
            return False
        self.logger.warning(f"Aborting upload at {self.last_percent}%")
        self._task.cancel()
        return True

    def _report_early_abort(
        self,
        task: asyncio.Task,
        progress: TransferProgress,
        queue: asyncio.Queue,
    ) -> None:
        """Emit Aborted for an upload cancelled before its request started running."""
        if task.cancelled():
            queue.put_nowait(
                TransportEvent.terminal(
                    TransportEventKind.ABORTED, progress.percent, "upload aborted"
                )
            )

    async def _release(self) -> None:
        """Make sure the upload task and its HTTP client are gone."""
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
        self._task = None

    async def _run(
        self,
        image: UpdateImage,
        progress: TransferProgress,
        queue: asyncio.Queue,
    ) -> None:
        """Perform the upload and translate its end into one terminal event."""
        try:
            response = await asyncio.wait_for(
                self._post(image, progress, queue),
                timeout=self.config.upload_timeout,
            )
        except asyncio.CancelledError:
            queue.put_nowait(
                TransportEvent.terminal(
                    TransportEventKind.ABORTED, progress.percent, "upload aborted"
                )
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            self.logger.error(
                f"Upload timed out after {self.config.upload_timeout}s at {progress.percent}%"
            )
            queue.put_nowait(
                TransportEvent.terminal(
                    TransportEventKind.TIMED_OUT, progress.percent, str(e) or "timed out"
                )
            )
        except httpx.HTTPError as e:
            self.logger.warning(f"Connection lost at {progress.percent}%: {e!r}")
            queue.put_nowait(
                TransportEvent.terminal(
                    TransportEventKind.NETWORK_ERROR, progress.percent, str(e) or type(e).__name__
                )
            )
        except Exception as e:
            self.logger.error(f"Unexpected upload error: {e}", exc_info=True)
            queue.put_nowait(
                TransportEvent.terminal(
                    TransportEventKind.NETWORK_ERROR, progress.percent, str(e) or type(e).__name__
                )
            )
        else:
            self.logger.info(
                f"Upload completed: HTTP {response.status_code} at {progress.percent}%"
            )
            queue.put_nowait(
                TransportEvent.completed(response.status_code, response.text, progress.percent)
            )

    async def _post(
        self,
        image: UpdateImage,
        progress: TransferProgress,
        queue: asyncio.Queue,
    ) -> httpx.Response:
        """POST the image as multipart/form-data with a progress-reporting body."""
        # Let httpx encode the form, then stream the encoded bytes ourselves
        form = httpx.Request(
            "POST",
            self.config.upload_url,
            files={"file": (image.name, image.data, "application/octet-stream")},
        )
        payload = form.read()
        headers = {
            "Content-Type": form.headers["Content-Type"],
            "Content-Length": str(len(payload)),
        }

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.upload_timeout),
            transport=self._http_transport,
        ) as client:
            return await client.post(
                self.config.upload_url,
                content=self._body(payload, progress, queue),
                headers=headers,
            )

    async def _body(
        self,
        payload: bytes,
        progress: TransferProgress,
        queue: asyncio.Queue,
    ) -> AsyncIterator[bytes]:
        """Yield the request body in chunks, advancing progress as each is consumed."""
        total = len(payload)
        chunk_size = self.config.upload_chunk_size
        sent = 0

        for start in range(0, total, chunk_size):
            chunk = payload[start:start + chunk_size]
            yield chunk
            sent += len(chunk)
            if progress.advance(sent * 100 // total):
                queue.put_nowait(TransportEvent.progress(progress.percent))
                if progress.data_fully_sent:
                    self.logger.info("Image data fully sent, waiting for device response")
