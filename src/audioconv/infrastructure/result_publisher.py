"""Delivery of produced artifacts: HTTP PUT upload or direct-stream response."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import requests
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask
from starlette.concurrency import run_in_threadpool
from starlette.types import Receive, Scope, Send

from audioconv.conversion_options import AudioFormat
from audioconv.errors import PublishError
from audioconv.media_contract import media_type_for

logger = logging.getLogger(__name__)

UPLOAD_CONTENT_TYPE = "application/octet-stream"


@dataclass(slots=True)
class HttpResultPublisher:
    """Upload a staged file to a client-supplied URL (push mode)."""

    session: requests.Session = field(default_factory=requests.Session)
    timeout: tuple[float, float] = (10.0, 60.0)

    def publish(self, path: Path, url: str) -> None:
        try:
            size = path.stat().st_size
            with path.open("rb") as body:
                response = self.session.put(
                    url,
                    data=body,
                    headers={"Content-Type": UPLOAD_CONTENT_TYPE, "Content-Length": str(size)},
                    timeout=self.timeout,
                )
        except (requests.RequestException, OSError) as error:
            raise PublishError(f"Upload failed: {error}") from error

        with response:
            if not response.ok:
                raise PublishError(f"Upload rejected with HTTP {response.status_code}")

        logger.info("Artifact uploaded", extra={"bytes": size, "status_code": response.status_code})


class StagedFileResponse(FileResponse):
    """FileResponse whose cleanup also runs when sending the body fails."""

    def __init__(self, *args, on_abort: Callable[[BaseException], None], **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._on_abort = on_abort

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        except Exception as error:
            await run_in_threadpool(self._on_abort, error)
            raise


def build_direct_stream_response(
    path: Path,
    *,
    filename: str,
    output_format: AudioFormat,
    on_complete: Callable[[], None],
    on_abort: Callable[[BaseException], None],
) -> StagedFileResponse:
    """Stream a staged file as the HTTP response (pull mode).

    ``on_complete`` runs after the body has been sent, ``on_abort`` if sending
    fails; together they own staging cleanup.
    """

    return StagedFileResponse(
        path,
        status_code=201,
        media_type=media_type_for(output_format),
        filename=f"{filename}.{output_format.value}",
        background=BackgroundTask(on_complete),
        on_abort=on_abort,
    )
