"""Error taxonomy for conversion jobs and the serialization schema used for webhooks."""

from __future__ import annotations

from typing import Any


class ConversionError(Exception):
    """Base class for every failure a conversion job can report."""

    default_code = "conversion_failed"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code or self.default_code
        self.message = message

    def as_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class ValidationError(ConversionError):
    """A request field was rejected at intake; the job is never enqueued."""

    default_code = "invalid_request"

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class FetchError(ConversionError):
    """The source could not be downloaded.

    ``status`` holds the HTTP status for non-2xx answers and is ``None`` when
    the connection itself failed.
    """

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message, code="fetch_status" if status is not None else "fetch_network")
        self.status = status


class InvalidMediaError(ConversionError):
    """Input or output media failed the codec / format / channel policy."""

    default_code = "invalid_media"


class TranscodeError(ConversionError):
    """The transcoding engine exited non-zero or ran past its timeout."""

    default_code = "transcode_failed"

    def __init__(
        self,
        message: str,
        *,
        exit_code: int | None = None,
        stderr: str = "",
        timed_out: bool = False,
    ) -> None:
        super().__init__(message, code="transcode_timeout" if timed_out else None)
        self.exit_code = exit_code
        self.stderr = stderr
        self.timed_out = timed_out


class PublishError(ConversionError):
    """Writing the produced artifact to its destination failed."""

    default_code = "publish_failed"


class NotifyError(ConversionError):
    """Webhook delivery failed. Logged by the notifier, never re-raised."""

    default_code = "notify_failed"


def serialize_error(error: BaseException | None) -> dict[str, Any] | None:
    """Convert an exception chain into plain JSON-safe data.

    The schema is ``{"kind", "code", "message", "cause"}`` where ``cause`` is
    the serialized ``__cause__`` (or ``None``).
    """

    if error is None:
        return None

    message = error.message if isinstance(error, ConversionError) else str(error)
    return {
        "kind": type(error).__name__,
        "code": getattr(error, "code", None) if isinstance(error, ConversionError) else None,
        "message": message or type(error).__name__,
        "cause": serialize_error(error.__cause__),
    }
