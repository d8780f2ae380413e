"""Best-effort webhook delivery of terminal job outcomes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import requests

from audioconv.domain.models import MediaMetadata
from audioconv.errors import NotifyError, serialize_error

logger = logging.getLogger(__name__)


def build_notification(
    job_id: str,
    context: Any,
    meta: MediaMetadata | None,
    error: BaseException | None,
) -> dict[str, Any]:
    """Webhook body: exactly one of ``meta`` / ``err`` is non-null."""

    if (meta is None) == (error is None):
        raise ValueError("notification needs either metadata or an error, not both")
    return {
        "id": job_id,
        "context": context,
        "meta": meta.as_dict() if meta is not None else None,
        "err": serialize_error(error),
    }


@dataclass(slots=True)
class WebhookNotifier:
    session: requests.Session = field(default_factory=requests.Session)
    timeout: tuple[float, float] = (10.0, 60.0)

    def notify(
        self,
        url: str,
        job_id: str,
        context: Any,
        meta: MediaMetadata | None,
        error: BaseException | None,
    ) -> bool:
        """POST the outcome. Returns False when delivery failed; never raises."""

        payload = build_notification(job_id, context, meta, error)
        try:
            try:
                response = self.session.post(url, json=payload, timeout=self.timeout)
            except requests.RequestException as request_error:
                raise NotifyError(f"Webhook delivery failed: {request_error}") from request_error
            with response:
                if not response.ok:
                    raise NotifyError(f"Webhook rejected with HTTP {response.status_code}")
        except NotifyError as notify_error:
            logger.warning(
                "Notification not delivered",
                extra={"job_id": job_id, "error": serialize_error(notify_error)},
                exc_info=notify_error,
            )
            return False

        logger.info("Notification delivered", extra={"job_id": job_id, "outcome": "error" if error else "success"})
        return True
