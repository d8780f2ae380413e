"""Logging-backed implementation of the event publisher."""

from __future__ import annotations

import logging

from audioconv.domain.events import DomainEvent, JobFailed

LOGGER = logging.getLogger("audioconv.events")


class LoggingEventPublisher:
    """Write job lifecycle events to the ``audioconv.events`` logger.

    Failures are logged at WARNING, every other stage event at INFO.
    """

    def publish(self, event: DomainEvent) -> None:
        event_name = type(event).__name__
        LOGGER.log(
            logging.WARNING if isinstance(event, JobFailed) else logging.INFO,
            "job %s: %s",
            event.job_id,
            event_name,
            extra={
                "event_name": event_name,
                "job_id": event.job_id,
                "payload_summary": event.payload_summary,
                "occurred_at": event.occurred_at.isoformat(),
            },
        )
