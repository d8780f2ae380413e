"""Ports through which the orchestrator reports job lifecycle events."""

from __future__ import annotations

from typing import Protocol

from audioconv.domain.events import DomainEvent


class EventPublisher(Protocol):
    def publish(self, event: DomainEvent) -> None:
        """Report one stage transition of a job. Must not raise."""


class NullEventPublisher:
    """Discards events; the default when a service is built without logging."""

    def publish(self, event: DomainEvent) -> None:  # noqa: ARG002
        return None


class RecordingEventPublisher:
    """Keeps events in memory, in emission order."""

    def __init__(self) -> None:
        self.events: list[DomainEvent] = []

    def publish(self, event: DomainEvent) -> None:
        self.events.append(event)

    def event_names(self) -> list[str]:
        return [type(event).__name__ for event in self.events]
