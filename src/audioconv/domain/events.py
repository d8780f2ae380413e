"""Domain event contracts for conversion jobs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True, slots=True)
class DomainEvent:
    """Base domain event emitted by application services."""

    job_id: str
    payload_summary: dict[str, Any]
    occurred_at: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))


@dataclass(frozen=True, slots=True)
class SourceFetched(DomainEvent):
    """The source file was downloaded into staging."""


@dataclass(frozen=True, slots=True)
class InputProbed(DomainEvent):
    """The staged source passed the media policy."""


@dataclass(frozen=True, slots=True)
class OutputTranscoded(DomainEvent):
    """The engine produced an output file."""


@dataclass(frozen=True, slots=True)
class OutputProbed(DomainEvent):
    """The produced file passed the media policy."""


@dataclass(frozen=True, slots=True)
class ArtifactPublished(DomainEvent):
    """The produced file was delivered to its destination."""


@dataclass(frozen=True, slots=True)
class JobCompleted(DomainEvent):
    """Job finished successfully and the client was notified."""


@dataclass(frozen=True, slots=True)
class JobFailed(DomainEvent):
    """Job attempt failed in some stage."""
