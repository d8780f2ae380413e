"""Application ports implemented by infrastructure adapters."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol

from audioconv.domain.models import ExecResult, MediaMetadata


class SourceFetcher(Protocol):
    def fetch(self, url: str, destination: Path) -> int:
        """Stream ``url`` into ``destination``; raise FetchError on failure."""


class MediaInspector(Protocol):
    def inspect(self, path: Path) -> MediaMetadata:
        """Probe ``path`` and enforce the media policy; raise InvalidMediaError."""


class TranscodeExecutor(Protocol):
    def run(self, args: Sequence[str]) -> ExecResult:
        """Run the engine; raise TranscodeError on non-zero exit or timeout."""


class ResultPublisher(Protocol):
    def publish(self, path: Path, url: str) -> None:
        """Upload ``path`` to ``url``; raise PublishError on failure."""


class Notifier(Protocol):
    def notify(
        self,
        url: str,
        job_id: str,
        context: Any,
        meta: MediaMetadata | None,
        error: BaseException | None,
    ) -> bool:
        """Deliver the terminal outcome. Must not raise."""
