"""Domain models for conversion jobs."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from audioconv.request_validation import ConversionRequest


class JobState(str, Enum):
    """Lifecycle states of one conversion job attempt."""

    PENDING = "pending"
    FETCHING = "fetching"
    PROBING_INPUT = "probing_input"
    TRANSCODING = "transcoding"
    PROBING_OUTPUT = "probing_output"
    PUBLISHING = "publishing"
    NOTIFYING = "notifying"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES = frozenset({JobState.DONE, JobState.FAILED})


@dataclass(frozen=True, slots=True)
class MediaMetadata:
    """Normalized probe result for the first audio stream of a file."""

    sample_rate: int
    channels: int
    bit_depth: int | None
    duration: float
    duration_in_samples: int | None
    time_base: str
    format_name: str
    codec_name: str

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class ConversionJob:
    """Unit of work delivered by the queue.

    ``state`` and ``history`` are only mutated by the orchestrator.
    """

    id: str
    request: ConversionRequest
    attempt: int = 1
    state: JobState = JobState.PENDING
    history: list[JobState] = field(default_factory=list)

    def enter(self, state: JobState) -> None:
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"job {self.id} already finished as {self.state.value}")
        if state in self.history and state is not JobState.FAILED:
            raise RuntimeError(f"job {self.id} re-entered stage {state.value}")
        self.state = state
        self.history.append(state)


@dataclass(frozen=True, slots=True)
class ExecResult:
    """Captured outcome of one engine invocation."""

    args: tuple[str, ...]
    stdout: str
    stderr: str
    exit_code: int
