"""DDD domain layer."""

from .events import (
    ArtifactPublished,
    DomainEvent,
    InputProbed,
    JobCompleted,
    JobFailed,
    OutputProbed,
    OutputTranscoded,
    SourceFetched,
)
from .models import ConversionJob, ExecResult, JobState, MediaMetadata
from .policies import DEFAULT_TRANSCODE_POLICY, TranscodePolicy
from .services import (
    accepted_codec_names,
    compute_duration_in_samples,
    select_dither_method,
    select_output_codec,
)

__all__ = [
    "DomainEvent",
    "SourceFetched",
    "InputProbed",
    "OutputTranscoded",
    "OutputProbed",
    "ArtifactPublished",
    "JobCompleted",
    "JobFailed",
    "ConversionJob",
    "ExecResult",
    "JobState",
    "MediaMetadata",
    "TranscodePolicy",
    "DEFAULT_TRANSCODE_POLICY",
    "compute_duration_in_samples",
    "select_dither_method",
    "select_output_codec",
    "accepted_codec_names",
]
