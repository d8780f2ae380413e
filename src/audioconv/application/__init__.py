"""DDD application layer."""

from .conversion_service import ConvertAudioJob, DirectStream
from .event_publisher import EventPublisher, NullEventPublisher, RecordingEventPublisher

__all__ = ["ConvertAudioJob", "DirectStream", "EventPublisher", "NullEventPublisher", "RecordingEventPublisher"]
