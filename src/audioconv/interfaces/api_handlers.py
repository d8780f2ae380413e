"""API-facing handlers that build application services from configuration."""

from __future__ import annotations

from functools import partial
from uuid import uuid4

import requests

from audioconv.application.conversion_service import ConvertAudioJob, DirectStream
from audioconv.domain.models import ConversionJob
from audioconv.infrastructure.ffmpeg_executor import SubprocessExecutor
from audioconv.infrastructure.ffprobe_inspector import FfprobeInspector
from audioconv.infrastructure.huey_queue import ConversionQueue, create_huey
from audioconv.infrastructure.logging_event_publisher import LoggingEventPublisher
from audioconv.infrastructure.result_publisher import HttpResultPublisher
from audioconv.infrastructure.source_fetcher import HttpSourceFetcher
from audioconv.infrastructure.temp_files import StagingScope
from audioconv.infrastructure.webhook_notifier import WebhookNotifier
from audioconv.request_validation import ConversionRequest, UrlPolicy
from audioconv.utils.config import ServiceConfig

_event_publisher = LoggingEventPublisher()


def url_policy_from_config(config: ServiceConfig) -> UrlPolicy:
    return UrlPolicy(domain_patterns=config.valid_url_domains)


def build_conversion_service(config: ServiceConfig) -> ConvertAudioJob:
    """One service per job; its HTTP session is not shared across threads."""

    session = requests.Session()
    timeout = config.http_timeout
    return ConvertAudioJob(
        fetcher=HttpSourceFetcher(session=session, timeout=timeout),
        inspector=FfprobeInspector(config.ffprobe_binary, config.probe_timeout_seconds),
        executor=SubprocessExecutor(config.transcode_timeout_seconds),
        publisher=HttpResultPublisher(session=session, timeout=timeout),
        notifier=WebhookNotifier(session=session, timeout=timeout),
        staging_factory=partial(StagingScope, config.staging_dir),
        ffmpeg_binary=config.ffmpeg_binary,
        event_publisher=_event_publisher,
    )


def build_conversion_queue(config: ServiceConfig) -> ConversionQueue:
    huey = create_huey(config.queue_name, config.redis_url, immediate=config.immediate)
    return ConversionQueue(
        huey,
        partial(build_conversion_service, config),
        url_policy=url_policy_from_config(config),
        max_retries=config.max_retries,
        retry_delay_seconds=config.retry_delay_seconds,
    )


def open_direct_stream(service: ConvertAudioJob, request: ConversionRequest) -> DirectStream:
    job = ConversionJob(id=str(uuid4()), request=request)
    return service.open_direct_stream(job)


__all__ = [
    "build_conversion_queue",
    "build_conversion_service",
    "open_direct_stream",
    "url_policy_from_config",
]
