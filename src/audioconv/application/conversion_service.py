"""Application service orchestrating one conversion job."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from audioconv.application.event_publisher import EventPublisher, NullEventPublisher
from audioconv.application.ports import MediaInspector, Notifier, ResultPublisher, SourceFetcher, TranscodeExecutor
from audioconv.domain.events import (
    ArtifactPublished,
    InputProbed,
    JobCompleted,
    JobFailed,
    OutputProbed,
    OutputTranscoded,
    SourceFetched,
)
from audioconv.domain.models import ConversionJob, JobState, MediaMetadata
from audioconv.domain.policies import DEFAULT_TRANSCODE_POLICY, TranscodePolicy
from audioconv.errors import PublishError, serialize_error
from audioconv.infrastructure.temp_files import StagingHandle, StagingScope
from audioconv.transcode_command import build_output_filename, build_transcode_command

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DirectStream:
    """A produced file waiting to be streamed back to the caller.

    Exactly one of :meth:`finish` or :meth:`abort` takes effect; later calls
    are ignored.
    """

    job: ConversionJob
    output: StagingHandle
    metadata: MediaMetadata
    filename: str
    _scope: StagingScope
    _service: ConvertAudioJob
    _closed: bool = False

    def finish(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._scope.close()
        self._service._complete(self.job, self.metadata)

    def abort(self, error: BaseException) -> None:
        if self._closed:
            return
        self._closed = True
        self._scope.close()
        self._service._fail(self.job, PublishError(f"Direct stream interrupted: {error}"), final_attempt=True)


@dataclass(slots=True)
class ConvertAudioJob:
    """Use case that runs one job through fetch, probe, transcode, probe, publish, notify.

    Stages run strictly in order. Staging files are released on every exit
    path before the client is notified, and each job attempt that ends the
    job produces exactly one notification.
    """

    fetcher: SourceFetcher
    inspector: MediaInspector
    executor: TranscodeExecutor
    publisher: ResultPublisher
    notifier: Notifier
    staging_factory: Callable[[], StagingScope] = StagingScope
    ffmpeg_binary: str = "ffmpeg"
    transcode_policy: TranscodePolicy = DEFAULT_TRANSCODE_POLICY
    event_publisher: EventPublisher = field(default_factory=NullEventPublisher)

    def run(self, job: ConversionJob, *, final_attempt: bool = True) -> MediaMetadata:
        """Push mode: upload the result to ``output_url`` and notify.

        Any failure is notified (on the final attempt) and re-raised so the
        queue can decide about redelivery.
        """

        output_url = job.request.output_url
        if output_url is None:
            raise ValueError(f"job {job.id} has no output_url; use open_direct_stream")

        try:
            with self.staging_factory() as scope:
                output, metadata = self._produce(job, scope)

                job.enter(JobState.PUBLISHING)
                self.publisher.publish(output.path, output_url)
                self.event_publisher.publish(
                    ArtifactPublished(job_id=job.id, payload_summary={"mode": "push"})
                )
        except Exception as error:  # noqa: BLE001
            self._fail(job, error, final_attempt=final_attempt)
            raise

        self._complete(job, metadata)
        return metadata

    def open_direct_stream(self, job: ConversionJob) -> DirectStream:
        """Pull mode: produce and validate the output, then hand it to the caller.

        The caller streams ``DirectStream.output`` and must call
        :meth:`DirectStream.finish` (or :meth:`DirectStream.abort`).
        """

        scope = self.staging_factory()
        try:
            output, metadata = self._produce(job, scope)
            job.enter(JobState.PUBLISHING)
        except Exception as error:  # noqa: BLE001
            scope.close()
            self._fail(job, error, final_attempt=True)
            raise

        return DirectStream(
            job=job,
            output=output,
            metadata=metadata,
            filename=build_output_filename(job.request),
            _scope=scope,
            _service=self,
        )

    def _produce(self, job: ConversionJob, scope: StagingScope) -> tuple[StagingHandle, MediaMetadata]:
        request = job.request
        source = scope.acquire(request.input_format.value)
        output = scope.acquire(request.output_format.value)

        job.enter(JobState.FETCHING)
        size = self.fetcher.fetch(request.input_url, source.path)
        self.event_publisher.publish(SourceFetched(job_id=job.id, payload_summary={"bytes": size}))

        job.enter(JobState.PROBING_INPUT)
        source_metadata = self.inspector.inspect(source.path)
        self.event_publisher.publish(InputProbed(job_id=job.id, payload_summary=source_metadata.as_dict()))

        job.enter(JobState.TRANSCODING)
        command = build_transcode_command(
            request,
            source.path,
            output.path,
            ffmpeg_binary=self.ffmpeg_binary,
            policy=self.transcode_policy,
        )
        result = self.executor.run(command)
        self.event_publisher.publish(
            OutputTranscoded(
                job_id=job.id,
                payload_summary={
                    "exit_code": result.exit_code,
                    "policy_id": self.transcode_policy.policy_id,
                    "policy_version": self.transcode_policy.policy_version,
                },
            )
        )

        job.enter(JobState.PROBING_OUTPUT)
        metadata = self.inspector.inspect(output.path)
        self.event_publisher.publish(OutputProbed(job_id=job.id, payload_summary=metadata.as_dict()))
        return output, metadata

    def _complete(self, job: ConversionJob, metadata: MediaMetadata) -> None:
        request = job.request
        job.enter(JobState.NOTIFYING)
        if request.notify_url is not None:
            self.notifier.notify(request.notify_url, job.id, request.context, metadata, None)
        job.enter(JobState.DONE)
        self.event_publisher.publish(JobCompleted(job_id=job.id, payload_summary={"attempt": job.attempt}))

    def _fail(self, job: ConversionJob, error: BaseException, *, final_attempt: bool) -> None:
        stage = job.state.value
        job.enter(JobState.FAILED)
        self.event_publisher.publish(
            JobFailed(
                job_id=job.id,
                payload_summary={
                    "stage": stage,
                    "attempt": job.attempt,
                    "final_attempt": final_attempt,
                    "error": serialize_error(error),
                },
            )
        )

        request = job.request
        if not final_attempt:
            logger.warning("Job %s failed in %s; redelivery pending", job.id, stage, exc_info=error)
            return

        logger.error("Job %s failed in %s", job.id, stage, exc_info=error)
        if request.notify_url is not None:
            self.notifier.notify(request.notify_url, job.id, request.context, None, error)
