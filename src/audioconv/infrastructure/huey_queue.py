"""Queue adapter backed by huey (Redis in production, memory for local runs)."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from huey import Huey, MemoryHuey, RedisHuey
from huey import signals
from huey.exceptions import CancelExecution

from audioconv.application.conversion_service import ConvertAudioJob
from audioconv.domain.models import ConversionJob
from audioconv.errors import ValidationError
from audioconv.request_validation import ALLOW_ALL_URLS, ConversionRequest, UrlPolicy, validate_request

logger = logging.getLogger(__name__)

TASK_NAME = "convert"


def create_huey(name: str, redis_url: str, *, immediate: bool = False) -> Huey:
    if immediate:
        return MemoryHuey(name, immediate=True)
    return RedisHuey(name, url=redis_url)


class ConversionQueue:
    """Enqueue validated requests and execute them inside huey workers.

    ``service_factory`` builds a fresh :class:`ConvertAudioJob` per job so
    workers never share HTTP sessions or staging state.
    """

    def __init__(
        self,
        huey: Huey,
        service_factory: Callable[[], ConvertAudioJob],
        *,
        url_policy: UrlPolicy = ALLOW_ALL_URLS,
        max_retries: int = 0,
        retry_delay_seconds: int = 0,
    ) -> None:
        self.huey = huey
        self._service_factory = service_factory
        self._url_policy = url_policy
        self._max_retries = max_retries
        self._task = huey.task(
            retries=max_retries,
            retry_delay=retry_delay_seconds,
            context=True,
            name=TASK_NAME,
        )(self.execute)
        huey.signal(signals.SIGNAL_ERROR)(self._log_task_error)

    def enqueue(self, request: ConversionRequest) -> str:
        """Hand a request to the broker and return the generated job id."""

        result = self._task(request.to_payload())
        logger.info("Job enqueued", extra={"job_id": result.id})
        return result.id

    def execute(self, payload: dict[str, Any], task: Any = None) -> dict[str, Any]:
        job_id = task.id if task is not None else "local"
        result = validate_request(payload, url_policy=self._url_policy)
        if not result.ok:
            self._reject(job_id, payload, result.error)

        remaining_retries = task.retries if task is not None else 0
        job = ConversionJob(
            id=job_id,
            request=result.request,
            attempt=self._max_retries - remaining_retries + 1,
        )
        metadata = self._service_factory().run(job, final_attempt=remaining_retries == 0)
        return metadata.as_dict()

    def _reject(self, job_id: str, payload: Any, error: ValidationError) -> None:
        """Notify a message that no longer validates, then cancel it without retry."""

        logger.error("Job %s rejected at execution: %s", job_id, error.message)
        fields = payload if isinstance(payload, dict) else {}
        notify_url = fields.get("notify_url")
        if self._url_policy.allows(notify_url):
            self._service_factory().notifier.notify(notify_url, job_id, fields.get("context"), None, error)
        raise CancelExecution(retry=False) from error

    def run_worker(self, concurrency: int) -> None:
        """Block running a consumer with ``concurrency`` worker threads."""

        consumer = self.huey.create_consumer(workers=concurrency, worker_type="thread")
        consumer.run()

    @staticmethod
    def _log_task_error(signal: str, task: Any, exc: BaseException | None = None) -> None:
        logger.warning("Queue task %s failed (%s retries left)", task.id, task.retries, exc_info=exc)
