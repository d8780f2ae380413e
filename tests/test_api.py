from __future__ import annotations

import base64
import json
from functools import partial
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from audioconv.api import create_app
from audioconv.application.conversion_service import ConvertAudioJob
from audioconv.domain.models import ExecResult, MediaMetadata
from audioconv.errors import FetchError
from audioconv.infrastructure.temp_files import StagingScope
from audioconv.utils.config import ServiceConfig

META = MediaMetadata(
    sample_rate=44100,
    channels=2,
    bit_depth=16,
    duration=1.0,
    duration_in_samples=44100,
    time_base="1/44100",
    format_name="wav",
    codec_name="pcm_s16le",
)


class FakeQueue:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.requests = []

    def enqueue(self, request) -> str:
        if self.error is not None:
            raise self.error
        self.requests.append(request)
        return "job-123"


class StubFetcher:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error

    def fetch(self, url, destination: Path) -> int:
        if self.error is not None:
            raise self.error
        destination.write_bytes(b"in")
        return 2


class StubInspector:
    def inspect(self, path: Path) -> MediaMetadata:
        return META


class StubExecutor:
    def run(self, args) -> ExecResult:
        Path(args[-1]).write_bytes(b"converted-audio")
        return ExecResult(args=tuple(args), stdout="", stderr="", exit_code=0)


class StubPublisher:
    def publish(self, path, url) -> None:
        raise AssertionError("direct streams are never uploaded")


class StubNotifier:
    def __init__(self) -> None:
        self.calls = []

    def notify(self, url, job_id, context, meta, error) -> bool:
        self.calls.append((meta, error))
        return True


def _push_payload(**overrides):
    payload = {
        "input_url": "https://files.example.com/in.wav",
        "input_format": "wav",
        "output_format": "wav",
        "output_channels": 2,
        "output_sample_rate": 44100,
        "output_bit_depth": 16,
        "output_url": "https://files.example.com/out.wav",
        "notify_url": "https://hooks.example.com/done",
    }
    payload.update(overrides)
    return payload


def _encode(payload) -> str:
    return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


def _client(tmp_path: Path, queue=None, fetcher=None, notifier=None, **config) -> TestClient:
    def factory() -> ConvertAudioJob:
        return ConvertAudioJob(
            fetcher=fetcher or StubFetcher(),
            inspector=StubInspector(),
            executor=StubExecutor(),
            publisher=StubPublisher(),
            notifier=notifier or StubNotifier(),
            staging_factory=partial(StagingScope, tmp_path),
        )

    app = create_app(ServiceConfig(**config), queue=queue or FakeQueue(), service_factory=factory)
    return TestClient(app)


def test_health(tmp_path: Path) -> None:
    response = _client(tmp_path).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_convert_and_create_enqueues_and_returns_job_id(tmp_path: Path) -> None:
    queue = FakeQueue()

    response = _client(tmp_path, queue=queue).post("/v1/convert-and-create", json=_push_payload(context=[1, 2]))

    assert response.status_code == 201
    assert response.json() == "job-123"
    assert queue.requests[0].context == [1, 2]


def test_convert_and_create_rejects_invalid_request(tmp_path: Path) -> None:
    queue = FakeQueue()

    response = _client(tmp_path, queue=queue).post(
        "/v1/convert-and-create",
        json=_push_payload(output_format="mp3", output_bit_rate=128),
    )

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Output bit rate is not valid"}
    assert queue.requests == []


def test_convert_and_create_applies_domain_allow_list(tmp_path: Path) -> None:
    client = _client(tmp_path, valid_url_domains="*.example.com")

    response = client.post("/v1/convert-and-create", json=_push_payload(output_url="https://elsewhere.test/out"))

    assert response.status_code == 400
    assert response.json()["message"] == "Output URL is not valid"


def test_convert_and_create_rejects_malformed_body(tmp_path: Path) -> None:
    response = _client(tmp_path).post(
        "/v1/convert-and-create",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_convert_and_create_reports_queue_outage(tmp_path: Path) -> None:
    response = _client(tmp_path, queue=FakeQueue(ConnectionError("redis down"))).post(
        "/v1/convert-and-create", json=_push_payload()
    )

    assert response.status_code == 503
    assert response.json() == {"success": False, "message": "Job could not be queued"}


def test_direct_stream_returns_converted_file(tmp_path: Path) -> None:
    notifier = StubNotifier()
    payload = _push_payload(output_url=None, input_name="take", output_dither=True)
    del payload["output_url"]

    response = _client(tmp_path, notifier=notifier).get("/v1/convert", params={"encodedParams": _encode(payload)})

    assert response.status_code == 201
    assert response.content == b"converted-audio"
    assert response.headers["content-type"] == "audio/wav"
    assert 'filename="take-44100-16-dither.wav"' in response.headers["content-disposition"]
    assert notifier.calls == [(META, None)]
    assert list(tmp_path.iterdir()) == []


@pytest.mark.parametrize("encoded", [None, "!!!"])
def test_direct_stream_rejects_bad_encoded_params(tmp_path: Path, encoded) -> None:
    params = {} if encoded is None else {"encodedParams": encoded}

    response = _client(tmp_path).get("/v1/convert", params=params)

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_direct_stream_rejects_output_url(tmp_path: Path) -> None:
    response = _client(tmp_path).get("/v1/convert", params={"encodedParams": _encode(_push_payload())})

    assert response.status_code == 400
    assert response.json()["message"] == "Output URL is not allowed for direct-stream requests"


def test_direct_stream_pipeline_failure_is_500(tmp_path: Path) -> None:
    payload = _push_payload()
    del payload["output_url"]
    notifier = StubNotifier()

    response = _client(
        tmp_path,
        fetcher=StubFetcher(FetchError("Source download failed with HTTP 404", status=404)),
        notifier=notifier,
    ).get("/v1/convert", params={"encodedParams": _encode(payload)})

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Source download failed with HTTP 404"}
    assert len(notifier.calls) == 1
    assert list(tmp_path.iterdir()) == []


def test_cors_headers_are_sent(tmp_path: Path) -> None:
    response = _client(tmp_path).get("/health", headers={"Origin": "https://app.example.com"})

    assert response.headers["access-control-allow-origin"] == "*"
