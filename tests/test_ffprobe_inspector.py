from __future__ import annotations

import json
import subprocess
from pathlib import Path

import pytest

from audioconv.domain.services import compute_duration_in_samples
from audioconv.errors import InvalidMediaError
from audioconv.infrastructure import ffprobe_inspector
from audioconv.infrastructure.ffprobe_inspector import FfprobeInspector, build_probe_command, parse_probe_output


def _probe(stream=None, media_format=None):
    base_stream = {
        "codec_type": "audio",
        "codec_name": "pcm_s16le",
        "sample_rate": "48000",
        "channels": 2,
        "bits_per_sample": 16,
        "duration_ts": 48000,
        "duration": "1.000000",
        "time_base": "1/48000",
    }
    base_stream.update(stream or {})
    base_format = {"format_name": "wav", "duration": "1.000000"}
    base_format.update(media_format or {})
    return {"streams": [base_stream], "format": base_format}


def test_parse_probe_output_normalizes_metadata() -> None:
    metadata = parse_probe_output(_probe())

    assert metadata.sample_rate == 48000
    assert metadata.channels == 2
    assert metadata.bit_depth == 16
    assert metadata.duration == pytest.approx(1.0)
    assert metadata.duration_in_samples == 48000
    assert metadata.format_name == "wav"
    assert metadata.codec_name == "pcm_s16le"


def test_zero_bits_per_sample_means_unknown_depth() -> None:
    metadata = parse_probe_output(
        _probe(stream={"codec_name": "mp3", "bits_per_sample": 0}, media_format={"format_name": "mp3"})
    )

    assert metadata.bit_depth is None


def test_flac_depth_falls_back_to_raw_sample_bits() -> None:
    metadata = parse_probe_output(
        _probe(
            stream={"codec_name": "flac", "bits_per_sample": 0, "bits_per_raw_sample": "24"},
            media_format={"format_name": "flac"},
        )
    )

    assert metadata.bit_depth == 24


def test_missing_duration_ts_leaves_sample_count_unknown() -> None:
    payload = _probe()
    del payload["streams"][0]["duration_ts"]

    assert parse_probe_output(payload).duration_in_samples is None


def test_zero_length_media_has_zero_samples() -> None:
    metadata = parse_probe_output(_probe(stream={"duration_ts": 0, "duration": "0.000000"}))

    assert metadata.duration_in_samples == 0
    assert metadata.bit_depth == 16


def test_duration_in_samples_uses_integer_arithmetic() -> None:
    ten_hours_ts = 10 * 3600 * 44100

    assert compute_duration_in_samples(ten_hours_ts, 96000, "1/44100") == 10 * 3600 * 96000
    assert compute_duration_in_samples(1, 44100, "1/48000") == 0


@pytest.mark.parametrize(
    ("payload", "code"),
    [
        ({"streams": [], "format": {"format_name": "wav"}}, "no_audio_stream"),
        (_probe(stream={"channels": 6}), "too_many_channels"),
        (_probe(media_format={"format_name": "ogg"}), "bad_format"),
        (_probe(stream={"codec_name": "vorbis"}), "bad_codec"),
        (_probe(stream={"sample_rate": None}), "unreadable_media"),
    ],
)
def test_policy_violations(payload, code) -> None:
    with pytest.raises(InvalidMediaError) as exc_info:
        parse_probe_output(payload)

    assert exc_info.value.code == code


def test_channel_check_runs_before_format_check() -> None:
    with pytest.raises(InvalidMediaError, match="too many channels"):
        parse_probe_output(_probe(stream={"channels": 3}, media_format={"format_name": "ogg"}))


def test_build_probe_command() -> None:
    command = build_probe_command(Path("/tmp/a.wav"), "ffprobe")

    assert command[0] == "ffprobe"
    assert "-show_streams" in command
    assert command[-2:] == ["-i", "/tmp/a.wav"]


def test_inspector_runs_ffprobe(monkeypatch) -> None:
    captured = {}

    def fake_run(command, **kwargs):
        captured["command"] = command
        captured["timeout"] = kwargs["timeout"]
        return subprocess.CompletedProcess(command, 0, stdout=json.dumps(_probe()), stderr="")

    monkeypatch.setattr(ffprobe_inspector.subprocess, "run", fake_run)

    metadata = FfprobeInspector("/usr/bin/ffprobe", timeout_seconds=5).inspect(Path("x.wav"))

    assert metadata.sample_rate == 48000
    assert captured["command"][0] == "/usr/bin/ffprobe"
    assert captured["timeout"] == 5


def test_inspector_maps_process_failure_to_unreadable_media(monkeypatch) -> None:
    monkeypatch.setattr(
        ffprobe_inspector.subprocess,
        "run",
        lambda command, **kwargs: subprocess.CompletedProcess(command, 1, stdout="", stderr="moov atom not found"),
    )

    with pytest.raises(InvalidMediaError, match="unreadable media"):
        FfprobeInspector().inspect(Path("x.wav"))


def test_inspector_maps_timeout_to_unreadable_media(monkeypatch) -> None:
    def fake_run(command, **kwargs):
        raise subprocess.TimeoutExpired(command, kwargs["timeout"])

    monkeypatch.setattr(ffprobe_inspector.subprocess, "run", fake_run)

    with pytest.raises(InvalidMediaError, match="unreadable media"):
        FfprobeInspector(timeout_seconds=1).inspect(Path("x.wav"))
