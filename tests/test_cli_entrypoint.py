from __future__ import annotations

import json
import runpy
from pathlib import Path

import pytest

from audioconv import cli
from audioconv.domain.models import MediaMetadata
from audioconv.errors import InvalidMediaError
from audioconv.interfaces import cli_handlers


def _run(monkeypatch, *args: str) -> None:
    monkeypatch.setattr("sys.argv", ["audioconv", *args])
    cli.main()


def test_serve_dispatches_with_overrides(monkeypatch) -> None:
    captured = {}
    monkeypatch.setattr(cli, "serve", lambda config: captured.setdefault("config", config))
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)
    monkeypatch.setenv("AUDIOCONV_PORT", "3001")

    with pytest.raises(SystemExit) as exc_info:
        _run(monkeypatch, "serve", "--host", "127.0.0.1")

    assert exc_info.value.code == 0
    assert captured["config"].host == "127.0.0.1"
    assert captured["config"].port == 3001


def test_worker_dispatches_concurrency(monkeypatch) -> None:
    captured = {}

    def fake_worker(config, concurrency):
        captured["concurrency"] = concurrency

    monkeypatch.setattr(cli, "run_worker", fake_worker)
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)

    with pytest.raises(SystemExit):
        _run(monkeypatch, "worker", "--concurrency", "3")

    assert captured["concurrency"] == 3


def test_build_command_prints_argument_list(monkeypatch, capsys) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)
    params = json.dumps(
        {
            "input_url": "https://files.example.com/in.wav",
            "input_format": "wav",
            "input_name": "demo",
            "output_format": "flac",
            "output_channels": 2,
            "output_sample_rate": 96000,
            "output_bit_depth": 24,
            "output_dither": True,
        }
    )

    with pytest.raises(SystemExit) as exc_info:
        _run(monkeypatch, "build-command", "--params", params, "--input", "in.wav", "--output", "out.flac")

    out = capsys.readouterr().out
    assert exc_info.value.code == 0
    assert "-sample_fmt s32" in out
    assert "dither_method=triangular_hp" in out
    assert "Output filename: demo-96000-24-dither" in out


def test_build_command_reports_invalid_request(monkeypatch, capsys) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)

    with pytest.raises(SystemExit) as exc_info:
        _run(monkeypatch, "build-command", "--params", json.dumps({"input_format": "ogg"}))

    assert exc_info.value.code == 2
    assert "Input format is not valid" in capsys.readouterr().err


def test_probe_prints_metadata(monkeypatch, tmp_path: Path, capsys) -> None:
    audio = tmp_path / "a.wav"
    audio.write_bytes(b"RIFF")
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)
    monkeypatch.setattr(
        cli_handlers.FfprobeInspector,
        "inspect",
        lambda self, path: MediaMetadata(44100, 2, 16, 1.0, 44100, "1/44100", "wav", "pcm_s16le"),
    )

    with pytest.raises(SystemExit) as exc_info:
        _run(monkeypatch, "probe", str(audio))

    assert exc_info.value.code == 0
    assert json.loads(capsys.readouterr().out)["sample_rate"] == 44100


def test_probe_reports_policy_violation(monkeypatch, tmp_path: Path, capsys) -> None:
    audio = tmp_path / "a.ogg"
    audio.write_bytes(b"OggS")
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)

    def reject(self, path):
        raise InvalidMediaError("bad format", code="bad_format")

    monkeypatch.setattr(cli_handlers.FfprobeInspector, "inspect", reject)

    with pytest.raises(SystemExit) as exc_info:
        _run(monkeypatch, "probe", str(audio))

    assert exc_info.value.code == 1
    assert json.loads(capsys.readouterr().err)["code"] == "bad_format"


def test_module_entrypoint_calls_cli_main(monkeypatch) -> None:
    called = {"value": False}

    def fake_main():
        called["value"] = True

    monkeypatch.setattr(cli, "main", fake_main)

    with pytest.raises(SystemExit) as exc_info:
        runpy.run_module("audioconv.__main__", run_name="__main__")

    assert called["value"]
    assert exc_info.value.code == 0
