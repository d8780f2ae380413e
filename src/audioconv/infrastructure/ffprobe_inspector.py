"""Media inspection backed by ffprobe.

:func:`parse_probe_output` turns ffprobe's JSON into a :class:`MediaMetadata`
and enforces the media contract; :class:`FfprobeInspector` only adds the
subprocess call around it.
"""

from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from audioconv.domain.models import MediaMetadata
from audioconv.domain.services import compute_duration_in_samples
from audioconv.errors import InvalidMediaError
from audioconv.media_contract import ALLOWED_CODEC_NAMES, ALLOWED_FORMAT_NAMES, MAX_CHANNEL_COUNT

logger = logging.getLogger(__name__)


def build_probe_command(path: Path, ffprobe_binary: str = "ffprobe") -> list[str]:
    return [
        ffprobe_binary,
        "-v",
        "error",
        "-print_format",
        "json",
        "-show_format",
        "-show_streams",
        "-select_streams",
        "a",
        "-i",
        str(path),
    ]


def _optional_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _bit_depth(stream: dict[str, Any]) -> int | None:
    # 0 means the codec has no fixed sample size.
    return _optional_int(stream.get("bits_per_sample")) or _optional_int(stream.get("bits_per_raw_sample")) or None


def parse_probe_output(payload: dict[str, Any]) -> MediaMetadata:
    """Select the first audio stream and apply the media policy."""

    streams = [stream for stream in payload.get("streams") or [] if stream.get("codec_type", "audio") == "audio"]
    if not streams:
        raise InvalidMediaError("no audio stream", code="no_audio_stream")

    stream = streams[0]
    media_format = payload.get("format") or {}

    try:
        sample_rate = int(stream["sample_rate"])
        channels = int(stream["channels"])
    except (KeyError, TypeError, ValueError) as error:
        raise InvalidMediaError("unreadable media", code="unreadable_media") from error

    time_base = str(stream.get("time_base") or "1/1")
    duration_ts = _optional_int(stream.get("duration_ts"))
    try:
        duration = float(stream.get("duration") or media_format.get("duration") or 0.0)
        duration_in_samples = (
            compute_duration_in_samples(duration_ts, sample_rate, time_base) if duration_ts is not None else None
        )
    except ValueError as error:
        raise InvalidMediaError("unreadable media", code="unreadable_media") from error

    metadata = MediaMetadata(
        sample_rate=sample_rate,
        channels=channels,
        bit_depth=_bit_depth(stream),
        duration=duration,
        duration_in_samples=duration_in_samples,
        time_base=time_base,
        format_name=str(media_format.get("format_name", "")),
        codec_name=str(stream.get("codec_name", "")),
    )
    check_media_policy(metadata)
    return metadata


def check_media_policy(metadata: MediaMetadata) -> None:
    if metadata.channels > MAX_CHANNEL_COUNT:
        raise InvalidMediaError("too many channels", code="too_many_channels")
    if metadata.format_name not in ALLOWED_FORMAT_NAMES:
        raise InvalidMediaError("bad format", code="bad_format")
    if metadata.codec_name not in ALLOWED_CODEC_NAMES:
        raise InvalidMediaError("bad codec", code="bad_codec")


@dataclass(frozen=True, slots=True)
class FfprobeInspector:
    """Run ffprobe against a local file and validate what it reports."""

    ffprobe_binary: str = "ffprobe"
    timeout_seconds: float = 60.0

    def inspect(self, path: Path) -> MediaMetadata:
        command = build_probe_command(path, self.ffprobe_binary)
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as error:
            raise InvalidMediaError("unreadable media", code="unreadable_media") from error

        if completed.returncode != 0:
            logger.error("ffprobe failed: %s", completed.stderr.strip())
            raise InvalidMediaError("unreadable media", code="unreadable_media")

        try:
            payload = json.loads(completed.stdout or "{}")
        except json.JSONDecodeError as error:
            raise InvalidMediaError("unreadable media", code="unreadable_media") from error

        metadata = parse_probe_output(payload)
        logger.info("Media inspected", extra={"path": str(path), "metadata": metadata.as_dict()})
        return metadata
