"""Deterministic ffmpeg argument lists for a validated conversion request.

Nothing here touches the filesystem or spawns processes. The returned list is
passed straight to ``subprocess`` without a shell, so URLs and client-supplied
names never reach a command interpreter.
"""

from __future__ import annotations

import re
from pathlib import Path

from audioconv.conversion_options import AudioFormat, BitDepth
from audioconv.domain.policies import DEFAULT_TRANSCODE_POLICY, TranscodePolicy
from audioconv.domain.services import select_dither_method, select_output_codec
from audioconv.request_validation import ConversionRequest

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_DEFAULT_OUTPUT_NAME = "output"

_FLAC_SAMPLE_FORMATS: dict[BitDepth, str] = {
    BitDepth.BITS_16: "s16",
    BitDepth.BITS_24: "s32",
}


def codec_arguments(request: ConversionRequest, policy: TranscodePolicy = DEFAULT_TRANSCODE_POLICY) -> list[str]:
    """Encoder selection plus the depth / bit-rate flags that go with it."""

    depth = request.output_bit_depth
    codec = select_output_codec(request.output_format, depth, policy)
    arguments = ["-c:a", codec]

    if request.output_format is AudioFormat.FLAC:
        arguments += ["-sample_fmt", _FLAC_SAMPLE_FORMATS[depth or BitDepth.BITS_16]]
    elif request.output_format is AudioFormat.MP3:
        arguments += ["-b:a", f"{policy.mp3_bit_rate_kbps}k"]
    return arguments


def resample_filter(request: ConversionRequest, policy: TranscodePolicy = DEFAULT_TRANSCODE_POLICY) -> str:
    """High-precision soxr resampling, with the dither method when requested."""

    options = [f"resampler={policy.resampler}", f"precision={policy.resampler_precision}"]
    if request.output_dither:
        method = select_dither_method(int(request.output_sample_rate), policy)
        options.append(f"dither_method={method.value}")
    return "aresample=" + ":".join(options)


def build_output_filename(request: ConversionRequest) -> str:
    """Name (without extension) used for Content-Disposition and destination files.

    ``<name>-<rate>[-<depth>][-<bitrate>][-dither]``
    """

    raw_name = request.output_name or request.input_name or _DEFAULT_OUTPUT_NAME
    name = _UNSAFE_NAME_CHARS.sub("_", raw_name.strip()).strip("._") or _DEFAULT_OUTPUT_NAME

    parts = [name, str(int(request.output_sample_rate))]
    if request.output_bit_depth is not None:
        parts.append(str(int(request.output_bit_depth)))
    if request.output_bit_rate is not None:
        parts.append(str(request.output_bit_rate))
    if request.output_dither:
        parts.append("dither")
    return "-".join(parts)


def build_transcode_command(
    request: ConversionRequest,
    input_path: Path,
    output_path: Path,
    *,
    ffmpeg_binary: str = "ffmpeg",
    policy: TranscodePolicy = DEFAULT_TRANSCODE_POLICY,
) -> list[str]:
    """Full engine invocation for one job.

    Only the first audio stream is mapped; container metadata, chapters and
    encoder tags are dropped so nothing about the source leaks into the output.
    """

    return [
        ffmpeg_binary,
        "-hide_banner",
        "-nostdin",
        "-y",
        "-i",
        str(input_path),
        "-map",
        "0:a:0",
        "-map_metadata",
        "-1",
        "-map_chapters",
        "-1",
        "-fflags",
        "+bitexact",
        *codec_arguments(request, policy),
        "-ac",
        str(int(request.output_channels)),
        "-af",
        resample_filter(request, policy),
        "-ar",
        str(int(request.output_sample_rate)),
        "-f",
        request.output_format.value,
        str(output_path),
    ]
