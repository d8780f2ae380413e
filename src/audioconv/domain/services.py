"""Domain services that contain pure business rules."""

from __future__ import annotations

from audioconv.conversion_options import AudioFormat, DitherMethod
from audioconv.domain.policies import TranscodePolicy


def time_base_denominator(time_base: str) -> int:
    """Return the denominator of a rational ``num/den`` time base string."""

    _, separator, denominator = time_base.partition("/")
    if not separator:
        return 1
    value = int(denominator)
    if value <= 0:
        raise ValueError(f"Invalid time base: {time_base!r}")
    return value


def compute_duration_in_samples(duration_ts: int, sample_rate: int, time_base: str) -> int:
    """Convert a duration in time-base ticks to a sample count.

    Integer arithmetic only, truncated, so long files do not drift.
    """

    return duration_ts * sample_rate // time_base_denominator(time_base)


def select_output_codec(audio_format: AudioFormat, bit_depth: int | None, policy: TranscodePolicy) -> str:
    """Encoder name for a requested output container and depth."""

    if audio_format is AudioFormat.WAV:
        return "pcm_s16le" if bit_depth == 16 else "pcm_s32le"
    if audio_format is AudioFormat.FLAC:
        return "flac"
    return policy.mp3_encoder


def accepted_codec_names(audio_format: AudioFormat, bit_depth: int | None, policy: TranscodePolicy) -> frozenset[str]:
    """Codec names a client may pass as ``output_codec``.

    Both the encoder name and the codec name the probe reports are accepted.
    """

    encoder = select_output_codec(audio_format, bit_depth, policy)
    if audio_format is AudioFormat.MP3:
        return frozenset({encoder, "mp3"})
    return frozenset({encoder})


def select_dither_method(sample_rate: int, policy: TranscodePolicy) -> DitherMethod:
    """Shaped dither where the policy supports it, the fallback method elsewhere."""

    if sample_rate in policy.shaped_dither_sample_rates:
        return policy.shaped_dither_method
    return policy.fallback_dither_method
