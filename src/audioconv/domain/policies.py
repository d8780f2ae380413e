"""Domain value objects representing stable processing policies."""

from __future__ import annotations

from dataclasses import dataclass

from audioconv.conversion_options import DitherMethod
from audioconv.media_contract import MP3_BIT_RATE_KBPS


@dataclass(frozen=True, slots=True)
class TranscodePolicy:
    """Engine settings that do not come from the client request.

    Shibata noise shaping is only defined for 44.1 kHz and 48 kHz; every other
    output rate uses ``fallback_dither_method``.
    """

    policy_id: str
    resampler: str = "soxr"
    resampler_precision: int = 28
    shaped_dither_method: DitherMethod = DitherMethod.SHIBATA
    shaped_dither_sample_rates: frozenset[int] = frozenset({44_100, 48_000})
    fallback_dither_method: DitherMethod = DitherMethod.TRIANGULAR_HP
    mp3_encoder: str = "libmp3lame"
    mp3_bit_rate_kbps: int = MP3_BIT_RATE_KBPS
    policy_version: str = "v1"


DEFAULT_TRANSCODE_POLICY = TranscodePolicy(policy_id="transcode-default", policy_version="v1")
