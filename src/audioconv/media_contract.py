"""Media contract shared by intake, the inspector and the command builder.

Invariants
----------
* Only wav, flac and mp3 containers are accepted, before and after conversion.
* Probed media never carries more than two channels.
* mp3 output is always encoded at one fixed bit rate.
"""

from __future__ import annotations

from audioconv.conversion_options import AudioFormat

# Container names as reported by the probing tool.
ALLOWED_FORMAT_NAMES: tuple[str, ...] = ("flac", "wav", "mp3")

# Codec names as reported by the probing tool.
ALLOWED_CODEC_NAMES: tuple[str, ...] = (
    "flac",
    "pcm_s16le",
    "pcm_s16be",
    "pcm_s24le",
    "pcm_s32le",
    "pcm_f32le",
    "mp3",
)

MAX_CHANNEL_COUNT = 2

# Only accepted value for ``output_bit_rate`` when the output is mp3 (kbit/s).
MP3_BIT_RATE_KBPS = 320


def media_type_for(audio_format: AudioFormat) -> str:
    """MIME type sent with direct-stream responses."""

    return f"audio/{audio_format.value}"
