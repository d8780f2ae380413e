"""Shared conversion option enums."""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import TypeVar


class AudioFormat(str, Enum):
    """Containers accepted on input and produced on output."""

    WAV = "wav"
    FLAC = "flac"
    MP3 = "mp3"


class SampleRate(IntEnum):
    """Output sample rates offered to clients."""

    HZ_44100 = 44_100
    HZ_48000 = 48_000
    HZ_88200 = 88_200
    HZ_96000 = 96_000
    HZ_192000 = 192_000


class BitDepth(IntEnum):
    """Output bit depths for lossless formats."""

    BITS_16 = 16
    BITS_24 = 24


class ChannelMode(IntEnum):
    MONO = 1
    STEREO = 2


class DitherMethod(str, Enum):
    """Dither algorithms understood by the resampler filter."""

    SHIBATA = "shibata"
    TRIANGULAR_HP = "triangular_hp"


EnumT = TypeVar("EnumT", bound=Enum)


def enum_values(enum_cls: type[EnumT]) -> tuple[str | int, ...]:
    """Return enum values for API hinting in declaration order."""

    return tuple(member.value for member in enum_cls)

