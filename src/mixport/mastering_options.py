"""Shared export option enums and parsing helpers."""

from __future__ import annotations

from enum import Enum
from typing import TypeVar


class AudioFormat(str, Enum):
    """Encoded container/codec of a rendered artifact."""

    WAV = "wav"
    FLAC = "flac"
    AIFF = "aiff"
    MP3 = "mp3"
    AAC = "aac"
    OGG = "ogg"


class ChannelLayout(str, Enum):
    """Channel layout required by a platform."""

    MONO = "mono"
    STEREO = "stereo"

    @property
    def channel_count(self) -> int:
        return 1 if self is ChannelLayout.MONO else 2


class MasteringStyle(str, Enum):
    """Compressor voicing used by the mastering chain."""

    COMMERCIAL = "commercial"
    ARTISTIC = "artistic"
    PODCAST = "podcast"
    STREAMING = "streaming"


class LimiterStyle(str, Enum):
    """Final ceiling-guard voicing applied by the renderer."""

    TRANSPARENT = "transparent"
    VINTAGE = "vintage"
    AGGRESSIVE = "aggressive"


EnumT = TypeVar("EnumT", bound=Enum)


def enum_values(enum_cls: type[EnumT]) -> tuple[str, ...]:
    """Return enum values for UI/API hinting in declaration order."""

    return tuple(str(member.value) for member in enum_cls)


def parse_case_insensitive_enum(raw_value: str, enum_cls: type[EnumT]) -> EnumT:
    """Parse enum values case-insensitively and raise ValueError with allowed values."""

    normalized = raw_value.strip().lower()
    for member in enum_cls:
        if str(member.value).lower() == normalized:
            return member

    allowed = ", ".join(enum_values(enum_cls))
    enum_name = enum_cls.__name__
    raise ValueError(f"Invalid {enum_name}: '{raw_value}'. Allowed values: {allowed}.")
