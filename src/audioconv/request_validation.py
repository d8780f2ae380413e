"""Conversion request model and intake validation.

Every request, whether it arrives on the queued endpoint, the direct-stream
endpoint or is re-read from the queue by a worker, goes through
:func:`validate_request`. The function never raises for bad input; it returns a
:class:`ValidationResult` that is either ok (with a typed
:class:`ConversionRequest`) or invalid (with a :class:`ValidationError`).
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Mapping
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Any
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict

from audioconv.conversion_options import AudioFormat, BitDepth, ChannelMode, SampleRate, enum_values
from audioconv.domain.policies import DEFAULT_TRANSCODE_POLICY, TranscodePolicy
from audioconv.domain.services import accepted_codec_names
from audioconv.errors import ValidationError
from audioconv.media_contract import MP3_BIT_RATE_KBPS

_URL_SCHEMES = frozenset({"http", "https"})


class ConversionRequest(BaseModel):
    """Immutable, validated conversion parameters supplied by a client."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    input_url: str
    input_format: AudioFormat
    input_name: str | None = None
    output_format: AudioFormat
    output_codec: str | None = None
    output_channels: ChannelMode
    output_sample_rate: SampleRate
    output_bit_depth: BitDepth | None = None
    output_bit_rate: int | None = None
    output_dither: bool = False
    output_name: str | None = None
    output_url: str | None = None
    notify_url: str | None = None
    context: Any = None

    @property
    def direct_stream(self) -> bool:
        return self.output_url is None

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe form used as the queue message."""

        return self.model_dump(mode="json")


@dataclass(frozen=True, slots=True)
class UrlPolicy:
    """Allow-list of destination hosts expressed as wildcard patterns."""

    domain_patterns: tuple[str, ...] = ("*",)

    def allows(self, url: Any) -> bool:
        if not isinstance(url, str) or not url:
            return False
        try:
            parts = urlsplit(url)
            hostname = parts.hostname
        except ValueError:
            return False
        if parts.scheme not in _URL_SCHEMES or not hostname:
            return False

        host = parts.netloc.rpartition("@")[2].lower()
        return any(
            fnmatchcase(host, pattern.lower()) or fnmatchcase(hostname, pattern.lower())
            for pattern in self.domain_patterns
        )


ALLOW_ALL_URLS = UrlPolicy()


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Tagged outcome of :func:`validate_request`."""

    request: ConversionRequest | None = None
    error: ValidationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> ConversionRequest:
        if self.error is not None:
            raise self.error
        if self.request is None:
            raise ValueError("validation result holds neither a request nor an error")
        return self.request


def _invalid(message: str, field: str) -> ValidationResult:
    return ValidationResult(error=ValidationError(message, field=field))


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _optional_name(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() != "")


def validate_request(
    payload: Any,
    *,
    direct_stream: bool = False,
    url_policy: UrlPolicy = ALLOW_ALL_URLS,
    policy: TranscodePolicy = DEFAULT_TRANSCODE_POLICY,
) -> ValidationResult:
    """Validate a raw submission payload.

    ``direct_stream`` selects pull mode: ``output_url`` must be absent and
    ``notify_url`` becomes optional. In push mode both are required.
    """

    if not isinstance(payload, Mapping):
        return _invalid("Request body must be a JSON object", "body")

    format_values = enum_values(AudioFormat)

    input_format = payload.get("input_format")
    if not isinstance(input_format, str) or input_format not in format_values:
        return _invalid("Input format is not valid", "input_format")

    input_url = payload.get("input_url")
    if not url_policy.allows(input_url):
        return _invalid("Input URL is not valid", "input_url")

    input_name = payload.get("input_name")
    if not _optional_name(input_name):
        return _invalid("Input name is not valid", "input_name")

    output_format = payload.get("output_format")
    if not isinstance(output_format, str) or output_format not in format_values:
        return _invalid("Output format is not valid", "output_format")

    output_url = payload.get("output_url")
    if direct_stream:
        if output_url is not None:
            return _invalid("Output URL is not allowed for direct-stream requests", "output_url")
    elif not url_policy.allows(output_url):
        return _invalid("Output URL is not valid", "output_url")

    notify_url = payload.get("notify_url")
    if (notify_url is not None or not direct_stream) and not url_policy.allows(notify_url):
        return _invalid("Notify URL is not valid", "notify_url")

    output_channels = payload.get("output_channels")
    if not _is_int(output_channels) or output_channels not in enum_values(ChannelMode):
        return _invalid("Output channel mode is not valid", "output_channels")

    output_sample_rate = payload.get("output_sample_rate")
    if not _is_int(output_sample_rate) or output_sample_rate not in enum_values(SampleRate):
        return _invalid("Output sample rate is not valid", "output_sample_rate")

    is_mp3 = output_format == AudioFormat.MP3.value

    output_bit_depth = None
    if not is_mp3:
        output_bit_depth = payload.get("output_bit_depth")
        if not _is_int(output_bit_depth) or output_bit_depth not in enum_values(BitDepth):
            return _invalid("Output bit depth is not valid", "output_bit_depth")

    output_bit_rate = None
    if is_mp3:
        raw_bit_rate = payload.get("output_bit_rate")
        if isinstance(raw_bit_rate, bool) or str(raw_bit_rate) != str(MP3_BIT_RATE_KBPS):
            return _invalid("Output bit rate is not valid", "output_bit_rate")
        output_bit_rate = MP3_BIT_RATE_KBPS

    output_dither = payload.get("output_dither", False)
    if not isinstance(output_dither, bool):
        return _invalid("Output dither is not valid", "output_dither")

    output_codec = payload.get("output_codec")
    if output_codec is not None:
        accepted = accepted_codec_names(AudioFormat(output_format), output_bit_depth, policy)
        if not isinstance(output_codec, str) or output_codec not in accepted:
            return _invalid("Output codec is not valid", "output_codec")

    output_name = payload.get("output_name")
    if not _optional_name(output_name):
        return _invalid("Output name is not valid", "output_name")

    request = ConversionRequest(
        input_url=input_url,
        input_format=AudioFormat(input_format),
        input_name=input_name,
        output_format=AudioFormat(output_format),
        output_codec=output_codec,
        output_channels=ChannelMode(output_channels),
        output_sample_rate=SampleRate(output_sample_rate),
        output_bit_depth=BitDepth(output_bit_depth) if output_bit_depth is not None else None,
        output_bit_rate=output_bit_rate,
        output_dither=output_dither,
        output_name=output_name,
        output_url=None if direct_stream else output_url,
        notify_url=notify_url,
        context=payload.get("context"),
    )
    return ValidationResult(request=request)


def decode_encoded_params(encoded: str | None) -> Any:
    """Decode the base64 JSON blob carried by direct-stream requests."""

    if not encoded:
        raise ValidationError("Encoded params are missing", field="encodedParams")
    try:
        decoded = base64.b64decode(encoded, validate=False)
        return json.loads(decoded.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as error:
        raise ValidationError("Encoded params are not valid", field="encodedParams") from error
