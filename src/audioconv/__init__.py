"""Public package exports for audioconv with lazy imports."""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    "AudioFormat",
    "ConversionError",
    "ConversionRequest",
    "ConvertAudioJob",
    "MediaMetadata",
    "ServiceConfig",
    "build_transcode_command",
    "create_app",
    "load_service_config",
    "validate_request",
]

_EXPORT_MODULES: dict[str, str] = {
    "AudioFormat": "audioconv.conversion_options",
    "ConversionError": "audioconv.errors",
    "ConversionRequest": "audioconv.request_validation",
    "ConvertAudioJob": "audioconv.application.conversion_service",
    "MediaMetadata": "audioconv.domain.models",
    "ServiceConfig": "audioconv.utils.config",
    "build_transcode_command": "audioconv.transcode_command",
    "create_app": "audioconv.api",
    "load_service_config": "audioconv.utils.config",
    "validate_request": "audioconv.request_validation",
}


def __getattr__(name: str) -> Any:
    if name not in _EXPORT_MODULES:
        raise AttributeError(f"module 'audioconv' has no attribute {name!r}")

    module = import_module(_EXPORT_MODULES[name])
    value = getattr(module, name)
    globals()[name] = value
    return value
