from .config import ServiceConfig, load_service_config

__all__ = [
    "ServiceConfig",
    "load_service_config",
]
