from lifelog_sync.shared.exceptions.base import AppException
from lifelog_sync.shared.exceptions.sync import (
    ConfigurationError,
    MapperError,
    SchemaFetchError,
    StateIOError,
    UpstreamFetchError,
    WriteError,
)

__all__ = [
    "AppException",
    "ConfigurationError",
    "MapperError",
    "SchemaFetchError",
    "StateIOError",
    "UpstreamFetchError",
    "WriteError",
]
