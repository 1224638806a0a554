"""Application services for watcherclient."""

from watcherclient.application.resources import build_patch
from watcherclient.application.watcher_client import (
    DEFAULT_API_VERSION,
    DEFAULT_TIMEOUT,
    WatcherClient,
)

__all__ = [
    "DEFAULT_API_VERSION",
    "DEFAULT_TIMEOUT",
    "WatcherClient",
    "build_patch",
]
