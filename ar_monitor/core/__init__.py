"""
Core module for the open-data change monitor.
"""

from .config import settings, Settings, RunConfig
from .exceptions import MonitorError, FatalDiscoveryError, DownloadError, SelectorMismatchError
from .models import *

__all__ = [
    "settings",
    "Settings",
    "RunConfig",
    "MonitorError",
    "FatalDiscoveryError",
    "DownloadError",
    "SelectorMismatchError",
]
