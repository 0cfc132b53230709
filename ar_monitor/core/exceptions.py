"""
Error taxonomy for the change monitor.

Only ``FatalDiscoveryError`` is meant to escape a traversal run. Download
failures are raised per document and contained by the orchestrator.
"""


class MonitorError(Exception):
    """Base class for all change monitor errors."""


class FatalDiscoveryError(MonitorError):
    """The portal root page could not be read, so there is nothing to traverse."""


class DownloadError(MonitorError):
    """A document URL produced no response or an empty body."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Failed to download XML content from {url}")


class SelectorMismatchError(MonitorError):
    """No usable element matched a single-document lookup selector."""

    def __init__(self, selector: str, reason: str = "No elements found with selector"):
        self.selector = selector
        super().__init__(f"{reason}: {selector}")
