"""
Browser automation module (Playwright).
"""

from .session import browser_session, open_page

__all__ = ["browser_session", "open_page"]
