"""
Playwright session handling.

A run owns exactly one browser and one page, reused serially for every
navigation, element query and download.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import structlog
from playwright.async_api import Page, Response, async_playwright

from ..core.config import Settings, settings as default_settings

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def browser_session(config: Optional[Settings] = None) -> AsyncIterator[Page]:
    """Launch the configured browser and yield a single page.

    The browser is closed and Playwright stopped on every exit path,
    including when the body raises.
    """
    config = config or default_settings
    async with async_playwright() as playwright:
        launcher = getattr(playwright, config.browser)
        browser = await launcher.launch(headless=config.headless)
        logger.info("Browser started", browser=config.browser, headless=config.headless)
        try:
            page = await browser.new_page()
            page.set_default_navigation_timeout(config.navigation_timeout_ms)
            yield page
        finally:
            await browser.close()
            logger.info("Browser stopped", browser=config.browser)


async def open_page(
    page: Page,
    url: str,
    config: Optional[Settings] = None,
    settle: bool = False,
) -> Optional[Response]:
    """Navigate ``page`` to ``url`` and wait for the configured load state.

    Args:
        page: Page to navigate
        url: Absolute URL
        config: Settings providing the wait policy
        settle: Also wait the configured settle delay, for pages that keep
            rendering after the network goes idle

    Returns:
        The navigation response, or None when the browser reports none
    """
    config = config or default_settings
    response = await page.goto(url, wait_until=config.wait_until)
    if settle and config.settle_delay_ms > 0:
        await page.wait_for_timeout(config.settle_delay_ms)
    return response
