"""
Change detection for monitored XML documents.

A document has changed when the SHA-256 digest of its current content
differs from the digest stored on the previous run. A document without a
stored digest is reported as changed with no previous digest.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import structlog

from ..browser.session import open_page
from ..core.config import Settings
from ..core.exceptions import DownloadError, SelectorMismatchError
from ..core.models import ChangeRecord, Document
from ..discovery.links import resolve_url
from ..storage.digest_store import DigestStore, compute_digest

logger = structlog.get_logger(__name__)


class ChangeDetector:
    """Runs the fetch, digest, compare and persist cycle for documents."""

    def __init__(self, store: DigestStore, config: Optional[Settings] = None):
        self.store = store
        self.config = config

    async def fetch(self, page: Any, url: str) -> str:
        """Download ``url`` through the page and return its body text."""
        response = await open_page(page, url, self.config)
        content = await response.text() if response is not None else None
        if not content:
            raise DownloadError(url)
        return content

    def compare(self, path: Path, content: str) -> ChangeRecord:
        """Compare ``content`` with the digest at ``path``, storing it if changed."""
        current_digest = compute_digest(content)
        previous_digest = self.store.read(path)
        has_changed = previous_digest is None or current_digest != previous_digest

        if has_changed:
            self.store.write(path, current_digest)

        return ChangeRecord(
            has_changed=has_changed,
            current_digest=current_digest,
            previous_digest=previous_digest,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    async def detect(self, page: Any, document: Document) -> ChangeRecord:
        """Detect whether ``document`` changed since the last run.

        Raises:
            DownloadError: The document could not be downloaded.
        """
        content = await self.fetch(page, document.url)
        record = self.compare(self.store.path_for(document), content)
        logger.info(
            "Document checked",
            resource=document.resource_name,
            legislature=document.legislature_name,
            filename=document.filename,
            changed=record.has_changed,
            first_observation=record.is_first_observation,
        )
        return record

    async def detect_by_selector(self, page: Any, page_url: str, selector: str, digest_path: Path) -> ChangeRecord:
        """Single-document mode: follow the first link matching ``selector``.

        Raises:
            SelectorMismatchError: Nothing matched, or the match has no href.
            DownloadError: The linked document could not be downloaded.
        """
        await open_page(page, page_url, self.config, settle=True)

        element = await page.query_selector(selector)
        if element is None:
            raise SelectorMismatchError(selector)

        href = await element.get_attribute("href")
        if not href:
            raise SelectorMismatchError(selector, reason="XML link not found for selector")

        xml_url = resolve_url(href, page_url)
        logger.info("Following XML link", selector=selector, url=xml_url)

        content = await self.fetch(page, xml_url)
        return self.compare(digest_path, content)
