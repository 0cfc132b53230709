"""
Generic link discovery shared by every level of the portal hierarchy.

Each level is the same three steps: query anchors on the current page,
keep the ones matching a level predicate, normalize them into model values,
then optionally narrow the list.
"""

import hashlib
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any, Callable, Generic, List, Optional, TypeVar
from urllib.parse import unquote, urljoin, urlparse

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

FINGERPRINT_LENGTH = 16


@dataclass(frozen=True)
class LinkSnapshot:
    """Plain copy of an anchor element's attributes."""
    href: str
    title: str
    text: str
    markup: str

    @property
    def identifier(self) -> str:
        return fingerprint_markup(self.markup)

    @property
    def accessible_title(self) -> str:
        return self.title or self.text


@dataclass
class DiscoveryLevel(Generic[T]):
    """How one level of the hierarchy selects and builds its children."""
    name: str
    selector: str
    build: Callable[[LinkSnapshot, str], T]
    matches: Callable[[LinkSnapshot], bool] = lambda link: True
    refine: Optional[Callable[[List[T]], List[T]]] = None
    keep: Optional[Callable[[T], bool]] = None


def fingerprint_markup(markup: str) -> str:
    """Stable short identifier for a link, derived only from its outer HTML."""
    return hashlib.sha256(markup.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def resolve_url(href: str, base_url: str) -> str:
    """Resolve a possibly relative href against the page it was found on."""
    if href.startswith(("http://", "https://")):
        return href
    return urljoin(base_url, href)


def last_path_segment(url: str) -> Optional[str]:
    """Final non-empty path segment of ``url``, or None for bare roots like ``/``."""
    path = urlparse(url).path
    if not path or path.endswith("/"):
        return None
    segment = unquote(PurePosixPath(path).name)
    return segment or None


async def snapshot_link(element: Any) -> LinkSnapshot:
    """Read the attributes discovery needs from a Playwright element handle."""
    href = await element.get_attribute("href")
    title = await element.get_attribute("title")
    text = await element.text_content()
    markup = await element.evaluate("el => el.outerHTML")
    return LinkSnapshot(
        href=(href or "").strip(),
        title=(title or "").strip(),
        text=(text or "").strip(),
        markup=markup or "",
    )


async def discover_links(page: Any, base_url: str, level: DiscoveryLevel[T]) -> List[T]:
    """Run one discovery level against a page that is already loaded.

    Args:
        page: Playwright page navigated to ``base_url``
        base_url: URL used to resolve relative hrefs
        level: Level-specific selector, predicate, builder and filters

    Returns:
        Discovered values in document order
    """
    elements = await page.query_selector_all(level.selector)
    links = [await snapshot_link(element) for element in elements]
    matched = [link for link in links if level.matches(link)]

    items = [level.build(link, base_url) for link in matched]
    if level.refine is not None:
        items = level.refine(items)
    if level.keep is not None:
        items = [item for item in items if level.keep(item)]

    logger.debug(
        "Discovered links",
        step=level.name,
        url=base_url,
        candidates=len(links),
        matched=len(matched),
        kept=len(items),
    )
    return items
