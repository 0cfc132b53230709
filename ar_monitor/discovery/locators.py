"""
Locators for the three levels of the open-data portal.

    portal root --(a[title="Recursos"])--> Resource
    resource page --("Pasta <CODE> Legislatura")--> Legislature
    legislature page --(href/title containing ".xml")--> Document
"""

import re
from typing import Any, Iterable, List, Optional

import structlog

from ..core.models import Document, Legislature, Resource, extract_term_code, resource_name_from_url
from .links import DiscoveryLevel, LinkSnapshot, discover_links, last_path_segment, resolve_url

logger = structlog.get_logger(__name__)

RESOURCE_SELECTOR = 'a[title="Recursos"]'
LEGISLATURE_SELECTOR = "a"
DOCUMENT_SELECTOR = "a"

LEGISLATURE_TITLE_PATTERN = re.compile(r"Pasta [A-Z]+ Legislatura")
XML_MARKER = ".xml"
UNKNOWN_FILENAME = "unknown.xml"


class ResourceLocator:
    """Finds resource categories on the portal root page."""

    def __init__(self, resource_names: Optional[Iterable[str]] = None):
        self.resource_names = set(resource_names or [])

    def _build(self, link: LinkSnapshot, base_url: str) -> Resource:
        return Resource(
            identifier=link.identifier,
            url=resolve_url(link.href, base_url),
            title=link.text or link.title,
        )

    def _allowed(self, resource: Resource) -> bool:
        return resource_name_from_url(resource.url) in self.resource_names

    async def locate(self, page: Any, root_url: str) -> List[Resource]:
        """Discover resources on the root page, honoring the name allow-list.

        Errors from the page are not caught here; without the root page
        there is nothing to traverse.
        """
        level = DiscoveryLevel(
            name="resources",
            selector=RESOURCE_SELECTOR,
            build=self._build,
            keep=self._allowed if self.resource_names else None,
        )
        resources = await discover_links(page, root_url, level)
        logger.info("Resources discovered", count=len(resources),
                    names=[r.name for r in resources])
        return resources


class LegislatureLocator:
    """Finds legislature term folders on a resource page."""

    def __init__(self, legislature_filter: Optional[Iterable[str]] = None, current_only: bool = False):
        self.legislature_filter = {term.upper() for term in (legislature_filter or [])}
        self.current_only = current_only

    @staticmethod
    def _matches(link: LinkSnapshot) -> bool:
        return bool(LEGISLATURE_TITLE_PATTERN.search(link.accessible_title))

    @staticmethod
    def _most_recent(legislatures: List[Legislature]) -> List[Legislature]:
        # The portal lists terms newest first.
        return legislatures[:1]

    def _allowed(self, legislature: Legislature) -> bool:
        return extract_term_code(legislature.name) in self.legislature_filter

    async def locate(self, page: Any, resource: Resource) -> List[Legislature]:
        """Discover the legislatures of ``resource`` from its (loaded) page."""

        def build(link: LinkSnapshot, base_url: str) -> Legislature:
            return Legislature(
                identifier=link.identifier,
                url=resolve_url(link.href, base_url),
                name=link.accessible_title,
                resource_identifier=resource.identifier,
            )

        level = DiscoveryLevel(
            name="legislatures",
            selector=LEGISLATURE_SELECTOR,
            build=build,
            matches=self._matches,
            refine=self._most_recent if self.current_only else None,
            keep=self._allowed if self.legislature_filter else None,
        )
        legislatures = await discover_links(page, resource.url, level)
        logger.info("Legislatures discovered", resource=resource.name,
                    terms=[leg.term_code or leg.name for leg in legislatures])
        return legislatures


class DocumentLocator:
    """Finds XML documents on a legislature page."""

    @staticmethod
    def _matches(link: LinkSnapshot) -> bool:
        return XML_MARKER in link.href or XML_MARKER in link.title

    @staticmethod
    def resolve_filename(title: str, text: str, url: str) -> str:
        """Pick a filename: title, then link text, then URL path, then a fallback."""
        return title or text or last_path_segment(url) or UNKNOWN_FILENAME

    async def locate(
        self,
        page: Any,
        legislature: Legislature,
        resource: Resource,
        resource_name: str,
    ) -> List[Document]:
        """Discover the XML documents of ``legislature`` from its (loaded) page."""

        def build(link: LinkSnapshot, base_url: str) -> Document:
            url = resolve_url(link.href, base_url)
            return Document(
                identifier=link.identifier,
                url=url,
                filename=self.resolve_filename(link.title, link.text, url),
                legislature_identifier=legislature.identifier,
                resource_identifier=resource.identifier,
                resource_name=resource_name,
                resource_title=resource.title,
                resource_url=resource.url,
                legislature_name=legislature.name,
                legislature_url=legislature.url,
            )

        level = DiscoveryLevel(
            name="documents",
            selector=DOCUMENT_SELECTOR,
            build=build,
            matches=self._matches,
        )
        documents = await discover_links(page, legislature.url, level)
        logger.info("Documents discovered", resource=resource_name,
                    legislature=legislature.name, count=len(documents))
        return documents
