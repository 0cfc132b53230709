"""
Portal discovery module: resources, legislatures and documents.
"""

from .links import LinkSnapshot, DiscoveryLevel, discover_links, fingerprint_markup
from .locators import ResourceLocator, LegislatureLocator, DocumentLocator

__all__ = [
    "LinkSnapshot",
    "DiscoveryLevel",
    "discover_links",
    "fingerprint_markup",
    "ResourceLocator",
    "LegislatureLocator",
    "DocumentLocator",
]
