"""
Data models for the open-data change monitor.
"""

import re
from datetime import datetime
from pathlib import PurePosixPath
from typing import Dict, List, Optional
from urllib.parse import urlparse
from pydantic import BaseModel, Field


RESOURCE_PAGE_PATTERN = re.compile(r"^DA(?P<name>.+)\.aspx$", re.IGNORECASE)
TERM_CODE_PATTERN = re.compile(r"\b([IVX]+)\b")

# resource name -> legislature term code -> document URL
ChangeReport = Dict[str, Dict[str, str]]


def resource_name_from_url(url: str) -> Optional[str]:
    """Extract ``<Name>`` from a ``.../DA<Name>.aspx`` resource page URL."""
    segment = PurePosixPath(urlparse(url).path).name
    match = RESOURCE_PAGE_PATTERN.match(segment)
    return match.group("name") if match else None


def extract_term_code(text: str) -> Optional[str]:
    """Return the upper-case Roman-numeral legislature code in ``text``."""
    match = TERM_CODE_PATTERN.search(text or "")
    return match.group(1) if match else None


class Resource(BaseModel):
    """A dataset category listed on the portal root page."""
    identifier: str
    url: str
    title: str

    @property
    def name(self) -> str:
        return resource_name_from_url(self.url) or self.title


class Legislature(BaseModel):
    """A legislature term folder within a resource page."""
    identifier: str
    url: str
    name: str
    resource_identifier: str

    @property
    def term_code(self) -> Optional[str]:
        return extract_term_code(self.name)


class Document(BaseModel):
    """A monitored XML file.

    Resource and legislature fields are snapshot copies taken at discovery
    time; the report is built after the originating pages are gone.
    """
    identifier: str
    url: str
    filename: str
    legislature_identifier: str
    resource_identifier: str
    resource_name: str

    resource_title: str
    resource_url: str
    legislature_name: str
    legislature_url: str


class ChangeRecord(BaseModel):
    """Outcome of one fetch/digest/compare cycle."""
    has_changed: bool
    current_digest: str
    previous_digest: Optional[str] = None
    timestamp: str

    @property
    def is_first_observation(self) -> bool:
        return self.previous_digest is None


class DocumentChangeResult(BaseModel):
    """A document paired with its change record."""
    document: Document
    change: ChangeRecord


class TraversalFailure(BaseModel):
    """A branch or document abandoned during traversal."""
    level: str  # "legislatures", "documents", "change"
    url: str
    error: str


class MonitorRun(BaseModel):
    """Monitor execution tracking."""
    run_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    status: str = "running"  # running, completed, failed

    documents_checked: int = 0
    documents_changed: int = 0
    first_observations: int = 0

    report_path: Optional[str] = None
    error_message: Optional[str] = None
    failures: List[TraversalFailure] = Field(default_factory=list)
