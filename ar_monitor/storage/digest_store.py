"""
File-based digest store.

One file per monitored document holding the raw hex SHA-256 digest of its
last observed content::

    <data_dir>/<resource_name>/<suffix>_hash.txt
"""

import hashlib
import re
from pathlib import Path
from typing import Optional, Union

import structlog

from ..core.models import Document

logger = structlog.get_logger(__name__)

DIGEST_SUFFIX = "_hash.txt"
_UNSAFE_CHARS = re.compile(r"[^\w.\-]+")


def compute_digest(content: str) -> str:
    """SHA-256 hex digest of the exact text."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def _safe_component(value: str) -> str:
    return _UNSAFE_CHARS.sub("_", value).strip("._") or "_"


class DigestStore:
    """Reads and writes per-document digests under a data directory."""

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)

    def key_for(self, document: Document) -> str:
        """Digest file name for ``document``, stable across runs."""
        stem = document.filename
        if stem.lower().endswith(".xml"):
            stem = stem[:-4]
        suffix = stem
        if document.resource_name and stem.startswith(document.resource_name):
            suffix = stem[len(document.resource_name):].lstrip("_- ") or stem
        return f"{_safe_component(suffix)}{DIGEST_SUFFIX}"

    def path_for(self, document: Document) -> Path:
        return self.data_dir / _safe_component(document.resource_name) / self.key_for(document)

    def read(self, path: Path) -> Optional[str]:
        """Previously stored digest at ``path``, trimmed, or None if never stored."""
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8").strip()

    def write(self, path: Path, digest: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(digest, encoding="utf-8")
        logger.debug("Digest stored", path=str(path))
