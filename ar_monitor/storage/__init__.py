"""
Persistence module for document digests.
"""

from .digest_store import DigestStore, compute_digest

__all__ = ["DigestStore", "compute_digest"]
