"""
Change detection module.
"""

from .change_detector import ChangeDetector

__all__ = ["ChangeDetector"]
