"""
Traversal orchestration module for the change monitor.
"""

from .pipeline import ChangeMonitor

__all__ = ["ChangeMonitor"]
