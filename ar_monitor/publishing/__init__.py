"""
Publishing module for change reports.
"""

from .report_builder import ReportBuilder

__all__ = ["ReportBuilder"]
