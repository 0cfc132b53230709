"""Change report builder.

Reduces a run's results to ``{resource name: {term code: document URL}}``
and writes it as JSON. Unchanged documents never appear in the report.
"""

import json
from pathlib import Path
from typing import Iterable, Union

import structlog

from ..core.models import ChangeReport, DocumentChangeResult, extract_term_code

logger = structlog.get_logger(__name__)


class ReportBuilder:
    """Builds and persists the change report for a run."""

    def __init__(self, report_path: Union[str, Path]):
        """Initialize the report builder.

        Args:
            report_path: File the report is written to, replaced on every run
        """
        self.report_path = Path(report_path)

    def build(self, results: Iterable[DocumentChangeResult]) -> ChangeReport:
        """Group changed documents by resource name and legislature term.

        When several changed documents share a resource and term, the last
        one in iteration order wins.
        """
        report: ChangeReport = {}
        for result in results:
            if not result.change.has_changed:
                continue
            document = result.document
            term = extract_term_code(document.legislature_name) or document.legislature_name
            report.setdefault(document.resource_name, {})[term] = document.url
        return report

    def write(self, report: ChangeReport) -> Path:
        """Write ``report`` as pretty-printed JSON, replacing any previous file."""
        self.report_path.parent.mkdir(parents=True, exist_ok=True)
        self.report_path.write_text(
            json.dumps(report, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        return self.report_path

    def publish(self, results: Iterable[DocumentChangeResult]) -> ChangeReport:
        """Build the report from ``results`` and persist it.

        An empty ``{}`` report is still written when nothing changed.
        """
        report = self.build(results)
        self.write(report)
        if report:
            logger.info(
                "Change report written",
                path=str(self.report_path),
                resources=len(report),
                entries=sum(len(terms) for terms in report.values()),
            )
        else:
            logger.info("No changes detected, empty report written", path=str(self.report_path))
        return report

    def clear(self) -> bool:
        """Delete a stale report. Returns True if one existed."""
        if not self.report_path.exists():
            return False
        self.report_path.unlink()
        logger.info("Cleared previous change report", path=str(self.report_path))
        return True
