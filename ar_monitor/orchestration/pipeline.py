"""
Traversal orchestrator for the open-data change monitor.

Walks Resource -> Legislature -> Document over a single browser page and
runs change detection on every document. Failures below the root page are
contained to their own branch.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, AsyncContextManager, Callable, List, Optional

import structlog

from ..browser.session import browser_session, open_page
from ..core.config import RunConfig, Settings, settings as default_settings
from ..core.exceptions import FatalDiscoveryError
from ..core.models import (
    Document, DocumentChangeResult, Legislature, MonitorRun, Resource, TraversalFailure
)
from ..detection.change_detector import ChangeDetector
from ..discovery.locators import DocumentLocator, LegislatureLocator, ResourceLocator
from ..publishing.report_builder import ReportBuilder
from ..storage.digest_store import DigestStore

logger = structlog.get_logger(__name__)

SessionFactory = Callable[[Settings], AsyncContextManager[Any]]


class ChangeMonitor:
    """Main orchestrator for a change detection run."""

    def __init__(
        self,
        run_config: RunConfig,
        config: Optional[Settings] = None,
        session_factory: SessionFactory = browser_session,
    ):
        self.run_config = run_config
        self.config = config or default_settings
        self.session_factory = session_factory

        self.resource_locator = ResourceLocator(run_config.resource_names)
        self.legislature_locator = LegislatureLocator(
            run_config.legislature_filter, run_config.current_only
        )
        self.document_locator = DocumentLocator()
        self.store = DigestStore(run_config.data_dir)
        self.detector = ChangeDetector(self.store, self.config)
        self.report_builder = ReportBuilder(run_config.report_path)

        self.failures: List[TraversalFailure] = []

    async def detect_all_changes(self) -> List[DocumentChangeResult]:
        """Traverse the portal and check every discovered document.

        Returns:
            Results in discovery order (resource, legislature, document).

        Raises:
            FatalDiscoveryError: The root page could not be loaded or queried.
        """
        self.failures = []
        results: List[DocumentChangeResult] = []

        async with self.session_factory(self.config) as page:
            resources = await self._discover_resources(page)

            for resource in resources:
                legislatures = await self._discover_legislatures(page, resource)

                for legislature in legislatures:
                    documents = await self._discover_documents(page, resource, legislature)

                    for document in documents:
                        result = await self._check_document(page, document)
                        if result is not None:
                            results.append(result)

        logger.info("Traversal finished", documents_checked=len(results),
                    failures=len(self.failures))
        return results

    async def _discover_resources(self, page: Any) -> List[Resource]:
        root_url = self.config.portal_url
        try:
            await open_page(page, root_url, self.config, settle=True)
            return await self.resource_locator.locate(page, root_url)
        except Exception as e:
            logger.error("Failed to read portal root page", url=root_url, error=str(e))
            raise FatalDiscoveryError(str(e)) from e

    async def _discover_legislatures(self, page: Any, resource: Resource) -> List[Legislature]:
        try:
            await open_page(page, resource.url, self.config)
            return await self.legislature_locator.locate(page, resource)
        except Exception as e:
            self._record_failure("legislatures", resource.url, e, resource=resource.name)
            return []

    async def _discover_documents(
        self, page: Any, resource: Resource, legislature: Legislature
    ) -> List[Document]:
        try:
            await open_page(page, legislature.url, self.config)
            return await self.document_locator.locate(page, legislature, resource, resource.name)
        except Exception as e:
            self._record_failure("documents", legislature.url, e,
                                 resource=resource.name, legislature=legislature.name)
            return []

    async def _check_document(self, page: Any, document: Document) -> Optional[DocumentChangeResult]:
        try:
            change = await self.detector.detect(page, document)
        except Exception as e:
            self._record_failure("change", document.url, e,
                                 resource=document.resource_name, filename=document.filename)
            return None
        return DocumentChangeResult(document=document, change=change)

    def _record_failure(self, level: str, url: str, error: Exception, **context: Any) -> None:
        logger.error("Traversal branch abandoned", branch=level, url=url, error=str(error), **context)
        self.failures.append(TraversalFailure(level=level, url=url, error=str(error)))

    async def run(self) -> MonitorRun:
        """Detect changes, write the change report and return run statistics.

        Fatal discovery errors are logged and re-raised; no report is
        written in that case.
        """
        monitor_run = MonitorRun(
            run_id=str(uuid.uuid4()),
            start_time=datetime.now(timezone.utc),
        )
        logger.info(
            "Starting change detection run",
            run_id=monitor_run.run_id,
            resources=self.run_config.resource_names or "all",
            legislatures=self.run_config.legislature_filter or ("current" if self.run_config.current_only else "all"),
            data_dir=str(self.run_config.data_dir),
        )

        try:
            results = await self.detect_all_changes()
        except Exception as e:
            duration = (datetime.now(timezone.utc) - monitor_run.start_time).total_seconds()
            logger.error(
                "Change detection run failed",
                run_id=monitor_run.run_id,
                status="failed",
                duration_seconds=duration,
                failures=len(self.failures),
                error=str(e),
            )
            raise

        self.report_builder.publish(results)
        self._notify(results)

        changed = [r for r in results if r.change.has_changed]
        monitor_run.end_time = datetime.now(timezone.utc)
        monitor_run.status = "completed"
        monitor_run.documents_checked = len(results)
        monitor_run.documents_changed = len(changed)
        monitor_run.first_observations = sum(1 for r in changed if r.change.is_first_observation)
        monitor_run.report_path = str(self.report_builder.report_path)
        monitor_run.failures = list(self.failures)

        duration = (monitor_run.end_time - monitor_run.start_time).total_seconds()
        logger.info(
            "Change detection run completed",
            run_id=monitor_run.run_id,
            duration_seconds=duration,
            documents_checked=monitor_run.documents_checked,
            documents_changed=monitor_run.documents_changed,
            failures=len(monitor_run.failures),
        )
        return monitor_run

    def _notify(self, results: List[DocumentChangeResult]) -> None:
        """Notification hook. Delivery is left to whoever consumes the logs."""
        for result in results:
            change = result.change
            if not change.has_changed:
                continue
            document = result.document
            event = "New document observed" if change.is_first_observation else "Document changed"
            logger.info(
                event,
                resource=document.resource_name,
                legislature=document.legislature_name,
                url=document.url,
                previous_digest=change.previous_digest,
                current_digest=change.current_digest,
            )
