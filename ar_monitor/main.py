"""
Main entry point for the open-data change monitor.
"""

import sys
import time
import asyncio
import logging
import argparse
from typing import List, Optional
import structlog
from pydantic import ValidationError

from .core.config import RunConfig, parse_legislature_filter, settings
from .core.exceptions import MonitorError
from .detection.change_detector import ChangeDetector
from .browser.session import browser_session
from .orchestration import ChangeMonitor
from .publishing import ReportBuilder
from .storage import DigestStore


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None):
    """Configure structured logging."""
    level_name = (level or settings.log_level).upper()
    renderer = (
        structlog.dev.ConsoleRenderer()
        if (log_format or settings.log_format) == "console"
        else structlog.processors.JSONRenderer()
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level_name, logging.INFO),
    )

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ar-monitor",
        description="Detects changes in XML files from the Portuguese Parliament open-data portal"
    )
    parser.add_argument('--log-level', type=str, help='Log level (default: AR_LOG_LEVEL or INFO)')
    parser.add_argument('--log-format', choices=['json', 'console'], help='Log output format')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Run traversal command
    run_parser = subparsers.add_parser('run', help='Check every XML dataset for changes')
    run_parser.add_argument(
        'resources',
        nargs='*',
        help='Resource names to monitor (e.g., InformacaoBase, Iniciativas)'
    )
    run_parser.add_argument(
        '-l', '--leg',
        type=str,
        help='Comma-separated legislature Roman numerals (e.g., XV,XVI,XVII)'
    )
    run_parser.add_argument(
        '-c', '--curr',
        action='store_true',
        help='Use current legislature only'
    )
    run_parser.add_argument(
        '-d', '--data-dir',
        type=str,
        default=settings.data_dir,
        help=f'Data directory path (default: {settings.data_dir})'
    )

    # Single document command
    check_parser = subparsers.add_parser('check', help='Check the first XML link matching a CSS selector')
    check_parser.add_argument('selector', help='CSS selector of the XML link')
    check_parser.add_argument(
        '--url',
        type=str,
        default=settings.portal_url,
        help='Page containing the link (default: portal root)'
    )
    check_parser.add_argument(
        '-d', '--data-dir',
        type=str,
        default=settings.data_dir,
        help=f'Data directory path (default: {settings.data_dir})'
    )

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging
    setup_logging(args.log_level, args.log_format)
    logger = structlog.get_logger(__name__)

    if args.command == 'run':
        try:
            run_config = RunConfig(
                data_dir=args.data_dir,
                resource_names=args.resources,
                legislature_filter=parse_legislature_filter(args.leg),
                current_only=args.curr,
            )
        except ValidationError as e:
            parser.error(e.errors()[0]["msg"])

        if run_config.legislature_filter:
            logger.info("Legislature filter", legislatures=run_config.legislature_filter)

        # Delete existing change report at the start of each run
        ReportBuilder(run_config.report_path).clear()

        start = time.perf_counter()
        try:
            monitor_run = asyncio.run(ChangeMonitor(run_config).run())
        except Exception as e:
            logger.error("Monitoring error", error=str(e))
            sys.exit(1)
        finally:
            logger.info("Change detection completed",
                        elapsed_seconds=round(time.perf_counter() - start, 1))

        if monitor_run.documents_changed > 0:
            print(f"Found {monitor_run.documents_changed} changed XML files")
        else:
            print("No changes detected in any XML files")
        sys.exit(0)

    elif args.command == 'check':
        run_config = RunConfig(data_dir=args.data_dir)
        try:
            record = asyncio.run(check_single(args.url, args.selector, run_config))
        except MonitorError as e:
            logger.error("Single document check failed", selector=args.selector, error=str(e))
            sys.exit(1)
        except Exception as e:
            logger.error("Monitoring error", selector=args.selector, error=str(e))
            sys.exit(1)

        print(f"Changed: {record.has_changed}")
        print(f"Current hash: {record.current_digest}")
        print(f"Previous hash: {record.previous_digest or '-'}")
        sys.exit(0)

    else:
        parser.print_help()
        sys.exit(1)


async def check_single(url: str, selector: str, run_config: RunConfig):
    """Run the single-selector change check on its own browser session."""
    detector = ChangeDetector(DigestStore(run_config.data_dir), settings)
    async with browser_session(settings) as page:
        return await detector.detect_by_selector(
            page, url, selector, run_config.legacy_digest_path
        )


if __name__ == "__main__":
    main()
