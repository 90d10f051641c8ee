# core/framework_manager.py

import asyncio
import time
from datetime import datetime
from typing import Dict, List, Optional

from core.access_verifier import AccessVerifier
from core.browser_manager import BrowserManager
from core.country_source import source_from_config
from core.errors import ReportWriteError
from core.framework.csv_writer import CSVWriter
from core.http_observer import HeadStatusClient
from core.locale_catalog import LocaleCatalog, write_transformed_csv
from core.matrix_generator import generate, matrix_size
from core.probe import BaselineOutcome, FallbackOutcome, LocaleUrlOutcome
from core.result_aggregator import Report, aggregate
from core.session import ProbeSession
from utils.helpers import format_duration
from utils.logger import get_logger, phase

logger = get_logger("runner")


class MatrixRunner:
    """
    Fetch countries -> build catalog -> generate the mismatched-cookie
    matrix -> verify every probe -> aggregate -> write CSV reports.

    Opt-in passes after the matrix, each on the first session: ``run_baseline``
    (matching cookie), ``run_locale_urls`` (locale URL keeps its locale) and
    ``run_invalid_paths`` (junk paths fall back to 404 or redirect).

    ``source``, ``browser_manager`` and ``status_client`` default to the ones
    named by the config; tests hand in fakes.
    """

    def __init__(self, config: Dict, source=None, browser_manager=None, status_client=None):
        self.config = config
        self.source = source if source is not None else source_from_config(config)
        self.browser_manager = browser_manager if browser_manager is not None else BrowserManager(config)
        self.status_client = status_client
        self.csv_writer = CSVWriter(config)
        self.catalog: Optional[LocaleCatalog] = None
        self._cancel = asyncio.Event()

    def cancel(self) -> None:
        """Stop after the probe in flight; completed probes are still reported."""
        if not self._cancel.is_set():
            logger.warning("⏹  Cancellation requested, finishing current probe(s)")
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    # ------------- Catalog -------------

    async def load_catalog(self) -> LocaleCatalog:
        """DataSourceError propagates: nothing to verify without countries."""
        phase(logger, "Fetching country and locale data")
        records = await self.source.fetch_country_locales()

        transformed_file = self.config.get("transformed_locales_file")
        if transformed_file:
            try:
                write_transformed_csv(records, transformed_file)
            except OSError as e:
                logger.warning("⚠️ Failed to write transformed locales CSV: %s", e)

        self.catalog = LocaleCatalog.build(records)
        return self.catalog

    # ------------- Sessions -------------

    async def _open_sessions(self, count: int) -> List[ProbeSession]:
        sessions: List[ProbeSession] = []
        try:
            for idx in range(1, count + 1):
                sessions.append(await self.browser_manager.new_session(f"worker-{idx}"))
        except BaseException:
            await self._close_sessions(sessions)
            raise
        return sessions

    async def _close_sessions(self, sessions: List[ProbeSession]) -> None:
        for session in sessions:
            try:
                await session.close()
            except Exception as e:
                logger.warning("⚠️ Failed to close %s: %s", session, e)

    # ------------- Main runner -------------

    async def run(self) -> Report:
        start = time.monotonic()
        catalog = await self.load_catalog()
        pairs = generate(catalog)

        total_locales = len(catalog)
        workers = max(1, int(self.config.get("workers", 1) or 1))
        workers = min(workers, max(1, len(pairs)))

        phase(logger, "Invalid locale cookie matrix")
        logger.info("🌍 Total Locales: %d", total_locales)
        logger.info("🔁 Matrix Size: %d x %d", total_locales, max(total_locales - 1, 0))
        logger.info("🔍 Total Invalid Checks Scheduled: %d", matrix_size(total_locales))
        logger.info("🧵 Workers: %d", workers)
        logger.info("⏱  Start Time: %s", datetime.now().isoformat(timespec="seconds"))

        verifier = AccessVerifier(self.config, catalog)
        outcomes = []
        baseline: List[BaselineOutcome] = []
        locale_urls: List[LocaleUrlOutcome] = []
        fallbacks: List[FallbackOutcome] = []

        run_baseline = bool(self.config.get("run_baseline"))
        run_locale_urls = bool(self.config.get("run_locale_urls"))
        run_invalid_paths = bool(self.config.get("run_invalid_paths"))
        has_checks = len(catalog) > 0 and (run_baseline or run_locale_urls or run_invalid_paths)

        if pairs or has_checks:
            await self.browser_manager.start()
            sessions = await self._open_sessions(workers)
            try:
                if pairs:
                    outcomes = await verifier.run(pairs, sessions, self._cancel)
                if run_baseline and not self.cancelled:
                    phase(logger, "Locale -> URL -> Cookie baseline")
                    baseline = await verifier.run_baseline(sessions[0], self._cancel)
                if run_locale_urls and not self.cancelled:
                    phase(logger, "Transformed locale URLs")
                    locale_urls = await verifier.run_locale_urls(sessions[0], self._cancel)
                if run_invalid_paths and not self.cancelled:
                    phase(logger, "Invalid locale paths -> fallback")
                    fallbacks = await self._run_invalid_paths(verifier, sessions[0])
            finally:
                await self._close_sessions(sessions)
                await self.browser_manager.close()
        else:
            logger.warning("⚠️ Fewer than two locales in the catalog, nothing to probe")

        duration = time.monotonic() - start
        report = aggregate(
            outcomes,
            cancelled=self.cancelled,
            duration=duration,
            baseline=baseline,
            locale_urls=locale_urls,
            fallbacks=fallbacks,
        )

        try:
            self.csv_writer.write_reports(report)
        except ReportWriteError as e:
            logger.warning("⚠️ %s", e)

        logger.info("⏹  Finish Time: %s", datetime.now().isoformat(timespec="seconds"))
        logger.info("⏳ Total Time: %s", format_duration(duration))

        if report.succeeded:
            logger.info("✅ All invalid combinations correctly blocked.")
        else:
            logger.error("❌ SUMMARY OF FAILURES:")
            for line in report.failure_details():
                logger.error("   %s", line)

        if report.checks_failed_count:
            logger.warning("⚠️ Additional locale checks with problems: %d", report.checks_failed_count)
            for line in report.check_failure_details():
                logger.warning("   %s", line)

        return report

    async def _run_invalid_paths(self, verifier: AccessVerifier, session: ProbeSession) -> List[FallbackOutcome]:
        client = self.status_client or HeadStatusClient.from_config(self.config)
        try:
            return await verifier.run_invalid_paths(session, client, self._cancel)
        finally:
            if self.status_client is None:
                await client.close()
