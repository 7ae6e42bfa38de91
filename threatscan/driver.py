"""Stores and analyzes parsed entries one at a time.

Entries are processed strictly in order with a fixed pause between them, so a
single run never has more than one request in flight against the analyzer.
"""

import asyncio
import logging
from typing import Awaitable, Callable

from threatscan.config import SubmissionSettings
from threatscan.errors import (
    AnalyzerError,
    AnalyzerUnavailableError,
    ParseEmptyError,
    RateLimitedError,
    RunInProgressError,
    SizeLimitExceededError,
)
from threatscan.formatter import format_entry
from threatscan.models import LogEntry, LogRecord, LogStatus, ScanSummary, SubmissionResult
from threatscan.parser import parse_event_log

logger = logging.getLogger(__name__)

ProgressSink = Callable[[SubmissionResult], None]
Sleep = Callable[[float], Awaitable[None]]


def summarize(result: SubmissionResult) -> str:
    if result.threats_found > 0:
        return (
            f"{result.threats_found} threat(s) found across "
            f"{result.processed_count} entries"
        )
    return f"{result.processed_count} entries scanned, no threats found"


def entry_filename(filename: str, index: int) -> str:
    return f"{filename}-entry-{index + 1}"


class BatchSubmissionDriver:
    def __init__(
        self,
        store,
        analyzer,
        settings: SubmissionSettings | None = None,
        progress: ProgressSink | None = None,
        user_id: str = "local",
        sleep: Sleep = asyncio.sleep,
    ):
        self._store = store
        self._analyzer = analyzer
        self._settings = settings or SubmissionSettings()
        self._progress = progress
        self._user_id = user_id
        self._sleep = sleep
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def scan_text(self, raw_text: str, filename: str = "manual-input.txt") -> ScanSummary:
        """Validate and parse raw log text, then submit every entry."""
        limit = self._settings.max_input_chars
        if len(raw_text) > limit:
            raise SizeLimitExceededError(len(raw_text), limit)

        entries = parse_event_log(raw_text)
        if not entries:
            raise ParseEmptyError()
        return await self.run(entries, filename=filename)

    async def run(self, entries: list[LogEntry], filename: str = "manual-input.txt") -> ScanSummary:
        """Submit entries in order. Raises RunInProgressError if already running."""
        if self._running:
            raise RunInProgressError()
        if not entries:
            raise ParseEmptyError()

        self._running = True
        try:
            return await self._run(list(entries), filename)
        finally:
            self._running = False

    async def _run(self, entries: list[LogEntry], filename: str) -> ScanSummary:
        result = SubmissionResult(total_entries=len(entries))
        summary = ScanSummary(result=result)
        logger.info("Starting scan of %d entries from %s", len(entries), filename)

        for index, entry in enumerate(entries):
            threats = await self._process_entry(entry, entry_filename(filename, index), summary)
            result.record_processed(threats)
            if self._progress is not None:
                self._progress(result.snapshot())

            if index < len(entries) - 1 and self._settings.inter_entry_delay > 0:
                await self._sleep(self._settings.inter_entry_delay)

        summary.message = summarize(result)
        logger.info(
            "Scan finished: %s (stored=%d, analyzed=%d, abandoned=%d, store_failures=%d)",
            summary.message, summary.stored, summary.analyzed,
            summary.abandoned, summary.store_failures,
        )
        return summary

    async def _process_entry(self, entry: LogEntry, name: str, summary: ScanSummary) -> int:
        content = format_entry(entry)
        try:
            record = await self._store.insert(self._user_id, name, content)
        except Exception as e:
            summary.store_failures += 1
            logger.warning("Failed to store %s, skipping: %s", name, e)
            return 0

        summary.stored += 1
        threats = await self._analyze_with_retry(record)
        if threats is None:
            summary.abandoned += 1
            await self._mark_failed(record)
            return 0

        summary.analyzed += 1
        return threats

    async def _analyze_with_retry(self, record: LogRecord) -> int | None:
        """Return the threat count, or None once the entry is abandoned."""
        max_retries = self._settings.max_retries
        retry_count = 0

        while True:
            retry_after = None
            try:
                outcome = await self._analyzer.analyze(record.id, record.content)
            except RateLimitedError as e:
                retry_after = e.retry_after_seconds
            except AnalyzerUnavailableError as e:
                logger.warning("Analyzer unavailable for %s: %s", record.id, e)
            except AnalyzerError as e:
                logger.warning(
                    "Analysis failed for %s (status=%s), abandoning: %s",
                    record.id, e.status_code, e,
                )
                return None
            except Exception as e:
                logger.warning("Analyzer call for %s raised %s: %s", record.id, type(e).__name__, e)
            else:
                if not outcome.is_rate_limited:
                    return outcome.threats_found
                retry_after = outcome.retry_after_seconds

            retry_count += 1
            if retry_count >= max_retries:
                logger.warning(
                    "Giving up on %s after %d attempts", record.id, retry_count,
                )
                return None

            wait = max(retry_after or 0, self._settings.min_retry_wait) + (
                retry_count * self._settings.retry_step
            )
            logger.info(
                "Rate limited on %s, retry %d/%d in %.1fs",
                record.id, retry_count, max_retries, wait,
            )
            await self._sleep(wait)

    async def _mark_failed(self, record: LogRecord):
        try:
            await self._store.update(record.id, status=LogStatus.FAILED)
        except Exception as e:
            logger.warning("Could not mark %s as failed: %s", record.id, e)
