"""Entry point for the log threat scanner."""

import argparse
import asyncio
import logging
import signal
import sys

from threatscan.analyzer import HttpAnalyzer, NullAnalyzer
from threatscan.config import SubmissionSettings, load_config, validate_interval
from threatscan.driver import BatchSubmissionDriver
from threatscan.errors import ScanError
from threatscan.log_store import InMemoryLogStore, RestLogStore
from threatscan.models import SubmissionResult
from threatscan.scheduler import PeriodicScheduler
from threatscan.simulator import simulate_event_log

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Submit event-log entries for AI threat analysis"
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", help="Event-log export to scan ('-' for stdin)")
    source.add_argument(
        "--simulate", action="store_true", help="Scan a generated sample export"
    )
    parser.add_argument(
        "--auto-scan", action="store_true", help="Re-scan periodically until interrupted"
    )
    parser.add_argument(
        "--interval", type=int, default=None, help="Auto-scan interval in minutes (5-1440)"
    )
    parser.add_argument("--config", default=None, help="Path to YAML config")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Use the in-memory store and skip the remote analyzer",
    )
    parser.add_argument("--user-id", default=None, help="Owner recorded on stored entries")
    parser.add_argument("--log-level", default=None, help="Logging level (default from config)")
    return parser.parse_args(argv)


def build_store(config, dry_run: bool):
    store_cfg = config["store"]
    if dry_run or store_cfg["backend"] == "memory":
        return InMemoryLogStore(max_records=int(store_cfg["max_records"]))
    if store_cfg["backend"] != "rest":
        raise ValueError(f"Unknown store backend: {store_cfg['backend']}")
    return RestLogStore(store_cfg["url"], store_cfg["api_key"], table=store_cfg["table"])


def build_analyzer(config, dry_run: bool):
    if dry_run:
        return NullAnalyzer()
    analyzer_cfg = config["analyzer"]
    return HttpAnalyzer(
        analyzer_cfg["url"],
        api_key=analyzer_cfg["api_key"],
        timeout=float(analyzer_cfg["timeout"]),
    )


def print_progress(result: SubmissionResult):
    print(
        f"[PROGRESS] {result.processed_count}/{result.total_entries} "
        f"({result.progress_fraction:.0%}) | Threats: {result.threats_found}"
    )


def read_input(args) -> tuple[str, str]:
    """Return (raw_text, filename) for the selected source."""
    if args.simulate:
        return simulate_event_log(), "auto-scan.txt"
    if args.file == "-":
        return sys.stdin.read(), "stdin.txt"
    with open(args.file, "r", encoding="utf-8", errors="replace") as f:
        return f.read(), args.file


async def scan_once(driver: BatchSubmissionDriver, args) -> int:
    try:
        raw_text, filename = read_input(args)
        summary = await driver.scan_text(raw_text, filename=filename)
    except (ScanError, OSError) as e:
        print(f"Scan not started: {e}", file=sys.stderr)
        return 1

    print(f"\nScan complete! {summary.message}")
    return 0


async def scan_periodically(driver: BatchSubmissionDriver, args, interval: int) -> int:
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, stop_event.set)

    async def tick():
        await scan_once(driver, args)

    scheduler = PeriodicScheduler()
    scheduler.start(interval, tick)
    print(f"Auto-scan enabled! Will scan every {interval} minutes (Ctrl+C to stop)")
    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down auto-scan...")
        scheduler.shutdown()
    return 0


async def async_main(argv=None) -> int:
    args = parse_args(argv)
    config = load_config(args.config)

    logging.basicConfig(
        level=(args.log_level or config["logging"]["level"]).upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = SubmissionSettings.from_config(config)
        interval = None
        if args.auto_scan:
            minutes = args.interval if args.interval is not None else config["scan"]["interval_minutes"]
            interval = validate_interval(int(minutes))
        store = build_store(config, args.dry_run)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    analyzer = build_analyzer(config, args.dry_run)
    driver = BatchSubmissionDriver(
        store,
        analyzer,
        settings=settings,
        progress=print_progress,
        user_id=args.user_id or config["scan"]["user_id"],
    )

    try:
        if interval is not None:
            return await scan_periodically(driver, args, interval)
        return await scan_once(driver, args)
    finally:
        await analyzer.aclose()
        await store.aclose()


def main():
    sys.exit(asyncio.run(async_main()))


if __name__ == "__main__":
    main()
