# main.py
import argparse
import asyncio
import signal
import sys

from config.base_config import CONFIG
from core.errors import DataSourceError
from core.framework_manager import MatrixRunner
from core.probe import ProbeState
from utils.helpers import apply_overrides, format_duration
from utils.logger import set_console_level

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_SOURCE_ERROR = 2
EXIT_CANCELLED = 130


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Locale cookie matrix verifier")
    p.add_argument("--site-url", help="override the site root, e.g. https://stage.kronospan.com")
    p.add_argument("--db", dest="db_path", help="SQLite database with countries/languages")
    p.add_argument("--countries-json", dest="countries_file", help="JSON country list instead of the database")
    p.add_argument("--workers", type=int, help="independent browser sessions (default 1, sequential)")
    p.add_argument("--observer", choices=["browser", "http"], help="where probe status codes come from")
    p.add_argument("--headed", action="store_true", help="show the browser window")
    p.add_argument("--baseline", action="store_true", help="also check each locale with its own cookie")
    p.add_argument("--locale-urls", action="store_true", help="also check each locale URL opens on its locale")
    p.add_argument("--invalid-paths", action="store_true", help="also check junk paths under each locale fall back")
    p.add_argument("--screenshots", action="store_true", help="screenshot FAIL / ERROR probes")
    p.add_argument("--log-level", help="console log level")
    return p.parse_args(argv)


def build_config(args) -> dict:
    source = None
    if args.countries_file:
        source = "json"
    elif args.db_path:
        source = "sqlite"

    return apply_overrides(
        CONFIG,
        site_url=args.site_url,
        db_path=args.db_path,
        countries_file=args.countries_file,
        source=source,
        workers=args.workers,
        observer=args.observer,
        headless=False if args.headed else None,
        run_baseline=True if args.baseline else None,
        run_locale_urls=True if args.locale_urls else None,
        run_invalid_paths=True if args.invalid_paths else None,
        debug_screenshots=True if args.screenshots else None,
        log_level=args.log_level,
    )


def print_summary(report) -> None:
    print("\n" + "=" * 50)
    print("📊 LOCALE COOKIE MATRIX SUMMARY")
    print(f"Total probes: {report.total}")
    print(f"✅ Passed: {report.counts[ProbeState.PASSED]}")
    print(f"❌ Failed: {report.counts[ProbeState.FAILED]}")
    print(f"💥 Errors: {report.counts[ProbeState.ERROR]}")
    if report.baseline:
        print(f"🔁 Baseline failures: {report.baseline_failed_count}/{len(report.baseline)}")
    if report.locale_urls:
        print(f"🔗 Locale URL failures: {report.locale_url_failed_count}/{len(report.locale_urls)}")
    if report.fallbacks:
        print(f"🧭 Fallback failures: {report.fallback_failed_count}/{len(report.fallbacks)}")
    print(f"⏳ Duration: {format_duration(report.duration)}")
    if report.cancelled:
        print("⏹  Run was cancelled, reports are partial")

    failures = report.failure_details()
    if failures:
        print("\n🔍 Failed / Error probes:")
        for line in failures:
            print(f"  • {line}")

    checks = report.check_failure_details()
    if checks:
        print("\n⚠️ Additional locale checks (not part of the verdict):")
        for line in checks:
            print(f"  • {line}")

    print()  # final newline


async def main(argv=None) -> int:
    args = parse_args(argv)
    config = build_config(args)
    set_console_level(config.get("log_level", "INFO"))

    print("🚀 Locale Cookie Matrix")
    print(f"Site: {config['site_url']}")
    print(f"Source: {config['source']}")
    print(f"Workers: {config.get('workers', 1)}")
    print(f"Headless: {config.get('headless', True)}")
    print("-" * 50)

    runner = MatrixRunner(config)

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, runner.cancel)
    except (NotImplementedError, RuntimeError):
        pass  # e.g. Windows: Ctrl+C aborts instead of draining

    try:
        report = await runner.run()
    except DataSourceError as e:
        print(f"❌ Could not load country locales: {e}")
        return EXIT_SOURCE_ERROR

    print_summary(report)

    if not report.succeeded:
        return EXIT_FAILURES
    if report.cancelled:
        return EXIT_CANCELLED
    return EXIT_OK


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
