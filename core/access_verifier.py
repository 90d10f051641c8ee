import asyncio
import random
import re
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

from core.errors import PolicyViolation, ProbeError
from core.http_observer import HeadStatusClient
from core.locale_catalog import LocaleCatalog
from core.probe import (
    COOKIE_NAME,
    BaselineOutcome,
    FallbackOutcome,
    LocaleUrlOutcome,
    ProbeOutcome,
    ProbePair,
    ProbeState,
    canonical_url,
    cookie_value_for,
)
from core.readiness_waiter import ReadinessWaiter
from core.session import ProbeSession
from utils.logger import get_logger

logger = get_logger("verifier")

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9_.-]+")
INVALID_PATH_CHARACTERS = (
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
    "!@#$%^&*()-_=+{}[]<>?/\\|~`.,;:'\""
)


class AccessVerifier:
    """
    Drives mismatched-cookie probes through one or more probe sessions.

    Per probe: reset (site root + document ready) -> inject the
    ``location_visited`` cookie -> navigate to the target locale URL ->
    read the captured status -> classify. A 200 is a FAIL, any other status
    a PASS, and any exception along the way an ERROR with status 0.
    """

    def __init__(self, config: Dict[str, Any], catalog: LocaleCatalog):
        self.config = config
        self.catalog = catalog
        self.site_url = config["site_url"]
        self.waiter = ReadinessWaiter(timeout=float(config.get("ready_timeout", 10.0)))
        self.screenshot_dir = Path(config.get("screenshot_dir", "output/screenshots"))
        self.debug_screenshots = bool(config.get("debug_screenshots", False))
        self._rng = random.Random(config.get("invalid_path_seed"))

    # ------------- Single probe -------------

    async def verify(self, session: ProbeSession, pair: ProbePair) -> ProbeOutcome:
        navigator = session.navigator
        observer = session.observer
        target_url = pair.target_url(self.site_url)
        country = self.catalog.country_of(pair.target_locale) or "N/A"
        start = time.monotonic()
        final_url = ""

        try:
            await self._reset(navigator)

            # Inject
            await navigator.set_cookie(COOKIE_NAME, pair.cookie_value)

            # Probe
            await observer.start_capture()
            await navigator.navigate(target_url)

            # Observe
            status = await observer.last_entry_status()
            final_url = await navigator.current_url()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            detail = f"{target_url} with cookie [{pair.cookie_value}] -> {e}"
            logger.error("❌ ERROR: %s", detail)
            outcome = ProbeOutcome(
                pair=pair,
                http_status=0,
                classification=ProbeState.ERROR,
                detail=detail,
                target_url=target_url,
                country=country,
                final_url=final_url,
                elapsed=time.monotonic() - start,
            )
            await self._capture_screenshot(session, outcome)
            return outcome

        logger.info("🌐 [%s] with cookie [%s] -> HTTP: %d", target_url, pair.cookie_value, status)

        if status == 200:
            detail = str(PolicyViolation(target_url, pair.cookie_value, status))
            logger.warning("   ❌ FAIL: %s", detail)
            state = ProbeState.FAILED
        else:
            detail = f"Blocked as expected (HTTP {status}, final URL {final_url})"
            logger.debug("   ✅ PASS: %s", detail)
            state = ProbeState.PASSED

        outcome = ProbeOutcome(
            pair=pair,
            http_status=status,
            classification=state,
            detail=detail,
            target_url=target_url,
            country=country,
            final_url=final_url,
            elapsed=time.monotonic() - start,
        )
        if state is ProbeState.FAILED:
            await self._capture_screenshot(session, outcome)
        return outcome

    # ------------- Matching cookie (diagonal) -------------

    async def verify_baseline(self, session: ProbeSession, locale: str) -> BaselineOutcome:
        """
        Open ``locale`` with a matching cookie: the URL must keep the locale
        and the cookie must read back unchanged.
        """
        navigator = session.navigator
        url = canonical_url(self.site_url, locale)
        expected = cookie_value_for(locale)
        country = self.catalog.country_of(locale) or "N/A"
        actual = None
        url_match = cookie_match = False

        try:
            await self._reset(navigator)
            await navigator.set_cookie(COOKIE_NAME, expected)
            await navigator.navigate(url)

            actual = await navigator.get_cookie(COOKIE_NAME)
            url_match = locale in await navigator.current_url()
            cookie_match = actual == expected
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("❌ ERROR for locale %s: %s", locale, e)
            return BaselineOutcome(
                locale=locale, country=country, url=url, expected_cookie=expected,
                actual_cookie=actual, url_match=False, cookie_match=False,
                classification=ProbeState.ERROR, detail=str(e),
            )

        passed = url_match and cookie_match
        problems = []
        if not url_match:
            problems.append(f"URL does not contain expected locale: {locale}")
        if not cookie_match:
            problems.append(f"Cookie value mismatch: expected {expected}, got {actual}")

        logger.info(
            "   └─ %-10s URL Match: %s  Cookie Match: %s -> %s",
            locale, "✔" if url_match else "✘", "✔" if cookie_match else "✘",
            "✅ PASS" if passed else "❌ FAIL",
        )
        return BaselineOutcome(
            locale=locale, country=country, url=url, expected_cookie=expected,
            actual_cookie=actual, url_match=url_match, cookie_match=cookie_match,
            classification=ProbeState.PASSED if passed else ProbeState.FAILED,
            detail="; ".join(problems),
        )

    # ------------- Matrix execution -------------

    async def run(
        self,
        pairs: Sequence[ProbePair],
        sessions: Sequence[ProbeSession],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[ProbeOutcome]:
        """
        Verify every pair exactly once.

        One session runs the pairs strictly in order. Several sessions each
        get a worker that owns its session; outcomes are re-sorted into
        catalog order afterwards. ``cancel_event`` is honoured between probes
        only, and the outcomes completed so far are returned.
        """
        if not sessions:
            raise ValueError("At least one probe session is required")

        cancel_event = cancel_event or asyncio.Event()
        total = len(pairs)

        if len(sessions) == 1:
            outcomes: List[ProbeOutcome] = []
            for idx, pair in enumerate(pairs, start=1):
                if cancel_event.is_set():
                    logger.warning("⏹  Cancelled after %d/%d probes", len(outcomes), total)
                    break
                outcomes.append(await self.verify(sessions[0], pair))
                self._log_progress(idx, total)
            return outcomes

        queue: asyncio.Queue = asyncio.Queue()
        for pair in pairs:
            queue.put_nowait(pair)

        collected: List[ProbeOutcome] = []

        async def worker(session: ProbeSession) -> None:
            while not cancel_event.is_set():
                try:
                    pair = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                collected.append(await self.verify(session, pair))
                self._log_progress(len(collected), total)

        await asyncio.gather(*(worker(s) for s in sessions))

        if cancel_event.is_set():
            logger.warning("⏹  Cancelled after %d/%d probes", len(collected), total)

        return self.sort_outcomes(collected)

    def sort_outcomes(self, outcomes: Sequence[ProbeOutcome]) -> List[ProbeOutcome]:
        """Catalog order: target first, then cookie (same as sequential order)."""
        return sorted(
            outcomes,
            key=lambda o: (
                self.catalog.index_of(o.pair.target_locale),
                self.catalog.index_of(o.pair.cookie_locale),
            ),
        )

    async def run_baseline(
        self,
        session: ProbeSession,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[BaselineOutcome]:
        results: List[BaselineOutcome] = []
        for locale in self.catalog.locales():
            if cancel_event is not None and cancel_event.is_set():
                break
            results.append(await self.verify_baseline(session, locale))
        return results

    # ------------- Locale URLs without a cookie -------------

    async def verify_locale_url(self, session: ProbeSession, locale: str) -> LocaleUrlOutcome:
        """Open ``locale`` with a clean cookie jar; the final URL must keep it."""
        navigator = session.navigator
        url = canonical_url(self.site_url, locale)
        country = self.catalog.country_of(locale) or "N/A"
        final_url = ""

        try:
            await navigator.clear_cookies()
            await navigator.navigate(url)
            final_url = await navigator.current_url()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("❌ ERROR loading %s: %s", url, e)
            return LocaleUrlOutcome(
                locale=locale, country=country, url=url, final_url=final_url,
                classification=ProbeState.ERROR, detail=str(e),
            )

        if locale in final_url:
            logger.info("🔗 %s -> %s ✅", url, final_url)
            return LocaleUrlOutcome(locale, country, url, final_url, ProbeState.PASSED)

        detail = f"Expected final URL to contain locale: {locale}"
        logger.warning("🔗 %s -> %s ❌ %s", url, final_url, detail)
        return LocaleUrlOutcome(locale, country, url, final_url, ProbeState.FAILED, detail)

    async def run_locale_urls(
        self,
        session: ProbeSession,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[LocaleUrlOutcome]:
        results: List[LocaleUrlOutcome] = []
        for locale in self.catalog.locales():
            if cancel_event is not None and cancel_event.is_set():
                break
            results.append(await self.verify_locale_url(session, locale))
        return results

    # ------------- Junk paths under a valid locale -------------

    def invalid_suffixes(self, count: int) -> List[str]:
        """Random junk path segments, percent-encoded so each stays one segment."""
        suffixes = []
        for _ in range(count):
            length = self._rng.randint(3, 11)
            raw = "".join(self._rng.choice(INVALID_PATH_CHARACTERS) for _ in range(length))
            suffixes.append(quote(raw, safe=""))
        return suffixes

    async def verify_invalid_path(
        self,
        session: ProbeSession,
        status_client: HeadStatusClient,
        locale: str,
        suffix: str,
    ) -> FallbackOutcome:
        """
        Open ``/<locale>/<suffix>``: PASS when the browser ends on a ``/404``
        URL or anywhere that no longer contains the junk path. The HEAD status
        of the junk URL is recorded for the report only.
        """
        navigator = session.navigator
        invalid_path = f"{locale}/{suffix}"
        url = f"{self.site_url.rstrip('/')}/{invalid_path}"
        country = self.catalog.country_of(locale) or "N/A"
        final_url = ""
        status = -1

        try:
            await navigator.clear_cookies()
            await navigator.navigate(url)
            final_url = await navigator.current_url()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("❌ ERROR loading %s: %s", url, e)
            return FallbackOutcome(
                locale=locale, country=country, invalid_path=invalid_path, url=url,
                final_url=final_url, http_status=status,
                classification=ProbeState.ERROR, detail=str(e),
            )

        try:
            status = await status_client.status(url, await navigator.cookies())
        except ProbeError as e:
            logger.warning("⚠️ %s", e)

        if "/404" in final_url or invalid_path not in final_url:
            logger.info("🔗 %s -> %s (HTTP %d) ✅ fallback", url, final_url, status)
            state, detail = ProbeState.PASSED, ""
        else:
            detail = f"Junk path served as a page: {final_url}"
            logger.warning("🔗 %s -> %s (HTTP %d) ❌ %s", url, final_url, status, detail)
            state = ProbeState.FAILED

        return FallbackOutcome(
            locale=locale, country=country, invalid_path=invalid_path, url=url,
            final_url=final_url, http_status=status, classification=state, detail=detail,
        )

    async def run_invalid_paths(
        self,
        session: ProbeSession,
        status_client: HeadStatusClient,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[FallbackOutcome]:
        per_locale = int(self.config.get("invalid_paths_per_locale", 10))
        results: List[FallbackOutcome] = []
        for locale in self.catalog.locales():
            for suffix in self.invalid_suffixes(per_locale):
                if cancel_event is not None and cancel_event.is_set():
                    return results
                results.append(await self.verify_invalid_path(session, status_client, locale, suffix))
        return results

    # ------------- Helpers -------------

    async def _reset(self, navigator) -> None:
        """Site root, then wait until the document has settled."""
        await navigator.navigate(self.site_url)
        await self.waiter.wait_for_document_ready(navigator)

    def _log_progress(self, done: int, total: int) -> None:
        every = int(self.config.get("progress_every", 50) or 0)
        if every and (done % every == 0 or done == total):
            logger.info("▶️  %d/%d probes done, %d left", done, total, total - done)

    async def _capture_screenshot(self, session: ProbeSession, outcome: ProbeOutcome) -> None:
        if not self.debug_screenshots:
            return
        name = _UNSAFE_FILENAME.sub(
            "_", f"{outcome.classification.value}_{outcome.pair.target_locale}__{outcome.pair.cookie_locale}"
        )
        path = self.screenshot_dir / f"{name}_{time.strftime('%Y%m%d_%H%M%S')}.png"
        try:
            data = await session.navigator.screenshot()
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
            logger.info("🖼 Screenshot saved: %s", path)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("⚠️ Could not save screenshot: %s", e)
