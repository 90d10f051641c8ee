from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from playwright.async_api import async_playwright, Browser, Page, Response

from core.errors import ProbeError
from core.http_observer import HeadStatusClient, HttpReplayObserver
from core.session import ProbeSession
from utils.logger import get_logger

logger = get_logger("browser")


class PlaywrightNavigator:
    """Navigator backed by a single Playwright page."""

    def __init__(self, page: Page, site_url: str, timeout_ms: int = 30000):
        self.page = page
        self.site_url = site_url
        self.timeout_ms = timeout_ms
        self.requested_url: Optional[str] = None
        self._cookie_domain = urlparse(site_url).hostname or ""

    async def navigate(self, url: str) -> None:
        self.requested_url = url
        await self.page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)

    async def set_cookie(self, name: str, value: str) -> None:
        # Host-only cookie on the site root, like a cookie the site set itself
        await self.page.context.add_cookies(
            [{"name": name, "value": value, "domain": self._cookie_domain, "path": "/"}]
        )

    async def get_cookie(self, name: str) -> Optional[str]:
        for cookie in await self.page.context.cookies(self.site_url):
            if cookie.get("name") == name:
                return cookie.get("value")
        return None

    async def cookies(self) -> Dict[str, str]:
        return {c["name"]: c["value"] for c in await self.page.context.cookies(self.site_url)}

    async def clear_cookies(self) -> None:
        await self.page.context.clear_cookies()

    async def current_url(self) -> str:
        return self.page.url

    async def ready_state(self) -> str:
        return await self.page.evaluate("() => document.readyState")

    async def screenshot(self) -> bytes:
        return await self.page.screenshot(full_page=True)


class PlaywrightResponseObserver:
    """
    Records main-frame navigation responses while capturing.

    Only the first hop of a redirect chain is kept, so the last entry is the
    status the server gave for the URL that was navigated to (a 30x when the
    site redirects, not the status of the page it redirected to).
    """

    def __init__(self, page: Page):
        self.page = page
        self.entries: List[int] = []
        self._capturing = False
        page.on("response", self._on_response)

    def _on_response(self, response: Response) -> None:
        if not self._capturing:
            return
        request = response.request
        if not request.is_navigation_request():
            return
        if response.frame != self.page.main_frame:
            return
        if request.redirected_from is not None:
            return
        self.entries.append(response.status)

    async def start_capture(self) -> None:
        self.entries = []
        self._capturing = True

    async def last_entry_status(self) -> int:
        if not self.entries:
            raise ProbeError("No navigation response captured")
        return self.entries[-1]


class BrowserManager:
    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.browser: Optional[Browser] = None
        self.playwright = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def start(self):
        """Initialize Playwright and the browser."""
        if self.browser:
            return
        self.playwright = await async_playwright().start()

        launch_options: Dict[str, Any] = {
            "headless": self.config.get("headless", True),
        }
        self.browser = await self.playwright.chromium.launch(**launch_options)
        logger.info("🛫 Browser launched (headless = %s)", launch_options["headless"])

    def _context_kwargs(self) -> Dict[str, Any]:
        context_kwargs: Dict[str, Any] = {
            "user_agent": (
                "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
                "AppleWebKit/537.36 (KHTML, like Gecko) "
                "Chrome/126 Safari/537.36"
            ),
            "viewport": self.config.get("viewport", {"width": 1280, "height": 720}),
            "ignore_https_errors": self.config.get("ignore_https_errors", True),
        }

        # ---- Optional HTTP Basic Auth for stage ----
        credentials = self.config.get("http_credentials")
        if credentials:
            context_kwargs["http_credentials"] = credentials
            logger.info("🔐 HTTP basic auth enabled for %s", self.config.get("site_url"))

        return context_kwargs

    async def new_session(self, name: str) -> ProbeSession:
        """Fresh browser context + page + observer, for one worker only."""
        if not self.browser:
            await self.start()

        context = await self.browser.new_context(**self._context_kwargs())
        context.set_default_navigation_timeout(self.config.get("navigation_timeout", 30000))
        page = await context.new_page()

        site_url = self.config["site_url"]
        navigator = PlaywrightNavigator(page, site_url, self.config.get("navigation_timeout", 30000))
        closers = [context.close]

        if self.config.get("observer", "browser") == "http":
            observer = HttpReplayObserver(navigator, HeadStatusClient.from_config(self.config))
            closers.append(observer.close)
        else:
            observer = PlaywrightResponseObserver(page)

        logger.debug("Opened session %s (observer=%s)", name, type(observer).__name__)
        return ProbeSession(name, navigator, observer, closers)

    async def close(self):
        """Close browser and cleanup."""
        if self.browser:
            await self.browser.close()
            self.browser = None
        if self.playwright:
            await self.playwright.stop()
            self.playwright = None
