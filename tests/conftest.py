import asyncio
from typing import Callable, Dict, List, Optional

import pytest

from core.errors import DataSourceError, ProbeError
from core.locale_catalog import CountryRecord
from core.session import ProbeSession

SITE_URL = "https://kronospan.test"


class FakeSite:
    """
    Stand-in for the website: ``status_for(url, cookie)`` decides the HTTP
    status of a navigation; ``fail_on`` URLs raise like a browser timeout.
    """

    def __init__(self, status_for: Optional[Callable[[str, Optional[str]], int]] = None):
        self.status_for = status_for or (lambda url, cookie: 403)
        self.fail_on: Dict[str, Exception] = {}
        self.redirects: Dict[str, str] = {}
        self.redirect_for: Optional[Callable[[str], str]] = None
        self.visits: List[str] = []


class FakeNavigator:
    def __init__(self, site: FakeSite):
        self.site = site
        self.jar: Dict[str, str] = {}
        self.requested_url: Optional[str] = None
        self.url = "about:blank"
        self.navigations = 0
        self.ready = "complete"

    async def navigate(self, url: str) -> None:
        self.requested_url = url
        self.site.visits.append(url)
        await asyncio.sleep(0)
        if url in self.site.fail_on:
            raise self.site.fail_on[url]
        self.navigations += 1
        self.url = self.site.redirects.get(url, url)
        if self.site.redirect_for:
            self.url = self.site.redirect_for(self.url)

    async def set_cookie(self, name: str, value: str) -> None:
        self.jar[name] = value

    async def get_cookie(self, name: str) -> Optional[str]:
        return self.jar.get(name)

    async def cookies(self) -> Dict[str, str]:
        return dict(self.jar)

    async def clear_cookies(self) -> None:
        self.jar.clear()

    async def current_url(self) -> str:
        return self.url

    async def ready_state(self) -> str:
        return self.ready

    async def screenshot(self) -> bytes:
        return b"\x89PNG fake"


class FakeObserver:
    def __init__(self, navigator: FakeNavigator):
        self.navigator = navigator
        self._mark: Optional[int] = None

    async def start_capture(self) -> None:
        self._mark = self.navigator.navigations

    async def last_entry_status(self) -> int:
        if self._mark is None or self.navigator.navigations == self._mark:
            raise ProbeError("No navigation response captured")
        return self.navigator.site.status_for(
            self.navigator.requested_url, self.navigator.jar.get("location_visited")
        )


def make_session(site: FakeSite, name: str = "worker-1") -> ProbeSession:
    navigator = FakeNavigator(site)
    return ProbeSession(name, navigator, FakeObserver(navigator))


class FakeBrowserManager:
    def __init__(self, site: FakeSite):
        self.site = site
        self.started = False
        self.closed = False
        self.sessions: List[ProbeSession] = []

    async def start(self):
        self.started = True

    async def new_session(self, name: str) -> ProbeSession:
        session = make_session(self.site, name)
        self.sessions.append(session)
        return session

    async def close(self):
        self.closed = True


class FakeStatusClient:
    def __init__(self, status: int = 404, error: Optional[Exception] = None):
        self.status_code = status
        self.error = error
        self.calls: List[str] = []
        self.closed = False

    async def status(self, url: str, cookies: Optional[Dict[str, str]] = None) -> int:
        self.calls.append(url)
        if self.error:
            raise self.error
        return self.status_code

    async def close(self) -> None:
        self.closed = True


class FakeSource:
    def __init__(self, records=None, error: Optional[Exception] = None):
        self.records = list(records or [])
        self.error = error
        self.calls = 0

    async def fetch_country_locales(self):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.records)


@pytest.fixture
def site():
    return FakeSite()


@pytest.fixture
def three_countries():
    return [
        CountryRecord("US", "United States", "en_US", "United States", ("en-US",)),
        CountryRecord("FR", "France", "fr_FR", "France", ("fr-FR",)),
        CountryRecord("DE", "Germany", "de_DE", "Germany", ("de-DE",)),
    ]


@pytest.fixture
def config(tmp_path):
    return {
        "site_url": SITE_URL,
        "workers": 1,
        "ready_timeout": 0.5,
        "progress_every": 0,
        "debug_screenshots": False,
        "screenshot_dir": str(tmp_path / "screenshots"),
        "report_pass_file": str(tmp_path / "reports" / "PASS.csv"),
        "report_fail_file": str(tmp_path / "reports" / "FAIL.csv"),
        "report_baseline_file": str(tmp_path / "reports" / "BASELINE.csv"),
        "transformed_locales_file": str(tmp_path / "reports" / "transformed.csv"),
    }


@pytest.fixture
def broken_source():
    return FakeSource(error=DataSourceError("database unreachable"))
