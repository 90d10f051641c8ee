import pytest
from aiohttp import BasicAuth

from core.browser_manager import BrowserManager, PlaywrightNavigator, PlaywrightResponseObserver
from core.errors import ProbeError
from core.http_observer import HttpReplayObserver


class FakeRequest:
    def __init__(self, navigation=True, redirected_from=None):
        self.navigation = navigation
        self.redirected_from = redirected_from

    def is_navigation_request(self):
        return self.navigation


class FakeResponse:
    def __init__(self, status, frame, request):
        self.status = status
        self.frame = frame
        self.request = request


class FakeContext:
    def __init__(self):
        self.added = []
        self.jar = []
        self.cleared = False
        self.closed = False
        self.navigation_timeout = None

    async def add_cookies(self, cookies):
        self.added.extend(cookies)
        self.jar.extend(cookies)

    async def cookies(self, url):
        return list(self.jar)

    async def clear_cookies(self):
        self.cleared = True
        self.jar = []

    def set_default_navigation_timeout(self, timeout):
        self.navigation_timeout = timeout

    async def new_page(self):
        return FakePage(self)

    async def close(self):
        self.closed = True


class FakePage:
    def __init__(self, context=None):
        self.context = context or FakeContext()
        self.main_frame = object()
        self.handlers = {}

    def on(self, event, handler):
        self.handlers[event] = handler

    def emit(self, response):
        self.handlers["response"](response)


class FakeBrowser:
    def __init__(self):
        self.context_kwargs = []

    async def new_context(self, **kwargs):
        self.context_kwargs.append(kwargs)
        return FakeContext()


# ---------- response observer ----------

@pytest.mark.asyncio
async def test_redirect_chain_records_first_hop():
    page = FakePage()
    observer = PlaywrightResponseObserver(page)
    await observer.start_capture()

    first = FakeRequest()
    page.emit(FakeResponse(302, page.main_frame, first))
    page.emit(FakeResponse(200, page.main_frame, FakeRequest(redirected_from=first)))

    assert observer.entries == [302]
    assert await observer.last_entry_status() == 302


@pytest.mark.asyncio
async def test_subframe_and_subresource_responses_are_ignored():
    page = FakePage()
    observer = PlaywrightResponseObserver(page)
    await observer.start_capture()

    page.emit(FakeResponse(403, page.main_frame, FakeRequest()))
    page.emit(FakeResponse(200, object(), FakeRequest()))
    page.emit(FakeResponse(200, page.main_frame, FakeRequest(navigation=False)))

    assert await observer.last_entry_status() == 403


@pytest.mark.asyncio
async def test_responses_before_capture_are_ignored():
    page = FakePage()
    observer = PlaywrightResponseObserver(page)

    page.emit(FakeResponse(200, page.main_frame, FakeRequest()))
    await observer.start_capture()

    with pytest.raises(ProbeError):
        await observer.last_entry_status()


@pytest.mark.asyncio
async def test_start_capture_forgets_previous_navigation():
    page = FakePage()
    observer = PlaywrightResponseObserver(page)
    await observer.start_capture()
    page.emit(FakeResponse(200, page.main_frame, FakeRequest()))

    await observer.start_capture()
    page.emit(FakeResponse(404, page.main_frame, FakeRequest()))

    assert observer.entries == [404]


# ---------- navigator ----------

@pytest.mark.asyncio
async def test_cookie_is_host_only_on_site_root():
    page = FakePage()
    navigator = PlaywrightNavigator(page, "https://stage.kronospan.com/")

    await navigator.set_cookie("location_visited", "fr_FR/")

    assert page.context.added == [{
        "name": "location_visited",
        "value": "fr_FR/",
        "domain": "stage.kronospan.com",
        "path": "/",
    }]
    assert await navigator.get_cookie("location_visited") == "fr_FR/"
    assert await navigator.get_cookie("missing") is None
    assert await navigator.cookies() == {"location_visited": "fr_FR/"}

    await navigator.clear_cookies()
    assert await navigator.cookies() == {}


# ---------- browser manager ----------

def _stage_config(**overrides):
    config = {
        "site_url": "https://stage.kronospan.com",
        "http_credentials": {"username": "stage", "password": "s3cret"},
        "ignore_https_errors": True,
        "navigation_timeout": 12000,
        "http_timeout": 5,
    }
    config.update(overrides)
    return config


@pytest.mark.asyncio
async def test_http_observer_session_carries_stage_credentials():
    manager = BrowserManager(_stage_config(observer="http"))
    manager.browser = FakeBrowser()

    session = await manager.new_session("worker-1")

    assert isinstance(session.observer, HttpReplayObserver)
    assert session.observer.client.auth == BasicAuth("stage", "s3cret")
    assert session.observer.client.ssl is False
    assert manager.browser.context_kwargs[0]["http_credentials"] == {"username": "stage", "password": "s3cret"}
    await session.close()
    assert session.navigator.page.context.closed


@pytest.mark.asyncio
async def test_default_session_uses_response_observer():
    manager = BrowserManager(_stage_config())
    manager.browser = FakeBrowser()

    session = await manager.new_session("worker-1")

    assert isinstance(session.observer, PlaywrightResponseObserver)
    assert session.navigator.page.context.navigation_timeout == 12000
    await session.close()
