import asyncio
from typing import Dict, Optional

import aiohttp
from aiohttp import BasicAuth, ClientTimeout

from core.errors import ProbeError

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126 Safari/537.36"
)


class HeadStatusClient:
    """
    HEAD requests that report the first-hop status (redirects not followed).

    Carries the same stage basic auth and TLS leniency as the browser context,
    and never keeps cookies between requests: each call sends exactly the
    cookies it is given.
    """

    def __init__(
        self,
        timeout: int = 15,
        credentials: Optional[Dict[str, str]] = None,
        ignore_https_errors: bool = False,
    ):
        self.timeout = timeout
        self.auth = BasicAuth(credentials["username"], credentials["password"]) if credentials else None
        self.ssl = not ignore_https_errors
        self._session: Optional[aiohttp.ClientSession] = None

    @classmethod
    def from_config(cls, config: Dict) -> "HeadStatusClient":
        return cls(
            timeout=config.get("http_timeout", 15),
            credentials=config.get("http_credentials"),
            ignore_https_errors=config.get("ignore_https_errors", True),
        )

    async def _client(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"User-Agent": USER_AGENT, "Accept": "text/html,*/*;q=0.8"},
                timeout=ClientTimeout(total=self.timeout),
                cookie_jar=aiohttp.DummyCookieJar(),
            )
        return self._session

    async def status(self, url: str, cookies: Optional[Dict[str, str]] = None) -> int:
        headers = {}
        if cookies:
            headers["Cookie"] = "; ".join(f"{name}={value}" for name, value in cookies.items())

        session = await self._client()
        try:
            async with session.head(
                url, headers=headers, auth=self.auth, ssl=self.ssl, allow_redirects=False
            ) as resp:
                return resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProbeError(f"Failed to get response code for {url}: {e}") from e

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


class HttpReplayObserver:
    """
    Status source that replays the navigator's last request over HTTP.

    Sends a HEAD for the last URL the navigator was asked to open, carrying
    every cookie the navigator holds for the site, without following
    redirects. Useful where the browser hides redirect hops (e.g. behind a
    service worker).
    """

    def __init__(self, navigator, client: Optional[HeadStatusClient] = None):
        self.navigator = navigator
        self.client = client or HeadStatusClient()
        self._capture_from: Optional[str] = None

    async def start_capture(self) -> None:
        self._capture_from = self.navigator.requested_url

    async def last_entry_status(self) -> int:
        url = self.navigator.requested_url
        if not url or url == self._capture_from:
            raise ProbeError("No navigation since capture started")

        cookies = await self.navigator.cookies()
        return await self.client.status(url, cookies)

    async def close(self) -> None:
        await self.client.close()
