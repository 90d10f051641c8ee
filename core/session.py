from typing import Awaitable, Callable, Dict, List, Optional, Protocol


class Navigator(Protocol):
    """Browser capabilities a probe needs."""

    async def navigate(self, url: str) -> None: ...

    async def set_cookie(self, name: str, value: str) -> None: ...

    async def get_cookie(self, name: str) -> Optional[str]: ...

    async def cookies(self) -> Dict[str, str]: ...

    async def clear_cookies(self) -> None: ...

    async def current_url(self) -> str: ...

    async def ready_state(self) -> str: ...

    async def screenshot(self) -> bytes: ...


class NetworkObserver(Protocol):
    """Status of the last navigation made since ``start_capture``."""

    async def start_capture(self) -> None: ...

    async def last_entry_status(self) -> int: ...


class ProbeSession:
    """
    One navigator + its observer, owned by a single worker for its lifetime.

    ``closers`` run in reverse order on ``close()``.
    """

    def __init__(
        self,
        name: str,
        navigator: Navigator,
        observer: NetworkObserver,
        closers: Optional[List[Callable[[], Awaitable[None]]]] = None,
    ):
        self.name = name
        self.navigator = navigator
        self.observer = observer
        self._closers = list(closers or [])

    async def close(self) -> None:
        while self._closers:
            closer = self._closers.pop()
            await closer()

    def __repr__(self) -> str:
        return f"ProbeSession({self.name!r})"
