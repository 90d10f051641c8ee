import asyncio

from core.errors import ProbeError


class ReadinessWaiter:
    """Wait until the navigator reports document.readyState == 'complete'."""

    def __init__(self, timeout: float = 10.0, poll_interval: float = 0.25):
        self.timeout = timeout
        self.poll_interval = poll_interval

    async def wait_for_document_ready(self, navigator) -> float:
        """Return the seconds waited; raise ProbeError on timeout."""
        elapsed = 0.0
        state = None
        while elapsed < self.timeout:
            state = await navigator.ready_state()
            if state == "complete":
                return elapsed

            await asyncio.sleep(self.poll_interval)
            elapsed += self.poll_interval

        raise ProbeError(
            f"Timeout waiting for document ready after {self.timeout}s (readyState={state})"
        )
