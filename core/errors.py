class LocaleMatrixError(Exception):
    """Base class for every error raised by the locale matrix runner."""


class DataSourceError(LocaleMatrixError):
    """Country/locale records could not be loaded. Fatal for the run."""


class ProbeError(LocaleMatrixError):
    """A single probe could not complete. Recorded as an ERROR outcome."""


class PolicyViolation(LocaleMatrixError):
    """
    The site served a locale page under a mismatched cookie.

    Never raised by the verifier; its message is used as the detail of a
    FAILED outcome so reports and exceptions share one wording.
    """

    def __init__(self, target_url: str, cookie_value: str, status: int):
        self.target_url = target_url
        self.cookie_value = cookie_value
        self.status = status
        super().__init__(
            f"URL {target_url} loaded ({status}) with INVALID cookie: {cookie_value}"
        )


class ReportWriteError(LocaleMatrixError):
    """A report file could not be written. Downgraded to a warning."""
