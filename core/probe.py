from dataclasses import dataclass
from enum import Enum
from typing import Optional

COOKIE_NAME = "location_visited"
EXPECTED_CONDITION = "Not 200"


class ProbeState(Enum):
    PASSED = "PASS"
    FAILED = "FAIL"
    ERROR = "ERROR"


def canonical_url(site_url: str, locale: str) -> str:
    """``https://<host>/<locale>/`` - the trailing slash is part of the contract."""
    return f"{site_url.rstrip('/')}/{locale}/"


def cookie_value_for(locale: str) -> str:
    return f"{locale}/"


@dataclass(frozen=True)
class ProbePair:
    target_locale: str
    cookie_locale: str

    def __post_init__(self):
        if self.target_locale == self.cookie_locale:
            raise ValueError(f"Self-pair is not a probe: {self.target_locale}")

    @property
    def cookie_value(self) -> str:
        return cookie_value_for(self.cookie_locale)

    def target_url(self, site_url: str) -> str:
        return canonical_url(site_url, self.target_locale)

    def __str__(self) -> str:
        return f"{self.target_locale} <- {self.cookie_value}"


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of one probe. Built once by the verifier, never mutated."""

    pair: ProbePair
    http_status: int
    classification: ProbeState
    detail: str
    target_url: str
    country: str = "N/A"
    final_url: str = ""
    elapsed: float = 0.0

    @property
    def cookie_value(self) -> str:
        return self.pair.cookie_value

    def as_row(self) -> dict:
        return {
            "Target URL": self.target_url,
            "Cookie": self.cookie_value,
            "Country": self.country,
            "HTTP Code": str(self.http_status),
            "Expected": EXPECTED_CONDITION,
            "Result": self.classification.value,
        }


@dataclass(frozen=True)
class BaselineOutcome:
    """Matching-cookie check: the site must keep the locale and the cookie."""

    locale: str
    country: str
    url: str
    expected_cookie: str
    actual_cookie: Optional[str]
    url_match: bool
    cookie_match: bool
    classification: ProbeState
    detail: str = ""

    def as_row(self) -> dict:
        return {
            "Country": self.country,
            "Locale": self.locale,
            "URL": self.url,
            "Expected Cookie": self.expected_cookie,
            "Actual Cookie": self.actual_cookie if self.actual_cookie is not None else "null",
            "URL Match": "yes" if self.url_match else "no",
            "Cookie Match": "yes" if self.cookie_match else "no",
            "Result": self.classification.value,
        }


@dataclass(frozen=True)
class LocaleUrlOutcome:
    """A canonical locale URL opened without a cookie must stay on that locale."""

    locale: str
    country: str
    url: str
    final_url: str
    classification: ProbeState
    detail: str = ""

    def as_row(self) -> dict:
        return {
            "Country Title": self.country,
            "Locale": self.locale,
            "Checked URL": self.url,
            "Final URL": self.final_url,
            "Result": self.classification.value,
            "Error Message": self.detail,
        }


@dataclass(frozen=True)
class FallbackOutcome:
    """
    A junk path under a valid locale must land on the 404 page or be
    redirected away. ``http_status`` is -1 when the HEAD read failed.
    """

    locale: str
    country: str
    invalid_path: str
    url: str
    final_url: str
    http_status: int
    classification: ProbeState
    detail: str = ""

    def as_row(self) -> dict:
        return {
            "Country": self.country,
            "Invalid Locale": self.invalid_path,
            "Tested URL": self.url,
            "Final URL": self.final_url,
            "Response Code": str(self.http_status),
            "Result": self.classification.value,
            "Error Message": self.detail,
        }
