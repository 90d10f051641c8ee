from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from core.probe import BaselineOutcome, FallbackOutcome, LocaleUrlOutcome, ProbeOutcome, ProbeState

REPORT_COLUMNS = ["Target URL", "Cookie", "Country", "HTTP Code", "Expected", "Result"]
BASELINE_COLUMNS = [
    "Country", "Locale", "URL", "Expected Cookie", "Actual Cookie", "URL Match", "Cookie Match", "Result",
]
LOCALE_URL_COLUMNS = ["Country Title", "Locale", "Checked URL", "Final URL", "Result", "Error Message"]
FALLBACK_COLUMNS = [
    "Country", "Invalid Locale", "Tested URL", "Final URL", "Response Code", "Result", "Error Message",
]


@dataclass(frozen=True)
class Report:
    """
    Folded run result. The verdict (``succeeded``) is the mismatched-cookie
    matrix alone; the optional baseline, locale URL and fallback checks are
    reported next to it without changing it.
    """

    passed: Tuple[ProbeOutcome, ...]
    failed: Tuple[ProbeOutcome, ...]
    counts: Dict[ProbeState, int]
    cancelled: bool = False
    duration: float = 0.0
    baseline: Tuple[BaselineOutcome, ...] = field(default_factory=tuple)
    locale_urls: Tuple[LocaleUrlOutcome, ...] = field(default_factory=tuple)
    fallbacks: Tuple[FallbackOutcome, ...] = field(default_factory=tuple)

    @property
    def total(self) -> int:
        return len(self.passed) + len(self.failed)

    @property
    def failed_count(self) -> int:
        return self.counts[ProbeState.FAILED] + self.counts[ProbeState.ERROR]

    @property
    def baseline_failed_count(self) -> int:
        return _not_passed(self.baseline)

    @property
    def locale_url_failed_count(self) -> int:
        return _not_passed(self.locale_urls)

    @property
    def fallback_failed_count(self) -> int:
        return _not_passed(self.fallbacks)

    @property
    def checks_failed_count(self) -> int:
        return self.baseline_failed_count + self.locale_url_failed_count + self.fallback_failed_count

    @property
    def succeeded(self) -> bool:
        return self.failed_count == 0

    def pass_rows(self) -> List[Dict[str, str]]:
        return [o.as_row() for o in self.passed]

    def fail_rows(self) -> List[Dict[str, str]]:
        return [o.as_row() for o in self.failed]

    def baseline_rows(self) -> List[Dict[str, str]]:
        return [b.as_row() for b in self.baseline]

    def locale_url_rows(self) -> List[Dict[str, str]]:
        return [u.as_row() for u in self.locale_urls]

    def fallback_rows(self) -> List[Dict[str, str]]:
        return [f.as_row() for f in self.fallbacks]

    def failure_details(self) -> List[str]:
        """One reproducible line per FAIL/ERROR probe."""
        return [
            f"{o.classification.value}: {o.target_url} cookie={o.cookie_value} "
            f"expected=Not 200 actual={o.http_status} ({o.detail})"
            for o in self.failed
        ]

    def check_failure_details(self) -> List[str]:
        """Non-PASS lines from the optional checks."""
        lines = []
        for b in self.baseline:
            if b.classification is not ProbeState.PASSED:
                lines.append(f"BASELINE {b.classification.value}: {b.url} ({b.detail})")
        for u in self.locale_urls:
            if u.classification is not ProbeState.PASSED:
                lines.append(f"LOCALE URL {u.classification.value}: {u.url} -> {u.final_url} ({u.detail})")
        for f in self.fallbacks:
            if f.classification is not ProbeState.PASSED:
                lines.append(
                    f"FALLBACK {f.classification.value}: {f.url} -> {f.final_url} "
                    f"HTTP {f.http_status} ({f.detail})"
                )
        return lines


def _not_passed(outcomes) -> int:
    return sum(1 for o in outcomes if o.classification is not ProbeState.PASSED)


def aggregate(
    outcomes: Iterable[ProbeOutcome],
    cancelled: bool = False,
    duration: float = 0.0,
    baseline: Iterable[BaselineOutcome] = (),
    locale_urls: Iterable[LocaleUrlOutcome] = (),
    fallbacks: Iterable[FallbackOutcome] = (),
) -> Report:
    """Fold the outcome stream into PASS and FAIL/ERROR buckets, order kept."""
    passed: List[ProbeOutcome] = []
    failed: List[ProbeOutcome] = []
    counts: Counter = Counter({state: 0 for state in ProbeState})

    for outcome in outcomes:
        counts[outcome.classification] += 1
        if outcome.classification is ProbeState.PASSED:
            passed.append(outcome)
        else:
            failed.append(outcome)

    return Report(
        passed=tuple(passed),
        failed=tuple(failed),
        counts=dict(counts),
        cancelled=cancelled,
        duration=duration,
        baseline=tuple(baseline),
        locale_urls=tuple(locale_urls),
        fallbacks=tuple(fallbacks),
    )
