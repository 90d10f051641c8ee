from core.probe import BaselineOutcome, FallbackOutcome, LocaleUrlOutcome, ProbeOutcome, ProbePair, ProbeState
from core.result_aggregator import aggregate


def _outcome(target, cookie, state, status=403):
    pair = ProbePair(target, cookie)
    return ProbeOutcome(
        pair=pair,
        http_status=status,
        classification=state,
        detail="",
        target_url=pair.target_url("https://kronospan.com"),
        country="Somewhere",
    )


def test_partition_is_exact():
    outcomes = [
        _outcome("a", "b", ProbeState.PASSED),
        _outcome("a", "c", ProbeState.FAILED, 200),
        _outcome("b", "a", ProbeState.ERROR, 0),
        _outcome("b", "c", ProbeState.PASSED, 302),
    ]
    report = aggregate(outcomes)

    assert [o.pair for o in report.passed] == [outcomes[0].pair, outcomes[3].pair]
    assert [o.pair for o in report.failed] == [outcomes[1].pair, outcomes[2].pair]
    assert report.total == len(outcomes)
    assert report.counts == {ProbeState.PASSED: 2, ProbeState.FAILED: 1, ProbeState.ERROR: 1}
    assert report.failed_count == 2
    assert not report.succeeded


def test_all_pass_is_success():
    report = aggregate([_outcome("a", "b", ProbeState.PASSED), _outcome("b", "a", ProbeState.PASSED)])
    assert report.succeeded
    assert report.failed == ()


def test_single_200_flips_verdict():
    outcomes = [_outcome("a", "b", ProbeState.PASSED), _outcome("b", "a", ProbeState.PASSED)]
    assert aggregate(outcomes).succeeded
    outcomes.append(_outcome("a", "c", ProbeState.FAILED, 200))
    assert not aggregate(outcomes).succeeded


def test_empty_run_succeeds():
    report = aggregate([])
    assert report.succeeded
    assert report.total == 0
    assert report.counts[ProbeState.ERROR] == 0


def test_rows():
    report = aggregate([_outcome("en_US", "fr_FR", ProbeState.FAILED, 200)])
    assert report.fail_rows() == [{
        "Target URL": "https://kronospan.com/en_US/",
        "Cookie": "fr_FR/",
        "Country": "Somewhere",
        "HTTP Code": "200",
        "Expected": "Not 200",
        "Result": "FAIL",
    }]
    assert "https://kronospan.com/en_US/" in report.failure_details()[0]
    assert "cookie=fr_FR/" in report.failure_details()[0]


def test_failed_checks_are_reported_but_do_not_change_verdict():
    baseline = [BaselineOutcome(
        locale="en_US", country="US", url="https://kronospan.com/en_US/", expected_cookie="en_US/",
        actual_cookie=None, url_match=True, cookie_match=False, classification=ProbeState.FAILED,
    )]
    locale_urls = [LocaleUrlOutcome(
        "fr_FR", "France", "https://kronospan.com/fr_FR/", "https://kronospan.com/en_US/", ProbeState.FAILED,
        "Expected final URL to contain locale: fr_FR",
    )]
    fallbacks = [FallbackOutcome(
        "de_DE", "Germany", "de_DE/x1y", "https://kronospan.com/de_DE/x1y",
        "https://kronospan.com/de_DE/x1y", 200, ProbeState.FAILED, "Junk path served as a page",
    )]
    report = aggregate(
        [_outcome("a", "b", ProbeState.PASSED)],
        baseline=baseline, locale_urls=locale_urls, fallbacks=fallbacks,
    )

    assert report.failed_count == 0
    assert report.succeeded
    assert report.baseline_failed_count == 1
    assert report.checks_failed_count == 3
    assert report.failure_details() == []
    details = report.check_failure_details()
    assert [d.split(":")[0] for d in details] == ["BASELINE FAIL", "LOCALE URL FAIL", "FALLBACK FAIL"]
    assert report.baseline_rows()[0]["Actual Cookie"] == "null"
    assert report.fallback_rows()[0]["Response Code"] == "200"
    assert report.locale_url_rows()[0]["Final URL"] == "https://kronospan.com/en_US/"
