import pytest

from core.locale_transformer import CanonicalLocale, transform, transform_all


@pytest.mark.parametrize(
    "raw, iso, expected",
    [
        ("en-US", "AL", "en_AL"),
        ("sr_SP", "AL", "sr_AL"),
        ("zh-Hant-TW", "TW", "zh_TW"),
        ("pt_BR-x", "PT", "pt_PT"),
        ("frFR", "AL", "frFR"),
        ("de", "DE", "de"),
        ("-US", "AL", "_AL"),
    ],
)
def test_transform(raw, iso, expected):
    assert str(transform(raw, iso)) == expected


def test_no_separator_does_not_append_iso():
    locale = transform("frFR", "AL")
    assert locale.country_iso == ""
    assert locale.language == "frFR"


def test_iso_kept_verbatim():
    assert str(transform("en-gb", "gB")) == "en_gB"


@pytest.mark.parametrize("raw", ["", None])
def test_empty_input_does_not_raise(raw):
    assert str(transform(raw, "AL")) == ""


def test_equality_follows_rendering():
    assert transform("en-US", "AL") == CanonicalLocale("en", "AL")
    assert transform("en_GB", "AL") == transform("en-US", "AL")
    assert len({transform("en-US", "AL"), transform("en-GB", "AL")}) == 1
    assert transform("en-US", "AL") != transform("en-US", "DE")


def test_transform_all_keeps_order_and_duplicates():
    result = transform_all(["fr-FR", "en-US", "en-GB", "de"], "CH")
    assert [str(r) for r in result] == ["fr_CH", "en_CH", "en_CH", "de"]


def test_transform_all_empty():
    assert transform_all([], "CH") == []
