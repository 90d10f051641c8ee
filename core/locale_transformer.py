import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

_SEPARATOR = re.compile(r"[-_]")


@dataclass(frozen=True)
class CanonicalLocale:
    """``language_ISO`` locale code used in site URLs and the visit cookie."""

    language: str
    country_iso: str = ""

    def __str__(self) -> str:
        if not self.country_iso:
            return self.language
        return f"{self.language}_{self.country_iso}"

    def __eq__(self, other) -> bool:
        if isinstance(other, CanonicalLocale):
            return str(self) == str(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(str(self))


def transform(raw_locale: Optional[str], iso_code: str) -> CanonicalLocale:
    """
    Turn a raw locale from the country data ("en-US", "sr_SP") into the
    canonical form for ``iso_code`` ("en_AL", "sr_AL").

    A raw locale without any separator ("frFR") is returned as-is with
    dashes replaced and no ISO suffix. Empty input gives an empty locale.
    """
    if not raw_locale:
        return CanonicalLocale("")

    match = _SEPARATOR.search(raw_locale)
    if match is None:
        return CanonicalLocale(raw_locale.replace("-", "_"))

    return CanonicalLocale(raw_locale[:match.start()], iso_code)


def transform_all(raw_locales: Iterable[Optional[str]], iso_code: str) -> List[CanonicalLocale]:
    """Transform in input order. Duplicates are kept."""
    return [transform(raw, iso_code) for raw in raw_locales]
