import csv
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from core.locale_transformer import transform_all
from utils.logger import get_logger

logger = get_logger("catalog")


@dataclass(frozen=True)
class CountryRecord:
    """One active country with its raw locales, in source order."""

    iso_code: str
    country_name: str
    default_language: str = ""
    title: str = ""
    locales: Tuple[str, ...] = field(default_factory=tuple)

    def with_locale(self, locale: str) -> "CountryRecord":
        """Copy with ``locale`` appended unless it is already listed."""
        if locale in self.locales:
            return self
        return CountryRecord(
            iso_code=self.iso_code,
            country_name=self.country_name,
            default_language=self.default_language,
            title=self.title,
            locales=self.locales + (locale,),
        )


class LocaleCatalog:
    """
    Canonical locales of every country, in enumeration order, each owned by
    exactly one country.

    Read-only after ``build``; safe to share between verifier workers.
    """

    def __init__(self, owners: Dict[str, str]):
        self._owners = dict(owners)
        self._order = tuple(self._owners)
        self._index = {loc: i for i, loc in enumerate(self._order)}

    @classmethod
    def build(cls, records: Iterable[CountryRecord]) -> "LocaleCatalog":
        owners: Dict[str, str] = {}
        for record in records:
            for canonical in transform_all(record.locales, record.iso_code):
                locale = str(canonical)
                if not locale:
                    logger.debug("Skipping empty locale for %s", record.iso_code)
                    continue
                owner = owners.get(locale)
                if owner is None:
                    owners[locale] = record.country_name
                elif owner != record.country_name:
                    logger.debug(
                        "Locale %s already owned by %s, ignoring %s",
                        locale, owner, record.country_name,
                    )
        logger.info("🌍 Catalog built: %d canonical locales", len(owners))
        return cls(owners)

    def locales(self) -> Tuple[str, ...]:
        return self._order

    def country_of(self, locale: str) -> Optional[str]:
        return self._owners.get(locale)

    def index_of(self, locale: str) -> int:
        return self._index[locale]

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, locale) -> bool:
        return locale in self._owners

    def __iter__(self):
        return iter(self._order)


def write_transformed_csv(records: Iterable[CountryRecord], path: str) -> Path:
    """Export every country with its transformed locales joined by ';'."""
    output_path = Path(path)
    if output_path.parent:
        output_path.parent.mkdir(parents=True, exist_ok=True)

    rows: List[List[str]] = []
    for record in records:
        transformed = [str(c) for c in transform_all(record.locales, record.iso_code)]
        rows.append([
            record.iso_code,
            record.country_name,
            record.default_language,
            record.title,
            ";".join(transformed),
        ])

    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["iso_code", "country_name", "default_language", "title", "transformed_locales"])
        writer.writerows(rows)

    logger.info("📄 Transformed locales written to: %s", output_path)
    return output_path
