import json
import sqlite3
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import aiosqlite

from core.errors import DataSourceError
from core.locale_catalog import CountryRecord
from utils.logger import get_logger

logger = get_logger("source")

# Primary country (id = 1) first, the rest alphabetically: stable run to run.
COUNTRY_LOCALES_QUERY = """
    SELECT c.iso_code, cl.locale, c.title, c.default_language
    FROM countries c
    INNER JOIN countries_languages cl_map ON cl_map.country_id = c.id
    INNER JOIN languages cl ON cl.id = cl_map.language_id
    WHERE c.is_active = 1
    GROUP BY c.id, cl.locale
    ORDER BY c.id = 1 DESC, c.title ASC, MIN(cl_map.rowid) ASC
"""


def merge_rows(rows: Iterable[Tuple[str, Optional[str], str, str]]) -> List[CountryRecord]:
    """
    Fold ``(iso_code, locale, title, default_language)`` rows into one record
    per country, keeping first-seen order and dropping repeated locales.
    """
    by_iso: Dict[str, CountryRecord] = {}
    for iso_code, locale, title, default_language in rows:
        if not iso_code or not isinstance(iso_code, str):
            raise DataSourceError(f"Row without a string iso_code: {(iso_code, locale, title)}")
        if locale is not None and not isinstance(locale, str):
            raise DataSourceError(f"Locale for {iso_code} is not a string: {locale!r}")
        record = by_iso.get(iso_code)
        if record is None:
            record = CountryRecord(
                iso_code=iso_code,
                country_name=title or iso_code,
                default_language=default_language or "",
                title=title or "",
            )
        if locale:
            record = record.with_locale(locale)
        by_iso[iso_code] = record
    return list(by_iso.values())


class SqlCountryLocaleSource:
    """Active countries and their locales from the site's SQLite database."""

    def __init__(self, db_path: str, query: str = COUNTRY_LOCALES_QUERY):
        self.db_path = db_path
        self.query = query

    async def fetch_country_locales(self) -> List[CountryRecord]:
        if not Path(self.db_path).exists():
            raise DataSourceError(f"Database not found: {self.db_path}")

        try:
            async with aiosqlite.connect(self.db_path) as db:
                async with db.execute(self.query) as cursor:
                    rows = await cursor.fetchall()
        except (sqlite3.Error, ValueError) as e:
            raise DataSourceError(f"SQL error while fetching country locales: {e}") from e

        records = merge_rows(rows)
        logger.info("📥 Fetched %d countries (%d rows) from %s", len(records), len(rows), self.db_path)
        return records


class JsonCountryLocaleSource:
    """
    Same records from a JSON file, for offline runs::

        {"countries": [{"iso_code": "DE", "title": "Germany",
                        "default_language": "de_DE", "locales": ["de-DE", "en-US"]}]}
    """

    def __init__(self, path: str):
        self.path = path

    async def fetch_country_locales(self) -> List[CountryRecord]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DataSourceError(f"Failed reading {self.path}: {e}") from e

        countries = data.get("countries") if isinstance(data, dict) else None
        if not isinstance(countries, list):
            raise DataSourceError(f"{self.path}: expected a 'countries' list")

        rows = []
        for entry in countries:
            if not isinstance(entry, dict):
                raise DataSourceError(f"{self.path}: country entry is not an object: {entry!r}")
            locales = entry.get("locales") or []
            if not isinstance(locales, list):
                raise DataSourceError(f"{self.path}: 'locales' must be a list for {entry.get('iso_code')}")
            head = (entry.get("iso_code"), entry.get("title") or entry.get("country_name"),
                    entry.get("default_language"))
            if not locales:
                rows.append((head[0], None, head[1], head[2]))
            for locale in locales:
                rows.append((head[0], locale, head[1], head[2]))

        records = merge_rows(rows)
        logger.info("📥 Loaded %d countries from %s", len(records), self.path)
        return records


def source_from_config(config: Dict):
    """Pick the country source named by ``config['source']``."""
    kind = str(config.get("source", "json")).lower()
    if kind == "sqlite":
        return SqlCountryLocaleSource(config["db_path"])
    if kind == "json":
        return JsonCountryLocaleSource(config["countries_file"])
    raise DataSourceError(f"Unknown country source: {kind}")
