# core/framework/csv_writer.py

import csv
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

from core.errors import ReportWriteError
from core.result_aggregator import (
    BASELINE_COLUMNS,
    FALLBACK_COLUMNS,
    LOCALE_URL_COLUMNS,
    REPORT_COLUMNS,
    Report,
)
from utils.logger import get_logger

logger = get_logger("reports")


class CSVWriter:
    def __init__(self, config: Dict):
        self.config = config

    # ---------- Generic atomic writer ----------

    def write_rows(self, path: str, columns: List[str], rows: List[Dict[str, str]]) -> Path:
        """
        Write ``rows`` under a header row, every field double-quoted.

        The file is written next to its destination and moved into place, so
        readers never see a half-written report.
        """
        output_path = Path(path)
        tmp_name: Optional[str] = None
        try:
            if output_path.parent:
                output_path.parent.mkdir(parents=True, exist_ok=True)

            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{output_path.name}.", suffix=".tmp", dir=str(output_path.parent)
            )
            with os.fdopen(fd, "w", newline="", encoding="utf-8") as f:
                writer = csv.DictWriter(
                    f, fieldnames=columns, quoting=csv.QUOTE_ALL, lineterminator="\n"
                )
                writer.writeheader()
                for row in rows:
                    writer.writerow({c: row.get(c, "") for c in columns})
            os.replace(tmp_name, output_path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise ReportWriteError(f"Failed to write {output_path}: {e}") from e

        return output_path

    # ---------- PASS / FAIL matrix reports ----------

    def write_reports(self, report: Report) -> List[Path]:
        written: List[Path] = []

        pass_path = self.write_rows(
            self.config.get("report_pass_file", "output/InvalidLocaleCookieAccess_PASS.csv"),
            REPORT_COLUMNS,
            report.pass_rows(),
        )
        logger.info("📄 PASS CSV report saved: %s (%d rows)", pass_path, len(report.passed))
        written.append(pass_path)

        fail_path = self.write_rows(
            self.config.get("report_fail_file", "output/InvalidLocaleCookieAccess_FAIL.csv"),
            REPORT_COLUMNS,
            report.fail_rows(),
        )
        logger.info("📄 FAIL CSV report saved: %s (%d rows)", fail_path, len(report.failed))
        written.append(fail_path)

        if report.baseline:
            baseline_path = self.write_rows(
                self.config.get("report_baseline_file", "output/LocaleCookieValidationReport.csv"),
                BASELINE_COLUMNS,
                report.baseline_rows(),
            )
            logger.info("📄 Baseline CSV report saved: %s", baseline_path)
            written.append(baseline_path)

        if report.locale_urls:
            locale_url_path = self.write_rows(
                self.config.get("report_locale_url_file", "output/URL_access_transformed_locale_report.csv"),
                LOCALE_URL_COLUMNS,
                report.locale_url_rows(),
            )
            logger.info("📄 Locale URL CSV report saved: %s", locale_url_path)
            written.append(locale_url_path)

        if report.fallbacks:
            fallback_path = self.write_rows(
                self.config.get("report_fallback_file", "output/Invalid_Locale_Fallback_Report.csv"),
                FALLBACK_COLUMNS,
                report.fallback_rows(),
            )
            logger.info("📄 Invalid locale fallback CSV report saved: %s", fallback_path)
            written.append(fallback_path)

        return written
