# config/base_config.py

from config.site_urls import SITE_PROFILES


class TestConfig:
    """Base configuration for the locale cookie matrix run.

    All knobs are set here in code; main.py only overrides single keys from
    the command line.
    """

    def __init__(self):
        # ─────────────────────────────────────────────
        # Core switches you actually tweak
        # ─────────────────────────────────────────────
        # Which site profile to use (see config/site_urls.py)
        self.active_site = "kronospan"

        # Stage vs LIVE
        #   False => probe the live host
        #   True  => probe the stage host (+ basic auth when configured)
        self.stage_mode = False

        # Browser-level settings
        self.browser_config = {
            "headless": True,
            # Playwright navigation timeout (ms); bounds a stuck probe
            "navigation_timeout": 30000,
            "viewport": {"width": 1280, "height": 720},
            "ignore_https_errors": True,
        }

        # Matrix behaviour
        self.test_config = {
            # 1 = one shared browser session, strictly sequential.
            # >1 = that many independent sessions, each owned by one worker.
            "workers": 1,

            # Where the probe status comes from:
            #   "browser" -> Playwright main-frame navigation responses
            #   "http"    -> aiohttp HEAD replay of the probed URL, no redirects
            "observer": "browser",
            "http_timeout": 15,

            # seconds to wait for document.readyState == "complete" on reset
            "ready_timeout": 10.0,

            # Also probe each locale with its own (matching) cookie
            "run_baseline": False,

            # Open each locale URL with no cookie; the final URL must keep the locale
            "run_locale_urls": False,

            # Junk paths under each locale must land on /404 or redirect away
            "run_invalid_paths": False,
            "invalid_paths_per_locale": 10,
            # None = different junk every run
            "invalid_path_seed": None,

            # Screenshot on FAIL / ERROR probes
            "debug_screenshots": False,

            # Progress line every N probes (0 disables)
            "progress_every": 50,

            "log_level": "INFO",
        }

        # Country / locale source
        #   "sqlite" -> db_path (countries, countries_languages, languages)
        #   "json"   -> countries_file
        self.source_config = {
            "source": "sqlite",
            "db_path": "data/countries.db",
            "countries_file": "data/countries.json",
        }

        # Output configuration
        self.output_config = {
            "report_pass_file": "output/InvalidLocaleCookieAccess_PASS.csv",
            "report_fail_file": "output/InvalidLocaleCookieAccess_FAIL.csv",
            "report_baseline_file": "output/LocaleCookieValidationReport.csv",
            "report_locale_url_file": "output/URL_access_transformed_locale_report.csv",
            "report_fallback_file": "output/Invalid_Locale_Fallback_Report.csv",
            "transformed_locales_file": "output/transformed_locales.csv",
            "screenshot_dir": "output/screenshots",
        }

        # 🔹 Stage-only HTTP basic auth; None when the stage host is open
        self.stage_credentials = None

    def get_config(self):
        """Return merged configuration dict with the site URL embedded."""
        config = {}
        config.update(self.browser_config)
        config.update(self.test_config)
        config.update(self.source_config)
        config.update(self.output_config)

        site_profile = SITE_PROFILES[self.active_site]
        config["active_site"] = self.active_site
        config["stage_mode"] = self.stage_mode
        config["site_url"] = site_profile["stage_url"] if self.stage_mode else site_profile["site_url"]

        if self.stage_mode and self.stage_credentials:
            config["http_credentials"] = self.stage_credentials

        return config


# Convenience: import CONFIG directly from main.py
CONFIG = TestConfig().get_config()
