# config/site_urls.py

SITE_PROFILES = {
    "kronospan": {
        "site_url": "https://kronospan.com",
        "stage_url": "https://stage.kronospan.com",
    },
}
