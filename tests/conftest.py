"""Shared test fixtures."""

from pathlib import Path

import pytest
from redirector.config import Config, LoggingConfig, ServerConfig, SiteConfig
from redirector.core.table import RedirectEntry, RedirectTable


@pytest.fixture
def entries() -> dict[str, RedirectEntry]:
    """Sample redirects covering categories, aliases and uncategorised entries."""
    return {
        "moodle": RedirectEntry(
            target_url="https://moodle.rwth-aachen.de",
            description="Moodle learning platform",
            category="Teaching",
            aliases=("m", "lms"),
        ),
        "online": RedirectEntry(
            target_url="https://online.rwth-aachen.de",
            description="RWTHonline campus management",
            category="Administration",
            aliases=("campus",),
        ),
        "mail": RedirectEntry(
            target_url="https://mail.rwth-aachen.de",
            description="Exchange webmail",
            category="Services",
        ),
        "mensa": RedirectEntry(
            target_url="https://www.studierendenwerk-aachen.de",
            description="Canteen menus",
        ),
    }


@pytest.fixture
def table(entries: dict[str, RedirectEntry]) -> RedirectTable:
    """Redirect table built from the sample entries."""
    return RedirectTable(entries)


@pytest.fixture
def test_config(entries: dict[str, RedirectEntry]) -> Config:
    """Create a test configuration serving the sample redirects."""
    return Config(
        server=ServerConfig(),
        site=SiteConfig(base_domain="rwth.cool"),
        logging=LoggingConfig(access_log=False),
        redirects=entries,
    )


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Write a small redirects.toml and return its path."""
    path = tmp_path / "redirects.toml"
    path.write_text("""
[site]
base_domain = "rwth.cool"

[redirects.moodle]
url = "https://moodle.rwth-aachen.de"
description = "Moodle learning platform"
aliases = ["m"]
category = "Teaching"

[redirects.mail]
url = "https://mail.rwth-aachen.de"
description = "Exchange webmail"
category = "Services"

[redirects.mensa]
url = "https://www.studierendenwerk-aachen.de"
description = "Canteen menus"
""")
    return path
