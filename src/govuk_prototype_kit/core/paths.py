"""Well-known file locations inside a prototype project."""

from __future__ import annotations

from pathlib import Path

MANIFEST = Path("package.json")
APP_DIR = Path("app")
LEGACY_CONFIG = APP_DIR / "config.js"
CONFIG = APP_DIR / "config.json"
ROUTES = APP_DIR / "routes.js"
FILTERS = APP_DIR / "filters.js"
VIEWS_DIR = APP_DIR / "views"
LAYOUT = VIEWS_DIR / "layout.html"
APPLICATION_JS = APP_DIR / "assets" / "javascripts" / "application.js"
APPLICATION_SCSS = APP_DIR / "assets" / "sass" / "application.scss"

# Name -> relative path, in the order they are reported.
WELL_KNOWN_FILES: dict[str, Path] = {
    "manifest": MANIFEST,
    "legacy_config": LEGACY_CONFIG,
    "config": CONFIG,
    "routes": ROUTES,
    "filters": FILTERS,
    "stylesheet": APPLICATION_SCSS,
    "script": APPLICATION_JS,
    "layout": LAYOUT,
}

__all__ = [
    "APPLICATION_JS",
    "APPLICATION_SCSS",
    "APP_DIR",
    "CONFIG",
    "FILTERS",
    "LAYOUT",
    "LEGACY_CONFIG",
    "MANIFEST",
    "ROUTES",
    "VIEWS_DIR",
    "WELL_KNOWN_FILES",
]
