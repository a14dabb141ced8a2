"""Discovery of installed browsers from application bundles."""

import logging
import os
import plistlib
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from constants import APP_NAME, BROWSER_SCHEMES, DEFAULT_APPS_ROOT, DEFAULT_BROWSER_NAME, LOGGER_NAME
from errors import ValidationError
from models import Application

logger = logging.getLogger(f"{LOGGER_NAME}.apps")

APPS_ROOT_ENV = "BROWSER_DISPATCHER_APPS_ROOT"


def get_app_info(app_path, only_browsers: bool = True) -> Dict:
    """Read a bundle's Info.plist; an app is a browser when it handles a web scheme."""
    app_path = Path(app_path)
    with (app_path / "Contents" / "Info.plist").open("rb") as f:
        info = plistlib.load(f)

    available = set()
    for url_type in info.get("CFBundleURLTypes") or []:
        available.update(url_type.get("CFBundleURLSchemes") or [])
    schemes = [s for s in BROWSER_SCHEMES if s in available]
    result = {"is_browser": bool(schemes), "schemes": schemes}

    if result["is_browser"] or not only_browsers:
        icon = info.get("CFBundleIconFile") or ""
        if icon and not icon.endswith(".icns"):
            icon = f"{icon}.icns"
        result.update(
            identifier=info.get("CFBundleIdentifier"),
            display_name=info.get("CFBundleDisplayName") or info.get("CFBundleName"),
            name=info.get("CFBundleName"),
            executable=info.get("CFBundleExecutable"),
            icns=str(app_path / "Contents" / "Resources" / icon) if icon else "",
            path=str(app_path),
        )
    return result


def get_apps(apps_root=DEFAULT_APPS_ROOT) -> Tuple[List[Dict], List[Exception]]:
    results, errors = [], []
    for app_path in sorted(Path(apps_root).glob("*.app")):
        try:
            info = get_app_info(app_path)
        except (OSError, ValueError, plistlib.InvalidFileException) as exc:
            errors.append(exc)
            continue
        if info["is_browser"]:
            results.append(info)
    return results, errors


def autoload_applications(store, apps_root: Optional[str] = None) -> List[Application]:
    """Seed an empty store with the browsers found under ``apps_root``."""
    if store.count_applications():
        return []
    apps_root = apps_root or os.environ.get(APPS_ROOT_ENV, DEFAULT_APPS_ROOT)
    results, errors = get_apps(apps_root)
    if errors:
        logger.warning("There were %d errors while fetching the list of applications", len(errors))

    added = []
    for info in results:
        if info["name"] == APP_NAME:
            continue
        application = Application(
            name=info["name"] or "",
            display_name=info["display_name"] or "",
            path=info["path"],
            icns=info["icns"],
            executable=info["executable"] or "",
            identifier=info["identifier"] or "",
            is_default=info["name"] == DEFAULT_BROWSER_NAME,
        )
        try:
            added.append(store.create_application(application))
        except ValidationError as exc:
            logger.error('Failed to add application "%s": %s', info["name"], exc)
    return added
