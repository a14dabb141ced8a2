"""Dispatcher configuration: on-disk defaults plus CLI overrides."""

import logging
import os
import sys
from pathlib import Path

from constants import APP_NAME, LOGGER_NAME, UI_HOST, UI_PORT
from evaluators import EvaluationOptions
from json_utils import JSONDecodeError, json_dump_bytes, json_loads

logger = logging.getLogger(f"{LOGGER_NAME}.config")

DATA_DIR_ENV = "BROWSER_DISPATCHER_DATA_DIR"
CONFIG_FILENAME = "config.json"

DEFAULT_CONFIG = {
    "host": UI_HOST,
    "port": UI_PORT,
    "log_level": "INFO",
    "apps_root": None,
    "tray": True,
    "include_inactive_conditions": False,
    "strict_literals": False,
}


def default_data_dir() -> Path:
    env = os.environ.get(DATA_DIR_ENV)
    if env:
        return Path(env)
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    xdg_data_home = os.environ.get("XDG_DATA_HOME") or Path.home() / ".local" / "share"
    return Path(xdg_data_home) / APP_NAME.lower()


def load_config(path: Path) -> dict:
    data = {}
    if path.exists():
        try:
            data = json_loads(path.read_bytes())
        except (OSError, JSONDecodeError) as exc:
            logger.warning("Failed to read %s, using defaults: %s", path, exc)
    if not isinstance(data, dict):
        data = {}
    cfg = DEFAULT_CONFIG.copy()
    cfg.update({k: v for k, v in data.items() if k in cfg})
    return cfg


def save_config(cfg: dict, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(json_dump_bytes(cfg, pretty=True))


class DispatcherConfig:
    def __init__(self, data_dir=None):
        self.data_dir = Path(data_dir) if data_dir else default_data_dir()
        self.host = DEFAULT_CONFIG["host"]
        self.port = DEFAULT_CONFIG["port"]
        self.log_level = DEFAULT_CONFIG["log_level"]
        self.apps_root = DEFAULT_CONFIG["apps_root"]
        self.tray = DEFAULT_CONFIG["tray"]
        self.quiet = False
        self.include_inactive_conditions = DEFAULT_CONFIG["include_inactive_conditions"]
        self.strict_literals = DEFAULT_CONFIG["strict_literals"]

    @property
    def config_path(self) -> Path:
        return self.data_dir / CONFIG_FILENAME

    @property
    def log_file(self) -> Path:
        return self.data_dir / f"{APP_NAME}.log"

    @property
    def ui_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def evaluation_options(self) -> EvaluationOptions:
        return EvaluationOptions(
            include_inactive_conditions=bool(self.include_inactive_conditions),
            strict_literals=bool(self.strict_literals),
        )

    def apply(self, cfg: dict) -> "DispatcherConfig":
        for key in DEFAULT_CONFIG:
            setattr(self, key, cfg[key])
        return self


class ConfigLoader:
    @staticmethod
    def load_from_args(args) -> DispatcherConfig:
        config = DispatcherConfig(args.data_dir)
        config.apply(load_config(config.config_path))
        if args.host:
            config.host = args.host
        if args.port:
            config.port = args.port
        if args.log_level:
            config.log_level = args.log_level
        if args.no_tray:
            config.tray = False
        if args.include_inactive_conditions:
            config.include_inactive_conditions = True
        if args.strict_literals:
            config.strict_literals = True
        config.quiet = args.quiet
        return config
