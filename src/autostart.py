"""Open-at-login managers."""

import logging
import plistlib
import subprocess
import sys
from pathlib import Path
from typing import List

from constants import APP_NAME, LOGGER_NAME
from interfaces import IAutostartManager

if sys.platform == "win32":
    import winreg

logger = logging.getLogger(f"{LOGGER_NAME}.autostart")

LAUNCH_AGENT_LABEL = f"com.{APP_NAME.lower()}.agent"
SERVICE_NAME = f"{APP_NAME.lower()}.service"
RUN_KEY = r"Software\Microsoft\Windows\CurrentVersion\Run"


def launch_command() -> List[str]:
    if getattr(sys, "frozen", False):
        return [sys.executable, "--quiet"]
    return [sys.executable, str(Path(__file__).resolve().with_name("app.py")), "--quiet"]


class MacAutostartManager(IAutostartManager):
    @staticmethod
    def agent_path() -> Path:
        return Path.home() / "Library" / "LaunchAgents" / f"{LAUNCH_AGENT_LABEL}.plist"

    @staticmethod
    def manage_autostart(action: str = "install") -> bool:
        path = MacAutostartManager.agent_path()
        try:
            if action == "install":
                path.parent.mkdir(parents=True, exist_ok=True)
                with path.open("wb") as f:
                    plistlib.dump(
                        {"Label": LAUNCH_AGENT_LABEL, "ProgramArguments": launch_command(), "RunAtLoad": True},
                        f,
                    )
                logger.info("Added to login items: %s", path)
            elif action == "uninstall":
                if not path.exists():
                    logger.error("Not found in login items")
                    return False
                path.unlink()
                logger.info("Removed from login items")
            return True
        except OSError as exc:
            logger.error("Autostart operation failed: %s", exc)
            return False

    @staticmethod
    def is_installed() -> bool:
        return MacAutostartManager.agent_path().exists()


class WindowsAutostartManager(IAutostartManager):
    @staticmethod
    def manage_autostart(action: str = "install") -> bool:
        command = subprocess.list2cmdline(launch_command())
        try:
            with winreg.OpenKey(winreg.HKEY_CURRENT_USER, RUN_KEY, 0, winreg.KEY_WRITE) as regkey:
                if action == "install":
                    winreg.SetValueEx(regkey, APP_NAME, 0, winreg.REG_SZ, command)
                    logger.info("Added to autostart: %s", command)
                elif action == "uninstall":
                    winreg.DeleteValue(regkey, APP_NAME)
                    logger.info("Removed from autostart")
            return True
        except FileNotFoundError:
            logger.error("Not found in autostart")
        except PermissionError:
            logger.error("Access denied. Run as administrator")
        except OSError as exc:
            logger.error("Autostart operation failed: %s", exc)
        return False

    @staticmethod
    def is_installed() -> bool:
        try:
            with winreg.OpenKey(winreg.HKEY_CURRENT_USER, RUN_KEY, 0, winreg.KEY_READ) as regkey:
                winreg.QueryValueEx(regkey, APP_NAME)
            return True
        except OSError:
            return False


class LinuxAutostartManager(IAutostartManager):
    @staticmethod
    def service_path() -> Path:
        return Path.home() / ".config" / "systemd" / "user" / SERVICE_NAME

    @staticmethod
    def manage_autostart(action: str = "install") -> bool:
        service_file = LinuxAutostartManager.service_path()
        try:
            if action == "install":
                service_file.parent.mkdir(parents=True, exist_ok=True)
                service_file.write_text(
                    f"""[Unit]
Description={APP_NAME}
After=graphical-session.target

[Service]
Type=simple
ExecStart={subprocess.list2cmdline(launch_command())}
Restart=on-failure
RestartSec=5

[Install]
WantedBy=default.target
""",
                    encoding="utf-8",
                )
                subprocess.run(["systemctl", "--user", "daemon-reload"], check=True)
                subprocess.run(["systemctl", "--user", "enable", SERVICE_NAME], check=True)
                logger.info("Service installed: %s", SERVICE_NAME)
            elif action == "uninstall":
                subprocess.run(["systemctl", "--user", "disable", SERVICE_NAME], capture_output=True, check=True)
                if service_file.exists():
                    service_file.unlink()
                subprocess.run(["systemctl", "--user", "daemon-reload"], check=True)
                logger.info("Service removed from autostart")
            return True
        except subprocess.CalledProcessError as exc:
            logger.error("Systemd command failed: %s", exc)
        except OSError as exc:
            logger.error("Autostart operation failed: %s", exc)
        return False

    @staticmethod
    def is_installed() -> bool:
        return LinuxAutostartManager.service_path().exists()


def get_autostart_manager():
    if sys.platform == "darwin":
        return MacAutostartManager
    if sys.platform == "win32":
        return WindowsAutostartManager
    return LinuxAutostartManager
