"""Launching applications with a URL or file."""

import logging
import shlex
import subprocess
import sys
import threading
from typing import Callable, Iterable, List, Optional

from constants import LOGGER_NAME
from errors import LaunchError
from interfaces import ILauncher

logger = logging.getLogger(f"{LOGGER_NAME}.launcher")


def rule_options(rule) -> List[str]:
    options = []
    if rule.open_new_instance:
        options.append("-n")
    if rule.open_not_foreground:
        options.append("-g")
    if rule.open_fresh:
        options.append("-F")
    return options


def split_args(args: Optional[str]) -> List[str]:
    if not args:
        return []
    try:
        return shlex.split(args)
    except ValueError as exc:
        raise LaunchError(f"Invalid application arguments {args!r}: {exc}") from exc


def build_command(target: str, application, use_executable: bool = False,
                  options: Iterable[str] = (), args: Optional[str] = None,
                  platform: str = sys.platform) -> List[str]:
    if platform == "darwin":
        if use_executable:
            cmd = ["open", "-a", application.executable]
        else:
            cmd = ["open", "-b", application.identifier]
        cmd.extend(options)
        if target:
            cmd.append(target)
        extra = split_args(args)
        if extra:
            cmd.append("--args")
            cmd.extend(extra)
        return cmd

    # no "open" tool: run the executable directly, launch options do not apply
    cmd = [application.executable or application.path]
    cmd.extend(split_args(args))
    if target:
        cmd.append(target)
    return cmd


class Launcher(ILauncher):
    """Runs launch commands; started processes are kept until they exit."""

    def __init__(self, platform: Optional[str] = None, runner: Optional[Callable] = None):
        self.platform = platform or sys.platform
        self.runner = runner or subprocess.Popen
        self._children: List = []
        self._lock = threading.Lock()

    def open_with_rule(self, rule, target: str) -> List[str]:
        if rule.application is None:
            raise LaunchError(f"Rule '{rule.name}' has no application")
        cmd = build_command(
            target,
            rule.application,
            use_executable=rule.use_app_executable,
            options=rule_options(rule),
            args=rule.open_args,
            platform=self.platform,
        )
        self._run(cmd)
        return cmd

    def open_with_application(self, application, target: str) -> List[str]:
        cmd = build_command(target, application, platform=self.platform)
        self._run(cmd)
        return cmd

    def running(self) -> int:
        """Reap exited children and return how many are still running."""
        with self._lock:
            self._children = [p for p in self._children if p.poll() is None]
            return len(self._children)

    def _run(self, cmd: List[str]) -> None:
        self.running()
        logger.info("Running: %s", " ".join(cmd))
        try:
            proc = self.runner(cmd)
        except OSError as exc:
            raise LaunchError(f"Failed to run {cmd[0]}: {exc}") from exc
        if proc is not None:
            with self._lock:
                self._children.append(proc)
