"""Routing of opened links and files to applications."""

import logging
import os
import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional
from urllib.parse import urlsplit

from constants import LOGGER_NAME, Status
from errors import DispatcherError, LaunchError
from evaluators import EvaluationOptions, evaluate_rules
from models import Application, Rule

logger = logging.getLogger(f"{LOGGER_NAME}.dispatcher")

ACTION_RULE = "rule"
ACTION_DEFAULT = "default"
ACTION_CHOOSER = "chooser"
ACTION_APPLICATION = "application"


@dataclass
class DispatchResult:
    action: str
    target: str
    rule: Optional[Rule] = None
    application: Optional[Application] = None
    command: Optional[List[str]] = None
    reason: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "action": self.action,
            "target": self.target,
            "rule": self.rule.to_dict() if self.rule else None,
            "application": self.application.to_dict() if self.application else None,
            "command": self.command,
            "reason": self.reason,
        }


class AppContext:
    """State owned by one running dispatcher process."""

    def __init__(self, store, launcher, options: Optional[EvaluationOptions] = None, chooser=None):
        self.store = store
        self.launcher = launcher
        self.options = options or EvaluationOptions()
        self.chooser = chooser
        self._pending_target = None
        self._lock = threading.Lock()

    @property
    def pending_target(self) -> Optional[str]:
        with self._lock:
            return self._pending_target

    @pending_target.setter
    def pending_target(self, value: Optional[str]) -> None:
        with self._lock:
            self._pending_target = value


def is_local_file(target: str) -> bool:
    try:
        scheme = urlsplit(target).scheme
    except ValueError:
        return False
    # one letter schemes are Windows drive letters
    if len(scheme) > 1:
        return False
    return os.path.exists(target)


class Dispatcher:
    def __init__(self, context: AppContext):
        self.context = context

    @property
    def store(self):
        return self.context.store

    def dispatch(self, target: str) -> DispatchResult:
        if is_local_file(target):
            return self.open_file(target)
        return self.open_url(target)

    def open_url(self, url: str) -> DispatchResult:
        logger.info("Processing URL: %s", url)
        try:
            if not self.store.preference_status(Status.IS_APP_ENABLED.value):
                return self._choose(url, "dispatching is disabled")
            rules = self.store.list_rules(active_only=True)
            rule = evaluate_rules(rules, url, self.context.options)
            if rule is not None:
                logger.info("Matched rule '%s' for %s", rule.name, url)
                command = self.context.launcher.open_with_rule(rule, url)
                return DispatchResult(ACTION_RULE, url, rule=rule, application=rule.application, command=command)
            if self.store.preference_status(Status.IS_USE_DEFAULT.value):
                return self._open_default(url)
            return self._choose(url, "no rule matched")
        except DispatcherError as exc:
            logger.error("[open-url] Failed to dispatch %s: %s", url, exc)
            return self._choose(url, str(exc))

    def open_file(self, path: str) -> DispatchResult:
        logger.info("Processing file: %s", path)
        try:
            return self._open_default(path)
        except DispatcherError as exc:
            logger.error("[open-file] Failed to open %s: %s", path, exc)
            return self._choose(path, str(exc))

    def open_with(self, target: str, application_id: str) -> DispatchResult:
        """Open ``target`` with an application picked by the user."""
        application = self.store.get_application(application_id)
        command = self.context.launcher.open_with_application(application, target)
        if self.context.pending_target == target:
            self.context.pending_target = None
        return DispatchResult(ACTION_APPLICATION, target, application=application, command=command)

    def test_url(self, url: str, rules: Optional[Iterable] = None) -> Optional[Rule]:
        if rules is None:
            rules = self.store.list_rules(active_only=True)
        else:
            rules = [r if isinstance(r, Rule) else Rule.from_dict(r) for r in rules]
        return evaluate_rules(rules, url, self.context.options)

    def _open_default(self, target: str) -> DispatchResult:
        application = self.store.get_default_application()
        if application is None:
            raise LaunchError("No default application configured")
        command = self.context.launcher.open_with_application(application, target)
        return DispatchResult(ACTION_DEFAULT, target, application=application, command=command)

    def _choose(self, target: str, reason: str) -> DispatchResult:
        self.context.pending_target = target
        logger.info("Asking for an application to open %s (%s)", target, reason)
        if self.context.chooser is not None:
            self.context.chooser.choose(target, reason)
        return DispatchResult(ACTION_CHOOSER, target, reason=reason)
