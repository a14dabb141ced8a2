"""JSON file document store for applications, rules and preferences."""

import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional

from constants import DEFAULT_PREFERENCES, LOGGER_NAME
from errors import RecordNotFound, ValidationError
from interfaces import IDocumentStore
from json_utils import JSONDecodeError, json_dump_bytes, json_loads
from models import Application, Preference, Rule

logger = logging.getLogger(f"{LOGGER_NAME}.store")

APPLICATIONS = "applications"
RULES = "rules"
SETTINGS = "settings"
COLLECTIONS = (APPLICATIONS, RULES, SETTINGS)

_IMMUTABLE = ("id", "created_on")
_UNIQUE_APPLICATION_FIELDS = ("name", "path", "identifier")


def _merge(doc: Dict, values: Dict) -> Dict:
    merged = dict(doc)
    merged.update({k: v for k, v in values.items() if k not in _IMMUTABLE})
    return merged


class JsonDocumentStore(IDocumentStore):
    def __init__(self, data_dir):
        self.db_dir = Path(data_dir) / "databases"
        self._lock = threading.RLock()

    # -------------------------
    # file helpers
    # -------------------------

    def path_for(self, collection: str) -> Path:
        return self.db_dir / f"{collection}.json"

    def _read(self, collection: str) -> List[Dict]:
        path = self.path_for(collection)
        if not path.exists():
            return []
        try:
            data = json_loads(path.read_bytes())
        except (OSError, JSONDecodeError) as exc:
            logger.warning("Failed to read collection %s: %s", path, exc)
            return []
        if not isinstance(data, list):
            logger.warning("Ignoring malformed collection %s", path)
            return []
        return [d for d in data if isinstance(d, dict)]

    def _write(self, collection: str, docs: List[Dict]) -> None:
        path = self.path_for(collection)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=path.name, suffix=".tmp", dir=str(path.parent))
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(json_dump_bytes(docs, pretty=True))
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, str(path))
        finally:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)

    # -------------------------
    # applications
    # -------------------------

    def list_applications(self) -> List[Application]:
        with self._lock:
            return [Application.from_dict(d) for d in self._read(APPLICATIONS)]

    def get_application(self, app_id: str) -> Application:
        for application in self.list_applications():
            if application.id == app_id:
                return application
        raise RecordNotFound("Application", app_id)

    def count_applications(self) -> int:
        with self._lock:
            return len(self._read(APPLICATIONS))

    def _check_unique(self, application: Application, others: List[Application]) -> None:
        for other in others:
            if other.id == application.id:
                continue
            for name in _UNIQUE_APPLICATION_FIELDS:
                if getattr(other, name) == getattr(application, name):
                    raise ValidationError(
                        f"Application with {name} {getattr(application, name)!r} already exists"
                    )

    def _save_applications(self, applications: List[Application], default_id: Optional[str] = None) -> None:
        if default_id is not None:
            for application in applications:
                application.is_default = application.id == default_id
        self._write(APPLICATIONS, [a.to_dict() for a in applications])

    def create_application(self, application: Application) -> Application:
        application.validate()
        with self._lock:
            applications = self.list_applications()
            self._check_unique(application, applications)
            applications.append(application)
            self._save_applications(applications, application.id if application.is_default else None)
        logger.info("Added application %s", application.name)
        return application

    def update_application(self, app_id: str, values: Dict) -> Application:
        with self._lock:
            applications = self.list_applications()
            for idx, current in enumerate(applications):
                if current.id == app_id:
                    break
            else:
                raise RecordNotFound("Application", app_id)
            updated = Application.from_dict(_merge(current.to_dict(), values)).validate()
            self._check_unique(updated, applications)
            applications[idx] = updated
            self._save_applications(applications, updated.id if updated.is_default else None)
        logger.info("Updated application %s", updated.name)
        return updated

    def delete_application(self, app_id: str) -> int:
        """Remove an application and every rule pointing at it; return the number of rules removed."""
        with self._lock:
            applications = self.list_applications()
            remaining = [a for a in applications if a.id != app_id]
            if len(remaining) == len(applications):
                raise RecordNotFound("Application", app_id)
            rules = self._read(RULES)
            kept_rules = [r for r in rules if Rule.from_dict(r).application_id != app_id]
            self._save_applications(remaining)
            self._write(RULES, kept_rules)
        removed = len(rules) - len(kept_rules)
        logger.info("Removed application %s and %d rule(s)", app_id, removed)
        return removed

    def get_default_application(self) -> Optional[Application]:
        for application in self.list_applications():
            if application.is_default:
                return application
        return None

    def set_default_application(self, app_id: str) -> Application:
        with self._lock:
            previous = self.get_default_application()
            applications = self.list_applications()
            chosen = next((a for a in applications if a.id == app_id), None)
            if chosen is None:
                raise RecordNotFound("Application", app_id)
            self._save_applications(applications, app_id)
        logger.info(
            'Changed default browser from "%s" to "%s"',
            previous.name if previous else None,
            chosen.name,
        )
        return chosen

    # -------------------------
    # rules
    # -------------------------

    def _populate(self, rules: List[Rule]) -> List[Rule]:
        applications = {a.id: a for a in self.list_applications()}
        for rule in rules:
            rule.application = applications.get(rule.application_id)
        return rules

    def list_rules(self, active_only: bool = False, populate: bool = True) -> List[Rule]:
        with self._lock:
            rules = [Rule.from_dict(d) for d in self._read(RULES)]
            if active_only:
                rules = [r for r in rules if r.is_active]
            if populate:
                self._populate(rules)
        return rules

    def get_rule(self, rule_id: str) -> Rule:
        for rule in self.list_rules():
            if rule.id == rule_id:
                return rule
        raise RecordNotFound("Rule", rule_id)

    def _check_rule(self, rule: Rule, others: List[Rule]) -> None:
        rule.validate()
        for other in others:
            if other.id != rule.id and other.name == rule.name:
                raise ValidationError(f"Rule with name {rule.name!r} already exists")
        known = {a.id for a in self.list_applications()}
        if rule.application_id not in known:
            raise ValidationError(f"Rule: application {rule.application_id!r} does not exist")

    def create_rule(self, rule: Rule) -> Rule:
        with self._lock:
            rules = self.list_rules(populate=False)
            self._check_rule(rule, rules)
            rules.append(rule)
            self._write(RULES, [r.to_dict(populate=False) for r in rules])
            self._populate([rule])
        logger.info("Added rule: %s", rule.name)
        return rule

    def update_rule(self, rule_id: str, values: Dict) -> Rule:
        with self._lock:
            rules = self.list_rules(populate=False)
            for idx, current in enumerate(rules):
                if current.id == rule_id:
                    break
            else:
                raise RecordNotFound("Rule", rule_id)
            updated = Rule.from_dict(_merge(current.to_dict(populate=False), values))
            self._check_rule(updated, rules)
            rules[idx] = updated
            self._write(RULES, [r.to_dict(populate=False) for r in rules])
            self._populate([updated])
        logger.info("Updated rule: %s", updated.name)
        return updated

    def delete_rule(self, rule_id: str) -> None:
        with self._lock:
            docs = self._read(RULES)
            kept = [d for d in docs if d.get("id") != rule_id]
            if len(kept) == len(docs):
                raise RecordNotFound("Rule", rule_id)
            self._write(RULES, kept)
        logger.info("Deleted rule: %s", rule_id)

    def clear_rules(self) -> int:
        with self._lock:
            count = len(self._read(RULES))
            self._write(RULES, [])
        logger.info("Cleared %d rule(s)", count)
        return count

    # -------------------------
    # preferences
    # -------------------------

    def list_preferences(self) -> List[Preference]:
        with self._lock:
            return [Preference.from_dict(d) for d in self._read(SETTINGS)]

    def init_preferences(self) -> List[Preference]:
        with self._lock:
            prefs = self.list_preferences()
            names = {p.name for p in prefs}
            missing = [Preference(name, status) for name, status in DEFAULT_PREFERENCES if name not in names]
            if not missing:
                logger.info('Skipping initialization of "%s"', SETTINGS)
                return prefs
            prefs.extend(missing)
            self._write(SETTINGS, [p.to_dict() for p in prefs])
        logger.info('Successfully initialized "%s"', SETTINGS)
        return prefs

    def get_preference(self, name: str) -> Preference:
        for pref in self.list_preferences():
            if pref.name == name:
                return pref
        raise RecordNotFound("Preference", name)

    def preference_status(self, name: str) -> bool:
        try:
            return self.get_preference(name).status
        except RecordNotFound:
            return dict(DEFAULT_PREFERENCES).get(name, False)

    def set_preference(self, name: str, status: bool) -> Preference:
        with self._lock:
            prefs = self.list_preferences()
            pref = next((p for p in prefs if p.name == name), None)
            if pref is None:
                if name not in dict(DEFAULT_PREFERENCES):
                    raise RecordNotFound("Preference", name)
                pref = Preference(name)
                prefs.append(pref)
            pref.status = bool(status)
            self._write(SETTINGS, [p.to_dict() for p in prefs])
        return pref

    def toggle_preference(self, name: str) -> Preference:
        with self._lock:
            return self.set_preference(name, not self.preference_status(name))

    def reset_all(self) -> None:
        with self._lock:
            for collection in COLLECTIONS:
                path = self.path_for(collection)
                if path.is_file():
                    path.unlink()
        logger.info("Removed all stored data from %s", self.db_dir)
