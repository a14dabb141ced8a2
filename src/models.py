"""Records kept by the store: applications, rules with their conditions, preferences."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from constants import RuleOperator
from errors import ValidationError
from operands import OPERANDS
from operators import operator_ids


def new_id() -> str:
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            pass
    return _now()


def _require_text(kind: str, name: str, value) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{kind}: '{name}' is required")


def _require_mapping(kind: str, data) -> None:
    if not isinstance(data, dict):
        raise ValidationError(f"{kind}: expected an object, got {type(data).__name__}")


@dataclass
class Application:
    name: str
    path: str
    executable: str
    identifier: str
    display_name: str = ""
    icns: str = ""
    is_default: bool = False
    is_active: bool = True
    id: str = field(default_factory=new_id)
    created_on: datetime = field(default_factory=_now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Application":
        _require_mapping("Application", data)
        return cls(
            id=str(data.get("id") or new_id()),
            name=data.get("name", ""),
            path=data.get("path", ""),
            executable=data.get("executable", ""),
            identifier=data.get("identifier", ""),
            display_name=data.get("display_name") or data.get("name", ""),
            icns=data.get("icns") or "",
            is_default=bool(data.get("is_default", False)),
            is_active=bool(data.get("is_active", True)),
            created_on=_parse_datetime(data.get("created_on")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "display_name": self.display_name,
            "path": self.path,
            "icns": self.icns,
            "executable": self.executable,
            "identifier": self.identifier,
            "is_default": self.is_default,
            "is_active": self.is_active,
            "created_on": self.created_on.isoformat(),
        }

    def validate(self) -> "Application":
        for name in ("name", "path", "executable", "identifier"):
            _require_text("Application", name, getattr(self, name))
        if not self.display_name:
            self.display_name = self.name
        return self


@dataclass
class Condition:
    text: str
    operand: str
    operator: str
    is_active: bool = True
    created_on: datetime = field(default_factory=_now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Condition":
        _require_mapping("Condition", data)
        return cls(
            text=data.get("text"),
            operand=data.get("operand"),
            operator=data.get("operator"),
            is_active=bool(data.get("is_active", True)),
            created_on=_parse_datetime(data.get("created_on")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "operand": self.operand,
            "operator": self.operator,
            "is_active": self.is_active,
            "created_on": self.created_on.isoformat(),
        }

    def validate(self) -> "Condition":
        _require_text("Condition", "text", self.text)
        if not isinstance(self.operand, str) or self.operand not in OPERANDS:
            raise ValidationError(f"Condition: unsupported operand {self.operand!r}")
        if self.operator not in operator_ids():
            raise ValidationError(f"Condition: unsupported operator {self.operator!r}")
        return self


@dataclass
class Rule:
    name: str
    operator: str = RuleOperator.ALL.value
    conditions: List[Condition] = field(default_factory=list)
    application_id: Optional[str] = None
    # populated by the store, never persisted
    application: Optional[Application] = None
    is_active: bool = True
    # "-n": open a new instance even if one is already running
    open_new_instance: bool = False
    # "-g": do not bring the application to the foreground
    open_not_foreground: bool = False
    # "-F": open fresh, without restoring windows
    open_fresh: bool = False
    # "-a <executable>" instead of "-b <bundle identifier>"
    use_app_executable: bool = False
    # passed to the application after "--args"
    open_args: str = ""
    id: str = field(default_factory=new_id)
    created_on: datetime = field(default_factory=_now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rule":
        _require_mapping("Rule", data)
        conditions = data.get("conditions") or []
        if not isinstance(conditions, list):
            raise ValidationError("Rule: 'conditions' must be a list")
        application = None
        application_id = data.get("application_id")
        ref = data.get("application")
        if isinstance(ref, dict):
            application = Application.from_dict(ref)
            application_id = application.id
        elif ref and not application_id:
            application_id = str(ref)
        return cls(
            id=str(data.get("id") or new_id()),
            name=data.get("name", ""),
            operator=data.get("operator", RuleOperator.ALL.value),
            conditions=[Condition.from_dict(c) for c in conditions],
            application_id=application_id,
            application=application,
            is_active=bool(data.get("is_active", True)),
            open_new_instance=bool(data.get("open_new_instance", False)),
            open_not_foreground=bool(data.get("open_not_foreground", False)),
            open_fresh=bool(data.get("open_fresh", False)),
            use_app_executable=bool(data.get("use_app_executable", False)),
            open_args=data.get("open_args") or "",
            created_on=_parse_datetime(data.get("created_on")),
        )

    def to_dict(self, populate: bool = True) -> Dict[str, Any]:
        application = self.application_id
        if populate and self.application is not None:
            application = self.application.to_dict()
        return {
            "id": self.id,
            "name": self.name,
            "is_active": self.is_active,
            "operator": self.operator,
            "conditions": [c.to_dict() for c in self.conditions],
            "application": application,
            "open_new_instance": self.open_new_instance,
            "open_not_foreground": self.open_not_foreground,
            "open_fresh": self.open_fresh,
            "use_app_executable": self.use_app_executable,
            "open_args": self.open_args,
            "created_on": self.created_on.isoformat(),
        }

    def validate(self) -> "Rule":
        _require_text("Rule", "name", self.name)
        if self.operator not in [op.value for op in RuleOperator]:
            raise ValidationError(f"Rule: unsupported operator {self.operator!r}")
        if not self.conditions:
            raise ValidationError("Rule: at least one condition is required")
        for condition in self.conditions:
            condition.validate()
        _require_text("Rule", "application", self.application_id)
        if not isinstance(self.open_args, str):
            raise ValidationError("Rule: 'open_args' must be a string")
        return self


@dataclass
class Preference:
    name: str
    status: bool = True
    created_on: datetime = field(default_factory=_now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Preference":
        _require_mapping("Preference", data)
        return cls(
            name=data.get("name", ""),
            status=bool(data.get("status", True)),
            created_on=_parse_datetime(data.get("created_on")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status,
            "created_on": self.created_on.isoformat(),
        }
