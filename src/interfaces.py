"""Core interfaces for the collaborators around the rule engine."""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional


class IDocumentStore(ABC):
    # applications
    @abstractmethod
    def list_applications(self) -> List:
        ...

    @abstractmethod
    def get_application(self, app_id: str):
        ...

    @abstractmethod
    def count_applications(self) -> int:
        ...

    @abstractmethod
    def create_application(self, application):
        ...

    @abstractmethod
    def update_application(self, app_id: str, values: Dict):
        ...

    @abstractmethod
    def delete_application(self, app_id: str) -> int:
        ...

    @abstractmethod
    def get_default_application(self):
        ...

    @abstractmethod
    def set_default_application(self, app_id: str):
        ...

    # rules
    @abstractmethod
    def list_rules(self, active_only: bool = False, populate: bool = True) -> List:
        ...

    @abstractmethod
    def get_rule(self, rule_id: str):
        ...

    @abstractmethod
    def create_rule(self, rule):
        ...

    @abstractmethod
    def update_rule(self, rule_id: str, values: Dict):
        ...

    @abstractmethod
    def delete_rule(self, rule_id: str) -> None:
        ...

    @abstractmethod
    def clear_rules(self) -> int:
        ...

    # preferences
    @abstractmethod
    def init_preferences(self) -> List:
        ...

    @abstractmethod
    def list_preferences(self) -> List:
        ...

    @abstractmethod
    def get_preference(self, name: str):
        ...

    @abstractmethod
    def preference_status(self, name: str) -> bool:
        ...

    @abstractmethod
    def set_preference(self, name: str, status: bool):
        ...

    @abstractmethod
    def toggle_preference(self, name: str):
        ...

    @abstractmethod
    def reset_all(self) -> None:
        ...


class ILauncher(ABC):
    @abstractmethod
    def open_with_rule(self, rule, target: str) -> List[str]:
        ...

    @abstractmethod
    def open_with_application(self, application, target: str) -> List[str]:
        ...

    @abstractmethod
    def running(self) -> int:
        ...


class IAutostartManager(ABC):
    @staticmethod
    @abstractmethod
    def manage_autostart(action: str) -> bool:
        ...

    @staticmethod
    @abstractmethod
    def is_installed() -> bool:
        ...


class IChooser(ABC):
    @abstractmethod
    def choose(self, target: str, reason: Optional[str] = None) -> None:
        ...
