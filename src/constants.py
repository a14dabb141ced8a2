"""Constants and fixed enumerations for BrowserDispatcher."""

from enum import Enum

__version__ = "1.0"

APP_NAME = "BrowserDispatcher"
LOGGER_NAME = "browserdispatcher"


class ConditionOperator(str, Enum):
    IS = "is"
    IS_NOT = "is_not"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    NOT_STARTS_WITH = "not_starts_with"
    ENDS_WITH = "ends_with"
    NOT_ENDS_WITH = "not_ends_with"
    REGEX = "regular_expression"


class ConditionOperand(str, Enum):
    URL = "url"
    APP = "app"
    HOST = "host"
    SCHEME = "scheme"
    PATH = "path"
    PORT = "port"
    EXTENSION = "extension"


class RuleOperator(str, Enum):
    ALL = "all"
    ANY = "any"


class Status(str, Enum):
    IS_APP_ENABLED = "is_app_enabled"
    IS_DEV_MODE = "is_dev_mode"
    IS_USE_DEFAULT = "is_use_default"


# name -> default status
DEFAULT_PREFERENCES = (
    (Status.IS_APP_ENABLED.value, True),
    (Status.IS_DEV_MODE.value, False),
    (Status.IS_USE_DEFAULT.value, False),
)

BROWSER_SCHEMES = ("http", "https", "ftp", "file")
DEFAULT_APPS_ROOT = "/Applications"
DEFAULT_BROWSER_NAME = "Safari"

# tuning
UI_HOST = "127.0.0.1"
UI_PORT = 9798
FORWARD_TIMEOUT = 2.0
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 5
TRAY_REFRESH_SEC = 2.0
