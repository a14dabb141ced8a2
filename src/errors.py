"""Exceptions raised by the dispatcher core and its collaborators."""


class DispatcherError(Exception):
    """Base class for every error raised by BrowserDispatcher."""


class InvalidPattern(DispatcherError, ValueError):
    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


class UnknownOperand(DispatcherError, LookupError):
    def __init__(self, uid):
        super().__init__(f"Unknown condition operand: {uid!r}")
        self.uid = uid


class UnknownOperator(DispatcherError, LookupError):
    def __init__(self, uid):
        super().__init__(f"Unknown condition operator: {uid!r}")
        self.uid = uid


class MalformedUrl(DispatcherError, ValueError):
    def __init__(self, value: str, reason: str = ""):
        message = f"Malformed URL: {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.value = value


class ValidationError(DispatcherError, ValueError):
    pass


class RecordNotFound(DispatcherError, LookupError):
    def __init__(self, kind: str, key):
        super().__init__(f"{kind} not found: {key}")
        self.kind = kind
        self.key = key


class LaunchError(DispatcherError):
    pass
