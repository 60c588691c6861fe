from typing import Any, Dict, Optional


class SchedulerError(Exception):
    """Base class for scheduler exceptions."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigError(SchedulerError):
    """Raised when the scheduler configuration is invalid."""


class InvalidBatchError(SchedulerError):
    """Raised when a batch cannot be handed to the scheduler at all."""

    def __init__(self, message: str, issues=None):
        super().__init__(message, {"issues": list(issues or [])})
        self.issues = list(issues or [])
