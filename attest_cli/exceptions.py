"""Error taxonomy for attest.

InputError and ConfigurationError abort a run before any commit is scored.
RenderError is raised per output format and never invalidates the formats
that were already written.
"""

from typing import Dict, Optional


class AttestError(Exception):
    """Base exception for all attest errors."""

    category = "Error"
    exit_code = 1

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class InputError(AttestError):
    """The supplied commit records are malformed or could not be loaded."""

    category = "InputError"
    exit_code = 1

    def __init__(self, message: str, record: Optional[str] = None, field: Optional[str] = None):
        details = {}
        if record is not None:
            details["record"] = record
        if field is not None:
            details["field"] = field
        super().__init__(message, details=details)
        self.record = record
        self.field = field


class ConfigurationError(AttestError):
    """The catalog or threshold configuration is missing or inconsistent."""

    category = "ConfigurationError"
    exit_code = 1

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message, details={"key": key} if key else None)
        self.key = key


class RenderError(AttestError):
    """A requested output format could not be produced or written."""

    category = "RenderError"
    exit_code = 2

    def __init__(self, fmt: str, reason: str, path: Optional[str] = None):
        details = {"format": fmt}
        if path:
            details["path"] = path
        super().__init__(f"Could not render {fmt} report: {reason}", details=details)
        self.fmt = fmt
        self.reason = reason
        self.path = path
