"""Custom exception hierarchy for the episode access automation."""

from typing import Optional


class NovelGateError(Exception):
    """Base exception for all novelgate errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# ---- Configuration Errors ----

class ConfigMissingError(NovelGateError):
    """A required setting, key or token is not configured."""

    def __init__(self, setting: str, message: str = ""):
        msg = message or f"Setting not configured: {setting}"
        super().__init__(msg, {"setting": setting})
        self.setting = setting


# ---- Lookup Errors ----

class NotFoundError(NovelGateError):
    """Episode, series or taxonomy term does not exist."""


# ---- Remote Call Errors ----

class RemoteCallFailedError(NovelGateError):
    """Transport error or non-2xx response from Gemini or Patreon."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        details = {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details)
        self.status_code = status_code
        self.body = body


class MalformedResponseError(NovelGateError):
    """AI output could not be parsed into the expected structure."""

    def __init__(self, message: str = "Failed to parse AI response", raw_response: str = ""):
        details = {"raw_response": raw_response[:200]} if raw_response else {}
        super().__init__(message, details)
        self.raw_response = raw_response


# ---- Database Errors ----

class DatabaseError(NovelGateError):
    """Database operation failed."""


# ---- Validation Errors ----

class ValidationError(NovelGateError):
    """Input validation failed."""


class InvalidScheduleError(ValidationError):
    """A stored or submitted unlock schedule is invalid."""


class InvalidCommandError(ValidationError):
    """A structured command is missing fields or has an unknown access type."""
