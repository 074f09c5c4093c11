"""Configuration package: settings, logging, and exceptions."""

from config.exceptions import (
    NovelGateError,
    ConfigMissingError,
    NotFoundError,
    RemoteCallFailedError,
    MalformedResponseError,
    DatabaseError,
    ValidationError,
    InvalidScheduleError,
    InvalidCommandError,
)
from config.logging_config import setup_logging
from config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "NovelGateError",
    "ConfigMissingError",
    "NotFoundError",
    "RemoteCallFailedError",
    "MalformedResponseError",
    "DatabaseError",
    "ValidationError",
    "InvalidScheduleError",
    "InvalidCommandError",
]
