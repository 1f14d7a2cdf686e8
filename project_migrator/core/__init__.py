"""Core module for the project migrator service."""
from .config import settings
from .exceptions import MigratorError, NotAuthenticatedError
from .logging import get_logger, logger

__all__ = [
    "settings",
    "MigratorError",
    "NotAuthenticatedError",
    "get_logger",
    "logger",
]
