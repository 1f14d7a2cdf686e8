"""Migrate module: compare configuration between two projects."""
from .client import ManagementAPIClient, ManagementAPIError
from .diff import json_diff, calculate_diff
from .routes import router
from .services import PreviewService

__all__ = [
    "ManagementAPIClient",
    "ManagementAPIError",
    "json_diff",
    "calculate_diff",
    "router",
    "PreviewService",
]
