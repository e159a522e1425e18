"""Core configuration, logging and error helpers."""

from link_manager.core.config import Settings, get_settings
from link_manager.core.errors import error_response, get_request_id, new_request_id
from link_manager.core.logging import get_logger, setup_logging

__all__ = [
    "Settings",
    "error_response",
    "get_logger",
    "get_request_id",
    "get_settings",
    "new_request_id",
    "setup_logging",
]
