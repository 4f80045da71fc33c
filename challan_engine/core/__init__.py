"""Core application modules."""

from .config import settings, get_settings
from .logging import get_logger, setup_logging

__all__ = ["settings", "get_settings", "get_logger", "setup_logging"]
