"""
Core module initialization.
Exports configuration, logging and error utilities.
"""

from foodorder.core.config import get_settings, setup_logging, Settings, EnvironmentMode
from foodorder.core.errors import OrderingError

__all__ = ["get_settings", "setup_logging", "Settings", "EnvironmentMode", "OrderingError"]
