"""
Core application modules.
Contains configuration, logging, metrics, tracing and request middleware.
"""
from .config import Settings, ConfigError, load_settings

__all__ = ["Settings", "ConfigError", "load_settings"]
