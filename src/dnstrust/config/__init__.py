"""Configuration models, YAML loading and logging setup."""

from .config_schema import DnstrustConfig, LoggingConfig, ResolverConfig
from .logging_config import init_logging

__all__ = ["DnstrustConfig", "LoggingConfig", "ResolverConfig", "init_logging"]
