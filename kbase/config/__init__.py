"""Configuration module: exports Settings and load_config."""

from kbase.config.loader import load_config
from kbase.config.settings import Settings

__all__ = ["Settings", "load_config"]
