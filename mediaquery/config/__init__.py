"""Configuration module: exports Settings and load_config."""

from mediaquery.config.loader import load_config
from mediaquery.config.settings import Settings

__all__ = ["Settings", "load_config"]
