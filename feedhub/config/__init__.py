"""Configuration - settings, logging and source seeds."""

from .settings import Settings, settings
from .sources import SourceSeed, load_source_seeds

__all__ = ["Settings", "settings", "SourceSeed", "load_source_seeds"]
