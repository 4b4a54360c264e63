"""Source registry - acceptance, removal and seeding."""

from .registry import SourceRegistry

__all__ = ["SourceRegistry"]
