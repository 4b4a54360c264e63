"""Interface definitions for blog platform classification."""

from enum import Enum


class BlogPlatform(str, Enum):
    """Blog hosting platforms we recognise."""
    MEDIUM = "medium"
    TISTORY = "tistory"
    VELOG = "velog"
    GITHUB = "github"
    ETC = "etc"


class ClassifierInterface:
    """Interface for platform classification."""

    def classify(self, rss_url: str) -> BlogPlatform:
        """Classify a feed URL."""
        raise NotImplementedError
