"""Blog platform classification."""

from .interfaces import BlogPlatform, ClassifierInterface
from .classifier import PlatformClassifier, classify

__all__ = ["BlogPlatform", "ClassifierInterface", "PlatformClassifier", "classify"]
