"""URL-pattern classifier for blog platforms."""

import re
from typing import Pattern, Tuple

from .interfaces import BlogPlatform, ClassifierInterface


class PlatformClassifier(ClassifierInterface):
    """Maps a feed URL to a blog platform.

    Rules are evaluated in order and the first match wins, so more specific
    patterns must come before broader ones. The last rule matches anything.
    """

    RULES: Tuple[Tuple[BlogPlatform, str], ...] = (
        (BlogPlatform.MEDIUM, r"^https://medium\.com"),
        (BlogPlatform.TISTORY, r"^https://[a-zA-Z0-9\-]+\.tistory\.com"),
        (BlogPlatform.VELOG, r"^https://v2\.velog\.io"),
        (BlogPlatform.GITHUB, r"^https://[\w\-]+\.github\.io"),
        (BlogPlatform.ETC, r".*"),
    )

    def __init__(self):
        self._compile_patterns()

    def _compile_patterns(self):
        """Compile regex patterns for efficiency."""
        self.compiled: Tuple[Tuple[BlogPlatform, Pattern], ...] = tuple(
            (platform, re.compile(pattern)) for platform, pattern in self.RULES
        )

    def classify(self, rss_url: str) -> BlogPlatform:
        """Return the platform of the first matching rule."""
        if not isinstance(rss_url, str):
            return BlogPlatform.ETC

        for platform, pattern in self.compiled:
            if pattern.match(rss_url):
                return platform
        return BlogPlatform.ETC


_default_classifier = PlatformClassifier()


def classify(rss_url: str) -> BlogPlatform:
    """Classify with the module-level classifier."""
    return _default_classifier.classify(rss_url)
