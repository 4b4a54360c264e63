"""Source seed configuration loader."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import List

from .settings import settings


@dataclass
class SourceSeed:
    """A blog to register from the seed file."""
    name: str
    rss_url: str


def load_source_seeds(config_path: str = None) -> List[SourceSeed]:
    """Load source seeds from a JSON file of the form {"sources": [...]}."""
    path = Path(config_path) if config_path else settings.sources_file

    with open(path) as f:
        data = json.load(f)

    return [
        SourceSeed(name=item["name"], rss_url=item["rss_url"])
        for item in data.get("sources", [])
    ]
