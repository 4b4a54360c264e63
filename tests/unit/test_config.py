"""Unit tests for configuration loading."""

import json
from pathlib import Path

import pytest

from feedhub.config.settings import Settings
from feedhub.config.sources import load_source_seeds
from feedhub.storage import factory


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        """Defaults are usable without any environment."""
        s = Settings(_env_file=None)
        assert s.page_size_max == 100
        assert s.source_removal_policy == "retain"
        assert s.database_url.startswith("sqlite:///")

    def test_env_override(self, monkeypatch):
        """FH_ prefixed variables override defaults."""
        monkeypatch.setenv("FH_CRAWL_MAX_CONCURRENCY", "9")
        monkeypatch.setenv("FH_FETCH_TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("FH_SOURCE_REMOVAL_POLICY", "cascade")

        s = Settings(_env_file=None)
        assert s.crawl_max_concurrency == 9
        assert s.fetch_timeout_seconds == 2.5
        assert s.source_removal_policy == "cascade"

    def test_invalid_policy_rejected(self, monkeypatch):
        """Only known removal policies validate."""
        monkeypatch.setenv("FH_SOURCE_REMOVAL_POLICY", "shred")
        with pytest.raises(ValueError):
            Settings(_env_file=None)


class TestSourceSeeds:
    """Tests for the seed file loader."""

    def test_load_seeds(self, tmp_path):
        """Should read name and rss_url for each seed."""
        path = tmp_path / "sources.json"
        path.write_text(json.dumps({"sources": [
            {"name": "Toss", "rss_url": "https://toss.tech/rss.xml"},
        ]}))

        seeds = load_source_seeds(str(path))
        assert len(seeds) == 1
        assert seeds[0].name == "Toss"
        assert seeds[0].rss_url == "https://toss.tech/rss.xml"

    def test_bundled_seed_file(self):
        """The shipped seed file parses."""
        path = Path(__file__).parent.parent.parent / "config" / "sources.json"
        seeds = load_source_seeds(str(path))
        assert seeds
        assert all(seed.rss_url.startswith("https://") for seed in seeds)


class TestDatabaseUrl:
    """Tests for storage URL resolution."""

    @pytest.mark.parametrize("raw,expected", [
        ("postgres://u:p@db:5432/feeds", "postgresql+psycopg://u:p@db:5432/feeds"),
        ("postgresql://u:p@db/feeds", "postgresql+psycopg://u:p@db/feeds"),
        ("sqlite:///tmp/feeds.db", "sqlite:///tmp/feeds.db"),
    ])
    def test_url_normalization(self, monkeypatch, raw, expected):
        """Bare postgres schemes are routed to psycopg."""
        monkeypatch.setenv("DATABASE_URL", raw)
        assert factory.get_database_url() == expected

    def test_is_postgres(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgres://db/feeds")
        assert factory.is_postgres() is True
        monkeypatch.setenv("DATABASE_URL", "sqlite:///feeds.db")
        assert factory.is_postgres() is False
