#!/usr/bin/env python3
"""CLI tool to manage crawled sources."""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

load_dotenv()

from feedhub.config.logging import setup_logging
from feedhub.errors import SourceAlreadyRegistered
from feedhub.ingestion.interfaces import SourceState
from feedhub.sources.registry import SourceRegistry
from feedhub.storage.factory import get_feed_storage


def print_header(title):
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def cmd_add(args):
    """Accept a source and crawl it immediately."""
    registry = SourceRegistry(get_feed_storage())
    try:
        source, outcome = asyncio.run(registry.accept(args.name, args.url))
    except SourceAlreadyRegistered as e:
        print(f"\n  {e}")
        return 1

    print_header(f"ACCEPTED: {source.name}")
    print(f"\n  Id:       {source.id}")
    print(f"  Platform: {source.platform.value}")
    if outcome.success:
        print(f"  Entries:  {len(outcome.entries)} ingested")
    else:
        print(f"  First crawl failed: {outcome.error}")
    return 0


def cmd_list(args):
    """List sources."""
    storage = get_feed_storage()
    state = SourceState(args.state) if args.state else None
    sources = storage.list_sources(state=state)

    print_header(f"SOURCES ({len(sources)} found)")
    for source in sources:
        print(f"\n  [{source.id:4}] {source.name}")
        print(f"         {source.rss_url}")
        print(f"         platform={source.platform.value} state={source.state.value}")
    return 0


def cmd_remove(args):
    """Remove a source using the configured (or given) policy."""
    registry = SourceRegistry(get_feed_storage())
    deleted = registry.remove(args.id, policy=args.policy)
    if deleted is None:
        print(f"\n  No source with id {args.id}.")
        return 1
    print(f"\n  Removed source {args.id} ({deleted} entries deleted).")
    return 0


def cmd_import(args):
    """Accept every source listed in a seed file."""
    registry = SourceRegistry(get_feed_storage())
    stats = asyncio.run(registry.import_seeds(args.file))

    print_header("SEED IMPORT")
    print(f"\n  Accepted:    {stats['accepted']}")
    print(f"  Skipped:     {stats['skipped']}")
    print(f"  New entries: {stats['new_entries']}")
    for url, reason in stats["failures"].items():
        print(f"  Failed:      {url} ({reason})")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Manage feedhub sources")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    p = subparsers.add_parser("add", help="Accept a source and crawl it")
    p.add_argument("name", help="Blog display name")
    p.add_argument("url", help="RSS/Atom feed URL")

    p = subparsers.add_parser("list", help="List sources")
    p.add_argument("--state", choices=[s.value for s in SourceState], help="Filter by state")

    p = subparsers.add_parser("remove", help="Remove a source")
    p.add_argument("id", type=int, help="Source id")
    p.add_argument("--policy", choices=["retain", "cascade"], help="Override removal policy")

    p = subparsers.add_parser("import", help="Accept sources from a seed file")
    p.add_argument("--file", help="Path to sources.json (default from settings)")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        return 1

    setup_logging()
    commands = {
        "add": cmd_add,
        "list": cmd_list,
        "remove": cmd_remove,
        "import": cmd_import,
    }
    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
