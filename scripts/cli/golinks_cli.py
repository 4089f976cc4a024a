#!/usr/bin/env python3
"""
Command-line interface for a go links snapshot file.

Works directly on the db file, so do not point it at a file that a running
service owns.

Usage:
    python golinks_cli.py set <key> <url>
    python golinks_cli.py get <key>
    python golinks_cli.py delete <key>
    python golinks_cli.py list [--limit N]
    python golinks_cli.py stats
    python golinks_cli.py dump
"""

import argparse
import asyncio
import json
import sys
import os
from typing import Optional

# Add repository root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from golinks.common.logging_config import setup_logging
from golinks.common.validators import normalize_target
from golinks.exceptions import InvalidInputError, RecoveryError
from golinks.service import GoLinksService


WRITE_COMMANDS = {"set", "delete"}


def _print_error(message: str) -> None:
    print(json.dumps({
        "success": False,
        "error": message,
    }, indent=2), file=sys.stderr)


class GoLinksCLI:
    """Command-line interface for go links."""

    def __init__(self, db_path: str, fsync: bool = True, verbose: bool = False):
        """Initialize CLI."""
        self.db_path = db_path
        self.fsync = fsync
        self.verbose = verbose
        self.logger = setup_logging(level="DEBUG" if verbose else "WARNING")
        self.service: Optional[GoLinksService] = None

    def initialize(self, start_worker: bool = False) -> None:
        """Recover the store and optionally start the persistence worker.

        Raises:
            RecoveryError: If the db file cannot be recovered
        """
        self.logger.info(f"Opening {self.db_path}...")
        self.service = GoLinksService.open(
            db_path=self.db_path,
            fsync=self.fsync,
            logger=self.logger,
        )
        if start_worker:
            self.service.start()

    async def cleanup(self):
        """Stop the worker; writes the final snapshot if it was started."""
        if self.service:
            await self.service.close()

    async def set(self, key: str, url: str):
        """Create or update a go link."""
        try:
            record = await self.service.set_link(key, url)
        except InvalidInputError as e:
            _print_error(str(e))
            return 1

        print(json.dumps({
            "success": True,
            **record.to_dict(),
            "message": f"'{key}' now points to {record.target}",
        }, indent=2))
        return 0

    async def get(self, key: str):
        """Show the record for a key."""
        record = await self.service.get_link(key)

        if record is None:
            _print_error(f"Key '{key}' not found")
            return 1

        print(json.dumps({
            "success": True,
            **record.to_dict(),
            "redirect_to": normalize_target(record.target),
        }, indent=2))
        return 0

    async def delete(self, key: str):
        """Delete a go link."""
        try:
            deleted = await self.service.delete_link(key)
        except InvalidInputError as e:
            _print_error(str(e))
            return 1

        if not deleted:
            _print_error(f"Key '{key}' not found")
            return 1

        print(json.dumps({"success": True, "key": key, "deleted": True}, indent=2))
        return 0

    async def list_links(self, limit: int = 100):
        """List recently updated links."""
        records = await self.service.list_links(limit)

        print(json.dumps({
            "success": True,
            "count": len(records),
            "links": [record.to_dict() for record in records],
        }, indent=2))
        return 0

    async def stats(self):
        """Show store statistics."""
        stats = await self.service.get_statistics()

        print(json.dumps({"success": True, "statistics": stats}, indent=2))
        return 0

    async def dump(self):
        """Print every record, ordered by key."""
        entries = self.service.store.snapshot_copy()

        print(json.dumps({
            "success": True,
            "count": len(entries),
            "entries": {key: entries[key].to_dict() for key in sorted(entries)},
        }, indent=2))
        return 0


async def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Go Links CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Point a key at a URL
  %(prog)s set docs example.com/docs

  # Show a key
  %(prog)s get docs

  # Delete a key
  %(prog)s delete docs

  # List recently updated links
  %(prog)s list --limit 10

  # Dump the whole db file
  %(prog)s --db-path /var/lib/golinks/golinks.db dump
        """
    )

    parser.add_argument(
        "--db-path",
        default=os.getenv("DB_PATH", "golinks.db"),
        help="Snapshot file path (default: from DB_PATH env or golinks.db)"
    )

    parser.add_argument(
        "--no-fsync",
        action="store_true",
        help="Skip fsync when writing the snapshot"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    set_parser = subparsers.add_parser("set", help="Create or update a go link")
    set_parser.add_argument("key", help="Go link key")
    set_parser.add_argument("url", help="Target URL")

    get_parser = subparsers.add_parser("get", help="Show a go link")
    get_parser.add_argument("key", help="Go link key")

    delete_parser = subparsers.add_parser("delete", help="Delete a go link")
    delete_parser.add_argument("key", help="Go link key")

    list_parser = subparsers.add_parser("list", help="List recently updated go links")
    list_parser.add_argument("--limit", type=int, default=100, help="Maximum number to return")

    subparsers.add_parser("stats", help="Show store statistics")
    subparsers.add_parser("dump", help="Print every record in the db file")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    cli = GoLinksCLI(
        db_path=args.db_path,
        fsync=not args.no_fsync,
        verbose=args.verbose,
    )

    try:
        cli.initialize(start_worker=args.command in WRITE_COMMANDS)
    except RecoveryError as e:
        _print_error(f"Cannot open db: {e}")
        return 2

    try:
        if args.command == "set":
            return await cli.set(args.key, args.url)
        elif args.command == "get":
            return await cli.get(args.key)
        elif args.command == "delete":
            return await cli.delete(args.key)
        elif args.command == "list":
            return await cli.list_links(args.limit)
        elif args.command == "stats":
            return await cli.stats()
        elif args.command == "dump":
            return await cli.dump()
        else:
            parser.print_help()
            return 1

    finally:
        await cli.cleanup()


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
