"""
versionstore CLI — Save, read and browse document versions.

Commands:
- versionstore save NAME      — Store stdin (or --file) as a new version
- versionstore read NAME      — Print the current (or --version) content
- versionstore versions NAME  — Recent versions, newest first
- versionstore list           — Documents that have a current version

Global options --config and --root pick the store; the DIRECTORY environment
variable overrides the configured root.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from versionstore.documents.catalog import CatalogIndex
from versionstore.documents.ids import describe_age
from versionstore.documents.version_log import VersionLog
from versionstore.engine.config import VersionStoreConfig, load_config
from versionstore.engine.errors import (
    ConfigError,
    InvalidNameError,
    NotFoundError,
    StoreIOError,
)
from versionstore.engine.logging import init_logging, log, log_system_event, shutdown_logging

logger = logging.getLogger("versionstore.cli")

DEFAULT_HISTORY_LIMIT = 10


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="versionstore",
        description="versionstore — versioned document store",
    )
    parser.add_argument("--config", help="Path to versionstore.yaml (default: auto-discover)")
    parser.add_argument("--root", help="Store root directory (overrides config)")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # versionstore save
    save_parser = subparsers.add_parser("save", help="Save a new version of a document")
    save_parser.add_argument("name", help="Document name")
    save_parser.add_argument("--file", "-f", help="Read content from this file (default: stdin)")

    # versionstore read
    read_parser = subparsers.add_parser("read", help="Print a document's content")
    read_parser.add_argument("name", help="Document name")
    read_parser.add_argument("--version", "-v", help="Version id (default: current)")

    # versionstore versions
    versions_parser = subparsers.add_parser("versions", help="List recent versions, newest first")
    versions_parser.add_argument("name", help="Document name")
    versions_parser.add_argument(
        "--limit", "-n", type=int, default=DEFAULT_HISTORY_LIMIT,
        help=f"Maximum versions to show (default: {DEFAULT_HISTORY_LIMIT}, 0 for all)",
    )
    versions_parser.add_argument(
        "--relative", action="store_true", help="Show ages like '5 minutes ago'",
    )

    # versionstore list
    list_parser = subparsers.add_parser("list", help="List documents")
    list_parser.add_argument(
        "--long", "-l", action="store_true", help="Include current version and version count",
    )

    return parser


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        config = _load(args)
    except ConfigError as e:
        print(f"[ERROR] {e.message}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=config.logging.level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if config.logging.events:
        queue_cfg = config.logging.async_queue
        init_logging(
            log_dir=config.logging.directory,
            flush_interval_ms=queue_cfg.flush_interval_ms,
            flush_batch_size=queue_cfg.flush_batch_size,
            max_queue_size=queue_cfg.max_queue_size,
        )
        log(log_system_event("cli_command", details={"command": args.command, "root": config.store.root}))

    commands = {
        "save": cmd_save,
        "read": cmd_read,
        "versions": cmd_versions,
        "list": cmd_list,
    }
    try:
        return commands[args.command](args, config)
    except InvalidNameError as e:
        print(f"[ERROR] Invalid document name: {e.message}", file=sys.stderr)
        return 1
    except NotFoundError as e:
        print(f"[ERROR] {e.message}", file=sys.stderr)
        return 1
    except StoreIOError as e:
        print(f"[ERROR] Storage failure: {e.message}", file=sys.stderr)
        return 1
    finally:
        shutdown_logging()


def _load(args: argparse.Namespace) -> VersionStoreConfig:
    config = load_config(args.config)
    if args.root:
        config = config.model_copy(
            update={"store": config.store.model_copy(update={"root": args.root})}
        )
    return config


def cmd_save(args: argparse.Namespace, config: VersionStoreConfig) -> int:
    """Save stdin or --file as a new version; prints the version id."""
    if args.file:
        try:
            with open(args.file, "r", encoding="utf-8", newline="") as f:
                content = f.read()
        except OSError as e:
            print(f"[ERROR] Cannot read {args.file}: {e}", file=sys.stderr)
            return 1
    else:
        content = sys.stdin.read()

    version_id = VersionLog.from_config(config).save(args.name, content)
    print(version_id)
    return 0


def cmd_read(args: argparse.Namespace, config: VersionStoreConfig) -> int:
    content = VersionLog.from_config(config).read(args.name, args.version)
    sys.stdout.write(content)
    return 0


def recent_versions(versions: List[str], limit: int) -> List[str]:
    """Newest-first tail of an ascending version list; limit <= 0 keeps all."""
    tail = versions if limit <= 0 else versions[-limit:]
    return list(reversed(tail))


def cmd_versions(args: argparse.Namespace, config: VersionStoreConfig) -> int:
    """Print recent versions, marking the current one with '*'."""
    store = VersionLog.from_config(config)
    versions = recent_versions(store.list_versions(args.name), args.limit)
    if not versions:
        print(f"No versions of '{args.name}'", file=sys.stderr)
        return 0

    current = store.current_version(args.name)
    for version_id in versions:
        marker = "*" if version_id == current else " "
        label = f"  ({describe_age(version_id)})" if args.relative else ""
        print(f"{marker} {version_id}{label}")
    return 0


def cmd_list(args: argparse.Namespace, config: VersionStoreConfig) -> int:
    catalog = CatalogIndex.from_config(config)
    if args.long:
        for row in catalog.summaries():
            print(f"{row.name}\t{row.current_version}\t{row.version_count}")
    else:
        for name in catalog.sorted_documents():
            print(name)
    return 0


if __name__ == "__main__":
    sys.exit(main())
