"""Operator CLI for indexing, clearing and inspecting media inventories.

Usage::

    # Index a crawler batch (a JSON array of media records)
    python -m mediaquery.cli ingest --site-key example.com --file batch.json

    # Remove every record and embedding of a site
    python -m mediaquery.cli clear-site --site-key example.com --yes

    # List indexed sites, freshest first
    python -m mediaquery.cli sites --limit 20

    # Print a random API key for the X-API-Key header
    python -m mediaquery.cli generate-api-key
"""

from __future__ import annotations

import argparse
import asyncio
import json
import secrets
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from mediaquery.utils.errors import MediaQueryError


def _build_stores() -> dict[str, Any]:
    from mediaquery.config.loader import load_config
    from mediaquery.config.settings import Settings
    from mediaquery.main import build_stores

    app_settings = Settings()
    return build_stores(app_settings, load_config(settings=app_settings))


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_ingest(args: argparse.Namespace) -> int:
    """Run the ingestion pipeline over a JSON batch file."""
    from mediaquery.config.settings import Settings
    from mediaquery.services.ingestion_service import MediaIngestionService

    path = Path(args.file)
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        return 1
    try:
        batch = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        print(f"Error: {path} is not valid JSON: {exc}", file=sys.stderr)
        return 1

    app_settings = Settings()
    stores = _build_stores()
    await stores["media_store"].initialize()
    service = MediaIngestionService(
        media_store=stores["media_store"],
        embedding_provider=stores["embeddings"],
        vector_store=stores["vector_store"],
        max_batch_size=app_settings.max_batch_size,
        embedding_concurrency=app_settings.embedding_concurrency,
    )

    try:
        summary = await service.ingest(args.site_key, batch)
    except MediaQueryError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        for detail in exc.to_payload().get("details") or []:
            print(f"  {detail}", file=sys.stderr)
        return 1

    print(f"Indexed:    {summary.indexed}")
    print(f"Embeddings: {summary.embeddings}")
    print(f"Chunks:     {summary.chunks}")
    return 0


async def _handle_clear_site(args: argparse.Namespace) -> int:
    """Delete a site's records from both stores."""
    from mediaquery.services.deletion_service import DeletionService

    if not args.yes:
        print(
            f"Refusing to clear '{args.site_key}' without --yes.",
            file=sys.stderr,
        )
        return 1

    stores = _build_stores()
    await stores["media_store"].initialize()
    service = DeletionService(stores["media_store"], stores["vector_store"])
    try:
        deleted = await service.clear_site(args.site_key)
    except MediaQueryError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Deleted {deleted} records from {args.site_key}.")
    return 0


async def _handle_sites(args: argparse.Namespace) -> int:
    """Print indexed sites as a table."""
    stores = _build_stores()
    media_store = stores["media_store"]
    await media_store.initialize()
    sites = await media_store.list_sites(limit=args.limit)

    if not sites:
        print("No sites indexed.")
        return 0

    print(f"{'SITE':<40} {'RECORDS':>8}  LAST INDEXED")
    for site in sites:
        when = (
            datetime.fromtimestamp(site.last_indexed / 1000, tz=timezone.utc).isoformat(
                timespec="seconds"
            )
            if site.last_indexed
            else "-"
        )
        print(f"{site.site_key:<40} {site.count:>8}  {when}")
    return 0


def _handle_generate_api_key() -> int:
    print(secrets.token_hex(32))
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _limit(value: str) -> int:
    number = int(value)
    if not 1 <= number <= 1000:
        raise argparse.ArgumentTypeError("limit must be between 1 and 1000")
    return number


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the mediaquery CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m mediaquery.cli",
        description="Manage mediaquery media inventories.",
    )
    subparsers = parser.add_subparsers(dest="command", help="mediaquery commands")

    # -- ingest --
    ingest_parser = subparsers.add_parser("ingest", help="Index a crawler batch from a JSON file")
    ingest_parser.add_argument("--site-key", required=True, help="Site the batch belongs to")
    ingest_parser.add_argument("--file", required=True, help="Path to a JSON array of media records")

    # -- clear-site --
    clear_parser = subparsers.add_parser("clear-site", help="Delete every record of a site")
    clear_parser.add_argument("--site-key", required=True, help="Site to clear")
    clear_parser.add_argument(
        "--yes", action="store_true", help="Confirm the deletion (required)"
    )

    # -- sites --
    sites_parser = subparsers.add_parser("sites", help="List indexed sites")
    sites_parser.add_argument(
        "--limit", type=_limit, default=50, help="Maximum sites to list (default: 50)"
    )

    # -- generate-api-key --
    subparsers.add_parser("generate-api-key", help="Print a random API key")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "generate-api-key":
        exit_code = _handle_generate_api_key()
    elif args.command == "ingest":
        exit_code = asyncio.run(_handle_ingest(args))
    elif args.command == "clear-site":
        exit_code = asyncio.run(_handle_clear_site(args))
    elif args.command == "sites":
        exit_code = asyncio.run(_handle_sites(args))
    else:
        parser.print_help()
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
