"""Command-line interface for chromaprofiles."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from chromaprofiles.core.archives import ArchiveExtractor, FileLifecycleManager
from chromaprofiles.core.config import AppConfig, configure_logging, load_app_config
from chromaprofiles.core.downloaders import GoogleDriveDownloader
from chromaprofiles.core.links import (
    candidate_links_from_post,
    canonical_google_download_url,
    google_drive_resolver,
)
from chromaprofiles.core.links.analyzer import LinkAnalyzer
from chromaprofiles.core.links.batch import BatchReport, analyze_pending_links
from chromaprofiles.core.parsers import LightingProfileParser, ProfileParseError
from chromaprofiles.core.store import LinkStoreSync, StoreError, create_link_store

console = Console()
logger = logging.getLogger(__name__)


def _load_config(args: argparse.Namespace) -> AppConfig:
    config = load_app_config(args.config)
    if getattr(args, "db", None):
        store = config.store.model_copy(update={"backend": "sqlite", "db_path": Path(args.db)})
        config = config.model_copy(update={"store": store})
    return config


def _open_store(config: AppConfig) -> LinkStoreSync:
    store = create_link_store(config.store)
    store.initialize()
    return store


async def run_analysis_async(config: AppConfig, store: LinkStoreSync) -> BatchReport:
    """Run one batch over the store's pending links."""
    download = config.download
    lifecycle = FileLifecycleManager(download.download_dir, download.archive_dir)
    extractor = ArchiveExtractor(
        max_members=download.max_members,
        max_extracted_bytes=download.max_extracted_bytes,
    )

    async with GoogleDriveDownloader.from_config(config.google_drive, download) as drive:
        analyzer = LinkAnalyzer(
            [drive],
            lifecycle,
            extractor=extractor,
            member_suffix=download.member_suffix,
        )
        return await analyze_pending_links(store, analyzer)


def run_analyze(args: argparse.Namespace) -> int:
    """Analyze all pending links and report counts."""
    try:
        config = _load_config(args)
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[red]ERROR: Could not load config: {e}[/red]")
        return 1

    configure_logging(config)
    if not config.google_drive.api_key:
        console.print("[yellow]WARNING: GOOGLE_API_KEY is not set[/yellow]")

    try:
        store = _open_store(config)
    except StoreError as e:
        console.print(f"[red]ERROR: {e}[/red]")
        return 1

    try:
        report = asyncio.run(run_analysis_async(config, store))
    finally:
        store.close()

    table = Table(title="Link analysis")
    table.add_column("Processed", justify="right")
    table.add_column("Analyzed", justify="right")
    table.add_column("Imported", justify="right")
    table.add_row(str(report.processed), str(report.analyzed), str(report.imported))
    console.print(table)
    if report.halted:
        console.print("[yellow]Batch halted: provider asked to retry later[/yellow]")
    return 0


def run_add_links(args: argparse.Namespace) -> int:
    """Register candidate links for a post."""
    try:
        config = _load_config(args)
        store = _open_store(config)
    except (ValueError, FileNotFoundError, StoreError) as e:
        console.print(f"[red]ERROR: {e}[/red]")
        return 1

    try:
        links = candidate_links_from_post(args.post_id, args.urls)
        added = sum(1 for link in links if store.insert_link(link))
    finally:
        store.close()

    console.print(f"[green]Added {added} link(s)[/green] ({len(links) - added} already known)")
    return 0


def run_resolve(args: argparse.Namespace) -> int:
    """Print the provider file id and canonical URL for a link."""
    file_id = google_drive_resolver().resolve(args.url)
    if file_id is None:
        console.print(f"[yellow]Unsupported link:[/yellow] {args.url}")
        return 1
    console.print(f"[bold]File id:[/bold] {file_id}")
    console.print(f"[bold]Download URL:[/bold] {canonical_google_download_url(file_id)}")
    return 0


def run_parse(args: argparse.Namespace) -> int:
    """Parse one lighting XML file and print its content."""
    try:
        parsed = LightingProfileParser().parse(Path(args.file))
    except FileNotFoundError as e:
        console.print(f"[red]ERROR: {e}[/red]")
        return 1
    except ProfileParseError as e:
        console.print(f"[red]ERROR: Unreadable lighting file: {e}[/red]")
        return 1

    console.print(f"[bold]Name:[/bold] {parsed.name or '-'}")
    console.print(f"[bold]Devices:[/bold] {', '.join(parsed.devices) or '-'}")
    console.print(f"[bold]Colours:[/bold] {', '.join(parsed.colours) or '-'}")
    console.print(f"[bold]Effects:[/bold] {', '.join(parsed.effects) or '-'}")
    if parsed.is_usable:
        console.print("[green]Usable lighting effect[/green]")
    else:
        console.print("[yellow]Not usable: needs at least one device and one colour[/yellow]")
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for CLI."""
    p = argparse.ArgumentParser(
        prog="chromaprofiles",
        description="chromaprofiles - collect lighting-effect profiles from shared links",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    analyze = sub.add_parser("analyze", help="Analyze all pending links")
    analyze.add_argument("--config", default=None, help="Path to app config (YAML or JSON)")
    analyze.add_argument("--db", default=None, help="SQLite database path (overrides config)")
    analyze.set_defaults(handler=run_analyze)

    add_links = sub.add_parser("add-links", help="Register candidate links for a post")
    add_links.add_argument("--post-id", required=True, help="Parent post identifier")
    add_links.add_argument("urls", nargs="+", help="Link URLs")
    add_links.add_argument("--config", default=None, help="Path to app config (YAML or JSON)")
    add_links.add_argument("--db", default=None, help="SQLite database path (overrides config)")
    add_links.set_defaults(handler=run_add_links)

    resolve = sub.add_parser("resolve", help="Show the provider file id for a link")
    resolve.add_argument("url", help="Link URL")
    resolve.set_defaults(handler=run_resolve)

    parse = sub.add_parser("parse", help="Parse one lighting XML file")
    parse.add_argument("file", help="Path to the XML file")
    parse.set_defaults(handler=run_parse)

    return p


def main(argv: list[str] | None = None) -> None:
    """Main entry point for CLI."""
    args = build_arg_parser().parse_args(argv)
    sys.exit(args.handler(args))


if __name__ == "__main__":
    main()
