"""Command-line entry point: one-off cycles, the scheduled loop, and maintenance.

Usage:
    raindrop-sync run [--force]
    raindrop-sync watch
    raindrop-sync cleanup-duplicates
    raindrop-sync clear --yes
    raindrop-sync history [--limit N]
"""

from __future__ import annotations

import argparse
import asyncio
import locale
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from raindrop_sync.adapters.bookmarks.chrome import ChromeBookmarksFile
from raindrop_sync.config import load_config, validate_access_token
from raindrop_sync.core.logging_utils import setup_json_logging
from raindrop_sync.db.session import DatabaseSessionManager
from raindrop_sync.services.scheduler import SchedulerService
from raindrop_sync.sync.history import SyncHistory
from raindrop_sync.sync.orchestrator import SyncOrchestrator

if TYPE_CHECKING:
    from raindrop_sync.config import AppConfig

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        prog="raindrop-sync",
        description="Synchronize Raindrop.io collections with a Chrome bookmarks file",
        allow_abbrev=False,
    )
    parser.add_argument(
        "--bookmarks-file",
        type=Path,
        help="Chrome 'Bookmarks' JSON file to sync (overrides BOOKMARKS_FILE).",
    )
    parser.add_argument(
        "--db-path",
        type=Path,
        help="Override the configured SQLite path for this run.",
    )
    parser.add_argument(
        "--mode",
        choices=["mirror", "additions_only", "off", "upload_only"],
        help="Override RAINDROP_TWO_WAY_MODE for this run.",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level for this session.",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    run = commands.add_parser("run", help="Run a single sync cycle.")
    run.add_argument("--force", action="store_true", help="Ignore quiet hours.")
    commands.add_parser("watch", help="Sync on the configured interval until interrupted.")
    commands.add_parser(
        "cleanup-duplicates", help="Remove same-URL bookmarks under the sync root."
    )
    clear = commands.add_parser("clear", help="Delete every bookmark and folder created by sync.")
    clear.add_argument("--yes", action="store_true", help="Confirm the deletion.")
    history = commands.add_parser("history", help="Show recent sync cycles.")
    history.add_argument("--limit", type=int, default=10, help="Number of entries to show.")
    return parser.parse_args(argv)


def _prepare_config(args: argparse.Namespace) -> AppConfig:
    overrides: dict[str, Any] = {}
    runtime: dict[str, Any] = {}
    if args.db_path:
        runtime["db_path"] = str(args.db_path)
    if args.bookmarks_file:
        runtime["bookmarks_file"] = str(args.bookmarks_file)
    if args.log_level:
        runtime["log_level"] = args.log_level
    if runtime:
        overrides["runtime"] = runtime
    if args.mode:
        overrides["sync"] = {"mode": args.mode}
    return load_config(**overrides)


def _build_orchestrator(cfg: AppConfig, db: DatabaseSessionManager) -> SyncOrchestrator:
    if not cfg.runtime.bookmarks_file:
        msg = "No bookmarks file configured. Set BOOKMARKS_FILE or pass --bookmarks-file."
        raise SystemExit(msg)
    store = ChromeBookmarksFile(cfg.runtime.bookmarks_file)
    return SyncOrchestrator(cfg, store=store, db=db)


async def _watch(cfg: AppConfig, orchestrator: SyncOrchestrator) -> None:
    scheduler = SchedulerService(cfg, orchestrator)
    await scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        await scheduler.stop()


def _use_system_collation() -> None:
    # title sorting follows LC_COLLATE
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as exc:
        logger.warning("locale_collation_unavailable", extra={"error": str(exc)})


async def run_sync_cli(args: argparse.Namespace) -> int:
    cfg = _prepare_config(args)
    setup_json_logging(cfg.runtime.log_level, log_file=cfg.runtime.log_file)
    _use_system_collation()

    db = DatabaseSessionManager(cfg.runtime.db_path)
    db.migrate()
    try:
        if args.command == "history":
            for entry in SyncHistory(db).recent(args.limit):
                print(f"{str(entry.created_at)[:19]}  {entry.status:<8}  {entry.details or ''}")
            return 0

        if args.command in {"run", "watch"}:
            try:
                validate_access_token(cfg.raindrop.access_token)
            except ValueError as exc:
                logger.error("raindrop_access_token_invalid", extra={"error": str(exc)})
                return 1

        orchestrator = _build_orchestrator(cfg, db)

        if args.command == "run":
            result = await orchestrator.run_cycle(force=args.force)
            if result is None:
                print("A sync cycle is already running.")
                return 1
            print(f"Sync {result.status}: {result.reason or result.summary()}")
            for error in result.errors:
                print(f"  - {error}")
            return 0 if result.status in {"success", "skipped"} else 1

        if args.command == "watch":
            await _watch(cfg, orchestrator)
            return 0

        if args.command == "cleanup-duplicates":
            removed = await orchestrator.cleanup_duplicates()
            print(f"Removed {removed or 0} duplicate bookmarks.")
            return 0

        if args.command == "clear":
            if not args.yes:
                print("Refusing to delete synced bookmarks without --yes.")
                return 1
            cleared = await orchestrator.clear_synced_bookmarks()
            if cleared is not None:
                print(
                    f"Removed {cleared.bookmarks_removed} bookmarks and "
                    f"{cleared.folders_removed} folders."
                )
            return 0
    finally:
        db.close()

    return 1


def main(argv: list[str] | None = None) -> int:
    """Entry point for ``raindrop-sync`` and ``python -m raindrop_sync.cli.sync``."""
    args = parse_args(argv)
    try:
        return asyncio.run(run_sync_cli(args))
    except KeyboardInterrupt:  # pragma: no cover - user cancelled
        return 1
    except Exception as exc:
        logger.exception("cli_sync_failed", exc_info=exc)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
