"""
Command-line access to the local Animus data.

    animus history --condition "Eczema" --scan-type skin
    animus export > animus_export.json
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from animus.core.constants import ALL_FILTER_VALUE
from animus.core.database import create_tables
from animus.core.exceptions import AnimusError, StorageError
from animus.core.logging_config import configure_logging
from animus.services.app_session import AppSession
from animus.shared_types.history import HistoryItem
from animus.shared_types.scan import ScanType
from animus.utils.display_utils import scan_type_name

logger = logging.getLogger(__name__)


def format_history_item(item: HistoryItem) -> str:
    date = item.effective_date or "undated"
    kind = scan_type_name(item.scan_type) if item.scan_type else "Medical History"
    return f"{date}  [{item.sync_status.value}]  {kind}: {item.condition}"


async def show_history(session: AppSession, condition: Optional[str], scan_type: Optional[str]) -> int:
    for warning in await session.start():
        print(f"Warning: {warning}", file=sys.stderr)
    items = await session.refresh_history(condition_filter=condition, scan_type=scan_type)
    history = session.last_history
    if history is not None and not history.remote_available:
        print("Warning: server unavailable, showing local history only", file=sys.stderr)
    if not items:
        print("No history entries.")
        return 0
    for item in items:
        print(format_history_item(item))
    return 0


def export_data(session: AppSession) -> int:
    print(json.dumps(session.profile.export_data(), indent=2, ensure_ascii=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="animus", description="Inspect locally stored Animus health data.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    history_parser = subparsers.add_parser("history", help="Show scan and medical history, newest first")
    history_parser.add_argument("--condition", default=None, help="Only show entries with this condition")
    history_parser.add_argument(
        "--scan-type",
        default=None,
        choices=[ALL_FILTER_VALUE] + [scan_type.value for scan_type in ScanType],
        help="Only show entries of this scan type",
    )

    subparsers.add_parser("export", help="Print all local data as JSON")
    return parser


def open_storage() -> None:
    try:
        create_tables()
    except SQLAlchemyError as e:
        raise StorageError("Could not open local storage.") from e


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    try:
        open_storage()
        session = AppSession()
        if args.command == "history":
            return asyncio.run(show_history(session, args.condition, args.scan_type))
        return export_data(session)
    except AnimusError as e:
        logger.error(f"{args.command} failed: {e.message}")
        print(f"{e.user_title}: {e.user_message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
