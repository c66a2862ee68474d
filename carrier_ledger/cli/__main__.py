from __future__ import annotations

import argparse
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import psycopg2

from carrier_ledger.config.loader import DEFAULT_CONFIG_PATH, ConfigError, LedgerConfig, load_config
from carrier_ledger.db.connection import load_env_file, open_connection
from carrier_ledger.db.entry_store import EntryStore, RecordStoreError
from carrier_ledger.excel.columns import resolve_columns
from carrier_ledger.excel.reader import WorkbookError, read_workbook, require_data_rows
from carrier_ledger.logging.error_log import ErrorLogBuffer
from carrier_ledger.logging.init import log_summary, setup_logging
from carrier_ledger.models.entry import Entry, format_amount
from carrier_ledger.models.staged_record import StagedRecord
from carrier_ledger.services.commit import commit_staged
from carrier_ledger.services.entry_form import EntryForm, EntryValidationError, build_manual_entry
from carrier_ledger.services.search import SORT_FIELDS, SortState, search_entries
from carrier_ledger.services.staging import CommitPreconditionError, StagingError, StagingSession
from carrier_ledger.services.summary import render_import_message, render_summary_line

"""CLI entrypoint.

Subcommands:
- import: parse a workbook, apply review edits, commit to the record store
- inspect: show headers, resolved columns and first rows of a workbook
- list / search: print stored entries (search filters, sorts and paginates)
- add / delete: single entry maintenance
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2

ENTRY_HEADER = ("ID", "DATE", "MC", "CARRIER NAME", "AMOUNT", "APPROVED", "CHECKED BY", "NOTE")
STAGED_HEADER = ("#", "DATE", "MC", "CARRIER NAME", "AMOUNT", "APPROVED", "CHECKED BY", "NOTE")


@contextmanager
def _open_store(cfg: LedgerConfig) -> Iterator[EntryStore]:  # pragma: no cover (thin wrapper)
    with open_connection(cfg) as conn:
        yield EntryStore(conn, table=cfg.table)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="carrier-ledger", description="Carrier entry ledger")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Import entries from an Excel workbook")
    imp.add_argument("file", type=Path)
    imp.add_argument(
        "--set", nargs=3, action="append", default=[], metavar=("ROW", "FIELD", "VALUE"),
        help="Edit a staged row (0-based) before commit; repeatable",
    )
    imp.add_argument(
        "--drop", type=int, action="append", default=[], metavar="ROW",
        help="Remove a staged row (0-based) before commit; repeatable",
    )
    imp.add_argument("--dry-run", action="store_true", help="Stage and print only, do not commit")

    insp = sub.add_parser("inspect", help="Show workbook headers and first rows")
    insp.add_argument("file", type=Path)
    insp.add_argument("--rows", type=int, default=3)

    sub.add_parser("list", help="List all entries, newest first")

    srch = sub.add_parser("search", help="Search entries by MC, carrier, checker or note")
    srch.add_argument("term", nargs="?", default="")
    srch.add_argument("--sort", choices=sorted(SORT_FIELDS), default="date")
    direction = srch.add_mutually_exclusive_group()
    direction.add_argument("--asc", dest="direction", action="store_const", const="asc")
    direction.add_argument("--desc", dest="direction", action="store_const", const="desc")
    srch.add_argument("--page", type=int, default=1)

    add = sub.add_parser("add", help="Add a single entry dated today")
    add.add_argument("--mc", default="")
    add.add_argument("--carrier-name", default="")
    add.add_argument("--amount", default="")
    add.add_argument("--approved", choices=("YES", "NO"), default="NO")
    add.add_argument("--checked-by", default="")
    add.add_argument("--note", default="")

    dele = sub.add_parser("delete", help="Delete an entry by id")
    dele.add_argument("entry_id")
    return p.parse_args(argv)


def _print_table(header: tuple[str, ...], rows: list[tuple[str, ...]]) -> None:
    widths = [len(h) for h in header]
    for row in rows:
        widths = [max(w, len(c)) for w, c in zip(widths, row, strict=True)]
    print("  ".join(h.ljust(w) for h, w in zip(header, widths, strict=True)))
    for row in rows:
        print("  ".join(c.ljust(w) for c, w in zip(row, widths, strict=True)))


def _entry_row(e: Entry) -> tuple[str, ...]:
    return (str(e.id), e.date, e.mc, e.carrier_name, format_amount(e.amount), e.approved,
            e.checked_by, e.note)


def _staged_row(position: int, r: StagedRecord) -> tuple[str, ...]:
    return (str(position), r.date, r.mc, r.carrier_name, r.amount, r.approved, r.checked_by, r.note)


def _read_file(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise WorkbookError(f"Failed to read file. Please try again. ({e})") from e


def _cmd_inspect(args: argparse.Namespace, logger) -> int:
    try:
        grid = read_workbook(_read_file(args.file))
        require_data_rows(grid)
        columns = resolve_columns(grid[0])
    except WorkbookError as e:
        logger.error(f"inspect: {e}")
        return EXIT_FATAL
    print(f"FILE: {args.file.name} rows={len(grid) - 1}")
    print(f"  headers={[str(h) for h in grid[0]]}")
    print(f"  columns={columns.positions}")
    for row in grid[1:1 + args.rows]:
        print("  row=", [v.isoformat() if hasattr(v, "isoformat") else v for v in row])
    return EXIT_SUCCESS_ALL


def _apply_review_edits(session: StagingSession, args: argparse.Namespace) -> None:
    for row, field, value in args.set:
        session.edit_cell(int(row), field, value)
    # highest position first so earlier removals do not shift later ones
    for position in sorted(set(args.drop), reverse=True):
        session.remove_row(position)


def _cmd_import(args: argparse.Namespace, cfg: LedgerConfig, logger) -> int:
    session = StagingSession(timezone=cfg.timezone)
    try:
        session.load_workbook(_read_file(args.file), source_name=args.file.name)
    except WorkbookError as e:
        logger.error(f"import: {e}")
        return EXIT_FATAL

    try:
        _apply_review_edits(session, args)
    except (StagingError, ValueError) as e:
        logger.error(f"review: {e}")
        return EXIT_FATAL

    _print_table(STAGED_HEADER, [_staged_row(i, r) for i, r in enumerate(session.records)])

    if args.dry_run:
        logger.info(f"dry run: {len(session)} entr{'y' if len(session) == 1 else 'ies'} staged, nothing committed")
        return EXIT_SUCCESS_ALL

    error_log = ErrorLogBuffer()
    try:
        with _open_store(cfg) as store:
            result = commit_staged(session, store, error_log=error_log)
    except CommitPreconditionError as e:
        logger.error(f"import: {e}")
        return EXIT_FATAL
    except psycopg2.Error as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL

    log_path = error_log.flush()
    if log_path is not None:
        logger.info(f"error log written: {log_path}")
    if result.reload_error is not None:
        logger.error("Failed to load entries. Please refresh the page.")

    log_summary(render_summary_line(result).removeprefix("SUMMARY "))
    message = render_import_message(result)
    if result.failed > 0:
        logger.warning(message)
        return EXIT_PARTIAL_FAILURE
    logger.info(message)
    return EXIT_SUCCESS_ALL


def _cmd_list(cfg: LedgerConfig, logger) -> int:
    with _open_store(cfg) as store:
        entries = store.list_entries()
    if not entries:
        logger.info("No entries found. Add entries to see the list.")
        return EXIT_SUCCESS_ALL
    _print_table(ENTRY_HEADER, [_entry_row(e) for e in entries])
    logger.info(f"total={len(entries)}")
    return EXIT_SUCCESS_ALL


def _cmd_search(args: argparse.Namespace, cfg: LedgerConfig, logger) -> int:
    with _open_store(cfg) as store:
        entries = store.list_entries()
    direction = args.direction or ("desc" if args.sort == "date" else "asc")
    page = search_entries(entries, args.term, SortState(args.sort, direction), args.page, cfg.page_size)
    if not page.items:
        if not entries:
            logger.info("No entries found. Add entries to see the list.")
        else:
            logger.info("No entries match your search criteria.")
        return EXIT_SUCCESS_ALL
    _print_table(ENTRY_HEADER, [_entry_row(e) for e in page.items])
    logger.info(f"total={page.total} page={page.page}/{page.total_pages}")
    return EXIT_SUCCESS_ALL


def _cmd_add(args: argparse.Namespace, cfg: LedgerConfig, logger) -> int:
    form = EntryForm(
        mc=args.mc,
        carrier_name=args.carrier_name,
        amount=args.amount,
        approved=args.approved,
        checked_by=args.checked_by,
        note=args.note,
    )
    try:
        record = build_manual_entry(form, cfg.timezone)
    except EntryValidationError as e:
        for field, message in e.errors.items():
            logger.error(f"{field}: {message}")
        return EXIT_FATAL
    with _open_store(cfg) as store:
        entry = store.create_entry(record)
    logger.info(f"added entry id={entry.id} mc={entry.mc}")
    return EXIT_SUCCESS_ALL


def _cmd_delete(args: argparse.Namespace, cfg: LedgerConfig, logger) -> int:
    with _open_store(cfg) as store:
        store.delete_entry(args.entry_id)
    logger.info(f"deleted entry id={args.entry_id}")
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    # None only: an explicit [] from tests must not pick up pytest's own argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    logger.debug("debug mode enabled")

    # .env first so DB parameters from it take precedence
    load_env_file(Path(".env"), override=True)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.command == "inspect":
        return _cmd_inspect(args, logger)
    if args.command == "import":
        return _cmd_import(args, cfg, logger)

    try:
        if args.command == "list":
            return _cmd_list(cfg, logger)
        if args.command == "search":
            return _cmd_search(args, cfg, logger)
        if args.command == "add":
            return _cmd_add(args, cfg, logger)
        if args.command == "delete":
            return _cmd_delete(args, cfg, logger)
    except RecordStoreError as e:
        logger.error(f"record store: {e}")
        return EXIT_FATAL
    except psycopg2.Error as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL
    raise AssertionError(f"unhandled command: {args.command}")  # pragma: no cover


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
