"""Command-line interface for TableSmith."""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

import uvicorn

from .config import settings


class _UsageParser(argparse.ArgumentParser):
    """ArgumentParser whose help and usage errors go to stderr with status 1."""

    def print_help(self, file=None):
        super().print_help(file or sys.stderr)

    def exit(self, status: int = 0, message: Optional[str] = None):
        # Only -h/--help reaches exit with status 0
        super().exit(status or 1, message)

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = _UsageParser(
        prog="tablesmith",
        description="TableSmith - CSV import, schema reconciliation and type inference",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Search command
    search_parser = subparsers.add_parser(
        "search", help="Search one column of CSV files for a keyword"
    )
    search_parser.add_argument(
        "-c", "--column", required=True, help="Column header to search in"
    )
    search_parser.add_argument(
        "-k", "--keyword", required=True, help="Keyword to search for"
    )
    search_parser.add_argument(
        "--case-sensitive",
        action="store_true",
        help="Make search case-sensitive (default: case-insensitive)",
    )
    search_parser.add_argument("files", nargs="+", help="CSV files to search")

    # Infer command
    infer_parser = subparsers.add_parser(
        "infer", help="Infer column types for CSV files sharing one schema"
    )
    infer_parser.add_argument("files", nargs="+", help="CSV files to inspect")
    infer_parser.add_argument(
        "--json", action="store_true", help="Print the types as a JSON object"
    )

    # Server command
    server_parser = subparsers.add_parser("serve", help="Start the web server")
    server_parser.add_argument(
        "--host", default=settings.host, help=f"Host to bind to (default: {settings.host})"
    )
    server_parser.add_argument(
        "--port", type=int, default=settings.port, help=f"Port to bind to (default: {settings.port})"
    )
    server_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    return parser


def main(argv: Optional[list[str]] = None):
    """Main entry point for the CLI."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "search":
        sys.exit(run_search(args.files, args.column, args.keyword, not args.case_sensitive))
    elif args.command == "infer":
        sys.exit(asyncio.run(run_infer(args.files, args.json)))
    elif args.command == "serve":
        run_server(args.host, args.port, args.reload)
    else:
        parser.print_help(sys.stderr)
        sys.exit(1)


def run_search(files: list[str], column: str, keyword: str, case_insensitive: bool) -> int:
    """Search the files and write matching rows as CSV to stdout."""
    from .files import search_csv_files, write_csv

    result = search_csv_files(files, column, keyword, case_insensitive)

    for warning in result.warnings:
        print(warning, file=sys.stderr)

    if not result.headers:
        print("No headers found. Are the input files valid CSV?", file=sys.stderr)
        return 1

    write_csv(result.headers, result.rows, sys.stdout)
    return 0


async def run_infer(files: list[str], as_json: bool = False) -> int:
    """Print the inferred type of every column of a uniform batch."""
    from .dataset import Dataset
    from .importer import (
        ImportCommitted,
        ImportFailure,
        ImportMode,
        ImportOrchestrator,
        TypeReviewRequest,
    )

    orchestrator = ImportOrchestrator()
    action = await orchestrator.import_paths(Dataset(), ImportMode.REPLACE, files)

    if isinstance(action, ImportFailure):
        print(action.title, file=sys.stderr)
        if action.message:
            print(action.message, file=sys.stderr)
        return 1

    if isinstance(action, TypeReviewRequest):
        staged = action.staged
        headers, types, warnings = staged.headers, staged.types, staged.warnings
    elif isinstance(action, ImportCommitted):
        headers, types, warnings = (
            action.dataset.headers,
            action.dataset.column_types,
            action.warnings,
        )
    else:
        print(f"Unexpected import result: {type(action).__name__}", file=sys.stderr)
        return 1

    for warning in warnings:
        print(warning, file=sys.stderr)

    if as_json:
        print(json.dumps({h: types[h].value for h in headers}, ensure_ascii=False))
    else:
        width = max(len(h) for h in headers)
        for header in headers:
            print(f"{header.ljust(width)}  {types[header].value}")
    return 0


def run_server(host: str, port: int, reload: bool):
    """Run the web server."""
    uvicorn.run(
        "tablesmith.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


if __name__ == "__main__":
    main()
