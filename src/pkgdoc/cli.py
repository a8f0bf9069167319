"""Command-line entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Parse arguments
- Open AppState and run one command against it
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import TYPE_CHECKING

import structlog

from pkgdoc import __version__
from pkgdoc.builder import SourceBuilder
from pkgdoc.config import Settings
from pkgdoc.errors import PkgDocError
from pkgdoc.fetcher import Fetcher, build_http_client
from pkgdoc.packages import filter_cmds
from pkgdoc.resolver import Resolver
from pkgdoc.state import open_app_state

if TYPE_CHECKING:
    from pkgdoc.models.doc import DocumentationRecord
    from pkgdoc.models.index import IndexRecord

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def configure_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # stdout carries command output only
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Output formatting
# ---------------------------------------------------------------------------


def _indent(text: str, n: int) -> str:
    return text.strip().replace("\n", "\n" + " " * n)


def format_doc(doc: DocumentationRecord) -> str:
    """Human-readable dump of a record, one field per line."""
    lines = [
        f"ImportPath:   {doc.import_path}",
        f"ProjectRoot:  {doc.project_root}",
        f"ProjectName:  {doc.project_name}",
        f"ProjectURL:   {doc.project_url}",
        f"Updated:      {doc.updated.isoformat()}",
        f"Etag:         {doc.etag}",
        f"Name:         {doc.name}",
        f"IsCmd:        {doc.is_cmd}",
        f"Synopsis:     {doc.synopsis}",
        f"Doc:          {_indent(doc.doc, 14)}",
        "Errors:",
        *(f"    {e}" for e in doc.errors),
        "Files:",
        *(f"    {f.name} {f.browse_url}" for f in doc.files),
        "Imports:",
        *(f"    {i}" for i in doc.imports),
        "TestImports:",
        *(f"    {i}" for i in doc.test_imports),
    ]
    for label, values in (("Const", doc.consts), ("Var", doc.vars)):
        for v in values:
            lines += [
                f"{label}:",
                f"    Decl:  {_indent(v.decl, 11)}",
                f"    Doc:   {_indent(v.doc, 11)}",
                f"    URL:   {v.url}",
            ]
    for f in doc.funcs:
        lines += [
            "Func:",
            f"    Decl:  {_indent(f.decl, 11)}",
            f"    Doc:   {_indent(f.doc, 11)}",
            f"    URL:   {f.url}",
        ]
    for t in doc.types:
        lines += [
            "Type:",
            f"    Decl:  {_indent(t.decl, 11)}",
            f"    Doc:   {_indent(t.doc, 11)}",
            f"    URL:   {t.url}",
        ]
        for label, funcs in (("Func", t.funcs), ("Method", t.methods)):
            for f in funcs:
                lines += [
                    f"    {label}:",
                    f"        Decl:  {_indent(f.decl, 15)}",
                    f"        Doc:   {_indent(f.doc, 15)}",
                    f"        URL:   {f.url}",
                ]
    return "\n".join(lines)


def format_packages(records: list[IndexRecord]) -> str:
    pkgs, cmds = filter_cmds(records)
    lines = [f"{p.import_path}\t{p.synopsis}" for p in pkgs]
    if cmds:
        lines.append("")
        lines.append("Commands:")
        lines += [f"{c.import_path}\t{c.synopsis}" for c in cmds]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pkgdoc", description="Go package documentation fetcher")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    # Command: print
    print_parser = subparsers.add_parser(
        "print", help="Fetch and print documentation without touching the store"
    )
    print_parser.add_argument("import_path")
    print_parser.add_argument("--json", action="store_true", help="Print the record as JSON")

    # Command: get
    get_parser = subparsers.add_parser("get", help="Get documentation through the cache and store")
    get_parser.add_argument("import_path")
    get_parser.add_argument("--json", action="store_true", help="Print the record as JSON")

    # Command: reload
    reload_parser = subparsers.add_parser("reload", help="Drop stored documentation for a package")
    reload_parser.add_argument("import_path")

    # Command: list
    subparsers.add_parser("list", help="List visible packages in the store")

    return parser


def _emit_doc(doc: DocumentationRecord, as_json: bool) -> None:
    print(doc.model_dump_json(indent=2) if as_json else format_doc(doc))


async def _print(args: argparse.Namespace, settings: Settings) -> None:
    async with build_http_client(settings.fetcher) as client:
        resolver = Resolver(Fetcher(client), SourceBuilder(), settings)
        doc = await resolver.resolve(args.import_path)
    _emit_doc(doc, args.json)


async def _main_async(args: argparse.Namespace, settings: Settings) -> None:
    if args.command == "print":
        await _print(args, settings)
        return

    async with open_app_state(settings) as state:
        if args.command == "get":
            doc, children = await state.pipeline.get_doc(args.import_path)
            _emit_doc(doc, args.json)
            if children and not args.json:
                print("Subdirectories:")
                for child in children:
                    print(f"    {child.import_path}")
        elif args.command == "reload":
            await state.pipeline.reload(args.import_path)
        elif args.command == "list":
            print(format_packages(await state.pipeline.list_packages()))


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    settings = Settings()
    configure_logging(settings)
    log.debug("cli_starting", version=__version__, command=args.command)

    try:
        asyncio.run(_main_async(args, settings))
    except PkgDocError as exc:
        log.warning(
            "command_error",
            command=args.command,
            code=exc.code,
            message=exc.message,
            recoverable=exc.recoverable,
        )
        print(json.dumps(exc.to_dict()), file=sys.stderr)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        log.info("interrupted")
        raise SystemExit(130) from None


if __name__ == "__main__":
    main()
