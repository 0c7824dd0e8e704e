# File: crudgen/cli.py
"""
crudgen - Command-Line Interface
=================================

``argparse`` front end over ``CodeGenerator`` and the reference
collaborators (``InMemoryCatalog``, ``build_zip``, ``PathExporter``).

Usage examples::

    # Every table in the catalog, packed into one archive
    crudgen generate -c tables.yaml -o ./crudgen.zip

    # Two tables written below ./out/admin
    crudgen generate -c tables.yaml -t sys_post -t 7 --gen-type PATH \\
        -o ./out --gen-path /admin

    # Print one generated file to stdout
    crudgen preview -c tables.yaml -t sys_post --file service.ts

    # List the registry keys
    crudgen templates

Exit codes:
    0  success
    2  generation finished with errors (partial output)
    3  packaging or export error
    4  input/argument error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, NoReturn, Optional, Sequence, Tuple

from crudgen.catalog import InMemoryCatalog
from crudgen.config import GeneratorConfig, load_config
from crudgen.errors import CrudgenError
from crudgen.exporters import PathExporter, build_zip
from crudgen.generator import CodeGenerator
from crudgen.models import GenerateRequest, GenType
from crudgen.templates import REGISTRY

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen")

# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the ``crudgen`` logger.

    Args:
        verbosity: -1 = ERROR, 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    elif verbosity == 0:
        level = logging.WARNING
    else:
        level = logging.ERROR

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter("%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s", datefmt="%H:%M:%S")
    )

    root_logger: logging.Logger = logging.getLogger("crudgen")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _add_catalog_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-c", "--catalog",
        required=True,
        metavar="PATH",
        help="YAML/JSON file with a top-level 'tables' list.",
    )
    parser.add_argument(
        "--config",
        default=None,
        metavar="PATH",
        help="Generator settings file (defaults to the catalog's 'generator' section).",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from crudgen import __version__

    parser = argparse.ArgumentParser(
        prog="crudgen",
        description="crudgen: NestJS + Vue CRUD code generator driven by table metadata.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"crudgen v{__version__}")
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Only log errors.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate code for one or more tables.")
    _add_catalog_args(gen)
    gen.add_argument(
        "-t", "--table",
        action="append",
        default=None,
        metavar="ID|NAME",
        help="Table id or name; repeatable. Defaults to every table in the catalog.",
    )
    gen.add_argument(
        "--gen-type",
        choices=[g.value for g in GenType],
        default=GenType.ZIP.value,
        help="ZIP writes one archive, PATH writes files (default: ZIP).",
    )
    gen.add_argument(
        "-o", "--output",
        required=True,
        metavar="PATH",
        help="Archive file (ZIP) or base directory (PATH).",
    )
    gen.add_argument(
        "--gen-path",
        default=None,
        metavar="PATH",
        help="Sub-directory below --output for PATH delivery.",
    )
    gen.add_argument(
        "--overwrite",
        action="store_true",
        default=False,
        help="Replace existing files in PATH mode.",
    )

    prev = sub.add_parser("preview", help="Print the generated files of one table.")
    _add_catalog_args(prev)
    prev.add_argument("-t", "--table", required=True, metavar="ID|NAME")
    prev.add_argument(
        "--file",
        default=None,
        metavar="SUFFIX",
        help="Only print files whose path ends with SUFFIX.",
    )

    sub.add_parser("templates", help="List the template registry.")
    return parser


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _resolve_table(catalog: InMemoryCatalog, ref: str) -> int:
    if ref.isdigit() and int(ref) in catalog:
        return int(ref)
    table_id: Optional[int] = catalog.id_for(ref)
    if table_id is None:
        raise ValueError(f"Unknown table '{ref}'")
    return table_id


def _load(args: argparse.Namespace) -> Tuple[InMemoryCatalog, GeneratorConfig]:
    catalog = InMemoryCatalog.from_file(args.catalog)
    config: GeneratorConfig = load_config(args.config or args.catalog)
    return catalog, config


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _run_generate(args: argparse.Namespace) -> int:
    try:
        catalog, config = _load(args)
        refs: List[str] = args.table or [str(tid) for tid in catalog.table_ids()]
        table_ids: List[int] = [_resolve_table(catalog, ref) for ref in refs]
        request = GenerateRequest(
            table_ids=tuple(table_ids),
            gen_type=args.gen_type,
            gen_path=args.gen_path,
        )
    except (FileNotFoundError, ValueError) as exc:
        logger.error("%s", exc)
        return EXIT_INPUT_ERROR

    generator = CodeGenerator(catalog, config, packager=build_zip)
    result = generator.generate_sync(request)
    exit_code: int = EXIT_SUCCESS if result.success else EXIT_GENERATION_ERROR

    output = Path(args.output)
    if result.gen_type == GenType.ZIP.value:
        if result.zip_buffer is not None:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_bytes(result.zip_buffer)
            logger.info("Wrote %s (%d bytes).", output, len(result.zip_buffer))
        elif any(err.kind == "PackagingError" for err in result.errors):
            exit_code = EXIT_EXPORT_ERROR
    else:
        exporter = PathExporter(output, overwrite=args.overwrite)
        try:
            export = exporter.export(result.files, result.gen_path or config.default_gen_path)
        except ValueError as exc:
            logger.error("%s", exc)
            return EXIT_INPUT_ERROR
        for skipped in export.skipped:
            print(f"  ⊘ exists, skipped: {skipped}")
        if not export.success:
            for err in export.errors:
                logger.error("%s", err)
            exit_code = EXIT_EXPORT_ERROR

    print(result.summary())
    return exit_code


def _run_preview(args: argparse.Namespace) -> int:
    try:
        catalog, config = _load(args)
        table_id: int = _resolve_table(catalog, args.table)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("%s", exc)
        return EXIT_INPUT_ERROR

    try:
        files = CodeGenerator(catalog, config).preview_sync(table_id)
    except CrudgenError as exc:
        logger.error("Preview failed: %s", exc.message)
        return EXIT_GENERATION_ERROR

    for path, content in files.items():
        if args.file and not path.endswith(args.file):
            continue
        print(f"// ===== {path} =====")
        print(content)
    return EXIT_SUCCESS


def _run_templates() -> int:
    for entry in REGISTRY:
        variants: str = ",".join(sorted(entry.variants))
        gate: str = entry.option_flag or "-"
        print(f"{entry.key:<60s} {entry.category.value:<9s} {variants:<14s} {gate}")
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    _setup_logging(-1 if args.quiet else args.verbose)

    if args.command == "generate":
        exit_code: int = _run_generate(args)
    elif args.command == "preview":
        exit_code = _run_preview(args)
    else:
        exit_code = _run_templates()

    if exit_code != EXIT_SUCCESS:
        logger.error("crudgen %s failed with exit code %d.", args.command, exit_code)
    sys.exit(exit_code)


__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]
