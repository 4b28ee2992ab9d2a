# File: blockschema/cli.py
"""
Content Block Schema - Command-Line Interface
===============================================

Usage examples::

    # Compile and print the serialized table definitions
    python -m blockschema --input content_blocks.yaml

    # Write YAML output, verbose
    python -m blockschema -i content_blocks.yaml -o tables.yaml -v

    # Different root table and prefixes
    python -m blockschema -i blocks.json -o tables.json \\
        --root-table pages --collection-prefix cbc_ --column-prefix cbf_

    # Validate only (no output)
    python -m blockschema -i content_blocks.yaml --validate-only

Exit codes:
    0 — success
    1 — validation error
    2 — compilation error
    3 — export error
    4 — input/argument error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence, Tuple

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("blockschema")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_COMPILATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the blockschema logger.

    Args:
        verbosity: -1 = ERROR, 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity < 0:
        level = logging.ERROR
    elif verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    formatter: logging.Formatter = logging.Formatter(fmt, datefmt="%H:%M:%S")
    handler.setFormatter(formatter)

    root_logger: logging.Logger = logging.getLogger("blockschema")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    from blockschema import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="blockschema",
        description=(
            "Compile content block package declarations into table definitions.\n\n"
            "Top-level fields of every package are merged into one shared root "
            "table; Collection fields become their own child tables."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -i content_blocks.yaml\n"
            "  %(prog)s -i content_blocks.yaml -o tables.yaml -v\n"
            "  %(prog)s -i content_blocks.yaml --validate-only\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"blockschema v{__version__}",
    )

    parser.add_argument(
        "-i", "--input",
        type=str,
        required=True,
        metavar="PATH",
        help="Package declarations file (JSON or YAML).",
    )
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="PATH",
        help="Write serialized table definitions here (default: stdout).",
    )
    parser.add_argument(
        "-f", "--format",
        type=str,
        default=None,
        choices=["json", "yaml"],
        help="Output format (default: from the output extension, else json).",
    )

    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Only validate the declarations; write nothing.",
    )
    mode_group.add_argument(
        "--report",
        action="store_true",
        default=False,
        help="Print the compilation report to stderr.",
    )

    config_group = parser.add_argument_group("configuration overrides")
    config_group.add_argument(
        "--root-table",
        type=str,
        default=None,
        metavar="NAME",
        help="Shared root table (default: tt_content).",
    )
    config_group.add_argument(
        "--collection-prefix",
        type=str,
        default=None,
        metavar="PREFIX",
        help="Prefix for generated collection tables.",
    )
    config_group.add_argument(
        "--column-prefix",
        type=str,
        default=None,
        metavar="PREFIX",
        help="Prefix for generated root-table columns.",
    )
    config_group.add_argument(
        "--base-path",
        type=str,
        default=None,
        metavar="PATH",
        help="Base path of the content block packages.",
    )
    config_group.add_argument(
        "--max-depth",
        type=int,
        default=None,
        metavar="N",
        help="Maximum collection nesting depth.",
    )
    config_group.add_argument(
        "--strict",
        action="store_true",
        default=False,
        help="Fail on name collisions and validation warnings.",
    )

    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except errors.",
    )

    return parser


# ---------------------------------------------------------------------------
# Config override builder
# ---------------------------------------------------------------------------


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}

    if args.root_table is not None:
        overrides["root_table"] = args.root_table
    if args.collection_prefix is not None:
        overrides["collection_table_prefix"] = args.collection_prefix
    if args.column_prefix is not None:
        overrides["root_column_prefix"] = args.column_prefix
    if args.base_path is not None:
        overrides["base_path"] = args.base_path
    if args.max_depth is not None:
        overrides["max_depth"] = args.max_depth
    if args.strict:
        overrides["strict"] = True

    return overrides


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------


def _load(
    input_path: Path, args: argparse.Namespace
) -> Optional[Tuple[List[Any], Any]]:
    """Return ``(packages, config)``, or None after logging why loading failed."""
    from blockschema.compiler import load_declarations_file, parse_raw_declarations
    from blockschema.models import CompilerConfig

    try:
        raw = load_declarations_file(input_path)
        packages, config = parse_raw_declarations(raw)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Failed to load declarations: %s", exc)
        return None

    overrides: Dict[str, Any] = _build_config_overrides(args)
    if overrides:
        try:
            config = CompilerConfig.model_validate({**config.model_dump(), **overrides})
        except ValueError as exc:
            logger.error("Invalid configuration override: %s", exc)
            return None

    return packages, config


def _run_validate_only(input_path: Path, args: argparse.Namespace) -> int:
    from blockschema.validators import validate_declarations

    loaded = _load(input_path, args)
    if loaded is None:
        return EXIT_INPUT_ERROR
    packages, config = loaded

    result = validate_declarations(packages, config)

    print(f"\n{'='*50}")
    print("  Declaration Validation Report")
    print(f"{'='*50}")
    print(f"  File:      {input_path.name}")
    print(f"  Packages:  {len(packages)}")
    print(f"  Valid:     {'Yes' if result.is_valid else 'No'}")
    if len(result):
        print()
        print(result.format_report(include_info=args.verbose >= 1))
    print(f"{'='*50}\n")

    if not result.is_valid:
        return EXIT_VALIDATION_ERROR
    if config.strict and result.has_warnings:
        return EXIT_VALIDATION_ERROR
    return EXIT_SUCCESS


def _run_compile(input_path: Path, args: argparse.Namespace) -> int:
    from blockschema.compiler import TableDefinitionCompiler
    from blockschema.exporters import CollectionExporter, render_collection

    loaded = _load(input_path, args)
    if loaded is None:
        return EXIT_INPUT_ERROR
    packages, config = loaded

    compiler: TableDefinitionCompiler = TableDefinitionCompiler(config)
    report = compiler.compile_with_report(packages)

    if args.report or not report.success:
        print(report.summary(), file=sys.stderr)

    if not report.success or report.collection is None:
        if report.result.has_errors:
            return EXIT_VALIDATION_ERROR
        return EXIT_COMPILATION_ERROR

    if args.output is None:
        sys.stdout.write(render_collection(report.collection, args.format or "json"))
        return EXIT_SUCCESS

    export = CollectionExporter().export(
        report.collection, Path(args.output).resolve(), args.format
    )
    if not export.success:
        for err in export.errors:
            logger.error("  ✗ %s", err)
        return EXIT_EXPORT_ERROR

    logger.info("Wrote %s.", args.output)
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
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    verbosity: int = -1 if args.quiet else args.verbose

    _setup_logging(verbosity)

    input_path: Path = Path(args.input).resolve()
    if not input_path.is_file():
        logger.error("Declarations file not found: %s", input_path)
        sys.exit(EXIT_INPUT_ERROR)

    if args.validate_only:
        sys.exit(_run_validate_only(input_path, args))

    exit_code: int = _run_compile(input_path, args)
    if exit_code == EXIT_SUCCESS:
        logger.info("Compilation completed successfully.")
    else:
        logger.error("Compilation failed with exit code %d.", exit_code)
    sys.exit(exit_code)


__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_COMPILATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("blockschema.cli loaded.")
