# File: dtogen/cli.py
"""
DTOGen - Command-Line Interface
=================================

Usage examples::

    # Write dtos/user.dto.ts and models/user.model.ts under ./src
    python -m dtogen --schema user.yaml --output ./src

    # Print both files to stdout instead of writing them
    dtogen -s user.json --print

    # Validate only (no file output)
    dtogen -s user.yaml --validate-only

Exit codes:
    0 — success
    1 — validation error
    2 — generation error
    3 — export error
    4 — input/argument error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, List, NoReturn, Optional, Sequence

if TYPE_CHECKING:
    from dtogen.generator import GenerationReport

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("dtogen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root dtogen logger.

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
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
            datefmt="%H:%M:%S",
        )
    )

    root_logger: logging.Logger = logging.getLogger("dtogen")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    from dtogen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="dtogen",
        description=(
            "DTOGen — TypeScript DTO and Mongoose schema generator.\n\n"
            "Turns a document schema definition (JSON/YAML) into a type-definition "
            "file and a schema-declaration file."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -s user.yaml -o ./src\n"
            "  %(prog)s -s user.json --print\n"
            "  %(prog)s -s user.yaml --validate-only\n"
        ),
    )

    parser.add_argument("--version", action="version", version=f"DTOGen v{__version__}")

    parser.add_argument(
        "-s", "--schema",
        type=str,
        required=True,
        metavar="PATH",
        help="Path to the schema definition file (JSON or YAML).",
    )
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="DIR",
        help="Output directory. Required unless --validate-only or --print is set.",
    )

    # --- Modes ---
    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Only validate the schema without generating code.",
    )
    mode_group.add_argument(
        "--print",
        dest="print_files",
        action="store_true",
        default=False,
        help="Write the generated files to stdout instead of disk.",
    )

    # --- Overrides ---
    config_group = parser.add_argument_group("configuration overrides")
    config_group.add_argument(
        "--name",
        type=str,
        default=None,
        metavar="NAME",
        help="Override the schema name (drives type, model and file names).",
    )

    # --- Behaviour flags ---
    behaviour_group = parser.add_argument_group("behaviour flags")
    behaviour_group.add_argument(
        "--clean",
        action="store_true",
        default=False,
        help="Clean output directory before writing.",
    )
    behaviour_group.add_argument(
        "--no-strict",
        action="store_true",
        default=False,
        help="Generate even if validation reports errors.",
    )
    behaviour_group.add_argument(
        "--fail-on-warnings",
        action="store_true",
        default=False,
        help="Treat validation warnings as errors.",
    )

    # --- Verbosity ---
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
# Validate-only mode
# ---------------------------------------------------------------------------


def _run_validate_only(schema_path: Path, name: Optional[str], fail_on_warnings: bool = False) -> int:
    from dtogen.generator import load_schema_file, parse_raw_schema
    from dtogen.utils import Timer
    from dtogen.validators import validate_full

    logger.info("Running validation-only mode for: %s", schema_path)

    try:
        schema, _ = parse_raw_schema(load_schema_file(schema_path))
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Failed to load schema: %s", exc)
        return EXIT_INPUT_ERROR

    if name:
        schema = schema.model_copy(update={"name": name})

    with Timer("validation") as t:
        result = validate_full(schema)

    print(f"\n{'=' * 50}")
    print("  Schema Validation Report")
    print(f"{'=' * 50}")
    print(f"  File:     {schema_path.name}")
    print(f"  Schema:   {schema.name}")
    print(f"  Fields:   {schema.field_count()}")
    print(f"  Time:     {t.elapsed:.3f}s")
    print(f"  Valid:    {'Yes' if result.is_valid else 'No'}")

    if result.errors:
        print(f"\n  Errors ({len(result.errors)}):")
        for err in result.errors:
            print(f"    ✗ {err}")

    if result.warnings:
        print(f"\n  Warnings ({len(result.warnings)}):")
        for warn in result.warnings:
            print(f"    ⚠ {warn}")

    if result.is_valid and not result.warnings:
        print("\n  ✅ All validations passed!")

    print(f"{'=' * 50}\n")

    if not result.is_valid or (fail_on_warnings and result.has_warnings):
        return EXIT_VALIDATION_ERROR
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Full generation mode
# ---------------------------------------------------------------------------


def _exit_code_for(report: GenerationReport) -> int:
    if report.success:
        return EXIT_SUCCESS
    if report.input_errors:
        return EXIT_INPUT_ERROR
    # Strict runs stop before generation, so these lists are only filled
    # when validation passed or was not enforced.
    if report.generation_errors:
        return EXIT_GENERATION_ERROR
    if report.export_errors:
        return EXIT_EXPORT_ERROR
    if not report.validation_passed:
        return EXIT_VALIDATION_ERROR
    return EXIT_GENERATION_ERROR


def _run_generation(
    schema_path: Path,
    output_dir: Optional[Path],
    args: argparse.Namespace,
) -> int:
    from dtogen.generator import DTOGenerator

    generator: DTOGenerator = DTOGenerator(
        strict_validation=not args.no_strict,
        fail_on_warnings=args.fail_on_warnings,
        clean_output=args.clean,
    )
    report = generator.generate_from_file(
        schema_path,
        output_dir,
        name_override=args.name,
    )

    if args.print_files and report.success:
        for rel_path, content in report.files.items():
            print(f"// ---- {rel_path} ----")
            sys.stdout.write(content)
            print()
    else:
        print(report.summary())

    return _exit_code_for(report)


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

    schema_path: Path = Path(args.schema).resolve()
    if not schema_path.is_file():
        logger.error("Schema file not found: %s", schema_path)
        sys.exit(EXIT_INPUT_ERROR)

    if args.validate_only:
        sys.exit(_run_validate_only(schema_path, args.name, args.fail_on_warnings))

    if args.output is None and not args.print_files:
        logger.error("Output directory is required for generation. Use -o/--output, --print or --validate-only.")
        parser.print_usage(sys.stderr)
        sys.exit(EXIT_INPUT_ERROR)

    output_dir: Optional[Path] = None
    if args.output is not None and not args.print_files:
        output_dir = Path(args.output).resolve()

    logger.info("Schema:  %s", schema_path)
    logger.info("Output:  %s", output_dir or "<stdout>")
    logger.info("Strict:  %s", not args.no_strict)

    exit_code: int = _run_generation(schema_path, output_dir, args)

    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)

    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("dtogen.cli loaded.")
