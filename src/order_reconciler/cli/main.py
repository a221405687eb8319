"""
CLI Interface Module

Provides the command-line interface for the Order Reconciler: extracting the
fields of a service-order PDF, matching it against a reference vehicle table
and validating the configuration file.

Environment variables (also read from a ``.env`` file):
    RECONCILER_CONFIG: Configuration file used when ``--config`` is omitted.
    RECONCILER_LOG_LEVEL: Log level used when ``--log-level`` is omitted.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from dotenv import load_dotenv

from .. import __version__
from ..export.csv_exporter import CSVExporter
from ..export.json_exporter import JSONExporter
from ..models.data_structures import MatchReport, StructuredRecord, resolve_field_key
from ..orchestration.reconciliation_pipeline import ReconciliationPipeline
from ..utils.config_loader import Config, SystemConfig
from ..utils.error_handlers import ConfigurationError, ReconciliationError


logger = logging.getLogger(__name__)

ENV_CONFIG_PATH = "RECONCILER_CONFIG"
ENV_LOG_LEVEL = "RECONCILER_LOG_LEVEL"
SEPARATOR_WIDTH = 60
MAX_DISPLAY_DIFFERENCES = 10


def setup_logging(log_level: str = "INFO") -> None:
    """Configure logging for the CLI application.

    Application output goes to stdout, logs go to stderr.

    Args:
        log_level: Logging level as string (DEBUG, INFO, WARNING, ERROR).
            Unknown names fall back to INFO.
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def handle_error(context: str, error: Exception) -> int:
    """Centralized error handling for commands.

    Args:
        context: Description of the operation that failed.
        error: Exception that was raised.

    Returns:
        Exit code 1.
    """
    if isinstance(error, FileNotFoundError):
        logger.error(f"{context}: File not found - {error}")
    elif isinstance(error, PermissionError):
        logger.error(f"{context}: Permission denied - {error}")
    elif isinstance(error, ValueError):
        logger.error(f"{context}: Invalid value - {error}")
    elif isinstance(error, ReconciliationError):
        logger.error(f"{context}: {error}")
    else:
        logger.error(f"{context}: {error}", exc_info=True)
    return 1


def parse_mapping_argument(value: str) -> Tuple[str, str]:
    """Parse a ``field=column`` mapping argument.

    Raises:
        argparse.ArgumentTypeError: If the value is malformed or names an
            unknown field.
    """
    field_name, sep, column = value.partition("=")
    if not sep or not field_name.strip() or not column.strip():
        raise argparse.ArgumentTypeError(
            f"Mapping must look like field=column, got {value!r}"
        )
    if resolve_field_key(field_name) is None:
        raise argparse.ArgumentTypeError(f"Unknown vehicle field {field_name!r}")
    return field_name.strip(), column.strip()


def main(argv: Optional[List[str]] = None) -> int:
    """Execute the main CLI entry point.

    Returns:
        Exit code: 0 for success, non-zero for errors.

    Example:
        $ order-reconciler extract ordem.pdf
        $ order-reconciler match ordem.pdf frota.xlsx --map placa=Veículo
    """
    load_dotenv()

    parser = setup_argument_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"Order Reconciler v{__version__}")
        return 0

    log_level = args.log_level or os.getenv(ENV_LOG_LEVEL)
    config_path = args.config or os.getenv(ENV_CONFIG_PATH)

    try:
        config = Config.load(config_path)
    except (FileNotFoundError, ConfigurationError) as e:
        setup_logging(log_level or "INFO")
        return handle_error("Failed to load configuration", e)

    setup_logging(log_level or config.log_level)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        command_map = {
            "extract": command_extract,
            "match": command_match,
            "validate-config": command_validate_config,
        }
        return command_map[args.command](args, config)

    except KeyboardInterrupt:
        logger.info("Operation cancelled by user")
        return 130
    except Exception as e:
        return handle_error("Command execution failed", e)


def command_extract(args: argparse.Namespace, config: SystemConfig) -> int:
    """Extract the structured record of a service-order PDF.

    Writes the record as JSON to ``--output`` or prints it to stdout.
    """
    try:
        pipeline = ReconciliationPipeline(config)
        record = pipeline.extract_file(Path(args.pdf_path))

        exporter = JSONExporter()
        if args.output:
            exporter.export(record, args.output)
            print_record_summary(record)
            print(f"✓ Record written to: {args.output}")
        else:
            print(exporter.export_to_string(record, pretty=True))

        if args.line_items_csv:
            CSVExporter().export_line_items(record, args.line_items_csv)
            print(f"✓ Line items written to: {args.line_items_csv}")

        return 0

    except Exception as e:
        return handle_error("Extraction failed", e)


def command_match(args: argparse.Namespace, config: SystemConfig) -> int:
    """Match a service-order PDF against a reference table.

    Writes the reconciliation result as JSON to ``--output`` or prints the
    match report to stdout. Finding no match is not an error.
    """
    column_mapping: Dict[str, str] = dict(args.mappings or [])

    try:
        pipeline = ReconciliationPipeline(config)
        result = pipeline.reconcile_files(
            Path(args.pdf_path),
            Path(args.table_path),
            column_mapping=column_mapping,
            sheet_name=args.sheet,
        )

        exporter = JSONExporter()
        if args.output:
            exporter.export(result, args.output)
            print_match_summary(result.report)
            print(f"✓ Result written to: {args.output}")
        else:
            print(exporter.export_to_string(result.report, pretty=True))

        if args.differences_csv:
            CSVExporter().export_differences(result.report, args.differences_csv)
            print(f"✓ Differences written to: {args.differences_csv}")

        return 0

    except Exception as e:
        return handle_error("Matching failed", e)


def command_validate_config(args: argparse.Namespace, config: SystemConfig) -> int:
    """Validate the configuration file.

    Returns:
        Exit code: 0 if configuration is valid, 1 if errors found.
    """
    source = config.source_path or "built-in defaults"
    logger.info(f"Validating configuration: {source}")

    errors = Config.validate(config)
    if errors:
        print(f"✗ Configuration invalid ({source}):")
        for error in errors:
            print(f"  - {error}")
        return 1

    print(f"✓ Configuration valid ({source})")
    return 0


def setup_argument_parser() -> argparse.ArgumentParser:
    """Configure the argument parser with all CLI commands and options."""
    parser = argparse.ArgumentParser(
        prog="order-reconciler",
        description="Order Reconciler - service orders vs. vehicle tables",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Extract fields of a service order
  %(prog)s extract ordem.pdf --output ordem.json

  # Match against the fleet spreadsheet with an explicit plate column
  %(prog)s match ordem.pdf frota.xlsx --map placa=Veículo

  # Check the configuration file
  %(prog)s --config config/reconciler_config.yaml validate-config
        """,
    )

    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to configuration file (default: ${ENV_CONFIG_PATH} or "
        "config/reconciler_config.yaml)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help=f"Logging level (default: ${ENV_LOG_LEVEL} or configuration)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    extract_parser = subparsers.add_parser(
        "extract",
        help="Extract fields from a service-order PDF",
        description="Extract vehicle, order and totals fields from a PDF.",
    )
    extract_parser.add_argument("pdf_path", help="Path to the service-order PDF")
    extract_parser.add_argument(
        "--output", "-o", help="Write the record JSON to this file"
    )
    extract_parser.add_argument(
        "--line-items-csv", help="Also write the billed line items to this CSV"
    )

    match_parser = subparsers.add_parser(
        "match",
        help="Match a service-order PDF against a reference table",
        description="Find the reference row that best matches the document.",
    )
    match_parser.add_argument("pdf_path", help="Path to the service-order PDF")
    match_parser.add_argument("table_path", help="Path to the .xlsx/.csv table")
    match_parser.add_argument(
        "--map",
        dest="mappings",
        action="append",
        type=parse_mapping_argument,
        metavar="FIELD=COLUMN",
        help="Explicit column for a field (repeatable), e.g. placa=Veículo",
    )
    match_parser.add_argument("--sheet", help="Worksheet name (default: first)")
    match_parser.add_argument(
        "--output", "-o", help="Write the full result JSON to this file"
    )
    match_parser.add_argument(
        "--differences-csv", help="Also write the field differences to this CSV"
    )

    subparsers.add_parser(
        "validate-config",
        help="Validate configuration file",
        description="Check every configuration section for invalid values.",
    )

    return parser


def print_record_summary(record: StructuredRecord) -> None:
    """Print a formatted summary of an extracted record to console."""
    print("\n" + "=" * SEPARATOR_WIDTH)
    print("EXTRACTED RECORD")
    print("=" * SEPARATOR_WIDTH)
    print(f"Template: {record.source_type}")
    for key, value in record.vehicle.to_dict().items():
        print(f"  {key}: {value if value is not None else '-'}")
    print(f"Line items: {len(record.line_items)}")
    if record.totals.order_total is not None:
        print(f"Order total: {record.totals.order_total}")
    print("=" * SEPARATOR_WIDTH + "\n")


def print_match_summary(report: MatchReport) -> None:
    """Print a formatted summary of a match report to console."""
    print("\n" + "=" * SEPARATOR_WIDTH)
    print("MATCH RESULT")
    print("=" * SEPARATOR_WIDTH)
    print(report.comparison_note)
    print(f"Rows compared: {report.total_rows}")

    if report.sample_differences:
        print(f"\nDifferences ({len(report.sample_differences)}):")
        for difference in report.sample_differences[:MAX_DISPLAY_DIFFERENCES]:
            print(
                f"  - {difference.field}: table={difference.excel_value!r} "
                f"document={difference.pdf_value!r}"
            )

    print("=" * SEPARATOR_WIDTH + "\n")


if __name__ == "__main__":
    sys.exit(main())
