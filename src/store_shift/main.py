"""
Main entry point for the store scheduling application.
"""

import sys
import argparse
import logging
from pathlib import Path

from .config import ConfigLoader, ConfigurationError, InvalidDateFormatError
from .errors import ScheduleError
from .exporters import (
    AssignmentCSVExporter,
    ScheduleMatrixExporter,
    ScheduleXlsxExporter,
    TimesheetExporter,
)
from .models import GenerationResult
from .repository import InMemoryRepository
from .reporter import ScheduleReporter
from .service import ScheduleService

logger = logging.getLogger(__name__)

CLI_ACTOR = "cli"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="store-shift",
        description="Generate monthly store schedules from working hours and days off",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Full report with all details
  store-shift config/schedule.yaml

  # Minimal output
  store-shift config/schedule.yaml --quiet

  # Export the store-code matrix and a workbook
  store-shift config/schedule.yaml --export-matrix march.csv --export-xlsx march.xlsx

  # Timesheet of one employee
  store-shift config/schedule.yaml --timesheet anna --timesheet-out anna.xlsx
        """,
    )

    parser.add_argument("config", type=str, help="Path to YAML configuration file")
    parser.add_argument("--export-csv", type=str, help="Export assignments to CSV file")
    parser.add_argument(
        "--export-matrix", type=str, help="Export employee x day store-code matrix to CSV file"
    )
    parser.add_argument("--export-xlsx", type=str, help="Export schedule workbook to xlsx file")
    parser.add_argument("--timesheet", type=str, metavar="EMPLOYEE_ID", help="Employee to export a timesheet for")
    parser.add_argument(
        "--timesheet-out",
        type=str,
        help="Timesheet output file (.csv or .xlsx)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (defaults to settings.log_level from the config)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 when some store/day slots stay uncovered",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress detailed output (only show summary)",
    )
    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if bool(args.timesheet) != bool(args.timesheet_out):
        parser.error("--timesheet and --timesheet-out must be given together")

    logging.basicConfig(
        level=args.log_level or "INFO",
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        # Load configuration
        print(f"Loading configuration from: {args.config}")
        loader = ConfigLoader(args.config)
        config = loader.load()
        if args.log_level is None:
            logging.getLogger().setLevel(config.settings.log_level)

        print("✓ Configuration loaded successfully")
        print(loader.get_summary())
        print()

        repository = InMemoryRepository()
        for store in config.stores:
            repository.save_store(store)
        for employee in config.employees:
            repository.save_employee(employee)
        service = ScheduleService(repository, settings=config.settings)

        # Run generation
        print("Generating schedule...")
        schedule, coverage = service.generate_schedule(
            config.external_month, config.year, CLI_ACTOR, config.days_off
        )
        print("✓ Generation complete")
        print()

        # Generate report
        result = GenerationResult(
            month=schedule.month,
            year=schedule.year,
            assignments=schedule.assignments,
            coverage=coverage,
        )
        reporter = ScheduleReporter(result, config.stores, config.employees, config.days_off)
        reporter.print_report(args.quiet)

        for warning in service.validate_schedule(config.external_month, config.year):
            logger.warning(warning.message)

        if args.export_csv:
            AssignmentCSVExporter(schedule, employees=config.employees).export(args.export_csv)
            print(f"✓ Assignments exported to {args.export_csv}")
        if args.export_matrix:
            ScheduleMatrixExporter(schedule, employees=config.employees).export(args.export_matrix)
            print(f"✓ Schedule matrix exported to {args.export_matrix}")
        if args.export_xlsx:
            ScheduleXlsxExporter(schedule, employees=config.employees).export(args.export_xlsx)
            print(f"✓ Workbook exported to {args.export_xlsx}")
        if args.timesheet:
            timesheet = service.employee_timesheet(schedule.id, args.timesheet)
            fmt = "xlsx" if Path(args.timesheet_out).suffix.lower() == ".xlsx" else "csv"
            TimesheetExporter(timesheet, fmt=fmt).export(args.timesheet_out)
            print(f"✓ Timesheet of {timesheet.employee.name} exported to {args.timesheet_out}")

        # Exit with appropriate code
        sys.exit(1 if args.strict and not coverage.is_complete else 0)

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    except InvalidDateFormatError as e:
        print(f"Date Format Error: {e}", file=sys.stderr)
        print(
            "\n Tip: Use ISO 8601 format (YYYY-MM-DD) for all dates.", file=sys.stderr
        )
        print("   Example: 2026-01-15", file=sys.stderr)
        sys.exit(1)

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        sys.exit(1)

    except ScheduleError as e:
        print(f"Schedule Error ({e.kind}): {e.message}", file=sys.stderr)
        for detail in e.details:
            print(f"  - {detail}", file=sys.stderr)
        sys.exit(1)

    except ValueError as e:
        print(f"Validation Error: {e}", file=sys.stderr)
        sys.exit(1)

    except Exception as e:
        print(f"Unexpected Error: {e}", file=sys.stderr)
        import traceback

        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
