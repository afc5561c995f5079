"""Command-line interface for the supervision scheduling tool."""

import argparse
import logging
import sys
from datetime import date, timedelta
from typing import Optional

from supervisionplanner.domain.errors import SchedulerError
from supervisionplanner.domain.models import (
    ClientRule,
    DayKey,
    DayWindow,
    ScheduleRequest,
    ScheduleResult,
    SupervisorConfig,
    TimeBlock,
)
from supervisionplanner.domain.timeparse import format_time, format_weekday_mdy
from supervisionplanner.loader import load_request
from supervisionplanner.output.csv_exporter import CSVExporter
from supervisionplanner.output.pdf_generator import PDFGenerator
from supervisionplanner.output.summary import ProgressSummary
from supervisionplanner.scheduling.scheduler import Scheduler
from supervisionplanner.validation.validator import ScheduleValidator

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def create_sample_request(
    client_count: int = 5,
    weeks: int = 4,
    start_date: Optional[date] = None,
) -> ScheduleRequest:
    """Create a sample request for demos.

    Args:
        client_count: Number of clients to create.
        weeks: Length of the range in weeks, starting on a Monday.
        start_date: First date; defaults to the next Monday.
    """
    if start_date is None:
        today = date.today()
        start_date = today + timedelta(days=(7 - today.weekday()) % 7)
    end_date = start_date + timedelta(days=7 * weeks - 1)

    weekdays = [DayKey.MON, DayKey.TUE, DayKey.WED, DayKey.THU, DayKey.FRI]
    supervisor = SupervisorConfig(
        active_days=set(weekdays),
        daily_avail={day: [TimeBlock(8 * 60, 12 * 60), TimeBlock(13 * 60, 17 * 60)] for day in weekdays},
        date_overrides={start_date + timedelta(days=2): [TimeBlock(8 * 60, 10 * 60)]},
        rounding_minutes=15,
        allow_sub_hour_if_unavoidable=False,
    )

    clients = []
    for i in range(client_count):
        # Alternate morning, afternoon and full-day clients
        if i % 3 == 0:
            blocks = [TimeBlock(8 * 60, 12 * 60)]
        elif i % 3 == 1:
            blocks = [TimeBlock(13 * 60, 16 * 60)]
        else:
            blocks = [TimeBlock(9 * 60, 15 * 60)]

        days = weekdays if i % 2 == 0 else [DayKey.MON, DayKey.WED, DayKey.FRI]
        slots = [frozenset({DayKey.MON, DayKey.TUE}), frozenset({DayKey.THU, DayKey.FRI})] if i % 4 == 0 else []

        clients.append(
            ClientRule(
                id=f"C{i + 1:03d}",
                monthly_hours=2 * weeks - (i % 3),
                min_session_mins=60,
                windows=[DayWindow(day=d, blocks=list(blocks)) for d in days],
                max_sessions_per_week=3 if i % 5 == 4 else None,
                preferred_day_slots=slots,
            )
        )

    return ScheduleRequest(
        start_date=start_date,
        end_date=end_date,
        clients=clients,
        supervisor=supervisor,
    )


def print_report(request: ScheduleRequest, result: ScheduleResult, show_sessions: bool = True) -> bool:
    """Print validation, progress and (optionally) the session list.

    Returns:
        True if the schedule passed validation.
    """
    validator = ScheduleValidator()
    validation = validator.validate(result.blocks, request, result.per_week_cap)

    print(f"\n{'=' * 60}")
    print(f"Supervision Schedule: {request.start_date} to {request.end_date} ({request.num_days} days)")
    print(f"{'=' * 60}")
    print(f"  Clients: {len(request.clients)}")
    print(f"  Sessions: {len(result.blocks)}")

    if show_sessions:
        print("\nSessions:")
        for d, day_blocks in result.get_blocks_by_date().items():
            for blk in day_blocks:
                print(f"  {format_weekday_mdy(d)}  {blk.client_id:<10} "
                      f"{format_time(blk.start)} - {format_time(blk.end)}")

    print("\nProgress:")
    summary = ProgressSummary.from_blocks(result.blocks, request.clients)
    for line in summary.to_text().splitlines():
        print(f"  {line}")

    if validation.is_valid:
        print("\nValidation: PASSED")
    else:
        print(f"\nValidation: FAILED ({len(validation.errors)} errors)")
        for error in validation.errors[:5]:
            print(f"    - {error}")
        if len(validation.errors) > 5:
            print(f"    ... and {len(validation.errors) - 5} more errors")

    if validation.warnings:
        print(f"\nWarnings ({len(validation.warnings)}):")
        for warning in validation.warnings:
            print(f"    - {warning}")

    return validation.is_valid


def run_generate(
    request_path: str,
    csv_path: Optional[str] = None,
    pdf_path: Optional[str] = None,
    show_sessions: bool = True,
) -> int:
    """Generate a schedule for a request document."""
    request = load_request(request_path)
    result = Scheduler().generate_schedule(request)
    is_valid = print_report(request, result, show_sessions)

    if csv_path:
        CSVExporter().export(result.blocks, csv_path)
        print(f"\nCSV written to {csv_path}")
    if pdf_path:
        PDFGenerator().generate(result.blocks, request, pdf_path)
        print(f"PDF written to {pdf_path}")

    return 0 if is_valid else 1


def run_demo(client_count: int = 5, weeks: int = 4, pdf_path: Optional[str] = None) -> int:
    """Run a demo schedule generation."""
    print(f"Generating demo schedule for {client_count} clients over {weeks} weeks...")
    request = create_sample_request(client_count, weeks)
    result = Scheduler().generate_schedule(request)
    is_valid = print_report(request, result, show_sessions=False)

    if pdf_path:
        PDFGenerator().generate(result.blocks, request, pdf_path)
        print(f"\nPDF written to {pdf_path}")
    return 0 if is_valid else 1


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="Supervision Planner - recurring supervision session scheduler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s generate request.json                 Print schedule and progress
  %(prog)s generate request.json --csv out.csv   Also export CSV
  %(prog)s generate request.json --pdf out.pdf   Also render a PDF calendar
  %(prog)s demo --clients 8 --weeks 4            Run a demo
        """,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Log progress (-v for INFO, -vv for DEBUG)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    generate_parser = subparsers.add_parser("generate", help="Schedule a JSON request")
    generate_parser.add_argument("request", help="Path to the request JSON file")
    generate_parser.add_argument("--csv", type=str, help="Output CSV file path")
    generate_parser.add_argument("--pdf", type=str, help="Output PDF file path")
    generate_parser.add_argument(
        "--summary",
        action="store_true",
        help="Only print the progress summary, not each session",
    )

    demo_parser = subparsers.add_parser("demo", help="Run demo schedule generation")
    demo_parser.add_argument(
        "--clients", "-c",
        type=int,
        default=5,
        help="Number of clients to generate (default: 5)",
    )
    demo_parser.add_argument(
        "--weeks", "-w",
        type=int,
        default=4,
        help="Number of weeks to schedule (default: 4)",
    )
    demo_parser.add_argument("--pdf", type=str, help="Output PDF file path")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG if args.verbose > 1 else logging.INFO,
            format=LOG_FORMAT,
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    try:
        if args.command == "generate":
            return run_generate(args.request, args.csv, args.pdf, not args.summary)
        elif args.command == "demo":
            return run_demo(args.clients, args.weeks, args.pdf)
    except (SchedulerError, OSError) as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
