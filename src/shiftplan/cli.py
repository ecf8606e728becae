"""Command-line interface for the shiftplan scheduling tool."""

import argparse
import json
import logging
import sys
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

from shiftplan.domain.calendar import HalfDay, Weekday
from shiftplan.domain.models import (
    Employee,
    EmployeeType,
    LearningYearQualification,
    RuleType,
    ScheduleRequest,
    ScheduleResult,
    ShiftRule,
    ShiftType,
    Team,
)
from shiftplan.domain.serialization import (
    SchedulingInputError,
    dump_result,
    load_request,
    request_to_dict,
)
from shiftplan.output.pdf_generator import PDFGenerator
from shiftplan.output.report_generator import ReportGenerator
from shiftplan.scheduling.heuristic_solver import SolverConfig
from shiftplan.scheduling.scheduler import ShiftScheduler
from shiftplan.validation.validator import (
    ScheduleValidator,
    ValidationErrorType,
    ValidationResult,
)

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def next_monday(today: Optional[date] = None) -> date:
    today = today or date.today()
    return today + timedelta(days=(7 - today.weekday()) % 7)


def create_sample_request(
    employee_count: int = 10,
    weeks: int = 4,
    start_date: Optional[date] = None,
) -> ScheduleRequest:
    """Create a sample request for demos and testing.

    The sample has an early, late and night shift, an on-call follow-up
    after the late shift, a rule against working early or late after a
    night, two teams and a few first- and second-year trainees.

    Args:
        employee_count: Number of employees to create.
        weeks: Number of weeks in the horizon.
        start_date: First day of the horizon. Defaults to the next Monday.
    """
    start_date = start_date or next_monday()
    end_date = start_date + timedelta(days=7 * weeks - 3)  # Ends on a Friday

    every_day = Weekday.ordered()
    shift_types = [
        ShiftType(
            id="early",
            name="Early",
            short_name="E",
            start_time="06:00",
            end_time="14:00",
            weekly_needs={w: 1 for w in every_day},
        ),
        ShiftType(
            id="late",
            name="Late",
            short_name="L",
            start_time="14:00",
            end_time="22:00",
            weekly_needs={w: 1 for w in every_day},
        ),
        ShiftType(
            id="night",
            name="Night",
            short_name="N",
            start_time="22:00",
            end_time="06:00",
            weekly_needs={w: 1 for w in every_day if w != Weekday.FRIDAY},
        ),
        ShiftType(
            id="oncall",
            name="On-call",
            short_name="OC",
            start_time="22:00",
            end_time="23:00",
        ),
    ]

    rules = [
        ShiftRule(
            id="no-day-after-night",
            rule_type=RuleType.FORBIDDEN_SEQUENCE,
            name="No day shift after a night",
            from_shift_id="night",
            to_shift_ids=["early", "late"],
        ),
        ShiftRule(
            id="late-on-call",
            rule_type=RuleType.MANDATORY_FOLLOW_UP,
            name="On-call after late",
            from_shift_id="late",
            to_shift_id="oncall",
        ),
    ]

    teams = [
        Team(id="team-a", name="Team A", overall_shift_percentage=100.0),
        Team(id="team-b", name="Team B", overall_shift_percentage=80.0),
    ]

    qualifications = [
        LearningYearQualification(
            year=1,
            qualified_shift_types={"early"},
            default_availability={(Weekday.FRIDAY, HalfDay.PM): False},
        ),
        LearningYearQualification(
            year=2,
            qualified_shift_types={"early", "late", "oncall"},
        ),
    ]

    names = [
        "Alice", "Bob", "Carol", "David", "Eve", "Frank", "Grace", "Henry",
        "Ivy", "Jack", "Kate", "Leo", "Mia", "Noah", "Olivia", "Paul",
        "Quinn", "Rose", "Sam", "Tina", "Uma", "Victor", "Wendy", "Xavier",
    ]
    all_shifts = {s.id for s in shift_types}

    employees = []
    for i in range(employee_count):
        name = names[i % len(names)]
        if i >= len(names):
            name = f"{name}{i // len(names) + 1}"

        availability = {}
        # Some employees never work Monday mornings
        if i % 6 == 5:
            availability[(Weekday.MONDAY, HalfDay.AM)] = False
        # Some employees are unavailable Wednesday afternoons
        if i % 4 == 3:
            availability[(Weekday.WEDNESDAY, HalfDay.PM)] = False

        if i % 5 == 4:
            trainee_year = 1 if i % 10 == 4 else 2
            qualification = qualifications[trainee_year - 1]
            availability.update(qualification.default_availability)
            employee = Employee(
                id=f"T{i + 1:03d}",
                name=name,
                short_code=name[:2].upper(),
                employee_type=EmployeeType.TRAINEE,
                trainee_year=trainee_year,
                team_id="team-a",
                allowed_shifts=set(qualification.qualified_shift_types),
                availability=availability,
            )
        else:
            employee = Employee(
                id=f"E{i + 1:03d}",
                name=name,
                short_code=name[:2].upper(),
                grade=50 if i % 7 == 6 else 100,
                team_id="team-a" if i % 2 == 0 else "team-b",
                shift_percentage=50.0 if i % 7 == 6 else None,
                allowed_shifts=set(all_shifts),
                availability=availability,
            )
        employees.append(employee)

    return ScheduleRequest(
        start_date=start_date,
        end_date=end_date,
        employees=employees,
        teams=teams,
        shift_types=shift_types,
        qualifications=qualifications,
        rules=rules,
    )


def print_validation(result: ValidationResult, limit: int = 10) -> None:
    """Print errors and warnings of a validation run."""
    if result.is_valid:
        print("  Validation: PASSED")
    else:
        print(f"  Validation: FAILED ({len(result.errors)} errors)")
        for error in result.errors[:limit]:
            print(f"    - {error}")
        if len(result.errors) > limit:
            print(f"    ... and {len(result.errors) - limit} more errors")

    if result.warnings:
        print(f"  Warnings: {len(result.warnings)}")
        for warning in result.warnings[:limit]:
            print(f"    - {warning}")
        if len(result.warnings) > limit:
            print(f"    ... and {len(result.warnings) - limit} more warnings")


def print_summary(result: ScheduleResult, request: ScheduleRequest) -> None:
    """Print the headline numbers of a scheduling run."""
    stats = result.statistics
    print(f"\n{'=' * 60}")
    print(f"Shift Plan: {request.start_date} to {request.end_date}")
    print(f"{'=' * 60}")
    print(f"  Working days: {len(request.working_dates)}")
    print(f"  Employees: {len(request.employees)}")
    print(f"  Total assignments: {stats.total_assignments}")
    print(f"  Unassigned positions: {stats.unassigned_shifts}")
    print(f"  Conflicts: {len(result.conflicts)}")

    if stats.employee_workloads:
        hours = [w.hours for w in stats.employee_workloads.values()]
        counts = [w.shift_count for w in stats.employee_workloads.values()]
        print("\nWorkload:")
        print(f"  Shifts: min={min(counts)}, max={max(counts)}")
        print(f"  Hours: min={min(hours):.1f}, max={max(hours):.1f}, "
              f"avg={sum(hours) / len(hours):.1f}")

    if result.conflicts:
        print("\nConflicts:")
        for message in result.conflicts[:10]:
            print(f"  - {message}")
        if len(result.conflicts) > 10:
            print(f"  ... and {len(result.conflicts) - 10} more")


def write_outputs(
    result: ScheduleResult,
    request: ScheduleRequest,
    output_path: Optional[str] = None,
    report_path: Optional[str] = None,
    pdf_path: Optional[str] = None,
) -> None:
    if output_path:
        dump_result(result, output_path)
        print(f"\nResult written: {output_path}")
    if report_path:
        ReportGenerator().generate(result, request, report_path)
        print(f"Report written: {report_path}")
    if pdf_path:
        PDFGenerator().generate(result, request, pdf_path)
        print(f"PDF written: {pdf_path}")


def build_config(args: argparse.Namespace) -> SolverConfig:
    return SolverConfig(
        enable_relaxed_strategy=not args.no_relaxed,
        enable_emergency_strategy=not args.no_emergency,
    )


def run_schedule(request: ScheduleRequest, config: SolverConfig) -> ScheduleResult:
    """Schedule a request and print the summary and result validation."""
    result = ShiftScheduler(request, config=config).schedule()
    print_summary(result, request)

    validator = ScheduleValidator()
    print("\nResult check:")
    print_validation(validator.validate(result, request))
    return result


def run_demo(args: argparse.Namespace) -> int:
    """Generate a sample request and schedule it."""
    request = create_sample_request(args.count, args.weeks, args.start)
    print(f"Generating demo plan for {args.count} employees over {args.weeks} weeks...")

    if args.save_request:
        Path(args.save_request).write_text(
            json.dumps(request_to_dict(request), indent=2), encoding="utf-8"
        )
        print(f"Request written: {args.save_request}")

    result = run_schedule(request, build_config(args))
    write_outputs(result, request, args.output, args.report, args.pdf)
    return 0


def run_file(args: argparse.Namespace) -> int:
    """Schedule a request document."""
    request = load_request(args.input)

    validation = ScheduleValidator().validate_request(request)
    if not validation.is_valid or validation.warnings:
        print(f"Request check for {args.input}:")
        print_validation(validation)
    if validation.has_error(ValidationErrorType.INVALID_TIME):
        print("Error: shift times must be HH:MM; --force cannot skip this.", file=sys.stderr)
        return 2
    if not validation.is_valid and not args.force:
        print("Request is invalid; use --force to schedule anyway.", file=sys.stderr)
        return 1

    result = run_schedule(request, build_config(args))
    write_outputs(result, request, args.output, args.report, args.pdf)
    return 0


def run_validate(args: argparse.Namespace) -> int:
    """Only validate a request document."""
    request = load_request(args.input)
    validation = ScheduleValidator().validate_request(request)
    print(f"Request check for {args.input}:")
    print_validation(validation, limit=50)
    return 0 if validation.is_valid else 1


def add_strategy_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--no-relaxed",
        action="store_true",
        help="Do not retry open positions without forbidden-sequence checks",
    )
    parser.add_argument(
        "--no-emergency",
        action="store_true",
        help="Do not fill open positions ignoring availability and rules",
    )


def add_output_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output", "-o",
        type=str,
        help="Output result JSON file path",
    )
    parser.add_argument(
        "--report", "-r",
        type=str,
        help="Output text report file path",
    )
    parser.add_argument(
        "--pdf",
        type=str,
        help="Output PDF roster file path",
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="shiftplan - Multi-week Shift Scheduling Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo                         Plan 4 weeks for 10 sample employees
  %(prog)s demo --count 20 --weeks 2    Plan 2 weeks for 20 sample employees
  %(prog)s demo --pdf roster.pdf        Generate PDF output

  %(prog)s run request.json -o out.json Schedule a request document
  %(prog)s run request.json --report plan.txt --pdf plan.pdf

  %(prog)s validate request.json        Check a request document only
        """,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log every candidate decision",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Schedule a generated sample team")
    demo_parser.add_argument(
        "--count", "-c",
        type=int,
        default=10,
        help="Number of employees to generate (default: 10)",
    )
    demo_parser.add_argument(
        "--weeks", "-w",
        type=int,
        default=4,
        help="Number of weeks to schedule (default: 4)",
    )
    demo_parser.add_argument(
        "--start", "-s",
        type=date.fromisoformat,
        help="First day as YYYY-MM-DD (default: next Monday)",
    )
    demo_parser.add_argument(
        "--save-request",
        type=str,
        help="Write the generated request document to this path",
    )
    add_output_arguments(demo_parser)
    add_strategy_arguments(demo_parser)

    # Run command
    run_parser = subparsers.add_parser("run", help="Schedule a request document")
    run_parser.add_argument("input", type=str, help="Request JSON file")
    run_parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Schedule despite validation errors (malformed times still abort)",
    )
    add_output_arguments(run_parser)
    add_strategy_arguments(run_parser)

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a request document")
    validate_parser.add_argument("input", type=str, help="Request JSON file")

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    commands = {
        "demo": run_demo,
        "run": run_file,
        "validate": run_validate,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return 1

    try:
        return command(args)
    except (SchedulingInputError, FileNotFoundError, json.JSONDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
