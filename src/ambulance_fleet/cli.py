"""Ambulance fleet Command Line Interface.

Usage:
    ambfleet validate <scenario.json> [--strict]   Validate scenario file and its scripted calls
    ambfleet run [<scenario.json>]                 Run simulation (default town if omitted)
    ambfleet schema [--model scenario|intake]      Output JSON schema
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_scenario_or_report(path: Path):
    """Load ``path``, printing the reason to stderr if it cannot be used.

    Returns:
        The scenario, or None when the file is missing or invalid
    """
    from ambulance_fleet.models.scenario import load_scenario
    from pydantic import ValidationError

    if not path.exists():
        print(f"ERROR: File not found: {path}", file=sys.stderr)
        return None

    try:
        return load_scenario(str(path))
    except json.JSONDecodeError as e:
        print(f"ERROR: Invalid JSON at line {e.lineno}: {e.msg}", file=sys.stderr)
    except ValidationError as e:
        print("ERROR: Schema validation failed:", file=sys.stderr)
        for error in e.errors():
            loc = " -> ".join(str(x) for x in error["loc"])
            print(f"  {loc}: {error['msg']}", file=sys.stderr)
    return None


def _rejected_scripted_calls(scenario) -> list[tuple[Any, dict[str, str]]]:
    """Scripted calls the intake desk would turn away, with their field errors."""
    from ambulance_fleet.exceptions import IntakeValidationError
    from ambulance_fleet.simulation.intake import IntakeForm, validate_form
    from ambulance_fleet.simulation.town import Town

    town = Town(scenario.grid, scenario.town)
    rejected = []
    for event in scenario.demand.manual_events:
        try:
            validate_form(IntakeForm(**event.form_fields()), town)
        except IntakeValidationError as e:
            rejected.append((event, e.field_errors))
    return rejected


def _write_json(data: Any, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)


def cmd_validate(args: argparse.Namespace) -> int:
    """Check a scenario file, then dry-run its scripted calls through intake."""
    path = Path(args.scenario)
    print(f"Validating: {path}")

    scenario = _load_scenario_or_report(path)
    if scenario is None:
        return 1

    print(f"✓ Valid scenario: {scenario.name}")
    print()
    print(scenario.summary())

    rejected = _rejected_scripted_calls(scenario)
    if not rejected:
        return 0

    print()
    print(f"{len(rejected)} of {len(scenario.demand.manual_events)} scripted calls would be rejected:")
    for event, errors in rejected:
        reasons = ", ".join(f"{field}: {msg}" for field, msg in errors.items())
        print(f"  WARNING t={event.time_s:g}s '{event.patient_name}': {reasons}")
    return 1 if args.strict else 0


def cmd_run(args: argparse.Namespace) -> int:
    """Run a simulation and output results."""
    from ambulance_fleet.analysis.kpis import compute_all_kpis, compute_dispatch_kpis
    from ambulance_fleet.models.scenario import default_scenario
    from ambulance_fleet.simulation.engine import SimulationEngine

    if args.scenario:
        path = Path(args.scenario)
        print(f"Loading: {path}")
        scenario = _load_scenario_or_report(path)
        if scenario is None:
            return 1
    else:
        scenario = default_scenario()

    _configure_logging(args.log_level or scenario.config.log_level)

    print(f"Scenario: {scenario.name}")
    print(f"Duration: {scenario.config.duration_s} s")
    print(f"Seed: {scenario.config.random_seed}")
    print()

    print("Running simulation...")
    engine = SimulationEngine(scenario)
    event_log = engine.run()

    print(f"Simulation complete: {len(event_log)} events logged")
    print(engine.hospital.summary())
    print()

    kpis = compute_dispatch_kpis(event_log)
    print(kpis.summary())

    if args.output:
        output_dir = Path(args.output)
        output_dir.mkdir(parents=True, exist_ok=True)

        events_path = output_dir / "events.csv"
        event_log.to_dataframe().to_csv(events_path, index=False)
        print(f"\nEvents saved to: {events_path}")

        em_path = output_dir / "emergencies.csv"
        event_log.emergencies_to_dataframe().to_csv(em_path, index=False)
        print(f"Emergencies saved to: {em_path}")

        kpis_path = output_dir / "kpis.json"
        _write_json(compute_all_kpis(event_log), kpis_path)
        print(f"KPIs saved to: {kpis_path}")

    return 0


SCHEMA_MODELS = ("scenario", "intake")


def cmd_schema(args: argparse.Namespace) -> int:
    """Output the JSON schema of a scenario file or of an intake form."""
    from ambulance_fleet.models.scenario import Scenario
    from ambulance_fleet.simulation.intake import IntakeForm

    model = IntakeForm if args.model == "intake" else Scenario
    schema = model.model_json_schema()

    if args.output:
        _write_json(schema, Path(args.output))
        print(f"{model.__name__} schema written to: {args.output}")
    else:
        print(json.dumps(schema, indent=2))

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ambfleet",
        description="Ambulance fleet dispatch simulation",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # validate command
    p_validate = subparsers.add_parser(
        "validate",
        help="Validate a scenario JSON file",
    )
    p_validate.add_argument("scenario", help="Path to scenario JSON file")
    p_validate.add_argument(
        "--strict",
        action="store_true",
        help="Fail if any scripted call would be rejected at intake",
    )
    p_validate.set_defaults(func=cmd_validate)

    # run command
    p_run = subparsers.add_parser(
        "run",
        help="Run simulation",
    )
    p_run.add_argument(
        "scenario",
        nargs="?",
        help="Path to scenario JSON file (default: built-in town)",
    )
    p_run.add_argument(
        "--output", "-o",
        help="Output directory for results",
    )
    p_run.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override the scenario's log level",
    )
    p_run.set_defaults(func=cmd_run)

    # schema command
    p_schema = subparsers.add_parser(
        "schema",
        help="Output JSON schema",
    )
    p_schema.add_argument(
        "--output", "-o",
        help="Output file (default: stdout)",
    )
    p_schema.add_argument(
        "--model",
        choices=SCHEMA_MODELS,
        default="scenario",
        help="Which document to describe (default: scenario)",
    )
    p_schema.set_defaults(func=cmd_schema)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
