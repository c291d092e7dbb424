#!/usr/bin/env python3
"""
Unified CLI for fuel logging.

Commands:
  vehicles       - List vehicles with totals
  add-vehicle    - Register a vehicle
  delete-vehicle - Remove a vehicle and its fillups
  fillups        - List a vehicle's fillups
  add            - Record a fillup
  edit           - Change fields of a fillup
  delete         - Remove a fillup
  import         - Add many fillups from a YAML file
  baseline       - Change a vehicle's baseline odometer
  stats          - Show totals and averages
  check          - Show (or --fix) pending chain corrections
"""

import argparse
import sys
from pathlib import Path
from tabulate import tabulate
from typing import List, Optional

import yaml

from fuellog import (
    ConsumptionDeviation,
    Fillup,
    FillupInput,
    FillupService,
    FillupUpdate,
    FuelLogError,
    MileageMode,
    OperationResult,
    Vehicle,
    YamlStore,
    consumption_deviation,
    sort_chain,
)
from fuellog.config import DEFAULT_DATA_FILE, configure_logging

# =============================================================================
# Formatting helpers
# =============================================================================


def format_distance(distance: Optional[float]) -> str:
    """Format odometer or distance for display."""
    return f"{distance:,.0f}" if distance is not None else "-"


def format_amount(amount: Optional[float]) -> str:
    """Format a fuel amount for display."""
    return f"{amount:,.2f}" if amount is not None else "-"


def format_cost(cost: Optional[float]) -> str:
    """Format a price for display."""
    return f"{cost:,.2f}" if cost is not None else "-"


def format_consumption(value: Optional[float]) -> str:
    """Format consumption per 100 distance units."""
    return f"{value:.2f}" if value is not None else "-"


DEVIATION_MARKERS = {
    ConsumptionDeviation.EXTREMELY_LOW: "---",
    ConsumptionDeviation.VERY_LOW: "--",
    ConsumptionDeviation.LOW: "-",
    ConsumptionDeviation.NEUTRAL: "=",
    ConsumptionDeviation.HIGH: "+",
    ConsumptionDeviation.VERY_HIGH: "++",
    ConsumptionDeviation.EXTREMELY_HIGH: "+++",
    ConsumptionDeviation.INVALID: "",
}


def make_fillup_table(
    fillups: List[Fillup], average: Optional[float] = None
) -> List[List[str]]:
    """Convert fillups to table rows."""
    rows = []
    for fillup in fillups:
        deviation = consumption_deviation(fillup.fuel_consumption, average)
        rows.append(
            [
                str(fillup.id),
                fillup.date,
                format_distance(fillup.odometer),
                format_distance(fillup.distance_traveled),
                format_amount(fillup.fuel_amount),
                format_cost(fillup.total_price),
                format_cost(fillup.price_per_unit),
                format_consumption(fillup.fuel_consumption),
                DEVIATION_MARKERS[deviation],
            ]
        )
    return rows


def print_outcome(result: OperationResult) -> None:
    """Print warnings and chain write counts of an operation."""
    for warning in result.warnings:
        print(f"Warning (fillup {warning.fillup_id}): {warning.message}")
    if result.attempted_entries_count:
        print(
            f"Recalculated entries: {result.updated_entries_count}"
            f" of {result.attempted_entries_count}"
        )
    if not result.complete:
        failed = ", ".join(str(i) for i in result.failed_fillup_ids)
        print(f"Error: could not update fillups {failed}; run 'check --fix'")


def make_service(args) -> FillupService:
    return FillupService(YamlStore(args.data))


# =============================================================================
# Vehicle commands
# =============================================================================


def cmd_vehicles(args):
    """List vehicles with totals."""
    service = make_service(args)
    vehicles = service.store.list_vehicles()
    if not vehicles:
        print("No vehicles found.")
        return 0

    rows = []
    for vehicle in vehicles:
        stats = service.statistics(vehicle.id)
        rows.append(
            [
                vehicle.id,
                vehicle.name,
                vehicle.mileage_mode.value,
                format_distance(vehicle.baseline_odometer),
                stats.fillup_count,
                format_distance(stats.total_distance),
                format_consumption(stats.average_consumption),
            ]
        )
    headers = ["ID", "Name", "Mode", "Baseline", "Fillups", "Distance", "Avg cons."]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


def cmd_add_vehicle(args):
    """Register a vehicle."""
    service = make_service(args)
    vehicle = Vehicle(
        args.vehicle_id,
        args.name or args.vehicle_id,
        args.baseline,
        MileageMode(args.mode),
    )
    try:
        service.store.create_vehicle(vehicle)
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    print(f"Vehicle '{vehicle.id}' added ({vehicle.mileage_mode.value} mode).")
    return 0


def cmd_delete_vehicle(args):
    """Remove a vehicle and its fillups."""
    service = make_service(args)
    with service.vehicle_lock(args.vehicle_id):
        vehicle = service.store.get_vehicle(args.vehicle_id)
        count = len(service.store.list_fillups(vehicle.id))

        print(f"Vehicle: {vehicle.name}")
        print(f"Fillups to delete: {count}")
        print()

        if args.dry_run:
            print("(dry run - no changes made)")
            return 0

        service.store.delete_vehicle(vehicle.id)
    print(f"Vehicle '{vehicle.id}' deleted.")
    return 0


def cmd_baseline(args):
    """Change a vehicle's baseline odometer."""
    service = make_service(args)
    vehicle = service.store.get_vehicle(args.vehicle_id)

    print(f"Vehicle: {vehicle.name}")
    print(f"Current baseline: {format_distance(vehicle.baseline_odometer)}")
    print(f"New baseline:     {format_distance(args.odometer)}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    result = service.change_vehicle_baseline(args.vehicle_id, args.odometer)
    print("Baseline updated.")
    print_outcome(result)
    return 0 if result.complete else 1


# =============================================================================
# Fillup commands
# =============================================================================


def cmd_fillups(args):
    """List a vehicle's fillups."""
    service = make_service(args)
    vehicle = service.store.get_vehicle(args.vehicle_id)
    fillups = sort_chain(service.store.list_fillups(vehicle.id))
    stats = service.statistics(vehicle.id)

    if args.since:
        fillups = [f for f in fillups if f.date >= args.since]
    if not args.asc:
        fillups.reverse()

    print(f"Vehicle: {vehicle.name} ({vehicle.mileage_mode.value} mode)")
    print(f"Baseline odometer: {format_distance(vehicle.baseline_odometer)}")
    print(f"Total fillups: {stats.fillup_count}")
    if args.since:
        print(f"Showing: {len(fillups)} (filtered)")
    print()

    if not fillups:
        print("No fillups found.")
        return 0

    headers = [
        "ID",
        "Date",
        "Odometer",
        "Distance",
        "Fuel",
        "Price",
        "Per unit",
        "Cons.",
        "",
    ]
    table = make_fillup_table(fillups, stats.average_consumption)
    print(tabulate(table, headers=headers, tablefmt="simple"))
    return 0


def cmd_add(args):
    """Record a fillup."""
    service = make_service(args)
    vehicle = service.store.get_vehicle(args.vehicle_id)
    fillup_input = FillupInput(
        date=args.date,
        fuel_amount=args.fuel,
        total_price=args.price,
        odometer=args.odometer,
        distance=args.distance,
    )

    print(f"Adding fillup to {vehicle.name}:")
    print(f"  Date:     {fillup_input.date}")
    if fillup_input.odometer is not None:
        print(f"  Odometer: {format_distance(fillup_input.odometer)}")
    if fillup_input.distance is not None:
        print(f"  Distance: {format_distance(fillup_input.distance)}")
    print(f"  Fuel:     {format_amount(fillup_input.fuel_amount)}")
    print(f"  Price:    {format_cost(fillup_input.total_price)}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    result = service.create_fillup(vehicle.id, fillup_input)
    fillup = result.fillup
    print(f"Fillup {fillup.id} saved.")
    print(f"  Distance:    {format_distance(fillup.distance_traveled)}")
    print(f"  Consumption: {format_consumption(fillup.fuel_consumption)}")
    print_outcome(result)
    return 0 if result.complete else 1


def cmd_edit(args):
    """Change fields of a fillup."""
    service = make_service(args)
    update = FillupUpdate(
        date=args.date,
        fuel_amount=args.fuel,
        total_price=args.price,
        odometer=args.odometer,
        distance=args.distance,
    )
    if not update.to_dict():
        print("Error: nothing to change")
        return 1

    result = service.update_fillup(args.vehicle_id, args.fillup_id, update)
    print(f"Fillup {args.fillup_id} updated.")
    print_outcome(result)
    return 0 if result.complete else 1


def cmd_delete(args):
    """Remove a fillup."""
    service = make_service(args)
    result = service.delete_fillup(args.vehicle_id, args.fillup_id)
    print(f"Fillup {args.fillup_id} deleted.")
    print_outcome(result)
    return 0 if result.complete else 1


def load_import_file(filename: Path) -> List[FillupInput]:
    """
    Read fillups from a YAML list.

    Each item uses the data file keys: date, fuelAmount, totalPrice and
    odometer or distance.
    """
    with open(filename, "r") as fp:
        rows = yaml.load(fp, Loader=yaml.SafeLoader) or []
    if not isinstance(rows, list):
        raise ValueError(f"{filename}: expected a list of fillups")

    inputs = []
    for row in rows:
        if not isinstance(row, dict):
            raise ValueError(f"{filename}: expected a list of fillups")
        entry_date = row.get("date")
        if hasattr(entry_date, "isoformat"):
            entry_date = entry_date.isoformat()
        inputs.append(
            FillupInput(
                date=entry_date,
                fuel_amount=row.get("fuelAmount"),
                total_price=row.get("totalPrice"),
                odometer=row.get("odometer"),
                distance=row.get("distance"),
            )
        )
    return inputs


def cmd_import(args):
    """Add many fillups from a YAML file."""
    service = make_service(args)
    try:
        inputs = load_import_file(args.import_file)
    except (OSError, yaml.YAMLError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    result = service.batch_import_fillups(args.vehicle_id, inputs)
    print(f"Imported {len(result.fillups)} fillups.")
    print_outcome(result)
    return 0 if result.complete else 1


def cmd_stats(args):
    """Show totals and averages."""
    service = make_service(args)
    vehicle = service.store.get_vehicle(args.vehicle_id)
    stats = service.statistics(vehicle.id)

    rows = [
        ["Fillups", stats.fillup_count],
        ["Total distance", format_distance(stats.total_distance)],
        ["Total fuel", format_amount(stats.total_fuel_amount)],
        ["Total cost", format_cost(stats.total_fuel_cost)],
        ["Average consumption", format_consumption(stats.average_consumption)],
        ["Average price per unit", format_cost(stats.average_price_per_unit)],
    ]
    print(f"Vehicle: {vehicle.name}")
    print(tabulate(rows, tablefmt="simple"))
    return 0


def cmd_check(args):
    """Show (or --fix) pending chain corrections."""
    service = make_service(args)
    pending = service.check_vehicle(args.vehicle_id)

    for warning in pending.warnings:
        print(f"Warning (fillup {warning.fillup_id}): {warning.message}")

    if pending.is_consistent:
        print("Chain is consistent.")
        return 0

    rows = [
        [
            str(p.fillup_id),
            format_distance(p.distance_traveled),
            format_consumption(p.fuel_consumption),
        ]
        for p in pending.updated
    ]
    print(f"{len(pending.updated)} fillups need recalculation:")
    print(tabulate(rows, headers=["ID", "Distance", "Cons."], tablefmt="simple"))

    if not args.fix:
        return 1

    result = service.recalculate_vehicle(args.vehicle_id)
    print()
    print("Chain recalculated.")
    print_outcome(result)
    return 0 if result.complete else 1


# =============================================================================
# Main
# =============================================================================


def add_fillup_fields(parser: argparse.ArgumentParser, required: bool) -> None:
    parser.add_argument(
        "--date",
        type=str,
        required=required,
        help="Fillup date, YYYY-MM-DD or ISO date-time",
    )
    parser.add_argument(
        "--fuel", type=float, required=required, help="Amount of fuel added"
    )
    parser.add_argument(
        "--price", type=float, required=required, help="Total price paid"
    )
    mileage = parser.add_mutually_exclusive_group()
    mileage.add_argument(
        "--odometer", type=float, help="Odometer reading (odometer-mode vehicles)"
    )
    mileage.add_argument(
        "--distance",
        type=float,
        help="Distance since last fillup (distance-mode vehicles)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fuel log",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s add-vehicle civic --name "Honda Civic" --baseline 10000
  %(prog)s add civic --date 2024-12-01 --fuel 40.5 --price 260.10 \\
      --odometer 10500
  %(prog)s fillups civic
  %(prog)s edit civic 3 --date 2024-12-02
  %(prog)s baseline civic 10200
  %(prog)s check civic --fix
""",
    )
    parser.add_argument(
        "--data",
        type=Path,
        default=DEFAULT_DATA_FILE,
        help=f"Path to data file (default: {DEFAULT_DATA_FILE})",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log operations to stderr"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("vehicles", help="List vehicles with totals")

    add_vehicle_parser = subparsers.add_parser(
        "add-vehicle", help="Register a vehicle"
    )
    add_vehicle_parser.add_argument("vehicle_id", type=str, help="Short vehicle id")
    add_vehicle_parser.add_argument("--name", type=str, help="Display name")
    add_vehicle_parser.add_argument(
        "--baseline",
        type=float,
        default=0,
        help="Odometer reading before the first fillup (default: 0)",
    )
    add_vehicle_parser.add_argument(
        "--mode",
        choices=[m.value for m in MileageMode],
        default=MileageMode.ODOMETER.value,
        help="Mileage input mode, fixed once created (default: odometer)",
    )

    fillups_parser = subparsers.add_parser("fillups", help="List a vehicle's fillups")
    fillups_parser.add_argument("vehicle_id", type=str)
    fillups_parser.add_argument(
        "--since", type=str, help="Show only fillups since date (YYYY-MM-DD)"
    )
    fillups_parser.add_argument(
        "--asc", action="store_true", help="Oldest first instead of newest first"
    )

    add_parser = subparsers.add_parser("add", help="Record a fillup")
    add_parser.add_argument("vehicle_id", type=str)
    add_fillup_fields(add_parser, required=True)
    add_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be added without saving",
    )

    edit_parser = subparsers.add_parser("edit", help="Change fields of a fillup")
    edit_parser.add_argument("vehicle_id", type=str)
    edit_parser.add_argument("fillup_id", type=int)
    add_fillup_fields(edit_parser, required=False)

    delete_parser = subparsers.add_parser("delete", help="Remove a fillup")
    delete_parser.add_argument("vehicle_id", type=str)
    delete_parser.add_argument("fillup_id", type=int)

    import_parser = subparsers.add_parser(
        "import", help="Add many fillups from a YAML file"
    )
    import_parser.add_argument("vehicle_id", type=str)
    import_parser.add_argument("import_file", type=Path)

    delete_vehicle_parser = subparsers.add_parser(
        "delete-vehicle", help="Remove a vehicle and its fillups"
    )
    delete_vehicle_parser.add_argument("vehicle_id", type=str)
    delete_vehicle_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be deleted without saving",
    )

    baseline_parser = subparsers.add_parser(
        "baseline", help="Change a vehicle's baseline odometer"
    )
    baseline_parser.add_argument("vehicle_id", type=str)
    baseline_parser.add_argument("odometer", type=float)
    baseline_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be updated without saving",
    )

    stats_parser = subparsers.add_parser("stats", help="Show totals and averages")
    stats_parser.add_argument("vehicle_id", type=str)

    check_parser = subparsers.add_parser(
        "check", help="Show pending chain corrections"
    )
    check_parser.add_argument("vehicle_id", type=str)
    check_parser.add_argument(
        "--fix", action="store_true", help="Write the corrections"
    )

    return parser


COMMANDS = {
    "vehicles": cmd_vehicles,
    "add-vehicle": cmd_add_vehicle,
    "delete-vehicle": cmd_delete_vehicle,
    "fillups": cmd_fillups,
    "add": cmd_add,
    "edit": cmd_edit,
    "delete": cmd_delete,
    "import": cmd_import,
    "baseline": cmd_baseline,
    "stats": cmd_stats,
    "check": cmd_check,
}


def main(argv: Optional[List[str]] = None):
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        return COMMANDS[args.command](args)
    except FuelLogError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
