from load_planner.io import CargoInputError, expand_units, load_cargo_csv, normalize_cargo_rows, parse_dunnage_inventory, result_to_dict
from load_planner.planner import group_units, optimize
from load_planner.reporting import build_placement_rows, build_summary_rows
from load_planner.store import MemoryStore
from load_planner.vehicles import VehicleConfigError, load_default_vehicles, parse_vehicle_specs

__all__ = [
    "CargoInputError",
    "expand_units",
    "load_cargo_csv",
    "normalize_cargo_rows",
    "parse_dunnage_inventory",
    "result_to_dict",
    "group_units",
    "optimize",
    "build_placement_rows",
    "build_summary_rows",
    "MemoryStore",
    "VehicleConfigError",
    "load_default_vehicles",
    "parse_vehicle_specs",
]
