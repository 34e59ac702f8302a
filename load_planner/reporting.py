from __future__ import annotations

from decimal import Decimal

import pandas as pd

from load_planner.catalog import lookup_dunnage
from load_planner.metrics import remaining_capacity
from load_planner.models import DunnageCounts, OptimizationResult, VehicleSpec
from load_planner.planner import zone_for_position
from load_planner.rounding import display

TYPE_COLORS = {
    "pallet": [180, 120, 60, 200],
    "tank": [0, 120, 255, 200],
    "EWC": [120, 60, 180, 200],
}


def build_placement_rows(result: OptimizationResult, vehicle: VehicleSpec) -> pd.DataFrame:
    rows = []
    for order, placed in enumerate(result.placed_items, start=1):
        center_y = placed.y_cm + placed.height_cm / Decimal("2")
        rows.append(
            {
                "order": order,
                "unit_id": placed.unit_id,
                "item_id": placed.item_id,
                "type": placed.type,
                "subtype": placed.subtype,
                "x_cm": display(placed.x_cm),
                "y_cm": display(placed.y_cm),
                "width_cm": display(placed.width_cm),
                "height_cm": display(placed.height_cm),
                "weight_kg": display(placed.weight_kg),
                "zone": placed.zone,
                "bed_zone": zone_for_position(center_y, vehicle) or "",
            }
        )
    return pd.DataFrame(rows)


def build_remaining_rows(result: OptimizationResult) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "unit_id": unit.unit_id,
                "item_id": unit.item_id,
                "type": unit.type,
                "subtype": unit.subtype,
                "weight_kg": display(unit.weight_kg),
            }
            for unit in result.remaining_items
        ]
    )


def build_summary_rows(result: OptimizationResult, vehicle: VehicleSpec) -> pd.DataFrame:
    remaining = remaining_capacity(result, vehicle)
    rows = [
        ("vehicle", vehicle.name),
        ("placed_units", len(result.placed_items)),
        ("remaining_units", len(result.remaining_items)),
        ("total_weight_kg", display(result.total_weight_kg)),
        ("front_axle_load_kg", display(result.front_axle_load_kg)),
        ("front_axle_limit_kg", vehicle.front_axle_limit_kg),
        ("front_axle_ok", remaining.front_axle_ok),
        ("rear_axle_load_kg", display(result.rear_axle_load_kg)),
        ("rear_axle_limit_kg", vehicle.rear_axle_limit_kg),
        ("rear_axle_ok", remaining.rear_axle_ok),
        ("space_utilization_pct", result.space_utilization_pct),
        ("weight_utilization_pct", result.weight_utilization_pct),
        ("load_balance", result.load_balance),
        ("remaining_space_pct", remaining.space_pct),
        ("remaining_weight_kg", display(remaining.weight_kg)),
        ("remaining_floor_m2", remaining.floor_area_m2),
    ]
    for kind, count in result.used_dunnage.as_dict().items():
        rows.append((f"dunnage_{kind}", count))
    return pd.DataFrame(rows, columns=["metric", "value"])


def build_bed_polygons(result: OptimizationResult) -> pd.DataFrame:
    """Top-down polygons (x across, y along the bed) for the deck view."""
    rows = []
    for placed in result.placed_items:
        x0, y0 = float(placed.x_cm), float(placed.y_cm)
        x1, y1 = x0 + float(placed.width_cm), y0 + float(placed.height_cm)
        rows.append(
            {
                "unit_id": placed.unit_id,
                "type": placed.type,
                "subtype": placed.subtype,
                "weight_kg": float(placed.weight_kg),
                "polygon": [[x0, y0], [x1, y0], [x1, y1], [x0, y1]],
                "color": TYPE_COLORS.get(placed.type, [128, 128, 128, 200]),
            }
        )
    return pd.DataFrame(rows)


def build_dunnage_rows(result: OptimizationResult, inventory: DunnageCounts) -> pd.DataFrame:
    stock = inventory.as_dict()
    rows = []
    for kind, used in result.used_dunnage.as_dict().items():
        dims = lookup_dunnage(kind)
        rows.append(
            {
                "kind": kind,
                "used": used,
                "stock": stock[kind],
                "left": stock[kind] - used,
                "size_cm": f"{dims['width']} x {dims['height']} x {dims['depth']}",
            }
        )
    return pd.DataFrame(rows)


def build_zone_dividers(vehicle: VehicleSpec) -> pd.DataFrame:
    """Lines across the bed where one named zone ends and the next begins."""
    width = float(vehicle.width_cm)
    rows = [
        {"name": zone.name, "path": [[0.0, float(zone.start_cm)], [width, float(zone.start_cm)]]}
        for zone in vehicle.zones
        if 0 < zone.start_cm < vehicle.length_cm
    ]
    return pd.DataFrame(rows, columns=["name", "path"])


def build_zone_labels(vehicle: VehicleSpec) -> pd.DataFrame:
    width = float(vehicle.width_cm)
    rows = [
        {
            "name": zone.name,
            "position": [width / 2, float((zone.start_cm + zone.end_cm) / Decimal("2"))],
        }
        for zone in vehicle.zones
    ]
    return pd.DataFrame(rows, columns=["name", "position"])
