from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Optional

from load_planner.gaps import fill_dunnage, merge_gaps, scan_gaps
from load_planner.io import expand_units
from load_planner.metrics import compute_metrics
from load_planner.models import CargoItem, CargoUnit, DunnageCounts, OptimizationResult, VehicleSpec
from load_planner.packing import PackingState, pack_group

logger = logging.getLogger(__name__)


def group_units(units: Iterable[CargoUnit]) -> dict[tuple[str, str], list[CargoUnit]]:
    groups: dict[tuple[str, str], list[CargoUnit]] = {}
    for unit in units:
        groups.setdefault((unit.type, unit.subtype), []).append(unit)
    return groups


def zone_for_position(y_cm: Decimal, vehicle: VehicleSpec) -> Optional[str]:
    for zone in vehicle.zones:
        if zone.contains(y_cm):
            return zone.name
    return None


def optimize(
    items: Iterable[CargoItem],
    vehicle: VehicleSpec,
    inventory: DunnageCounts,
) -> OptimizationResult:
    """Lay out ``items`` on the floor of ``vehicle`` and fill the remaining space with dunnage.

    Quantities are expanded into single units, units are grouped by
    ``(type, subtype)`` in first-seen order and each group is packed by its
    shape strategy behind the groups before it. Units that cannot be placed
    end up in ``remaining_items``; the call never fails because of them.
    """
    units = expand_units(items)
    state = PackingState(vehicle)
    remaining: list[CargoUnit] = []
    for units_in_group in group_units(units).values():
        remaining.extend(pack_group(units_in_group, state))

    gaps = scan_gaps(state.index, vehicle)
    dunnage_gaps = merge_gaps(gaps, vehicle)
    used_dunnage = fill_dunnage(dunnage_gaps, inventory)
    metrics = compute_metrics(state.index, vehicle)

    logger.info(
        "Optimized %s: %d placed, %d remaining, space %d%%, weight %d%%, %s",
        vehicle.type,
        len(state.placed_items),
        len(remaining),
        metrics.space_utilization_pct,
        metrics.weight_utilization_pct,
        metrics.load_balance,
    )
    return OptimizationResult(
        vehicle_type=vehicle.type,
        placed_items=tuple(state.placed_items),
        remaining_items=tuple(remaining),
        used_dunnage=used_dunnage,
        total_weight_kg=metrics.total_weight_kg,
        front_axle_load_kg=metrics.front_axle_load_kg,
        rear_axle_load_kg=metrics.rear_axle_load_kg,
        space_utilization_pct=metrics.space_utilization_pct,
        weight_utilization_pct=metrics.weight_utilization_pct,
        load_balance=metrics.load_balance,
        gaps=tuple(gaps),
        dunnage_gaps=tuple(dunnage_gaps),
    )
