from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from load_planner.models import AxleLoads, LoadMetrics, OptimizationResult, Placement, RemainingCapacity, VehicleSpec
from load_planner.rounding import round_half_up, round_pct

FRONT_AXLE_RATIO = Decimal("0.2")
REAR_AXLE_RATIO = Decimal("0.8")
IMBALANCE_RATIO = Decimal("0.3")

OPTIMAL = "Optimal"
UNBALANCED = "Unbalanced"
OVERLOADED = "Overloaded"


def space_utilization(placements: Iterable[Placement], vehicle: VehicleSpec) -> int:
    used_area = sum((pl.area_cm2 for pl in placements), Decimal("0"))
    return round_pct(used_area, vehicle.floor_area_cm2)


def weight_utilization(total_weight_kg: Decimal, vehicle: VehicleSpec) -> int:
    return round_pct(total_weight_kg, vehicle.max_weight_kg)


def axle_loads(placements: Iterable[Placement], vehicle: VehicleSpec) -> AxleLoads:
    front_ref = vehicle.length_cm * FRONT_AXLE_RATIO
    rear_ref = vehicle.length_cm * REAR_AXLE_RATIO
    span = rear_ref - front_ref
    front = Decimal("0")
    rear = Decimal("0")
    for placement in placements:
        center = placement.center_y_cm
        if center < front_ref:
            front += placement.weight_kg
        elif center > rear_ref:
            rear += placement.weight_kg
        else:
            rear_share = (center - front_ref) / span * placement.weight_kg
            front += placement.weight_kg - rear_share
            rear += rear_share
    return AxleLoads(front_kg=front, rear_kg=rear)


def classify_load_balance(front_kg: Decimal, rear_kg: Decimal, total_kg: Decimal, vehicle: VehicleSpec) -> str:
    if front_kg > vehicle.front_axle_limit_kg or rear_kg > vehicle.rear_axle_limit_kg:
        return OVERLOADED
    if abs(front_kg - rear_kg) > total_kg * IMBALANCE_RATIO:
        return UNBALANCED
    return OPTIMAL


def compute_metrics(placements: Iterable[Placement], vehicle: VehicleSpec) -> LoadMetrics:
    placements = list(placements)
    total = sum((pl.weight_kg for pl in placements), Decimal("0"))
    loads = axle_loads(placements, vehicle)
    return LoadMetrics(
        total_weight_kg=total,
        front_axle_load_kg=loads.front_kg,
        rear_axle_load_kg=loads.rear_kg,
        space_utilization_pct=space_utilization(placements, vehicle),
        weight_utilization_pct=weight_utilization(total, vehicle),
        load_balance=classify_load_balance(loads.front_kg, loads.rear_kg, total, vehicle),
    )


def remaining_capacity(result: OptimizationResult, vehicle: VehicleSpec) -> RemainingCapacity:
    free_pct = 100 - result.space_utilization_pct
    free_area_cm2 = vehicle.floor_area_cm2 * Decimal(free_pct) / Decimal("100")
    return RemainingCapacity(
        space_pct=free_pct,
        weight_kg=vehicle.max_weight_kg - result.total_weight_kg,
        floor_area_m2=int(round_half_up(free_area_cm2 / Decimal("10000"))),
        front_axle_ok=result.front_axle_load_kg <= vehicle.front_axle_limit_kg,
        rear_axle_ok=result.rear_axle_load_kg <= vehicle.rear_axle_limit_kg,
    )
