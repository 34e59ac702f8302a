from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, List, Sequence

from load_planner.catalog import lookup_footprint
from load_planner.models import CargoUnit, PlacedItem, Placement, VehicleSpec
from load_planner.occupancy import OccupancyIndex

logger = logging.getLogger(__name__)

PROBE_STEP_CM = Decimal("20")
HEX_PITCH = Decimal(3).sqrt() / Decimal("2")


@dataclass(frozen=True)
class PalletConfig:
    count: int
    rows: int
    per_row: int
    orientation: str  # "long": 120 across the width, "short": 80 across


PALLET_TABLE = {
    3: [PalletConfig(3, 1, 3, "short")],
    4: [PalletConfig(4, 2, 2, "long")],
    5: [PalletConfig(2, 1, 2, "long"), PalletConfig(3, 1, 3, "short")],
    6: [PalletConfig(6, 2, 3, "short")],
    7: [PalletConfig(2, 1, 2, "long"), PalletConfig(5, 2, 3, "short")],
    8: [PalletConfig(4, 2, 2, "long"), PalletConfig(3, 1, 3, "short")],
    9: [PalletConfig(9, 3, 3, "short")],
    33: [PalletConfig(32, 16, 2, "short"), PalletConfig(1, 1, 1, "long")],
}


def midpoint_zone(x_cm: Decimal, vehicle: VehicleSpec) -> str:
    if x_cm < vehicle.width_cm / Decimal("2"):
        return "Front"
    return "Rear"


class PackingState:
    """Call-scoped accumulator shared by the strategies of one optimize run."""

    def __init__(self, vehicle: VehicleSpec):
        self.vehicle = vehicle
        self.index = OccupancyIndex(vehicle)
        self.placed_items: List[PlacedItem] = []
        self.total_weight_kg = Decimal("0")

    def place(self, unit: CargoUnit, x: Decimal, y: Decimal, w: Decimal, h: Decimal) -> Placement:
        placement = Placement(unit=unit, x_cm=x, y_cm=y, width_cm=w, height_cm=h, weight_kg=unit.weight_kg)
        self.index.add(placement)
        self.total_weight_kg += unit.weight_kg
        self.placed_items.append(
            PlacedItem(
                item_id=unit.item_id,
                unit_id=unit.unit_id,
                type=unit.type,
                subtype=unit.subtype,
                x_cm=x,
                y_cm=y,
                width_cm=w,
                height_cm=h,
                weight_kg=unit.weight_kg,
                zone=midpoint_zone(x, self.vehicle),
            )
        )
        return placement


def pallet_configurations(count: int, vehicle: VehicleSpec) -> list[PalletConfig]:
    if count in PALLET_TABLE:
        return list(PALLET_TABLE[count])
    pallet = lookup_footprint("pallet", "europallet")
    short_across = int(vehicle.width_cm // pallet.height_cm)
    long_across = int(vehicle.width_cm // pallet.width_cm)
    if short_across >= 2:
        return [PalletConfig(count, math.ceil(count / short_across), short_across, "short")]
    if long_across == 0:
        return []
    return [PalletConfig(count, math.ceil(count / long_across), long_across, "long")]


def pack_pallets(units: Sequence[CargoUnit], state: PackingState) -> list[CargoUnit]:
    pallet = lookup_footprint("pallet", "europallet")
    configs = pallet_configurations(len(units), state.vehicle)
    y = state.index.high_water_mark()
    placed = 0
    for config in configs:
        if min(config.count, len(units) - placed) <= 0:
            break
        if config.orientation == "long":
            w, h = pallet.width_cm, pallet.height_cm
        else:
            w, h = pallet.height_cm, pallet.width_cm
        for _ in range(config.rows):
            if placed >= len(units):
                break
            x = Decimal("0")
            for _ in range(config.per_row):
                if placed >= len(units):
                    break
                # a blocked slot ends the row; the row is not retried further along
                if not state.index.fits(x, y, w, h):
                    break
                state.place(units[placed], x, y, w, h)
                placed += 1
                x += w
            y += h
            # cumulative count, so later configurations can end after a single row
            if placed >= config.count:
                break
    return list(units[placed:])


def pack_tanks(units: Sequence[CargoUnit], state: PackingState) -> list[CargoUnit]:
    if not units:
        return []
    footprint = lookup_footprint(units[0].type, units[0].subtype)
    if footprint is None:
        return list(units)
    vehicle = state.vehicle
    diameter = footprint.width_cm
    per_row = int(vehicle.width_cm // diameter)
    margin = (vehicle.width_cm - per_row * diameter) / Decimal("2")
    pitch = diameter * HEX_PITCH

    y = state.index.high_water_mark()
    placed = 0
    row = 0
    while placed < len(units) and y + diameter <= vehicle.length_cm:
        if row % 2 == 0:
            start_x = margin
            row_count = per_row
        else:
            start_x = margin + diameter / Decimal("2")
            row_count = max(1, per_row - 1)
        for col in range(row_count):
            if placed >= len(units):
                break
            x = start_x + col * diameter
            if x + diameter <= vehicle.width_cm and state.index.fits(x, y, diameter, diameter):
                state.place(units[placed], x, y, diameter, diameter)
                placed += 1
        y += pitch
        row += 1
    return list(units[placed:])


def pack_generic(units: Sequence[CargoUnit], state: PackingState) -> list[CargoUnit]:
    vehicle = state.vehicle
    remaining: list[CargoUnit] = []
    y = state.index.high_water_mark()
    row_height = Decimal("0")
    for unit in units:
        footprint = lookup_footprint(unit.type, unit.subtype)
        if footprint is None:
            remaining.append(unit)
            continue
        w, h = footprint.width_cm, footprint.height_cm
        placed = False
        x = Decimal("0")
        while x + w <= vehicle.width_cm and not placed:
            if state.index.fits(x, y, w, h):
                state.place(unit, x, y, w, h)
                row_height = max(row_height, h)
                placed = True
            else:
                x += PROBE_STEP_CM
        if placed:
            continue
        # one new row only; a unit that misses it is left over
        y += row_height
        row_height = Decimal("0")
        if y + h <= vehicle.length_cm and state.index.fits(Decimal("0"), y, w, h):
            state.place(unit, Decimal("0"), y, w, h)
            row_height = h
        else:
            remaining.append(unit)
    return remaining


def pack_crates(units: Sequence[CargoUnit], state: PackingState) -> list[CargoUnit]:
    # EWC crates are stackable, but layers are not modelled on the floor plan
    return pack_generic(units, state)


Strategy = Callable[[Sequence[CargoUnit], PackingState], List[CargoUnit]]


def select_strategy(item_type: str, subtype: str) -> Strategy:
    if item_type == "pallet" and subtype == "europallet":
        return pack_pallets
    if item_type == "tank":
        return pack_tanks
    if item_type == "EWC":
        return pack_crates
    return pack_generic


def pack_group(units: Sequence[CargoUnit], state: PackingState) -> list[CargoUnit]:
    if not units:
        return []
    sample = units[0]
    strategy = select_strategy(sample.type, sample.subtype)
    if lookup_footprint(sample.type, sample.subtype) is None:
        logger.warning("No footprint for %s/%s; %d unit(s) left over", sample.type, sample.subtype, len(units))
    leftovers = strategy(units, state)
    logger.debug(
        "%s packed %s/%s: %d placed, %d left over",
        strategy.__name__,
        sample.type,
        sample.subtype,
        len(units) - len(leftovers),
        len(leftovers),
    )
    return leftovers
