from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Sequence

from load_planner.models import DunnageCounts, Gap, VehicleSpec
from load_planner.occupancy import OccupancyIndex

GRID_CELL_CM = Decimal("20")

# minimum free slot (across x along) for each auto-assigned airbag kind
STANDARD_MIN_CM = (Decimal("80"), Decimal("60"))
SMALL_MIN_CM = (Decimal("60"), Decimal("40"))


def scan_gaps(index: OccupancyIndex, vehicle: VehicleSpec, cell: Decimal = GRID_CELL_CM) -> list[Gap]:
    """Sample the floor on a square grid and return every cell no placement touches.

    Cells are produced row by row from the front of the bed. The last column
    or row may reach past the vehicle wall when the dimensions are not a
    multiple of ``cell``.
    """
    gaps: list[Gap] = []
    y = Decimal("0")
    while y < vehicle.length_cm:
        x = Decimal("0")
        while x < vehicle.width_cm:
            if not index.is_occupied(x, y, cell, cell):
                gaps.append(Gap(x_cm=x, y_cm=y, width_cm=cell, height_cm=cell))
            x += cell
        y += cell
    return gaps


def merge_gaps(
    gaps: Sequence[Gap],
    vehicle: VehicleSpec,
    max_width: Decimal = STANDARD_MIN_CM[0],
    max_height: Decimal = STANDARD_MIN_CM[1],
) -> list[Gap]:
    """Greedily join neighbouring free cells into slots of at most one standard airbag.

    Each slot grows to the right first, then towards the rear, and only over
    cells that are free, inside the bed and not yet claimed. Cells crossing the
    vehicle wall are kept as single-cell slots.
    """
    if not gaps:
        return []
    cell = gaps[0].width_cm
    max_cols = max(1, int(max_width // cell))
    max_rows = max(1, int(max_height // cell))

    def key(gap: Gap) -> tuple[int, int]:
        return int(gap.y_cm // cell), int(gap.x_cm // cell)

    def inside(row: int, col: int) -> bool:
        return (col + 1) * cell <= vehicle.width_cm and (row + 1) * cell <= vehicle.length_cm

    free = {key(gap) for gap in gaps}
    claimed: set[tuple[int, int]] = set()

    def available(row: int, col: int) -> bool:
        return (row, col) in free and (row, col) not in claimed and inside(row, col)

    merged: list[Gap] = []
    for gap in gaps:
        row, col = key(gap)
        if (row, col) in claimed:
            continue
        if not inside(row, col):
            claimed.add((row, col))
            merged.append(gap)
            continue
        cols = 1
        while cols < max_cols and available(row, col + cols):
            cols += 1
        rows = 1
        while rows < max_rows and all(available(row + rows, c) for c in range(col, col + cols)):
            rows += 1
        for r in range(row, row + rows):
            for c in range(col, col + cols):
                claimed.add((r, c))
        merged.append(Gap(x_cm=gap.x_cm, y_cm=gap.y_cm, width_cm=cols * cell, height_cm=rows * cell))
    return merged


def _meets(gap: Gap, minimum: tuple[Decimal, Decimal]) -> bool:
    return gap.width_cm >= minimum[0] and gap.height_cm >= minimum[1]


def fill_dunnage(gaps: Iterable[Gap], inventory: DunnageCounts) -> DunnageCounts:
    # largest first; equal areas keep scan order
    ordered = sorted(gaps, key=lambda gap: gap.area_cm2, reverse=True)
    standard = 0
    small = 0
    for gap in ordered:
        if _meets(gap, STANDARD_MIN_CM) and standard < inventory.standard:
            standard += 1
        elif _meets(gap, SMALL_MIN_CM) and small < inventory.small:
            small += 1
    # 3d bags and pallet stabilizers are allocated by hand
    return DunnageCounts(standard=standard, small=small)
