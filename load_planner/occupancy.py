from __future__ import annotations

from decimal import Decimal
from typing import Iterator, List, Tuple

from load_planner.models import Placement, VehicleSpec


def rectangles_overlap(
    x1: Decimal,
    y1: Decimal,
    w1: Decimal,
    h1: Decimal,
    x2: Decimal,
    y2: Decimal,
    w2: Decimal,
    h2: Decimal,
) -> bool:
    # touching edges do not count as overlap
    return not (x1 >= x2 + w2 or x2 >= x1 + w1 or y1 >= y2 + h2 or y2 >= y1 + h1)


class OccupancyIndex:
    """Placed footprints of a single optimize call.

    Circles are stored as their bounding squares. Queries are read-only;
    strategies call :meth:`add` themselves after a successful :meth:`fits`.
    """

    def __init__(self, vehicle: VehicleSpec):
        self.vehicle = vehicle
        self._placements: List[Placement] = []

    def __len__(self) -> int:
        return len(self._placements)

    def __iter__(self) -> Iterator[Placement]:
        return iter(self._placements)

    @property
    def placements(self) -> Tuple[Placement, ...]:
        return tuple(self._placements)

    def is_occupied(self, x: Decimal, y: Decimal, w: Decimal, h: Decimal) -> bool:
        return any(
            rectangles_overlap(x, y, w, h, pl.x_cm, pl.y_cm, pl.width_cm, pl.height_cm)
            for pl in self._placements
        )

    def fits(self, x: Decimal, y: Decimal, w: Decimal, h: Decimal) -> bool:
        if x + w > self.vehicle.width_cm or y + h > self.vehicle.length_cm:
            return False
        return not self.is_occupied(x, y, w, h)

    def high_water_mark(self) -> Decimal:
        return max((pl.y_cm + pl.height_cm for pl in self._placements), default=Decimal("0"))

    def add(self, placement: Placement) -> None:
        self._placements.append(placement)
