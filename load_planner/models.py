from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Mapping, Tuple


STACKABLE_TYPES = {"EWC"}


@dataclass(frozen=True)
class CargoItem:
    item_id: str
    type: str
    subtype: str
    quantity: int
    weight_kg: Decimal
    stackable: bool = field(init=False)

    def __post_init__(self):
        # stackability follows the item type only
        object.__setattr__(self, "stackable", self.type in STACKABLE_TYPES)


@dataclass(frozen=True)
class CargoUnit:
    unit_id: str
    item_id: str
    unit_no: int
    type: str
    subtype: str
    weight_kg: Decimal
    stackable: bool


@dataclass(frozen=True)
class Zone:
    name: str
    start_cm: Decimal
    end_cm: Decimal

    def contains(self, position_cm: Decimal) -> bool:
        return self.start_cm <= position_cm < self.end_cm


@dataclass
class VehicleSpec:
    type: str
    name: str
    length_cm: Decimal
    width_cm: Decimal
    height_cm: Decimal
    max_weight_kg: Decimal
    front_axle_limit_kg: Decimal
    rear_axle_limit_kg: Decimal
    zones: List[Zone] = field(default_factory=list)

    @property
    def floor_area_cm2(self) -> Decimal:
        return self.length_cm * self.width_cm


@dataclass(frozen=True)
class Footprint:
    width_cm: Decimal
    height_cm: Decimal
    shape: str = "rect"


@dataclass(frozen=True)
class Placement:
    unit: CargoUnit
    x_cm: Decimal
    y_cm: Decimal
    width_cm: Decimal
    height_cm: Decimal
    weight_kg: Decimal

    @property
    def area_cm2(self) -> Decimal:
        return self.width_cm * self.height_cm

    @property
    def center_y_cm(self) -> Decimal:
        return self.y_cm + self.height_cm / Decimal("2")


@dataclass(frozen=True)
class PlacedItem:
    item_id: str
    unit_id: str
    type: str
    subtype: str
    x_cm: Decimal
    y_cm: Decimal
    width_cm: Decimal
    height_cm: Decimal
    weight_kg: Decimal
    zone: str


@dataclass(frozen=True)
class Gap:
    x_cm: Decimal
    y_cm: Decimal
    width_cm: Decimal
    height_cm: Decimal

    @property
    def area_cm2(self) -> Decimal:
        return self.width_cm * self.height_cm


DUNNAGE_KEYS = ("standard", "small", "3d", "pallet_stabilizer")


@dataclass(frozen=True)
class DunnageCounts:
    standard: int = 0
    small: int = 0
    three_d: int = 0
    pallet_stabilizer: int = 0

    @classmethod
    def from_mapping(cls, data: Mapping[str, int]) -> "DunnageCounts":
        return cls(
            standard=int(data.get("standard", 0) or 0),
            small=int(data.get("small", 0) or 0),
            three_d=int(data.get("3d", 0) or 0),
            pallet_stabilizer=int(data.get("pallet_stabilizer", 0) or 0),
        )

    def as_dict(self) -> dict[str, int]:
        return {
            "standard": self.standard,
            "small": self.small,
            "3d": self.three_d,
            "pallet_stabilizer": self.pallet_stabilizer,
        }


@dataclass(frozen=True)
class AxleLoads:
    front_kg: Decimal
    rear_kg: Decimal


@dataclass(frozen=True)
class LoadMetrics:
    total_weight_kg: Decimal
    front_axle_load_kg: Decimal
    rear_axle_load_kg: Decimal
    space_utilization_pct: int
    weight_utilization_pct: int
    load_balance: str


@dataclass(frozen=True)
class RemainingCapacity:
    space_pct: int
    weight_kg: Decimal
    floor_area_m2: int
    front_axle_ok: bool
    rear_axle_ok: bool


@dataclass(frozen=True)
class OptimizationResult:
    vehicle_type: str
    placed_items: Tuple[PlacedItem, ...]
    remaining_items: Tuple[CargoUnit, ...]
    used_dunnage: DunnageCounts
    total_weight_kg: Decimal
    front_axle_load_kg: Decimal
    rear_axle_load_kg: Decimal
    space_utilization_pct: int
    weight_utilization_pct: int
    load_balance: str
    gaps: Tuple[Gap, ...]
    dunnage_gaps: Tuple[Gap, ...] = ()
