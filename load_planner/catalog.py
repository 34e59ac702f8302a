"""Static footprint tables for cargo shapes and airbag dunnage."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from load_planner.models import STACKABLE_TYPES, Footprint

# rect entries: (width, height) as seen from above; circles: diameter
ITEM_GEOMETRY = {
    "pallet": {
        "europallet": {"shape": "rect", "width": 120, "height": 80},
        "custom": {"shape": "rect", "width": 100, "height": 100},
    },
    "tank": {
        "small": {"shape": "circle", "diameter": 60},
        "big": {"shape": "circle", "diameter": 100},
    },
    "EWC": {
        "800x1200": {"shape": "rect", "width": 80, "height": 120, "max_layers": 2},
        "1000x1200": {"shape": "rect", "width": 100, "height": 120, "max_layers": 2},
    },
}

DUNNAGE_GEOMETRY = {
    "standard": {"width": 240, "height": 100, "depth": 80},
    "small": {"width": 80, "height": 60, "depth": 20},
    "3d": {"width": 240, "height": 100, "depth": 80},
    "pallet_stabilizer": {"width": 120, "height": 80, "depth": 5},
}


def lookup_footprint(item_type: str, subtype: str) -> Optional[Footprint]:
    entry = ITEM_GEOMETRY.get(item_type, {}).get(subtype)
    if entry is None:
        return None
    if entry["shape"] == "circle":
        diameter = Decimal(str(entry["diameter"]))
        return Footprint(width_cm=diameter, height_cm=diameter, shape="circle")
    return Footprint(
        width_cm=Decimal(str(entry["width"])),
        height_cm=Decimal(str(entry["height"])),
        shape="rect",
    )


def is_stackable(item_type: str) -> bool:
    return item_type in STACKABLE_TYPES


def lookup_dunnage(kind: str) -> Optional[dict]:
    entry = DUNNAGE_GEOMETRY.get(kind)
    if entry is None:
        return None
    return {key: Decimal(str(value)) for key, value in entry.items()}
