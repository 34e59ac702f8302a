from __future__ import annotations

import io
from decimal import Decimal
from typing import Iterable, Mapping

import pandas as pd

from load_planner.catalog import is_stackable
from load_planner.models import DUNNAGE_KEYS, CargoItem, CargoUnit, DunnageCounts, Gap, OptimizationResult
from load_planner.rounding import to_decimal

REQUIRED_COLUMNS = [
    "item_id",
    "type",
    "subtype",
    "quantity",
    "weight_kg",
]

ITEM_TYPES = {"pallet", "tank", "EWC"}

MAX_WEIGHT_KG = Decimal("100000")
MAX_QTY = 1000

COLUMN_ALIASES = {
    "id": "item_id",
    "itemid": "item_id",
    "cargoid": "item_id",
    "type": "type",
    "itemtype": "type",
    "subtype": "subtype",
    "variant": "subtype",
    "qty": "quantity",
    "quantity": "quantity",
    "numberofitems": "quantity",
    "count": "quantity",
    "weight": "weight_kg",
    "weightkg": "weight_kg",
    "gross": "weight_kg",
    "grosskg": "weight_kg",
}


def _normalize_column_name(name: str) -> str:
    return "".join(ch for ch in str(name).strip() if ch.isalnum()).lower()


def _apply_column_aliases(df: pd.DataFrame) -> pd.DataFrame:
    rename_map: dict[str, str] = {}
    for col in df.columns:
        target = COLUMN_ALIASES.get(_normalize_column_name(col))
        if target:
            rename_map[col] = target
    if rename_map:
        df = df.rename(columns=rename_map)
    return df


class CargoInputError(ValueError):
    pass


def _normalize_type(value) -> str:
    text = str(value).strip()
    if text.upper() == "EWC":
        return "EWC"
    return text.lower()


def load_cargo_csv(content: str) -> pd.DataFrame:
    data = pd.read_csv(io.StringIO(content))
    return _apply_column_aliases(data)


def ensure_columns(df: pd.DataFrame) -> pd.DataFrame:
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise CargoInputError(f"Missing required columns: {', '.join(missing)}")
    return df


def normalize_cargo_rows(df: pd.DataFrame) -> list[CargoItem]:
    df = ensure_columns(_apply_column_aliases(df))
    items: list[CargoItem] = []
    for row_no, (_, row) in enumerate(df.iterrows(), start=1):
        item_id = row.get("item_id")
        if pd.isna(item_id) or not str(item_id).strip():
            raise CargoInputError(f"item_id is required (row {row_no})")
        item_type = _normalize_type(row.get("type"))
        if item_type not in ITEM_TYPES:
            raise CargoInputError(
                f"type '{row.get('type')}' must be one of {', '.join(sorted(ITEM_TYPES))} (row {row_no})"
            )
        subtype = row.get("subtype")
        if pd.isna(subtype) or not str(subtype).strip():
            raise CargoInputError(f"subtype is required (row {row_no})")

        try:
            quantity = int(row["quantity"])
        except Exception as exc:  # noqa: BLE001
            raise CargoInputError(
                f"quantity value '{row.get('quantity')}' is not an integer (row {row_no})"
            ) from exc
        try:
            weight_kg = to_decimal(row.get("weight_kg"))
        except Exception as exc:  # noqa: BLE001
            raise CargoInputError(
                f"weight_kg value '{row.get('weight_kg')}' is not a number (row {row_no})"
            ) from exc

        if quantity <= 0:
            raise CargoInputError(f"quantity must be at least 1 (row {row_no})")
        if quantity > MAX_QTY:
            raise CargoInputError(f"quantity exceeds the limit ({MAX_QTY}) (row {row_no})")
        if not weight_kg.is_finite() or weight_kg < 0:
            raise CargoInputError(f"weight_kg must be zero or more (row {row_no})")
        if weight_kg > MAX_WEIGHT_KG:
            raise CargoInputError(f"weight_kg exceeds the limit ({MAX_WEIGHT_KG}kg) (row {row_no})")
        items.append(
            CargoItem(
                item_id=str(item_id).strip(),
                type=item_type,
                subtype=str(subtype).strip(),
                quantity=quantity,
                weight_kg=weight_kg,
            )
        )
    return items


def expand_units(items: Iterable[CargoItem]) -> list[CargoUnit]:
    units: list[CargoUnit] = []
    for item in items:
        unit_weight = item.weight_kg / Decimal(item.quantity)
        for i in range(1, item.quantity + 1):
            units.append(
                CargoUnit(
                    unit_id=f"{item.item_id}#{i}",
                    item_id=item.item_id,
                    unit_no=i,
                    type=item.type,
                    subtype=item.subtype,
                    weight_kg=unit_weight,
                    stackable=is_stackable(item.type),
                )
            )
    return units


def parse_dunnage_inventory(data: Mapping[str, object]) -> DunnageCounts:
    counts: dict[str, int] = {}
    for key in DUNNAGE_KEYS:
        raw = data.get(key, 0)
        try:
            value = int(raw or 0)
        except (TypeError, ValueError) as exc:
            raise CargoInputError(f"dunnage count '{key}' is not an integer: {raw!r}") from exc
        if value < 0:
            raise CargoInputError(f"dunnage count '{key}' must be zero or more")
        counts[key] = value
    return DunnageCounts.from_mapping(counts)


def _gap_to_dict(gap: Gap) -> dict:
    return {
        "x": float(gap.x_cm),
        "y": float(gap.y_cm),
        "width": float(gap.width_cm),
        "height": float(gap.height_cm),
    }


def result_to_dict(result: OptimizationResult) -> dict:
    return {
        "placedItems": [
            {
                "item_id": pi.item_id,
                "type": pi.type,
                "subtype": pi.subtype,
                "x": float(pi.x_cm),
                "y": float(pi.y_cm),
                "width": float(pi.width_cm),
                "height": float(pi.height_cm),
                "weight": float(pi.weight_kg),
                "zone": pi.zone,
            }
            for pi in result.placed_items
        ],
        "remainingItems": [
            {
                "item_id": unit.item_id,
                "type": unit.type,
                "subtype": unit.subtype,
                "number_of_items": 1,
                "weight_kg": float(unit.weight_kg),
                "stackable": unit.stackable,
            }
            for unit in result.remaining_items
        ],
        "usedAirbags": result.used_dunnage.as_dict(),
        "totalWeight": float(result.total_weight_kg),
        "frontAxleLoad": float(result.front_axle_load_kg),
        "rearAxleLoad": float(result.rear_axle_load_kg),
        "spaceUtilization": result.space_utilization_pct,
        "weightUtilization": result.weight_utilization_pct,
        "loadBalance": result.load_balance,
        "gaps": [_gap_to_dict(gap) for gap in result.gaps],
    }
