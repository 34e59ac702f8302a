from decimal import Decimal

import pandas as pd
import pytest

from load_planner.io import (
    CargoInputError,
    load_cargo_csv,
    normalize_cargo_rows,
    parse_dunnage_inventory,
    result_to_dict,
)
from load_planner.models import CargoItem, DunnageCounts
from load_planner.planner import optimize
from load_planner.vehicles import get_vehicle


def _row(**overrides) -> dict:
    row = {"item_id": "A", "type": "pallet", "subtype": "europallet", "quantity": 2, "weight_kg": 800}
    row.update(overrides)
    return row


def test_input_validation_rejects_zero_quantity():
    df = pd.DataFrame([_row(quantity=0)])
    with pytest.raises(CargoInputError, match="row 1"):
        normalize_cargo_rows(df)


def test_input_validation_rejects_unknown_type_and_negative_weight():
    with pytest.raises(CargoInputError, match="type"):
        normalize_cargo_rows(pd.DataFrame([_row(type="box")]))
    with pytest.raises(CargoInputError, match="weight_kg"):
        normalize_cargo_rows(pd.DataFrame([_row(), _row(weight_kg=-1)]))
    with pytest.raises(CargoInputError, match="weight_kg"):
        normalize_cargo_rows(pd.DataFrame([_row(weight_kg="heavy")]))


def test_missing_columns_are_reported():
    with pytest.raises(CargoInputError, match="subtype"):
        normalize_cargo_rows(pd.DataFrame([{"item_id": "A", "type": "tank", "quantity": 1, "weight_kg": 1}]))


def test_csv_aliases_and_type_normalization():
    text = "ID,Type,Subtype,number_of_items,Weight\nE-1,ewc,800x1200,2,300\nT-1,Tank,big,1,120.5\n"
    items = normalize_cargo_rows(load_cargo_csv(text))
    assert items == [
        CargoItem(item_id="E-1", type="EWC", subtype="800x1200", quantity=2, weight_kg=Decimal("300")),
        CargoItem(item_id="T-1", type="tank", subtype="big", quantity=1, weight_kg=Decimal("120.5")),
    ]
    assert [item.stackable for item in items] == [True, False]


def test_parse_dunnage_inventory_uses_external_keys():
    inventory = parse_dunnage_inventory({"standard": 10, "small": "20", "3d": 5, "pallet_stabilizer": None})
    assert inventory == DunnageCounts(standard=10, small=20, three_d=5, pallet_stabilizer=0)
    assert inventory.as_dict() == {"standard": 10, "small": 20, "3d": 5, "pallet_stabilizer": 0}
    with pytest.raises(CargoInputError):
        parse_dunnage_inventory({"standard": -1})
    with pytest.raises(CargoInputError):
        parse_dunnage_inventory({"small": "many"})


def test_result_to_dict_shape():
    items = [CargoItem(item_id="EP", type="pallet", subtype="europallet", quantity=3, weight_kg=Decimal("1200"))]
    payload = result_to_dict(optimize(items, get_vehicle("pianale"), DunnageCounts(standard=1)))
    assert set(payload) == {
        "placedItems",
        "remainingItems",
        "usedAirbags",
        "totalWeight",
        "frontAxleLoad",
        "rearAxleLoad",
        "spaceUtilization",
        "weightUtilization",
        "loadBalance",
        "gaps",
    }
    assert payload["placedItems"][0] == {
        "item_id": "EP",
        "type": "pallet",
        "subtype": "europallet",
        "x": 0.0,
        "y": 0.0,
        "width": 80.0,
        "height": 120.0,
        "weight": 400.0,
        "zone": "Front",
    }
    assert payload["usedAirbags"] == {"standard": 1, "small": 0, "3d": 0, "pallet_stabilizer": 0}
    assert payload["totalWeight"] == 1200.0
