from decimal import Decimal
from itertools import combinations

from load_planner.io import expand_units
from load_planner.models import CargoItem, DunnageCounts
from load_planner.occupancy import rectangles_overlap
from load_planner.planner import group_units, optimize, zone_for_position
from load_planner.vehicles import get_vehicle

TOLERANCE = Decimal("1e-9")


def _item(item_id: str, item_type: str, subtype: str, qty: int, weight: str) -> CargoItem:
    return CargoItem(item_id=item_id, type=item_type, subtype=subtype, quantity=qty, weight_kg=Decimal(weight))


def _mixed_cargo() -> list[CargoItem]:
    return [
        _item("P1", "pallet", "europallet", 5, "2000"),
        _item("T1", "tank", "big", 3, "900"),
        _item("E1", "EWC", "800x1200", 6, "1800"),
        _item("T2", "tank", "small", 4, "400"),
        _item("C1", "pallet", "custom", 2, "500"),
        _item("X1", "crate", "unknown", 1, "75"),
        _item("P2", "pallet", "europallet", 2, "0"),
    ]


def _inventory(standard: int = 10, small: int = 20) -> DunnageCounts:
    return DunnageCounts(standard=standard, small=small, three_d=5, pallet_stabilizer=15)


def test_expand_units_splits_weight_evenly():
    units = expand_units([_item("A", "pallet", "europallet", 3, "100")])
    assert [unit.unit_id for unit in units] == ["A#1", "A#2", "A#3"]
    assert all(unit.weight_kg == Decimal("100") / 3 for unit in units)
    assert abs(sum(unit.weight_kg for unit in units) - Decimal("100")) < TOLERANCE


def test_expand_units_derives_stackability_from_type():
    units = expand_units([_item("E", "EWC", "800x1200", 1, "10"), _item("P", "pallet", "europallet", 1, "10")])
    assert [unit.stackable for unit in units] == [True, False]


def test_group_units_keeps_first_seen_order():
    units = expand_units(
        [
            _item("A", "tank", "big", 1, "10"),
            _item("B", "pallet", "europallet", 1, "10"),
            _item("C", "tank", "big", 1, "10"),
        ]
    )
    groups = group_units(units)
    assert list(groups) == [("tank", "big"), ("pallet", "europallet")]
    assert [unit.item_id for unit in groups[("tank", "big")]] == ["A", "C"]


def test_scenario_three_europallets():
    result = optimize([_item("EP", "pallet", "europallet", 3, "1200")], get_vehicle("pianale"), _inventory())
    assert len(result.placed_items) == 3
    assert result.remaining_items == ()
    assert all(pi.width_cm == 80 for pi in result.placed_items)
    assert result.space_utilization_pct > 0
    assert result.space_utilization_pct == 9
    assert result.weight_utilization_pct == 5
    assert result.total_weight_kg == Decimal("1200")


def test_scenario_four_europallets():
    result = optimize([_item("EP", "pallet", "europallet", 4, "1600")], get_vehicle("pianale"), _inventory())
    assert len(result.placed_items) == 4
    assert all(pi.width_cm == 120 for pi in result.placed_items)
    assert sorted({pi.y_cm for pi in result.placed_items}) == [0, 80]
    # everything sits ahead of the front axle reference
    assert result.front_axle_load_kg == Decimal("1600")
    assert result.rear_axle_load_kg == 0
    assert result.load_balance == "Unbalanced"


def test_scenario_tank_subtypes_pack_separately():
    items = [_item("BIG", "tank", "big", 1, "500"), _item("SMALL", "tank", "small", 1, "200")]
    result = optimize(items, get_vehicle("container"), _inventory())
    assert [pi.item_id for pi in result.placed_items] == ["BIG", "SMALL"]
    assert result.remaining_items == ()
    big, small = result.placed_items
    assert not rectangles_overlap(
        big.x_cm, big.y_cm, big.width_cm, big.height_cm,
        small.x_cm, small.y_cm, small.width_cm, small.height_cm,
    )


def test_scenario_unknown_subtype_goes_to_remaining():
    items = [_item("EP", "pallet", "europallet", 3, "1200"), _item("Q", "pallet", "mystery", 2, "999")]
    result = optimize(items, get_vehicle("pianale"), _inventory())
    assert [unit.unit_id for unit in result.remaining_items] == ["Q#1", "Q#2"]
    assert result.total_weight_kg == Decimal("1200")
    assert all(pi.item_id == "EP" for pi in result.placed_items)


def test_scenario_small_dunnage_stops_at_inventory():
    result = optimize(
        [_item("EP", "pallet", "europallet", 3, "1200")],
        get_vehicle("pianale"),
        DunnageCounts(standard=0, small=5),
    )
    large_slots = [g for g in result.dunnage_gaps if g.width_cm >= 80 and g.height_cm >= 60]
    assert len(large_slots) > 5
    assert result.used_dunnage.standard == 0
    assert result.used_dunnage.small == 5


def test_dunnage_usage_never_exceeds_inventory():
    inventory = DunnageCounts(standard=2, small=1, three_d=3, pallet_stabilizer=3)
    result = optimize(_mixed_cargo(), get_vehicle("pianale"), inventory)
    used = result.used_dunnage
    assert used.standard <= inventory.standard
    assert used.small <= inventory.small
    assert used.three_d == 0
    assert used.pallet_stabilizer == 0


def test_raw_gaps_are_uniform_free_cells():
    result = optimize([_item("EP", "pallet", "europallet", 4, "1600")], get_vehicle("pianale"), _inventory())
    assert all(gap.width_cm == 20 and gap.height_cm == 20 for gap in result.gaps)
    for gap in result.gaps:
        for pi in result.placed_items:
            assert not rectangles_overlap(
                gap.x_cm, gap.y_cm, gap.width_cm, gap.height_cm,
                pi.x_cm, pi.y_cm, pi.width_cm, pi.height_cm,
            )


def test_no_overlap_and_bounds_invariants():
    vehicle = get_vehicle("pianale")
    result = optimize(_mixed_cargo(), vehicle, _inventory())
    assert len(result.placed_items) > 0
    for a, b in combinations(result.placed_items, 2):
        assert not rectangles_overlap(
            a.x_cm, a.y_cm, a.width_cm, a.height_cm,
            b.x_cm, b.y_cm, b.width_cm, b.height_cm,
        ), (a.unit_id, b.unit_id)
    for pi in result.placed_items:
        assert pi.x_cm >= 0 and pi.y_cm >= 0
        assert pi.x_cm + pi.width_cm <= vehicle.width_cm
        assert pi.y_cm + pi.height_cm <= vehicle.length_cm


def test_weight_conservation():
    items = _mixed_cargo()
    result = optimize(items, get_vehicle("pianale"), _inventory())
    placed = sum((pi.weight_kg for pi in result.placed_items), Decimal("0"))
    remaining = sum((unit.weight_kg for unit in result.remaining_items), Decimal("0"))
    assert abs(result.total_weight_kg - placed) < TOLERANCE
    assert abs(placed + remaining - sum(item.weight_kg for item in items)) < TOLERANCE


def test_optimize_is_deterministic():
    vehicle = get_vehicle("pianale")
    first = optimize(_mixed_cargo(), vehicle, _inventory())
    second = optimize(_mixed_cargo(), vehicle, _inventory())
    assert first == second


def test_groups_stack_along_the_length():
    result = optimize(
        [_item("EP", "pallet", "europallet", 3, "1200"), _item("E", "EWC", "1000x1200", 2, "600")],
        get_vehicle("pianale"),
        _inventory(),
    )
    crates = [pi for pi in result.placed_items if pi.type == "EWC"]
    assert [(pi.x_cm, pi.y_cm) for pi in crates] == [(0, 120), (100, 120)]


def test_degenerate_vehicle_returns_empty_plan():
    vehicle = get_vehicle("pianale")
    vehicle.length_cm = Decimal("0")
    result = optimize([_item("EP", "pallet", "europallet", 3, "1200")], vehicle, _inventory())
    assert result.placed_items == ()
    assert len(result.remaining_items) == 3
    assert result.gaps == ()
    assert result.space_utilization_pct == 0


def test_zone_for_position_uses_named_zones():
    vehicle = get_vehicle("pianale")
    assert zone_for_position(Decimal("0"), vehicle) == "Front Zone"
    assert zone_for_position(Decimal("680"), vehicle) == "Rear Zone"
    assert zone_for_position(Decimal("1360"), vehicle) is None
