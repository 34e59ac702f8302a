from decimal import Decimal

from load_planner.gaps import fill_dunnage, merge_gaps, scan_gaps
from load_planner.io import expand_units
from load_planner.models import CargoItem, DunnageCounts, Gap, Placement, VehicleSpec
from load_planner.occupancy import OccupancyIndex, rectangles_overlap


def _vehicle(length: str, width: str) -> VehicleSpec:
    return VehicleSpec(
        type="test",
        name="test",
        length_cm=Decimal(length),
        width_cm=Decimal(width),
        height_cm=Decimal("250"),
        max_weight_kg=Decimal("24000"),
        front_axle_limit_kg=Decimal("7000"),
        rear_axle_limit_kg=Decimal("11000"),
    )


def _placement(x, y, w, h) -> Placement:
    unit = expand_units([CargoItem(item_id="P", type="pallet", subtype="custom", quantity=1, weight_kg=Decimal("10"))])[0]
    return Placement(
        unit=unit,
        x_cm=Decimal(x),
        y_cm=Decimal(y),
        width_cm=Decimal(w),
        height_cm=Decimal(h),
        weight_kg=unit.weight_kg,
    )


def _gap(w, h, x="0", y="0") -> Gap:
    return Gap(x_cm=Decimal(x), y_cm=Decimal(y), width_cm=Decimal(w), height_cm=Decimal(h))


def test_touching_edges_do_not_overlap():
    assert not rectangles_overlap(0, 0, 40, 40, 40, 0, 20, 20)
    assert not rectangles_overlap(0, 0, 40, 40, 0, 40, 20, 20)
    assert rectangles_overlap(0, 0, 40, 40, 39, 39, 20, 20)


def test_occupancy_fits_checks_bounds_and_overlap():
    index = OccupancyIndex(_vehicle("200", "100"))
    assert index.high_water_mark() == 0
    assert index.fits(Decimal("0"), Decimal("0"), Decimal("100"), Decimal("200"))
    assert not index.fits(Decimal("1"), Decimal("0"), Decimal("100"), Decimal("50"))
    assert not index.fits(Decimal("0"), Decimal("151"), Decimal("50"), Decimal("50"))
    placement = _placement("0", "0", "50", "80")
    index.add(placement)
    assert index.placements == (placement,)
    assert not index.fits(Decimal("20"), Decimal("20"), Decimal("20"), Decimal("20"))
    assert index.fits(Decimal("50"), Decimal("0"), Decimal("50"), Decimal("80"))
    assert index.high_water_mark() == Decimal("80")


def test_scan_gaps_on_empty_floor():
    index = OccupancyIndex(_vehicle("60", "100"))
    gaps = scan_gaps(index, index.vehicle)
    assert len(gaps) == 15
    assert (gaps[0].x_cm, gaps[0].y_cm) == (0, 0)
    assert (gaps[1].x_cm, gaps[1].y_cm) == (20, 0)
    assert all(gap.width_cm == 20 and gap.height_cm == 20 for gap in gaps)


def test_scan_gaps_skips_occupied_cells():
    index = OccupancyIndex(_vehicle("60", "100"))
    index.add(_placement("0", "0", "40", "40"))
    gaps = scan_gaps(index, index.vehicle)
    assert len(gaps) == 11
    assert (Decimal("40"), Decimal("0")) in {(gap.x_cm, gap.y_cm) for gap in gaps}
    assert (Decimal("20"), Decimal("20")) not in {(gap.x_cm, gap.y_cm) for gap in gaps}


def test_merge_gaps_builds_standard_slots():
    vehicle = _vehicle("60", "160")
    merged = merge_gaps(scan_gaps(OccupancyIndex(vehicle), vehicle), vehicle)
    assert [(g.x_cm, g.y_cm, g.width_cm, g.height_cm) for g in merged] == [(0, 0, 80, 60), (80, 0, 80, 60)]


def test_merge_gaps_keeps_wall_crossing_cells_single():
    vehicle = _vehicle("60", "170")
    merged = merge_gaps(scan_gaps(OccupancyIndex(vehicle), vehicle), vehicle)
    assert [(g.x_cm, g.y_cm, g.width_cm, g.height_cm) for g in merged] == [
        (0, 0, 80, 60),
        (80, 0, 80, 60),
        (160, 0, 20, 20),
        (160, 20, 20, 20),
        (160, 40, 20, 20),
    ]


def test_merge_gaps_stops_at_occupied_cells():
    vehicle = _vehicle("60", "80")
    index = OccupancyIndex(vehicle)
    index.add(_placement("40", "20", "20", "20"))
    merged = merge_gaps(scan_gaps(index, vehicle), vehicle)
    assert merged[0].width_cm == 80 and merged[0].height_cm == 20
    assert sum(g.area_cm2 for g in merged) == Decimal("80") * 60 - 400
    assert merge_gaps([], vehicle) == []


def test_fill_dunnage_prefers_standard_for_large_gaps():
    gaps = [_gap("60", "40"), _gap("80", "60"), _gap("20", "20")]
    used = fill_dunnage(gaps, DunnageCounts(standard=1, small=1, three_d=4, pallet_stabilizer=4))
    assert used == DunnageCounts(standard=1, small=1)


def test_fill_dunnage_falls_back_to_small_when_standard_is_out():
    gaps = [_gap("60", "40"), _gap("80", "60")]
    used = fill_dunnage(gaps, DunnageCounts(standard=0, small=1))
    assert used.standard == 0
    assert used.small == 1


def test_fill_dunnage_skips_small_gaps_and_never_assigns_manual_kinds():
    gaps = [_gap("40", "40"), _gap("60", "20")]
    used = fill_dunnage(gaps, DunnageCounts(standard=5, small=5, three_d=5, pallet_stabilizer=5))
    assert used == DunnageCounts()
