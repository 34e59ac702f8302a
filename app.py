from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd
from pandas.errors import EmptyDataError
import pydeck as pdk
import streamlit as st

from load_planner import (
    CargoInputError,
    MemoryStore,
    VehicleConfigError,
    build_placement_rows,
    build_summary_rows,
    load_cargo_csv,
    normalize_cargo_rows,
    optimize,
    parse_dunnage_inventory,
    parse_vehicle_specs,
)
from load_planner.catalog import ITEM_GEOMETRY
from load_planner.models import CargoItem
from load_planner.reporting import (
    build_bed_polygons,
    build_dunnage_rows,
    build_remaining_rows,
    build_zone_dividers,
    build_zone_labels,
)
from load_planner.vehicles import DEFAULT_VEHICLES_YAML

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.set_page_config(page_title="Truck Load Planner", layout="wide")
st.title("Truck Load Planner")
st.caption("Enter the cargo list, pick a vehicle and airbag stock, then run the optimizer.")

CARGO_COLUMNS = ["item_id", "type", "subtype", "quantity", "weight_kg"]


def _empty_cargo_df() -> pd.DataFrame:
    return pd.DataFrame(columns=CARGO_COLUMNS)


def _items_to_df(records) -> pd.DataFrame:
    if not records:
        return _empty_cargo_df()
    return pd.DataFrame(
        [
            {
                "record_id": record.id,
                "item_id": record.item.item_id,
                "type": record.item.type,
                "subtype": record.item.subtype,
                "quantity": record.item.quantity,
                "weight_kg": float(record.item.weight_kg),
                "stackable": record.item.stackable,
            }
            for record in records
        ]
    )


def _item_from_inputs(item_id: str, item_type: str, subtype: str, quantity, weight_kg) -> CargoItem:
    return normalize_cargo_rows(
        pd.DataFrame(
            [
                {
                    "item_id": item_id.strip(),
                    "type": item_type,
                    "subtype": subtype,
                    "quantity": int(quantity),
                    "weight_kg": weight_kg,
                }
            ]
        )
    )[0]


def _read_text(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def _render_bed(result, vehicle):
    polygons = build_bed_polygons(result)
    outline = pd.DataFrame(
        [
            {
                "polygon": [
                    [0, 0],
                    [float(vehicle.width_cm), 0],
                    [float(vehicle.width_cm), float(vehicle.length_cm)],
                    [0, float(vehicle.length_cm)],
                ]
            }
        ]
    )
    layers = [
        pdk.Layer(
            "PolygonLayer",
            data=outline,
            get_polygon="polygon",
            filled=False,
            stroked=True,
            get_line_color="[80, 80, 80]",
            line_width_min_pixels=2,
        )
    ]
    dividers = build_zone_dividers(vehicle)
    if not dividers.empty:
        layers.append(
            pdk.Layer(
                "PathLayer",
                data=dividers,
                get_path="path",
                get_color="[200, 60, 60]",
                width_min_pixels=2,
            )
        )
    if not polygons.empty:
        layers.append(
            pdk.Layer(
                "PolygonLayer",
                data=polygons,
                get_polygon="polygon",
                get_fill_color="color",
                get_line_color="[255, 255, 255]",
                line_width_min_pixels=1,
                pickable=True,
                auto_highlight=True,
            )
        )
    labels = build_zone_labels(vehicle)
    if not labels.empty:
        layers.append(
            pdk.Layer(
                "TextLayer",
                data=labels,
                get_position="position",
                get_text="name",
                get_size=14,
                get_color="[60, 60, 60]",
            )
        )
    st.pydeck_chart(
        pdk.Deck(
            map_style=None,
            views=[pdk.View(type="OrthographicView", controller=True)],
            initial_view_state=pdk.ViewState(
                target=[float(vehicle.width_cm) / 2, float(vehicle.length_cm) / 2, 0],
                zoom=-2,
            ),
            layers=layers,
            tooltip={"text": "{unit_id}\n{type}/{subtype}\n{weight_kg} kg"},
        ),
        use_container_width=True,
    )


def _render_result(result, vehicle):
    metric_cols = st.columns(5)
    metric_cols[0].metric("Total weight (kg)", f"{round(result.total_weight_kg)}")
    metric_cols[1].metric("Weight utilization", f"{result.weight_utilization_pct}%")
    metric_cols[2].metric("Space utilization", f"{result.space_utilization_pct}%")
    metric_cols[3].metric("Units placed", len(result.placed_items))
    metric_cols[4].metric("Load balance", result.load_balance)

    if result.load_balance == "Overloaded":
        st.error("At least one axle is over its limit.")
    elif result.load_balance == "Unbalanced":
        st.warning("Front and rear axle loads differ by more than 30% of the total weight.")

    summary_df = build_summary_rows(result, vehicle)
    placement_df = build_placement_rows(result, vehicle)

    view_col, table_col = st.columns([1, 2])
    with view_col:
        st.markdown("**Bed view (top-down, front at the top)**")
        _render_bed(result, vehicle)
    with table_col:
        st.subheader("Placements")
        st.dataframe(placement_df, use_container_width=True)
        st.download_button(
            "Download placements CSV",
            data=placement_df.to_csv(index=False).encode("utf-8-sig"),
            file_name="placements.csv",
            use_container_width=True,
        )
        st.subheader("Summary")
        st.dataframe(summary_df, use_container_width=True)

    st.subheader("Unplaced units")
    if result.remaining_items:
        st.warning(f"{len(result.remaining_items)} unit(s) could not be placed")
        st.dataframe(build_remaining_rows(result), use_container_width=True)
    else:
        st.success("All units were placed")


if "store" not in st.session_state:
    st.session_state["store"] = MemoryStore()
store: MemoryStore = st.session_state["store"]

with st.sidebar:
    st.header("Airbag stock")
    inventory_input = {
        "standard": st.number_input("Standard", min_value=0, value=10, step=1),
        "small": st.number_input("Small", min_value=0, value=20, step=1),
        "3d": st.number_input("3D", min_value=0, value=5, step=1),
        "pallet_stabilizer": st.number_input("Pallet stabilizer", min_value=0, value=15, step=1),
    }

plan_tab, history_tab, maintenance_tab = st.tabs(["Plan", "Saved results", "Vehicles"])

with maintenance_tab:
    st.header("Vehicle presets")
    st.caption("Edit or upload vehicles.yaml. Zones are half-open intervals along the bed length.")
    st.file_uploader("Upload vehicles.yaml", type=["yaml", "yml"], key="vehicles_file")
    st.text_area("vehicles.yaml", key="vehicles_text_input", height=320, value=DEFAULT_VEHICLES_YAML)

vehicles_yaml = DEFAULT_VEHICLES_YAML
if st.session_state.get("vehicles_file") is not None:
    vehicles_yaml = st.session_state["vehicles_file"].getvalue().decode("utf-8")
elif st.session_state.get("vehicles_text_input", "").strip():
    vehicles_yaml = st.session_state["vehicles_text_input"]

try:
    vehicles = {spec.type: spec for spec in parse_vehicle_specs(vehicles_yaml)}
except VehicleConfigError as exc:
    st.error(str(exc))
    st.stop()
if not vehicles:
    st.warning("No vehicles configured. Check the Vehicles tab.")
    st.stop()

with plan_tab:
    vehicle_type = st.selectbox(
        "Vehicle",
        options=list(vehicles),
        format_func=lambda key: vehicles[key].name,
    )
    vehicle = vehicles[vehicle_type]

    st.subheader("Add cargo")
    add_col1, add_col2, add_col3, add_col4, add_col5 = st.columns(5)
    with add_col1:
        quick_id = st.text_input("Item ID", key="quick_id", placeholder="e.g. P-001")
    with add_col2:
        quick_type = st.selectbox("Type", list(ITEM_GEOMETRY), key="quick_type")
    with add_col3:
        quick_subtype = st.selectbox("Subtype", list(ITEM_GEOMETRY[quick_type]), key="quick_subtype")
    with add_col4:
        quick_qty = st.number_input("Quantity", min_value=1, value=1, step=1, key="quick_qty")
    with add_col5:
        quick_weight = st.number_input("Total weight (kg)", min_value=0.0, value=0.0, step=10.0, key="quick_weight")

    if st.button("Add to cargo list", use_container_width=True):
        if not quick_id.strip():
            st.error("Item ID is required.")
        else:
            try:
                item = _item_from_inputs(quick_id, quick_type, quick_subtype, quick_qty, quick_weight)
            except CargoInputError as exc:
                st.error(str(exc))
            else:
                store.create_item(item)
                st.success(f"Added {item.item_id}")

    csv_col1, csv_col2 = st.columns(2)
    with csv_col1:
        cargo_file = st.file_uploader("Upload cargo CSV", type=["csv"], key="cargo")
    with csv_col2:
        cargo_text = st.text_area(
            "Paste cargo CSV",
            height=140,
            placeholder="item_id,type,subtype,quantity,weight_kg\nP-001,pallet,europallet,4,1600",
        )
    load_col1, load_col2 = st.columns(2)
    if load_col1.button("Load sample cargo", use_container_width=True):
        try:
            for item in normalize_cargo_rows(load_cargo_csv(_read_text("data/cargo.sample.csv"))):
                store.create_item(item)
            st.success("Sample cargo loaded.")
        except (OSError, CargoInputError) as exc:
            st.error(f"Sample cargo could not be loaded: {exc}")
    if load_col2.button("Import cargo CSV", use_container_width=True):
        try:
            if cargo_file is not None:
                imported = normalize_cargo_rows(load_cargo_csv(cargo_file.getvalue().decode("utf-8")))
            elif cargo_text.strip():
                imported = normalize_cargo_rows(load_cargo_csv(cargo_text))
            else:
                imported = []
                st.warning("Upload a CSV or paste its text first.")
            for item in imported:
                store.create_item(item)
            if imported:
                st.success(f"Imported {len(imported)} cargo line(s).")
        except EmptyDataError:
            st.error("The cargo CSV is empty.")
        except CargoInputError as exc:
            st.error(str(exc))

    st.subheader("Cargo list")
    records = store.list_items()
    cargo_df = _items_to_df(records)
    if cargo_df.empty:
        st.info("No cargo yet. Add items above or import a CSV.")
    else:
        st.dataframe(cargo_df, use_container_width=True)
        with st.expander("Edit record"):
            records_by_id = {record.id: record for record in records}
            edit_id = st.selectbox("Record to edit", list(records_by_id), key="edit_id")
            editing = records_by_id[edit_id].item
            edit_col1, edit_col2, edit_col3, edit_col4, edit_col5 = st.columns(5)
            with edit_col1:
                edit_item_id = st.text_input("Item ID", value=editing.item_id, key=f"edit_item_id_{edit_id}")
            with edit_col2:
                type_options = list(ITEM_GEOMETRY)
                edit_type = st.selectbox(
                    "Type",
                    type_options,
                    index=type_options.index(editing.type) if editing.type in type_options else 0,
                    key=f"edit_type_{edit_id}",
                )
            with edit_col3:
                subtype_options = list(ITEM_GEOMETRY[edit_type])
                edit_subtype = st.selectbox(
                    "Subtype",
                    subtype_options,
                    index=subtype_options.index(editing.subtype) if editing.subtype in subtype_options else 0,
                    key=f"edit_subtype_{edit_id}",
                )
            with edit_col4:
                edit_qty = st.number_input(
                    "Quantity", min_value=1, value=int(editing.quantity), step=1, key=f"edit_qty_{edit_id}"
                )
            with edit_col5:
                edit_weight = st.number_input(
                    "Total weight (kg)",
                    min_value=0.0,
                    value=float(editing.weight_kg),
                    step=10.0,
                    key=f"edit_weight_{edit_id}",
                )
            if st.button("Save changes", use_container_width=True):
                if not edit_item_id.strip():
                    st.error("Item ID is required.")
                else:
                    try:
                        replacement = _item_from_inputs(edit_item_id, edit_type, edit_subtype, edit_qty, edit_weight)
                    except CargoInputError as exc:
                        st.error(str(exc))
                    else:
                        saved_item = store.replace_item(edit_id, replacement)
                        if saved_item is None:
                            st.warning(f"Record {edit_id} was already gone")
                        else:
                            st.success(f"Record {edit_id} saved as #{saved_item.id}")
        delete_col1, delete_col2 = st.columns(2)
        with delete_col1:
            delete_id = st.selectbox("Record to delete", [record.id for record in records])
            if st.button("Delete record", use_container_width=True):
                if store.delete_item(int(delete_id)):
                    st.success(f"Deleted record {delete_id}")
                else:
                    st.warning(f"Record {delete_id} was already gone")
        with delete_col2:
            if st.button("Clear cargo list", use_container_width=True):
                for record in records:
                    store.delete_item(record.id)
                st.success("Cargo list cleared.")

    if st.button("Optimize loading plan", type="primary", use_container_width=True):
        items: list[CargoItem] = [record.item for record in store.list_items()]
        if not items:
            st.warning("Add cargo before optimizing.")
        else:
            try:
                inventory = parse_dunnage_inventory(inventory_input)
            except CargoInputError as exc:
                st.error(str(exc))
            else:
                result = optimize(items, vehicle, inventory)
                saved = store.create_result(vehicle.type, items, result)
                st.session_state["last_result"] = (result, vehicle, inventory, store.items_revision)
                st.success(f"Optimized with {result.space_utilization_pct}% space utilization (saved as #{saved.id}).")

    # a shown plan is dropped as soon as the cargo list changes
    if "last_result" in st.session_state and st.session_state["last_result"][3] != store.items_revision:
        st.session_state.pop("last_result")
    if "last_result" in st.session_state:
        last_result, last_vehicle, last_inventory, _ = st.session_state["last_result"]
        _render_result(last_result, last_vehicle)
        st.subheader("Airbag usage")
        st.dataframe(build_dunnage_rows(last_result, last_inventory), use_container_width=True)

with history_tab:
    st.header("Saved results")
    saved_results = store.list_results()
    if not saved_results:
        st.info("No saved results yet.")
    else:
        history_df = pd.DataFrame(
            [
                {
                    "id": record.id,
                    "vehicle": record.vehicle_type,
                    "created_at": record.created_at,
                    "placed": len(record.payload["placedItems"]),
                    "remaining": len(record.payload["remainingItems"]),
                    "space_pct": record.payload["spaceUtilization"],
                    "weight_pct": record.payload["weightUtilization"],
                    "balance": record.payload["loadBalance"],
                }
                for record in saved_results
            ]
        )
        st.dataframe(history_df, use_container_width=True)
        chosen_id = st.selectbox("Show result", [record.id for record in saved_results])
        chosen = store.get_result(int(chosen_id))
        if chosen is not None:
            st.json(chosen.payload["usedAirbags"])
            st.dataframe(pd.DataFrame(chosen.payload["placedItems"]), use_container_width=True)
