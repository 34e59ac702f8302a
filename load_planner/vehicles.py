from __future__ import annotations

from decimal import Decimal, InvalidOperation

import yaml

from load_planner.models import VehicleSpec, Zone
from load_planner.rounding import to_decimal

# Representative trailer and container beds (length along the load axis)
DEFAULT_VEHICLES_YAML = """
vehicles:
  - type: pianale
    name: Pianale (13.6m x 2.48m)
    length_cm: 1360
    width_cm: 248
    height_cm: 270
    max_weight_kg: 24000
    front_axle_limit_kg: 7000
    rear_axle_limit_kg: 11000
    zones:
      - {name: Front Zone, start_cm: 0, end_cm: 680}
      - {name: Rear Zone, start_cm: 680, end_cm: 1360}
  - type: frigo
    name: Frigo (13.6m x 2.48m)
    length_cm: 1360
    width_cm: 248
    height_cm: 250
    max_weight_kg: 24000
    front_axle_limit_kg: 7000
    rear_axle_limit_kg: 11000
    zones:
      - {name: Front Zone, start_cm: 0, end_cm: 680}
      - {name: Rear Zone, start_cm: 680, end_cm: 1360}
  - type: container
    name: Container (12m x 2.35m)
    length_cm: 1200
    width_cm: 235
    height_cm: 259
    max_weight_kg: 28000
    front_axle_limit_kg: 8000
    rear_axle_limit_kg: 12000
    zones:
      - {name: Front Zone, start_cm: 0, end_cm: 600}
      - {name: Rear Zone, start_cm: 600, end_cm: 1200}
  - type: rimorchio
    name: Rimorchio (13.6m x 2.48m)
    length_cm: 1360
    width_cm: 248
    height_cm: 270
    max_weight_kg: 24000
    front_axle_limit_kg: 7000
    rear_axle_limit_kg: 11000
    zones:
      - {name: Front Zone, start_cm: 0, end_cm: 680}
      - {name: Rear Zone, start_cm: 680, end_cm: 1360}
""".strip()

REQUIRED_FIELDS = [
    "type",
    "length_cm",
    "width_cm",
    "height_cm",
    "max_weight_kg",
    "front_axle_limit_kg",
    "rear_axle_limit_kg",
]


class VehicleConfigError(ValueError):
    pass


def _decimal_field(vehicle_type: str, raw: dict, key: str) -> Decimal:
    try:
        value = to_decimal(raw[key])
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise VehicleConfigError(f"{vehicle_type}: {key} must be a number, got {raw[key]!r}") from exc
    if not value.is_finite():
        raise VehicleConfigError(f"{vehicle_type}: {key} must be a number, got {raw[key]!r}")
    return value


def _parse_zones(vehicle_type: str, raw_zones) -> list[Zone]:
    if raw_zones is None:
        return []
    if not isinstance(raw_zones, list):
        raise VehicleConfigError(f"{vehicle_type}: zones must be a list")
    zones = []
    for raw in raw_zones:
        if not isinstance(raw, dict):
            raise VehicleConfigError(f"{vehicle_type}: each zone must be a mapping, got {raw!r}")
        missing = [key for key in ("name", "start_cm", "end_cm") if raw.get(key) is None]
        if missing:
            raise VehicleConfigError(f"{vehicle_type}: zone missing fields {', '.join(missing)}")
        zones.append(
            Zone(
                name=str(raw["name"]),
                start_cm=_decimal_field(vehicle_type, raw, "start_cm"),
                end_cm=_decimal_field(vehicle_type, raw, "end_cm"),
            )
        )
    previous_end = Decimal("0")
    for zone in zones:
        if zone.end_cm <= zone.start_cm:
            raise VehicleConfigError(f"{vehicle_type}: zone '{zone.name}' is empty")
        if zone.start_cm < previous_end:
            raise VehicleConfigError(f"{vehicle_type}: zone '{zone.name}' overlaps or is out of order")
        previous_end = zone.end_cm
    return zones


def parse_vehicle_specs(vehicles_yaml: str) -> list[VehicleSpec]:
    try:
        data = yaml.safe_load(vehicles_yaml) or {}
    except yaml.YAMLError as exc:
        raise VehicleConfigError(f"vehicles YAML could not be parsed: {exc}") from exc
    if not isinstance(data, dict):
        raise VehicleConfigError("vehicles YAML must be a mapping with a 'vehicles' list")
    entries = data.get("vehicles") or []
    if not isinstance(entries, list):
        raise VehicleConfigError("'vehicles' must be a list")
    specs = []
    for item in entries:
        if not isinstance(item, dict):
            raise VehicleConfigError(f"each vehicle must be a mapping, got {item!r}")
        missing = [key for key in REQUIRED_FIELDS if item.get(key) is None]
        if missing:
            raise VehicleConfigError(f"{item.get('type', '?')}: missing fields {', '.join(missing)}")
        vehicle_type = str(item["type"])
        specs.append(
            VehicleSpec(
                type=vehicle_type,
                name=str(item.get("name") or vehicle_type),
                length_cm=_decimal_field(vehicle_type, item, "length_cm"),
                width_cm=_decimal_field(vehicle_type, item, "width_cm"),
                height_cm=_decimal_field(vehicle_type, item, "height_cm"),
                max_weight_kg=_decimal_field(vehicle_type, item, "max_weight_kg"),
                front_axle_limit_kg=_decimal_field(vehicle_type, item, "front_axle_limit_kg"),
                rear_axle_limit_kg=_decimal_field(vehicle_type, item, "rear_axle_limit_kg"),
                zones=_parse_zones(vehicle_type, item.get("zones")),
            )
        )
    return specs


def load_default_vehicles() -> dict[str, VehicleSpec]:
    return {spec.type: spec for spec in parse_vehicle_specs(DEFAULT_VEHICLES_YAML)}


def get_vehicle(vehicle_type: str) -> VehicleSpec:
    vehicles = load_default_vehicles()
    if vehicle_type not in vehicles:
        raise VehicleConfigError(f"unknown vehicle type: {vehicle_type}")
    return vehicles[vehicle_type]
