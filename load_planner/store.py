from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

from load_planner.io import result_to_dict
from load_planner.models import CargoItem, OptimizationResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredItem:
    id: int
    item: CargoItem


@dataclass(frozen=True)
class StoredResult:
    id: int
    vehicle_type: str
    items: List[dict]
    payload: dict
    created_at: str


class MemoryStore:
    """Keyed records for cargo items and saved optimization results.

    Ids start at 1 per table and are never reused after a delete.
    ``items_revision`` changes whenever the cargo list changes, so callers can
    tell when a shown plan no longer matches the cargo.
    """

    def __init__(self):
        self._items: Dict[int, StoredItem] = {}
        self._results: Dict[int, StoredResult] = {}
        self._next_item_id = 1
        self._next_result_id = 1
        self.items_revision = 0

    def create_item(self, item: CargoItem) -> StoredItem:
        record = StoredItem(id=self._next_item_id, item=item)
        self._next_item_id += 1
        self._items[record.id] = record
        self.items_revision += 1
        logger.debug("Stored item %s as #%d", item.item_id, record.id)
        return record

    def list_items(self) -> list[StoredItem]:
        return list(self._items.values())

    def delete_item(self, record_id: int) -> bool:
        found = self._items.pop(record_id, None) is not None
        if found:
            self.items_revision += 1
        else:
            logger.debug("Item #%d not found for delete", record_id)
        return found

    def replace_item(self, record_id: int, item: CargoItem) -> Optional[StoredItem]:
        """Edit as delete plus create; the edited item gets a new id."""
        if not self.delete_item(record_id):
            return None
        return self.create_item(item)

    def create_result(
        self,
        vehicle_type: str,
        items: list[CargoItem],
        result: OptimizationResult,
    ) -> StoredResult:
        record = StoredResult(
            id=self._next_result_id,
            vehicle_type=vehicle_type,
            items=[
                {
                    "item_id": item.item_id,
                    "type": item.type,
                    "subtype": item.subtype,
                    "number_of_items": item.quantity,
                    "weight_kg": float(item.weight_kg),
                }
                for item in items
            ],
            payload=result_to_dict(result),
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self._next_result_id += 1
        self._results[record.id] = record
        logger.info("Saved optimization result #%d for %s", record.id, vehicle_type)
        return record

    def list_results(self) -> list[StoredResult]:
        return [copy.deepcopy(record) for record in self._results.values()]

    def get_result(self, record_id: int) -> Optional[StoredResult]:
        record = self._results.get(record_id)
        if record is None:
            return None
        return copy.deepcopy(record)
