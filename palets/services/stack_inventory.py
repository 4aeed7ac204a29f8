from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from palets.data.json_store import JsonFileStore
from palets.models.errors import StoreError
from palets.utils.numeric import parse_count

INVENTORY_SNAPSHOT_NAME = "inventario.json"

STACK_CATALOG: list[tuple[str, int]] = [
    ("Blanco", 15),
    ("Negro", 15),
    ("80 Fuerte", 12),
    ("Euro", 20),
]

LOW_STOCK_MAX = 2
NORMAL_STOCK_MAX = 10


class StackStatus(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


def status_of(stack_count: int) -> StackStatus:
    if stack_count <= LOW_STOCK_MAX:
        return StackStatus.LOW
    if stack_count <= NORMAL_STOCK_MAX:
        return StackStatus.NORMAL
    return StackStatus.HIGH


@dataclass
class StackRecord:
    product_type: str
    units_per_stack: int
    stack_count: int = 0

    @property
    def total(self) -> int:
        return self.stack_count * self.units_per_stack

    @property
    def status(self) -> StackStatus:
        return status_of(self.stack_count)

    def to_dict(self) -> dict[str, object]:
        return {
            "palet": self.product_type,
            "pilas": self.stack_count,
            "unidadesPorPila": self.units_per_stack,
        }


class StackInventory:
    """Warehouse stack counts for the fixed list of palet types.

    Every mutation writes the whole snapshot back to disk.
    """

    def __init__(
        self,
        store: JsonFileStore | None = None,
        catalog: list[tuple[str, int]] | None = None,
    ) -> None:
        self.store = store
        self.catalog = list(catalog if catalog is not None else STACK_CATALOG)
        self.records: list[StackRecord] = self._fresh_records()
        self._logger = logging.getLogger(self.__class__.__name__)

    def _fresh_records(self) -> list[StackRecord]:
        return [
            StackRecord(product_type, units_per_stack)
            for product_type, units_per_stack in self.catalog
        ]

    def load(self) -> list[StackRecord]:
        self.records = self._fresh_records()
        if self.store is None:
            return self.records
        try:
            raw = self.store.read(INVENTORY_SNAPSHOT_NAME)
        except StoreError as exc:
            if not exc.is_missing:
                self._logger.warning("Inventory snapshot unreadable: %s", exc)
            return self.records
        if not isinstance(raw, list):
            self._logger.warning("Inventory snapshot is not a list")
            return self.records

        stored: dict[str, int] = {}
        for item in raw:
            if not isinstance(item, Mapping) or "palet" not in item:
                self._logger.warning("Skipping inventory record %r", item)
                continue
            stored.setdefault(str(item["palet"]), parse_count(item.get("pilas")))
        for record in self.records:
            record.stack_count = stored.get(record.product_type, 0)
        return self.records

    def save(self) -> bool:
        if self.store is None:
            return False
        try:
            self.store.write(
                INVENTORY_SNAPSHOT_NAME, [record.to_dict() for record in self.records]
            )
        except StoreError:
            self._logger.exception("Failed to save inventory snapshot")
            return False
        return True

    def record(self, product_type: str) -> StackRecord:
        for record in self.records:
            if record.product_type == product_type:
                return record
        raise ValueError(f"Unknown palet type: {product_type}")

    def increment(self, product_type: str) -> int:
        record = self.record(product_type)
        record.stack_count += 1
        self.save()
        return record.stack_count

    def decrement(self, product_type: str) -> int:
        record = self.record(product_type)
        record.stack_count = max(0, record.stack_count - 1)
        self.save()
        return record.stack_count

    def set_count(self, product_type: str, text: object) -> int:
        record = self.record(product_type)
        record.stack_count = parse_count(text)
        self.save()
        return record.stack_count

    def clear_all(self) -> None:
        for record in self.records:
            record.stack_count = 0
        self.save()

    def total_units(self) -> int:
        return sum(record.total for record in self.records)

    def total_stacks(self) -> int:
        return sum(record.stack_count for record in self.records)
