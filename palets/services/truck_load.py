from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from palets.data.json_store import JsonFileStore
from palets.models.errors import StoreError
from palets.utils.numeric import parse_quantity

TRUCK_SNAPSHOT_NAME = "carga_camion.json"
OTHER_TYPE = "Otro"
SUGGESTED_TYPES = ["Blanco", "Negro", "80 Fuerte", "Euro", OTHER_TYPE]


class ClearStep(str, Enum):
    IDLE = "idle"
    CONFIRM_INTENT = "confirm_intent"
    CONFIRM_IRREVERSIBLE = "confirm_irreversible"
    DONE = "done"


@dataclass
class TruckLine:
    product_type: str
    units_per_stack: int
    stack_count: int = 1

    @property
    def key(self) -> tuple[str, int]:
        return (self.product_type, self.units_per_stack)

    @property
    def total(self) -> int:
        return self.units_per_stack * self.stack_count

    def to_dict(self) -> dict[str, object]:
        return {
            "palet": self.product_type,
            "unidadesPorPila": self.units_per_stack,
            "pilas": self.stack_count,
        }


def resolve_product_type(selected: str, other_text: str = "") -> str:
    if selected == OTHER_TYPE:
        custom = (other_text or "").strip()
        if not custom:
            raise ValueError("Specify the palet type.")
        return custom
    product_type = (selected or "").strip()
    if not product_type:
        raise ValueError("Select a palet type.")
    return product_type


class TruckLoadTally:
    """Stacks loaded onto the truck, one entry per (palet, units per stack)."""

    def __init__(self, store: JsonFileStore | None = None) -> None:
        self.store = store
        self.lines: list[TruckLine] = []
        self.clear_step = ClearStep.IDLE
        self._logger = logging.getLogger(self.__class__.__name__)

    def load(self) -> list[TruckLine]:
        self.lines = []
        if self.store is None:
            return self.lines
        try:
            raw = self.store.read(TRUCK_SNAPSHOT_NAME)
        except StoreError as exc:
            if not exc.is_missing:
                self._logger.warning("Truck load snapshot unreadable: %s", exc)
            return self.lines
        if not isinstance(raw, list):
            self._logger.warning("Truck load snapshot is not a list")
            return self.lines

        for item in raw:
            line = self._line_from_dict(item)
            if line is None:
                self._logger.warning("Skipping truck load record %r", item)
                continue
            existing = self._find(line.product_type, line.units_per_stack)
            if existing is not None:
                existing.stack_count += line.stack_count
            else:
                self.lines.append(line)
        return self.lines

    @staticmethod
    def _line_from_dict(item: object) -> TruckLine | None:
        if not isinstance(item, Mapping):
            return None
        product_type = str(item.get("palet") or "").strip()
        units = parse_quantity(item.get("unidadesPorPila"))
        stacks = parse_quantity(item.get("pilas"))
        if not product_type or not units or units <= 0 or not stacks or stacks <= 0:
            return None
        return TruckLine(product_type, units, stacks)

    def save(self) -> bool:
        if self.store is None:
            return False
        try:
            self.store.write(TRUCK_SNAPSHOT_NAME, [line.to_dict() for line in self.lines])
        except StoreError:
            self._logger.exception("Failed to save truck load snapshot")
            return False
        return True

    def _find(self, product_type: str, units_per_stack: int) -> TruckLine | None:
        key = (product_type, units_per_stack)
        return next((line for line in self.lines if line.key == key), None)

    def add_or_merge(self, product_type: str, units_per_stack: object) -> TruckLine:
        units = parse_quantity(units_per_stack)
        if units is None or units <= 0:
            raise ValueError(f"Invalid units per stack: {units_per_stack!r}")
        line = self._find(product_type, units)
        if line is not None:
            line.stack_count += 1
        else:
            line = TruckLine(product_type, units)
            self.lines.append(line)
        self.save()
        return line

    def remove_stack(self, product_type: str, units_per_stack: int) -> TruckLine | None:
        line = self._find(product_type, units_per_stack)
        if line is None:
            return None
        line.stack_count -= 1
        if line.stack_count <= 0:
            self.lines.remove(line)
        self.save()
        return line

    def grouped_by_type(self) -> list[tuple[str, list[TruckLine]]]:
        groups: dict[str, list[TruckLine]] = {}
        for line in self.lines:
            groups.setdefault(line.product_type, []).append(line)

        ordered = [name for name in SUGGESTED_TYPES if name in groups]
        ordered += [name for name in groups if name not in SUGGESTED_TYPES]
        return [
            (name, sorted(groups[name], key=lambda line: line.units_per_stack))
            for name in ordered
        ]

    def total_units(self) -> int:
        return sum(line.total for line in self.lines)

    def total_stacks(self) -> int:
        return sum(line.stack_count for line in self.lines)

    def request_clear(self) -> ClearStep:
        self.clear_step = ClearStep.CONFIRM_INTENT
        return self.clear_step

    def confirm_clear(self) -> ClearStep:
        if self.clear_step is ClearStep.CONFIRM_INTENT:
            self.clear_step = ClearStep.CONFIRM_IRREVERSIBLE
            return self.clear_step
        if self.clear_step is ClearStep.CONFIRM_IRREVERSIBLE:
            self.clear_all()
            return ClearStep.DONE
        return self.clear_step

    def cancel_clear(self) -> None:
        self.clear_step = ClearStep.IDLE

    def clear_all(self) -> bool:
        if self.clear_step is not ClearStep.CONFIRM_IRREVERSIBLE:
            self._logger.warning("Clear requested without both confirmations")
            return False
        self.clear_step = ClearStep.IDLE
        removed = len(self.lines)
        self.lines = []
        self.save()
        self._logger.info("Truck load cleared (%s entries)", removed)
        return True
