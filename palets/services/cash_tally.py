from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping

from palets.data.json_store import JsonFileStore
from palets.models.errors import StoreError
from palets.utils.numeric import ZERO, parse_count

CASH_SNAPSHOT_NAME = "bolso.json"

DENOMINATIONS: list[tuple[str, Decimal]] = [
    ("500 €", Decimal("500.00")),
    ("200 €", Decimal("200.00")),
    ("100 €", Decimal("100.00")),
    ("50 €", Decimal("50.00")),
    ("20 €", Decimal("20.00")),
    ("10 €", Decimal("10.00")),
    ("5 €", Decimal("5.00")),
    ("2 €", Decimal("2.00")),
    ("1 €", Decimal("1.00")),
    ("0,50 €", Decimal("0.50")),
    ("0,20 €", Decimal("0.20")),
    ("0,10 €", Decimal("0.10")),
    ("0,05 €", Decimal("0.05")),
    ("0,02 €", Decimal("0.02")),
    ("0,01 €", Decimal("0.01")),
]


@dataclass
class DenominationCount:
    label: str
    face_value: Decimal
    count: int = 0

    @property
    def total(self) -> Decimal:
        return self.face_value * self.count


class CashTally:
    def __init__(self, store: JsonFileStore | None = None) -> None:
        self.store = store
        self.counts = [
            DenominationCount(label, face_value) for label, face_value in DENOMINATIONS
        ]
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    def is_persistent(self) -> bool:
        return self.store is not None

    def load(self) -> list[DenominationCount]:
        for item in self.counts:
            item.count = 0
        if self.store is None:
            return self.counts
        try:
            raw = self.store.read(CASH_SNAPSHOT_NAME)
        except StoreError as exc:
            if not exc.is_missing:
                self._logger.warning("Cash snapshot unreadable: %s", exc)
            return self.counts
        if not isinstance(raw, list):
            self._logger.warning("Cash snapshot is not a list")
            return self.counts
        stored = {
            str(item.get("etiqueta")): parse_count(item.get("cantidad"))
            for item in raw
            if isinstance(item, Mapping)
        }
        for item in self.counts:
            item.count = stored.get(item.label, 0)
        return self.counts

    def save(self) -> bool:
        if self.store is None:
            return False
        payload = [{"etiqueta": item.label, "cantidad": item.count} for item in self.counts]
        try:
            self.store.write(CASH_SNAPSHOT_NAME, payload)
        except StoreError:
            self._logger.exception("Failed to save cash tally")
            return False
        return True

    def denomination(self, label: str) -> DenominationCount:
        for item in self.counts:
            if item.label == label:
                return item
        raise ValueError(f"Unknown denomination: {label}")

    def set_count(self, label: str, text: object) -> int:
        item = self.denomination(label)
        item.count = parse_count(text)
        self.save()
        return item.count

    def increment(self, label: str) -> int:
        item = self.denomination(label)
        item.count += 1
        self.save()
        return item.count

    def decrement(self, label: str) -> int:
        item = self.denomination(label)
        item.count = max(0, item.count - 1)
        self.save()
        return item.count

    def line_total(self, label: str) -> Decimal:
        return self.denomination(label).total

    def total(self) -> Decimal:
        return sum((item.total for item in self.counts), ZERO)

    def clear_all(self) -> None:
        for item in self.counts:
            item.count = 0
        self.save()
