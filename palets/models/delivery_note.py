from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Mapping

from palets.utils.numeric import ZERO, parse_quantity, to_decimal


@dataclass(frozen=True)
class DeliveryNoteLine:
    product_type: str
    unit_price: Decimal
    quantity: int

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict[str, object]:
        return {
            "palet": self.product_type,
            "precioUnitario": self.unit_price,
            "cantidad": self.quantity,
            "subtotal": self.subtotal,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, object]) -> "DeliveryNoteLine":
        quantity = parse_quantity(raw["cantidad"])
        if quantity is None:
            raise ValueError(f"Invalid quantity: {raw['cantidad']!r}")
        return cls(
            product_type=str(raw["palet"]),
            unit_price=to_decimal(raw["precioUnitario"]),
            quantity=quantity,
        )


@dataclass(frozen=True)
class DeliveryNote:
    """A finalized albarán.

    Line subtotals and the total are always derived from the stored unit
    prices and quantities; the values written to disk are never read back.
    """

    timestamp: datetime
    client: str
    lines: tuple[DeliveryNoteLine, ...] = field(default_factory=tuple)

    @property
    def total(self) -> Decimal:
        return sum((line.subtotal for line in self.lines), ZERO)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def with_quantities(self, quantities: Mapping[str, int | None]) -> "DeliveryNote":
        lines: list[DeliveryNoteLine] = []
        for line in self.lines:
            quantity = quantities.get(line.product_type, line.quantity)
            if quantity is None or quantity <= 0:
                continue
            lines.append(replace(line, quantity=quantity))
        return replace(self, lines=tuple(lines))

    def to_dict(self) -> dict[str, object]:
        return {
            "fecha": self.timestamp.isoformat(timespec="seconds"),
            "cliente": self.client,
            "lineas": [line.to_dict() for line in self.lines],
            "total": self.total,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, object]) -> "DeliveryNote":
        raw_lines = raw["lineas"]
        if not isinstance(raw_lines, list):
            raise ValueError("'lineas' must be a list")
        client = raw["cliente"]
        if not isinstance(client, str):
            raise ValueError(f"Invalid client: {client!r}")
        timestamp = datetime.fromisoformat(str(raw["fecha"]))
        if timestamp.tzinfo is not None:
            timestamp = timestamp.astimezone().replace(tzinfo=None)
        return cls(
            timestamp=timestamp,
            client=client,
            lines=tuple(DeliveryNoteLine.from_dict(item) for item in raw_lines),
        )


@dataclass(frozen=True)
class DeliveryNoteSummary:
    key: str
    timestamp: datetime
    client: str
    total: Decimal
