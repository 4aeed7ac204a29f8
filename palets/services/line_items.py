from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from palets.models.delivery_note import DeliveryNote, DeliveryNoteLine
from palets.services.price_catalog import PriceCatalog
from palets.utils.numeric import ZERO, parse_quantity

logger = logging.getLogger(__name__)


@dataclass
class LineItem:
    product_type: str
    unit_price: Decimal
    quantity: int | None = None

    @property
    def subtotal(self) -> Decimal:
        if not self.is_active:
            return ZERO
        return self.unit_price * self.quantity

    @property
    def is_active(self) -> bool:
        return self.quantity is not None and self.quantity > 0


class LineItemSet:
    def __init__(self, client: str = "", lines: list[LineItem] | None = None) -> None:
        self.client = client
        self.lines: list[LineItem] = lines or []

    @classmethod
    def init_for(cls, catalog: PriceCatalog, client: str) -> "LineItemSet":
        lines = [
            LineItem(product_type, catalog.unit_price(client, product_type))
            for product_type in catalog.product_types_for(client)
        ]
        return cls(client, lines)

    def line(self, product_type: str) -> LineItem | None:
        return next(
            (line for line in self.lines if line.product_type == product_type),
            None,
        )

    def set_quantity(self, product_type: str, text: object) -> int | None:
        line = self.line(product_type)
        if line is None:
            logger.warning(
                "No line for palet %s in order for %s", product_type, self.client
            )
            return None
        line.quantity = parse_quantity(text)
        return line.quantity

    def quantity_text(self, product_type: str) -> str:
        line = self.line(product_type)
        if line is None or line.quantity is None:
            return ""
        return str(line.quantity)

    def subtotal(self, product_type: str) -> Decimal:
        line = self.line(product_type)
        return line.subtotal if line is not None else ZERO

    def total(self) -> Decimal:
        return sum((line.subtotal for line in self.lines), ZERO)

    def active_lines(self) -> list[LineItem]:
        return [line for line in self.lines if line.is_active]

    def reset_all(self) -> None:
        for line in self.lines:
            line.quantity = None

    def finalize(self, timestamp: datetime | None = None) -> DeliveryNote:
        return DeliveryNote(
            timestamp=timestamp or datetime.now().replace(microsecond=0),
            client=self.client,
            lines=tuple(
                DeliveryNoteLine(line.product_type, line.unit_price, line.quantity)
                for line in self.active_lines()
            ),
        )
