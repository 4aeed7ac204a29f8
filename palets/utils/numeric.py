from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

_INTEGER_PATTERN = re.compile(r"[+-]?\d+")
_CENTS = Decimal("0.01")
ZERO = Decimal("0")


def normalize_numeric_text(value: str) -> str:
    normalized = value.replace("\u00a0", "").replace(" ", "")
    normalized = normalized.replace(",", ".")
    return normalized.strip()


def parse_quantity(value: object) -> int | None:
    """Whole number typed into a quantity field, or None when it is not one."""
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not _INTEGER_PATTERN.fullmatch(text):
        return None
    return int(text)


def parse_count(value: object) -> int:
    quantity = parse_quantity(value)
    if quantity is None or quantity < 0:
        return 0
    return quantity


def parse_price(value: object) -> Decimal:
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    else:
        normalized = normalize_numeric_text(str(value))
        if not normalized:
            return ZERO
        try:
            number = Decimal(normalized)
        except InvalidOperation:
            return ZERO
    if not number.is_finite():
        return ZERO
    return number


def to_decimal(value: object) -> Decimal:
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValueError(f"Not a number: {value!r}") from exc
    else:
        raise ValueError(f"Not a number: {value!r}")
    if not number.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return number


def format_price_text(value: Decimal) -> str:
    return str(value.quantize(_CENTS, rounding=ROUND_HALF_UP))