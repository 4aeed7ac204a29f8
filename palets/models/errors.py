from __future__ import annotations

from enum import Enum
from pathlib import Path


class PaletsError(Exception):
    pass


class StoreErrorKind(str, Enum):
    MISSING = "missing"
    DECODE = "decode"
    WRITE = "write"


class StoreError(PaletsError):
    def __init__(
        self,
        kind: StoreErrorKind,
        message: str,
        path: Path | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.path = path

    @property
    def is_missing(self) -> bool:
        return self.kind is StoreErrorKind.MISSING
