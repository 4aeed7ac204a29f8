from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any

from palets.models.errors import StoreError, StoreErrorKind


def _encode_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


@dataclass
class JsonFileStore:
    """Whole-document JSON blobs stored as files in one directory.

    ``Decimal`` values are written as decimal strings and fractional numbers
    are decoded as ``Decimal``, so prices and totals survive a save/load
    cycle digit for digit.
    """

    directory: Path

    def __post_init__(self) -> None:
        self.directory = Path(self.directory)

    def path_for(self, name: str) -> Path:
        return self.directory / name

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def read(self, name: str) -> Any:
        return self.read_path(self.path_for(name))

    @staticmethod
    def read_path(path: Path) -> Any:
        if not path.is_file():
            raise StoreError(StoreErrorKind.MISSING, f"File not found: {path}", path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StoreError(
                StoreErrorKind.MISSING, f"Failed to read {path}: {exc}", path
            ) from exc
        try:
            return json.loads(text, parse_float=Decimal)
        except json.JSONDecodeError as exc:
            raise StoreError(
                StoreErrorKind.DECODE, f"Malformed JSON in {path}: {exc}", path
            ) from exc

    def write(self, name: str, payload: Any) -> Path:
        path = self.path_for(name)
        try:
            data = json.dumps(
                payload, indent=2, ensure_ascii=False, default=_encode_default
            ).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise StoreError(
                StoreErrorKind.WRITE, f"Failed to encode {path}: {exc}", path
            ) from exc
        try:
            self._atomic_write(path, data)
        except OSError as exc:
            raise StoreError(
                StoreErrorKind.WRITE, f"Failed to write {path}: {exc}", path
            ) from exc
        return path

    def delete(self, name: str) -> bool:
        path = self.path_for(name)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StoreError(
                StoreErrorKind.WRITE, f"Failed to delete {path}: {exc}", path
            ) from exc
        return True

    def list_names(self, prefix: str = "", suffix: str = ".json") -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self.directory.iterdir()
            if entry.is_file()
            and entry.name.startswith(prefix)
            and entry.name.endswith(suffix)
        )

    @staticmethod
    def _atomic_write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_file = tempfile.NamedTemporaryFile(
            prefix=f"{path.stem}_",
            suffix=".tmp",
            dir=str(path.parent),
            delete=False,
        )
        temp_name = temp_file.name
        try:
            with temp_file:
                temp_file.write(data)
            Path(temp_name).replace(path)
        finally:
            try:
                os.remove(temp_name)
            except FileNotFoundError:
                pass
