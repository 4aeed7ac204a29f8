from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import pandas as pd

from palets.models.delivery_note import DeliveryNote
from palets.services.stack_inventory import StackRecord
from palets.utils.excel import style_workbook

NOTE_COLUMNS = ["Fecha", "Cliente", "Palet", "Precio unitario", "Cantidad", "Subtotal"]
INVENTORY_COLUMNS = ["Palet", "Pilas", "Unidades por pila", "Total unidades", "Estado"]


class ExportService:
    def __init__(self) -> None:
        self._logger = logging.getLogger(self.__class__.__name__)

    def delivery_notes_frame(self, notes: Iterable[DeliveryNote]) -> pd.DataFrame:
        rows = []
        for note in notes:
            for line in note.lines:
                rows.append(
                    {
                        "Fecha": note.timestamp.strftime("%d/%m/%Y %H:%M"),
                        "Cliente": note.client,
                        "Palet": line.product_type,
                        "Precio unitario": float(line.unit_price),
                        "Cantidad": line.quantity,
                        "Subtotal": float(line.subtotal),
                    }
                )
        return pd.DataFrame(rows, columns=NOTE_COLUMNS)

    def stack_inventory_frame(self, records: Iterable[StackRecord]) -> pd.DataFrame:
        rows = [
            {
                "Palet": record.product_type,
                "Pilas": record.stack_count,
                "Unidades por pila": record.units_per_stack,
                "Total unidades": record.total,
                "Estado": record.status.value,
            }
            for record in records
        ]
        return pd.DataFrame(rows, columns=INVENTORY_COLUMNS)

    def export_delivery_notes(
        self, notes: Iterable[DeliveryNote], path: str | Path
    ) -> Path:
        df = self.delivery_notes_frame(notes)
        return self._write(df, path, "Albaranes")

    def export_stack_inventory(
        self, records: Iterable[StackRecord], path: str | Path
    ) -> Path:
        df = self.stack_inventory_frame(records)
        return self._write(df, path, "Inventario")

    def _write(self, df: pd.DataFrame, path: str | Path, sheet_name: str) -> Path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        df.to_excel(target, index=False, sheet_name=sheet_name, engine="openpyxl")
        style_workbook(target)
        self._logger.info("Exported %s rows to %s", len(df), target)
        return target
