from __future__ import annotations

import logging
from pathlib import Path

from openpyxl import load_workbook
from openpyxl.styles import Font, PatternFill

logger = logging.getLogger(__name__)


def style_workbook(
    path: str | Path,
    header_row: int = 1,
    stripe_color: str = "F7F9FC",
    min_width: int = 8,
    max_width: int = 50,
) -> None:
    """Bold header, banded rows and fitted column widths on every sheet."""
    try:
        workbook = load_workbook(path)
    except Exception:  # noqa: BLE001
        logger.exception("Cannot open workbook %s for styling", path)
        return
    stripe_fill = PatternFill(
        start_color=stripe_color,
        end_color=stripe_color,
        fill_type="solid",
    )
    header_font = Font(bold=True)
    for worksheet in workbook.worksheets:
        max_row = worksheet.max_row or 0
        max_col = worksheet.max_column or 0
        if max_col < 1:
            continue
        for col_idx in range(1, max_col + 1):
            worksheet.cell(row=header_row, column=col_idx).font = header_font
        start_row = header_row + 1
        for row_idx in range(start_row, max_row + 1):
            if (row_idx - start_row) % 2 == 0:
                for col_idx in range(1, max_col + 1):
                    worksheet.cell(row=row_idx, column=col_idx).fill = stripe_fill
        _autofit_columns(worksheet, min_width, max_width)
    try:
        workbook.save(path)
    except OSError:
        logger.exception("Cannot save styled workbook %s", path)


def _autofit_columns(worksheet, min_width: int, max_width: int) -> None:  # noqa: ANN001
    for column_cells in worksheet.columns:
        max_len = 0
        column_letter = column_cells[0].column_letter
        for cell in column_cells:
            if cell.value is None:
                continue
            text_len = len(str(cell.value).replace("\n", " "))
            max_len = max(max_len, text_len)
        if max_len == 0:
            continue
        width = min(max(max_len + 2, min_width), max_width)
        worksheet.column_dimensions[column_letter].width = width
