"""Spreadsheet export of an extracted ledger (sheet ``Resumo_Rubricas``)."""

from __future__ import annotations

from pathlib import Path
from typing import IO

import xlsxwriter

from folha_categories import highlight_color
from folha_models import Category, ExtractionResult, LedgerSummary, SUMMED_CATEGORIES

SHEET_NAME = "Resumo_Rubricas"
HEADERS = ("Rubrica", "Descrição", "Rendimentos", "Descontos")
COLUMN_WIDTHS = (15, 50, 15, 15)
MONEY_FORMAT = "#,##0.00"

SUMMARY_LABELS = {
    Category.FOOD_OR_BASKET: "Alimentação/Cesta:",
    Category.TRANSPORT: "Transporte:",
    Category.THIRTEENTH_SALARY: "13º Salário:",
}
SUMMARY_FILLS = {
    Category.FOOD_OR_BASKET: "#FFDDE1",
    Category.TRANSPORT: "#E2F0D5",
    Category.THIRTEENTH_SALARY: "#DDEBF7",
}


def write_workbook(
    target: str | Path | IO[bytes],
    result: ExtractionResult,
    summary: LedgerSummary,
) -> None:
    """Write the ledger, its net salary and the per-category summary block.

    *target* may be a path or a binary file object.
    """
    if hasattr(target, "write"):
        workbook = xlsxwriter.Workbook(target, {"in_memory": True})
    else:
        workbook = xlsxwriter.Workbook(str(target))
    try:
        sheet = workbook.add_worksheet(SHEET_NAME)
        bold = workbook.add_format({"bold": True})
        for col, width in enumerate(COLUMN_WIDTHS):
            sheet.set_column(col, col, width)

        sheet.write(0, 0, "Salário Líquido Total:", bold)
        sheet.write(0, 1, result.totals.net_salary or "", bold)

        sheet.write_row(2, 0, HEADERS)
        color_formats: dict[str, object] = {}
        row_idx = 3
        for row in result.rows:
            color = highlight_color(row.description)
            fmt = None
            if color is not None:
                if color not in color_formats:
                    color_formats[color] = workbook.add_format({"font_color": f"#{color}"})
                fmt = color_formats[color]
            sheet.write_row(row_idx, 0, (row.code, row.description, row.income, row.deduction), fmt)
            row_idx += 1

        _write_summary(workbook, sheet, row_idx + 2, summary)
    finally:
        workbook.close()


def _write_summary(workbook, sheet, start_row: int, summary: LedgerSummary) -> None:
    plain = {c: workbook.add_format({"bg_color": SUMMARY_FILLS[c], "num_format": MONEY_FORMAT}) for c in SUMMED_CATEGORIES}
    strong = {
        c: workbook.add_format({"bg_color": SUMMARY_FILLS[c], "num_format": MONEY_FORMAT, "bold": True})
        for c in SUMMED_CATEGORIES
    }

    for offset, category in enumerate(SUMMED_CATEGORIES, start=1):
        sheet.write_string(start_row, offset, SUMMARY_LABELS[category], strong[category])

    depth = max(len(summary.values[c]) for c in SUMMED_CATEGORIES)
    for i in range(depth):
        for offset, category in enumerate(SUMMED_CATEGORIES, start=1):
            values = summary.values[category]
            if i < len(values):
                sheet.write_number(start_row + 1 + i, offset, float(values[i]), plain[category])

    total_row = start_row + 1 + depth
    for offset, category in enumerate(SUMMED_CATEGORIES, start=1):
        sheet.write_number(total_row, offset, float(summary.total(category)), strong[category])
