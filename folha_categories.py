"""Row categories, highlight colours and per-category sums.

``classify_description`` is the only place the category rules live; both the
highlight colours and the sums are derived from it.
"""

from __future__ import annotations

import logging
import warnings
from decimal import Decimal
from typing import Sequence

from folha_extract import format_monetary, monetary_amount, normalize_text
from folha_models import Category, ExtractionResult, LedgerSummary, Row, VerificationConflict

logger = logging.getLogger(__name__)

_THIRTEENTH_MARKERS = ("adiantamento de 13o", "13o salario")
_THIRTEENTH_REPAYMENT = "desconto de adiantamento de"

# Font colours shared by the terminal report and the spreadsheet.
COLOR_THIRTEENTH = "0070C0"
COLOR_BASKET = "7030A0"
COLOR_FOOD = "C00000"
COLOR_TRANSPORT = "00B050"


def _is_thirteenth(norm: str) -> bool:
    if not any(marker in norm for marker in _THIRTEENTH_MARKERS):
        return False
    is_tax_or_alimony = (
        "inss" in norm
        or "irrf" in norm.replace(".", "")
        or "pensao alimenticia" in norm
    )
    return not is_tax_or_alimony and _THIRTEENTH_REPAYMENT not in norm


def classify_description(description: str) -> Category:
    norm = normalize_text(description)
    if _is_thirteenth(norm):
        return Category.THIRTEENTH_SALARY
    if "alimentacao" in norm or "cesta" in norm:
        return Category.FOOD_OR_BASKET
    # Percentage rows (caps, rates) are not transport amounts.
    if "transporte" in norm and "%" not in description:
        return Category.TRANSPORT
    return Category.UNCATEGORIZED


def highlight_color(description: str) -> str | None:
    category = classify_description(description)
    if category is Category.THIRTEENTH_SALARY:
        return COLOR_THIRTEENTH
    if category is Category.FOOD_OR_BASKET:
        return COLOR_BASKET if "cesta" in normalize_text(description) else COLOR_FOOD
    if category is Category.TRANSPORT:
        return COLOR_TRANSPORT
    return None


def signed_values(row: Row) -> list[Decimal]:
    """Income as a positive amount, deduction as a negative one; zeros skipped."""
    values: list[Decimal] = []
    income = monetary_amount(row.income)
    deduction = monetary_amount(row.deduction)
    if income > 0:
        values.append(income)
    if deduction > 0:
        values.append(-deduction)
    return values


def summarize(rows: Sequence[Row]) -> LedgerSummary:
    summary = LedgerSummary()
    for index, row in enumerate(rows):
        if highlight_color(row.description) is not None:
            summary.flagged_rows.add(index)

        category = classify_description(row.description)
        if category is Category.UNCATEGORIZED:
            continue
        values = signed_values(row)
        if values:
            summary.values[category].extend(values)
            summary.contributing_rows.add(index)

    if summary.verification_conflict:
        only_flagged = sorted(summary.flagged_rows - summary.contributing_rows)
        only_summed = sorted(summary.contributing_rows - summary.flagged_rows)
        message = (
            "highlighted rows and summed rows differ "
            f"(highlighted only: {only_flagged}, summed only: {only_summed})"
        )
        logger.warning(message)
        warnings.warn(VerificationConflict(message), stacklevel=2)
    return summary


# ---------------------------------------------------------------------------
# Text output
# ---------------------------------------------------------------------------

def format_clipboard(value: Decimal) -> str:
    """Comma decimal, no grouping: the form spreadsheets accept on paste."""
    return f"{value:.2f}".replace(".", ",")


def format_brl(value: Decimal) -> str:
    return f"R$ {format_monetary(value)}"


def clipboard_text(result: ExtractionResult, summary: LedgerSummary) -> str:
    values = [
        result.totals.net_salary or "0,00",
        format_clipboard(summary.total(Category.FOOD_OR_BASKET)),
        format_clipboard(summary.total(Category.TRANSPORT)),
    ]
    if summary.has_thirteenth_salary:
        values.append(format_clipboard(summary.total(Category.THIRTEENTH_SALARY)))
    return "\n".join(values)
