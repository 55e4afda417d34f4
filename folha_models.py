from __future__ import annotations

import enum
from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class Token:
    """A run of non-space text on a page, anchored at its baseline origin.

    Coordinates are in PDF space: y grows upward, so the top of the page has
    the largest y.
    """

    text: str
    x: float
    y: float
    width: float
    height: float

    @property
    def x1(self) -> float:
        return self.x + self.width

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2


@dataclass(frozen=True)
class Row:
    """One line item of the payroll summary table.

    Monetary fields keep the text exactly as printed ("1.234,56") or "".
    """

    code: str
    description: str
    income: str = ""
    deduction: str = ""

    @property
    def key(self) -> str:
        return "|".join((self.code, self.description, self.income, self.deduction))


@dataclass(frozen=True)
class Totals:
    net_salary: str | None = None


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal finding raised while scanning a page."""

    kind: str
    page_number: int
    message: str


@dataclass(frozen=True)
class ExtractionResult:
    rows: tuple[Row, ...]
    totals: Totals
    start_page: int
    diagnostics: tuple[Diagnostic, ...] = ()


class Category(enum.Enum):
    FOOD_OR_BASKET = "Alimentação/Cesta"
    TRANSPORT = "Transporte"
    THIRTEENTH_SALARY = "13º Salário"
    UNCATEGORIZED = "Sem categoria"


SUMMED_CATEGORIES = (Category.FOOD_OR_BASKET, Category.TRANSPORT, Category.THIRTEENTH_SALARY)


@dataclass
class LedgerSummary:
    """Per-category signed values plus the highlight/aggregation cross-check."""

    values: dict[Category, list[Decimal]] = field(
        default_factory=lambda: {c: [] for c in SUMMED_CATEGORIES}
    )
    flagged_rows: set[int] = field(default_factory=set)
    contributing_rows: set[int] = field(default_factory=set)

    def total(self, category: Category) -> Decimal:
        return sum(self.values.get(category, []), Decimal("0"))

    @property
    def verification_conflict(self) -> bool:
        return self.flagged_rows != self.contributing_rows

    @property
    def has_thirteenth_salary(self) -> bool:
        return self.total(Category.THIRTEENTH_SALARY) != 0


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class FolhaError(Exception):
    """Base class for extraction failures."""


class SectionNotFound(FolhaError):
    def __init__(self, marker: str) -> None:
        self.marker = marker
        super().__init__(
            f"Não foi possível localizar a seção '{marker}'. Verifique o PDF."
        )


class HeaderNotFound(FolhaError):
    """The Rendimentos/Descontos column header is missing from a page."""


class ExtractionCancelled(FolhaError):
    pass


class VerificationConflict(UserWarning):
    """Highlighted rows and summed rows disagree; the ledger needs review."""
