from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field, replace
from typing import Sequence

from folha_config import DEFAULT_CONFIG, ExtractionConfig
from folha_extract import assemble_lines, is_monetary, line_text, normalize_text, strip_monetary
from folha_models import Diagnostic, HeaderNotFound, Row, SectionNotFound, Token
from folha_source import Document

logger = logging.getLogger(__name__)

_HEADER_ANCHOR_RE = re.compile(r"resumo geral da folha|rubrica", re.IGNORECASE)
_TOTALS_ANCHOR_RE = re.compile(r"funcionarios|total\s+geral")
_COLUMN_HEADER_RE = re.compile(r"Rubrica\s+Descrição\s+Rendimentos\s+Descontos", re.IGNORECASE)
_RENDIMENTOS_RE = re.compile(r"rendimentos", re.IGNORECASE)
_DESCONTOS_RE = re.compile(r"descontos", re.IGNORECASE)
_CODE_RE = re.compile(r"^([A-Z0-9]{2,10})\s*(.*)")
_SALARIO_RE = re.compile(r"sal[aá]rio", re.IGNORECASE)
_LIQUIDO_RE = re.compile(r"l[ií]quido", re.IGNORECASE)


def _collapse(text: str) -> str:
    return " ".join(text.split())


# ---------------------------------------------------------------------------
# Section
# ---------------------------------------------------------------------------

def find_section_start(document: Document, marker: str) -> int:
    """Return the 0-based index of the first page whose text contains *marker*."""
    wanted = _collapse(marker)
    for index in range(document.page_count):
        if wanted in _collapse(document.get_page(index).get_plain_text()):
            logger.debug("section marker found on page %d", index + 1)
            return index
    raise SectionNotFound(marker)


def bound_table_region(tokens: Sequence[Token], config: ExtractionConfig = DEFAULT_CONFIG) -> list[Token]:
    """Keep the tokens strictly between the table title and the totals anchor.

    Anchors are matched on whole lines, since phrases such as "Total Geral"
    arrive as separate words; both anchor lines are excluded from the band.
    A missing title leaves the band open at the top, a missing totals anchor
    leaves it open at the bottom. Page furniture is dropped afterwards.
    """
    lines = assemble_lines(tokens, config.y_tolerance)
    header_line = next((ln for ln in lines if _HEADER_ANCHOR_RE.search(line_text(ln))), None)
    totals_line = next(
        (ln for ln in lines if _TOTALS_ANCHOR_RE.search(normalize_text(line_text(ln)))), None
    )
    start_y = min(t.y for t in header_line) if header_line else math.inf
    end_y = max(t.y for t in totals_line) if totals_line else -math.inf

    return [
        t for t in tokens
        if end_y < t.y < start_y and not config.is_furniture(t)
    ]


# ---------------------------------------------------------------------------
# Columns
# ---------------------------------------------------------------------------

def find_header_line(lines: list[list[Token]]) -> list[Token]:
    for line in lines:
        text = line_text(line)
        if _RENDIMENTOS_RE.search(text) and _DESCONTOS_RE.search(text):
            return line
    raise HeaderNotFound("no line carries both 'Rendimentos' and 'Descontos'")


def find_column_midpoint(header_line: list[Token]) -> float:
    """Midpoint between the end of 'Rendimentos' and the start of 'Descontos'."""
    rendimentos = next((t for t in header_line if _RENDIMENTOS_RE.search(t.text)), None)
    descontos = next((t for t in header_line if _DESCONTOS_RE.search(t.text)), None)
    if rendimentos is None or descontos is None:
        raise HeaderNotFound("column header tokens are missing")
    return (rendimentos.x + rendimentos.width + descontos.x) / 2


def is_income_column(token: Token, midpoint: float) -> bool:
    return token.x < midpoint


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------

@dataclass
class TableScanState:
    """Carry-over between pages of the table window."""

    rows: list[Row] = field(default_factory=list)
    seen: set[str] = field(default_factory=set)
    last_row: Row | None = None
    last_emitted: bool = False
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def copy(self) -> TableScanState:
        return TableScanState(
            rows=list(self.rows),
            seen=set(self.seen),
            last_row=self.last_row,
            last_emitted=self.last_emitted,
            diagnostics=list(self.diagnostics),
        )


def _description_tokens(line: list[Token], code: str, monetary: list[Token]) -> list[str]:
    # A word that merely starts with the code ("13º") stays in the description.
    words = [t.text for t in line if t not in monetary]
    if words and words[0] == code:
        return words[1:]
    return words


def _continue_description(state: TableScanState, text: str) -> None:
    if state.last_row is None:
        return
    extra = strip_monetary(text)
    description = _collapse(f"{state.last_row.description} {extra}")
    updated = replace(state.last_row, description=description)
    if state.last_emitted:
        state.rows[-1] = updated
    state.last_row = updated


def reconstruct_row(
    line: list[Token], midpoint: float
) -> tuple[Row | None, list[Token]]:
    """Build a row from a line that starts with a rubrica code.

    Returns ``(None, [])`` for a continuation line, otherwise the row and the
    monetary tokens found on the line. Only the first of those is stored.
    """
    match = _CODE_RE.match(line_text(line))
    if not match:
        return None, []

    code = match.group(1)
    monetary = [t for t in line if is_monetary(t.text)]
    description = " ".join(_description_tokens(line, code, monetary)).strip()

    income = deduction = ""
    if monetary:
        value = monetary[0]
        if is_income_column(value, midpoint):
            income = value.text
        else:
            deduction = value.text
    return Row(code=code, description=description, income=income, deduction=deduction), monetary


def scan_table_page(
    state: TableScanState,
    tokens: Sequence[Token],
    page_number: int,
    config: ExtractionConfig = DEFAULT_CONFIG,
) -> TableScanState:
    """Fold one page of the table window into a new state; *state* is left untouched."""
    state = state.copy()
    lines = assemble_lines(bound_table_region(tokens, config), config.y_tolerance)
    try:
        header_line = find_header_line(lines)
        midpoint = find_column_midpoint(header_line)
    except HeaderNotFound as exc:
        logger.debug("page %d: %s", page_number, exc)
        state.diagnostics.append(Diagnostic("header_not_found", page_number, str(exc)))
        return state

    for line in lines:
        if line is header_line:
            continue
        text = line_text(line)
        if not text or _COLUMN_HEADER_RE.search(text):
            continue

        row, monetary = reconstruct_row(line, midpoint)
        if row is None:
            _continue_description(state, text)
            continue

        if len(monetary) > 1:
            message = (
                f"rubrica {row.code} carries {len(monetary)} values "
                f"({', '.join(t.text for t in monetary)}); kept {monetary[0].text}"
            )
            logger.warning("page %d: %s", page_number, message)
            state.diagnostics.append(Diagnostic("multiple_values_on_row", page_number, message))

        state.last_row = row
        state.last_emitted = row.key not in state.seen
        if state.last_emitted:
            state.rows.append(row)
            state.seen.add(row.key)

    return state


# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------

@dataclass
class TotalsScanState:
    net_salary: str | None = None
    page_number: int | None = None

    @property
    def found(self) -> bool:
        return self.net_salary is not None


def find_net_salary(tokens: Sequence[Token], config: ExtractionConfig = DEFAULT_CONFIG) -> str | None:
    """Pick the amount printed next to the 'Salário Líquido' label.

    The label is searched at or below the 'funcionários' anchor; the amount is
    the monetary token inside the search rectangle whose centre is closest to
    the label's centre.
    """
    anchor = next((t for t in tokens if "funcionarios" in normalize_text(t.text)), None)
    if anchor is None:
        return None

    searchable = [t for t in tokens if t.y <= anchor.y + config.totals_anchor_slack]
    salario = next((t for t in searchable if _SALARIO_RE.search(t.text)), None)
    liquido = next((t for t in searchable if _LIQUIDO_RE.search(t.text)), None)
    if salario is None or liquido is None:
        return None

    label_x0 = salario.x
    label_x1 = liquido.x + liquido.width
    baseline = min(salario.y, liquido.y)
    x_lo, x_hi = label_x0 - config.label_margin_left, label_x1 + config.label_margin_right
    y_lo, y_hi = baseline - config.label_search_depth, baseline - config.label_search_gap

    candidates = [
        t for t in tokens
        if x_lo <= t.x <= x_hi and y_lo <= t.y <= y_hi and is_monetary(t.text)
    ]
    if not candidates:
        return None

    label_center = (label_x0 + label_x1) / 2
    best = min(candidates, key=lambda t: abs(t.center_x - label_center))
    return best.text


def scan_totals_page(
    state: TotalsScanState,
    tokens: Sequence[Token],
    page_number: int,
    config: ExtractionConfig = DEFAULT_CONFIG,
) -> TotalsScanState:
    if state.found or not tokens:
        return state
    value = find_net_salary(tokens, config)
    if value is None:
        return state
    logger.debug("page %d: net salary %s", page_number, value)
    return TotalsScanState(net_salary=value, page_number=page_number)
