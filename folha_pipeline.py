from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from folha_categories import format_brl, highlight_color
from folha_config import DEFAULT_CONFIG, ExtractionConfig
from folha_context import (
    TableScanState,
    TotalsScanState,
    find_section_start,
    scan_table_page,
    scan_totals_page,
)
from folha_models import (
    Category,
    Diagnostic,
    ExtractionCancelled,
    ExtractionResult,
    LedgerSummary,
    Totals,
)
from folha_source import Document, PdfplumberDocument

logger = logging.getLogger(__name__)


def _check_cancel(should_cancel: Callable[[], bool] | None) -> None:
    if should_cancel is not None and should_cancel():
        raise ExtractionCancelled("extraction cancelled between pages")


def extract_ledger(
    document: Document,
    config: ExtractionConfig = DEFAULT_CONFIG,
    should_cancel: Callable[[], bool] | None = None,
) -> ExtractionResult:
    """Locate the payroll summary table and its net salary total.

    Pages are processed one at a time; *should_cancel* is polled before each
    page. Raises ``SectionNotFound`` when no page carries the section marker.
    """
    start = find_section_start(document, config.section_marker)
    page_count = document.page_count

    table = TableScanState()
    for index in range(start, min(start + config.table_page_window, page_count)):
        _check_cancel(should_cancel)
        tokens = document.get_page(index).get_positioned_tokens()
        table = scan_table_page(table, tokens, index + 1, config)

    totals = TotalsScanState()
    for index in range(start, min(start + config.totals_page_window, page_count)):
        _check_cancel(should_cancel)
        tokens = document.get_page(index).get_positioned_tokens()
        totals = scan_totals_page(totals, tokens, index + 1, config)
        if totals.found:
            break

    diagnostics = list(table.diagnostics)
    if not totals.found:
        logger.info("net salary total not detected")
        diagnostics.append(
            Diagnostic("totals_miss", start + 1, "no 'Salário Líquido' value near the funcionários block")
        )

    logger.info("extracted %d rows starting on page %d", len(table.rows), start + 1)
    return ExtractionResult(
        rows=tuple(table.rows),
        totals=Totals(net_salary=totals.net_salary),
        start_page=start + 1,
        diagnostics=tuple(diagnostics),
    )


def extract_pdf(
    pdf_path: str | Path,
    config: ExtractionConfig = DEFAULT_CONFIG,
    should_cancel: Callable[[], bool] | None = None,
) -> ExtractionResult:
    with PdfplumberDocument(pdf_path) as document:
        return extract_ledger(document, config, should_cancel)


# ---------------------------------------------------------------------------
# Terminal report
# ---------------------------------------------------------------------------

def _print_row(code: str, description: str, income: str, deduction: str, mark: str = " ") -> None:
    print(f"{mark} {code:<10} {description:<50.50} {income:>14} {deduction:>14}")


def print_report(result: ExtractionResult, summary: LedgerSummary, verbose: bool = False) -> None:
    print("=" * 92)
    print("RESUMO GERAL DA FOLHA POR RUBRICA")
    print("=" * 92)

    if not result.rows:
        print("Nenhuma rubrica encontrada.")
    else:
        _print_row("Rubrica", "Descrição", "Rendimentos", "Descontos")
        for row in result.rows:
            mark = "*" if highlight_color(row.description) else " "
            _print_row(row.code, row.description, row.income, row.deduction, mark)

    print()
    print(f"Salário Líquido Total:   {result.totals.net_salary or 'Não detectado'}")
    print(f"Total Alimentação/Cesta: {format_brl(summary.total(Category.FOOD_OR_BASKET))}")
    print(f"Total Transporte:        {format_brl(summary.total(Category.TRANSPORT))}")
    if summary.has_thirteenth_salary:
        print(f"Total 13º Salário:       {format_brl(summary.total(Category.THIRTEENTH_SALARY))}")
        print("\n! Folha contém 13º salário!")

    if summary.verification_conflict:
        print(
            "\nAviso de Verificação: foi detectada uma inconsistência entre os itens "
            "destacados e os totais calculados. Revise os dados com atenção."
        )

    if verbose and result.diagnostics:
        print("\nDiagnósticos:")
        for diag in result.diagnostics:
            print(f"  [página {diag.page_number}] {diag.kind}: {diag.message}")
    print()
