"""Extract the 'Resumo Geral da Folha' ledger from a payroll PDF.

Pipeline:
  1. find_section_start   – first page whose text carries the section title
  2. scan_table_page      – per page of the table window:
       a) bound_table_region   – tokens between the title and the totals anchor,
                                 page furniture removed
       b) assemble_lines       – tokens clustered into visual lines
       c) find_column_midpoint – Rendimentos/Descontos split
       d) reconstruct_row      – code, description, one value; continuation
                                 lines extend the previous description
  3. scan_totals_page     – 'Salário Líquido' amount near the funcionários block
  4. summarize            – per-category sums and the highlight cross-check
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from folha_categories import clipboard_text, summarize
from folha_config import DEFAULT_CONFIG, ExtractionConfig
from folha_export import write_workbook
from folha_models import FolhaError
from folha_pipeline import extract_pdf, print_report


def run(args: argparse.Namespace) -> int:
    path = Path(args.pdf)
    if not path.exists():
        print(f"Erro: arquivo não encontrado: {path}", file=sys.stderr)
        return 1

    config = ExtractionConfig(y_tolerance=args.y_tolerance)
    if args.exclude:
        config = config.with_extra_furniture(*args.exclude)

    try:
        result = extract_pdf(path, config)
    except FolhaError as exc:
        print(f"Erro na extração: {exc}", file=sys.stderr)
        return 1

    summary = summarize(result.rows)
    print_report(result, summary, verbose=args.verbose)

    if args.output:
        write_workbook(args.output, result, summary)
        print(f"Planilha gravada em {args.output}")

    if args.copy_text:
        print(clipboard_text(result, summary))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract the payroll summary table and net salary total from a PDF.",
    )
    parser.add_argument("pdf", help="Path to the PDF file")
    parser.add_argument(
        "-o", "--output",
        metavar="XLSX",
        help="Write the ledger and category summary to this spreadsheet",
    )
    parser.add_argument(
        "--copy-text",
        action="store_true",
        help="Print net salary and category totals in paste-ready form",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        metavar="REGEX",
        help="Extra page-furniture pattern to drop from the table (repeatable)",
    )
    parser.add_argument(
        "--y-tolerance",
        type=float, default=DEFAULT_CONFIG.y_tolerance, metavar="N",
        help="Vertical distance that still counts as the same line (default: 5)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log progress and show per-page diagnostics",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
