import pytest

from folha_categories import classify_description
from folha_config import ExtractionConfig
from folha_context import (
    TableScanState,
    TotalsScanState,
    bound_table_region,
    find_column_midpoint,
    find_header_line,
    find_net_salary,
    find_section_start,
    is_income_column,
    reconstruct_row,
    scan_table_page,
    scan_totals_page,
)
from folha_extract import assemble_lines
from folha_models import Category, HeaderNotFound, Row, SectionNotFound, Token
from folha_source import InMemoryDocument, InMemoryPage


def tok(text, x, y, width=None, height=10.0):
    return Token(text, x, y, width if width is not None else 6.0 * len(text), height)


def words(y, *placed):
    """Tokens on one baseline from ``(text, x)`` pairs."""
    return [tok(text, x, y) for text, x in placed]


TITLE = words(
    760,
    ("Resumo", 40), ("Geral", 90), ("da", 125), ("Folha", 140), ("de", 175),
    ("Pagamento", 190), ("por", 250), ("Rubrica", 275),
)
HEADER = [
    tok("Rubrica", 40, 720),
    tok("Descrição", 100, 720),
    tok("Rendimentos", 350, 720, width=60),
    tok("Descontos", 450, 720, width=50),
]
MIDPOINT = (350 + 60 + 450) / 2


def table_page(*row_tokens):
    tokens = list(TITLE) + list(HEADER)
    for group in row_tokens:
        tokens.extend(group)
    return tokens


def test_column_midpoint_from_header_tokens():
    lines = assemble_lines(HEADER)
    assert find_column_midpoint(find_header_line(lines)) == MIDPOINT


def test_value_exactly_on_midpoint_is_a_deduction():
    assert not is_income_column(tok("10,00", MIDPOINT, 700), MIDPOINT)
    assert is_income_column(tok("10,00", MIDPOINT - 0.01, 700), MIDPOINT)


def test_missing_column_header_raises():
    lines = assemble_lines(words(720, ("Rubrica", 40), ("Rendimentos", 350)))
    with pytest.raises(HeaderNotFound):
        find_header_line(lines)


def test_bound_table_region_keeps_band_and_drops_furniture():
    tokens = table_page(
        words(740, ("Página", 40), ("1", 90)),
        words(700, ("0010", 40), ("Salário", 100)),
        words(300, ("Total", 40), ("de", 80), ("Funcionários:", 100)),
        words(200, ("ignored", 40)),
    )
    kept = {t.text for t in bound_table_region(tokens)}

    assert {"0010", "Salário", "Rendimentos", "1"} <= kept
    assert "Página" not in kept
    assert "Resumo" not in kept
    assert "Funcionários:" not in kept
    assert "ignored" not in kept


def test_bound_table_region_with_extra_furniture():
    config = ExtractionConfig().with_extra_furniture(r"^emitido")
    tokens = table_page(words(700, ("0010", 40), ("Emitido", 100)))
    kept = {t.text for t in bound_table_region(tokens, config)}
    assert "Emitido" not in kept
    assert "0010" in kept


def test_scan_table_page_builds_rows_and_continuations():
    tokens = table_page(
        words(700, ("0010", 40), ("Salário", 100), ("Base", 150), ("3.000,00", 360)),
        words(680, ("0450", 40), ("Vale", 100), ("Transporte", 130), ("180,00", 460)),
        words(668, ("Desconto", 100), ("em", 160), ("folha", 180), ("1,00", 460)),
    )
    state = scan_table_page(TableScanState(), tokens, 1)

    assert state.rows == [
        Row("0010", "Salário Base", income="3.000,00"),
        Row("0450", "Vale Transporte Desconto em folha", deduction="180,00"),
    ]
    assert state.diagnostics == []


def test_rows_are_deduplicated_across_pages():
    page = table_page(words(700, ("0010", 40), ("Salário", 100), ("3.000,00", 360)))
    state = scan_table_page(TableScanState(), page, 1)
    state = scan_table_page(state, page, 2)

    assert len(state.rows) == 1
    assert len({row.key for row in state.rows}) == len(state.rows)


def test_orphan_continuation_is_discarded():
    tokens = table_page(
        words(700, ("continuação", 100), ("solta", 180)),
        words(680, ("0010", 40), ("Salário", 100)),
    )
    state = scan_table_page(TableScanState(), tokens, 1)
    assert state.rows == [Row("0010", "Salário")]


def test_continuation_after_duplicate_does_not_touch_emitted_row():
    first = table_page(words(700, ("0010", 40), ("Salário", 100), ("3.000,00", 360)))
    second = table_page(
        words(700, ("0010", 40), ("Salário", 100), ("3.000,00", 360)),
        words(688, ("repetido", 100)),
    )
    state = scan_table_page(TableScanState(), first, 1)
    state = scan_table_page(state, second, 2)
    assert state.rows == [Row("0010", "Salário", income="3.000,00")]


def test_multiple_values_keep_the_first_and_report_it():
    tokens = table_page(
        words(700, ("0100", 40), ("Férias", 100), ("1.000,00", 360), ("200,00", 460)),
    )
    state = scan_table_page(TableScanState(), tokens, 3)

    assert state.rows == [Row("0100", "Férias", income="1.000,00")]
    assert [(d.kind, d.page_number) for d in state.diagnostics] == [("multiple_values_on_row", 3)]


def test_page_without_header_contributes_nothing():
    state = TableScanState(rows=[Row("0010", "Salário")])
    state = scan_table_page(state, words(500, ("0020", 40), ("Outro", 100)), 2)

    assert state.rows == [Row("0010", "Salário")]
    assert state.diagnostics[0].kind == "header_not_found"


def totals_tokens(*candidates):
    return [
        tok("Total", 40, 300),
        tok("Funcionários:", 100, 300),
        tok("Salário", 100, 280, width=40),
        tok("Líquido", 160, 280, width=40),
        *candidates,
    ]


def test_net_salary_picks_candidate_nearest_label_center():
    far = tok("9.999,99", 240, 260, width=320)   # centre 400
    near = tok("3.456,78", 130, 260, width=40)   # centre 150
    assert find_net_salary(totals_tokens(far, near)) == "3.456,78"


def test_net_salary_ties_go_to_source_order():
    left = tok("1,00", 120, 260, width=40)    # centre 140
    right = tok("2,00", 140, 260, width=40)   # centre 160
    assert find_net_salary(totals_tokens(right, left)) == "2,00"


def test_net_salary_ignores_values_outside_rectangle():
    above_label = tok("5,00", 130, 290, width=40)
    too_low = tok("6,00", 130, 230, width=40)
    assert find_net_salary(totals_tokens(above_label, too_low)) is None


def test_net_salary_requires_anchor():
    tokens = [t for t in totals_tokens(tok("3.456,78", 130, 260, width=40)) if t.text != "Funcionários:"]
    assert find_net_salary(tokens) is None


def test_scan_totals_page_stops_once_found():
    state = scan_totals_page(TotalsScanState(), totals_tokens(tok("3.456,78", 130, 260, width=40)), 2)
    assert state.found and state.page_number == 2

    later = scan_totals_page(state, totals_tokens(tok("1,00", 130, 260, width=40)), 3)
    assert later.net_salary == "3.456,78"


def test_find_section_start():
    doc = InMemoryDocument([
        InMemoryPage(text="Capa"),
        InMemoryPage(text="Resumo  Geral da Folha de\nPagamento por Rubrica"),
    ])
    assert find_section_start(doc, "Resumo Geral da Folha de Pagamento por Rubrica") == 1


def test_find_section_start_missing_marker():
    doc = InMemoryDocument([InMemoryPage(text="Capa")])
    with pytest.raises(SectionNotFound, match="Não foi possível localizar"):
        find_section_start(doc, "Resumo Geral da Folha de Pagamento por Rubrica")


def test_code_glued_to_first_word_keeps_the_word_in_description():
    line = [tok("13º", 40, 700), tok("Salário", 100, 700), tok("2.000,00", 360, 700)]
    row, _ = reconstruct_row(line, MIDPOINT)

    assert row == Row("13", "13º Salário", income="2.000,00")
    assert classify_description(row.description) is Category.THIRTEENTH_SALARY


def test_total_geral_line_closes_the_band():
    tokens = [
        tok("Rubrica", 40, 720),
        tok("0010", 40, 700),
        tok("Total", 40, 400),
        tok("Geral", 80, 400),
        tok("BELOW", 40, 300),
    ]
    assert [t.text for t in bound_table_region(tokens)] == ["0010"]


def test_band_without_title_is_open_at_the_top():
    tokens = [
        tok("TOPO", 40, 900),
        tok("0010", 40, 700),
        tok("TOTAL", 40, 400),
        tok("GERAL", 90, 400),
    ]
    assert [t.text for t in bound_table_region(tokens)] == ["TOPO", "0010"]


def test_multi_word_title_bounds_the_band():
    tokens = [tok("Cabeçalho", 40, 790)] + words(
        760, ("Resumo", 40), ("Geral", 90), ("da", 125), ("Folha", 140)
    ) + [tok("0010", 40, 700)]
    assert [t.text for t in bound_table_region(tokens)] == ["0010"]


def test_scan_table_page_returns_a_new_state():
    before = TableScanState()
    after = scan_table_page(before, table_page(words(700, ("0010", 40), ("Salário", 100))), 1)

    assert after.rows == [Row("0010", "Salário")]
    assert before.rows == [] and before.seen == set() and before.last_row is None
