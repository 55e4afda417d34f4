from __future__ import annotations

import re
from dataclasses import dataclass, field, replace

from folha_models import Token

SECTION_MARKER = "Resumo Geral da Folha de Pagamento por Rubrica"

Y_TOLERANCE = 5.0
TABLE_PAGE_WINDOW = 4
TOTALS_PAGE_WINDOW = 5
TOTALS_ANCHOR_SLACK = 5.0

# Search rectangle around the "Salário Líquido" label, in layout units.
LABEL_MARGIN_LEFT = 20.0
LABEL_MARGIN_RIGHT = 50.0
LABEL_SEARCH_DEPTH = 40.0
LABEL_SEARCH_GAP = 2.0

# Page furniture printed inside the table band by the Nasajon report template.
DEFAULT_FURNITURE_PATTERNS: tuple[str, ...] = (
    r"página",
    r"cnpj",
    r"empresa",
    r"analítica",
    r"nasajon",
    r"condomínio",
    r"ebac",
)


@dataclass(frozen=True)
class ExtractionConfig:
    section_marker: str = SECTION_MARKER
    y_tolerance: float = Y_TOLERANCE
    table_page_window: int = TABLE_PAGE_WINDOW
    totals_page_window: int = TOTALS_PAGE_WINDOW
    totals_anchor_slack: float = TOTALS_ANCHOR_SLACK
    label_margin_left: float = LABEL_MARGIN_LEFT
    label_margin_right: float = LABEL_MARGIN_RIGHT
    label_search_depth: float = LABEL_SEARCH_DEPTH
    label_search_gap: float = LABEL_SEARCH_GAP
    furniture_patterns: tuple[str, ...] = DEFAULT_FURNITURE_PATTERNS
    _furniture_res: tuple[re.Pattern, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        compiled = tuple(re.compile(p, re.IGNORECASE) for p in self.furniture_patterns)
        object.__setattr__(self, "_furniture_res", compiled)

    def is_furniture(self, token: Token) -> bool:
        return any(p.search(token.text) for p in self._furniture_res)

    def with_extra_furniture(self, *patterns: str) -> ExtractionConfig:
        return replace(self, furniture_patterns=self.furniture_patterns + tuple(patterns))


DEFAULT_CONFIG = ExtractionConfig()
