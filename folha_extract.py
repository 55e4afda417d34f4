from __future__ import annotations

import re
import unicodedata
from collections import defaultdict
from decimal import Decimal
from typing import Iterable

from folha_models import Token

MONETARY_RE = re.compile(r"\d{1,3}(?:\.\d{3})*,\d{2}")


def chars_to_tokens(chars: list[dict], page_height: float) -> list[Token]:
    """Group pdfplumber ``page.chars`` into word tokens in PDF coordinates.

    Characters are bucketed by rounded ``top``; within a bucket a token ends at
    an explicit space or at an x-gap wider than 1.5 average character widths,
    since many report generators place columns by coordinate rather than by
    inserting spaces. The baseline is taken from ``bottom`` and flipped so
    that y grows upward.
    """
    by_y: dict[int, list[dict]] = defaultdict(list)
    for c in chars:
        by_y[round(c["top"])].append(c)

    tokens: list[Token] = []
    for y_key in sorted(by_y.keys()):
        row = sorted(by_y[y_key], key=lambda c: c["x0"])
        run: list[dict] = []

        def flush() -> None:
            if not run:
                return
            x0 = run[0]["x0"]
            x1 = run[-1]["x1"]
            top = min(c["top"] for c in run)
            bottom = max(c["bottom"] for c in run)
            tokens.append(
                Token(
                    text="".join(c["text"] for c in run),
                    x=x0,
                    y=page_height - bottom,
                    width=x1 - x0,
                    height=bottom - top,
                )
            )
            run.clear()

        for c in row:
            ch = c["text"]
            if run:
                gap = c["x0"] - run[-1]["x1"]
                avg_char_width = (run[-1]["x1"] - run[0]["x0"]) / len(run)
                is_gap = gap > max(avg_char_width * 1.5, 4.0)
            else:
                is_gap = False

            if ch.isspace() or is_gap:
                flush()
                if ch.isspace():
                    continue
            run.append(c)
        flush()

    return tokens


def assemble_lines(tokens: Iterable[Token], y_tolerance: float = 5.0) -> list[list[Token]]:
    """Cluster tokens into visual lines, top-to-bottom then left-to-right.

    A new line starts whenever a token sits more than *y_tolerance* away from
    the last token placed on the open line.
    """
    ordered = sorted(tokens, key=lambda t: (-t.y, t.x))
    if not ordered:
        return []

    lines: list[list[Token]] = []
    current = [ordered[0]]
    for token in ordered[1:]:
        if abs(token.y - current[-1].y) <= y_tolerance:
            current.append(token)
        else:
            lines.append(sorted(current, key=lambda t: t.x))
            current = [token]
    lines.append(sorted(current, key=lambda t: t.x))
    return lines


def line_text(line: Iterable[Token]) -> str:
    return " ".join(t.text for t in line).strip()


def normalize_text(text: str) -> str:
    """Lowercase, fold ordinal indicators and strip diacritics.

    >>> normalize_text("Adiantamento de 13º Salário")
    'adiantamento de 13o salario'
    """
    if not text:
        return ""
    folded = text.lower().replace("º", "o").replace("ª", "a")
    decomposed = unicodedata.normalize("NFD", folded)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


# ---------------------------------------------------------------------------
# pt-BR monetary text
# ---------------------------------------------------------------------------

def is_monetary(text: str) -> bool:
    return MONETARY_RE.fullmatch(text) is not None


def strip_monetary(text: str) -> str:
    return " ".join(MONETARY_RE.sub(" ", text).split())


def parse_monetary(raw: str) -> Decimal:
    """Parse a pt-BR amount such as '1.234,56' into a Decimal.

    Only the printed report format is accepted; text that ``Decimal`` would
    otherwise take ("NaN", "1e3") is rejected.
    """
    if raw is None:
        raise ValueError("value is required")
    value = raw.strip()
    if not value:
        raise ValueError("value is required")
    if not is_monetary(value):
        raise ValueError(f"unable to parse monetary value from '{raw}'")

    return Decimal(value.replace(".", "").replace(",", "."))


def monetary_amount(raw: str) -> Decimal:
    """Like :func:`parse_monetary`, but blank or malformed text counts as zero."""
    try:
        return parse_monetary(raw)
    except ValueError:
        return Decimal("0")


def format_monetary(value: Decimal) -> str:
    """Render *value* the way the report prints it: '1.234,56'."""
    text = f"{value:,.2f}"
    return text.replace(",", "X").replace(".", ",").replace("X", ".")
