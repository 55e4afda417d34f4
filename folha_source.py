"""Positioned text sources.

The extractor only needs two things from a page: its word tokens with
geometry, and its plain text for the section-marker scan. ``PdfplumberDocument``
reads them from a real PDF; ``InMemoryDocument`` serves pre-decoded layers.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, Sequence

import pdfplumber

from folha_extract import chars_to_tokens
from folha_models import Token

logging.getLogger("pdfminer").setLevel(logging.ERROR)
warnings.filterwarnings("ignore", module="pdfminer")


class Page(Protocol):
    def get_positioned_tokens(self) -> Sequence[Token]: ...

    def get_plain_text(self) -> str: ...


class Document(Protocol):
    @property
    def page_count(self) -> int: ...

    def get_page(self, index: int) -> Page: ...


class PdfplumberPage:
    def __init__(self, page: pdfplumber.page.Page) -> None:
        self._page = page

    def get_positioned_tokens(self) -> list[Token]:
        tokens = chars_to_tokens(self._page.chars, self._page.height)
        return [t for t in tokens if t.text.strip()]

    def get_plain_text(self) -> str:
        return self._page.extract_text() or ""


class PdfplumberDocument:
    """A PDF opened with pdfplumber; use it as a context manager."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._pdf: pdfplumber.PDF | None = None

    def __enter__(self) -> PdfplumberDocument:
        self._pdf = pdfplumber.open(self.path)
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._pdf is not None:
            self._pdf.close()
            self._pdf = None

    @property
    def page_count(self) -> int:
        return len(self._require().pages)

    def get_page(self, index: int) -> PdfplumberPage:
        return PdfplumberPage(self._require().pages[index])

    def _require(self) -> pdfplumber.PDF:
        if self._pdf is None:
            raise RuntimeError("document is not open; use it inside a 'with' block")
        return self._pdf


@dataclass
class InMemoryPage:
    tokens: list[Token] = field(default_factory=list)
    text: str | None = None

    def get_positioned_tokens(self) -> list[Token]:
        return [t for t in self.tokens if t.text.strip()]

    def get_plain_text(self) -> str:
        if self.text is not None:
            return self.text
        return " ".join(t.text for t in self.tokens)


@dataclass
class InMemoryDocument:
    pages: list[InMemoryPage] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def get_page(self, index: int) -> InMemoryPage:
        return self.pages[index]
