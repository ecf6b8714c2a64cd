"""
Reusable parsers for the messy cells of catalog exports.

These parsers handle the reality of spreadsheet exports from ERPs:
- Numbers in either Brazilian ("2.236,00") or English ("2,236.00") notation
- Currency symbols and stray whitespace inside numeric cells
- Headers with accents and ordinal indicators ("Nº", "3º Nº de Item")
- 13-digit book identifiers buried inside free-text cells
"""

import math
import re
import unicodedata
from typing import Any, Iterable, Mapping

import pandas as pd

# Ordinal indicators show up in headers like "Nº Item" and "3º Nº de Item"
_ORDINALS = str.maketrans("", "", "ºª°")
_CURRENCY = re.compile(r"R\$|US\$|[$€£]|\s")
_IDENTIFIER = re.compile(r"(97[89][0-9]{10})")
_NON_DIGITS = re.compile(r"[^0-9]")
# Plain decimal notation only; rejects "1_000", "inf", "0x10" and friends
_PLAIN_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_BLANK_NUMBERS = {"", "-", "*"}


def normalize_text(value: Any) -> str:
    """Lowercase, strip accents and ordinal indicators. For header matching only."""
    if value is None:
        return ""
    text = unicodedata.normalize("NFD", str(value).lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return text.translate(_ORDINALS).strip()


def round1(value: float) -> float:
    """Round half-up to one decimal place."""
    return math.floor(value * 10 + 0.5) / 10


class NumberParser:
    """
    Best-effort parser for locale-ambiguous numeric cells.

    Separator rules:
    - "." and "," both present: the rightmost one is the decimal separator
    - only ",": the comma is the decimal separator ("1,5" -> 1.5)
    - only ".": always a decimal point, so "1.000" parses as 1.0

    The dot-only rule is a known quirk: dot-grouped thousands are read as
    decimals. Anything left over that isn't a plain finite decimal parses
    as 0.0.

    Parsed strings are cached per instance; create one parser per run.
    """

    def __init__(self, use_cache: bool = True):
        self.use_cache = use_cache
        self._cache: dict[str, float] = {}

    def parse(self, value: Any) -> float:
        """Parse a single cell. Never raises."""
        if value is None:
            return 0.0
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value) if math.isfinite(value) else 0.0

        raw = str(value).strip()
        if not self.use_cache:
            return self._parse_text(raw)
        if raw in self._cache:
            return self._cache[raw]

        result = self._parse_text(raw)
        self._cache[raw] = result
        return result

    def _parse_text(self, text: str) -> float:
        if text in _BLANK_NUMBERS:
            return 0.0

        text = _CURRENCY.sub("", text)
        has_dot = "." in text
        has_comma = "," in text

        if has_dot and has_comma:
            if text.rfind(",") > text.rfind("."):
                # Brazilian: 2.236,000 -> 2236.000
                text = text.replace(".", "").replace(",", ".", 1)
            else:
                # English: 1,234.56 -> 1234.56
                text = text.replace(",", "")
        elif has_comma:
            text = text.replace(",", ".", 1)

        if not _PLAIN_NUMBER.fullmatch(text):
            return 0.0
        result = float(text)
        return result if math.isfinite(result) else 0.0

    def parse_series(self, series: pd.Series) -> pd.Series:
        """Parse an entire pandas Series of numeric cells."""
        return series.apply(self.parse).astype(float)


class IdentifierExtractor:
    """
    Finds 13-digit book identifiers (978/979 prefix family) in free text.

    The whole cleaned cell is checked first, then the cell is scanned for an
    embedded run. The check digit is not validated.
    """

    PREFIXES = ("978", "979")

    def extract(self, value: Any) -> str | None:
        """Return the first 13-digit identifier in a cell, or None."""
        if value is None or (isinstance(value, float) and math.isnan(value)):
            return None
        cleaned = re.sub(r"[\s-]", "", str(value))
        if not cleaned:
            return None

        digits = _NON_DIGITS.sub("", cleaned)
        if len(digits) == 13 and digits.startswith(self.PREFIXES):
            return digits

        match = _IDENTIFIER.search(cleaned)
        return match.group(1) if match else None

    def scan_row(self, row: Mapping[str, Any], headers: Iterable[str]) -> str | None:
        """Scan every cell of a row, in header order, for an identifier."""
        for header in headers:
            found = self.extract(row.get(header))
            if found:
                return found
        return None


# Shared by the module shortcut, so it must not accumulate every cell it sees
_number_parser = NumberParser(use_cache=False)
_identifier_extractor = IdentifierExtractor()


def parse_number(value: Any) -> float:
    """Module-level shortcut for NumberParser.parse."""
    return _number_parser.parse(value)


def extract_identifier(value: Any) -> str | None:
    """Module-level shortcut for IdentifierExtractor.extract."""
    return _identifier_extractor.extract(value)


def scan_row_for_identifier(
    row: Mapping[str, Any], headers: Iterable[str]
) -> str | None:
    """Module-level shortcut for IdentifierExtractor.scan_row."""
    return _identifier_extractor.scan_row(row, headers)
