"""
Loader for the ERP catalog exports (sales register and stock register).

THIS FILE CONTAINS EXPORT-SPECIFIC HANDLING:
- Delimiter is sniffed over the first lines, restricted to ; , tab and |
  (the ERP emits ";" while re-saved sheets use ","); ";" when undecidable
- UTF-8 with or without BOM, falling back to Latin-1 for older exports
- Every cell is read as a string; numeric parsing happens in core.parsers
- .xlsx exports are read with the first sheet

To adapt for a new ERP:
1. Check that its headers match the synonym lists in core.columns
2. Add encodings, delimiters or file types here if its exports need them
3. The core aggregation and scoring can be reused as-is
"""

import csv
import io
import logging
import zipfile
from pathlib import Path
from typing import IO

import pandas as pd

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = {".csv", ".txt", ".tsv"}
EXCEL_EXTENSIONS = {".xlsx", ".xlsm"}
ENCODINGS = ("utf-8-sig", "latin-1")
DELIMITERS = ";,\t|"
DEFAULT_DELIMITER = ";"
SNIFF_LINES = 20


class ExportReadError(ValueError):
    """Raised when an export can't be read as a table."""


def _drop_blank_rows(df: pd.DataFrame) -> pd.DataFrame:
    df = df.fillna("").astype(str)
    return df[(df.apply(lambda col: col.str.strip()) != "").any(axis=1)].reset_index(drop=True)


def _read_bytes(source: Path | IO) -> bytes:
    if isinstance(source, Path):
        return source.read_bytes()
    if hasattr(source, "seek"):
        source.seek(0)
    return source.read()


def _decode(data: bytes) -> str:
    for encoding in ENCODINGS[:-1]:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError as exc:
            logger.debug("Could not decode export as %s: %s", encoding, exc)
    # Latin-1 maps every byte, so the last encoding always succeeds
    return data.decode(ENCODINGS[-1])


def detect_delimiter(text: str) -> str:
    """Delimiter of a delimited export, preferring ";" when several fit."""
    sample = "\n".join(text.splitlines()[:SNIFF_LINES])
    sniffer = csv.Sniffer()
    sniffer.preferred = list(DELIMITERS)
    try:
        return sniffer.sniff(sample, delimiters=DELIMITERS).delimiter
    except csv.Error:
        return DEFAULT_DELIMITER


def _read_text(source: Path | IO) -> pd.DataFrame:
    text = _decode(_read_bytes(source))
    if not text.strip():
        raise ExportReadError("The file is empty")

    sep = detect_delimiter(text)
    logger.debug("Reading delimited export with %r", sep)
    return pd.read_csv(
        io.StringIO(text),
        sep=sep,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
    )


def read_table(source: Path | str | IO, filename: str | None = None) -> pd.DataFrame:
    """
    Read an export into an all-string DataFrame.

    Args:
        source: Path or binary file-like object (e.g. an uploaded file)
        filename: Name used to pick the reader when source is file-like

    Raises:
        ExportReadError: the file is empty or can't be parsed as a table
    """
    if isinstance(source, str):
        source = Path(source)
    name = filename or getattr(source, "name", "") or ""
    suffix = Path(str(name)).suffix.lower()

    try:
        if suffix in EXCEL_EXTENSIONS:
            df = pd.read_excel(source, dtype=str)
        else:
            if suffix and suffix not in TEXT_EXTENSIONS:
                logger.warning("Unknown export type %r, reading as delimited text", suffix)
            df = _read_text(source)
    except ExportReadError:
        raise
    except (ValueError, csv.Error, zipfile.BadZipFile) as exc:
        # pandas' EmptyDataError and ParserError are ValueErrors
        raise ExportReadError(f"Could not read {name or 'upload'}: {exc}") from exc

    df = _drop_blank_rows(df)
    logger.info("Read %d rows x %d columns from %s", len(df), len(df.columns), name or "upload")
    return df
