from __future__ import annotations

"""Tabular readers and cell cleaners for the evaluation exports.

HR exports arrive either as CSV (often with a UTF-8 BOM) or as an .xlsx
workbook. Both are read into a plain header list plus rows of cell values so
repeated headers such as ``Etiqueta`` keep their position.
"""

import csv
import re
import unicodedata
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from openpyxl import load_workbook

PathLike = Union[str, Path]

LABEL_HEADER = "etiqueta"


class ImportValidationError(ValueError):
    """Input data cannot be imported; nothing has been written."""


@dataclass
class Table:
    headers: List[str]
    rows: List[List[Any]] = field(default_factory=list)
    source: str = ""

    def index_of(self, name: str) -> Optional[int]:
        wanted = normalize_header(name)
        for idx, header in enumerate(self.headers):
            if normalize_header(header) == wanted:
                return idx
        return None

    def labelled_columns(self) -> Dict[str, Dict[str, Optional[int]]]:
        """Map each non-label header to its own index and the index of its label.

        A label column belongs to the score column immediately to its left.
        """
        out: Dict[str, Dict[str, Optional[int]]] = {}
        for idx, header in enumerate(self.headers):
            key = normalize_header(header)
            if not key or key == LABEL_HEADER or key in out:
                continue
            label_idx: Optional[int] = None
            if idx + 1 < len(self.headers) and normalize_header(self.headers[idx + 1]) == LABEL_HEADER:
                label_idx = idx + 1
            out[key] = {"value": idx, "label": label_idx}
        return out


def normalize_header(header: Any) -> str:
    text = "" if header is None else str(header)
    text = unicodedata.normalize("NFKD", text)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return re.sub(r"\s+", " ", text).strip().lower()


# ---------------------------------------------------------------------------
# Cell cleaning
# ---------------------------------------------------------------------------


def clean_string(value: Any) -> Optional[str]:
    """Trimmed text, or None for blank cells and the ``-`` placeholder."""
    if value is None:
        return None
    text = str(value).strip()
    if text == "" or text == "-":
        return None
    return text


def to_decimal(value: Any) -> Optional[float]:
    """Parse a score cell. Accepts comma decimals; blank/``-``/garbage is None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = clean_string(value)
    if text is None:
        return None
    try:
        return float(text.replace(",", "."))
    except ValueError:
        return None


def to_code(value: Any) -> Optional[int]:
    """Employee codes come as ``1042``, ``1042.0`` (xlsx) or ``" 1042 "`` (csv)."""
    number = to_decimal(value)
    if number is None or number != int(number):
        return None
    return int(number)


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------


def _read_csv(path: Path) -> Table:
    with path.open("r", encoding="utf-8-sig", newline="") as f:
        first_line = f.readline()
        f.seek(0)
        # Spanish-locale exports use ";" so that "3,5" stays one cell
        delimiter = max(",;\t", key=first_line.count)
        reader = csv.reader(f, delimiter=delimiter)
        rows = [row for row in reader]
    if not rows:
        raise ImportValidationError(f"{path.name} is empty")
    headers = [h.strip() for h in rows[0]]
    body = [row for row in rows[1:] if any(cell.strip() for cell in row)]
    return Table(headers=headers, rows=body, source=str(path))


def _read_xlsx(path: Path) -> Table:
    wb = load_workbook(str(path), read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        rows = [list(r) for r in ws.iter_rows(values_only=True)]
    finally:
        wb.close()
    if not rows:
        raise ImportValidationError(f"{path.name} is empty")
    headers = ["" if h is None else str(h).strip() for h in rows[0]]
    body = [row for row in rows[1:] if any(clean_string(c) is not None for c in row)]
    return Table(headers=headers, rows=body, source=str(path))


def read_table(path: PathLike) -> Table:
    path = Path(path)
    if not path.exists():
        raise ImportValidationError(f"File not found: {path}")
    suffix = path.suffix.lower()
    if suffix in (".xlsx", ".xlsm"):
        return _read_xlsx(path)
    if suffix in (".csv", ".txt"):
        return _read_csv(path)
    raise ImportValidationError(f"Unsupported file type: {path.suffix}")


def cell(row: Sequence[Any], idx: Optional[int]) -> Any:
    if idx is None or idx >= len(row):
        return None
    return row[idx]


__all__ = [
    "ImportValidationError",
    "Table",
    "cell",
    "clean_string",
    "normalize_header",
    "read_table",
    "to_code",
    "to_decimal",
]
