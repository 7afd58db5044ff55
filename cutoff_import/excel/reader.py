from __future__ import annotations

import math
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.records import ColumnData, RawCell

"""Spreadsheet reader.

Only the first sheet is read. Row 0 is the header row (one institution per
column); every row below is data. Cells are read untyped (dtype=object) so
rank strings such as "10248 0" survive for the normalizer.
"""

__all__ = [
    "SheetReadError",
    "read_excel_file",
    "iter_columns",
    "cell_text",
]


class SheetReadError(Exception):
    """Raised when a workbook cannot be opened or has no usable sheet."""


def read_excel_file(path: Path, keep_na_strings: Iterable[str] | None = None) -> pd.DataFrame:
    """Read the first sheet of an Excel file as a raw, header-less DataFrame.

    Parameters
    ----------
    path: Excel file path
    keep_na_strings: strings pandas would turn into NaN by default but that
        must stay text (e.g. ['NA'])
    """
    import pandas._libs.parsers as parsers

    keep = set(keep_na_strings or ())
    if keep:
        na_values: list[str] | None = list(parsers.STR_NA_VALUES - keep)
        keep_default_na = False
    else:
        na_values = None
        keep_default_na = True

    try:
        with pd.ExcelFile(path) as xls:
            if not xls.sheet_names:
                raise SheetReadError(f"workbook has no sheets: {path.name}")
            df = xls.parse(
                xls.sheet_names[0],
                header=None,
                dtype=object,
                keep_default_na=keep_default_na,
                na_values=na_values,
            )
    except SheetReadError:
        raise
    except Exception as e:
        raise SheetReadError(f"cannot read {path.name}: {e}") from e
    return df


def cell_text(value: Any) -> str | None:
    """Render one cell as stripped text; None for empty cells.

    Integral floats lose their ".0" so 10248.0 reads as "10248".
    """
    if value is None:
        return None
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            return str(int(value))
        return str(value)
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    text = str(value).strip()
    return text or None


def iter_columns(df: pd.DataFrame) -> Iterator[ColumnData]:
    """Yield each column with its header text and non-empty data cells."""
    if df.shape[0] == 0:
        return
    for col_pos in range(df.shape[1]):
        series = df.iloc[:, col_pos].tolist()
        header = cell_text(series[0]) or ""
        cells = []
        for row_idx, value in enumerate(series[1:], start=1):
            text = cell_text(value)
            if text is None:
                continue
            cells.append(RawCell(row=row_idx, column=col_pos, text=text))
        yield ColumnData(index=col_pos, header=header, cells=tuple(cells))
