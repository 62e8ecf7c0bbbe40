# book_inventory/importer/cells.py
"""
Spreadsheet cell as an explicit tagged value.

Readers (pandas, csv, JSON bodies) hand over whatever Python object they
produced; Cell.of() decides once whether that is empty, text, a number or a
date, and the normalizers branch on `kind` instead of coercing implicitly.
"""
from __future__ import annotations
import math
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal, Union

CellKind = Literal["empty", "text", "number", "date"]


@dataclass(frozen=True)
class Cell:
    kind: CellKind
    value: Union[None, str, int, float, Decimal, date] = None

    @classmethod
    def of(cls, raw: Any) -> "Cell":
        if raw is None:
            return EMPTY
        if isinstance(raw, Cell):
            return raw
        if isinstance(raw, bool):
            return cls("text", str(raw))
        if isinstance(raw, (int, Decimal)):
            return cls("number", raw)
        if isinstance(raw, float):
            # pandas uses NaN for blank cells
            return EMPTY if math.isnan(raw) else cls("number", raw)
        if isinstance(raw, (datetime, date)):
            # pandas.NaT is a datetime that never equals itself
            return EMPTY if raw != raw else cls("date", raw)
        if hasattr(raw, "item"):  # numpy scalars
            return cls.of(raw.item())
        return cls("text", str(raw))

    @property
    def is_empty(self) -> bool:
        if self.kind == "empty":
            return True
        return self.kind == "text" and not str(self.value).strip()

    def as_text(self) -> str:
        """Trimmed text form; integral numbers lose the trailing '.0' pandas adds."""
        if self.kind == "empty":
            return ""
        if self.kind == "number":
            v = self.value
            if isinstance(v, float) and v.is_integer():
                return str(int(v))
            return str(v)
        if self.kind == "date":
            return self.value.isoformat()
        return str(self.value).strip()


EMPTY = Cell("empty")
