# book_inventory/importer/normalizers.py
"""
Cell normalizers: one pure function per target type.

Every function takes a Cell and returns the typed value, None for an empty
cell, or raises a CellError subclass. Nothing here knows about rows.
"""
from __future__ import annotations
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, Generic, List, Mapping, Optional, Sequence, Tuple, TypeVar

from book_inventory.db_models import Binding, Condition, DiscountType, ItemStatus, Language
from book_inventory.errors import InvalidNumber, Unrecognized
from book_inventory.importer.cells import Cell

E = TypeVar("E")

_CURRENCY_PREFIX = re.compile(r"^(?:R\$|US\$|\$|€|£)\s*", re.IGNORECASE)
_DECIMAL = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)$")
_INTEGER = re.compile(r"^[+-]?\d+$")
_SKU = re.compile(r"SKU:?\s*([^\s,.]+)", re.IGNORECASE)
_LEADING_SEPARATORS = re.compile(r"^[,.\s]+")
_AUTHOR_SEPARATORS = re.compile(r"[,;]")


# ============================================================================
# Text
# ============================================================================

def parse_text(cell: Cell) -> Optional[str]:
    """Trimmed text, None when blank."""
    text = cell.as_text()
    return text or None


# ============================================================================
# Numbers
# ============================================================================

def _number_to_decimal(value: object) -> Decimal:
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise InvalidNumber(f"'{value}' is not a finite number", value)
        return value
    return _to_decimal(str(value), value)


def _to_decimal(text: str, original: object) -> Decimal:
    if not _DECIMAL.match(text):
        raise InvalidNumber(f"'{original}' is not a valid number", original)
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise InvalidNumber(f"'{original}' is not a valid number", original)
    if not value.is_finite():
        raise InvalidNumber(f"'{original}' is not a finite number", original)
    return value


def parse_currency(cell: Cell) -> Optional[Decimal]:
    """
    Money in pt-BR or plain notation.

        "R$ 17,95"  -> 17.95
        "1.234,56"  -> 1234.56
        "17.95"     -> 17.95
        ""          -> None (absent, not zero)

    With a comma present it is the decimal separator and every '.' is a
    thousands separator; without one the text is parsed as is.
    """
    if cell.is_empty:
        return None
    if cell.kind == "number":
        return _number_to_decimal(cell.value)
    if cell.kind == "date":
        raise InvalidNumber(f"'{cell.as_text()}' is a date, not an amount", cell.value)

    raw = cell.as_text()
    text = _CURRENCY_PREFIX.sub("", raw).strip()
    if "," in text:
        text = text.replace(".", "").replace(",", ".")
    return _to_decimal(text, raw)


def parse_integer(cell: Cell) -> Optional[int]:
    """Whole numbers only; '12.5' or 12.5 raise InvalidNumber."""
    if cell.is_empty:
        return None
    if cell.kind == "number":
        value = cell.value
        if isinstance(value, int):
            return value
        dec = _number_to_decimal(value)
        if dec != dec.to_integral_value():
            raise InvalidNumber(f"'{value}' is not a whole number", value)
        return int(dec)
    if cell.kind == "date":
        raise InvalidNumber(f"'{cell.as_text()}' is a date, not a number", cell.value)

    text = cell.as_text()
    if not _INTEGER.match(text):
        raise InvalidNumber(f"'{text}' is not a whole number", text)
    return int(text)


# ============================================================================
# Enums: two explicit policies
# ============================================================================

class StrictEnum(Generic[E]):
    """Unmatched or empty input raises Unrecognized; there is no default."""

    def __init__(self, name: str, synonyms: Mapping[str, E]):
        self.name = name
        self.synonyms: Dict[str, E] = {k.strip().lower(): v for k, v in synonyms.items()}

    def lookup(self, cell: Cell) -> Optional[E]:
        if cell.is_empty:
            return None
        return self.synonyms.get(cell.as_text().lower())

    def __call__(self, cell: Cell) -> E:
        value = self.lookup(cell)
        if value is None:
            if cell.is_empty:
                raise Unrecognized(f"{self.name} is empty", None)
            raise Unrecognized(f"'{cell.as_text()}' is not a recognized {self.name}", cell.value)
        return value


class LenientEnum(StrictEnum[E]):
    """Unmatched, empty or missing input falls back to the default."""

    def __init__(self, name: str, synonyms: Mapping[str, E], default: E):
        super().__init__(name, synonyms)
        self.default = default

    def __call__(self, cell: Cell) -> E:
        value = self.lookup(cell)
        return self.default if value is None else value


CONDITION = StrictEnum("condition", {
    "novo": Condition.new,
    "new": Condition.new,
    "usado": Condition.used,
    "used": Condition.used,
})

BINDING = LenientEnum("binding", {
    "brochura": Binding.paperback,
    "paperback": Binding.paperback,
    "capa dura": Binding.hardcover,
    "capadura": Binding.hardcover,
    "hardcover": Binding.hardcover,
    "espiral": Binding.spiral,
    "spiral": Binding.spiral,
    "outro": Binding.other,
    "other": Binding.other,
}, default=Binding.other)

LANGUAGE = LenientEnum("language", {
    "português": Language.pt,
    "portugues": Language.pt,
    "pt": Language.pt,
    "inglês": Language.en,
    "ingles": Language.en,
    "english": Language.en,
    "en": Language.en,
    "espanhol": Language.es,
    "spanish": Language.es,
    "es": Language.es,
    "outro": Language.other,
    "other": Language.other,
}, default=Language.other)

STATUS = StrictEnum("status", {s.value: s for s in ItemStatus})


# ============================================================================
# SKU / description
# ============================================================================

def extract_sku_and_description(cell: Cell) -> Tuple[Optional[str], Optional[str]]:
    """
    Pull an embedded "SKU: <token>" out of a free-text cell.

        "SKU: ABC123, levemente amassado" -> ("ABC123", "levemente amassado")
        "capa gasta SKU: X1, bom"         -> ("X1", "capa gasta bom")
        "capa rasgada"                    -> (None, "capa rasgada")
    """
    text = cell.as_text()
    if not text:
        return None, None

    match = _SKU.search(text)
    if not match:
        return None, text

    sku = match.group(1).split(",", 1)[0].strip() or None
    before = text[:match.start()].rstrip()
    after = _LEADING_SEPARATORS.sub("", text[match.end():]).strip()
    description = " ".join(part for part in (before, after) if part)
    return sku, description or None


# ============================================================================
# Authors (manual-entry form)
# ============================================================================

def split_author_list(values: Sequence[str]) -> List[str]:
    """'Jorge Amado, Zélia Gattai' -> ['Jorge Amado', 'Zélia Gattai']; order kept."""
    out: List[str] = []
    for value in values:
        out.extend(p.strip() for p in _AUTHOR_SEPARATORS.split(value) if p.strip())
    return out


# ============================================================================
# Discount
# ============================================================================

@dataclass(frozen=True)
class Discount:
    type: DiscountType
    value: Decimal


def parse_discount(cell: Cell) -> Optional[Discount]:
    """'10%' or 10 -> percentage discount; anything unreadable is dropped."""
    if cell.is_empty or cell.kind == "date":
        return None
    if cell.kind == "number":
        text = str(cell.value)
    else:
        text = cell.as_text().rstrip("%").strip().replace(",", ".")
    try:
        value = _to_decimal(text, cell.value)
    except InvalidNumber:
        return None
    return Discount(DiscountType.percentage, value)
