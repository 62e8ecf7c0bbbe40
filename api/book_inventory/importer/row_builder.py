# book_inventory/importer/row_builder.py
"""
Row builder: one raw row -> CandidateRecord.

Each column is normalized on its own; a failing cell adds a RowError to the
record and the remaining columns are still processed.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from book_inventory.db_models import Binding, Condition, DiscountType, ItemStatus, Language
from book_inventory.errors import CellError
from book_inventory.importer.cells import EMPTY, Cell
from book_inventory.importer.columns import SKU_DESCRIPTION, field_label
from book_inventory.importer.normalizers import (
    BINDING, CONDITION, LANGUAGE, STATUS,
    Discount,
    extract_sku_and_description,
    parse_currency,
    parse_discount,
    parse_integer,
    parse_text,
    split_author_list,
)
from book_inventory.importer.report import RowError
from book_inventory.models import CandidateInput


@dataclass
class CandidateRecord:
    """Typed, not yet validated projection of an InventoryItem."""
    row_number: int
    sku: Optional[str] = None
    title: Optional[str] = None
    authors: List[str] = field(default_factory=list)
    publisher: Optional[str] = None
    year: Optional[int] = None
    isbn: Optional[str] = None
    page_count: Optional[int] = None
    subjects: List[str] = field(default_factory=list)
    description: Optional[str] = None
    cover_image_url: Optional[str] = None
    weight_grams: Optional[int] = None
    condition: Optional[Condition] = None
    binding: Optional[Binding] = None
    language: Optional[Language] = None
    price_sale: Optional[Decimal] = None
    price_cost: Optional[Decimal] = None
    discount: Optional[Discount] = None
    stock_own: Optional[int] = None
    stock_consigned: Optional[int] = None
    status: Optional[ItemStatus] = None
    label: Optional[str] = None
    item_specific_description: Optional[str] = None
    is_resale: Optional[bool] = None
    errors: List[RowError] = field(default_factory=list)

    def add_error(self, field_name: str, message: str) -> None:
        self.errors.append(self.error(message, field=field_label(field_name)))

    def error(self, message: str, field: Optional[str] = None) -> RowError:
        """RowError for this row, carrying the identifying bits known so far."""
        return RowError(
            row_number=self.row_number,
            message=message,
            field=field,
            sku=self.sku,
            title=self.title,
            isbn=self.isbn,
        )

    def item_values(self) -> Dict[str, Any]:
        """Columns this row actually provides, ready for InventoryItem."""
        values: Dict[str, Any] = {
            "sku": self.sku,
            "title": self.title,
            "authors": list(self.authors) or None,
            "publisher": self.publisher,
            "year": self.year,
            "isbn": self.isbn,
            "page_count": self.page_count,
            "subjects": list(self.subjects) or None,
            "description": self.description,
            "cover_image_url": self.cover_image_url,
            "weight_grams": self.weight_grams,
            "condition": self.condition,
            "binding": self.binding,
            "language": self.language,
            "price_sale": self.price_sale,
            "price_cost": self.price_cost,
            "stock_own": self.stock_own,
            "stock_consigned": self.stock_consigned,
            "status": self.status,
            "label": self.label,
            "item_specific_description": self.item_specific_description,
            "is_resale": self.is_resale,
        }
        if self.discount is not None:
            values["discount_type"] = self.discount.type
            values["discount_value"] = self.discount.value
        return {k: v for k, v in values.items() if v is not None}


# ============================================================================
# Spreadsheet rows
# ============================================================================

def _set_sku_description(rec: CandidateRecord, cell: Cell) -> None:
    sku, description = extract_sku_and_description(cell)
    if sku:
        rec.sku = sku
    # first description wins
    if description and not rec.description:
        rec.description = description


def _set_sale(rec: CandidateRecord, cell: Cell) -> None:
    rec.price_sale = parse_currency(cell)


def _set_discount(rec: CandidateRecord, cell: Cell) -> None:
    discount = parse_discount(cell)
    if discount is not None:
        rec.discount = discount


def _set_author(rec: CandidateRecord, cell: Cell) -> None:
    text = parse_text(cell)
    rec.authors = [text] if text else []


def _set_category(rec: CandidateRecord, cell: Cell) -> None:
    text = parse_text(cell)
    if text:
        rec.subjects = [text]


def _setter(attr: str, parse: Callable[[Cell], Any]) -> Callable[[CandidateRecord, Cell], None]:
    def _set(rec: CandidateRecord, cell: Cell) -> None:
        setattr(rec, attr, parse(cell))
    return _set


_FIELD_SETTERS: Dict[str, Callable[[CandidateRecord, Cell], None]] = {
    SKU_DESCRIPTION: _set_sku_description,
    "isbn": _setter("isbn", parse_text),
    "author": _set_author,
    "title": _setter("title", parse_text),
    "publisher": _setter("publisher", parse_text),
    "year": _setter("year", parse_integer),
    "price.sale": _set_sale,
    "price.discount": _set_discount,
    "weight": _setter("weight_grams", parse_integer),
    "condition": _setter("condition", CONDITION),
    "language": _setter("language", LANGUAGE),
    "binding": _setter("binding", BINDING),
    "category": _set_category,
    "label": _setter("label", parse_text),
}


def is_blank_row(cells: Sequence[Cell]) -> bool:
    return all(c.is_empty for c in cells)


def build_row(
    row_number: int,
    cells: Sequence[Cell],
    columns: Sequence[Tuple[int, str, str]],
) -> Optional[CandidateRecord]:
    """
    Build a candidate from one spreadsheet row.

    `columns` is the output of columns.map_headers(). Returns None for a row
    with no content at all.
    """
    if is_blank_row(cells):
        return None

    rec = CandidateRecord(row_number=row_number)
    for index, _header, field_name in columns:
        cell = cells[index] if index < len(cells) else EMPTY
        setter = _FIELD_SETTERS.get(field_name)
        if setter is None:
            continue
        try:
            setter(rec, cell)
        except CellError as e:
            rec.add_error(field_name, e.message)

    # cosmetic enums always end up with a value
    if rec.binding is None:
        rec.binding = BINDING.default
    if rec.language is None:
        rec.language = LANGUAGE.default
    return rec


# ============================================================================
# Client pre-parsed rows
# ============================================================================

def _string_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    return [str(v).strip() for v in value if v is not None and str(v).strip()]


def _apply(rec: CandidateRecord, field_name: str, fn: Callable[[], None]) -> None:
    try:
        fn()
    except CellError as e:
        rec.add_error(field_name, e.message)


def _discount_from_input(raw: Any) -> Optional[Discount]:
    if isinstance(raw, dict):
        try:
            dtype = DiscountType(str(raw.get("type") or "percentage").strip().lower())
        except ValueError:
            return None
        try:
            value = parse_currency(Cell.of(raw.get("value")))
        except CellError:
            return None
        return Discount(dtype, value) if value is not None else None
    return parse_discount(Cell.of(raw))


def _scalar(value: Any) -> Any:
    return value if isinstance(value, (str, int, float, Decimal)) else None


def build_candidate_from_raw(row_number: int, raw: Any) -> CandidateRecord:
    """
    Validate one raw JSON row and build its candidate.

    Values of the wrong shape (e.g. "isResale": "sim", "price": 17.95) become
    errors of this row; the remaining fields are still built.
    """
    problems: List[Tuple[str, str]] = []
    try:
        data = CandidateInput.model_validate(raw)
    except ValidationError as e:
        problems = [
            (".".join(str(p) for p in err["loc"]) or "row", err["msg"])
            for err in e.errors()
        ]
        bad_keys = {err["loc"][0] for err in e.errors() if err["loc"]}
        # errors report the alias; the payload may use the field name instead
        bad_keys |= {name for name, f in CandidateInput.model_fields.items() if f.alias in bad_keys}
        cleaned = {k: v for k, v in raw.items() if k not in bad_keys} if isinstance(raw, dict) else {}
        try:
            data = CandidateInput.model_validate(cleaned)
        except ValidationError:
            data = CandidateInput(
                sku=_scalar(cleaned.get("sku")),
                title=_scalar(cleaned.get("title")),
                isbn=_scalar(cleaned.get("isbn")),
            )

    rec = build_candidate(row_number, data)
    for loc, message in problems:
        rec.add_error(loc.split(".", 1)[0], f"invalid value: {message}")
    return rec


def build_candidate(
    row_number: int,
    data: CandidateInput,
    *,
    split_authors: bool = False,
    partial: bool = False,
) -> CandidateRecord:
    """
    Build a candidate from a client pre-parsed row; same normalizers, same policies.

    split_authors: the manual-entry form sends "A, B" for two authors.
    partial: only fields present in the payload are normalized (item update),
    so absent enums get neither an error nor a default.
    """
    rec = CandidateRecord(row_number=row_number)
    price = data.price
    stock = data.stock

    rec.sku = parse_text(Cell.of(data.sku))
    rec.title = parse_text(Cell.of(data.title))
    rec.publisher = parse_text(Cell.of(data.publisher))
    rec.isbn = parse_text(Cell.of(data.isbn))
    rec.description = parse_text(Cell.of(data.description))
    rec.cover_image_url = parse_text(Cell.of(data.cover_image_url if data.cover_image_url is not None else data.cover_image))
    rec.label = parse_text(Cell.of(data.label))
    rec.item_specific_description = parse_text(Cell.of(data.item_specific_description))
    rec.is_resale = data.is_resale

    authors = _string_list(data.authors if data.authors else data.author)
    rec.authors = split_author_list(authors) if split_authors else authors
    rec.subjects = _string_list(data.subjects if data.subjects else data.category)

    _apply(rec, "year", lambda: setattr(rec, "year", parse_integer(Cell.of(data.year))))
    _apply(rec, "weight", lambda: setattr(rec, "weight_grams", parse_integer(Cell.of(data.weight))))
    _apply(rec, "page_count", lambda: setattr(rec, "page_count", parse_integer(Cell.of(data.page_count))))

    condition_cell = Cell.of(data.condition)
    if not (partial and condition_cell.is_empty):
        _apply(rec, "condition", lambda: setattr(rec, "condition", CONDITION(condition_cell)))
    for attr, policy, raw in (("binding", BINDING, data.binding), ("language", LANGUAGE, data.language)):
        cell = Cell.of(raw)
        if not (partial and cell.is_empty):
            setattr(rec, attr, policy(cell))

    if price is not None:
        _apply(rec, "price.sale", lambda: setattr(rec, "price_sale", parse_currency(Cell.of(price.sale))))
        _apply(rec, "price.cost", lambda: setattr(rec, "price_cost", parse_currency(Cell.of(price.cost))))
        rec.discount = _discount_from_input(price.discount)
    if stock is not None:
        _apply(rec, "stock.own", lambda: setattr(rec, "stock_own", parse_integer(Cell.of(stock.own))))
        _apply(rec, "stock.consigned", lambda: setattr(rec, "stock_consigned", parse_integer(Cell.of(stock.consigned))))

    status_cell = Cell.of(data.status)
    if not status_cell.is_empty:
        _apply(rec, "status", lambda: setattr(rec, "status", STATUS(status_cell)))
    return rec
