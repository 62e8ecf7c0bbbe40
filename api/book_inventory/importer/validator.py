# book_inventory/importer/validator.py
"""
Row validator: required fields and business rules for one candidate.

A row is accepted only with zero errors. Errors already produced while
normalizing are kept, and a required-field error is not repeated for a
label that already has one.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Tuple

from book_inventory.importer.columns import field_label
from book_inventory.importer.report import RowError
from book_inventory.importer.row_builder import CandidateRecord

MISSING_MESSAGE = "required field is missing or invalid"

# (canonical field, accessor) in reporting order
REQUIRED_FIELDS: Sequence[Tuple[str, Callable[[CandidateRecord], Any]]] = (
    ("title", lambda r: r.title),
    ("author", lambda r: [a for a in r.authors if a and a.strip()]),
    ("publisher", lambda r: r.publisher),
    ("condition", lambda r: r.condition),
    ("sku", lambda r: r.sku),
    ("binding", lambda r: r.binding),
    ("language", lambda r: r.language),
)

# manual entry form (POST /inventory)
MANUAL_REQUIRED_FIELDS: Sequence[Tuple[str, Callable[[CandidateRecord], Any]]] = (
    ("title", lambda r: r.title),
    ("condition", lambda r: r.condition),
    ("sku", lambda r: r.sku),
)


@dataclass
class Verdict:
    record: CandidateRecord
    errors: List[RowError] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return not self.errors


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return isinstance(value, str) and not value.strip()


class RowValidator:
    """Collects every problem of a row into one Verdict."""

    def __init__(
        self,
        required: Sequence[Tuple[str, Callable[[CandidateRecord], Any]]] = REQUIRED_FIELDS,
        sale_price_required: bool = True,
    ):
        self.required = required
        self.sale_price_required = sale_price_required

    def validate(self, rec: CandidateRecord) -> Verdict:
        errors: List[RowError] = []
        seen: set = set()

        def add(label: Optional[str], message: str) -> None:
            if label is not None and label in seen:
                return
            if label is not None:
                seen.add(label)
            errors.append(rec.error(message, field=label))

        for err in rec.errors:
            add(err.field, err.message)

        for name, getter in self.required:
            if _is_missing(getter(rec)):
                add(field_label(name), MISSING_MESSAGE)

        if rec.price_sale is None:
            if self.sale_price_required:
                add(field_label("price.sale"), MISSING_MESSAGE)
        elif rec.price_sale <= 0:
            add(field_label("price.sale"), "sale price must be greater than zero")

        if rec.price_cost is not None and rec.price_cost < 0:
            add(field_label("price.cost"), "cost price must not be negative")
        if rec.stock_own is not None and rec.stock_own < 0:
            add(field_label("stock.own"), "stock must not be negative")
        if rec.stock_consigned is not None and rec.stock_consigned < 0:
            add(field_label("stock.consigned"), "stock must not be negative")

        return Verdict(record=rec, errors=errors)


def validate_row(rec: CandidateRecord) -> Verdict:
    return RowValidator().validate(rec)
