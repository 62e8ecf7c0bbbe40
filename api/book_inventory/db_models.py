# book_inventory/db_models.py
"""
SQLAlchemy ORM models for Book Inventory.

One exemplar of a used book per row, owned by exactly one tenant and
identified by (tenant_id, sku).
"""
from __future__ import annotations
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, List, Any
import enum

from sqlalchemy import (
    String, Integer, BigInteger, Boolean, Text, DateTime,
    Numeric, Index, CheckConstraint, UniqueConstraint,
    Enum as SQLEnum, JSON, func
)
from sqlalchemy.orm import Mapped, mapped_column, validates
from sqlalchemy.dialects.postgresql import JSONB

from book_inventory.database import Base
from book_inventory.errors import ItemValidationError

# ============================================================================
# ENUMS
# ============================================================================

class Condition(str, enum.Enum):
    new = "new"
    used = "used"


class Binding(str, enum.Enum):
    paperback = "paperback"
    hardcover = "hardcover"
    spiral = "spiral"
    other = "other"


class Language(str, enum.Enum):
    pt = "pt"
    en = "en"
    es = "es"
    other = "other"


class ItemStatus(str, enum.Enum):
    available = "available"
    reserved = "reserved"
    sold = "sold"
    delisted = "delisted"


class DiscountType(str, enum.Enum):
    percentage = "percentage"
    fixed = "fixed"


# BIGINT ids do not autoincrement on SQLite
_PK = BigInteger().with_variant(Integer, "sqlite")
_JSON_LIST = JSON().with_variant(JSONB, "postgresql")

# INTEGER columns are 32-bit on PostgreSQL; Numeric(12, 2) holds < 10^10
INT_MAX = 2**31 - 1
MONEY_MAX = Decimal("9999999999.99")


def _checked_int(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ItemValidationError(key, f"'{value}' is not an integer")
    if value < 0:
        raise ItemValidationError(key, "must not be negative")
    if value > INT_MAX:
        raise ItemValidationError(key, f"{value} is out of range (max {INT_MAX})")
    return value


# ============================================================================
# MIXIN for updated_at
# ============================================================================

class TimestampMixin:
    """Mixin for created_at and updated_at columns."""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        onupdate=func.now(),
        nullable=False
    )


# ============================================================================
# INVENTORY ITEMS
# ============================================================================

class InventoryItem(TimestampMixin, Base):
    __tablename__ = "inventory_items"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    sku: Mapped[str] = mapped_column(String(100), nullable=False)

    # Book metadata
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    authors: Mapped[List[str]] = mapped_column(_JSON_LIST, default=list, nullable=False)
    publisher: Mapped[Optional[str]] = mapped_column(String(255))
    year: Mapped[Optional[int]] = mapped_column(Integer)
    isbn: Mapped[Optional[str]] = mapped_column(String(32))
    page_count: Mapped[Optional[int]] = mapped_column(Integer)
    subjects: Mapped[List[str]] = mapped_column(_JSON_LIST, default=list, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    cover_image_url: Mapped[Optional[str]] = mapped_column(String(1000))
    weight_grams: Mapped[Optional[int]] = mapped_column(Integer)

    # Exemplar
    condition: Mapped[Condition] = mapped_column(
        SQLEnum(Condition, name="book_condition"),
        nullable=False
    )
    binding: Mapped[Binding] = mapped_column(
        SQLEnum(Binding, name="book_binding"),
        default=Binding.other,
        nullable=False
    )
    language: Mapped[Language] = mapped_column(
        SQLEnum(Language, name="book_language"),
        default=Language.other,
        nullable=False
    )
    price_sale: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    price_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    discount_type: Mapped[Optional[DiscountType]] = mapped_column(
        SQLEnum(DiscountType, name="discount_type")
    )
    discount_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    stock_own: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    stock_consigned: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[ItemStatus] = mapped_column(
        SQLEnum(ItemStatus, name="item_status"),
        default=ItemStatus.available,
        nullable=False
    )
    label: Mapped[Optional[str]] = mapped_column(String(255))
    item_specific_description: Mapped[Optional[str]] = mapped_column(Text)
    is_resale: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    added_by: Mapped[Optional[str]] = mapped_column(String(64))

    __table_args__ = (
        UniqueConstraint("tenant_id", "sku", name="uq_inventory_items_tenant_sku"),
        CheckConstraint("price_sale > 0", name="chk_price_sale_positive"),
        CheckConstraint("price_cost IS NULL OR price_cost >= 0", name="chk_price_cost_non_negative"),
        CheckConstraint("stock_own >= 0", name="chk_stock_own_non_negative"),
        CheckConstraint("stock_consigned >= 0", name="chk_stock_consigned_non_negative"),
        Index("idx_inventory_items_tenant", "tenant_id"),
        Index("idx_inventory_items_title", "title"),
        Index("idx_inventory_items_isbn", "isbn"),
        Index("idx_inventory_items_status", "tenant_id", "status"),
    )

    # ------------------------------------------------------------------
    # Write-time validation
    # ------------------------------------------------------------------

    @validates("condition", "binding", "language", "status", "discount_type")
    def _validate_enum(self, key: str, value: Any):
        if value is None:
            if key in ("condition", "binding", "language", "status"):
                raise ItemValidationError(key, "is required")
            return None
        enum_cls = {
            "condition": Condition,
            "binding": Binding,
            "language": Language,
            "status": ItemStatus,
            "discount_type": DiscountType,
        }[key]
        try:
            return enum_cls(value)
        except ValueError:
            allowed = ", ".join(m.value for m in enum_cls)
            raise ItemValidationError(key, f"'{value}' is not one of: {allowed}")

    @validates("price_sale", "price_cost", "discount_value")
    def _validate_money(self, key: str, value: Any):
        if value is None:
            if key == "price_sale":
                raise ItemValidationError(key, "is required")
            return None
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ItemValidationError(key, f"'{value}' is not a number")
        if not amount.is_finite():
            raise ItemValidationError(key, f"'{value}' is not a number")
        if key == "price_sale" and amount <= 0:
            raise ItemValidationError(key, "must be greater than zero")
        if amount < 0:
            raise ItemValidationError(key, "must not be negative")
        if amount > MONEY_MAX:
            raise ItemValidationError(key, f"{value} is out of range (max {MONEY_MAX})")
        return amount

    @validates("stock_own", "stock_consigned")
    def _validate_stock(self, key: str, value: Any):
        if value is None:
            return 0
        return _checked_int(key, value)

    @validates("year", "page_count", "weight_grams")
    def _validate_optional_int(self, key: str, value: Any):
        if value is None:
            return None
        return _checked_int(key, value)

    @validates("tenant_id", "sku", "title")
    def _validate_required_text(self, key: str, value: Any):
        text = str(value).strip() if value is not None else ""
        if not text:
            raise ItemValidationError(key, "is required")
        return text

    @validates("authors", "subjects")
    def _validate_string_list(self, key: str, value: Any):
        if value is None:
            return []
        if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
            raise ItemValidationError(key, "must be a list of strings")
        return list(value)

    def __repr__(self) -> str:
        return f"<InventoryItem tenant={self.tenant_id!r} sku={self.sku!r}>"
