# book_inventory/importer/reconcile.py
"""
Reconciliation Engine - upsert of accepted rows by (tenant_id, sku).

Every row is its own unit of work: it is committed on success and rolled
back on failure, so one bad row never takes earlier rows with it. The
unique constraint on (tenant_id, sku) is the only guard against two
imports of the same tenant racing; losing that race becomes a row error.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from book_inventory.db_models import InventoryItem, ItemStatus
from book_inventory.errors import DuplicateSkuError, ItemValidationError
from book_inventory.importer.report import RowError
from book_inventory.importer.row_builder import CandidateRecord

logger = logging.getLogger(__name__)


@dataclass
class RowOutcome:
    row_number: int
    created: bool = False
    error: Optional[RowError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    for attr in ("sqlstate", "pgcode"):
        if getattr(orig, attr, None) == "23505":
            return True
    text = str(orig if orig is not None else exc).lower()
    return "unique" in text or "duplicate key" in text


class ReconciliationEngine:
    """Writes accepted candidates of one tenant into inventory_items."""

    def __init__(self, session: AsyncSession, tenant_id: str, user_id: Optional[str] = None):
        self.session = session
        self.tenant_id = tenant_id
        self.user_id = user_id

    # =========================================================================
    # Lookup
    # =========================================================================

    async def find_existing(self, sku: str) -> Optional[InventoryItem]:
        stmt = select(InventoryItem).where(
            InventoryItem.tenant_id == self.tenant_id,
            InventoryItem.sku == sku,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    def _new_item(self) -> InventoryItem:
        return InventoryItem(
            tenant_id=self.tenant_id,
            added_by=self.user_id,
            status=ItemStatus.available,
            stock_own=0,
            stock_consigned=0,
        )

    # =========================================================================
    # Manual entry (single item, no overwrite)
    # =========================================================================

    async def create(self, rec: CandidateRecord) -> InventoryItem:
        """
        Insert one new item. Raises DuplicateSkuError when the SKU is taken,
        ItemValidationError when the model refuses a value.
        """
        values = rec.item_values()
        sku = values.get("sku")
        if not sku:
            raise ItemValidationError("sku", "is required")
        if await self.find_existing(sku) is not None:
            raise DuplicateSkuError(sku)

        item = self._new_item()
        for key, value in values.items():
            setattr(item, key, value)
        self.session.add(item)
        await self._commit(item)
        return item

    async def update(self, item: InventoryItem, rec: CandidateRecord) -> InventoryItem:
        """Write the fields rec provides onto an existing item of this tenant."""
        values = rec.item_values()
        new_sku = values.get("sku")
        if new_sku and new_sku != item.sku and await self.find_existing(new_sku) is not None:
            raise DuplicateSkuError(new_sku)

        for key, value in values.items():
            setattr(item, key, value)
        await self._commit(item)
        return item

    async def _commit(self, item: InventoryItem) -> None:
        sku = item.sku
        try:
            await self.session.flush()
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            if _is_unique_violation(e):
                raise DuplicateSkuError(sku) from e
            raise
        # timestamps are set by the database
        await self.session.refresh(item)

    # =========================================================================
    # Upsert
    # =========================================================================

    async def upsert(self, rec: CandidateRecord) -> bool:
        """
        Insert or overwrite the item for rec.sku; returns True when created.

        Only the fields the row provides are written (last write wins per
        column). New items get status=available and zero stock unless the
        row says otherwise. Raises ItemValidationError / SQLAlchemyError.
        """
        values = rec.item_values()
        sku = values.get("sku")
        if not sku:
            raise ItemValidationError("sku", "is required")

        item = await self.find_existing(sku)
        created = item is None
        if created:
            item = self._new_item()

        for key, value in values.items():
            setattr(item, key, value)

        if created:
            self.session.add(item)
        await self.session.flush()
        await self.session.commit()
        return created

    async def apply(self, rec: CandidateRecord) -> RowOutcome:
        """Upsert one row and turn any write failure into a RowError."""
        try:
            created = await self.upsert(rec)
        except ItemValidationError as e:
            await self.session.rollback()
            message = f"validation failed for SKU '{rec.sku}': {e}"
        except IntegrityError as e:
            await self.session.rollback()
            if _is_unique_violation(e):
                message = f"SKU '{rec.sku}' already exists for this tenant"
            else:
                message = f"validation failed for SKU '{rec.sku}': {e.orig}"
        except (DBAPIError, OverflowError) as e:
            # driver refused a value (e.g. numeric out of range)
            await self.session.rollback()
            message = f"could not save SKU '{rec.sku}': {getattr(e, 'orig', None) or e}"
        except SQLAlchemyError as e:
            await self.session.rollback()
            message = f"could not save SKU '{rec.sku}': {e}"
        else:
            logger.debug(
                "tenant=%s row=%s sku=%s %s",
                self.tenant_id, rec.row_number, rec.sku, "created" if created else "updated",
            )
            return RowOutcome(row_number=rec.row_number, created=created)

        logger.warning("tenant=%s row=%s write failed: %s", self.tenant_id, rec.row_number, message)
        return RowOutcome(row_number=rec.row_number, error=rec.error(message))
