# book_inventory/routers/inventory.py
"""
Inventory Router - tenant-scoped manual entry, read, update and delete.

Manual entry goes through the same normalizers and model validation as the
spreadsheet import; only the required fields differ.
"""
from __future__ import annotations
import json
import logging
import math
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from book_inventory.database import get_session
from book_inventory.db_models import InventoryItem
from book_inventory.errors import DuplicateSkuError, ItemValidationError
from book_inventory.identity import Identity, get_identity, get_user_identity
from book_inventory.importer.reconcile import ReconciliationEngine
from book_inventory.importer.report import RowError
from book_inventory.importer.row_builder import build_candidate
from book_inventory.importer.validator import MANUAL_REQUIRED_FIELDS, RowValidator
from book_inventory.models import (
    CandidateInput,
    InventoryItemEnvelope,
    InventoryItemOut,
    InventoryPageOut,
    PaginationOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inventory", tags=["Inventory"])

SEARCH_COLUMNS = (
    InventoryItem.sku,
    InventoryItem.label,
    InventoryItem.title,
    InventoryItem.isbn,
    InventoryItem.publisher,
)

create_validator = RowValidator(required=MANUAL_REQUIRED_FIELDS)
update_validator = RowValidator(required=(), sale_price_required=False)


async def _get_owned(db: AsyncSession, tenant_id: str, item_id: int) -> InventoryItem:
    stmt = select(InventoryItem).where(
        InventoryItem.id == item_id,
        InventoryItem.tenant_id == tenant_id,
    )
    item = (await db.execute(stmt)).scalar_one_or_none()
    if item is None:
        raise HTTPException(404, detail="Item not found")
    return item


async def _read_item(request: Request) -> CandidateInput:
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(400, detail="Request body is not valid JSON.")
    if not isinstance(payload, dict):
        raise HTTPException(400, detail="Request body must be a JSON object.")
    try:
        return CandidateInput.model_validate(payload)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first["loc"])
        raise HTTPException(400, detail=f"Invalid value for '{field}': {first['msg']}")


def _invalid(errors: List[RowError]) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "message": "Validation failed.",
            "errors": [{"field": e.field, "error": e.message} for e in errors],
        },
    )


async def _save(db: AsyncSession, write, tenant_id: str) -> InventoryItem:
    """Run an engine write; model/driver refusals are 400, a taken SKU is 409."""
    try:
        return await write
    except DuplicateSkuError as e:
        raise HTTPException(409, detail=f"SKU '{e.sku}' already exists for this store.")
    except ItemValidationError as e:
        await db.rollback()
        raise HTTPException(400, detail=str(e))
    except (DBAPIError, OverflowError) as e:
        await db.rollback()
        logger.warning("tenant=%s item write refused: %s", tenant_id, e)
        raise HTTPException(400, detail="A value is out of range.")


@router.post("", status_code=201, response_model=InventoryItemEnvelope)
async def create_item(
    request: Request,
    identity: Identity = Depends(get_user_identity),
    db: AsyncSession = Depends(get_session),
):
    """Add one book by hand. Authors may be given as "A, B"."""
    data = await _read_item(request)
    rec = build_candidate(1, data, split_authors=True)
    verdict = create_validator.validate(rec)
    if not verdict.accepted:
        return _invalid(verdict.errors)

    engine = ReconciliationEngine(db, identity.tenant_id, identity.user_id)
    item = await _save(db, engine.create(rec), identity.tenant_id)
    logger.info("tenant=%s created item id=%s sku=%s", identity.tenant_id, item.id, item.sku)
    return InventoryItemEnvelope(data=InventoryItemOut.from_orm_item(item))


@router.get("", response_model=InventoryPageOut)
async def list_inventory(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=200),
    search: Optional[str] = Query(None, description="Substring of sku, label, title, isbn or publisher"),
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
):
    """Items of the active tenant, newest first."""
    conditions = [InventoryItem.tenant_id == identity.tenant_id]
    term = (search or "").strip()
    if term:
        pattern = f"%{term.lower()}%"
        conditions.append(or_(*(func.lower(col).like(pattern) for col in SEARCH_COLUMNS)))

    total = (await db.execute(
        select(func.count()).select_from(InventoryItem).where(*conditions)
    )).scalar_one()

    stmt = (
        select(InventoryItem)
        .where(*conditions)
        .order_by(InventoryItem.created_at.desc(), InventoryItem.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    items = (await db.execute(stmt)).scalars().all()

    return InventoryPageOut(
        data=[InventoryItemOut.from_orm_item(i) for i in items],
        pagination=PaginationOut(
            currentPage=page,
            totalPages=math.ceil(total / limit) if total else 0,
            totalItems=total,
            itemsPerPage=limit,
        ),
    )


@router.get("/{item_id}", response_model=InventoryItemEnvelope)
async def get_item(
    item_id: int,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
):
    item = await _get_owned(db, identity.tenant_id, item_id)
    return InventoryItemEnvelope(data=InventoryItemOut.from_orm_item(item))


@router.api_route("/{item_id}", methods=["PUT", "PATCH"], response_model=InventoryItemEnvelope)
async def update_item(
    item_id: int,
    request: Request,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
):
    """Partial update: only the fields present in the body are written."""
    item = await _get_owned(db, identity.tenant_id, item_id)
    data = await _read_item(request)
    rec = build_candidate(1, data, split_authors=True, partial=True)
    verdict = update_validator.validate(rec)
    if not verdict.accepted:
        return _invalid(verdict.errors)

    engine = ReconciliationEngine(db, identity.tenant_id, identity.user_id)
    item = await _save(db, engine.update(item, rec), identity.tenant_id)
    logger.info("tenant=%s updated item id=%s sku=%s", identity.tenant_id, item.id, item.sku)
    return InventoryItemEnvelope(data=InventoryItemOut.from_orm_item(item))


@router.delete("/{item_id}")
async def delete_item(
    item_id: int,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
):
    item = await _get_owned(db, identity.tenant_id, item_id)
    await db.execute(
        delete(InventoryItem).where(
            InventoryItem.id == item.id,
            InventoryItem.tenant_id == identity.tenant_id,
        )
    )
    await db.commit()
    logger.info("tenant=%s deleted item id=%s sku=%s", identity.tenant_id, item.id, item.sku)
    return {"message": "Item deleted", "id": item.id, "sku": item.sku}
