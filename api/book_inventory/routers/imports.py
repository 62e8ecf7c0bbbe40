from __future__ import annotations

import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_session
from ..errors import WorkbookError
from ..identity import Identity, get_user_identity
from ..importer import ImportPipeline
from ..models import ImportResponse, ImportRowsIn

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inventory", tags=["Import"])

# ---------- internal helpers ----------

def _fatal(status_code: int, message: str) -> JSONResponse:
    """Whole-call failure, distinct from per-row errors (status 'invalid_input')."""
    body: Dict[str, Any] = {
        "message": message,
        "status": "invalid_input",
        "insertedCount": 0,
        "errorsCount": 0,
        "errors": [],
    }
    return JSONResponse(status_code=status_code, content=body)

async def _read_upload(request: Request):
    form = await request.form()
    upload = form.get("file")
    if upload is None or isinstance(upload, str):
        return None, None
    content = await upload.read()
    return content, upload.filename

# ---------- IMPORT: file upload or pre-parsed rows ----------

@router.post("/import", response_model=ImportResponse)
async def import_inventory(
    request: Request,
    dry_run: bool = Query(False, description="Validate only, do not write"),
    identity: Identity = Depends(get_user_identity),
    db: AsyncSession = Depends(get_session),
):
    """
    Body (one of):
      - multipart/form-data with a `file` field (.xlsx, .xls, .csv)
      - JSON { "rows": [ {sku, title, author, publisher, condition, price: {sale}, ...}, ... ] }
        (legacy key "books" is accepted too)

    200 all rows written, 207 some rows failed, 400 nothing written or the
    input itself is unusable.
    """
    settings = request.app.state.settings
    pipeline = ImportPipeline(
        None if dry_run else db,
        identity.tenant_id,
        identity.user_id,
        max_rows=settings.IMPORT_MAX_ROWS,
        dry_run=dry_run,
    )
    content_type = request.headers.get("content-type", "")

    try:
        if content_type.startswith("multipart/form-data"):
            content, filename = await _read_upload(request)
            if content is None:
                return _fatal(400, "No file supplied (expected form field 'file').")
            if len(content) > settings.IMPORT_MAX_BYTES:
                return _fatal(413, f"File too large (limit {settings.IMPORT_MAX_BYTES} bytes).")
            report = await pipeline.import_file(content, filename)
        else:
            try:
                payload = ImportRowsIn.model_validate(await request.json())
            except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
                return _fatal(400, f"Invalid request body: {e}")
            report = await pipeline.import_rows(payload.candidates())
    except WorkbookError as e:
        logger.warning("Import rejected tenant=%s: %s", identity.tenant_id, e)
        return _fatal(400, str(e))

    body = ImportResponse(**report.to_response())
    return JSONResponse(status_code=report.http_status, content=body.model_dump(mode="json", exclude_none=True))
