# book_inventory/importer/pipeline.py
"""
Import pipeline: file or pre-parsed rows -> BatchReport.

    spreadsheet bytes -> header mapping -> per row: build -> validate
        -> (accepted) reconcile -> report

Rows are handled strictly in sheet order, one at a time. Only problems with
the file as a whole (unreadable, empty, no header, too many rows) raise
WorkbookError; everything that concerns a single row ends up in the report.
"""
from __future__ import annotations
import asyncio
import json
import logging
from typing import Any, Iterator, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from book_inventory.errors import WorkbookError
from book_inventory.importer.columns import map_headers
from book_inventory.importer.reconcile import ReconciliationEngine
from book_inventory.importer.report import BatchReport
from book_inventory.importer.row_builder import CandidateRecord, build_candidate_from_raw, build_row
from book_inventory.importer.validator import RowValidator
from book_inventory.importer.workbook import read_sheet

logger = logging.getLogger(__name__)


# ============================================================================
# Candidate sources
# ============================================================================

def candidates_from_file(
    content: bytes,
    filename: Optional[str] = None,
    max_rows: Optional[int] = None,
) -> List[CandidateRecord]:
    """Read and build every non-blank data row; raises WorkbookError on fatal problems."""
    sheet = read_sheet(content, filename)
    columns = map_headers(sheet.headers)
    if not columns:
        raise WorkbookError(
            f"Missing header row: none of the expected columns were found in row {sheet.header_row_number}."
        )

    data_rows = sheet.data_row_count
    if data_rows == 0:
        raise WorkbookError("The sheet has no data rows.")
    if max_rows is not None and data_rows > max_rows:
        raise WorkbookError(f"The sheet has {data_rows} data rows; the limit is {max_rows}.")

    mapped = {c[0] for c in columns}
    ignored = [h for i, h in enumerate(sheet.headers) if h and i not in mapped]
    if ignored:
        logger.debug("Ignoring unmapped columns: %s", ignored)

    out: List[CandidateRecord] = []
    for row_number, cells in sheet.rows:
        rec = build_row(row_number, cells, columns)
        if rec is not None:
            out.append(rec)
    return out


def candidates_from_rows(
    rows: Sequence[Any],
    max_rows: Optional[int] = None,
) -> Iterator[CandidateRecord]:
    if not rows:
        raise WorkbookError("No rows supplied for import.")
    if max_rows is not None and len(rows) > max_rows:
        raise WorkbookError(f"{len(rows)} rows supplied; the limit is {max_rows}.")
    for index, row in enumerate(rows, start=1):
        yield build_candidate_from_raw(index, row)


# ============================================================================
# Pipeline
# ============================================================================

class ImportPipeline:
    """
    One import call for one tenant.

    `session` may be None only for dry runs, which stop after validation.
    """

    def __init__(
        self,
        session: Optional[AsyncSession],
        tenant_id: str,
        user_id: Optional[str] = None,
        *,
        max_rows: Optional[int] = None,
        dry_run: bool = False,
        validator: Optional[RowValidator] = None,
    ):
        if session is None and not dry_run:
            raise ValueError("a database session is required unless dry_run=True")
        self.tenant_id = tenant_id
        self.user_id = user_id
        self.max_rows = max_rows
        self.dry_run = dry_run
        self.validator = validator or RowValidator()
        self.engine = ReconciliationEngine(session, tenant_id, user_id) if session is not None else None

    async def import_file(self, content: bytes, filename: Optional[str] = None) -> BatchReport:
        candidates = candidates_from_file(content, filename, self.max_rows)
        logger.info(
            "Import started tenant=%s mode=file file=%s rows=%s dry_run=%s",
            self.tenant_id, filename, len(candidates), self.dry_run,
        )
        return await self.run(candidates)

    async def import_rows(self, rows: Sequence[Any]) -> BatchReport:
        candidates = list(candidates_from_rows(rows, self.max_rows))
        logger.info(
            "Import started tenant=%s mode=rows rows=%s dry_run=%s",
            self.tenant_id, len(candidates), self.dry_run,
        )
        return await self.run(candidates)

    async def run(self, candidates: Sequence[CandidateRecord]) -> BatchReport:
        report = BatchReport(dry_run=self.dry_run)
        for rec in candidates:
            report.rows_total += 1
            verdict = self.validator.validate(rec)
            if not verdict.accepted:
                logger.info(
                    "Row %s rejected: %s", rec.row_number, "; ".join(str(e) for e in verdict.errors)
                )
                report.add_rejected(verdict.errors)
                continue

            if self.engine is None:
                report.add_written(created=True)
                continue

            outcome = await self.engine.apply(rec)
            if outcome.ok:
                report.add_written(outcome.created)
            else:
                report.add_rejected([outcome.error])

        logger.info(
            "Import finished tenant=%s rows=%s written=%s (created=%s updated=%s) errors=%s status=%s",
            self.tenant_id, report.rows_total, report.inserted_count,
            report.created_count, report.updated_count, report.error_count, report.outcome.value,
        )
        return report


# CLI: validate a spreadsheet without a database
if __name__ == "__main__":
    import sys
    from pathlib import Path

    if len(sys.argv) < 2:
        print("Usage: python -m book_inventory.importer.pipeline <file.xlsx|file.csv>")
        sys.exit(1)

    logging.basicConfig(level=logging.INFO)
    path = Path(sys.argv[1])
    pipeline = ImportPipeline(None, tenant_id="cli", dry_run=True)
    try:
        result = asyncio.run(pipeline.import_file(path.read_bytes(), path.name))
    except WorkbookError as e:
        print(f"Error: {e}")
        sys.exit(2)
    print(json.dumps(result.to_response(), ensure_ascii=False, indent=2))
