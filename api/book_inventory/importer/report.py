# book_inventory/importer/report.py
"""
Batch result aggregation for one import call.
"""
from __future__ import annotations
import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional


@dataclass
class RowError:
    row_number: int
    message: str
    field: Optional[str] = None
    sku: Optional[str] = None
    title: Optional[str] = None
    isbn: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"line": self.row_number}
        for key in ("field", "sku", "title", "isbn"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        out["error"] = self.message
        return out

    def __str__(self) -> str:
        prefix = f"{self.field}: " if self.field else ""
        return f"Row {self.row_number}: {prefix}{self.message}"


class ImportOutcome(str, enum.Enum):
    success = "success"
    partial = "partial"
    failure = "failure"


_HTTP_STATUS = {
    ImportOutcome.success: 200,
    ImportOutcome.partial: 207,
    ImportOutcome.failure: 400,
}


@dataclass
class BatchReport:
    rows_total: int = 0
    created_count: int = 0
    updated_count: int = 0
    error_count: int = 0
    errors: List[RowError] = field(default_factory=list)
    dry_run: bool = False

    @property
    def inserted_count(self) -> int:
        """Rows written to the store, new or overwritten."""
        return self.created_count + self.updated_count

    # ------------------------------------------------------------------
    # Accumulation
    # ------------------------------------------------------------------

    def add_rejected(self, errors: Iterable[RowError]) -> None:
        """Row refused by validation or by the store."""
        self.error_count += 1
        self.errors.extend(errors)

    def add_written(self, created: bool) -> None:
        if created:
            self.created_count += 1
        else:
            self.updated_count += 1

    # ------------------------------------------------------------------
    # Result
    # ------------------------------------------------------------------

    @property
    def outcome(self) -> ImportOutcome:
        if self.inserted_count == 0:
            return ImportOutcome.failure
        if self.error_count:
            return ImportOutcome.partial
        return ImportOutcome.success

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self.outcome]

    @property
    def message(self) -> str:
        verb = "validated" if self.dry_run else "imported"
        if self.outcome is ImportOutcome.success:
            return f"Inventory import finished: {self.inserted_count} items {verb}."
        if self.outcome is ImportOutcome.partial:
            return (
                f"Inventory import partially finished: {self.inserted_count} items {verb}, "
                f"{self.error_count} rows with errors."
            )
        return f"Inventory import failed: no items {verb}, {self.error_count} rows with errors."

    def to_response(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "status": self.outcome.value,
            "dryRun": self.dry_run,
            "insertedCount": self.inserted_count,
            "createdCount": self.created_count,
            "updatedCount": self.updated_count,
            "errorsCount": self.error_count,
            "errors": [e.to_dict() for e in self.errors],
        }
