# book_inventory/errors.py
"""
Error taxonomy of the spreadsheet import.

- WorkbookError: fatal pre-processing failure, no rows are attempted.
- CellError (InvalidNumber, Unrecognized): one cell failed to normalize;
  sibling cells of the same row keep going.
- DuplicateSkuError: manual create/update hit an existing (tenant, sku).
- ItemValidationError: the ORM refused a value at write time; the row is
  reported and the batch continues.
"""
from __future__ import annotations


class ImportErrorBase(Exception):
    """Root of all import errors."""


class WorkbookError(ImportErrorBase):
    """The uploaded file cannot be turned into rows at all."""


class CellError(ImportErrorBase, ValueError):
    def __init__(self, message: str, value: object = None):
        super().__init__(message)
        self.message = message
        self.value = value


class InvalidNumber(CellError):
    pass


class Unrecognized(CellError):
    pass


class ItemValidationError(ImportErrorBase, ValueError):
    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class DuplicateSkuError(ImportErrorBase):
    """(tenant_id, sku) is already taken; manual create or a SKU rename."""

    def __init__(self, sku: str):
        super().__init__(f"SKU '{sku}' already exists for this tenant")
        self.sku = sku
