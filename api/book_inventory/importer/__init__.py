# book_inventory/importer/__init__.py
"""
Spreadsheet import and reconciliation for Book Inventory.
"""
from book_inventory.importer.pipeline import ImportPipeline, candidates_from_file, candidates_from_rows
from book_inventory.importer.reconcile import ReconciliationEngine
from book_inventory.importer.report import BatchReport, ImportOutcome, RowError

__all__ = [
    "ImportPipeline",
    "ReconciliationEngine",
    "BatchReport",
    "ImportOutcome",
    "RowError",
    "candidates_from_file",
    "candidates_from_rows",
]
