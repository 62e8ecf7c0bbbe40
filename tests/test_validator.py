from __future__ import annotations

from decimal import Decimal

from book_inventory.db_models import Binding, Condition, Language
from book_inventory.importer.cells import Cell
from book_inventory.importer.columns import map_headers
from book_inventory.importer.row_builder import CandidateRecord, build_row
from book_inventory.importer.validator import MISSING_MESSAGE, RowValidator, validate_row


def _valid_record(**overrides) -> CandidateRecord:
    values = dict(
        row_number=2,
        sku="ABC123",
        title="Dom Casmurro",
        authors=["Machado de Assis"],
        publisher="Garnier",
        condition=Condition.used,
        binding=Binding.paperback,
        language=Language.pt,
        price_sale=Decimal("17.95"),
    )
    values.update(overrides)
    return CandidateRecord(**values)


def test_valid_record_is_accepted() -> None:
    verdict = validate_row(_valid_record())
    assert verdict.accepted
    assert verdict.errors == []


def test_missing_title_and_author_gives_two_errors_for_the_same_row() -> None:
    verdict = validate_row(_valid_record(row_number=4, title=None, authors=[]))
    assert not verdict.accepted
    assert [e.field for e in verdict.errors] == ["Título*", "Autor*"]
    assert {e.row_number for e in verdict.errors} == {4}
    assert all(e.message == MISSING_MESSAGE for e in verdict.errors)
    assert verdict.errors[0].sku == "ABC123"


def test_blank_author_strings_do_not_count() -> None:
    verdict = validate_row(_valid_record(authors=["  "]))
    assert [e.field for e in verdict.errors] == ["Autor*"]


def test_sale_price_must_be_present_and_positive() -> None:
    missing = validate_row(_valid_record(price_sale=None))
    assert [(e.field, e.message) for e in missing.errors] == [("Preço*", MISSING_MESSAGE)]

    zero = validate_row(_valid_record(price_sale=Decimal("0")))
    assert [(e.field, e.message) for e in zero.errors] == [
        ("Preço*", "sale price must be greater than zero")
    ]


def test_negative_cost_and_stock_are_rejected() -> None:
    verdict = validate_row(
        _valid_record(price_cost=Decimal("-1"), stock_own=-2, stock_consigned=-1)
    )
    assert [e.field for e in verdict.errors] == [
        "Preço de custo",
        "Estoque próprio",
        "Estoque consignado",
    ]


def test_empty_condition_cell_is_reported_once() -> None:
    columns = map_headers(["Título*", "Tipo:Novo/Usado*"])
    rec = build_row(9, [Cell.of("Dom Casmurro"), Cell.of("")], columns)
    verdict = RowValidator().validate(rec)

    condition_errors = [e for e in verdict.errors if e.field == "Tipo:Novo/Usado*"]
    assert len(condition_errors) == 1
    assert condition_errors[0].message == "condition is empty"

    labels = [e.field for e in verdict.errors]
    assert len(labels) == len(set(labels))
    assert {"Autor*", "Editora*", "SKU (extraído)", "Preço*"} <= set(labels)
    # binding and language got their defaults, so no error for them
    assert "Acabamento" not in labels
    assert "Idioma" not in labels


def test_custom_required_set() -> None:
    validator = RowValidator(required=(("title", lambda r: r.title),))
    verdict = validator.validate(CandidateRecord(row_number=1, title="X", price_sale=Decimal("1")))
    assert verdict.accepted
