from __future__ import annotations

from decimal import Decimal

from book_inventory.db_models import Binding, Condition, DiscountType, ItemStatus, Language
from book_inventory.importer.cells import Cell
from book_inventory.importer.columns import COLUMN_MAPPING, map_headers
from book_inventory.importer.row_builder import build_candidate, build_candidate_from_raw, build_row
from book_inventory.models import CandidateInput

HEADERS = [
    "Título*",
    "Autor*",
    "Editora*",
    "Ano*",
    "Preço*",
    "Conservação:Descrição*",
    "Tipo:Novo/Usado*",
    "Acabamento",
    "Idioma",
    "Assunto",
    "Desconto(%)",
    "Estante*",
]


def _cells(*values):
    return [Cell.of(v) for v in values]


def test_column_mapping_is_exact_and_ignores_unknown_headers() -> None:
    assert len(COLUMN_MAPPING) == 14
    columns = map_headers(HEADERS)
    fields = [f for _, _, f in columns]
    assert "Estante*" not in [h for _, h, _ in columns]
    assert fields[:3] == ["title", "author", "publisher"]
    assert map_headers([" Título* ", "titulo"]) == [(0, "Título*", "title")]


def test_build_row_normalizes_every_mapped_column() -> None:
    columns = map_headers(HEADERS)
    rec = build_row(
        2,
        _cells(
            "Dom Casmurro", "Machado de Assis", "Garnier", 1899.0, "R$ 17,95",
            "SKU: ABC123, capa gasta", "Usado", "Capa dura", "Português",
            "Romance", "10%", "E-3",
        ),
        columns,
    )
    assert rec is not None
    assert rec.row_number == 2
    assert rec.title == "Dom Casmurro"
    assert rec.authors == ["Machado de Assis"]
    assert rec.year == 1899
    assert rec.price_sale == Decimal("17.95")
    assert rec.sku == "ABC123"
    assert rec.description == "capa gasta"
    assert rec.condition is Condition.used
    assert rec.binding is Binding.hardcover
    assert rec.language is Language.pt
    assert rec.subjects == ["Romance"]
    assert rec.discount.type is DiscountType.percentage
    assert rec.errors == []


def test_build_row_skips_blank_rows() -> None:
    columns = map_headers(HEADERS)
    assert build_row(5, _cells(None, "", "  ", float("nan")), columns) is None


def test_build_row_keeps_going_after_a_bad_cell() -> None:
    columns = map_headers(HEADERS)
    rec = build_row(3, _cells("Dom Casmurro", "Machado", "Garnier", "mil", "R$ abc"), columns)
    labels = [e.field for e in rec.errors]
    # condition column present but empty counts as a bad cell as well
    assert labels == ["Ano*", "Preço*", "Tipo:Novo/Usado*"]
    assert all(e.row_number == 3 for e in rec.errors)
    # later columns still processed, short row padded with empties
    assert rec.publisher == "Garnier"
    assert rec.binding is Binding.other
    assert rec.language is Language.other


def test_build_row_author_is_never_split() -> None:
    columns = map_headers(["Autor*"])
    rec = build_row(2, _cells("Jorge Amado; Zélia Gattai"), columns)
    assert rec.authors == ["Jorge Amado; Zélia Gattai"]


def test_item_values_only_contains_provided_fields() -> None:
    columns = map_headers(["Título*", "Preço*"])
    rec = build_row(2, _cells("Dom Casmurro", "20"), columns)
    values = rec.item_values()
    assert values == {
        "title": "Dom Casmurro",
        "price_sale": Decimal("20"),
        "binding": Binding.other,
        "language": Language.other,
    }


# --- client pre-parsed rows ---

def test_build_candidate_from_json_row() -> None:
    data = CandidateInput.model_validate({
        "sku": " B-1 ",
        "title": "Capitães da Areia",
        "author": "Jorge Amado, Zélia Gattai",
        "publisher": "Record",
        "year": "1937",
        "condition": "novo",
        "binding": "hardcover",
        "price": {"sale": "R$ 39,90", "cost": 12, "discount": {"type": "fixed", "value": "5,00"}},
        "stock": {"own": 3, "consigned": "1"},
        "status": "reserved",
        "pageCount": 280,
        "isResale": True,
    })
    rec = build_candidate(7, data)
    assert rec.errors == []
    assert rec.row_number == 7
    assert rec.sku == "B-1"
    assert rec.authors == ["Jorge Amado, Zélia Gattai"]
    assert rec.year == 1937
    assert rec.price_sale == Decimal("39.90")
    assert rec.price_cost == Decimal("12")
    assert rec.discount.type is DiscountType.fixed
    assert rec.discount.value == Decimal("5.00")
    assert rec.stock_own == 3
    assert rec.stock_consigned == 1
    assert rec.status is ItemStatus.reserved
    assert rec.page_count == 280
    assert rec.is_resale is True
    assert rec.language is Language.other


def test_build_candidate_collects_field_errors() -> None:
    data = CandidateInput.model_validate({
        "sku": "B-2",
        "condition": "semi-novo",
        "price": {"sale": "caro"},
        "stock": {"own": 1.5},
        "status": "perdido",
    })
    rec = build_candidate(1, data)
    labels = {e.field for e in rec.errors}
    assert labels == {"Tipo:Novo/Usado*", "Preço*", "Estoque próprio", "Status"}
    assert all(e.sku == "B-2" for e in rec.errors)


def test_build_candidate_from_raw_keeps_well_formed_fields() -> None:
    rec = build_candidate_from_raw(5, {
        "sku": "B-9",
        "title": "Memórias Póstumas",
        "authors": "Machado de Assis",
        "year": "1881",
        "condition": "usado",
        "isResale": "sim",
        "price": 17.95,
    })
    assert rec.sku == "B-9"
    assert rec.year == 1881
    assert rec.authors == ["Machado de Assis"]
    assert rec.condition is Condition.used
    assert rec.price_sale is None
    assert rec.is_resale is None
    assert [e.field for e in rec.errors] == ["Preço*", "Revenda"]
    assert all(e.row_number == 5 and e.sku == "B-9" for e in rec.errors)
    assert all(e.message.startswith("invalid value: ") for e in rec.errors)


def test_build_candidate_from_raw_non_object_row() -> None:
    rec = build_candidate_from_raw(3, "Dom Casmurro")
    assert rec.sku is None
    assert [e.field for e in rec.errors] == ["Linha"]


def test_build_candidate_manual_entry_splits_authors() -> None:
    data = CandidateInput.model_validate({"author": "Jorge Amado; Zélia Gattai"})
    assert build_candidate(1, data, split_authors=True).authors == ["Jorge Amado", "Zélia Gattai"]


def test_build_candidate_partial_leaves_absent_enums_unset() -> None:
    rec = build_candidate(1, CandidateInput.model_validate({"label": "E-2"}), partial=True)
    assert rec.errors == []
    assert rec.condition is None
    assert rec.binding is None
    assert rec.language is None
    assert rec.item_values() == {"label": "E-2"}
