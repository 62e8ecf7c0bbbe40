from __future__ import annotations

from datetime import date
from decimal import Decimal

import numpy as np
import pandas as pd
import pytest

from book_inventory.db_models import Binding, Condition, DiscountType, Language
from book_inventory.errors import InvalidNumber, Unrecognized
from book_inventory.importer.cells import EMPTY, Cell
from book_inventory.importer.normalizers import (
    BINDING,
    CONDITION,
    LANGUAGE,
    extract_sku_and_description,
    parse_currency,
    parse_discount,
    parse_integer,
    parse_text,
    split_author_list,
)


# --- cells ---

def test_cell_of_maps_blank_reader_values_to_empty() -> None:
    assert Cell.of(None) is EMPTY
    assert Cell.of(float("nan")).kind == "empty"
    assert Cell.of(pd.NaT).kind == "empty"
    assert Cell.of("   ").is_empty
    assert not Cell.of("x").is_empty


def test_cell_of_tags_numbers_dates_and_text() -> None:
    assert Cell.of(np.int64(7)) == Cell("number", 7)
    assert Cell.of(17.5).kind == "number"
    assert Cell.of(date(2020, 1, 2)).kind == "date"
    assert Cell.of(True) == Cell("text", "True")
    assert Cell.of(" Dom Casmurro ").as_text() == "Dom Casmurro"


def test_cell_as_text_drops_float_suffix_of_whole_numbers() -> None:
    assert Cell.of(9788535910663.0).as_text() == "9788535910663"
    assert Cell.of(2.5).as_text() == "2.5"


def test_parse_text_blank_is_none() -> None:
    assert parse_text(Cell.of("  ")) is None
    assert parse_text(Cell.of(" Garnier ")) == "Garnier"


# --- currency ---

@pytest.mark.parametrize(
    "raw, expected",
    [
        ("R$ 17,95", Decimal("17.95")),
        ("R$17,95", Decimal("17.95")),
        ("1.234,56", Decimal("1234.56")),
        ("17.95", Decimal("17.95")),
        ("  42 ", Decimal("42")),
        (17.95, Decimal("17.95")),
        (20, Decimal("20")),
    ],
)
def test_parse_currency_accepts_pt_br_and_plain_notation(raw, expected) -> None:
    assert parse_currency(Cell.of(raw)) == expected


def test_parse_currency_empty_is_absent_not_zero() -> None:
    assert parse_currency(Cell.of("")) is None
    assert parse_currency(EMPTY) is None


@pytest.mark.parametrize("raw", ["abc", "R$ ", "12,3,4", "NaN", "inf"])
def test_parse_currency_rejects_garbage(raw) -> None:
    with pytest.raises(InvalidNumber):
        parse_currency(Cell.of(raw))


def test_parse_currency_rejects_dates() -> None:
    with pytest.raises(InvalidNumber):
        parse_currency(Cell.of(date(2024, 5, 1)))


# --- integers ---

def test_parse_integer() -> None:
    assert parse_integer(Cell.of("1899")) == 1899
    assert parse_integer(Cell.of(1899.0)) == 1899
    assert parse_integer(Cell.of(np.int64(300))) == 300
    assert parse_integer(Cell.of("")) is None


@pytest.mark.parametrize("raw", ["12.5", 12.5, "doze"])
def test_parse_integer_rejects_fractions_and_words(raw) -> None:
    with pytest.raises(InvalidNumber):
        parse_integer(Cell.of(raw))


# --- enums ---

def test_condition_is_strict() -> None:
    assert CONDITION(Cell.of("Novo")) is Condition.new
    assert CONDITION(Cell.of(" USADO ")) is Condition.used
    assert CONDITION(Cell.of("used")) is Condition.used
    with pytest.raises(Unrecognized):
        CONDITION(Cell.of(""))
    with pytest.raises(Unrecognized):
        CONDITION(Cell.of("seminovo"))


def test_binding_is_lenient_with_default() -> None:
    assert BINDING(Cell.of("CapaDura")) is Binding.hardcover
    assert BINDING(Cell.of("capa dura")) is Binding.hardcover
    assert BINDING(Cell.of("Brochura")) is Binding.paperback
    assert BINDING(Cell.of("Espiral")) is Binding.spiral
    assert BINDING(Cell.of("")) is Binding.other
    assert BINDING(Cell.of("grampeado")) is Binding.other


def test_language_is_lenient_with_default() -> None:
    assert LANGUAGE(Cell.of("Português")) is Language.pt
    assert LANGUAGE(Cell.of(" Inglês ")) is Language.en
    assert LANGUAGE(Cell.of("espanhol")) is Language.es
    assert LANGUAGE(EMPTY) is Language.other
    assert LANGUAGE(Cell.of("alemão")) is Language.other


# --- sku extraction ---

def test_extract_sku_and_description() -> None:
    assert extract_sku_and_description(Cell.of("SKU: ABC123, levemente amassado")) == (
        "ABC123",
        "levemente amassado",
    )


def test_extract_sku_without_marker_keeps_whole_text_as_description() -> None:
    assert extract_sku_and_description(Cell.of("capa rasgada")) == (None, "capa rasgada")


def test_extract_sku_marker_in_the_middle() -> None:
    sku, description = extract_sku_and_description(Cell.of("Livro em bom estado. sku:X-9"))
    assert sku == "X-9"
    assert description == "Livro em bom estado."


def test_extract_sku_drops_the_separator_after_the_marker() -> None:
    assert extract_sku_and_description(Cell.of("capa gasta SKU: X1, bom")) == ("X1", "capa gasta bom")
    assert extract_sku_and_description(Cell.of("capa gasta SKU: X1. Bom")) == ("X1", "capa gasta Bom")


def test_extract_sku_only_marker_has_no_description() -> None:
    assert extract_sku_and_description(Cell.of("SKU: ZZ1")) == ("ZZ1", None)
    assert extract_sku_and_description(EMPTY) == (None, None)


# --- authors ---

def test_split_author_list() -> None:
    assert split_author_list(["Jorge Amado, Zélia Gattai"]) == ["Jorge Amado", "Zélia Gattai"]
    assert split_author_list(["A; B", " C ", ", "]) == ["A", "B", "C"]
    assert split_author_list([]) == []


# --- discount ---

def test_parse_discount() -> None:
    d = parse_discount(Cell.of("10%"))
    assert d is not None
    assert d.type is DiscountType.percentage
    assert d.value == Decimal("10")
    assert parse_discount(Cell.of("7,5 %")).value == Decimal("7.5")
    assert parse_discount(Cell.of(15)).value == Decimal("15")


def test_parse_discount_drops_unreadable_values() -> None:
    assert parse_discount(Cell.of("metade")) is None
    assert parse_discount(EMPTY) is None
