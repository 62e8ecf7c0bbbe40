# book_inventory/importer/columns.py
"""
Spreadsheet header -> canonical field.

Headers are matched exactly (after trimming surrounding whitespace);
anything not listed is ignored. Known columns that are deliberately left
out: Estante*, Tipodepublicação:Revista/Livro*, EdiçãoNúmero, Número,
Volume, Conservaçãodeusados:*, Outrosdiferenciais:*, ID.
"""
from __future__ import annotations
from typing import Dict, List, Optional, Sequence, Tuple

# Special key: the cell carries both the SKU and the description
SKU_DESCRIPTION = "extractSkuAndDescription"

# Column mapping: header -> canonical field
COLUMN_MAPPING: Dict[str, str] = {
    "ISBN/ISSN": "isbn",
    "Autor*": "author",
    "Título*": "title",
    "Editora*": "publisher",
    "Ano*": "year",
    "Preço*": "price.sale",
    "Conservação:Descrição*": SKU_DESCRIPTION,
    "Peso(g)": "weight",
    "Tipo:Novo/Usado*": "condition",
    "Idioma": "language",
    "Acabamento": "binding",
    "Desconto(%)": "price.discount",
    "Assunto": "category",
    "Localização": "label",
}

# Human readable label per canonical field, used to tag row errors
FIELD_LABELS: Dict[str, str] = {
    "isbn": "ISBN/ISSN",
    "author": "Autor*",
    "title": "Título*",
    "publisher": "Editora*",
    "year": "Ano*",
    "price.sale": "Preço*",
    "price.cost": "Preço de custo",
    "price.discount": "Desconto(%)",
    "sku": "SKU (extraído)",
    "description": "Conservação:Descrição*",
    "weight": "Peso(g)",
    "condition": "Tipo:Novo/Usado*",
    "language": "Idioma",
    "binding": "Acabamento",
    "category": "Assunto",
    "label": "Localização",
    "stock.own": "Estoque próprio",
    "stock.consigned": "Estoque consignado",
    "status": "Status",
    "page_count": "Páginas",
    # JSON keys that can fail shape validation
    "authors": "Autor*",
    "subjects": "Assunto",
    "price": "Preço*",
    "stock": "Estoque",
    "isResale": "Revenda",
    "is_resale": "Revenda",
    "row": "Linha",
}


def map_header(header: object) -> Optional[str]:
    """Canonical field for one header, None when the column is not imported."""
    if header is None:
        return None
    return COLUMN_MAPPING.get(str(header).strip())


def map_headers(headers: Sequence[object]) -> List[Tuple[int, str, str]]:
    """
    Resolve a header row.

    Returns (column index, header as written, canonical field) for every
    recognized column, in sheet order.
    """
    out: List[Tuple[int, str, str]] = []
    for i, h in enumerate(headers):
        field = map_header(h)
        if field is not None:
            out.append((i, str(h).strip(), field))
    return out


def field_label(field: str) -> str:
    return FIELD_LABELS.get(field, field)
