from __future__ import annotations

import io
import os
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pandas as pd
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

# module-level settings are read at import time; keep test runs off the log dir
os.environ.setdefault("LOG_TO_FILE", "false")

from book_inventory.database import Database
from book_inventory.main import create_app
from book_inventory.settings import Settings

SHEET_HEADERS: List[str] = [
    "ISBN/ISSN",
    "Autor*",
    "Título*",
    "Editora*",
    "Ano*",
    "Preço*",
    "Conservação:Descrição*",
    "Tipo:Novo/Usado*",
    "Idioma",
    "Acabamento",
    "Localização",
]


def book_row(**overrides: object) -> Dict[str, object]:
    """One valid spreadsheet row keyed by header; override cells by header name."""
    row: Dict[str, object] = {
        "ISBN/ISSN": "9788535910663",
        "Autor*": "Machado de Assis",
        "Título*": "Dom Casmurro",
        "Editora*": "Garnier",
        "Ano*": 1899,
        "Preço*": "R$ 17,95",
        "Conservação:Descrição*": "SKU: ABC123, capa levemente gasta",
        "Tipo:Novo/Usado*": "Usado",
        "Idioma": "Português",
        "Acabamento": "Brochura",
        "Localização": "Estante 3",
    }
    row.update(overrides)
    return row


def build_xlsx(rows: List[Dict[str, object]], headers: Optional[List[str]] = None) -> bytes:
    headers = headers or SHEET_HEADERS
    df = pd.DataFrame([[r.get(h) for h in headers] for r in rows], columns=headers)
    buf = io.BytesIO()
    df.to_excel(buf, index=False, engine="openpyxl")
    return buf.getvalue()


@pytest.fixture()
def make_row() -> Callable[..., Dict[str, object]]:
    return book_row


@pytest.fixture()
def make_xlsx() -> Callable[..., bytes]:
    return build_xlsx


@pytest.fixture()
def test_settings(tmp_path: Path) -> Settings:
    return Settings(
        DATABASE_URL="sqlite+aiosqlite://",
        DB_CREATE_ALL=True,
        LOG_TO_FILE=False,
        INVENTORY_DATA_ROOT=tmp_path,
    )


@pytest.fixture()
def client(test_settings: Settings):
    app = create_app(test_settings)
    # entering the context runs the lifespan (engine + tables)
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def auth_headers() -> Dict[str, str]:
    return {"X-Tenant-Id": "store-1", "X-User-Id": "user-1"}


@pytest_asyncio.fixture()
async def database():
    db = Database("sqlite+aiosqlite://")
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture()
async def session(database: Database):
    async with database.session_factory() as s:
        yield s
