import json
import sqlite3
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from rigcatalog.cache import MemoryCache
from rigcatalog.config import Settings
from rigcatalog.data.repository import ComponentRepository
from rigcatalog.data.store import SQLiteStore
from rigcatalog.main import create_app
from rigcatalog.service import ComponentService


COMPONENTS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS components (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  category TEXT NOT NULL,
  brand TEXT NOT NULL,
  model TEXT NOT NULL,
  sku TEXT,
  upc TEXT,
  specs TEXT NOT NULL DEFAULT '{}',
  created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
)
"""

SEED_COMPONENTS = [
    {
        "category": "cpu",
        "brand": "AMD",
        "model": "Ryzen 5 7600",
        "sku": "CPU-7600",
        "upc": "730143314442",
        "specs": {"socket": "AM5", "cores": 6, "tdp": 65, "boost_ghz": 5.1},
    },
    {
        "category": "cpu",
        "brand": "Intel",
        "model": "Core i5-13600K",
        "sku": "CPU-13600K",
        "upc": None,
        "specs": {"socket": "LGA1700", "cores": 14, "tdp": 125},
    },
    {
        "category": "gpu",
        "brand": "NVIDIA",
        "model": "RTX 4070 SUPER",
        "sku": "GPU-4070S",
        "upc": None,
        "specs": {"vram": 12, "length_mm": 300, "outputs": ["HDMI", "DP", "DP", "DP"]},
    },
    {
        "category": "memory",
        "brand": "Generic",
        "model": "DDR5 32GB 6000",
        "sku": None,
        "upc": None,
        "specs": {"memory_type": "DDR5", "capacity_gb": 32, "timings": {"cl": 30, "trcd": 36}},
    },
    {
        "category": "powersupply",
        "brand": "Generic",
        "model": "750W Gold PSU",
        "sku": "PSU-750G",
        "upc": None,
        "specs": {"watt": 750, "efficiency": "80+ Gold", "modular": True},
    },
]


def insert_component(db_path: Path, **fields) -> int:
    specs = fields.get("specs", {})
    with sqlite3.connect(db_path) as conn:
        cursor = conn.execute(
            """
            INSERT INTO components (category, brand, model, sku, upc, specs, created_at)
            VALUES (?, ?, ?, ?, ?, ?, COALESCE(?, CURRENT_TIMESTAMP))
            """,
            (
                fields["category"],
                fields["brand"],
                fields["model"],
                fields.get("sku"),
                fields.get("upc"),
                specs if isinstance(specs, str) else json.dumps(specs),
                fields.get("created_at"),
            ),
        )
        conn.commit()
        return cursor.lastrowid


@pytest.fixture
def empty_db(tmp_path):
    db_path = tmp_path / "components.db"
    with sqlite3.connect(db_path) as conn:
        conn.execute(COMPONENTS_TABLE_SQL)
        conn.commit()
    return db_path


@pytest.fixture
def catalog_db(empty_db):
    for item in SEED_COMPONENTS:
        insert_component(empty_db, **item)
    return empty_db


@pytest.fixture
def repo(catalog_db):
    return ComponentRepository(SQLiteStore(catalog_db))


@pytest.fixture
def service(repo):
    return ComponentService(repo, MemoryCache(), cache_ttl_seconds=60)


def _make_client(service: ComponentService) -> TestClient:
    settings = Settings(db_driver="sqlite", cache_backend="none")
    return TestClient(create_app(settings=settings, service=service))


@pytest.fixture
def client(service):
    return _make_client(service)


@pytest.fixture
def client_factory():
    return _make_client
