from fastapi.testclient import TestClient

from rigcatalog.cache import MemoryCache, NullCache, cache_key
from rigcatalog.config import Settings
from rigcatalog.data.repository import ComponentRepository
from rigcatalog.data.store import SQLiteStore
from rigcatalog.main import create_app
from rigcatalog.service import ComponentService

from conftest import insert_component


def test_list_components_envelope(client):
    resp = client.get("/components")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/json")
    body = resp.json()
    assert body["code"] == 200
    assert body["message"] == "Success"
    assert len(body["data"]) == 5
    first = body["data"][0]
    assert set(first) == {"id", "category", "brand", "model", "sku", "upc", "specs", "created_at"}
    assert first["specs"] == {"socket": "AM5", "cores": 6, "tdp": 65, "boost_ghz": 5.1}
    assert first["created_at"].endswith("Z") or first["created_at"].endswith("+00:00")


def test_empty_catalog_returns_empty_list_not_null(empty_db, client_factory):
    service = ComponentService(ComponentRepository(SQLiteStore(empty_db)), NullCache())
    resp = client_factory(service).get("/components")
    assert resp.status_code == 200
    assert resp.json() == {"code": 200, "message": "Success", "data": []}


def test_by_category(client):
    body = client.get("/components/cpu").json()
    assert body["code"] == 200
    assert {c["brand"] for c in body["data"]} == {"AMD", "Intel"}


def test_by_category_and_brand(client):
    body = client.get("/components/cpu/Intel").json()
    assert [c["model"] for c in body["data"]] == ["Core i5-13600K"]


def test_brand_casing_is_exact(client):
    assert client.get("/components/cpu/intel").json()["data"] == []


def test_category_page_two(empty_db, client_factory):
    for i in range(55):
        insert_component(empty_db, category="cpu", brand="Intel", model=f"Core i7-{14000 + i}")
    service = ComponentService(ComponentRepository(SQLiteStore(empty_db)), NullCache())
    client = client_factory(service)
    assert len(client.get("/components/cpu/Intel?page=2").json()["data"]) == 5
    assert len(client.get("/components/cpu/Intel?page=1").json()["data"]) == 50
    assert len(client.get("/components/cpu/Intel?page=-4").json()["data"]) == 50


def test_component_by_id(client):
    first = client.get("/components").json()["data"][0]
    resp = client.get(f"/components/item/{first['id']}")
    assert resp.status_code == 200
    assert resp.json() == {"code": 200, "message": "Success", "data": first}


def test_missing_component_is_404(client):
    resp = client.get("/components/item/999999")
    assert resp.status_code == 404
    assert resp.json() == {"code": 404, "message": "Component not found", "data": None}


def test_malformed_id_is_400(client):
    resp = client.get("/components/item/abc")
    assert resp.status_code == 400
    assert resp.json() == {"code": 400, "message": "Bad request", "data": None}


def test_unknown_category_is_400(client):
    for path in ("/components/toaster", "/components/toaster/Acme"):
        resp = client.get(path)
        assert resp.status_code == 400
        assert resp.json()["data"] is None


def test_non_get_method_is_405(client):
    for method in ("post", "put", "delete", "patch"):
        resp = getattr(client, method)("/components")
        assert resp.status_code == 405
        assert resp.json() == {"code": 405, "message": "Method not allowed", "data": None}
    assert client.post("/components/item/1").status_code == 405


def test_unknown_route_is_enveloped(client):
    resp = client.get("/parts")
    assert resp.status_code == 404
    assert resp.json() == {"code": 404, "message": "Page not found", "data": None}


def test_invalid_category_row_is_500_without_details(catalog_db, client_factory):
    insert_component(catalog_db, category="toaster", brand="Acme", model="T-1000")
    service = ComponentService(ComponentRepository(SQLiteStore(catalog_db)), NullCache())
    resp = client_factory(service).get("/components")
    assert resp.status_code == 500
    assert resp.json() == {"code": 500, "message": "Internal server error", "data": None}


def test_store_failure_is_500(tmp_path, client_factory):
    service = ComponentService(ComponentRepository(SQLiteStore(tmp_path / "missing.db")), NullCache())
    resp = client_factory(service).get("/components/gpu")
    assert resp.status_code == 500
    body = resp.json()
    assert body == {"code": 500, "message": "Internal server error", "data": None}


def test_cors_preflight_allows_configured_origin(client):
    resp = client.options(
        "/components",
        headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "GET"},
    )
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"


class ExplodingRepository:
    def get_all(self, page=None):
        raise RuntimeError("connection reset by peer")


def test_unexpected_exception_is_enveloped_500():
    app = create_app(
        settings=Settings(db_driver="sqlite", cache_backend="none"),
        service=ComponentService(ExplodingRepository(), NullCache()),
    )
    resp = TestClient(app, raise_server_exceptions=False).get("/components")
    assert resp.status_code == 500
    assert resp.headers["content-type"].startswith("application/json")
    assert resp.json() == {"code": 500, "message": "Internal server error", "data": None}


def test_corrupt_cache_entry_still_serves_catalog(repo, client_factory):
    cache = MemoryCache()
    key = cache_key("all", offset=0)
    cache.set(key, "{garbled", ttl_seconds=60)
    client = client_factory(ComponentService(repo, cache))

    resp = client.get("/components")
    assert resp.status_code == 200
    assert len(resp.json()["data"]) == 5
    assert cache.get(key).startswith("[")


def test_oversized_page_token_falls_back_to_first_page(client):
    for token in ("99999999999999999999", "9223372036854775807"):
        resp = client.get(f"/components?page={token}")
        assert resp.status_code == 200
        assert len(resp.json()["data"]) == 5


def test_oversized_id_is_400(client):
    resp = client.get("/components/item/99999999999999999999")
    assert resp.status_code == 400
    assert resp.json() == {"code": 400, "message": "Bad request", "data": None}


def test_bare_item_path_is_400(client):
    # "item" 被当作类别解析 - the bare path is read as an unknown category
    resp = client.get("/components/item")
    assert resp.status_code == 400
    assert resp.json() == {"code": 400, "message": "Bad request", "data": None}
