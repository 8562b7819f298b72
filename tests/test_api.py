"""Tests for the catalog HTTP API.

Each test gets its own SQLite file through ``app.dependency_overrides``.
"""

import re

import pytest
from httpx import ASGITransport, AsyncClient

from shoeshop import db
from shoeshop.main import app, get_db_path


@pytest.fixture
def client(db_path):
    app.dependency_overrides[get_db_path] = lambda: db_path
    transport = ASGITransport(app=app)
    yield AsyncClient(transport=transport, base_url="http://test")
    app.dependency_overrides.clear()


@pytest.fixture
def seeded(conn, db_path):
    db.seed_products(conn, db_path=db_path)


# --- Listing ---


@pytest.mark.asyncio
async def test_list_empty_catalog(client):
    resp = await client.get("/api/products/read.php")
    assert resp.status_code == 404
    assert resp.json() == {"message": "No products found"}
    assert resp.headers["content-type"].lower() == "application/json; charset=utf-8"


@pytest.mark.asyncio
async def test_list_seeded_catalog(client, seeded):
    resp = await client.get("/api/products/read.php")
    assert resp.status_code == 200
    assert resp.headers["content-type"].lower() == "application/json; charset=utf-8"
    data = resp.json()
    assert len(data) == 3

    first = data[0]
    assert first["id"] == "1"
    assert first["name"] == "Red Runner"
    assert first["price"] == 129.99
    assert first["availableColors"] == ["red", "blue", "black"]
    assert first["features"][0] == "Breathable mesh upper"
    assert first["inStock"] is True
    assert first["reviews"] == 124
    assert first["modelPath"] == "/shoe1.glb"
    assert "shoeScale" not in first

    assert data[1]["shoeScale"] == 0.125


@pytest.mark.asyncio
async def test_list_alias_route(client, seeded):
    resp = await client.get("/api/products")
    assert resp.status_code == 200
    assert [p["id"] for p in resp.json()] == ["1", "2", "3"]


@pytest.mark.asyncio
async def test_list_store_unavailable(client, tmp_path):
    app.dependency_overrides[get_db_path] = lambda: tmp_path / "missing" / "products.sqlite"
    resp = await client.get("/api/products/read.php")
    assert resp.status_code == 500
    assert resp.json() == {"message": "Database connection failed"}


@pytest.mark.asyncio
async def test_list_query_failure(client, conn):
    with conn:
        conn.execute(
            "INSERT INTO products VALUES ('x', 'Broken', 'free', '/x.glb', 'red', '[]', "
            "'running', '', '[]', 4.0, 1, 1, '2025-01-01', NULL)"
        )
    resp = await client.get("/api/products/read.php")
    assert resp.status_code == 500
    assert resp.json() == {"message": "Failed to retrieve products"}


# --- Single product ---


@pytest.mark.asyncio
async def test_read_single(client, seeded):
    resp = await client.get("/api/products/read_single.php", params={"id": "2"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "Blue Sprinter"
    assert data["price"] == 149.99
    assert data["shoeScale"] == 0.125
    assert data["availableColors"] == ["blue", "black", "green"]


@pytest.mark.asyncio
async def test_read_single_not_found(client, seeded):
    resp = await client.get("/api/products/read_single.php", params={"id": "99"})
    assert resp.status_code == 404
    assert resp.json() == {"message": "Product not found."}


@pytest.mark.asyncio
async def test_read_single_missing_id(client, seeded):
    resp = await client.get("/api/products/read_single.php")
    assert resp.status_code == 400
    assert resp.content == b""


@pytest.mark.asyncio
async def test_get_by_path(client, seeded):
    resp = await client.get("/api/products/3")
    assert resp.status_code == 200
    assert resp.json()["name"] == "Green Trail"
    assert "shoeScale" not in resp.json()


@pytest.mark.asyncio
async def test_get_by_path_not_found(client, seeded):
    resp = await client.get("/api/products/unknown")
    assert resp.status_code == 404
    assert resp.json() == {"message": "Product not found."}


# --- Seeding ---


@pytest.mark.asyncio
async def test_init_seeds_catalog(client):
    resp = await client.get("/init")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")
    assert "Added product: Green Trail" in resp.text
    assert "Database initialized with 3 products" in resp.text

    listing = await client.get("/api/products/read.php")
    assert len(listing.json()) == 3


@pytest.mark.asyncio
async def test_init_twice(client):
    await client.get("/init")
    resp = await client.post("/init")
    assert "Products count in database: 3" in resp.text
    listing = await client.get("/api/products/read.php")
    assert len(listing.json()) == 3


@pytest.mark.asyncio
async def test_init_store_unavailable(client, tmp_path):
    app.dependency_overrides[get_db_path] = lambda: tmp_path / "missing" / "products.sqlite"
    resp = await client.get("/init")
    assert resp.status_code == 200
    assert "Database connection: FAILED" in resp.text


# --- Status, index, CORS ---


@pytest.mark.asyncio
async def test_status(client):
    resp = await client.get("/api/status")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "API is working"
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", data["time"])


@pytest.mark.asyncio
async def test_index(client):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert "/api/products/read.php" in resp.json()["endpoints"]


@pytest.mark.asyncio
async def test_cors_any_origin(client, seeded):
    resp = await client.get("/api/products/read.php", headers={"Origin": "http://localhost:5173"})
    assert resp.headers["access-control-allow-origin"] == "*"


@pytest.mark.asyncio
async def test_cors_preflight(client):
    resp = await client.options(
        "/api/products/read.php",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "GET"},
    )
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"
