"""Shoe Shop: read-only product catalog API."""

import logging

from .config import API_HOST, API_PORT, DB_PATH, LOG_LEVEL

logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")

import sqlite3
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from . import db
from .models.schemas import ApiStatus, Message

logger = logging.getLogger(__name__)


class CatalogJSONResponse(JSONResponse):
    media_type = "application/json; charset=UTF-8"


app = FastAPI(title="Shoe Shop API", version="0.1.0", default_response_class=CatalogJSONResponse)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# ---------------------------------------------------------------------------
# Store dependency
# ---------------------------------------------------------------------------

def get_db_path() -> Path:
    return DB_PATH


def get_store(db_path: Path = Depends(get_db_path)) -> Iterator[sqlite3.Connection]:
    """One connection per request, closed once the response is built."""
    conn = db.get_connection(db_path)
    try:
        yield conn
    finally:
        conn.close()


@app.exception_handler(db.StoreError)
async def store_error_handler(request: Request, exc: db.StoreError):
    logger.error("Store error on %s: %s", request.url.path, exc)
    return CatalogJSONResponse(status_code=500, content={"message": exc.message})


def _message(status_code: int, message: str) -> CatalogJSONResponse:
    return CatalogJSONResponse(status_code=status_code, content=Message(message=message).model_dump())


# ---------------------------------------------------------------------------
# Index / status
# ---------------------------------------------------------------------------

@app.get("/")
async def index():
    return {
        "message": "Welcome to the Shoe Shop API",
        "endpoints": {
            "/api/products/read.php": "Get all products",
            "/api/products/read_single.php?id={id}": "Get a single product by ID",
            "/init": "Initialize the database with sample products",
        },
    }


@app.get("/api/status", response_model=ApiStatus)
async def status():
    return ApiStatus(status="API is working", time=datetime.now().strftime("%Y-%m-%d %H:%M:%S"))


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

@app.get("/api/products/read.php")
@app.get("/api/products")
def read_products(conn: sqlite3.Connection = Depends(get_store)):
    products = db.list_products(conn)
    if not products:
        logger.info("Catalog is empty")
        return _message(404, "No products found")
    return [p.to_wire() for p in products]


@app.get("/api/products/read_single.php")
def read_single_product(
    product_id: str | None = Query(default=None, alias="id"),
    conn: sqlite3.Connection = Depends(get_store),
):
    # A request without an id is cut off with no body at all.
    if product_id is None:
        return Response(status_code=400)
    return _product_response(conn, product_id)


@app.get("/api/products/{product_id}")
def get_product(product_id: str, conn: sqlite3.Connection = Depends(get_store)):
    return _product_response(conn, product_id)


def _product_response(conn: sqlite3.Connection, product_id: str):
    product = db.get_product(conn, product_id)
    if product is None:
        logger.info("Product %r not found", product_id)
        return _message(404, "Product not found.")
    return product.to_wire()


# ---------------------------------------------------------------------------
# Admin: seed the catalog
# ---------------------------------------------------------------------------

@app.api_route("/init", methods=["GET", "POST"], response_class=PlainTextResponse)
def init_catalog(db_path: Path = Depends(get_db_path)):
    try:
        conn = db.get_connection(db_path)
    except db.StoreUnavailable as e:
        logger.exception("Seeding aborted, store unavailable")
        return PlainTextResponse(
            "Database connection: FAILED\n"
            f"Failed to connect to the database: {e}\n"
        )
    try:
        log = db.seed_products(conn, db_path=db_path)
    finally:
        conn.close()
    return PlainTextResponse("\n".join(log) + "\n")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=API_HOST, port=API_PORT)
