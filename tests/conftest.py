# tests/conftest.py
import os
import sys
import io
import json
import base64
from typing import Any, Dict, List, Optional

import httpx
import pytest
from PIL import Image
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

# ensure project root is importable
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from catalog_app.services.catalog_client import CatalogClient  # noqa: E402


class FakeCatalogService:
    """
    In-process stand-in for the catalog service. Stores products in memory,
    records every creation request, and can be told to fail.
    """

    def __init__(self):
        self.products: List[Dict[str, Any]] = []
        self.created_requests: List[Dict[str, Any]] = []
        self.list_calls = 0
        # status code to answer every request with, or None
        self.fail_status: Optional[int] = None
        self.fail_body: Any = None
        self.app = self._build_app()

    def add(self, **fields) -> Dict[str, Any]:
        row = {
            "id": len(self.products) + 1,
            "name": "Item",
            "description": "",
            "brand": "",
            "price": 1.0,
            "category": "",
            "releaseDate": None,
            "productAvailable": True,
            "stockQuantity": 1,
            "imageName": None,
            "imageType": None,
            "imageData": None,
        }
        row.update(fields)
        self.products.append(row)
        return row

    def _failure(self):
        if self.fail_status is None:
            return None
        if isinstance(self.fail_body, str):
            return PlainTextResponse(self.fail_body, status_code=self.fail_status)
        return JSONResponse(self.fail_body or {"error": "failed"}, status_code=self.fail_status)

    def _build_app(self) -> FastAPI:
        app = FastAPI()

        @app.get("/")
        async def hello():
            return PlainTextResponse("Hello World")

        @app.get("/api/products")
        async def list_products():
            self.list_calls += 1
            return self._failure() or JSONResponse(self.products)

        @app.get("/api/product/{product_id}")
        async def get_product(product_id: int):
            failure = self._failure()
            if failure:
                return failure
            for row in self.products:
                if row["id"] == product_id:
                    return JSONResponse(row)
            return JSONResponse({"error": "Product not found"}, status_code=404)

        @app.post("/api/product")
        async def create_product(request: Request):
            form = await request.form()
            part = form.get("product")
            raw = await part.read() if hasattr(part, "read") else part
            fields = json.loads(raw)
            image = form.get("imageFile")
            record: Dict[str, Any] = {"product": fields, "image": None}
            if image is not None:
                data = await image.read()
                record["image"] = {"filename": image.filename, "content_type": image.content_type, "data": data}
            self.created_requests.append(record)

            failure = self._failure()
            if failure:
                return failure
            row = self.add(**fields)
            if record["image"]:
                row["imageName"] = record["image"]["filename"]
                row["imageType"] = record["image"]["content_type"]
                row["imageData"] = base64.b64encode(record["image"]["data"]).decode("ascii")
            return JSONResponse(row, status_code=201)

        return app


@pytest.fixture
def service():
    return FakeCatalogService()


@pytest.fixture
def make_client(service):
    """
    Return a callable that builds a CatalogClient talking to the fake service.
    Build it inside the coroutine that uses it.
    Usage: client = make_client()
    """
    def _fn(transport: Optional[httpx.AsyncBaseTransport] = None):
        return CatalogClient(base_url="http://testserver", transport=transport or httpx.ASGITransport(app=service.app))
    return _fn


@pytest.fixture
def unreachable_transport():
    """Transport that fails every request as if the host were down."""
    def _handler(request: httpx.Request):
        raise httpx.ConnectError("connection refused", request=request)
    return httpx.MockTransport(_handler)


@pytest.fixture
def make_sample_jpeg_bytes():
    """
    Return a callable that generates JPEG bytes for tests that need image uploads.
    Usage: jpg = make_sample_jpeg_bytes(size=(200,200))
    """
    def _fn(size=(200, 200), color=(180, 120, 60)):
        bio = io.BytesIO()
        im = Image.new("RGB", size, color)
        im.save(bio, format="JPEG", quality=85)
        bio.seek(0)
        return bio.read()
    return _fn
