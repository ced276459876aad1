# catalog_app/services/catalog_client.py
import json
import logging
from typing import Any, List, Optional, Union

import httpx

from catalog_app.config import settings
from catalog_app.core.errors import FormatError, ServiceError, TransportError
from catalog_app.models.product import Product
from catalog_app.schemas.product import ProductCreate
from catalog_app.utils.images import StagedImage

logger = logging.getLogger(__name__)

_UNSET = object()


def _error_detail(response: httpx.Response) -> Optional[str]:
    """Best-effort human readable reason taken from an error body."""
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            for key in ("message", "error", "detail"):
                if isinstance(body.get(key), str) and body[key]:
                    return body[key]
        return None
    text = (response.text or "").strip()
    if text and len(text) <= 200:
        return text
    return None


def handle_response(response: httpx.Response) -> Union[Any, str]:
    """
    Convert an httpx response into parsed JSON, or raw text when the declared
    content type is not JSON. Non-2xx statuses raise ServiceError.
    """
    if not response.is_success:
        status = response.status_code
        detail = _error_detail(response)
        message = f"HTTP error! status: {status}"
        if detail:
            message = f"{message} ({detail})"
        logger.warning("%s %s failed: %s", response.request.method, response.request.url, message)
        raise ServiceError(status, message)

    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            return response.json()
        except ValueError as e:
            raise FormatError(f"Malformed JSON from {response.request.url}: {e}") from e
    return response.text


def _to_product(body: Any) -> Product:
    try:
        return Product.from_dict(body)
    except (TypeError, ValueError) as e:
        raise FormatError(f"Unexpected product payload: {e}") from e


class CatalogClient:
    """
    Typed gateway to the catalog service. Holds an httpx.AsyncClient and
    nothing else; every call is a fresh request.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Any = _UNSET,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        if timeout is _UNSET:
            timeout = settings.REQUEST_TIMEOUT
        self.base_url = (base_url or settings.CATALOG_API_URL).rstrip("/")
        self._http = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport,
                                       follow_redirects=True)

    async def __aenter__(self) -> "CatalogClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Union[Any, str]:
        logger.debug("%s %s%s", method, self.base_url, path)
        try:
            response = await self._http.request(method, path, **kwargs)
        except httpx.DecodingError as e:
            logger.warning("%s %s returned an undecodable body: %s", method, path, e)
            raise FormatError(f"Could not decode response body: {e}") from e
        except httpx.RequestError as e:
            # connection failures, timeouts, redirect loops
            logger.warning("%s %s unreachable: %s", method, path, e)
            raise TransportError(f"Could not reach catalog service: {e}") from e
        return handle_response(response)

    async def list_products(self) -> List[Product]:
        body = await self._request("GET", "/api/products")
        if not isinstance(body, list):
            raise FormatError("Expected a JSON array of products")
        return [_to_product(item) for item in body]

    async def get_product(self, product_id: int) -> Product:
        body = await self._request("GET", f"/api/product/{int(product_id)}")
        return _to_product(body)

    async def create_product(self, product: ProductCreate, staged_image: Optional[StagedImage] = None) -> Product:
        """
        POST /api/product as multipart: a `product` part holding the JSON fields
        and, when an image is staged, an `imageFile` part with the raw bytes.
        """
        files = {
            "product": ("blob", json.dumps(product.to_payload()).encode("utf-8"), "application/json"),
        }
        if staged_image is not None:
            files["imageFile"] = (staged_image.filename, staged_image.data, staged_image.content_type)
        body = await self._request("POST", "/api/product", files=files)
        return _to_product(body)

    async def hello(self) -> str:
        body = await self._request("GET", "/")
        return body if isinstance(body, str) else json.dumps(body)
