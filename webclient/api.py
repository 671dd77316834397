"""HTTP helpers for talking to the portal API."""
from __future__ import annotations

import logging
from typing import Any, Iterable

import httpx

from .session import SessionContext

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


def create_http_client(
    base_url: str,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> httpx.AsyncClient:
    """Return the shared async client used by the session and API wrappers."""

    return httpx.AsyncClient(base_url=base_url.rstrip("/"), transport=transport, timeout=timeout)


class PortalApi:
    """Portal endpoints called on behalf of a session.

    A 401 from any call clears the session so the route guard sends the
    user back to the login page.
    """

    def __init__(self, session: SessionContext) -> None:
        self.session = session

    @property
    def http(self) -> httpx.AsyncClient:
        return self.session.http

    async def greeting(self) -> str:
        body = await self._request("GET", "/api/hello")
        return body["message"]

    async def list_customers(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/customers")

    async def get_customer(self, customer_id: int) -> dict[str, Any]:
        return await self._request("GET", f"/api/customers/{customer_id}")

    async def create_customer(self, data: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/api/customers", json=data)

    async def update_customer(self, customer_id: int, data: dict[str, Any]) -> dict[str, Any]:
        return await self._request("PUT", f"/api/customers/{customer_id}", json=data)

    async def delete_customer(self, customer_id: int) -> None:
        await self._request("DELETE", f"/api/customers/{customer_id}")

    async def list_products(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/products")

    async def get_product(self, product_id: int) -> dict[str, Any]:
        return await self._request("GET", f"/api/products/{product_id}")

    async def create_product(self, data: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/api/products", json=data)

    async def update_product(self, product_id: int, data: dict[str, Any]) -> dict[str, Any]:
        return await self._request("PUT", f"/api/products/{product_id}", json=data)

    async def delete_product(self, product_id: int) -> None:
        await self._request("DELETE", f"/api/products/{product_id}")

    async def customer_products(self, customer_id: int) -> list[dict[str, Any]]:
        return await self._request("GET", f"/api/customers/{customer_id}/products")

    async def add_products(self, customer_id: int, product_ids: Iterable[int]) -> list[dict[str, Any]]:
        return await self._post_ids(f"/api/customers/{customer_id}/products", product_ids)

    async def remove_products(self, customer_id: int, product_ids: Iterable[int]) -> list[dict[str, Any]]:
        return await self._post_ids(f"/api/customers/{customer_id}/products/remove", product_ids)

    async def replace_products(self, customer_id: int, product_ids: Iterable[int]) -> list[dict[str, Any]]:
        return await self._post_ids(f"/api/customers/{customer_id}/products/update", product_ids)

    async def _post_ids(self, path: str, product_ids: Iterable[int]) -> list[dict[str, Any]]:
        return await self._request("POST", path, json={"productIds": list(product_ids)})

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self.http.request(method, path, **kwargs)
        if response.status_code == httpx.codes.UNAUTHORIZED:
            logger.info("API rejected the session token on %s %s", method, path)
            self.session.clear()
        response.raise_for_status()
        if response.status_code == httpx.codes.NO_CONTENT:
            return None
        return response.json()
