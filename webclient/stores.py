"""Cached customer and product lists backing the portal screens.

Each store keeps the last fetched list, the record currently being viewed,
and a loading flag with the last error message. Failed calls never raise:
they record ``error`` and return ``None`` (or ``False`` for deletes).
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable

import httpx

from .api import PortalApi
from .session import error_message

logger = logging.getLogger(__name__)


class RecordStore:
    """List/detail cache over one portal resource."""

    resource = "record"

    def __init__(self, api: PortalApi) -> None:
        self.api = api
        self.items: list[dict[str, Any]] = []
        self.selected: dict[str, Any] | None = None
        self.loading = False
        self.is_creating = False
        self.error: str | None = None

    def get_by_id(self, record_id: int) -> dict[str, Any] | None:
        return next((item for item in self.items if item["id"] == record_id), None)

    async def fetch_all(self) -> list[dict[str, Any]]:
        ok, items = await self._run(f"fetch {self.resource}s", self._list())
        if ok:
            self.items = items
        return self.items

    async def fetch(self, record_id: int) -> dict[str, Any] | None:
        ok, record = await self._run(f"fetch {self.resource}", self._get(record_id))
        if ok:
            self.selected = record
        return record

    async def create(self, data: dict[str, Any]) -> dict[str, Any] | None:
        self.is_creating = True
        try:
            ok, record = await self._run(f"create {self.resource}", self._create(data))
        finally:
            self.is_creating = False
        if ok:
            # Lists are served newest first.
            self.items.insert(0, record)
        return record

    async def update(self, record_id: int, data: dict[str, Any]) -> dict[str, Any] | None:
        ok, record = await self._run(f"update {self.resource}", self._update(record_id, data))
        if not ok:
            return None
        self.items = [record if item["id"] == record_id else item for item in self.items]
        if self.selected is not None and self.selected["id"] == record_id:
            self.selected = record
        return record

    async def delete(self, record_id: int) -> bool:
        ok, _ = await self._run(f"delete {self.resource}", self._delete(record_id))
        if not ok:
            return False
        self.items = [item for item in self.items if item["id"] != record_id]
        if self.selected is not None and self.selected["id"] == record_id:
            self.selected = None
        return True

    def clear_selected(self) -> None:
        self.selected = None

    async def _run(self, action: str, call: Awaitable[Any]) -> tuple[bool, Any]:
        self.loading = True
        self.error = None
        try:
            return True, await call
        except httpx.HTTPError as exc:
            logger.warning("Failed to %s: %s", action, exc)
            self.error = error_message(exc, f"Failed to {action}")
            return False, None
        finally:
            self.loading = False

    def _list(self) -> Awaitable[list[dict[str, Any]]]:
        raise NotImplementedError

    def _get(self, record_id: int) -> Awaitable[dict[str, Any]]:
        raise NotImplementedError

    def _create(self, data: dict[str, Any]) -> Awaitable[dict[str, Any]]:
        raise NotImplementedError

    def _update(self, record_id: int, data: dict[str, Any]) -> Awaitable[dict[str, Any]]:
        raise NotImplementedError

    def _delete(self, record_id: int) -> Awaitable[None]:
        raise NotImplementedError


class CustomerStore(RecordStore):
    resource = "customer"

    def _list(self):
        return self.api.list_customers()

    def _get(self, record_id):
        return self.api.get_customer(record_id)

    def _create(self, data):
        return self.api.create_customer(data)

    def _update(self, record_id, data):
        return self.api.update_customer(record_id, data)

    def _delete(self, record_id):
        return self.api.delete_customer(record_id)


class ProductStore(RecordStore):
    resource = "product"

    def _list(self):
        return self.api.list_products()

    def _get(self, record_id):
        return self.api.get_product(record_id)

    def _create(self, data):
        return self.api.create_product(data)

    def _update(self, record_id, data):
        return self.api.update_product(record_id, data)

    def _delete(self, record_id):
        return self.api.delete_product(record_id)


class GreetingStore:
    """Connectivity check shown on the landing page."""

    def __init__(self, api: PortalApi) -> None:
        self.api = api
        self.greeting = ""
        self.loading = False
        self.error: str | None = None

    async def fetch(self) -> str:
        self.loading = True
        self.error = None
        try:
            self.greeting = await self.api.greeting()
        except httpx.HTTPError as exc:
            logger.warning("Failed to fetch greeting: %s", exc)
            self.error = error_message(exc, "Failed to fetch greeting")
        finally:
            self.loading = False
        return self.greeting
