"""Customer to product association management.

Three operations reconcile the ``customer_products`` join table for one
customer: ``add`` (insert missing pairs), ``remove`` (delete listed pairs)
and ``replace`` (swap the whole set). Each runs as a single transaction and
returns the customer's resulting product list.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterable, Iterator

from sqlalchemy import delete, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import InternalError, NotFoundError, ValidationError
from ..core.metrics import record_association
from ..models import Customer, CustomerProduct, Product

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}

# Bounds of the signed 32-bit product id column.
MIN_PRODUCT_ID = -(2**31)
MAX_PRODUCT_ID = 2**31 - 1


def coerce_product_ids(values: Any) -> list[int]:
    """Normalise a ``productIds`` payload into unique integer ids.

    Order of first appearance is kept. Raises ``ValidationError`` when the
    payload is not a list or an element cannot be read as an integer id.
    """

    if isinstance(values, (str, bytes)) or not isinstance(values, (list, tuple)):
        raise ValidationError("productIds must be an array of product IDs")

    product_ids: list[int] = []
    seen: set[int] = set()
    for value in values:
        product_id = _coerce_one(value)
        if product_id not in seen:
            seen.add(product_id)
            product_ids.append(product_id)
    return product_ids


def _coerce_one(value: Any) -> int:
    product_id = _as_int(value)
    if product_id is None or not MIN_PRODUCT_ID <= product_id <= MAX_PRODUCT_ID:
        raise ValidationError("productIds must be an array of product IDs")
    return product_id


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


class AssociationManager:
    """Add, remove or replace the products linked to a customer."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_products(self, customer_id: int) -> list[Product]:
        """Return the products currently linked to ``customer_id``.

        The inner join against ``products`` keeps links to deleted products
        out of the result.
        """

        stmt = (
            select(Product)
            .join(CustomerProduct, CustomerProduct.product_id == Product.id)
            .where(CustomerProduct.customer_id == customer_id)
            .order_by(Product.id)
        )
        return list(self.session.execute(stmt).scalars().all())

    def add(self, customer_id: int, product_ids: Iterable[Any]) -> list[Product]:
        ids = coerce_product_ids(product_ids)
        logger.info("Associating %d products with customer %s", len(ids), customer_id)
        with self._transaction("add", customer_id):
            self._require_customer(customer_id)
            if ids:
                self._require_products(ids)
                self._insert_missing(customer_id, ids)
        return self.list_products(customer_id)

    def remove(self, customer_id: int, product_ids: Iterable[Any]) -> list[Product]:
        ids = coerce_product_ids(product_ids)
        logger.info("Removing %d product associations from customer %s", len(ids), customer_id)
        with self._transaction("remove", customer_id):
            self._require_customer(customer_id)
            if ids:
                self.session.execute(
                    delete(CustomerProduct).where(
                        CustomerProduct.customer_id == customer_id,
                        CustomerProduct.product_id.in_(ids),
                    )
                )
        return self.list_products(customer_id)

    def replace(self, customer_id: int, product_ids: Iterable[Any]) -> list[Product]:
        ids = coerce_product_ids(product_ids)
        logger.info("Replacing product associations for customer %s with %d products", customer_id, len(ids))
        with self._transaction("replace", customer_id):
            self._require_customer(customer_id)
            if ids:
                self._require_products(ids)
            self._delete_all(customer_id)
            if ids:
                self._insert_links(customer_id, ids)
        return self.list_products(customer_id)

    @contextmanager
    def _transaction(self, action: str, customer_id: int) -> Iterator[None]:
        try:
            yield
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            record_association(action, "error")
            logger.exception("Association %s failed for customer %s", action, customer_id)
            raise InternalError() from exc
        except Exception:
            self.session.rollback()
            record_association(action, "rejected")
            raise
        record_association(action, "ok")

    def _require_customer(self, customer_id: int) -> None:
        # Row lock serialises concurrent operations on the same customer.
        stmt = select(Customer.id).where(Customer.id == customer_id).with_for_update()
        if self.session.execute(stmt).scalar_one_or_none() is None:
            raise NotFoundError("Customer not found")

    def _require_products(self, product_ids: list[int]) -> None:
        stmt = select(Product.id).where(Product.id.in_(product_ids))
        found = set(self.session.execute(stmt).scalars().all())
        missing = [product_id for product_id in product_ids if product_id not in found]
        if missing:
            raise NotFoundError(f"Unknown product ids: {', '.join(str(item) for item in missing)}")

    def _delete_all(self, customer_id: int) -> None:
        self.session.execute(delete(CustomerProduct).where(CustomerProduct.customer_id == customer_id))

    def _insert_links(self, customer_id: int, product_ids: list[int]) -> None:
        rows = [{"customer_id": customer_id, "product_id": product_id} for product_id in product_ids]
        self.session.execute(insert(CustomerProduct), rows)

    def _insert_missing(self, customer_id: int, product_ids: list[int]) -> None:
        rows = [{"customer_id": customer_id, "product_id": product_id} for product_id in product_ids]
        dialect = self.session.get_bind().dialect.name
        upsert = _UPSERT_DIALECTS.get(dialect)
        if upsert is not None:
            stmt = upsert(CustomerProduct).values(rows).on_conflict_do_nothing(
                index_elements=["customer_id", "product_id"]
            )
            self.session.execute(stmt)
            return

        stmt = select(CustomerProduct.product_id).where(
            CustomerProduct.customer_id == customer_id,
            CustomerProduct.product_id.in_(product_ids),
        )
        existing = set(self.session.execute(stmt).scalars().all())
        missing = [row for row in rows if row["product_id"] not in existing]
        if missing:
            self.session.execute(insert(CustomerProduct), missing)
