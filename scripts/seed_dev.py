"""Seed the development database with sample customers and products."""
from __future__ import annotations

import sys
from contextlib import AbstractContextManager, contextmanager
from decimal import Decimal
from pathlib import Path
from typing import Iterator

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from sqlalchemy.orm import Session

from backend.app.core.db import SessionLocal
from backend.app.models import Customer, Product
from backend.app.services import AssociationManager

SAMPLE_CUSTOMERS = (
    ("Acme Corp", "purchasing@acme.com", "Acme"),
    ("Globex", "ops@globex.com", "Globex Corporation"),
)

SAMPLE_PRODUCTS = (
    ("Widget", "WID-001", Decimal("9.99"), 120),
    ("Gadget", "GAD-001", Decimal("24.50"), 40),
    ("Gizmo", "GIZ-001", Decimal("4.25"), 300),
)


@contextmanager
def _session_scope() -> Iterator[Session]:
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def _get_or_create_customer(session: Session, name: str, email: str, company: str) -> Customer:
    customer = session.query(Customer).filter(Customer.email == email).one_or_none()
    if customer is None:
        customer = Customer(name=name, email=email, company=company)
        session.add(customer)
        session.flush()
    return customer


def _get_or_create_product(session: Session, name: str, sku: str, price: Decimal, stock: int) -> Product:
    product = session.query(Product).filter(Product.sku == sku).one_or_none()
    if product is None:
        product = Product(name=name, sku=sku, price=price, stock=stock)
        session.add(product)
        session.flush()
    return product


def main(context: AbstractContextManager | None = None) -> None:
    """Entry point for seeding data."""

    session_ctx = context or _session_scope()
    with session_ctx as session:
        customers = [_get_or_create_customer(session, *row) for row in SAMPLE_CUSTOMERS]
        products = [_get_or_create_product(session, *row) for row in SAMPLE_PRODUCTS]
        session.commit()

        manager = AssociationManager(session)
        linked = manager.add(customers[0].id, [product.id for product in products[:2]])

        print("Seeded development data:")
        print(f"  Customers: {', '.join(str(customer.id) for customer in customers)}")
        print(f"  Products: {', '.join(str(product.id) for product in products)}")
        print(f"  Customer {customers[0].id} linked to: {', '.join(product.name for product in linked)}")


if __name__ == "__main__":
    main()
