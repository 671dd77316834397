from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from backend.app.core.errors import InternalError, NotFoundError, ValidationError
from backend.app.models import CustomerProduct
from backend.app.services import AssociationManager
from backend.app.services.associations import coerce_product_ids


def _linked_ids(session_factory, customer_id: int) -> set[int]:
    with session_factory() as session:
        stmt = select(CustomerProduct.product_id).where(CustomerProduct.customer_id == customer_id)
        return set(session.execute(stmt).scalars().all())


def test_add_is_idempotent(session_factory, catalog: dict[str, list[int]]) -> None:
    customer_id = catalog["customers"][0]
    p1, p2, *_ = catalog["products"]

    with session_factory() as session:
        once = AssociationManager(session).add(customer_id, [p1, p2])
    with session_factory() as session:
        twice = AssociationManager(session).add(customer_id, [p1, p2])

    assert [product.id for product in once] == [product.id for product in twice] == [p1, p2]
    assert _linked_ids(session_factory, customer_id) == {p1, p2}


def test_add_with_overlapping_ids_only_inserts_missing(session_factory, catalog) -> None:
    customer_id = catalog["customers"][0]
    p1, p2, p3, _ = catalog["products"]

    with session_factory() as session:
        manager = AssociationManager(session)
        manager.add(customer_id, [p1, p2])
        products = manager.add(customer_id, [p2, p3, p3])

    assert [product.id for product in products] == [p1, p2, p3]


def test_remove_ignores_unlinked_ids(session_factory, catalog) -> None:
    customer_id = catalog["customers"][0]
    p1, p2, p3, _ = catalog["products"]

    with session_factory() as session:
        manager = AssociationManager(session)
        manager.add(customer_id, [p1, p2])
        products = manager.remove(customer_id, [p2, p3, 9999])

    assert [product.id for product in products] == [p1]


def test_replace_swaps_whole_set_and_accepts_empty(session_factory, catalog) -> None:
    customer_id, other_customer = catalog["customers"]
    p1, p2, p3, p4 = catalog["products"]

    with session_factory() as session:
        manager = AssociationManager(session)
        manager.add(customer_id, [p1, p2])
        manager.add(other_customer, [p1])

        products = manager.replace(customer_id, [p3, p4])
        assert [product.id for product in products] == [p3, p4]

        assert manager.replace(customer_id, []) == []

    assert _linked_ids(session_factory, customer_id) == set()
    assert _linked_ids(session_factory, other_customer) == {p1}


def test_replace_failure_after_delete_keeps_previous_set(
    session_factory, catalog, monkeypatch: pytest.MonkeyPatch
) -> None:
    customer_id = catalog["customers"][0]
    p1, p2, p3, p4 = catalog["products"]

    with session_factory() as session:
        AssociationManager(session).add(customer_id, [p1, p2])

    def _explode(self, customer_id: int, product_ids: list[int]) -> None:
        raise RuntimeError("insert phase failed")

    monkeypatch.setattr(AssociationManager, "_insert_links", _explode)

    with session_factory() as session:
        with pytest.raises(RuntimeError):
            AssociationManager(session).replace(customer_id, [p3, p4])

    assert _linked_ids(session_factory, customer_id) == {p1, p2}


def test_storage_error_maps_to_internal_error_and_rolls_back(
    session_factory, catalog, monkeypatch: pytest.MonkeyPatch
) -> None:
    customer_id = catalog["customers"][0]
    p1, p2, p3, _ = catalog["products"]

    with session_factory() as session:
        AssociationManager(session).add(customer_id, [p1])

    def _storage_down(self, customer_id: int, product_ids: list[int]) -> None:
        raise OperationalError("INSERT INTO customer_products", {}, Exception("disk I/O error"))

    monkeypatch.setattr(AssociationManager, "_insert_links", _storage_down)

    with session_factory() as session:
        with pytest.raises(InternalError) as excinfo:
            AssociationManager(session).replace(customer_id, [p2, p3])

    assert excinfo.value.status_code == 500
    assert excinfo.value.detail == "Internal server error"
    assert _linked_ids(session_factory, customer_id) == {p1}


def test_pairs_never_duplicate(session_factory, catalog) -> None:
    c1, c2 = catalog["customers"]
    p1, p2, p3, p4 = catalog["products"]

    with session_factory() as session:
        manager = AssociationManager(session)
        manager.add(c1, [p1, p2, p1])
        manager.add(c2, [p2])
        manager.replace(c1, [p2, p3, p2])
        manager.add(c1, [p3, p4])
        manager.remove(c1, [p4])
        manager.add(c1, [p4, p2])

    with session_factory() as session:
        stmt = (
            select(CustomerProduct.customer_id, CustomerProduct.product_id, func.count())
            .group_by(CustomerProduct.customer_id, CustomerProduct.product_id)
        )
        counts = session.execute(stmt).all()

    assert counts
    assert all(count == 1 for _, _, count in counts)
    assert _linked_ids(session_factory, c1) == {p2, p3, p4}


def test_unknown_customer_or_product_is_rejected(session_factory, catalog) -> None:
    customer_id = catalog["customers"][0]
    p1 = catalog["products"][0]

    with session_factory() as session:
        manager = AssociationManager(session)
        with pytest.raises(NotFoundError):
            manager.add(9999, [p1])
        with pytest.raises(NotFoundError):
            manager.add(customer_id, [p1, 9999])
        with pytest.raises(NotFoundError):
            manager.replace(customer_id, [9999])

    assert _linked_ids(session_factory, customer_id) == set()


@pytest.mark.parametrize(
    "payload, expected",
    [
        ([1, "2", 3.0, " 4 "], [1, 2, 3, 4]),
        ([5, 5, "5"], [5]),
        ([], []),
        ((7, 8), [7, 8]),
        ([str(2**31 - 1)], [2**31 - 1]),
    ],
)
def test_coerce_product_ids(payload: Any, expected: list[int]) -> None:
    assert coerce_product_ids(payload) == expected


@pytest.mark.parametrize(
    "payload",
    [
        "1,2",
        None,
        {"id": 1},
        [1, "abc"],
        [True],
        [1.5],
        [None],
        [2**40],
        ["99999999999999999999"],
        [1e20],
        [-(2**31) - 1],
    ],
)
def test_coerce_product_ids_rejects_bad_payloads(payload: Any) -> None:
    with pytest.raises(ValidationError):
        coerce_product_ids(payload)


def test_association_endpoints(app: Any, catalog) -> None:
    customer_id = catalog["customers"][0]
    p1, p2, p3, _ = catalog["products"]
    base = f"/api/customers/{customer_id}/products"

    response = app.post(base, json={"productIds": [p1, str(p2)]})
    assert response.status_code == 200
    assert [item["id"] for item in response.json()] == [p1, p2]
    assert response.json()[0]["name"] == "Widget"

    response = app.post(f"{base}/remove", json={"productIds": [p1]})
    assert response.status_code == 200
    assert [item["id"] for item in response.json()] == [p2]

    response = app.post(f"{base}/update", json={"productIds": [p3]})
    assert response.status_code == 200
    assert [item["id"] for item in response.json()] == [p3]

    response = app.get(base)
    assert response.status_code == 200
    assert [item["id"] for item in response.json()] == [p3]


@pytest.mark.parametrize(
    "suffix, body",
    [
        ("", {"productIds": "1,2"}),
        ("", {}),
        ("/remove", {"productIds": ["abc"]}),
        ("/update", {"productIds": 3}),
        ("/update", {"productIds": [1, None]}),
        ("", {"productIds": [2**40]}),
        ("/remove", {"productIds": ["99999999999999999999"]}),
        ("/update", {"productIds": [1e20]}),
    ],
)
def test_association_endpoints_reject_malformed_ids(app: Any, catalog, suffix: str, body: dict) -> None:
    customer_id = catalog["customers"][0]
    response = app.post(f"/api/customers/{customer_id}/products{suffix}", json=body)
    assert response.status_code == 400


def test_association_endpoints_report_missing_entities(app: Any, catalog) -> None:
    customer_id = catalog["customers"][0]

    assert app.get("/api/customers/9999/products").status_code == 404
    assert app.post("/api/customers/9999/products", json={"productIds": []}).status_code == 404

    response = app.post(f"/api/customers/{customer_id}/products", json={"productIds": [9999]})
    assert response.status_code == 404
    assert "9999" in response.json()["detail"]


def test_deleted_product_disappears_from_customer_list(
    app: Any, catalog, auth_headers: dict[str, str], session_factory
) -> None:
    customer_id = catalog["customers"][0]
    p1, p2, *_ = catalog["products"]

    app.post(f"/api/customers/{customer_id}/products", json={"productIds": [p1, p2]})

    response = app.delete(f"/api/products/{p2}", headers=auth_headers)
    assert response.status_code == 204

    response = app.get(f"/api/customers/{customer_id}/products")
    assert response.status_code == 200
    assert [item["id"] for item in response.json()] == [p1]
    assert _linked_ids(session_factory, customer_id) == {p1}
