"""Customer management endpoints, including product associations."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.db import get_session
from ..core.errors import ConflictError, InternalError, NotFoundError
from ..models import Customer
from ..services import AssociationManager
from .routes_products import ProductResponse

logger = logging.getLogger(__name__)
router = APIRouter()


class CustomerPayload(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=50)
    company: Optional[str] = Field(default=None, max_length=255)
    address: Optional[str] = Field(default=None, max_length=512)
    notes: Optional[str] = None


class CustomerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: Optional[str]
    company: Optional[str]
    address: Optional[str]
    notes: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime]


class ProductIdsRequest(BaseModel):
    """Body shared by the association endpoints."""

    productIds: list[Any]


def _get_customer_or_404(session: Session, customer_id: int) -> Customer:
    customer = session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")
    return customer


def _email_taken(session: Session, email: str, *, exclude_id: int | None = None) -> bool:
    stmt = select(Customer.id).where(Customer.email == email)
    existing = session.execute(stmt).scalar_one_or_none()
    return existing is not None and existing != exclude_id


def _commit(session: Session, action: str) -> None:
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        logger.info("Customer %s rejected by a unique constraint: %s", action, exc.orig)
        raise ConflictError("Email already in use") from None
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Error during customer %s", action)
        raise InternalError() from exc


@router.get("", response_model=list[CustomerResponse], summary="List customers")
async def list_customers(session: Session = Depends(get_session)) -> list[Customer]:
    stmt = select(Customer).order_by(Customer.created_at.desc(), Customer.id.desc())
    return list(session.execute(stmt).scalars().all())


@router.get("/{customer_id}", response_model=CustomerResponse, summary="Fetch a customer")
async def get_customer(customer_id: int, session: Session = Depends(get_session)) -> Customer:
    return _get_customer_or_404(session, customer_id)


@router.post(
    "",
    response_model=CustomerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a customer",
)
async def create_customer(payload: CustomerPayload, session: Session = Depends(get_session)) -> Customer:
    if _email_taken(session, payload.email):
        raise ConflictError("Email already in use")

    customer = Customer(**payload.model_dump())
    session.add(customer)
    _commit(session, "create")
    session.refresh(customer)
    return customer


@router.put("/{customer_id}", response_model=CustomerResponse, summary="Update a customer")
async def update_customer(
    customer_id: int,
    payload: CustomerPayload,
    session: Session = Depends(get_session),
) -> Customer:
    customer = _get_customer_or_404(session, customer_id)
    if _email_taken(session, payload.email, exclude_id=customer_id):
        raise ConflictError("Email already in use by another customer")

    for field, value in payload.model_dump().items():
        setattr(customer, field, value)
    _commit(session, "update")
    session.refresh(customer)
    return customer


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a customer")
async def delete_customer(customer_id: int, session: Session = Depends(get_session)) -> Response:
    customer = _get_customer_or_404(session, customer_id)
    session.delete(customer)
    _commit(session, "delete")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{customer_id}/products",
    response_model=list[ProductResponse],
    summary="List a customer's products",
)
async def list_customer_products(customer_id: int, session: Session = Depends(get_session)) -> Any:
    _get_customer_or_404(session, customer_id)
    return AssociationManager(session).list_products(customer_id)


@router.post(
    "/{customer_id}/products",
    response_model=list[ProductResponse],
    summary="Associate products with a customer",
)
async def add_customer_products(
    customer_id: int,
    payload: ProductIdsRequest,
    session: Session = Depends(get_session),
) -> Any:
    return AssociationManager(session).add(customer_id, payload.productIds)


@router.post(
    "/{customer_id}/products/remove",
    response_model=list[ProductResponse],
    summary="Remove product associations from a customer",
)
async def remove_customer_products(
    customer_id: int,
    payload: ProductIdsRequest,
    session: Session = Depends(get_session),
) -> Any:
    return AssociationManager(session).remove(customer_id, payload.productIds)


@router.post(
    "/{customer_id}/products/update",
    response_model=list[ProductResponse],
    summary="Replace all product associations for a customer",
)
async def replace_customer_products(
    customer_id: int,
    payload: ProductIdsRequest,
    session: Session = Depends(get_session),
) -> Any:
    return AssociationManager(session).replace(customer_id, payload.productIds)
