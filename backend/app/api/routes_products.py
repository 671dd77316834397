"""Product catalog endpoints."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.db import get_session
from ..core.errors import ConflictError, InternalError, NotFoundError
from ..core.rate_limiter import limiter, write_limit
from ..core.security import get_current_user
from ..models import Product, User

logger = logging.getLogger(__name__)
router = APIRouter()


class ProductPayload(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    sku: Optional[str] = Field(default=None, max_length=100)
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    stock: int = Field(default=0, ge=0)


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str]
    sku: Optional[str]
    price: Optional[Decimal]
    stock: int
    created_at: datetime
    updated_at: Optional[datetime]


def _get_product_or_404(session: Session, product_id: int) -> Product:
    product = session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


def _commit(session: Session, action: str) -> None:
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        logger.info("Product %s rejected by a unique constraint: %s", action, exc.orig)
        raise ConflictError("SKU already in use") from None
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Error during product %s", action)
        raise InternalError() from exc


@router.get("", response_model=list[ProductResponse], summary="List products")
async def list_products(session: Session = Depends(get_session)) -> list[Product]:
    stmt = select(Product).order_by(Product.created_at.desc(), Product.id.desc())
    return list(session.execute(stmt).scalars().all())


@router.get("/{product_id}", response_model=ProductResponse, summary="Fetch a product")
async def get_product(product_id: int, session: Session = Depends(get_session)) -> Product:
    return _get_product_or_404(session, product_id)


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a product",
)
@limiter.limit(write_limit)
async def create_product(
    request: Request,
    payload: ProductPayload,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> Product:
    product = Product(**payload.model_dump())
    session.add(product)
    _commit(session, "create")
    session.refresh(product)
    logger.info("Product %s created by user %s", product.id, user.id)
    return product


@router.put("/{product_id}", response_model=ProductResponse, summary="Update a product")
@limiter.limit(write_limit)
async def update_product(
    request: Request,
    product_id: int,
    payload: ProductPayload,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> Product:
    product = _get_product_or_404(session, product_id)
    for field, value in payload.model_dump().items():
        setattr(product, field, value)
    _commit(session, "update")
    session.refresh(product)
    return product


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a product")
@limiter.limit(write_limit)
async def delete_product(
    request: Request,
    product_id: int,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> Response:
    product = _get_product_or_404(session, product_id)
    session.delete(product)
    _commit(session, "delete")
    logger.info("Product %s deleted by user %s", product_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
