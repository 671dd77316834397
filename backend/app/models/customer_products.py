"""Association model between customers and products."""
from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Integer
from sqlalchemy.orm import relationship

from . import Base


class CustomerProduct(Base):
    """Join row meaning "customer is associated with product".

    The composite primary key makes every ``(customer_id, product_id)`` pair
    unique. Rows carry no other attributes.
    """

    __tablename__ = "customer_products"

    customer_id = Column(
        Integer,
        ForeignKey("customers.id", ondelete="CASCADE"),
        primary_key=True,
    )
    product_id = Column(
        Integer,
        ForeignKey("products.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    customer = relationship("Customer", back_populates="product_links")
    product = relationship("Product", back_populates="customer_links")

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"CustomerProduct(customer_id={self.customer_id!s}, product_id={self.product_id!s})"
