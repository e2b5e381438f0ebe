"""Domain mapping and product catalog models."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class Product(Base):
    __tablename__ = "products"

    product_identifier: Mapped[str] = mapped_column(String, primary_key=True)
    product_name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(String, nullable=False, default="")
    hero_image_url: Mapped[str | None] = mapped_column(String, nullable=True)

    # Decimal major units, e.g. 4.99
    initial_charge_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False
    )
    recurring_charge_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False
    )
    recurring_interval_days: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    domains = relationship("DomainMapping", back_populates="product")


class DomainMapping(Base):
    __tablename__ = "domain_mappings"

    domain_name: Mapped[str] = mapped_column(String, primary_key=True)
    product_identifier: Mapped[str] = mapped_column(
        ForeignKey("products.product_identifier", ondelete="CASCADE"),
        nullable=False,
    )

    product = relationship("Product", back_populates="domains")
