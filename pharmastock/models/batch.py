"""
Product batch (lot) model with expiry tracking.
"""
from typing import Optional
import uuid
from datetime import date
from decimal import Decimal
from enum import Enum
from sqlalchemy import String, Date, Text, Numeric, ForeignKey, Index, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pharmastock.core.database import Base


class BatchStatus(str, Enum):
    ACTIVE = "Active"
    EXPIRED = "Expired"
    RECALLED = "Recalled"
    QUARANTINED = "Quarantined"


class ProductBatch(Base):
    """Manufacturing batch of a product."""

    __tablename__ = "product_batches"

    product_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("products.id"),
        nullable=False,
        index=True
    )
    batch_number: Mapped[str] = mapped_column(String(100), nullable=False)
    manufacturing_date: Mapped[date] = mapped_column(Date, nullable=False)
    expiry_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    # Overrides the product's base cost when set
    batch_cost_per_strip: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    status: Mapped[str] = mapped_column(String(20), default=BatchStatus.ACTIVE.value, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    product = relationship("Product", back_populates="batches")

    __table_args__ = (
        UniqueConstraint("product_id", "batch_number", name="uq_product_batches_product_batch_number"),
        CheckConstraint(
            "status IN ('Active', 'Expired', 'Recalled', 'Quarantined')",
            name="valid_batch_status"
        ),
        CheckConstraint(
            "batch_cost_per_strip IS NULL OR batch_cost_per_strip > 0",
            name="positive_batch_cost"
        ),
        CheckConstraint("expiry_date > manufacturing_date", name="expiry_after_manufacturing"),
        Index("idx_product_batches_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<ProductBatch(id={self.id}, batch={self.batch_number}, expiry={self.expiry_date})>"

    @property
    def is_active(self) -> bool:
        return self.status == BatchStatus.ACTIVE.value
