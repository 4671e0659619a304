"""
Stock movement documents, the unified stock ledger and the materialized balance table.
"""
from typing import Optional
import uuid
from datetime import datetime
from decimal import Decimal
from sqlalchemy import String, Integer, Text, DateTime, Numeric, ForeignKey, Index, CheckConstraint, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pharmastock.core.database import Base


class StockPurchase(Base):
    """One goods-received line. Lines of the same GRN share a purchase_group_id."""

    __tablename__ = "stock_purchases"

    purchase_group_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    product_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    batch_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("product_batches.id", ondelete="RESTRICT"), nullable=False, index=True)
    supplier_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("suppliers.id"), nullable=True)

    quantity_strips: Mapped[int] = mapped_column(Integer, nullable=False)
    cost_per_strip: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    purchase_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now(), nullable=False, index=True)

    # GRN number
    reference_document_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    product = relationship("Product")
    batch = relationship("ProductBatch")
    supplier = relationship("Supplier", back_populates="purchases")

    __table_args__ = (
        CheckConstraint("quantity_strips > 0", name="positive_purchase_quantity"),
        CheckConstraint("cost_per_strip > 0", name="positive_purchase_cost"),
    )


class StockSale(Base):
    """Outbound line: dispatch to a rep, direct godown sale or a sale made by a rep."""

    __tablename__ = "stock_sales"

    sale_group_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    product_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    batch_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("product_batches.id", ondelete="RESTRICT"), nullable=False, index=True)

    transaction_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    quantity_strips: Mapped[int] = mapped_column(Integer, nullable=False)
    location_type_source: Mapped[str] = mapped_column(String(20), nullable=False)
    location_id_source: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    location_type_destination: Mapped[str] = mapped_column(String(20), nullable=False)
    location_id_destination: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    sale_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now(), nullable=False, index=True)
    reference_document_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    cost_per_strip: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    product = relationship("Product")
    batch = relationship("ProductBatch")

    __table_args__ = (
        CheckConstraint(
            "transaction_type IN ('DISPATCH_TO_MR', 'SALE_DIRECT_GODOWN', 'SALE_BY_MR')",
            name="valid_sale_transaction_type"
        ),
        CheckConstraint("location_type_source IN ('GODOWN', 'MR')", name="valid_sale_location_source"),
        CheckConstraint("location_type_destination IN ('MR', 'CUSTOMER')", name="valid_sale_location_destination"),
        CheckConstraint("quantity_strips > 0", name="positive_sale_quantity"),
        CheckConstraint("cost_per_strip > 0", name="positive_sale_cost"),
    )


class StockAdjustment(Base):
    """Returns, write-offs, replacements and opening stock."""

    __tablename__ = "stock_adjustments"

    adjustment_group_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    product_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    batch_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("product_batches.id", ondelete="RESTRICT"), nullable=False, index=True)

    adjustment_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    quantity_strips: Mapped[int] = mapped_column(Integer, nullable=False)
    location_type_source: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    location_id_source: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    location_type_destination: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    location_id_destination: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    adjustment_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now(), nullable=False, index=True)
    reference_document_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    cost_per_strip: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    product = relationship("Product")
    batch = relationship("ProductBatch")

    __table_args__ = (
        CheckConstraint("quantity_strips > 0", name="positive_adjustment_quantity"),
        CheckConstraint("cost_per_strip > 0", name="positive_adjustment_cost"),
    )


class StockTransaction(Base):
    """
    Append-only stock ledger.

    Each purchase, sale and adjustment line writes exactly one row here.
    Quantities are always positive; the source and destination columns only
    name stock-holding locations (GODOWN, MR). Suppliers and customers are
    kept in the counterparty columns.
    """

    __tablename__ = "stock_transactions"

    # Insertion order used when replaying the ledger
    sequence: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)

    transaction_group_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    document_type: Mapped[str] = mapped_column(String(20), nullable=False)  # PURCHASE, SALE, ADJUSTMENT
    document_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)

    product_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    batch_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("product_batches.id", ondelete="RESTRICT"), nullable=False, index=True)

    transaction_type: Mapped[str] = mapped_column(String(50), nullable=False)
    quantity_strips: Mapped[int] = mapped_column(Integer, nullable=False)

    location_type_source: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    location_id_source: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    location_type_destination: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    location_id_destination: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    counterparty_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    counterparty_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    cost_per_strip_at_transaction: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    reference_document_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    transaction_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now(), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    product = relationship("Product")
    batch = relationship("ProductBatch")

    __table_args__ = (
        CheckConstraint("quantity_strips > 0", name="positive_transaction_quantity"),
        Index("idx_stock_transactions_type", "transaction_type"),
        Index("idx_stock_transactions_date", "transaction_date"),
    )

    def __repr__(self) -> str:
        return f"<StockTransaction(seq={self.sequence}, type={self.transaction_type}, qty={self.quantity_strips})>"


class StockBalance(Base):
    """Current stock per (product, batch, location), maintained from the ledger."""

    __tablename__ = "products_stock_status"

    product_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("products.id"), nullable=False, index=True)
    batch_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("product_batches.id"), nullable=False, index=True)
    location_type: Mapped[str] = mapped_column(String(20), nullable=False)
    location_id: Mapped[str] = mapped_column(String(100), nullable=False)

    current_quantity_strips: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    cost_per_strip: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0, nullable=False)
    last_updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now(), nullable=False)

    product = relationship("Product")
    batch = relationship("ProductBatch")

    __table_args__ = (
        UniqueConstraint(
            "product_id", "batch_id", "location_type", "location_id",
            name="uq_products_stock_status_key"
        ),
        CheckConstraint("current_quantity_strips >= 0", name="non_negative_quantity"),
        Index("idx_products_stock_status_location", "location_type", "location_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<StockBalance(product={self.product_id}, batch={self.batch_id}, "
            f"location={self.location_type}:{self.location_id}, qty={self.current_quantity_strips})>"
        )

    @property
    def total_value(self) -> Decimal:
        return Decimal(self.current_quantity_strips) * Decimal(self.cost_per_strip)
