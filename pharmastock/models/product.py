"""
Product catalog model with its packaging units and reusable packaging templates.
"""
from typing import Optional
import uuid
from decimal import Decimal
from sqlalchemy import String, Integer, Boolean, ForeignKey, Index, Text, Numeric, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pharmastock.core.database import Base


class Product(Base):
    """Product master record. Stock for it is always counted in its smallest unit."""

    __tablename__ = "products"

    # Product identification
    product_code: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    product_name: Mapped[str] = mapped_column(String(500), nullable=False)
    generic_name: Mapped[str] = mapped_column(String(500), nullable=False)
    manufacturer: Mapped[str] = mapped_column(String(255), nullable=False)

    # Classification
    category_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("product_categories.id"),
        nullable=False,
        index=True
    )
    sub_category_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("product_sub_categories.id"),
        nullable=True,
        index=True
    )
    formulation_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("product_formulations.id"),
        nullable=False,
        index=True
    )

    # Costing and units
    unit_of_measure_smallest: Mapped[str] = mapped_column(String(50), default="Strip", nullable=False)
    base_cost_per_strip: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    # Additional information
    storage_conditions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    # Stock thresholds
    min_stock_level_godown: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    min_stock_level_mr: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    lead_time_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    category = relationship("ProductCategory", back_populates="products")
    sub_category = relationship("ProductSubCategory")
    formulation = relationship("ProductFormulation")
    packaging_units = relationship(
        "PackagingUnit",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="PackagingUnit.order_in_hierarchy"
    )
    batches = relationship("ProductBatch", back_populates="product")

    __table_args__ = (
        CheckConstraint("base_cost_per_strip >= 0", name="non_negative_base_cost"),
        CheckConstraint("min_stock_level_godown >= 0", name="non_negative_min_godown"),
        CheckConstraint("min_stock_level_mr >= 0", name="non_negative_min_mr"),
        CheckConstraint("lead_time_days >= 0", name="non_negative_lead_time"),
        Index("idx_products_is_active", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, code={self.product_code}, name={self.product_name})>"

    @property
    def category_name(self) -> Optional[str]:
        return self.category.category_name if self.category else None


class PackagingUnit(Base):
    """One level of a product's packaging hierarchy (strip, box, carton...)."""

    __tablename__ = "product_packaging_units"

    product_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    template_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("packaging_templates.id", ondelete="SET NULL"),
        nullable=True
    )

    unit_name: Mapped[str] = mapped_column(String(100), nullable=False)
    conversion_factor_to_strips: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    is_base_unit: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    order_in_hierarchy: Mapped[int] = mapped_column(Integer, nullable=False)

    # Which unit forms preselect
    default_purchase_unit: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    default_sales_unit_mr: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    default_sales_unit_direct: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    product = relationship("Product", back_populates="packaging_units")

    __table_args__ = (
        UniqueConstraint("product_id", "unit_name", name="uq_product_packaging_units_product_unit"),
        CheckConstraint("conversion_factor_to_strips > 0", name="positive_conversion_factor"),
        CheckConstraint("order_in_hierarchy > 0", name="positive_order"),
        Index("idx_product_packaging_units_order", "product_id", "order_in_hierarchy"),
    )

    def __repr__(self) -> str:
        return f"<PackagingUnit(product={self.product_id}, unit={self.unit_name}, factor={self.conversion_factor_to_strips})>"


class PackagingTemplate(Base):
    """One unit row of a named, reusable packaging hierarchy."""

    __tablename__ = "packaging_templates"

    template_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    unit_name: Mapped[str] = mapped_column(String(100), nullable=False)
    conversion_factor_to_strips: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    is_base_unit: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    order_in_hierarchy: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    __table_args__ = (
        UniqueConstraint("template_name", "unit_name", name="uq_packaging_templates_template_unit"),
        CheckConstraint("conversion_factor_to_strips > 0", name="positive_conversion_factor"),
        CheckConstraint("order_in_hierarchy > 0", name="positive_order"),
    )

    def __repr__(self) -> str:
        return f"<PackagingTemplate(template={self.template_name}, unit={self.unit_name})>"
