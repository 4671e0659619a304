"""
Catalog reference models: categories, sub-categories, formulations, suppliers.
"""
from typing import Optional
import uuid
from sqlalchemy import String, Text, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pharmastock.core.database import Base


class ProductCategory(Base):
    """Top-level therapeutic or commercial category."""

    __tablename__ = "product_categories"

    category_name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    sub_categories = relationship("ProductSubCategory", back_populates="category")
    products = relationship("Product", back_populates="category")

    def __repr__(self) -> str:
        return f"<ProductCategory(id={self.id}, name={self.category_name})>"


class ProductSubCategory(Base):
    """Sub-category, unique by name within its category."""

    __tablename__ = "product_sub_categories"

    sub_category_name: Mapped[str] = mapped_column(String(255), nullable=False)
    category_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("product_categories.id"),
        nullable=False,
        index=True
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    category = relationship("ProductCategory", back_populates="sub_categories")

    __table_args__ = (
        UniqueConstraint("sub_category_name", "category_id", name="uq_product_sub_categories_name_category"),
    )

    def __repr__(self) -> str:
        return f"<ProductSubCategory(id={self.id}, name={self.sub_category_name})>"


class ProductFormulation(Base):
    """Dosage form such as tablet, syrup or injection."""

    __tablename__ = "product_formulations"

    formulation_name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<ProductFormulation(id={self.id}, name={self.formulation_name})>"


class Supplier(Base):
    """Supplier referenced by goods received notes."""

    __tablename__ = "suppliers"

    supplier_name: Mapped[str] = mapped_column(String(255), nullable=False)
    supplier_code: Mapped[Optional[str]] = mapped_column(String(50), unique=True, nullable=True)
    contact_person: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    purchases = relationship("StockPurchase", back_populates="supplier")

    def __repr__(self) -> str:
        return f"<Supplier(id={self.id}, code={self.supplier_code}, name={self.supplier_name})>"
