"""
Stock report.

Positions are computed by replaying the filtered ledger view rather than by
reading the balance table, so a report always reflects the ledger even if
the materialized rows have drifted.
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional
import uuid

from sqlalchemy import select, and_, or_
from sqlalchemy.orm import Session

from pharmastock import ledger
from pharmastock.ledger import BalanceKey, LocationType
from pharmastock.logging_config import get_logger
from pharmastock.models.batch import ProductBatch
from pharmastock.models.catalog import ProductCategory
from pharmastock.models.product import Product
from pharmastock.models.stock import StockBalance, StockTransaction
from pharmastock.schemas.stock import StockPosition, StockSummary
from pharmastock.status import (
    StockStatus, expiry_horizon, expiry_status, min_level_for, stock_status
)

logger = get_logger("report")

ALL_LOCATIONS = "ALL"
MR_PREFIX = "MR_"


@dataclass
class StockFilters:
    """
    Report filters.

    ``location`` is ALL, GODOWN, MR (every rep) or MR_<id> (one rep).
    ``product`` and ``batch`` match by substring, case-insensitively.
    """
    location: str = ALL_LOCATIONS
    product: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    batch: Optional[str] = None
    expiry_from: Optional[date] = None
    expiry_to: Optional[date] = None


def matches_location(location_type: str, location_id: str, location: str) -> bool:
    location = (location or ALL_LOCATIONS).strip()
    if location.upper() == ALL_LOCATIONS:
        return True
    if location.upper() == LocationType.GODOWN.value:
        return location_type == LocationType.GODOWN.value
    if location.upper() == LocationType.MR.value:
        return location_type == LocationType.MR.value
    if location.upper().startswith(MR_PREFIX):
        return location_type == LocationType.MR.value and location_id == location[len(MR_PREFIX):]
    return False


def _catalog_conditions(filters: StockFilters) -> list:
    conditions = []
    if filters.product:
        pattern = f"%{filters.product}%"
        conditions.append(
            or_(
                Product.product_name.ilike(pattern),
                Product.product_code.ilike(pattern),
                Product.generic_name.ilike(pattern)
            )
        )
    if filters.category_id:
        conditions.append(Product.category_id == filters.category_id)
    if filters.batch:
        conditions.append(ProductBatch.batch_number.ilike(f"%{filters.batch}%"))
    if filters.expiry_from:
        conditions.append(ProductBatch.expiry_date >= filters.expiry_from)
    if filters.expiry_to:
        conditions.append(ProductBatch.expiry_date <= filters.expiry_to)
    return conditions


def transactions_view_query(filters: Optional[StockFilters] = None):
    """
    Ledger rows joined with product, category and batch details.

    Location filtering happens after replay, since it applies to the
    balance key rather than to either side of a transfer.
    """
    query = (
        select(StockTransaction, Product, ProductBatch, ProductCategory.category_name)
        .join(Product, StockTransaction.product_id == Product.id)
        .join(ProductBatch, StockTransaction.batch_id == ProductBatch.id)
        .outerjoin(ProductCategory, Product.category_id == ProductCategory.id)
    )
    if filters:
        conditions = _catalog_conditions(filters)
        if conditions:
            query = query.where(and_(*conditions))
    return query


def build_position(key: BalanceKey, quantity: int, cost: Decimal, product: Product, batch: ProductBatch,
                   category_name: Optional[str], today: Optional[date] = None) -> StockPosition:
    min_level = min_level_for(key.location_type, product.min_stock_level_godown, product.min_stock_level_mr)
    cost = Decimal(cost)
    return StockPosition(
        product_id=product.id,
        product_code=product.product_code,
        product_name=product.product_name,
        generic_name=product.generic_name,
        category_name=category_name,
        batch_id=batch.id,
        batch_number=batch.batch_number,
        expiry_date=batch.expiry_date,
        location_type=key.location_type,
        location_id=key.location_id,
        current_quantity_strips=quantity,
        cost_per_strip=cost,
        total_value=Decimal(quantity) * cost,
        min_stock_level=min_level,
        stock_status=stock_status(quantity, min_level),
        expiry_status=expiry_status(batch.expiry_date, today),
    )


def _sort(positions: list[StockPosition]) -> list[StockPosition]:
    return sorted(
        positions,
        key=lambda p: (p.product_name.lower(), p.expiry_date, p.batch_number, p.location_type, p.location_id)
    )


def aggregate_positions(db: Session, filters: Optional[StockFilters] = None,
                        today: Optional[date] = None) -> list[StockPosition]:
    """Replay the filtered ledger and return every key that currently holds stock."""
    filters = filters or StockFilters()
    rows = db.execute(transactions_view_query(filters).order_by(StockTransaction.sequence)).all()

    details = {}
    entries = []
    for txn, product, batch, category_name in rows:
        entries.append(txn)
        details[(txn.product_id, txn.batch_id)] = (product, batch, category_name)

    holdings = ledger.positive_holdings(ledger.replay(entries))

    positions = []
    for key, holding in holdings.items():
        if not matches_location(key.location_type, key.location_id, filters.location):
            continue
        product, batch, category_name = details[(key.product_id, key.batch_id)]
        positions.append(build_position(key, holding.quantity, holding.cost_per_strip, product, batch, category_name, today))

    logger.debug(f"[REPORT] {len(entries)} ledger entries -> {len(positions)} positions (location={filters.location})")
    return _sort(positions)


def balance_positions(db: Session, filters: Optional[StockFilters] = None, include_empty: bool = False,
                      today: Optional[date] = None) -> list[StockPosition]:
    """Positions read from the materialized balance table."""
    filters = filters or StockFilters()
    query = (
        select(StockBalance, Product, ProductBatch, ProductCategory.category_name)
        .join(Product, StockBalance.product_id == Product.id)
        .join(ProductBatch, StockBalance.batch_id == ProductBatch.id)
        .outerjoin(ProductCategory, Product.category_id == ProductCategory.id)
    )
    conditions = _catalog_conditions(filters)
    if not include_empty:
        conditions.append(StockBalance.current_quantity_strips > 0)
    if conditions:
        query = query.where(and_(*conditions))

    positions = []
    for row, product, batch, category_name in db.execute(query).all():
        key = BalanceKey(row.product_id, row.batch_id, row.location_type, row.location_id)
        if not matches_location(key.location_type, key.location_id, filters.location):
            continue
        positions.append(build_position(key, row.current_quantity_strips, row.cost_per_strip, product, batch, category_name, today))
    return _sort(positions)


def summarize(positions: Iterable[StockPosition], today: Optional[date] = None) -> StockSummary:
    """
    Headline figures for a set of positions.

    ``expiring_soon_items`` counts every position whose batch expires within
    the warning window, already-expired batches included.
    """
    positions = list(positions)
    horizon = expiry_horizon(today)
    return StockSummary(
        total_products=len({p.product_id for p in positions}),
        total_batches=len({p.batch_id for p in positions}),
        total_value=sum((p.total_value for p in positions), Decimal("0")),
        low_stock_items=sum(1 for p in positions if p.stock_status == StockStatus.LOW),
        expiring_soon_items=sum(1 for p in positions if p.expiry_date <= horizon),
    )
