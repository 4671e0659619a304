"""
Stock ledger, balance and report endpoints.
"""
from typing import Optional
from datetime import date, datetime, time, timedelta
import uuid
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy import and_
from sqlalchemy.orm import Session

from pharmastock.core.config import settings
from pharmastock.core.database import get_db
from pharmastock.ledger import TransactionType
from pharmastock.logging_config import get_logger
from pharmastock.models.stock import StockTransaction
from pharmastock.schemas.stock import (
    StockTransactionView,
    StockTransactionListResponse,
    StockPosition,
    StockReportResponse,
    RecalculateResponse,
    BalanceMismatchResponse,
    VerifyResponse
)
from pharmastock.services import balances
from pharmastock.services.report import (
    StockFilters, aggregate_positions, balance_positions, matches_location, summarize, transactions_view_query
)

logger = get_logger("api.stock")

router = APIRouter(prefix="/stock", tags=["Stock"])


def stock_filters(
    location: str = Query("ALL", description="ALL, GODOWN, MR or MR_<rep id>"),
    product: Optional[str] = Query(None, description="Product name, generic name or code"),
    category_id: Optional[uuid.UUID] = None,
    batch: Optional[str] = Query(None, description="Batch number"),
    expiry_from: Optional[date] = None,
    expiry_to: Optional[date] = None
) -> StockFilters:
    return StockFilters(
        location=location,
        product=product,
        category_id=category_id,
        batch=batch,
        expiry_from=expiry_from,
        expiry_to=expiry_to
    )


@router.get("/transactions", response_model=StockTransactionListResponse)
def list_transactions(
    filters: StockFilters = Depends(stock_filters),
    transaction_type: Optional[TransactionType] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: Session = Depends(get_db)
):
    """
    Ledger entries with product and batch details, newest first.

    The location filter matches either side of an entry.
    """
    query = transactions_view_query(filters)

    conditions = []
    if transaction_type:
        conditions.append(StockTransaction.transaction_type == transaction_type.value)
    if date_from:
        conditions.append(StockTransaction.transaction_date >= datetime.combine(date_from, time.min))
    if date_to:
        conditions.append(StockTransaction.transaction_date < datetime.combine(date_to + timedelta(days=1), time.min))
    if conditions:
        query = query.where(and_(*conditions))

    rows = db.execute(query.order_by(StockTransaction.sequence.desc())).all()

    items = []
    for txn, product, batch, category_name in rows:
        if filters.location.upper() != "ALL" and not _touches_location(txn, filters.location):
            continue
        view = StockTransactionView.model_validate({
            **_txn_fields(txn),
            "product_code": product.product_code,
            "product_name": product.product_name,
            "generic_name": product.generic_name,
            "category_name": category_name,
            "batch_number": batch.batch_number,
            "expiry_date": batch.expiry_date,
        })
        items.append(view)

    total = len(items)
    offset = (page - 1) * page_size
    return StockTransactionListResponse(
        items=items[offset:offset + page_size],
        total=total,
        page=page,
        page_size=page_size,
        pages=(total + page_size - 1) // page_size
    )


def _txn_fields(txn: StockTransaction) -> dict:
    return {column.key: getattr(txn, column.key) for column in StockTransaction.__table__.columns}


def _touches_location(txn: StockTransaction, location: str) -> bool:
    sides = [
        (txn.location_type_source, txn.location_id_source),
        (txn.location_type_destination, txn.location_id_destination),
    ]
    return any(
        location_type is not None and matches_location(location_type, location_id, location)
        for location_type, location_id in sides
    )


@router.get("/balances", response_model=list[StockPosition])
def list_balances(
    filters: StockFilters = Depends(stock_filters),
    include_empty: bool = False,
    db: Session = Depends(get_db)
):
    """Current stock from the materialized balance table."""
    return balance_positions(db, filters, include_empty=include_empty)


@router.get("/report", response_model=StockReportResponse)
def stock_report(filters: StockFilters = Depends(stock_filters), db: Session = Depends(get_db)):
    """
    Stock report computed by replaying the ledger.

    Returns one row per product, batch and location holding stock, with
    stock and expiry badges, plus summary figures.
    """
    positions = aggregate_positions(db, filters)
    return StockReportResponse(items=positions, summary=summarize(positions))


@router.post("/recalculate", response_model=RecalculateResponse, status_code=status.HTTP_200_OK)
def recalculate_balances(db: Session = Depends(get_db)):
    """Rebuild the balance table from the full ledger."""
    logger.info("[STOCK] Balance recalculation requested")
    entries, rows = balances.recalculate_all(db)
    db.commit()
    return RecalculateResponse(ledger_entries=entries, balance_rows=rows)


@router.get("/verify", response_model=VerifyResponse)
def verify_balances(db: Session = Depends(get_db)):
    """Compare the balance table with a replay of the ledger."""
    checked, mismatches = balances.verify(db)
    return VerifyResponse(
        consistent=not mismatches,
        checked_keys=checked,
        mismatches=[
            BalanceMismatchResponse(
                product_id=m.key.product_id,
                batch_id=m.key.batch_id,
                location_type=m.key.location_type,
                location_id=m.key.location_id,
                expected_quantity=m.expected_quantity,
                actual_quantity=m.actual_quantity,
                expected_cost=m.expected_cost,
                actual_cost=m.actual_cost
            )
            for m in mismatches
        ]
    )
