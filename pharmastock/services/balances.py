"""
Materialized stock balances.

``products_stock_status`` is kept in step with the ledger: every new ledger
row is applied to it immediately, and the rows of any (product, batch) pair
can be rebuilt from the ledger when documents are edited or deleted.
Both paths go through the rules in ``pharmastock.ledger``.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional
import uuid

from sqlalchemy import select, delete, and_, or_
from sqlalchemy.orm import Session

from pharmastock import ledger
from pharmastock.ledger import BalanceKey, Holding
from pharmastock.logging_config import get_logger
from pharmastock.models.stock import StockTransaction, StockBalance

logger = get_logger("balances")

ProductBatch = tuple[uuid.UUID, uuid.UUID]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _key_of(row: StockBalance) -> BalanceKey:
    return BalanceKey(row.product_id, row.batch_id, row.location_type, row.location_id)


def get_balance_row(db: Session, key: BalanceKey) -> Optional[StockBalance]:
    result = db.execute(
        select(StockBalance).where(
            and_(
                StockBalance.product_id == key.product_id,
                StockBalance.batch_id == key.batch_id,
                StockBalance.location_type == key.location_type,
                StockBalance.location_id == key.location_id
            )
        )
    )
    return result.scalar_one_or_none()


def apply_transaction(db: Session, txn: StockTransaction) -> list[StockBalance]:
    """
    Apply a freshly inserted ledger row to the balance table.

    Flushes after each key so a second line for the same key in the same
    document sees the first one.
    """
    touched = []
    for effect in ledger.movement_effects(txn):
        row = get_balance_row(db, effect.key)
        current = Holding(row.current_quantity_strips, row.cost_per_strip) if row else None

        if current is not None and current.quantity + effect.delta < 0:
            logger.warning(
                f"[LEDGER] Outflow of {-effect.delta} exceeds balance {current.quantity} at "
                f"{effect.key.location_type}:{effect.key.location_id} "
                f"(product={effect.key.product_id}, batch={effect.key.batch_id}, seq={txn.sequence}); clamped to 0"
            )
        elif current is None and not effect.is_inflow:
            logger.warning(
                f"[LEDGER] Outflow of {-effect.delta} from empty key "
                f"{effect.key.location_type}:{effect.key.location_id} (seq={txn.sequence}); opened at 0"
            )

        holding = ledger.next_holding(current, effect)
        if row is None:
            row = StockBalance(
                product_id=effect.key.product_id,
                batch_id=effect.key.batch_id,
                location_type=effect.key.location_type,
                location_id=effect.key.location_id,
            )
            db.add(row)
        row.current_quantity_strips = holding.quantity
        row.cost_per_strip = holding.cost_per_strip
        row.last_updated_at = _now()
        db.flush()
        touched.append(row)

    return touched


def ledger_entries(db: Session, pairs: Optional[Iterable[ProductBatch]] = None) -> list[StockTransaction]:
    """Ledger rows in replay order, optionally limited to some (product, batch) pairs."""
    query = select(StockTransaction).order_by(StockTransaction.sequence)
    if pairs is not None:
        pairs = set(pairs)
        if not pairs:
            return []
        query = query.where(
            or_(*[
                and_(StockTransaction.product_id == product_id, StockTransaction.batch_id == batch_id)
                for product_id, batch_id in pairs
            ])
        )
    return list(db.execute(query).scalars().all())


def materialized(db: Session) -> dict[BalanceKey, Holding]:
    """Current contents of the balance table."""
    rows = db.execute(select(StockBalance)).scalars().all()
    return {_key_of(row): Holding(row.current_quantity_strips, Decimal(row.cost_per_strip)) for row in rows}


def rebuild_pairs(db: Session, pairs: Iterable[ProductBatch]) -> int:
    """
    Recompute every balance row of the given (product, batch) pairs from the ledger.

    Rows whose key no longer appears in the ledger are deleted. Returns the
    number of rows written.
    """
    pairs = set(pairs)
    if not pairs:
        return 0

    replayed = ledger.replay(ledger_entries(db, pairs))

    existing = db.execute(
        select(StockBalance).where(
            or_(*[
                and_(StockBalance.product_id == product_id, StockBalance.batch_id == batch_id)
                for product_id, batch_id in pairs
            ])
        )
    ).scalars().all()

    written = 0
    now = _now()
    for row in existing:
        holding = replayed.pop(_key_of(row), None)
        if holding is None:
            db.delete(row)
            continue
        row.current_quantity_strips = holding.quantity
        row.cost_per_strip = holding.cost_per_strip
        row.last_updated_at = now
        written += 1

    for key, holding in replayed.items():
        db.add(StockBalance(
            product_id=key.product_id,
            batch_id=key.batch_id,
            location_type=key.location_type,
            location_id=key.location_id,
            current_quantity_strips=holding.quantity,
            cost_per_strip=holding.cost_per_strip,
            last_updated_at=now,
        ))
        written += 1

    db.flush()
    logger.info(f"[LEDGER] Rebuilt {written} balance rows for {len(pairs)} product/batch pairs")
    return written


def recalculate_all(db: Session) -> tuple[int, int]:
    """
    Throw away the balance table and rebuild it from the whole ledger.

    Returns (ledger entries replayed, balance rows written). The caller commits.
    """
    entries = ledger_entries(db)
    replayed = ledger.replay(entries)

    db.execute(delete(StockBalance))
    now = _now()
    for key, holding in replayed.items():
        db.add(StockBalance(
            product_id=key.product_id,
            batch_id=key.batch_id,
            location_type=key.location_type,
            location_id=key.location_id,
            current_quantity_strips=holding.quantity,
            cost_per_strip=holding.cost_per_strip,
            last_updated_at=now,
        ))
    db.flush()

    logger.info(f"[LEDGER] Recalculated balances: {len(entries)} entries -> {len(replayed)} rows")
    return len(entries), len(replayed)


def verify(db: Session) -> tuple[int, list[ledger.BalanceMismatch]]:
    """
    Compare the balance table against a full replay of the ledger.

    Returns (number of keys checked, mismatches).
    """
    expected = ledger.replay(ledger_entries(db))
    actual = materialized(db)
    mismatches = ledger.diff_balances(expected, actual)
    checked = len(set(expected) | set(actual))

    if mismatches:
        logger.warning(f"[LEDGER] Balance table drifted from ledger: {len(mismatches)} of {checked} keys differ")
    else:
        logger.info(f"[LEDGER] Balance table consistent with ledger ({checked} keys)")
    return checked, mismatches
