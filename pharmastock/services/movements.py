"""
Stock movement documents.

Purchases, sales and adjustments are recorded as groups of lines. Each line
writes one document row (stock_purchases / stock_sales / stock_adjustments)
and one ledger row, and the ledger row is applied to the balance table in
the same transaction.

Edits replace a whole group: the old document and ledger rows are deleted,
the new ones inserted at the group's old place in the ledger, and every
affected (product, batch) pair is rebuilt from the ledger.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
import uuid

from sqlalchemy import select, delete, func
from sqlalchemy.orm import Session

from pharmastock import ledger, packaging
from pharmastock.core.config import settings
from pharmastock.error_handlers import BusinessRuleError, ResourceNotFoundError
from pharmastock.ledger import CounterpartyType, LocationType, TransactionType
from pharmastock.logging_config import get_logger
from pharmastock.models.batch import BatchStatus, ProductBatch
from pharmastock.models.catalog import Supplier
from pharmastock.models.product import PackagingUnit, Product
from pharmastock.models.stock import StockAdjustment, StockPurchase, StockSale, StockTransaction
from pharmastock.schemas.stock import (
    DirectSaleCreate, DispatchCreate, MovementLine, MRSaleCreate, OpeningStockCreate,
    PurchaseCreate, ReplacementCreate, ReturnCreate, ReturnSource, SaleReplace, WriteOffCreate
)
from pharmastock.services import balances

logger = get_logger("movements")

PURCHASE = "PURCHASE"
SALE = "SALE"
ADJUSTMENT = "ADJUSTMENT"

SALE_TYPES = {
    TransactionType.DISPATCH_TO_MR,
    TransactionType.SALE_DIRECT_GODOWN,
    TransactionType.SALE_BY_MR,
}

Location = tuple[LocationType, str]
Counterparty = tuple[CounterpartyType, Optional[str]]


@dataclass
class LinePlan:
    """A validated request line with the ledger route it will take."""
    line: MovementLine
    transaction_type: TransactionType
    source: Optional[Location] = None
    destination: Optional[Location] = None
    counterparty: Optional[Counterparty] = None


@dataclass
class GroupHeader:
    reference_document_id: Optional[str] = None
    transaction_date: Optional[datetime] = None
    notes: Optional[str] = None
    supplier_id: Optional[uuid.UUID] = None


def godown() -> Location:
    return LocationType.GODOWN, settings.godown_location_id


def mr(mr_id: Optional[str]) -> Location:
    if not mr_id:
        raise BusinessRuleError("A medical representative id is required for this movement")
    return LocationType.MR, mr_id


def _location(location_type: LocationType, mr_id: Optional[str]) -> Location:
    return godown() if location_type == LocationType.GODOWN else mr(mr_id)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def next_sequence(db: Session) -> int:
    current = db.execute(select(func.max(StockTransaction.sequence))).scalar()
    return (current or 0) + 1


# ----------------------------------------------------------------------------
# Line resolution
# ----------------------------------------------------------------------------

@dataclass
class ResolvedLine:
    product: Product
    batch: ProductBatch
    quantity_strips: int
    cost_per_strip: Decimal


def resolve_cost(line_cost: Optional[Decimal], batch: ProductBatch, product: Product) -> Decimal:
    """Explicit line cost, else the batch cost, else the product's base cost."""
    for candidate in (line_cost, batch.batch_cost_per_strip, product.base_cost_per_strip):
        if candidate is not None and Decimal(candidate) > 0:
            return Decimal(candidate)
    raise BusinessRuleError(
        f"No cost per strip available for product {product.product_code} batch {batch.batch_number}"
    )


def resolve_line(db: Session, line: MovementLine, inbound: bool = False) -> ResolvedLine:
    product = db.get(Product, line.product_id)
    if product is None:
        raise ResourceNotFoundError("Product", line.product_id)

    batch = db.get(ProductBatch, line.batch_id)
    if batch is None:
        raise ResourceNotFoundError("Batch", line.batch_id)
    if batch.product_id != product.id:
        raise BusinessRuleError(
            f"Batch {batch.batch_number} does not belong to product {product.product_code}"
        )

    if inbound:
        if not product.is_active:
            raise BusinessRuleError(f"Product {product.product_code} is inactive")
        if batch.status != BatchStatus.ACTIVE.value:
            raise BusinessRuleError(f"Batch {batch.batch_number} is {batch.status} and cannot receive stock")

    factor = None
    if line.packaging_unit_id is not None:
        unit = db.get(PackagingUnit, line.packaging_unit_id)
        if unit is None:
            raise ResourceNotFoundError("PackagingUnit", line.packaging_unit_id)
        if unit.product_id != product.id:
            raise BusinessRuleError(
                f"Packaging unit {unit.unit_name} does not belong to product {product.product_code}"
            )
        factor = unit.conversion_factor_to_strips

    try:
        strips = packaging.to_strips(line.quantity, factor)
    except ValueError as e:
        raise BusinessRuleError(str(e))
    if strips <= 0:
        raise BusinessRuleError("Movement quantity must be greater than zero")

    return ResolvedLine(product, batch, strips, resolve_cost(line.cost_per_strip, batch, product))


# ----------------------------------------------------------------------------
# Group writing
# ----------------------------------------------------------------------------

def _document_sides(plan: LinePlan) -> tuple[Optional[str], Optional[str], Optional[str], Optional[str]]:
    """
    Source and destination for the document row.

    Unlike the ledger, documents also name the external side, so a supplier
    appears as the source of a purchase and a customer as the destination
    of a sale.
    """
    src_type = plan.source[0].value if plan.source else None
    src_id = plan.source[1] if plan.source else None
    dst_type = plan.destination[0].value if plan.destination else None
    dst_id = plan.destination[1] if plan.destination else None

    if plan.counterparty is not None:
        party_type, party_id = plan.counterparty
        if plan.destination is None:
            dst_type, dst_id = party_type.value, party_id
        elif plan.source is None:
            src_type, src_id = party_type.value, party_id
    return src_type, src_id, dst_type, dst_id


def _document_row(document_type: str, group_id: uuid.UUID, plan: LinePlan, resolved: ResolvedLine,
                  header: GroupHeader, when: datetime):
    src_type, src_id, dst_type, dst_id = _document_sides(plan)
    common = dict(
        product_id=resolved.product.id,
        batch_id=resolved.batch.id,
        quantity_strips=resolved.quantity_strips,
        cost_per_strip=resolved.cost_per_strip,
        reference_document_id=header.reference_document_id,
        notes=plan.line.notes or header.notes,
    )
    if document_type == PURCHASE:
        return StockPurchase(
            purchase_group_id=group_id,
            supplier_id=header.supplier_id,
            purchase_date=when,
            **common
        )
    if document_type == SALE:
        return StockSale(
            sale_group_id=group_id,
            transaction_type=plan.transaction_type.value,
            location_type_source=src_type,
            location_id_source=src_id,
            location_type_destination=dst_type,
            location_id_destination=dst_id,
            sale_date=when,
            **common
        )
    return StockAdjustment(
        adjustment_group_id=group_id,
        adjustment_type=plan.transaction_type.value,
        location_type_source=src_type,
        location_id_source=src_id,
        location_type_destination=dst_type,
        location_id_destination=dst_id,
        adjustment_date=when,
        **common
    )


def write_group(db: Session, document_type: str, group_id: uuid.UUID, plans: list[LinePlan],
                header: GroupHeader, apply: bool = True,
                sequences: Optional[list[int]] = None) -> list[StockTransaction]:
    """
    Insert document and ledger rows for every planned line.

    With ``apply`` each ledger row updates the balance table as it is
    written; without it the caller is expected to rebuild the affected
    pairs afterwards. ``sequences`` places the lines at given ledger
    positions instead of appending them.
    """
    when = header.transaction_date or _now()
    written = []
    for index, plan in enumerate(plans):
        resolved = resolve_line(
            db, plan.line,
            inbound=plan.transaction_type in (
                TransactionType.STOCK_IN_GODOWN,
                TransactionType.OPENING_STOCK_GODOWN,
                TransactionType.OPENING_STOCK_MR,
            )
        )

        document = _document_row(document_type, group_id, plan, resolved, header, when)
        db.add(document)
        db.flush()

        txn = StockTransaction(
            sequence=sequences[index] if sequences else next_sequence(db),
            transaction_group_id=group_id,
            document_type=document_type,
            document_id=document.id,
            product_id=resolved.product.id,
            batch_id=resolved.batch.id,
            transaction_type=plan.transaction_type.value,
            quantity_strips=resolved.quantity_strips,
            location_type_source=plan.source[0].value if plan.source else None,
            location_id_source=plan.source[1] if plan.source else None,
            location_type_destination=plan.destination[0].value if plan.destination else None,
            location_id_destination=plan.destination[1] if plan.destination else None,
            counterparty_type=plan.counterparty[0].value if plan.counterparty else None,
            counterparty_id=plan.counterparty[1] if plan.counterparty else None,
            cost_per_strip_at_transaction=resolved.cost_per_strip,
            reference_document_id=header.reference_document_id,
            transaction_date=when,
            notes=plan.line.notes or header.notes,
        )
        ledger.validate_entry(txn)
        db.add(txn)
        db.flush()

        if apply:
            balances.apply_transaction(db, txn)
        written.append(txn)

    return written


def group_transactions(db: Session, group_id: uuid.UUID, document_type: Optional[str] = None) -> list[StockTransaction]:
    query = select(StockTransaction).where(StockTransaction.transaction_group_id == group_id)
    if document_type:
        query = query.where(StockTransaction.document_type == document_type)
    return list(db.execute(query.order_by(StockTransaction.sequence)).scalars().all())


@dataclass
class RemovedGroup:
    pairs: set[balances.ProductBatch]
    sequences: list[int]
    transaction_date: datetime


def _remove_group(db: Session, document_type: str, group_id: uuid.UUID) -> RemovedGroup:
    """Delete a group's ledger and document rows, remembering where they sat in the ledger."""
    existing = group_transactions(db, group_id, document_type)
    if not existing:
        raise ResourceNotFoundError(document_type.title(), group_id)

    removed = RemovedGroup(
        pairs={(t.product_id, t.batch_id) for t in existing},
        sequences=[t.sequence for t in existing],
        transaction_date=existing[0].transaction_date,
    )
    db.execute(delete(StockTransaction).where(StockTransaction.transaction_group_id == group_id))
    if document_type == PURCHASE:
        db.execute(delete(StockPurchase).where(StockPurchase.purchase_group_id == group_id))
    elif document_type == SALE:
        db.execute(delete(StockSale).where(StockSale.sale_group_id == group_id))
    else:
        db.execute(delete(StockAdjustment).where(StockAdjustment.adjustment_group_id == group_id))
    db.flush()
    return removed


def _reserve_sequences(db: Session, freed: list[int], count: int) -> list[int]:
    """
    Ledger positions for ``count`` replacement lines.

    The freed positions are reused first. When the group grows, every later
    row moves up to open a gap right after the last freed position, highest
    sequence first so the unique constraint holds at each flush.
    """
    slots = freed[:count]
    extra = count - len(slots)
    if extra > 0:
        last = freed[-1]
        later = db.execute(
            select(StockTransaction)
            .where(StockTransaction.sequence > last)
            .order_by(StockTransaction.sequence.desc())
        ).scalars().all()
        for txn in later:
            txn.sequence += extra
            db.flush()
        slots += list(range(last + 1, last + 1 + extra))
    return slots


def _record(db: Session, document_type: str, plans: list[LinePlan], header: GroupHeader) -> uuid.UUID:
    group_id = uuid.uuid4()
    written = write_group(db, document_type, group_id, plans, header)
    db.commit()
    logger.info(
        f"[STOCK] Recorded {document_type.lower()} group {group_id}: {len(written)} lines, "
        f"{sum(t.quantity_strips for t in written)} strips"
    )
    return group_id


def _replace(db: Session, document_type: str, group_id: uuid.UUID, plans: list[LinePlan],
             header: GroupHeader) -> uuid.UUID:
    removed = _remove_group(db, document_type, group_id)
    if header.transaction_date is None:
        header.transaction_date = removed.transaction_date

    sequences = _reserve_sequences(db, removed.sequences, len(plans))
    written = write_group(db, document_type, group_id, plans, header, apply=False, sequences=sequences)
    new_pairs = {(t.product_id, t.batch_id) for t in written}
    balances.rebuild_pairs(db, removed.pairs | new_pairs)
    db.commit()
    logger.info(f"[STOCK] Replaced {document_type.lower()} group {group_id} with {len(written)} lines")
    return group_id


def delete_group(db: Session, document_type: str, group_id: uuid.UUID) -> None:
    removed = _remove_group(db, document_type, group_id)
    balances.rebuild_pairs(db, removed.pairs)
    db.commit()
    logger.info(f"[STOCK] Deleted {document_type.lower()} group {group_id}")


# ----------------------------------------------------------------------------
# Purchases
# ----------------------------------------------------------------------------

def _purchase_plans(db: Session, data: PurchaseCreate) -> tuple[list[LinePlan], GroupHeader]:
    if data.supplier_id is not None and db.get(Supplier, data.supplier_id) is None:
        raise ResourceNotFoundError("Supplier", data.supplier_id)
    party = (CounterpartyType.SUPPLIER, str(data.supplier_id) if data.supplier_id else None)
    plans = [
        LinePlan(line, TransactionType.STOCK_IN_GODOWN, destination=godown(), counterparty=party)
        for line in data.lines
    ]
    header = GroupHeader(data.grn_number, data.purchase_date, data.notes, data.supplier_id)
    return plans, header


def record_purchase(db: Session, data: PurchaseCreate) -> uuid.UUID:
    plans, header = _purchase_plans(db, data)
    return _record(db, PURCHASE, plans, header)


def replace_purchase(db: Session, group_id: uuid.UUID, data: PurchaseCreate) -> uuid.UUID:
    plans, header = _purchase_plans(db, data)
    return _replace(db, PURCHASE, group_id, plans, header)


# ----------------------------------------------------------------------------
# Sales
# ----------------------------------------------------------------------------

def _customer(name: Optional[str]) -> Counterparty:
    return CounterpartyType.CUSTOMER, name


def _sale_plans(transaction_type: TransactionType, lines: list[MovementLine], mr_id: Optional[str],
                customer: Optional[str]) -> list[LinePlan]:
    if transaction_type == TransactionType.DISPATCH_TO_MR:
        route = dict(source=godown(), destination=mr(mr_id))
    elif transaction_type == TransactionType.SALE_DIRECT_GODOWN:
        route = dict(source=godown(), counterparty=_customer(customer))
    elif transaction_type == TransactionType.SALE_BY_MR:
        route = dict(source=mr(mr_id), counterparty=_customer(customer))
    else:
        raise BusinessRuleError(f"{transaction_type.value} is not a sale type")
    return [LinePlan(line, transaction_type, **route) for line in lines]


def record_dispatch(db: Session, data: DispatchCreate) -> uuid.UUID:
    plans = _sale_plans(TransactionType.DISPATCH_TO_MR, data.lines, data.mr_id, None)
    return _record(db, SALE, plans, GroupHeader(data.dispatch_reference, data.sale_date, data.notes))


def record_direct_sale(db: Session, data: DirectSaleCreate) -> uuid.UUID:
    plans = _sale_plans(TransactionType.SALE_DIRECT_GODOWN, data.lines, None, data.customer)
    return _record(db, SALE, plans, GroupHeader(data.invoice_number, data.sale_date, data.notes))


def record_mr_sale(db: Session, data: MRSaleCreate) -> uuid.UUID:
    plans = _sale_plans(TransactionType.SALE_BY_MR, data.lines, data.mr_id, data.customer)
    return _record(db, SALE, plans, GroupHeader(data.invoice_number, data.sale_date, data.notes))


def replace_sale(db: Session, group_id: uuid.UUID, data: SaleReplace) -> uuid.UUID:
    """Replace a sale group's lines, keeping its sale type and, unless given, its rep and customer."""
    existing = group_transactions(db, group_id, SALE)
    if not existing:
        raise ResourceNotFoundError("Sale", group_id)

    first = existing[0]
    transaction_type = ledger.parse_transaction_type(first.transaction_type)
    previous_mr = first.location_id_destination if transaction_type == TransactionType.DISPATCH_TO_MR else first.location_id_source
    plans = _sale_plans(
        transaction_type,
        data.lines,
        data.mr_id or previous_mr,
        data.customer if data.customer is not None else first.counterparty_id,
    )
    header = GroupHeader(data.reference_document_id, data.sale_date, data.notes)
    return _replace(db, SALE, group_id, plans, header)


# ----------------------------------------------------------------------------
# Adjustments
# ----------------------------------------------------------------------------

_WRITE_OFF_TYPES = {
    ("DAMAGE", LocationType.GODOWN): TransactionType.ADJUST_DAMAGE_GODOWN,
    ("LOSS", LocationType.GODOWN): TransactionType.ADJUST_LOSS_GODOWN,
    ("EXPIRED", LocationType.GODOWN): TransactionType.ADJUST_EXPIRED_GODOWN,
    ("DAMAGE", LocationType.MR): TransactionType.ADJUST_DAMAGE_MR,
    ("LOSS", LocationType.MR): TransactionType.ADJUST_LOSS_MR,
    ("EXPIRED", LocationType.MR): TransactionType.ADJUST_EXPIRED_MR,
}


def record_return(db: Session, data: ReturnCreate) -> uuid.UUID:
    if data.source == ReturnSource.MR:
        if data.destination != LocationType.GODOWN:
            raise BusinessRuleError("Stock returned by a rep must go back to the godown")
        route = dict(source=mr(data.mr_id), destination=godown())
        transaction_type = TransactionType.RETURN_FROM_MR
    elif data.destination == LocationType.GODOWN:
        route = dict(destination=godown(), counterparty=_customer(data.customer))
        transaction_type = TransactionType.RETURN_TO_GODOWN
    else:
        route = dict(destination=mr(data.mr_id), counterparty=_customer(data.customer))
        transaction_type = TransactionType.RETURN_TO_MR

    plans = [LinePlan(line, transaction_type, **route) for line in data.lines]
    return _record(db, ADJUSTMENT, plans, GroupHeader(data.reference_document_id, data.return_date, data.notes))


def record_write_off(db: Session, data: WriteOffCreate) -> uuid.UUID:
    transaction_type = _WRITE_OFF_TYPES[(data.reason.value, data.location_type)]
    source = _location(data.location_type, data.mr_id)
    plans = [LinePlan(line, transaction_type, source=source) for line in data.lines]
    return _record(db, ADJUSTMENT, plans, GroupHeader(data.reference_document_id, data.adjustment_date, data.notes))


def record_replacement(db: Session, data: ReplacementCreate) -> uuid.UUID:
    customer = _customer(data.customer)
    plans = [
        LinePlan(line, TransactionType.REPLACEMENT_IN_GODOWN, destination=godown(), counterparty=customer)
        for line in data.returned_lines
    ]
    if data.replaced_from == LocationType.GODOWN:
        out_type, source = TransactionType.REPLACEMENT_OUT_GODOWN, godown()
    else:
        out_type, source = TransactionType.REPLACEMENT_OUT_MR, mr(data.mr_id)
    plans += [
        LinePlan(line, out_type, source=source, counterparty=customer)
        for line in data.replacement_lines
    ]
    return _record(db, ADJUSTMENT, plans, GroupHeader(data.reference_document_id, data.adjustment_date, data.notes))


def record_opening_stock(db: Session, data: OpeningStockCreate) -> uuid.UUID:
    if data.location_type == LocationType.GODOWN:
        transaction_type = TransactionType.OPENING_STOCK_GODOWN
    else:
        transaction_type = TransactionType.OPENING_STOCK_MR
    destination = _location(data.location_type, data.mr_id)
    plans = [LinePlan(line, transaction_type, destination=destination) for line in data.lines]
    return _record(db, ADJUSTMENT, plans, GroupHeader(data.reference_document_id, data.adjustment_date, data.notes))


# ----------------------------------------------------------------------------
# Group queries
# ----------------------------------------------------------------------------

def get_group(db: Session, document_type: str, group_id: uuid.UUID) -> dict:
    rows = group_transactions(db, group_id, document_type)
    if not rows:
        raise ResourceNotFoundError(document_type.title(), group_id)
    return _group_payload(group_id, document_type, rows, with_lines=True)


def list_groups(db: Session, document_type: str, transaction_types: Optional[set[str]] = None,
                page: int = 1, page_size: int = 50) -> tuple[list[dict], int]:
    """Group summaries, newest first. Returns (page of groups, total groups)."""
    query = (
        select(StockTransaction)
        .where(StockTransaction.document_type == document_type)
        .order_by(StockTransaction.sequence.desc())
    )
    rows = db.execute(query).scalars().all()

    grouped: dict[uuid.UUID, list[StockTransaction]] = {}
    for row in rows:
        grouped.setdefault(row.transaction_group_id, []).append(row)

    summaries = []
    for group_id, group_rows in grouped.items():
        group_rows.sort(key=lambda t: t.sequence)
        if transaction_types and not any(t.transaction_type in transaction_types for t in group_rows):
            continue
        summaries.append(_group_payload(group_id, document_type, group_rows, with_lines=False))

    total = len(summaries)
    offset = (page - 1) * page_size
    return summaries[offset:offset + page_size], total


def _group_payload(group_id: uuid.UUID, document_type: str, rows: list[StockTransaction], with_lines: bool) -> dict:
    first = rows[0]
    payload = {
        "group_id": group_id,
        "document_type": document_type,
        "reference_document_id": first.reference_document_id,
        "transaction_date": first.transaction_date,
        "line_count": len(rows),
        "total_strips": sum(t.quantity_strips for t in rows),
        "total_value": sum(
            (Decimal(t.quantity_strips) * Decimal(t.cost_per_strip_at_transaction) for t in rows),
            Decimal("0")
        ),
    }
    if with_lines:
        payload["lines"] = rows
    else:
        types = []
        for t in rows:
            if t.transaction_type not in types:
                types.append(t.transaction_type)
        payload["transaction_types"] = types
        payload["counterparty_id"] = first.counterparty_id or first.location_id_destination
    return payload
