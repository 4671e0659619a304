"""
Stock ledger rules.

Every stock movement is an immutable ledger entry carrying a positive
quantity in strips. Its direction comes from the stock-holding locations it
names: a destination receives the quantity, a source gives it up. Balances
are keyed by (product, batch, location type, location id).

This module is the single place where those rules live. The database-backed
balance table applies them one entry at a time; reports and audits replay
the whole ledger through the same functions.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, NamedTuple, Optional
import uuid


class LedgerRuleError(ValueError):
    """Raised when a ledger entry is inconsistent with its transaction type."""


class UnknownTransactionTypeError(LedgerRuleError):
    """Raised for a transaction type outside the closed set."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Unknown transaction type: {value!r}")


class LocationType(str, Enum):
    """Locations that hold stock."""
    GODOWN = "GODOWN"
    MR = "MR"


class CounterpartyType(str, Enum):
    """External parties stock comes from or goes to. They hold no balance."""
    SUPPLIER = "SUPPLIER"
    CUSTOMER = "CUSTOMER"


class Direction(str, Enum):
    INFLOW = "inflow"
    OUTFLOW = "outflow"
    TRANSFER = "transfer"


class TransactionType(str, Enum):
    """Every kind of movement the ledger accepts."""
    STOCK_IN_GODOWN = "STOCK_IN_GODOWN"
    OPENING_STOCK_GODOWN = "OPENING_STOCK_GODOWN"
    OPENING_STOCK_MR = "OPENING_STOCK_MR"
    DISPATCH_TO_MR = "DISPATCH_TO_MR"
    SALE_DIRECT_GODOWN = "SALE_DIRECT_GODOWN"
    SALE_BY_MR = "SALE_BY_MR"
    RETURN_TO_GODOWN = "RETURN_TO_GODOWN"
    RETURN_TO_MR = "RETURN_TO_MR"
    RETURN_FROM_MR = "RETURN_FROM_MR"
    ADJUST_DAMAGE_GODOWN = "ADJUST_DAMAGE_GODOWN"
    ADJUST_LOSS_GODOWN = "ADJUST_LOSS_GODOWN"
    ADJUST_EXPIRED_GODOWN = "ADJUST_EXPIRED_GODOWN"
    ADJUST_DAMAGE_MR = "ADJUST_DAMAGE_MR"
    ADJUST_LOSS_MR = "ADJUST_LOSS_MR"
    ADJUST_EXPIRED_MR = "ADJUST_EXPIRED_MR"
    REPLACEMENT_IN_GODOWN = "REPLACEMENT_IN_GODOWN"
    REPLACEMENT_OUT_GODOWN = "REPLACEMENT_OUT_GODOWN"
    REPLACEMENT_OUT_MR = "REPLACEMENT_OUT_MR"


@dataclass(frozen=True)
class MovementRule:
    """Which stock-holding sides a transaction type requires."""
    source: Optional[LocationType]
    destination: Optional[LocationType]

    @property
    def direction(self) -> Direction:
        if self.source and self.destination:
            return Direction.TRANSFER
        if self.destination:
            return Direction.INFLOW
        return Direction.OUTFLOW


_GODOWN = LocationType.GODOWN
_MR = LocationType.MR

MOVEMENT_RULES: dict[TransactionType, MovementRule] = {
    TransactionType.STOCK_IN_GODOWN: MovementRule(None, _GODOWN),
    TransactionType.OPENING_STOCK_GODOWN: MovementRule(None, _GODOWN),
    TransactionType.OPENING_STOCK_MR: MovementRule(None, _MR),
    TransactionType.DISPATCH_TO_MR: MovementRule(_GODOWN, _MR),
    TransactionType.SALE_DIRECT_GODOWN: MovementRule(_GODOWN, None),
    TransactionType.SALE_BY_MR: MovementRule(_MR, None),
    TransactionType.RETURN_TO_GODOWN: MovementRule(None, _GODOWN),
    TransactionType.RETURN_TO_MR: MovementRule(None, _MR),
    TransactionType.RETURN_FROM_MR: MovementRule(_MR, _GODOWN),
    TransactionType.ADJUST_DAMAGE_GODOWN: MovementRule(_GODOWN, None),
    TransactionType.ADJUST_LOSS_GODOWN: MovementRule(_GODOWN, None),
    TransactionType.ADJUST_EXPIRED_GODOWN: MovementRule(_GODOWN, None),
    TransactionType.ADJUST_DAMAGE_MR: MovementRule(_MR, None),
    TransactionType.ADJUST_LOSS_MR: MovementRule(_MR, None),
    TransactionType.ADJUST_EXPIRED_MR: MovementRule(_MR, None),
    TransactionType.REPLACEMENT_IN_GODOWN: MovementRule(None, _GODOWN),
    TransactionType.REPLACEMENT_OUT_GODOWN: MovementRule(_GODOWN, None),
    TransactionType.REPLACEMENT_OUT_MR: MovementRule(_MR, None),
}

_unmapped = set(TransactionType) - set(MOVEMENT_RULES)
if _unmapped:
    raise RuntimeError(f"Transaction types without a movement rule: {sorted(t.value for t in _unmapped)}")


class BalanceKey(NamedTuple):
    product_id: uuid.UUID
    batch_id: uuid.UUID
    location_type: str
    location_id: str


@dataclass
class Holding:
    """Current quantity and last acquisition cost at one balance key."""
    quantity: int
    cost_per_strip: Decimal

    @property
    def total_value(self) -> Decimal:
        return Decimal(self.quantity) * Decimal(self.cost_per_strip)


class Effect(NamedTuple):
    key: BalanceKey
    delta: int
    cost_per_strip: Decimal

    @property
    def is_inflow(self) -> bool:
        return self.delta > 0


@dataclass(frozen=True)
class Movement:
    """
    Plain ledger entry.

    Field names match the ``stock_transactions`` columns, so ORM rows and
    these objects are interchangeable everywhere in this module.
    """
    product_id: uuid.UUID
    batch_id: uuid.UUID
    transaction_type: str
    quantity_strips: int
    cost_per_strip_at_transaction: Decimal
    location_type_source: Optional[str] = None
    location_id_source: Optional[str] = None
    location_type_destination: Optional[str] = None
    location_id_destination: Optional[str] = None
    transaction_date: Optional[datetime] = None


def parse_transaction_type(value: Any) -> TransactionType:
    """Return the TransactionType for ``value`` or raise UnknownTransactionTypeError."""
    if isinstance(value, TransactionType):
        return value
    try:
        return TransactionType(value)
    except ValueError:
        raise UnknownTransactionTypeError(value) from None


def rule_for(transaction_type: Any) -> MovementRule:
    return MOVEMENT_RULES[parse_transaction_type(transaction_type)]


def _location_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value.value if isinstance(value, Enum) else str(value)


def _check_side(side: str, expected: Optional[LocationType], location_type: Any, location_id: Any, tx_type: TransactionType):
    actual = _location_value(location_type)
    if expected is None:
        if actual is not None:
            raise LedgerRuleError(f"{tx_type.value} must not have a {side} location (got {actual})")
        return
    if actual != expected.value:
        raise LedgerRuleError(f"{tx_type.value} requires {side} {expected.value}, got {actual}")
    if location_id is None or str(location_id) == "":
        raise LedgerRuleError(f"{tx_type.value} requires a {side} location id")


def validate_entry(entry) -> TransactionType:
    """Check an entry against its movement rule and return its type."""
    tx_type = parse_transaction_type(entry.transaction_type)
    if entry.quantity_strips is None or entry.quantity_strips <= 0:
        raise LedgerRuleError(f"Ledger quantities must be positive, got {entry.quantity_strips}")
    rule = MOVEMENT_RULES[tx_type]
    _check_side("source", rule.source, entry.location_type_source, entry.location_id_source, tx_type)
    _check_side("destination", rule.destination, entry.location_type_destination, entry.location_id_destination, tx_type)
    return tx_type


def movement_effects(entry) -> list[Effect]:
    """
    Split one ledger entry into per-location balance effects.

    The destination side (if any) comes first and carries ``+quantity``; the
    source side carries ``-quantity``. A transfer yields both.
    """
    validate_entry(entry)
    cost = Decimal(entry.cost_per_strip_at_transaction)
    effects = []
    if entry.location_type_destination is not None:
        key = BalanceKey(
            entry.product_id,
            entry.batch_id,
            _location_value(entry.location_type_destination),
            str(entry.location_id_destination),
        )
        effects.append(Effect(key, entry.quantity_strips, cost))
    if entry.location_type_source is not None:
        key = BalanceKey(
            entry.product_id,
            entry.batch_id,
            _location_value(entry.location_type_source),
            str(entry.location_id_source),
        )
        effects.append(Effect(key, -entry.quantity_strips, cost))
    return effects


def next_holding(current: Optional[Holding], effect: Effect) -> Holding:
    """
    Apply one effect to the holding at its key.

    Inflows add and refresh the cost. Outflows subtract, floor at zero and
    keep the last acquisition cost. A key first seen on an outflow opens at
    zero with the transaction's cost.
    """
    if current is None:
        return Holding(max(0, effect.delta), effect.cost_per_strip)
    if effect.is_inflow:
        return Holding(current.quantity + effect.delta, effect.cost_per_strip)
    return Holding(max(0, current.quantity + effect.delta), current.cost_per_strip)


def apply_entry(balances: dict[BalanceKey, Holding], entry) -> list[BalanceKey]:
    """Apply one entry to an in-memory balance map. Returns the touched keys."""
    touched = []
    for effect in movement_effects(entry):
        balances[effect.key] = next_holding(balances.get(effect.key), effect)
        touched.append(effect.key)
    return touched


def replay(entries: Iterable) -> dict[BalanceKey, Holding]:
    """Rebuild balances from scratch by applying entries in ledger order."""
    balances: dict[BalanceKey, Holding] = {}
    for entry in entries:
        apply_entry(balances, entry)
    return balances


def positive_holdings(balances: dict[BalanceKey, Holding]) -> dict[BalanceKey, Holding]:
    """Only keys that currently hold stock."""
    return {key: holding for key, holding in balances.items() if holding.quantity > 0}


class BalanceMismatch(NamedTuple):
    key: BalanceKey
    expected_quantity: int
    actual_quantity: int
    expected_cost: Optional[Decimal]
    actual_cost: Optional[Decimal]


def diff_balances(expected: dict[BalanceKey, Holding], actual: dict[BalanceKey, Holding]) -> list[BalanceMismatch]:
    """
    Compare two balance maps key by key.

    A key missing on one side counts as zero quantity, so an empty row on
    one side and no row on the other is not a mismatch.
    """
    mismatches = []
    for key in set(expected) | set(actual):
        exp = expected.get(key)
        act = actual.get(key)
        exp_qty = exp.quantity if exp else 0
        act_qty = act.quantity if act else 0
        exp_cost = Decimal(exp.cost_per_strip) if exp else None
        act_cost = Decimal(act.cost_per_strip) if act else None
        if exp_qty != act_qty:
            mismatches.append(BalanceMismatch(key, exp_qty, act_qty, exp_cost, act_cost))
        elif exp and act and exp_qty > 0 and exp_cost != act_cost:
            mismatches.append(BalanceMismatch(key, exp_qty, act_qty, exp_cost, act_cost))
    return sorted(mismatches, key=lambda m: tuple(str(part) for part in m.key))
