"""Defter - Shared purchase ledger with exact, cent-precise settle-up."""

__version__ = "0.1.0"

from .config import Settings, load_settings
from .models import (
    PersonBalance,
    SettlementPayment,
    SettlementPurchase,
    SettlementSplit,
    SettlementTransfer,
    Snapshot,
)
from .money import equal_shares_cents, from_cents, to_cents
from .payments import (
    apply_payments_to_balances,
    apply_payments_to_transfers,
    net_pair_transfers,
    normalize_payments_for_current_debts,
)
from .service import LedgerService
from .settlement import (
    compute_balances,
    compute_direct_transfers_from_purchases,
    compute_transfers,
)

__all__ = [
    "Settings",
    "load_settings",
    "PersonBalance",
    "SettlementPayment",
    "SettlementPurchase",
    "SettlementSplit",
    "SettlementTransfer",
    "Snapshot",
    "equal_shares_cents",
    "from_cents",
    "to_cents",
    "apply_payments_to_balances",
    "apply_payments_to_transfers",
    "net_pair_transfers",
    "normalize_payments_for_current_debts",
    "LedgerService",
    "compute_balances",
    "compute_direct_transfers_from_purchases",
    "compute_transfers",
]
