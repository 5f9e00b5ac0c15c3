"""Service layer that composes the settlement core into ledger views.

The core functions are small and pure; this module wires them together the
way every ledger screen needs them: settle purchases, clamp confirmed
payments to the debts they pay off, then apply them to balances and
transfers.
"""

import logging
import re
from collections.abc import Mapping, Sequence
from datetime import date

from .config import Settings
from .exceptions import InvalidPeriodError
from .models import (
    LedgerReport,
    LedgerView,
    PersonSummary,
    SettlementPayment,
    SettlementPurchase,
    Snapshot,
)
from .money import from_cents, to_cents
from .payments import (
    apply_payments_to_balances,
    apply_payments_to_transfers,
    confirmed_payments,
    net_pair_transfers,
    normalize_payments_for_current_debts,
)
from .settlement import (
    compute_balances,
    compute_direct_transfers_from_purchases,
    compute_transfers,
)

logger = logging.getLogger(__name__)

_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


def month_bounds(month: str) -> tuple[date, date]:
    """
    First day of ``month`` and first day of the following month.

    Args:
        month: Month in YYYY-MM form

    Returns:
        Tuple of (start, end), end exclusive

    Raises:
        InvalidPeriodError: If month is not a valid YYYY-MM string
    """
    match = _MONTH_PATTERN.match(month.strip())
    if not match or not 1 <= int(match.group(2)) <= 12:
        raise InvalidPeriodError(f"Invalid month '{month}', expected YYYY-MM")

    year, month_number = int(match.group(1)), int(match.group(2))
    start = date(year, month_number, 1)
    end = date(year + 1, 1, 1) if month_number == 12 else date(year, month_number + 1, 1)
    return start, end


def purchases_in_period(
    purchases: Sequence[SettlementPurchase], start: date, end: date
) -> list[SettlementPurchase]:
    """Purchases dated within [start, end). Undated purchases are left out."""
    return [
        purchase
        for purchase in purchases
        if purchase.purchase_date is not None and start <= purchase.purchase_date < end
    ]


def payments_in_period(
    payments: Sequence[SettlementPayment], start: date, end: date
) -> list[SettlementPayment]:
    """Payments paid within [start, end). Undated payments are left out."""
    return [
        payment
        for payment in payments
        if payment.paid_at is not None and start <= payment.paid_at < end
    ]


class LedgerService:
    """Builds balances and suggested transfers from a ledger snapshot."""

    def __init__(self, settings: Settings):
        """Initialize the ledger service."""
        self.settings = settings

    def build_view(
        self,
        purchases: Sequence[SettlementPurchase],
        payments: Sequence[SettlementPayment],
        names: Mapping[str, str],
    ) -> LedgerView:
        """
        Compute the ledger for one set of purchases and payments.

        Steps:
        1. Settle purchases into balances and per-purchase transfers
        2. Clamp confirmed payments to the transfers they pay off
        3. Apply the clamped payments to balances and to transfers
        4. Net transfers per pair, and derive the global minimum set

        Args:
            purchases: Purchases in the view
            payments: Payments in the view, any status
            names: Person id -> display name

        Returns:
            The ledger view
        """
        floor = self.settings.min_transfer_cents
        trust = self.settings.trust_split_totals
        unknown = self.settings.unknown_person_name

        base_balances = compute_balances(purchases, trust_split_totals=trust)
        base_transfers = compute_direct_transfers_from_purchases(
            purchases, min_transfer_cents=floor, trust_split_totals=trust
        )

        applied = normalize_payments_for_current_debts(
            base_transfers, confirmed_payments(payments)
        )

        balances = apply_payments_to_balances(
            base_balances, applied, names, unknown_name=unknown
        )
        transfers = net_pair_transfers(
            apply_payments_to_transfers(
                base_transfers,
                applied,
                names,
                min_transfer_cents=floor,
                unknown_name=unknown,
            ),
            min_transfer_cents=floor,
            unknown_name=unknown,
        )
        optimal = compute_transfers(balances, min_transfer_cents=floor)

        view = LedgerView(
            balances=balances,
            transfers=transfers,
            optimal_transfers=optimal,
            applied_payments=applied,
            purchase_total=from_cents(
                sum(to_cents(purchase.total_amount) for purchase in purchases)
            ),
            paid_total=from_cents(sum(to_cents(balance.paid) for balance in balances)),
            participant_count=len(balances),
        )

        logger.info(
            f"Built ledger view: {len(purchases)} purchases, "
            f"{len(applied)} applied payments, {len(transfers)} open transfers"
        )
        return view

    def build_report(self, snapshot: Snapshot, month: str | None = None) -> LedgerReport:
        """
        Build the all-time view and, if ``month`` is given, that month's view.

        The month view only sees purchases dated and payments paid within
        the month.
        """
        names = snapshot.names()
        all_time = self.build_view(snapshot.purchases, snapshot.payments, names)

        if month is None:
            return LedgerReport(all_time=all_time)

        start, end = month_bounds(month)
        period = self.build_view(
            purchases_in_period(snapshot.purchases, start, end),
            payments_in_period(snapshot.payments, start, end),
            names,
        )
        return LedgerReport(all_time=all_time, month=month, period=period)

    def person_summary(
        self, view: LedgerView, person_id: str, names: Mapping[str, str] | None = None
    ) -> PersonSummary:
        """What ``person_id`` is owed and owes in ``view``."""
        receivables = [t for t in view.transfers if t.to_id == person_id]
        debts = [t for t in view.transfers if t.from_id == person_id]
        net_cents = sum(to_cents(t.amount) for t in receivables) - sum(
            to_cents(t.amount) for t in debts
        )

        person_name = (names or {}).get(person_id)
        if person_name is None:
            person_name = next(
                (b.person_name for b in view.balances if b.person_id == person_id),
                self.settings.unknown_person_name,
            )

        return PersonSummary(
            person_id=person_id,
            person_name=person_name,
            receivables=receivables,
            debts=debts,
            net=from_cents(net_cents),
        )
