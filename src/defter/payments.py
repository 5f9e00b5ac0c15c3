"""Payment handling: lifecycle, applying payments, and pairwise netting.

Payment application comes in two flavours that callers combine:

- ``apply_payments_to_balances`` moves paid/owed totals.
- ``apply_payments_to_transfers`` shrinks the outstanding suggested
  transfers.

Both expect payments that went through ``normalize_payments_for_current_debts``
first, so a pair is never credited more than it actually owed.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, date, datetime
from decimal import Decimal

from .exceptions import InvalidPaymentError, PaymentPermissionError, PaymentStateError
from .models import PersonBalance, SettlementPayment, SettlementTransfer
from .money import EPS_CENTS, from_cents, to_cents
from .settlement import (
    MIN_TRANSFER_CENTS,
    PersonAccount,
    balances_from_accounts,
    merge_pair_amounts,
)

logger = logging.getLogger(__name__)

UNKNOWN_PERSON_NAME = "Unknown"


# ============================================================================
# Lifecycle
# ============================================================================


def record_payment(
    from_person_id: str,
    to_person_id: str,
    amount: Decimal,
    recorded_by: str,
    paid_at: date | None = None,
    note: str | None = None,
    payment_id: str | None = None,
) -> SettlementPayment:
    """
    Create a payment as recorded by one of its two parties.

    A payment recorded by the receiving side needs no further approval and
    is confirmed straight away. A payment recorded by the paying side stays
    pending until the receiver confirms it.

    Raises:
        InvalidPaymentError: If payer and receiver are the same person or the
            amount does not round to at least one cent
        PaymentPermissionError: If the recorder is neither payer nor receiver
    """
    if from_person_id == to_person_id:
        raise InvalidPaymentError("A payment needs two different people")
    if to_cents(amount) <= 0:
        raise InvalidPaymentError(f"Payment amount must be positive, got {amount}")

    if recorded_by not in (from_person_id, to_person_id):
        raise PaymentPermissionError(
            "Only the payer or the receiver can record this payment"
        )

    direct_confirm = recorded_by == to_person_id
    return SettlementPayment(
        id=payment_id,
        from_person_id=from_person_id,
        to_person_id=to_person_id,
        amount=amount,
        status="confirmed" if direct_confirm else "pending",
        paid_at=paid_at or date.today(),
        note=note,
        requested_by_person_id=recorded_by,
        confirmed_by_person_id=recorded_by if direct_confirm else None,
        confirmed_at=datetime.now(UTC) if direct_confirm else None,
    )


def _decide(payment: SettlementPayment, by: str, confirm: bool) -> SettlementPayment:
    if payment.status != "pending":
        raise PaymentStateError(payment.status)
    if by != payment.to_person_id:
        raise PaymentPermissionError("Only the receiver can confirm or reject a payment")

    return payment.model_copy(
        update={
            "status": "confirmed" if confirm else "rejected",
            "confirmed_by_person_id": by,
            "confirmed_at": datetime.now(UTC),
        }
    )


def confirm_payment(payment: SettlementPayment, by: str) -> SettlementPayment:
    """Return a confirmed copy of a pending payment."""
    return _decide(payment, by, confirm=True)


def reject_payment(payment: SettlementPayment, by: str) -> SettlementPayment:
    """Return a rejected copy of a pending payment."""
    return _decide(payment, by, confirm=False)


def confirmed_payments(payments: Iterable[SettlementPayment]) -> list[SettlementPayment]:
    """Keep only the payments that may affect balances."""
    return [payment for payment in payments if payment.status == "confirmed"]


def pending_payments_for(
    payments: Iterable[SettlementPayment], person_id: str
) -> list[SettlementPayment]:
    """Pending payments waiting for ``person_id`` (the receiver) to decide."""
    return [
        payment
        for payment in payments
        if payment.status == "pending" and payment.to_person_id == person_id
    ]


# ============================================================================
# Applying payments
# ============================================================================


def apply_payments_to_balances(
    balances: Iterable[PersonBalance],
    payments: Iterable[SettlementPayment],
    names: Mapping[str, str] | None = None,
    unknown_name: str = UNKNOWN_PERSON_NAME,
) -> list[PersonBalance]:
    """
    Apply payments to balances.

    A payment A -> B counts as A having paid more and B being owed less:
    ``A.paid`` and ``B.owed`` both grow by the amount. Participants that only
    appear in payments get a fresh balance named from ``names``.

    Args:
        balances: Balances before payments
        payments: Confirmed (normally also normalized) payments
        names: Person id -> display name for people not in ``balances``
        unknown_name: Name used when an id is not in ``names`` either

    Returns:
        New balances, highest net first. Equal nets keep the order of
        ``balances``, then the order people first appear in ``payments``.
    """
    names = names or {}
    accounts: dict[str, PersonAccount] = {}

    for balance in balances:
        accounts[balance.person_id] = PersonAccount(
            balance.person_id,
            balance.person_name,
            paid_cents=to_cents(balance.paid),
            owed_cents=to_cents(balance.owed),
        )

    for payment in payments:
        payer = accounts.setdefault(
            payment.from_person_id,
            PersonAccount(
                payment.from_person_id,
                names.get(payment.from_person_id, unknown_name),
            ),
        )
        receiver = accounts.setdefault(
            payment.to_person_id,
            PersonAccount(
                payment.to_person_id,
                names.get(payment.to_person_id, unknown_name),
            ),
        )

        payment_cents = to_cents(payment.amount)
        payer.paid_cents += payment_cents
        receiver.owed_cents += payment_cents

    return balances_from_accounts(accounts.values())


def apply_payments_to_transfers(
    transfers: Iterable[SettlementTransfer],
    payments: Iterable[SettlementPayment],
    names: Mapping[str, str] | None = None,
    min_transfer_cents: int = MIN_TRANSFER_CENTS,
    unknown_name: str = UNKNOWN_PERSON_NAME,
) -> list[SettlementTransfer]:
    """
    Subtract payments from the matching outstanding transfers.

    A payment A -> B reduces the A -> B transfer. Once what is left falls
    below the visibility floor the pair is settled and disappears.

    Args:
        transfers: Outstanding transfers
        payments: Confirmed (normally also normalized) payments
        names: Person id -> display name, preferred over transfer names
        min_transfer_cents: Visibility floor in cents
        unknown_name: Name used when an id is unknown

    Returns:
        Remaining transfers sorted by amount, largest first
    """
    names = names or {}
    pair_cents: dict[tuple[str, str], int] = {}
    known: dict[str, str] = {}

    for transfer in transfers:
        key = (transfer.from_id, transfer.to_id)
        pair_cents[key] = pair_cents.get(key, 0) + to_cents(transfer.amount)
        known[transfer.from_id] = transfer.from_name
        known[transfer.to_id] = transfer.to_name

    for payment in payments:
        key = (payment.from_person_id, payment.to_person_id)
        remaining_cents = pair_cents.get(key, 0) - to_cents(payment.amount)

        if remaining_cents >= min_transfer_cents:
            pair_cents[key] = remaining_cents
        else:
            pair_cents.pop(key, None)

    def display_name(person_id: str) -> str:
        return names.get(person_id) or known.get(person_id) or unknown_name

    lookup = {
        person_id: display_name(person_id)
        for pair in pair_cents
        for person_id in pair
    }
    return merge_pair_amounts(pair_cents, lookup, min_transfer_cents)


def normalize_payments_for_current_debts(
    transfers: Iterable[SettlementTransfer],
    payments: Iterable[SettlementPayment],
) -> list[SettlementPayment]:
    """
    Clamp payments to what each pair actually owes.

    The outstanding amount per (from, to) pair is seeded from ``transfers``.
    Payments are then taken in order: a payment for a pair that owes nothing
    more is dropped, any other is cut down to the amount still owed. This
    keeps duplicated or racing confirmations from overshooting a debt.

    Args:
        transfers: Outstanding transfers the payments are settling
        payments: Confirmed payments, in any order

    Returns:
        Payments that apply, with their applied amounts
    """
    remaining_by_pair: dict[tuple[str, str], int] = {}
    for transfer in transfers:
        key = (transfer.from_id, transfer.to_id)
        remaining_by_pair[key] = remaining_by_pair.get(key, 0) + to_cents(transfer.amount)

    normalized = []
    for payment in payments:
        key = (payment.from_person_id, payment.to_person_id)
        remaining = remaining_by_pair.get(key, 0)
        if remaining <= EPS_CENTS:
            logger.info(
                f"Dropping payment {payment.from_person_id} -> "
                f"{payment.to_person_id} ({payment.amount}): nothing outstanding"
            )
            continue

        applied_cents = min(remaining, to_cents(payment.amount))
        if applied_cents <= EPS_CENTS:
            continue

        if applied_cents < to_cents(payment.amount):
            logger.info(
                f"Clamped payment {payment.from_person_id} -> "
                f"{payment.to_person_id} from {payment.amount} "
                f"to {from_cents(applied_cents)}"
            )

        normalized.append(payment.model_copy(update={"amount": from_cents(applied_cents)}))
        remaining_by_pair[key] = remaining - applied_cents

    return normalized


# ============================================================================
# Netting
# ============================================================================


def net_pair_transfers(
    transfers: Iterable[SettlementTransfer],
    min_transfer_cents: int = MIN_TRANSFER_CENTS,
    unknown_name: str = UNKNOWN_PERSON_NAME,
) -> list[SettlementTransfer]:
    """
    Collapse A -> B and B -> A transfers into a single transfer per pair.

    Amounts are summed with a sign per unordered pair and one transfer is
    emitted in the direction of the sign. Pairs that net out below the
    visibility floor are dropped. Already-netted input comes back unchanged.

    Args:
        transfers: Transfers, possibly in both directions for a pair
        min_transfer_cents: Visibility floor in cents
        unknown_name: Name used when an id has no known name

    Returns:
        Netted transfers sorted by amount, largest first
    """
    signed_by_pair: dict[tuple[str, str], int] = {}
    names: dict[str, str] = {}

    for transfer in transfers:
        names[transfer.from_id] = transfer.from_name
        names[transfer.to_id] = transfer.to_name

        low, high = sorted((transfer.from_id, transfer.to_id))
        amount_cents = to_cents(transfer.amount)
        signed = amount_cents if transfer.from_id == low else -amount_cents
        signed_by_pair[(low, high)] = signed_by_pair.get((low, high), 0) + signed

    directed: dict[tuple[str, str], int] = {}
    for (low, high), signed_cents in signed_by_pair.items():
        if signed_cents > 0:
            directed[(low, high)] = signed_cents
        elif signed_cents < 0:
            directed[(high, low)] = -signed_cents

    lookup = {
        person_id: names.get(person_id, unknown_name)
        for pair in directed
        for person_id in pair
    }
    return merge_pair_amounts(directed, lookup, min_transfer_cents)
