"""Core settlement logic: balances and suggested transfers from purchases.

Every function here is pure. Inputs are never mutated and each call builds
its result from scratch, so the same purchases always produce the same
balances and transfers.

There are two transfer strategies and both are kept on purpose:

- ``compute_transfers`` works on net balances and yields the fewest
  transfers that settle the whole group, forgetting which purchase a debt
  came from.
- ``compute_direct_transfers_from_purchases`` settles each purchase on its
  own and sums the results per (debtor, creditor) pair, so every transfer
  can be traced back to the purchases behind it.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .models import PersonBalance, SettlementPurchase, SettlementTransfer
from .money import EPS_CENTS, amounts_match, equal_shares_cents, from_cents, to_cents

logger = logging.getLogger(__name__)

MIN_TRANSFER_AMOUNT = 20
MIN_TRANSFER_CENTS = MIN_TRANSFER_AMOUNT * 100


@dataclass
class _Party:
    """One side of a greedy match, with the cents still to be settled."""

    person_id: str
    person_name: str
    remaining_cents: int


@dataclass
class PersonAccount:
    """Running paid/owed totals for one participant."""

    person_id: str
    person_name: str
    paid_cents: int = 0
    owed_cents: int = 0


def effective_purchase_total_cents(
    purchase: SettlementPurchase, trust_split_totals: bool = True
) -> int:
    """
    Total of a purchase in cents, repairing stale stored totals.

    When the splits add up to something more than one cent away from the
    stored total, the stored total is treated as stale and the split sum is
    used instead. Set ``trust_split_totals=False`` to always use the stored
    total.

    Args:
        purchase: The purchase
        trust_split_totals: Whether the split sum overrides a stale total

    Returns:
        Effective total in cents
    """
    splits_total_cents = sum(to_cents(split.amount) for split in purchase.splits)
    purchase_total_cents = to_cents(purchase.total_amount)

    if (
        trust_split_totals
        and splits_total_cents > 0
        and not amounts_match(splits_total_cents, purchase_total_cents)
    ):
        logger.debug(
            f"Purchase {purchase.id}: stored total {purchase.total_amount} "
            f"disagrees with split sum {from_cents(splits_total_cents)}, "
            f"using split sum"
        )
        return splits_total_cents

    return purchase_total_cents


def _purchase_shares_cents(
    purchase: SettlementPurchase, trust_split_totals: bool
) -> list[int]:
    """Equal share of each split, in split order."""
    total_cents = effective_purchase_total_cents(purchase, trust_split_totals)
    return equal_shares_cents(total_cents, len(purchase.splits))


def balances_from_accounts(accounts: Iterable[PersonAccount]) -> list[PersonBalance]:
    """Build balances sorted by net descending, ties in first-seen order."""
    balances = [
        (
            account.paid_cents - account.owed_cents,
            PersonBalance(
                person_id=account.person_id,
                person_name=account.person_name,
                paid=from_cents(account.paid_cents),
                owed=from_cents(account.owed_cents),
                net=from_cents(account.paid_cents - account.owed_cents),
            ),
        )
        for account in accounts
    ]
    # sorted() is stable, so equal nets keep insertion order
    return [balance for _, balance in sorted(balances, key=lambda x: -x[0])]


def compute_balances(
    purchases: Iterable[SettlementPurchase], trust_split_totals: bool = True
) -> list[PersonBalance]:
    """
    Compute paid, owed and net for every participant.

    Each purchase is shared equally between its splits; every split adds its
    amount to the participant's ``paid`` and its equal share to ``owed``.
    Purchases without splits are skipped.

    Args:
        purchases: Purchases to aggregate
        trust_split_totals: Whether split sums override stale stored totals

    Returns:
        One balance per participant, highest net first
    """
    accounts: dict[str, PersonAccount] = {}

    for purchase in purchases:
        if not purchase.splits:
            logger.debug(f"Skipping purchase {purchase.id} without splits")
            continue

        shares_cents = _purchase_shares_cents(purchase, trust_split_totals)

        for split, share_cents in zip(purchase.splits, shares_cents):
            account = accounts.setdefault(
                split.person_id, PersonAccount(split.person_id, split.person_name)
            )
            account.paid_cents += to_cents(split.amount)
            account.owed_cents += share_cents

    return balances_from_accounts(accounts.values())


def _match_greedy(
    creditors: list[_Party], debtors: list[_Party]
) -> list[tuple[_Party, _Party, int]]:
    """
    Walk creditors and debtors with two cursors, settling as much as possible.

    Each step moves ``min(creditor, debtor)`` cents from the current debtor
    to the current creditor; a side is done once it is within one cent of
    zero. The parties passed in are consumed.

    Returns:
        (debtor, creditor, cents) for every step, including tiny ones
    """
    matches = []
    c = 0
    d = 0

    while c < len(creditors) and d < len(debtors):
        creditor = creditors[c]
        debtor = debtors[d]
        amount_cents = min(creditor.remaining_cents, debtor.remaining_cents)

        matches.append((debtor, creditor, amount_cents))

        creditor.remaining_cents -= amount_cents
        debtor.remaining_cents -= amount_cents

        if creditor.remaining_cents <= EPS_CENTS:
            c += 1
        if debtor.remaining_cents <= EPS_CENTS:
            d += 1

    return matches


def _transfer(debtor: _Party, creditor: _Party, amount_cents: int) -> SettlementTransfer:
    return SettlementTransfer(
        from_id=debtor.person_id,
        from_name=debtor.person_name,
        to_id=creditor.person_id,
        to_name=creditor.person_name,
        amount=from_cents(amount_cents),
    )


def compute_transfers(
    balances: Iterable[PersonBalance], min_transfer_cents: int = MIN_TRANSFER_CENTS
) -> list[SettlementTransfer]:
    """
    Compute the fewest transfers that settle all net balances.

    Creditors (net above one cent) and debtors (net below minus one cent)
    are each ordered largest first and matched greedily. Steps smaller than
    the visibility floor still settle the balances but are not reported.

    Args:
        balances: Net balances, e.g. from ``compute_balances``
        min_transfer_cents: Visibility floor in cents

    Returns:
        Transfers in the order they were matched
    """
    creditors: list[_Party] = []
    debtors: list[_Party] = []
    for balance in balances:
        net_cents = to_cents(balance.net)
        if net_cents > EPS_CENTS:
            creditors.append(_Party(balance.person_id, balance.person_name, net_cents))
        elif net_cents < -EPS_CENTS:
            debtors.append(_Party(balance.person_id, balance.person_name, -net_cents))

    creditors.sort(key=lambda party: -party.remaining_cents)
    debtors.sort(key=lambda party: -party.remaining_cents)

    return [
        _transfer(debtor, creditor, amount_cents)
        for debtor, creditor, amount_cents in _match_greedy(creditors, debtors)
        if amount_cents >= min_transfer_cents
    ]


def merge_pair_amounts(
    pair_cents: dict[tuple[str, str], int],
    names: dict[str, str],
    min_transfer_cents: int,
) -> list[SettlementTransfer]:
    """
    Turn (from_id, to_id) -> cents totals into transfers.

    Pairs below the visibility floor are dropped. The result is sorted by
    amount, largest first; equal amounts keep insertion order.
    """
    kept = [
        (from_id, to_id, amount_cents)
        for (from_id, to_id), amount_cents in pair_cents.items()
        if amount_cents >= min_transfer_cents
    ]
    dropped = len(pair_cents) - len(kept)
    if dropped:
        logger.debug(f"Dropped {dropped} pair(s) below the visibility floor")

    kept.sort(key=lambda item: -item[2])
    return [
        SettlementTransfer(
            from_id=from_id,
            from_name=names[from_id],
            to_id=to_id,
            to_name=names[to_id],
            amount=from_cents(amount_cents),
        )
        for from_id, to_id, amount_cents in kept
    ]


def compute_direct_transfers_from_purchases(
    purchases: Iterable[SettlementPurchase],
    min_transfer_cents: int = MIN_TRANSFER_CENTS,
    trust_split_totals: bool = True,
) -> list[SettlementTransfer]:
    """
    Compute transfers that settle each purchase separately.

    Within a purchase, whoever paid more than their equal share is owed the
    difference and whoever paid less owes it. These purchase-local deltas
    are matched greedily, and the resulting amounts are summed per
    (debtor, creditor) pair across all purchases.

    This can yield more transfers than ``compute_transfers``, but every
    transfer is explained by specific purchases.

    Args:
        purchases: Purchases to settle
        min_transfer_cents: Visibility floor in cents, applied to pair totals
        trust_split_totals: Whether split sums override stale stored totals

    Returns:
        Transfers sorted by amount, largest first
    """
    pair_cents: dict[tuple[str, str], int] = {}
    names: dict[str, str] = {}

    for purchase in purchases:
        if not purchase.splits:
            continue

        shares_cents = _purchase_shares_cents(purchase, trust_split_totals)
        creditors: list[_Party] = []
        debtors: list[_Party] = []

        for split, share_cents in zip(purchase.splits, shares_cents):
            delta_cents = to_cents(split.amount) - share_cents
            if delta_cents > EPS_CENTS:
                creditors.append(_Party(split.person_id, split.person_name, delta_cents))
            elif delta_cents < -EPS_CENTS:
                debtors.append(_Party(split.person_id, split.person_name, -delta_cents))

        for debtor, creditor, amount_cents in _match_greedy(creditors, debtors):
            if amount_cents <= EPS_CENTS:
                continue
            key = (debtor.person_id, creditor.person_id)
            pair_cents[key] = pair_cents.get(key, 0) + amount_cents
            names[debtor.person_id] = debtor.person_name
            names[creditor.person_id] = creditor.person_name

    return merge_pair_amounts(pair_cents, names, min_transfer_cents)
