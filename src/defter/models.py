"""Pydantic domain models for Defter."""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from .money import quantize_amount

# Currency amount with exactly two fractional digits
Amount = Annotated[Decimal, AfterValidator(quantize_amount)]

PaymentStatus = Literal["pending", "confirmed", "rejected"]


# ============================================================================
# Input Models
# ============================================================================


class Person(BaseModel):
    """A ledger participant."""

    id: str
    name: str
    is_active: bool = True


class SettlementSplit(BaseModel):
    """What one participant paid towards a purchase."""

    person_id: str
    person_name: str
    amount: Amount = Field(ge=0)


class SettlementPurchase(BaseModel):
    """A shared purchase, split equally between its participants."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    total_amount: Amount
    splits: list[SettlementSplit] = Field(default_factory=list)
    # only used for period filtering; "date" on the wire
    purchase_date: date | None = Field(default=None, alias="date")


class SettlementPayment(BaseModel):
    """A direct payment from one participant to another.

    Status moves once, pending -> confirmed or pending -> rejected, and is
    terminal afterwards. Only confirmed payments reduce debts.
    """

    id: str | None = None
    from_person_id: str
    to_person_id: str
    amount: Amount = Field(gt=0)
    status: PaymentStatus = "confirmed"
    paid_at: date | None = None
    note: str | None = None
    requested_by_person_id: str | None = None
    confirmed_by_person_id: str | None = None
    confirmed_at: datetime | None = None


# ============================================================================
# Output Models
# ============================================================================


class PersonBalance(BaseModel):
    """Paid, owed and net (paid - owed) for one participant."""

    person_id: str
    person_name: str
    paid: Amount
    owed: Amount
    net: Amount


class SettlementTransfer(BaseModel):
    """A suggested transfer: ``from`` owes ``to`` the amount."""

    from_id: str
    from_name: str
    to_id: str
    to_name: str
    amount: Amount


class LedgerView(BaseModel):
    """Balances and outstanding transfers for one set of purchases/payments."""

    balances: list[PersonBalance]
    transfers: list[SettlementTransfer]  # per-purchase, netted, after payments
    optimal_transfers: list[SettlementTransfer]  # global minimum set
    applied_payments: list[SettlementPayment]
    purchase_total: Amount
    paid_total: Amount
    participant_count: int


class LedgerReport(BaseModel):
    """All-time view plus an optional single-month view."""

    all_time: LedgerView
    month: str | None = None
    period: LedgerView | None = None


class PersonSummary(BaseModel):
    """What one participant is owed and owes in a view."""

    person_id: str
    person_name: str
    receivables: list[SettlementTransfer]
    debts: list[SettlementTransfer]
    net: Amount


# ============================================================================
# Snapshot
# ============================================================================


class Snapshot(BaseModel):
    """A consistent read of people, purchases and payments."""

    people: list[Person] = Field(default_factory=list)
    purchases: list[SettlementPurchase] = Field(default_factory=list)
    payments: list[SettlementPayment] = Field(default_factory=list)

    def names(self) -> dict[str, str]:
        """
        Build a person id -> display name lookup.

        Split names fill in ids that are missing from ``people``; the
        people list wins where both are present.
        """
        lookup: dict[str, str] = {}
        for purchase in self.purchases:
            for split in purchase.splits:
                lookup.setdefault(split.person_id, split.person_name)
        lookup.update({person.id: person.name for person in self.people})
        return lookup
