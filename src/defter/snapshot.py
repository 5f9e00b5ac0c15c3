"""Reading and writing ledger snapshots.

A snapshot is one consistent read of people, purchases and payments,
stored as a JSON document::

    {
      "people": [{"id": "p1", "name": "Ayse"}],
      "purchases": [{"id": "b1", "date": "2026-10-01", "total_amount": "100.00",
                     "splits": [{"person_id": "p1", "person_name": "Ayse",
                                 "amount": "100.00"}]}],
      "payments": []
    }
"""

import logging
from pathlib import Path

from pydantic import ValidationError

from .exceptions import SnapshotError
from .models import SettlementPayment, Snapshot

logger = logging.getLogger(__name__)


def load_snapshot(path: Path) -> Snapshot:
    """
    Load a snapshot from a JSON file.

    Raises:
        SnapshotError: If the file is missing or does not describe a ledger
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SnapshotError(str(path), f"Could not read {path}: {e}") from e

    try:
        snapshot = Snapshot.model_validate_json(raw)
    except ValidationError as e:
        raise SnapshotError(str(path), f"Invalid ledger snapshot {path}:\n{e}") from e

    logger.debug(
        f"Loaded {path}: {len(snapshot.people)} people, "
        f"{len(snapshot.purchases)} purchases, {len(snapshot.payments)} payments"
    )
    return snapshot


def save_snapshot(snapshot: Snapshot, path: Path) -> None:
    """Write a snapshot as indented JSON, amounts as two-decimal strings."""
    path.write_text(
        snapshot.model_dump_json(indent=2, by_alias=True, exclude_none=True) + "\n",
        encoding="utf-8",
    )
    logger.info(f"Saved ledger snapshot to {path}")


def with_payment(snapshot: Snapshot, payment: SettlementPayment) -> Snapshot:
    """Return a copy of ``snapshot`` with ``payment`` added, or replaced in place by id."""
    payments = list(snapshot.payments)
    for index, existing in enumerate(payments):
        if payment.id is not None and existing.id == payment.id:
            payments[index] = payment
            break
    else:
        payments.append(payment)
    return snapshot.model_copy(update={"payments": payments})
