"""Interactive UI components for picking people and reviewing payments."""

import logging
from typing import Any, Literal

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from .models import Person, SettlementPayment

logger = logging.getLogger(__name__)

PaymentDecision = Literal["confirm", "reject", "skip"]


class PersonCompleter(Completer):
    """Fuzzy search completer for ledger participants."""

    def __init__(self, people: list[Person]):
        """Initialize the completer with the people to choose from."""
        self.people = people
        self.name_to_id = {person.name: person.id for person in people}

    def get_completions(self, document: Document, complete_event: Any):
        """Get fuzzy-matched completions."""
        query = document.text.lower()

        for person in self.people:
            if not query or self._fuzzy_match(query, person.name.lower()):
                yield Completion(
                    text=person.name,
                    start_position=-len(document.text),
                    display=person.name,
                )

    def _fuzzy_match(self, query: str, text: str) -> bool:
        """
        Fuzzy match: all characters in query must appear in order in text.

        Example:
            query="ays" matches "Ayse"
            query="mhm" matches "Mehmet"
        """
        query_idx = 0
        for char in text:
            if query_idx < len(query) and char == query[query_idx]:
                query_idx += 1
        return query_idx == len(query)


def select_person_interactive(people: list[Person], prompt: str = "Person") -> str | None:
    """
    Interactive person selection with fuzzy search.

    Inactive people are not offered.

    Args:
        people: People to choose from
        prompt: Label shown before the input

    Returns:
        Selected person ID, or None to skip
    """
    active_people = [person for person in people if person.is_active]
    if not active_people:
        print("No active people in this ledger.")
        return None

    print("   Type to search, press Enter to confirm, Ctrl+C to skip\n")

    completer = PersonCompleter(active_people)
    session: PromptSession[str] = PromptSession(completer=completer)

    try:
        while True:
            result = session.prompt(f"{prompt}: ", complete_while_typing=True)

            if not result:
                return None

            person_id = completer.name_to_id.get(result)
            if person_id:
                logger.info(f"User selected person: {result}")
                return person_id

            print("❌ Unknown person. Please select from the list or press Tab to complete.")

    except KeyboardInterrupt:
        print("\n⏭️  Skipped")
        return None
    except EOFError:
        return None


def ask_payment_decision(payment: SettlementPayment, names: dict[str, str]) -> PaymentDecision:
    """
    Ask whether a pending payment really happened.

    Args:
        payment: The pending payment
        names: Person id -> display name

    Returns:
        "confirm", "reject" or "skip"
    """
    payer = names.get(payment.from_person_id, payment.from_person_id)
    receiver = names.get(payment.to_person_id, payment.to_person_id)

    print(f"\n💸 {payer} → {receiver}: {payment.amount}")
    if payment.paid_at:
        print(f"   Paid at: {payment.paid_at}")
    if payment.note:
        print(f"   Note: {payment.note}")

    response = input("   Confirm? [Y/n/s(kip)] ").strip().lower()

    if response in ("", "y", "yes"):
        return "confirm"
    if response in ("n", "no"):
        return "reject"
    return "skip"
