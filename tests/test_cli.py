"""Tests for the Defter command line."""

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from defter.cli import app, format_money, resolve_person
from defter.exceptions import UnknownPersonError
from defter.models import (
    Person,
    SettlementPayment,
    SettlementPurchase,
    SettlementSplit,
    Snapshot,
)
from defter.snapshot import load_snapshot, save_snapshot

runner = CliRunner()


@pytest.fixture
def ledger_file(tmp_path):
    """Write a snapshot where Burak owes Ayse 50.00."""
    path = tmp_path / "ledger.json"
    save_snapshot(
        Snapshot(
            people=[Person(id="a", name="Ayse"), Person(id="b", name="Burak")],
            purchases=[
                SettlementPurchase(
                    id="p1",
                    total_amount=Decimal("100"),
                    date=date(2026, 10, 5),
                    splits=[
                        SettlementSplit(
                            person_id="a", person_name="Ayse", amount=Decimal("100")
                        ),
                        SettlementSplit(
                            person_id="b", person_name="Burak", amount=Decimal("0")
                        ),
                    ],
                )
            ],
        ),
        path,
    )
    return path


class TestFormatMoney:
    """Accounting-style money formatting."""

    def test_positive(self):
        assert format_money(Decimal("85.02"), use_color=False) == " 85.02 "

    def test_negative_in_parentheses(self):
        assert format_money(Decimal("-85.02"), "TRY", use_color=False) == "(85.02 TRY)"

    def test_thousands_separator(self):
        assert format_money(Decimal("1234.5"), use_color=False) == " 1,234.50 "


class TestResolvePerson:
    """Person lookup by id or name."""

    def test_by_id_and_name(self, ledger_file):
        snapshot = load_snapshot(ledger_file)

        assert resolve_person(snapshot, "a") == "a"
        assert resolve_person(snapshot, "burak") == "b"

    def test_unknown(self, ledger_file):
        with pytest.raises(UnknownPersonError):
            resolve_person(load_snapshot(ledger_file), "Cem")


class TestReadCommands:
    """Commands that only display the ledger."""

    def test_balances(self, ledger_file):
        result = runner.invoke(app, ["balances", "--file", str(ledger_file)])

        assert result.exit_code == 0
        assert "Ayse" in result.output
        assert "50.00" in result.output

    def test_transfers(self, ledger_file):
        result = runner.invoke(app, ["transfers", "-f", str(ledger_file)])

        assert result.exit_code == 0
        assert "Burak" in result.output
        assert "50.00" in result.output

    def test_optimal(self, ledger_file):
        result = runner.invoke(app, ["optimal", "-f", str(ledger_file)])

        assert result.exit_code == 0
        assert "50.00" in result.output

    def test_report_with_month(self, ledger_file):
        result = runner.invoke(app, ["report", "-f", str(ledger_file), "-m", "2026-09"])

        assert result.exit_code == 0
        assert "All time" in result.output
        assert "Month 2026-09" in result.output
        assert "everyone is settled up" in result.output

    def test_summary(self, ledger_file):
        result = runner.invoke(app, ["summary", "Burak", "-f", str(ledger_file)])

        assert result.exit_code == 0
        assert "You owe" in result.output
        assert "50.00" in result.output

    def test_missing_file_fails(self, tmp_path):
        result = runner.invoke(app, ["balances", "-f", str(tmp_path / "nope.json")])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_very_large_amounts(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text(
            '{"purchases": [{"id": "p1", "total_amount": "1e27", "splits": ['
            '{"person_id": "a", "person_name": "Ayse", "amount": "1e27"}]}]}'
        )

        result = runner.invoke(app, ["balances", "-f", str(path)])

        assert result.exit_code == 0
        assert "Error" not in result.output

    def test_invalid_month_fails(self, ledger_file):
        result = runner.invoke(app, ["report", "-f", str(ledger_file), "-m", "2026-13"])

        assert result.exit_code == 1
        assert "Invalid month" in result.output


class TestPayAndReview:
    """Recording payments and confirming them."""

    def test_pay_recorded_by_receiver_is_confirmed(self, ledger_file):
        result = runner.invoke(
            app, ["pay", "Burak", "Ayse", "50", "--by", "Ayse", "-f", str(ledger_file)]
        )

        assert result.exit_code == 0
        (payment,) = load_snapshot(ledger_file).payments
        assert payment.status == "confirmed"
        assert payment.amount == Decimal("50.00")

        transfers = runner.invoke(app, ["transfers", "-f", str(ledger_file)])
        assert "everyone is settled up" in transfers.output

    def test_pay_recorded_by_payer_is_pending(self, ledger_file):
        result = runner.invoke(
            app,
            [
                "pay", "b", "a", "20.5", "--by", "b",
                "--date", "2026-10-07", "--note", "cash",
                "-f", str(ledger_file),
            ],
        )

        assert result.exit_code == 0
        (payment,) = load_snapshot(ledger_file).payments
        assert payment.status == "pending"
        assert payment.paid_at == date(2026, 10, 7)
        assert payment.note == "cash"

    def test_pay_by_outsider_fails(self, ledger_file):
        save_snapshot(
            load_snapshot(ledger_file).model_copy(
                update={"people": [Person(id="a", name="Ayse"), Person(id="c", name="Cem")]}
            ),
            ledger_file,
        )

        result = runner.invoke(
            app, ["pay", "b", "a", "20", "--by", "c", "-f", str(ledger_file)]
        )

        assert result.exit_code == 1
        assert load_snapshot(ledger_file).payments == []

    def test_pay_to_self_fails(self, ledger_file):
        result = runner.invoke(
            app, ["pay", "a", "Ayse", "20", "--by", "a", "-f", str(ledger_file)]
        )

        assert result.exit_code == 1
        assert "two different people" in result.output
        assert load_snapshot(ledger_file).payments == []

    def test_pay_zero_fails(self, ledger_file):
        result = runner.invoke(
            app, ["pay", "b", "a", "0", "--by", "a", "-f", str(ledger_file)]
        )

        assert result.exit_code == 1
        assert "must be positive" in result.output
        assert load_snapshot(ledger_file).payments == []

    @patch("defter.cli.ask_payment_decision", return_value="confirm")
    def test_review_confirms_pending(self, mock_ask, ledger_file):
        snapshot = load_snapshot(ledger_file)
        save_snapshot(
            snapshot.model_copy(
                update={
                    "payments": [
                        SettlementPayment(
                            from_person_id="b",
                            to_person_id="a",
                            amount=Decimal("50"),
                            status="pending",
                        )
                    ]
                }
            ),
            ledger_file,
        )

        result = runner.invoke(app, ["review", "Ayse", "-f", str(ledger_file)])

        assert result.exit_code == 0
        mock_ask.assert_called_once()
        (payment,) = load_snapshot(ledger_file).payments
        assert payment.status == "confirmed"
        assert payment.confirmed_by_person_id == "a"

    @patch("defter.cli.ask_payment_decision", return_value="skip")
    def test_review_skip_leaves_pending(self, mock_ask, ledger_file):
        snapshot = load_snapshot(ledger_file)
        save_snapshot(
            snapshot.model_copy(
                update={
                    "payments": [
                        SettlementPayment(
                            from_person_id="b",
                            to_person_id="a",
                            amount=Decimal("50"),
                            status="pending",
                        )
                    ]
                }
            ),
            ledger_file,
        )

        result = runner.invoke(app, ["review", "a", "-f", str(ledger_file)])

        assert result.exit_code == 0
        assert load_snapshot(ledger_file).payments[0].status == "pending"

    def test_review_nothing_pending(self, ledger_file):
        result = runner.invoke(app, ["review", "a", "-f", str(ledger_file)])

        assert result.exit_code == 0
        assert "No pending payments" in result.output
