"""Tests for ledger aggregation."""

from despachante_manager.domain.finance import monthly_cash_flow, summarize_transactions
from despachante_manager.domain.models import Transaction, TransactionStatus, TransactionType

REVENUE = TransactionType.REVENUE
EXPENSE = TransactionType.EXPENSE
PAID = TransactionStatus.PAID
PENDING = TransactionStatus.PENDING


def _entry(kind, status, amount, day="2024-03-15"):
    return Transaction(
        id=None,
        description="x",
        transaction_date=day,
        amount=amount,
        type=kind,
        status=status,
    )


class TestSummarizeTransactions:
    """Tests for summarize_transactions."""

    def test_reference_example(self):
        summary = summarize_transactions(
            [
                _entry(REVENUE, PAID, 100),
                _entry(REVENUE, PENDING, 50),
                _entry(EXPENSE, PAID, 30),
                _entry(EXPENSE, PENDING, 20),
            ]
        )
        assert summary.total_revenue == 100
        assert summary.accounts_receivable == 50
        assert summary.accounts_payable == 20
        assert summary.current_balance == 70

    def test_empty(self):
        summary = summarize_transactions([])
        assert summary.total_revenue == summary.current_balance == 0

    def test_balance_can_go_negative(self):
        summary = summarize_transactions([_entry(EXPENSE, PAID, 80)])
        assert summary.current_balance == -80


class TestMonthlyCashFlow:
    """Tests for monthly_cash_flow."""

    def test_groups_paid_only_chronologically(self):
        flow = monthly_cash_flow(
            [
                _entry(REVENUE, PAID, 100, "2024-03-02"),
                _entry(EXPENSE, PAID, 40, "2024-03-20"),
                _entry(REVENUE, PENDING, 999, "2024-03-21"),
                _entry(REVENUE, PAID, 10, "2024-01-05"),
            ]
        )
        assert [item.month for item in flow] == ["2024-01", "2024-03"]
        assert flow[1].revenue == 100
        assert flow[1].expense == 40
        assert flow[1].net == 60

    def test_limit_keeps_latest_months(self):
        entries = [_entry(REVENUE, PAID, 1, f"2024-{month:02d}-01") for month in range(1, 9)]
        flow = monthly_cash_flow(entries, limit=6)
        assert [item.month for item in flow] == [f"2024-{m:02d}" for m in range(3, 9)]

    def test_limit_zero(self):
        assert monthly_cash_flow([_entry(REVENUE, PAID, 1)], limit=0) == []
