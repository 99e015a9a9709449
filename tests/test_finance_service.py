"""Tests for FinanceService."""

from datetime import date

import pytest

from despachante_manager.domain.models import Transaction, TransactionStatus, TransactionType
from despachante_manager.services.errors import NotFoundError, ValidationError


def _entry(kind=TransactionType.EXPENSE, status=TransactionStatus.PENDING, amount=50.0, **fields):
    fields.setdefault("transaction_date", date.today().isoformat())
    return Transaction(
        id=None,
        description=fields.pop("description", "Taxa DETRAN"),
        amount=amount,
        type=kind,
        status=status,
        **fields,
    )


class TestTransactions:
    """Tests for manual ledger entries."""

    def test_create_and_list_payables(self, services, actor):
        created = services.finance_service.create_transaction(actor, _entry(category=" Taxas "))
        assert created.category == "Taxas"
        assert [item.id for item in services.finance_service.list_payables()] == [created.id]
        assert services.finance_service.list_receivables() == []
        assert services.finance_service.list_categories() == ["Taxas"]

    @pytest.mark.parametrize(
        "fields",
        [{"amount": 0}, {"amount": -5}, {"description": " "}, {"transaction_date": ""}],
    )
    def test_validation(self, services, actor, fields):
        with pytest.raises(ValidationError):
            services.finance_service.create_transaction(actor, _entry(**fields))

    def test_mark_paid_moves_totals(self, services, actor):
        receivable = services.finance_service.create_transaction(
            actor, _entry(kind=TransactionType.REVENUE, amount=100)
        )
        assert services.finance_service.summary().accounts_receivable == 100
        services.finance_service.mark_paid(actor, receivable.id)
        summary = services.finance_service.summary()
        assert summary.accounts_receivable == 0
        assert summary.total_revenue == 100
        assert summary.current_balance == 100

    def test_cash_flow_current_month(self, services, actor):
        services.finance_service.create_transaction(
            actor, _entry(kind=TransactionType.REVENUE, status=TransactionStatus.PAID, amount=80)
        )
        services.finance_service.create_transaction(
            actor, _entry(status=TransactionStatus.PAID, amount=30)
        )
        flow = services.finance_service.cash_flow()
        assert len(flow) == 1
        assert flow[0].month == date.today().strftime("%Y-%m")
        assert flow[0].net == 50

    def test_delete(self, services, actor):
        created = services.finance_service.create_transaction(actor, _entry())
        assert services.finance_service.delete_transaction(actor, created.id)
        with pytest.raises(NotFoundError):
            services.finance_service.get_transaction(created.id)


class TestDateStorage:
    """Dates typed in other ISO forms still match the ledger date filters."""

    def test_compact_dates_are_filtered_by_period(self, services, actor):
        created = services.finance_service.create_transaction(
            actor, _entry(transaction_date="20240305", due_date="2024-03-20T08:00:00")
        )
        assert created.transaction_date == "2024-03-05"
        assert created.due_date == "2024-03-20"
        march = services.finance_service.list_transactions(
            start_date="2024-03-01", end_date="2024-03-31"
        )
        assert [item.id for item in march] == [created.id]

    def test_invalid_date_still_rejected(self, services, actor):
        with pytest.raises(ValidationError):
            services.finance_service.create_transaction(
                actor, _entry(transaction_date="05/03/2024")
            )
