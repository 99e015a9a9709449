"""Aggregations over the transaction ledger."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from despachante_manager.domain.models import (
    Transaction,
    TransactionStatus,
    TransactionType,
)
from despachante_manager.domain.status import to_date


@dataclass(frozen=True)
class FinancialSummary:
    total_revenue: float
    accounts_receivable: float
    accounts_payable: float
    current_balance: float


@dataclass(frozen=True)
class MonthlyCashFlow:
    month: str
    revenue: float
    expense: float

    @property
    def net(self) -> float:
        return self.revenue - self.expense


def summarize_transactions(transactions: Iterable[Transaction]) -> FinancialSummary:
    """Recompute the four headline figures from the full transaction set."""
    paid_revenue = 0.0
    pending_revenue = 0.0
    paid_expense = 0.0
    pending_expense = 0.0
    for item in transactions:
        amount = float(item.amount)
        kind = TransactionType(item.type)
        status = TransactionStatus(item.status)
        if kind == TransactionType.REVENUE:
            if status == TransactionStatus.PAID:
                paid_revenue += amount
            else:
                pending_revenue += amount
        else:
            if status == TransactionStatus.PAID:
                paid_expense += amount
            else:
                pending_expense += amount
    return FinancialSummary(
        total_revenue=paid_revenue,
        accounts_receivable=pending_revenue,
        accounts_payable=pending_expense,
        current_balance=paid_revenue - paid_expense,
    )


def monthly_cash_flow(
    transactions: Iterable[Transaction],
    limit: Optional[int] = None,
) -> list[MonthlyCashFlow]:
    """Group paid transactions by calendar month, oldest month first.

    ``limit`` keeps only the most recent months that have data.
    """
    buckets: dict[str, list[float]] = {}
    for item in transactions:
        if TransactionStatus(item.status) != TransactionStatus.PAID:
            continue
        day = to_date(item.transaction_date)
        if day is None:
            continue
        month = day.strftime("%Y-%m")
        totals = buckets.setdefault(month, [0.0, 0.0])
        if TransactionType(item.type) == TransactionType.REVENUE:
            totals[0] += float(item.amount)
        else:
            totals[1] += float(item.amount)
    series = [
        MonthlyCashFlow(month=month, revenue=totals[0], expense=totals[1])
        for month, totals in sorted(buckets.items())
    ]
    if limit is not None and limit >= 0:
        series = series[-limit:] if limit else []
    return series
