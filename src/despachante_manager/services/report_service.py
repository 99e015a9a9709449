"""Report service: service reports and dashboard figures."""

from __future__ import annotations

import sqlite3
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from despachante_manager.config import EXPIRATION_WARNING_DAYS, RECENT_ACTIVITY_LIMIT
from despachante_manager.domain.finance import monthly_cash_flow
from despachante_manager.domain.models import AuditLogEntry, ServiceStatus
from despachante_manager.domain.status import collect_alerts, to_date
from despachante_manager.repositories.audit_repo import AuditLogRepo
from despachante_manager.repositories.client_repo import ClientRepo
from despachante_manager.repositories.service_repo import ServiceRepo, ServiceWithNames
from despachante_manager.repositories.transaction_repo import TransactionRepo
from despachante_manager.repositories.vehicle_repo import VehicleRepo
from despachante_manager.services.errors import ValidationError, store_errors


@dataclass(frozen=True)
class ReportFilters:
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    status: Optional[ServiceStatus] = None
    client_id: Optional[int] = None


@dataclass(frozen=True)
class ReportSummary:
    total_services: int
    total_revenue: float
    average_ticket: float


@dataclass(frozen=True)
class MonthlyServiceTotal:
    month: str
    count: int
    total: float


@dataclass(frozen=True)
class ServiceReport:
    filters: ReportFilters
    rows: list[ServiceWithNames]
    summary: ReportSummary
    monthly: list[MonthlyServiceTotal]


@dataclass(frozen=True)
class DashboardSnapshot:
    total_clients: int
    active_services: int
    month_revenue: float
    pending_alerts: int
    recent_activity: list[AuditLogEntry] = field(default_factory=list)
    services_by_client: dict[str, int] = field(default_factory=dict)


def summarize_services(rows: list[ServiceWithNames]) -> ReportSummary:
    total = sum(row.service.price for row in rows)
    count = len(rows)
    return ReportSummary(
        total_services=count,
        total_revenue=total,
        average_ticket=total / count if count else 0.0,
    )


def monthly_service_totals(rows: list[ServiceWithNames]) -> list[MonthlyServiceTotal]:
    """Count and value of services per due-date month, oldest first."""
    buckets: dict[str, list[float]] = {}
    for row in rows:
        due = to_date(row.service.due_date)
        if due is None:
            continue
        totals = buckets.setdefault(due.strftime("%Y-%m"), [0, 0.0])
        totals[0] += 1
        totals[1] += row.service.price
    return [
        MonthlyServiceTotal(month=month, count=int(values[0]), total=values[1])
        for month, values in sorted(buckets.items())
    ]


class ReportService:
    """Read-only aggregations for reports and the dashboard."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._clients = ClientRepo(connection)
        self._vehicles = VehicleRepo(connection)
        self._services = ServiceRepo(connection)
        self._transactions = TransactionRepo(connection)
        self._audit = AuditLogRepo(connection)

    def service_report(self, filters: Optional[ReportFilters] = None) -> ServiceReport:
        filters = filters or ReportFilters()
        for value in (filters.start_date, filters.end_date):
            if value and to_date(value) is None:
                raise ValidationError("Período do relatório inválido.")
        if filters.start_date and filters.end_date:
            if to_date(filters.start_date) > to_date(filters.end_date):
                raise ValidationError("A data inicial deve ser anterior à data final.")
        with store_errors("gerar relatório"):
            rows = self._services.search(
                status=filters.status,
                client_id=filters.client_id,
                due_from=filters.start_date,
                due_to=filters.end_date,
            )
        return ServiceReport(
            filters=filters,
            rows=rows,
            summary=summarize_services(rows),
            monthly=monthly_service_totals(rows),
        )

    def dashboard(
        self,
        today: Optional[date] = None,
        *,
        warning_days: int = EXPIRATION_WARNING_DAYS,
        activity_limit: int = RECENT_ACTIVITY_LIMIT,
    ) -> DashboardSnapshot:
        reference = today or date.today()
        with store_errors("carregar painel"):
            clients = self._clients.list_all()
            vehicles = self._vehicles.list_all()
            active = self._services.count_active()
            transactions = self._transactions.list_transactions()
            recent = self._audit.list_recent(activity_limit)
            services = self._services.search()
        month_key = reference.strftime("%Y-%m")
        month_revenue = next(
            (
                item.revenue
                for item in monthly_cash_flow(transactions)
                if item.month == month_key
            ),
            0.0,
        )
        alerts = collect_alerts(clients, vehicles, reference, warning_days=warning_days)
        by_client = Counter(row.client_name for row in services)
        return DashboardSnapshot(
            total_clients=len(clients),
            active_services=active,
            month_revenue=month_revenue,
            pending_alerts=len(alerts),
            recent_activity=recent,
            services_by_client=dict(by_client.most_common()),
        )
