"""Tests for alerts, the service report and the dashboard."""

from datetime import date, timedelta

import pytest

from despachante_manager.domain.models import (
    AlertStatus,
    ServiceStatus,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from despachante_manager.services.errors import ValidationError
from despachante_manager.services.report_service import ReportFilters


class TestAlertService:
    """Tests for AlertService."""

    def test_lists_cnh_and_licensing(self, services, make_client, make_vehicle):
        today = date(2024, 6, 1)
        client = make_client(cnh_expiration_date="2024-06-20")
        expired = make_vehicle(client.id, licensing_expiration_date="2024-05-01")
        make_vehicle(client.id, plate="XYZ9A87", licensing_expiration_date="2025-01-01")

        alerts = services.alert_service.list_alerts(today)

        assert [alert.id for alert in alerts] == [
            f"vehicle-{expired.id}",
            f"client-{client.id}",
        ]
        assert [alert.status for alert in alerts] == [
            AlertStatus.EXPIRED,
            AlertStatus.EXPIRING_SOON,
        ]

    def test_filter_by_status(self, services, make_client):
        make_client(cnh_expiration_date="2024-06-20")
        today = date(2024, 6, 1)
        assert services.alert_service.list_alerts(today, status=AlertStatus.EXPIRED) == []
        assert len(services.alert_service.list_alerts(today, status=AlertStatus.EXPIRING_SOON)) == 1


class TestServiceReport:
    """Tests for ReportService.service_report."""

    @pytest.fixture
    def catalog(self, make_client, make_vehicle, make_service):
        maria = make_client()
        joao = make_client(name="João Souza", cpf_cnpj="987.654.321-00")
        car = make_vehicle(maria.id)
        bike = make_vehicle(joao.id, plate="MOT0A12")
        make_service(maria.id, car.id, price=100.0, due_date="2024-01-10")
        make_service(maria.id, car.id, price=300.0, due_date="2024-01-25", status=ServiceStatus.COMPLETED)
        make_service(joao.id, bike.id, price=200.0, due_date="2024-02-05")
        return maria, joao

    def test_summary_and_monthly(self, services, catalog):
        report = services.report_service.service_report()
        assert report.summary.total_services == 3
        assert report.summary.total_revenue == pytest.approx(600.0)
        assert report.summary.average_ticket == pytest.approx(200.0)
        assert [(m.month, m.count, m.total) for m in report.monthly] == [
            ("2024-01", 2, 400.0),
            ("2024-02", 1, 200.0),
        ]

    def test_filters(self, services, catalog):
        maria, _ = catalog
        report = services.report_service.service_report(
            ReportFilters(start_date="2024-01-01", end_date="2024-01-31", client_id=maria.id)
        )
        assert report.summary.total_services == 2
        completed = services.report_service.service_report(
            ReportFilters(status=ServiceStatus.COMPLETED)
        )
        assert [row.service.price for row in completed.rows] == [300.0]

    def test_dates_in_other_iso_forms_are_stored_canonically(
        self, services, make_client, make_vehicle, make_service
    ):
        owner = make_client()
        car = make_vehicle(owner.id)
        for due in ("2024-01-15", "20240116", "2024-01-17T09:30:00+00:00"):
            make_service(owner.id, car.id, due_date=due)

        report = services.report_service.service_report(
            ReportFilters(start_date="2024-01-01", end_date="2024-01-31")
        )

        assert report.summary.total_services == 3
        assert [row.service.due_date for row in report.rows] == [
            "2024-01-15",
            "2024-01-16",
            "2024-01-17",
        ]
        assert [(m.month, m.count) for m in report.monthly] == [("2024-01", 3)]

    def test_empty_report(self, services):
        report = services.report_service.service_report()
        assert report.summary.total_services == 0
        assert report.summary.average_ticket == 0.0
        assert report.monthly == []

    def test_inverted_period(self, services):
        with pytest.raises(ValidationError):
            services.report_service.service_report(
                ReportFilters(start_date="2024-02-01", end_date="2024-01-01")
            )


class TestDashboard:
    """Tests for ReportService.dashboard."""

    def test_snapshot(self, services, actor, make_client, make_vehicle, make_service):
        today = date.today()
        client = make_client(cnh_expiration_date=(today + timedelta(days=10)).isoformat())
        vehicle = make_vehicle(client.id)
        make_service(client.id, vehicle.id, price=0.0)
        make_service(client.id, vehicle.id, price=0.0, status=ServiceStatus.COMPLETED)
        services.finance_service.create_transaction(
            actor,
            Transaction(
                id=None,
                description="Taxa recebida",
                transaction_date=today.isoformat(),
                amount=80.0,
                type=TransactionType.REVENUE,
                status=TransactionStatus.PAID,
            ),
        )

        snapshot = services.report_service.dashboard(today, activity_limit=3)

        assert snapshot.total_clients == 1
        assert snapshot.active_services == 1
        assert snapshot.month_revenue == pytest.approx(80.0)
        assert snapshot.pending_alerts == 1
        assert len(snapshot.recent_activity) == 3
        assert snapshot.services_by_client == {"Maria Silva": 2}
