"""Alert service for expiring CNH and vehicle licensing."""

from __future__ import annotations

import sqlite3
from datetime import date
from typing import Optional

from despachante_manager.config import EXPIRATION_WARNING_DAYS
from despachante_manager.domain.models import AlertItem, AlertStatus, Client, Vehicle
from despachante_manager.domain.status import collect_alerts
from despachante_manager.repositories.client_repo import ClientRepo
from despachante_manager.repositories.vehicle_repo import VehicleRepo
from despachante_manager.services.errors import store_errors
from despachante_manager.state.entity_cache import EntityCache


class AlertService:
    """Classifies the expiration dates of clients and vehicles.

    When caches are given the records are read through them, so repeated
    alert checks only reload what changed since the last one.
    """

    def __init__(
        self,
        connection: sqlite3.Connection,
        warning_days: int = EXPIRATION_WARNING_DAYS,
        *,
        client_cache: Optional[EntityCache[Client]] = None,
        vehicle_cache: Optional[EntityCache[Vehicle]] = None,
    ) -> None:
        self._clients = ClientRepo(connection)
        self._vehicles = VehicleRepo(connection)
        self._client_cache = client_cache
        self._vehicle_cache = vehicle_cache
        self._warning_days = warning_days

    def list_alerts(
        self,
        today: Optional[date] = None,
        *,
        status: Optional[AlertStatus] = None,
    ) -> list[AlertItem]:
        with store_errors("buscar alertas"):
            if self._client_cache is not None:
                clients = self._client_cache.items()
            else:
                clients = self._clients.list_all()
            if self._vehicle_cache is not None:
                vehicles = self._vehicle_cache.items()
            else:
                vehicles = self._vehicles.list_all()
        alerts = collect_alerts(clients, vehicles, today, warning_days=self._warning_days)
        if status is not None:
            alerts = [alert for alert in alerts if alert.status == AlertStatus(status)]
        return alerts
