"""Service container shared by the entry points."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from despachante_manager.domain.models import Client, EntityType, Vehicle
from despachante_manager.services.alert_service import AlertService
from despachante_manager.services.auth import AuthSession
from despachante_manager.services.client_service import ClientService
from despachante_manager.services.document_service import DocumentService
from despachante_manager.services.finance_service import FinanceService
from despachante_manager.services.process_service import ProcessService
from despachante_manager.services.report_service import ReportService
from despachante_manager.services.storage_service import StorageService
from despachante_manager.services.user_service import UserService
from despachante_manager.services.vehicle_service import VehicleService
from despachante_manager.state.data_bus import DataEventBus
from despachante_manager.state.entity_cache import EntityCache


@dataclass(frozen=True)
class AppServices:
    """Shared services for dependency injection."""

    connection: sqlite3.Connection
    data_bus: DataEventBus
    session: AuthSession
    storage: StorageService
    client_service: ClientService
    vehicle_service: VehicleService
    process_service: ProcessService
    finance_service: FinanceService
    document_service: DocumentService
    user_service: UserService
    alert_service: AlertService
    report_service: ReportService
    client_cache: EntityCache[Client]
    vehicle_cache: EntityCache[Vehicle]


def build_services(
    connection: sqlite3.Connection,
    *,
    storage_root: Optional[Path] = None,
    config_path: Optional[Path] = None,
) -> AppServices:
    data_bus = DataEventBus()
    storage = StorageService(storage_root)
    client_service = ClientService(connection, storage, data_bus)
    vehicle_service = VehicleService(connection, storage, data_bus)
    client_cache = EntityCache(
        EntityType.CLIENT.value,
        client_service.list_clients,
        client_service.find_client,
        bus=data_bus,
    )
    vehicle_cache = EntityCache(
        EntityType.VEHICLE.value,
        vehicle_service.list_vehicles,
        vehicle_service.find_vehicle,
        bus=data_bus,
    )
    return AppServices(
        connection=connection,
        data_bus=data_bus,
        session=AuthSession(connection),
        storage=storage,
        client_service=client_service,
        vehicle_service=vehicle_service,
        process_service=ProcessService(connection, data_bus),
        finance_service=FinanceService(connection, data_bus),
        document_service=DocumentService(connection, storage, data_bus),
        user_service=UserService(connection, config_path, data_bus),
        alert_service=AlertService(
            connection, client_cache=client_cache, vehicle_cache=vehicle_cache
        ),
        report_service=ReportService(connection),
        client_cache=client_cache,
        vehicle_cache=vehicle_cache,
    )
