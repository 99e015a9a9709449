"""Derived status rules for clients, expiring documents and services.

Every function here is pure: the result depends only on the arguments, so a
caller may evaluate them at read time or persist the result on write without
the two ever disagreeing.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime, timedelta
from typing import Any, Optional, Union

from dateutil import parser

from despachante_manager.config import EXPIRATION_WARNING_DAYS
from despachante_manager.domain.models import (
    AlertItem,
    AlertKind,
    AlertStatus,
    Client,
    ClientDocStatus,
    ClientType,
    ServiceChecklistItem,
    ServiceStatus,
    TERMINAL_SERVICE_STATUSES,
    Vehicle,
)

DateLike = Union[date, datetime, str, None]

ESSENTIAL_CLIENT_FIELDS = ("name", "cpf_cnpj")
SHARED_CLIENT_FIELDS = ("name", "cpf_cnpj", "email", "phone", "address")
INDIVIDUAL_CLIENT_FIELDS = (
    "marital_status",
    "profession",
    "nationality",
    "naturalness",
    "cnh_number",
    "cnh_expiration_date",
)
COMPANY_CLIENT_FIELDS = ("trade_name", "contact_name")

SERVICE_TRANSITIONS: dict[ServiceStatus, frozenset[ServiceStatus]] = {
    ServiceStatus.TODO: frozenset({ServiceStatus.IN_PROGRESS, ServiceStatus.CANCELED}),
    ServiceStatus.IN_PROGRESS: frozenset(
        {ServiceStatus.WAITING_DOCS, ServiceStatus.COMPLETED, ServiceStatus.CANCELED}
    ),
    ServiceStatus.WAITING_DOCS: frozenset(
        {ServiceStatus.IN_PROGRESS, ServiceStatus.COMPLETED, ServiceStatus.CANCELED}
    ),
    ServiceStatus.COMPLETED: frozenset(),
    ServiceStatus.CANCELED: frozenset(),
}


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    return not str(value).strip()


def _field(source: Client | Mapping[str, Any], name: str) -> Any:
    if isinstance(source, Mapping):
        return source.get(name)
    return getattr(source, name, None)


def relevant_client_fields(client_type: ClientType | str) -> tuple[str, ...]:
    """Return the field names that count toward a client's registration."""
    try:
        kind = ClientType(client_type)
    except ValueError:
        kind = ClientType.INDIVIDUAL
    if kind == ClientType.COMPANY:
        return SHARED_CLIENT_FIELDS + COMPANY_CLIENT_FIELDS
    return SHARED_CLIENT_FIELDS + INDIVIDUAL_CLIENT_FIELDS


def classify_doc_status(
    fields: Client | Mapping[str, Any],
    client_type: ClientType | str | None = None,
) -> ClientDocStatus:
    """Classify how complete a client's registration is.

    Name plus CPF/CNPJ is enough for COMPLETED no matter what else is filled;
    the emptiness check only runs when the essentials are missing.
    """
    if client_type is None:
        client_type = _field(fields, "client_type") or ClientType.INDIVIDUAL
    if all(not _is_blank(_field(fields, name)) for name in ESSENTIAL_CLIENT_FIELDS):
        return ClientDocStatus.COMPLETED
    if all(_is_blank(_field(fields, name)) for name in relevant_client_fields(client_type)):
        return ClientDocStatus.PENDING
    return ClientDocStatus.IN_PROGRESS


def to_date(value: DateLike) -> Optional[date]:
    """Coerce a date, datetime or ISO string to a date; None when unusable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return parser.isoparse(text).date()
    except (ValueError, OverflowError):
        return None


def iso_date(value: DateLike) -> Optional[str]:
    """Canonical ``YYYY-MM-DD`` for storage.

    Blank input gives None; unparseable input is returned stripped so that
    validation still sees and rejects it.
    """
    parsed = to_date(value)
    if parsed is not None:
        return parsed.isoformat()
    if value is None or not str(value).strip():
        return None
    return str(value).strip()


def classify_expiration(
    value: DateLike,
    today: DateLike = None,
    *,
    warning_days: int = EXPIRATION_WARNING_DAYS,
) -> AlertStatus:
    """Classify an expiration date relative to today at day granularity."""
    expiration = to_date(value)
    if expiration is None:
        return AlertStatus.OK
    reference = to_date(today) or date.today()
    if expiration < reference:
        return AlertStatus.EXPIRED
    if expiration <= reference + timedelta(days=warning_days):
        return AlertStatus.EXPIRING_SOON
    return AlertStatus.OK


def collect_alerts(
    clients: Iterable[Client],
    vehicles: Iterable[Vehicle],
    today: DateLike = None,
    *,
    warning_days: int = EXPIRATION_WARNING_DAYS,
) -> list[AlertItem]:
    """Pool CNH and licensing alerts, soonest date first."""
    alerts: list[tuple[date, AlertItem]] = []
    for client in clients:
        status = classify_expiration(
            client.cnh_expiration_date, today, warning_days=warning_days
        )
        if status == AlertStatus.OK:
            continue
        expiration = to_date(client.cnh_expiration_date)
        alerts.append(
            (
                expiration,
                AlertItem(
                    id=f"client-{client.id}",
                    kind=AlertKind.CNH,
                    message=f"CNH de {client.name}",
                    date=expiration.isoformat(),
                    status=status,
                ),
            )
        )
    for vehicle in vehicles:
        status = classify_expiration(
            vehicle.licensing_expiration_date, today, warning_days=warning_days
        )
        if status == AlertStatus.OK:
            continue
        expiration = to_date(vehicle.licensing_expiration_date)
        alerts.append(
            (
                expiration,
                AlertItem(
                    id=f"vehicle-{vehicle.id}",
                    kind=AlertKind.LICENSING,
                    message=f"Licenciamento de {vehicle.plate}",
                    date=expiration.isoformat(),
                    status=status,
                ),
            )
        )
    alerts.sort(key=lambda entry: entry[0])
    return [alert for _, alert in alerts]


def checklist_progress(items: Iterable[ServiceChecklistItem | Mapping[str, Any]]) -> float:
    """Return the completed share of a checklist as a percentage."""
    total = 0
    completed = 0
    for item in items:
        total += 1
        if isinstance(item, Mapping):
            done = item.get("is_completed", item.get("completed", False))
        else:
            done = item.is_completed
        if done:
            completed += 1
    if total == 0:
        return 0.0
    return 100.0 * completed / total


def can_transition(current: ServiceStatus | str, target: ServiceStatus | str) -> bool:
    """Whether a service may move from ``current`` to ``target``."""
    return ServiceStatus(target) in SERVICE_TRANSITIONS[ServiceStatus(current)]


def is_active_service(status: ServiceStatus | str) -> bool:
    return ServiceStatus(status) not in TERMINAL_SERVICE_STATUSES
