"""Application configuration."""

from __future__ import annotations

from dataclasses import dataclass

from despachante_manager.version import __app_name__, __company__

APP_NAME = __app_name__
APP_DATA_DIRNAME = "DespachanteManager"
APP_HOME_ENV = "DESPACHANTE_HOME"
DB_FILENAME = "despachante.db"
BACKUP_DIRNAME = "backups"
BACKUP_RETENTION_COUNT = 30
LOGS_DIRNAME = "logs"
LOG_FILENAME = "app.log"
LOG_MAX_BYTES = 1_000_000
LOG_BACKUP_COUNT = 3
PDF_DIRNAME = "pdfs"
STORAGE_DIRNAME = "storage"
CONFIG_FILENAME = "config.json"

AVATARS_BUCKET = "avatars"
VEHICLE_IMAGES_BUCKET = "vehicle_images"
DOCUMENTS_BUCKET = "documents"
STORAGE_BUCKETS = (AVATARS_BUCKET, VEHICLE_IMAGES_BUCKET, DOCUMENTS_BUCKET)

EXPIRATION_WARNING_DAYS = 30
CASH_FLOW_MONTHS = 6
MAX_VEHICLE_IMAGES = 4
RECENT_ACTIVITY_LIMIT = 10

TRANSFER_SERVICE_NAME = "Transferência de propriedade"
SERVICE_REVENUE_CATEGORY = "Receita de Serviço"


@dataclass(frozen=True)
class CompanyProfile:
    """Office identification printed on reports."""

    name: str
    cnpj: str
    phone: str
    address: str
    city: str = ""
    state: str = ""
    zip: str = ""


DEFAULT_COMPANY_PROFILE = CompanyProfile(
    name="Despachante",
    cnpj="00.000.000/0000-00",
    phone="(11) 99999-9999",
    address="Rua Exemplo, 123 - Centro",
)


@dataclass(frozen=True)
class AppConfig:
    """Static configuration values for Despachante Manager."""

    app_name: str = APP_NAME
    organization_name: str = __company__
    expiration_warning_days: int = EXPIRATION_WARNING_DAYS
    cash_flow_months: int = CASH_FLOW_MONTHS
