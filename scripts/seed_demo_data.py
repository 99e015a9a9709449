"""Seed demo data into the Despachante Manager SQLite database."""

from __future__ import annotations

import argparse
import random
import sys
from datetime import date, timedelta
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from despachante_manager.app_services import build_services
from despachante_manager.db.connection import get_connection
from despachante_manager.db.migrations import apply_migrations
from despachante_manager.domain.catalog import SERVICE_CATALOG
from despachante_manager.domain.models import (
    Client,
    ClientType,
    Service,
    ServiceStatus,
    Transaction,
    TransactionStatus,
    TransactionType,
    Vehicle,
)
from despachante_manager.paths import get_db_path
from despachante_manager.services.vehicle_service import TransferRequest

SEED_TAG = "Seed Demo"
DEFAULT_SEED = 42
ADMIN_EMAIL = "admin@despachante.local"

FIRST_NAMES = ["Ana", "Bruno", "Carla", "Diego", "Elaine", "Fábio", "Gabriela", "Heitor"]
LAST_NAMES = ["Silva", "Souza", "Oliveira", "Pereira", "Costa", "Almeida", "Ramos"]
COMPANY_NAMES = ["Transportes Rápido", "Locadora Sol", "Auto Peças Central"]
BRANDS = {
    "Fiat": ["Uno", "Argo", "Strada"],
    "Volkswagen": ["Gol", "Polo", "Saveiro"],
    "Chevrolet": ["Onix", "S10", "Prisma"],
    "Honda": ["CG 160", "Civic", "Fit"],
}
COLORS = ["Branco", "Prata", "Preto", "Vermelho", "Cinza"]
EXPENSE_CATEGORIES = ["Taxas DETRAN", "Aluguel", "Combustível", "Material de escritório"]


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed demo data for Despachante Manager")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Remove o banco atual e recria antes de inserir dados.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=DEFAULT_SEED,
        help="Seed para aleatoriedade.",
    )
    return parser.parse_args()


def _random_cpf(rng: random.Random) -> str:
    digits = "".join(str(rng.randint(0, 9)) for _ in range(11))
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"


def _random_plate(rng: random.Random) -> str:
    letters = "ABCDEFGHJKLMNPRSTUVWXYZ"
    return (
        "".join(rng.choice(letters) for _ in range(3))
        + str(rng.randint(0, 9))
        + rng.choice(letters)
        + f"{rng.randint(0, 99):02d}"
    )


def _seed_clients(services, actor: str, rng: random.Random, today: date) -> list[Client]:
    clients: list[Client] = []
    for _ in range(rng.randint(12, 20)):
        name = f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"
        cnh_date = today + timedelta(days=rng.randint(-60, 400))
        clients.append(
            services.client_service.create_client(
                actor,
                Client(
                    id=None,
                    name=name,
                    cpf_cnpj=_random_cpf(rng),
                    email=f"{name.lower().replace(' ', '.')}@exemplo.com",
                    phone=f"(11) 9{rng.randint(1000, 9999)}-{rng.randint(1000, 9999)}",
                    address=rng.choice([None, "Rua das Flores, 100", "Av. Brasil, 2000"]),
                    client_type=ClientType.INDIVIDUAL,
                    cnh_number=str(rng.randint(10**10, 10**11 - 1)),
                    cnh_expiration_date=cnh_date.isoformat(),
                ),
            )
        )
    for company in COMPANY_NAMES:
        clients.append(
            services.client_service.create_client(
                actor,
                Client(
                    id=None,
                    name=f"{company} Ltda",
                    trade_name=company,
                    contact_name=rng.choice(FIRST_NAMES),
                    cpf_cnpj=f"{rng.randint(10, 99)}.{rng.randint(100, 999)}.{rng.randint(100, 999)}/0001-{rng.randint(10, 99)}",
                    client_type=ClientType.COMPANY,
                ),
            )
        )
    return clients


def _seed_vehicles(
    services,
    actor: str,
    rng: random.Random,
    clients: list[Client],
    today: date,
) -> list[Vehicle]:
    vehicles: list[Vehicle] = []
    plates: set[str] = set()
    for client in clients:
        for _ in range(rng.randint(0, 2)):
            plate = _random_plate(rng)
            if plate in plates:
                continue
            plates.add(plate)
            brand = rng.choice(list(BRANDS))
            year = rng.randint(2008, today.year)
            vehicles.append(
                services.vehicle_service.create_vehicle(
                    actor,
                    Vehicle(
                        id=None,
                        plate=plate,
                        owner_id=client.id,
                        brand=brand,
                        model=rng.choice(BRANDS[brand]),
                        year_manufacture=year,
                        year_model=year + rng.randint(0, 1),
                        color=rng.choice(COLORS),
                        fuel_type="Flex",
                        licensing_expiration_date=(
                            today + timedelta(days=rng.randint(-90, 300))
                        ).isoformat(),
                    ),
                )
            )
    return vehicles


def _seed_services(services, actor: str, rng: random.Random, vehicles, today: date) -> int:
    names = [name for category in SERVICE_CATALOG for name in category.services]
    names = [name for name in names if name != "Transferência de propriedade"]
    count = 0
    for vehicle in vehicles:
        for _ in range(rng.randint(0, 2)):
            status = rng.choice(list(ServiceStatus))
            created = services.process_service.create_service(
                actor,
                Service(
                    id=None,
                    name=rng.choice(names),
                    client_id=vehicle.owner_id,
                    vehicle_id=vehicle.id,
                    status=status,
                    due_date=(today + timedelta(days=rng.randint(-45, 60))).isoformat(),
                    price=float(rng.choice([0, 120, 180, 250, 350, 480])),
                    agent_name=rng.choice([None, "Carlos", "Juliana"]),
                ),
            )
            if status == ServiceStatus.COMPLETED:
                for entry in services.finance_service.list_transactions(service_id=created.id):
                    services.finance_service.mark_paid(actor, entry.id)
            count += 1
    return count


def _seed_transfers(services, actor: str, rng: random.Random, clients, vehicles, today: date) -> int:
    count = 0
    for vehicle in rng.sample(vehicles, k=min(3, len(vehicles))):
        buyers = [client for client in clients if client.id != vehicle.owner_id]
        buyer = rng.choice(buyers)
        services.vehicle_service.transfer(
            actor,
            TransferRequest(
                vehicle_id=vehicle.id,
                seller_id=vehicle.owner_id,
                new_owner_id=buyer.id,
                payer_id=buyer.id,
                price=float(rng.choice([350, 420, 500])),
                due_date=(today + timedelta(days=15)).isoformat(),
                agent_name="Carlos",
                payment_status=rng.choice(list(TransactionStatus)),
            ),
        )
        count += 1
    return count


def _seed_expenses(services, actor: str, rng: random.Random, today: date) -> int:
    count = rng.randint(8, 14)
    for _ in range(count):
        day = today - timedelta(days=rng.randint(0, 150))
        services.finance_service.create_transaction(
            actor,
            Transaction(
                id=None,
                description=f"{SEED_TAG} despesa de operação",
                category=rng.choice(EXPENSE_CATEGORIES),
                transaction_date=day.isoformat(),
                amount=round(rng.uniform(40.0, 650.0), 2),
                type=TransactionType.EXPENSE,
                status=rng.choice(list(TransactionStatus)),
                due_date=day.isoformat(),
            ),
        )
    return count


def main() -> None:
    args = _parse_args()
    rng = random.Random(args.seed)

    db_path = get_db_path()
    if args.reset and db_path.exists():
        db_path.unlink()
        print(f"Banco removido: {db_path}")

    print(f"Usando banco de dados: {db_path}")
    connection = get_connection(db_path)
    try:
        apply_migrations(connection)
        services = build_services(connection)
        if services.user_service.list_users():
            print("Dados já encontrados. Use --reset para recriar o banco.")
            return

        admin = services.user_service.bootstrap_admin("Administrador", ADMIN_EMAIL)
        services.session.sign_in(admin.email)
        actor = services.session.current_actor_id()
        today = date.today()

        clients = _seed_clients(services, actor, rng, today)
        vehicles = _seed_vehicles(services, actor, rng, clients, today)
        service_count = _seed_services(services, actor, rng, vehicles, today)
        transfer_count = _seed_transfers(services, actor, rng, clients, vehicles, today)
        expense_count = _seed_expenses(services, actor, rng, today)
        summary = services.finance_service.summary()
    finally:
        connection.close()

    print("Seed concluído com sucesso!")
    print(f"Administrador: {ADMIN_EMAIL}")
    print(f"Clientes: {len(clients)}")
    print(f"Veículos: {len(vehicles)}")
    print(f"Serviços: {service_count}")
    print(f"Transferências: {transfer_count}")
    print(f"Despesas: {expense_count}")
    print(f"Receita recebida: R$ {summary.total_revenue:.2f}")


if __name__ == "__main__":
    main()
