"""Command-line entry point."""

from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path
from typing import Optional, Sequence

from despachante_manager.app_services import AppServices, build_services
from despachante_manager.config import CASH_FLOW_MONTHS, AppConfig
from despachante_manager.db.connection import get_connection
from despachante_manager.db.migrations import apply_migrations
from despachante_manager.domain.models import AlertStatus, ServiceStatus
from despachante_manager.domain.status import to_date
from despachante_manager.logging_config import configure_logging, get_logger
from despachante_manager.paths import (
    get_backup_dir,
    get_config_path,
    get_db_path,
    get_pdfs_dir,
)
from despachante_manager.services.errors import ServiceError
from despachante_manager.services.report_service import ReportFilters
from despachante_manager.utils.backup import (
    export_backup,
    list_backups,
    restore_backup,
    run_integrity_check,
)
from despachante_manager.utils.formatting import format_currency, format_date
from despachante_manager.utils.pdf_generator import (
    generate_client_list_pdf,
    generate_service_report_pdf,
    generate_vehicle_list_pdf,
)
from despachante_manager.utils.settings import load_settings

ALERT_LABELS = {
    AlertStatus.EXPIRED: "VENCIDO",
    AlertStatus.EXPIRING_SOON: "A VENCER",
}


def _iso_date(value: str) -> str:
    if to_date(value) is None:
        raise argparse.ArgumentTypeError(f"data inválida: {value}")
    return value


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="despachante_manager",
        description="Gestão de clientes, veículos e serviços de despachante.",
    )
    parser.add_argument("--verbose", action="store_true", help="Mostra logs no console.")
    commands = parser.add_subparsers(dest="command", required=True)

    init = commands.add_parser("init", help="Cria o banco de dados e o primeiro administrador.")
    init.add_argument("--admin-name")
    init.add_argument("--admin-email")

    alerts = commands.add_parser("alerts", help="Lista CNHs e licenciamentos vencidos ou a vencer.")
    alerts.add_argument("--date", type=_iso_date, help="Data de referência (AAAA-MM-DD).")

    finance = commands.add_parser("finance", help="Resumo financeiro e fluxo de caixa.")
    finance.add_argument("--months", type=int, default=CASH_FLOW_MONTHS)

    commands.add_parser("dashboard", help="Indicadores do painel.")

    report = commands.add_parser("report", help="Relatório de serviços.")
    _add_report_filters(report)

    printer = commands.add_parser("print", help="Gera PDFs para impressão.")
    printer.add_argument("target", choices=["clients", "vehicles", "report"])
    printer.add_argument("--output", type=Path)
    _add_report_filters(printer)

    backup = commands.add_parser("backup", help="Backup do banco de dados.")
    backup.add_argument("--list", action="store_true", help="Lista os backups existentes.")
    backup.add_argument("--check", action="store_true", help="Verifica a integridade do banco.")
    backup.add_argument("--restore", type=Path, help="Restaura o arquivo de backup informado.")
    backup.add_argument("--yes", action="store_true", help="Confirma a restauração.")
    return parser


def _add_report_filters(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--start", type=_iso_date)
    parser.add_argument("--end", type=_iso_date)
    parser.add_argument("--status", choices=[status.value for status in ServiceStatus])
    parser.add_argument("--client-id", type=int)


def _report_filters(args: argparse.Namespace) -> ReportFilters:
    return ReportFilters(
        start_date=args.start,
        end_date=args.end,
        status=ServiceStatus(args.status) if args.status else None,
        client_id=args.client_id,
    )


def _cmd_init(services: AppServices, args: argparse.Namespace) -> int:
    if args.admin_email:
        user = services.user_service.bootstrap_admin(
            args.admin_name or args.admin_email, args.admin_email
        )
        print(f"Administrador criado: {user.full_name} <{user.email}>")
    print(f"Banco de dados pronto em {get_db_path()}")
    return 0


def _cmd_alerts(services: AppServices, args: argparse.Namespace) -> int:
    today = to_date(args.date) if args.date else None
    alerts = services.alert_service.list_alerts(today)
    if not alerts:
        print("Nenhum alerta de vencimento.")
        return 0
    for alert in alerts:
        print(f"{format_date(alert.date)}  {ALERT_LABELS[alert.status]:<9} {alert.message}")
    return 0


def _cmd_finance(services: AppServices, args: argparse.Namespace) -> int:
    summary = services.finance_service.summary()
    print(f"Receita total:       {format_currency(summary.total_revenue)}")
    print(f"Contas a receber:    {format_currency(summary.accounts_receivable)}")
    print(f"Contas a pagar:      {format_currency(summary.accounts_payable)}")
    print(f"Saldo atual:         {format_currency(summary.current_balance)}")
    flow = services.finance_service.cash_flow(args.months)
    if flow:
        print()
        print("Mês       Receitas        Despesas")
        for item in flow:
            print(
                f"{item.month}   {format_currency(item.revenue):>14}  "
                f"{format_currency(item.expense):>14}"
            )
    return 0


def _cmd_dashboard(services: AppServices, args: argparse.Namespace) -> int:
    snapshot = services.report_service.dashboard()
    print(f"Clientes:            {snapshot.total_clients}")
    print(f"Processos ativos:    {snapshot.active_services}")
    print(f"Receita do mês:      {format_currency(snapshot.month_revenue)}")
    print(f"Alertas pendentes:   {snapshot.pending_alerts}")
    for entry in snapshot.recent_activity:
        print(f"  {entry.created_at}  {entry.action}  {entry.entity_type}:{entry.entity_id}")
    return 0


def _cmd_report(services: AppServices, args: argparse.Namespace) -> int:
    report = services.report_service.service_report(_report_filters(args))
    for row in report.rows:
        print(
            f"{format_date(row.service.due_date)}  {row.vehicle_plate:<8} "
            f"{row.service.name} ({row.client_name}) {format_currency(row.service.price)}"
        )
    print(f"Total de serviços: {report.summary.total_services}")
    print(f"Faturamento total: {format_currency(report.summary.total_revenue)}")
    print(f"Ticket médio:      {format_currency(report.summary.average_ticket)}")
    return 0


def _cmd_print(services: AppServices, args: argparse.Namespace) -> int:
    company = load_settings(get_config_path()).company
    stamp = date.today().strftime("%Y%m%d")
    output = args.output or get_pdfs_dir() / f"{args.target}_{stamp}.pdf"
    if args.target == "clients":
        clients = sorted(services.client_cache.items(), key=lambda item: item.name.casefold())
        generate_client_list_pdf(clients, output, company=company)
    elif args.target == "vehicles":
        vehicles = services.vehicle_service.search_vehicles()
        generate_vehicle_list_pdf(vehicles, output, company=company)
    else:
        report = services.report_service.service_report(_report_filters(args))
        generate_service_report_pdf(report, output, company=company)
    print(f"PDF gerado em {output}")
    return 0


def _cmd_backup(services: AppServices, args: argparse.Namespace) -> int:
    if args.list:
        for path in list_backups(get_backup_dir()):
            print(path)
        return 0
    if args.check:
        results = run_integrity_check(get_db_path())
        print("; ".join(results))
        return 0 if results == ["ok"] else 1
    if args.restore:
        services.connection.close()
        result = restore_backup(
            args.restore,
            get_db_path(),
            get_backup_dir(),
            confirm_overwrite=lambda: args.yes,
        )
        print(f"Backup restaurado. Cópia de segurança em {result.safety_backup_path}")
        return 0
    path = export_backup(get_db_path(), get_backup_dir())
    print(f"Backup criado em {path}")
    return 0


COMMANDS = {
    "init": _cmd_init,
    "alerts": _cmd_alerts,
    "finance": _cmd_finance,
    "dashboard": _cmd_dashboard,
    "report": _cmd_report,
    "print": _cmd_print,
    "backup": _cmd_backup,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run one command against the local database."""
    args = _build_parser().parse_args(argv)
    configure_logging(console=args.verbose)
    logger = get_logger(__name__)
    config = AppConfig()
    logger.info("Starting %s command=%s", config.app_name, args.command)

    connection = get_connection(get_db_path())
    apply_migrations(connection)
    if load_settings(get_config_path()).auto_backup_on_start and args.command != "backup":
        try:
            backup_path = export_backup(get_db_path(), get_backup_dir())
            logger.info("Automatic backup created at %s", backup_path)
        except (OSError, ValueError):
            logger.exception("Automatic backup failed.")

    services = build_services(connection)
    try:
        return COMMANDS[args.command](services, args)
    except (ServiceError, FileNotFoundError, PermissionError, ValueError) as exc:
        logger.warning("Command %s failed: %s", args.command, exc)
        print(f"Erro: {exc}", file=sys.stderr)
        return 1
    finally:
        connection.close()


if __name__ == "__main__":
    raise SystemExit(main())
