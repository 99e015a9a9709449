"""PDF generation for printable lists and the service report."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Iterable
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from despachante_manager.config import DEFAULT_COMPANY_PROFILE, CompanyProfile
from despachante_manager.domain.models import (
    Client,
    ClientDocStatus,
    ClientType,
    ServiceStatus,
)
from despachante_manager.repositories.vehicle_repo import VehicleWithOwner
from despachante_manager.services.process_service import STATUS_LABELS as SERVICE_STATUS_LABELS
from despachante_manager.services.report_service import ServiceReport
from despachante_manager.utils.formatting import format_currency, format_date, format_month

DOC_STATUS_LABELS = {
    ClientDocStatus.PENDING: "Pendente",
    ClientDocStatus.IN_PROGRESS: "Em Andamento",
    ClientDocStatus.COMPLETED: "Completo",
}

TABLE_STYLE = TableStyle(
    [
        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]
)


def _styles():
    styles = getSampleStyleSheet()
    styles.add(
        ParagraphStyle(
            name="SmallText",
            parent=styles["Normal"],
            fontSize=8,
            leading=10,
        )
    )
    return styles


def _document(output_path: Path, title: str, company: CompanyProfile) -> SimpleDocTemplate:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    return SimpleDocTemplate(
        str(output_path),
        pagesize=landscape(A4),
        rightMargin=12 * mm,
        leftMargin=12 * mm,
        topMargin=12 * mm,
        bottomMargin=12 * mm,
        title=title,
        author=company.name,
    )


def _header(title: str, company: CompanyProfile, styles) -> list[object]:
    city_line = " - ".join(part for part in (company.city, company.state) if part)
    lines = [
        f"<b>{escape(company.name)}</b>",
        f"CNPJ: {escape(company.cnpj)} | Telefone: {escape(company.phone)}",
        escape(", ".join(part for part in (company.address, city_line, company.zip) if part)),
    ]
    return [
        Paragraph("<br/>".join(lines), styles["Normal"]),
        Spacer(1, 6),
        Paragraph(escape(title), styles["Title"]),
        Paragraph(
            f"Gerado em {datetime.now().strftime('%d/%m/%Y %H:%M')}",
            styles["SmallText"],
        ),
        Spacer(1, 8),
    ]


def generate_client_list_pdf(
    clients: Iterable[Client],
    output_path: Path,
    *,
    company: CompanyProfile = DEFAULT_COMPANY_PROFILE,
) -> Path:
    """Write the printable client list."""
    title = "Relatório de Clientes"
    doc = _document(output_path, title, company)
    styles = _styles()
    rows = [["Nome", "Tipo", "CPF/CNPJ", "Telefone", "E-mail", "Validade CNH", "Cadastro"]]
    total = 0
    for client in clients:
        total += 1
        rows.append(
            [
                Paragraph(escape(client.name), styles["SmallText"]),
                "Jurídica" if client.client_type == ClientType.COMPANY else "Física",
                client.cpf_cnpj or "-",
                client.phone or "-",
                Paragraph(escape(client.email or "-"), styles["SmallText"]),
                format_date(client.cnh_expiration_date),
                DOC_STATUS_LABELS[ClientDocStatus(client.doc_status)],
            ]
        )
    table = Table(
        rows,
        colWidths=[60 * mm, 22 * mm, 38 * mm, 32 * mm, 60 * mm, 25 * mm, 28 * mm],
        repeatRows=1,
    )
    table.setStyle(TABLE_STYLE)
    elements = _header(title, company, styles)
    elements.append(table)
    elements.append(Spacer(1, 6))
    elements.append(Paragraph(f"Total de clientes: {total}", styles["Normal"]))
    doc.build(elements)
    return output_path


def generate_vehicle_list_pdf(
    vehicles: Iterable[VehicleWithOwner],
    output_path: Path,
    *,
    company: CompanyProfile = DEFAULT_COMPANY_PROFILE,
) -> Path:
    """Write the printable vehicle list with each owner's name."""
    title = "Relatório de Veículos"
    doc = _document(output_path, title, company)
    styles = _styles()
    rows = [["Placa", "Marca/Modelo", "Ano", "Cor", "Chassi", "Renavam", "Proprietário", "Licenciamento"]]
    total = 0
    for entry in vehicles:
        total += 1
        vehicle = entry.vehicle
        years = "/".join(
            str(year) for year in (vehicle.year_manufacture, vehicle.year_model) if year
        )
        model = " ".join(part for part in (vehicle.brand, vehicle.model) if part)
        rows.append(
            [
                vehicle.plate,
                Paragraph(escape(model or "-"), styles["SmallText"]),
                years or "-",
                vehicle.color or "-",
                vehicle.chassis or "-",
                vehicle.renavam or "-",
                Paragraph(escape(entry.owner_name), styles["SmallText"]),
                format_date(vehicle.licensing_expiration_date),
            ]
        )
    table = Table(
        rows,
        colWidths=[22 * mm, 48 * mm, 22 * mm, 22 * mm, 42 * mm, 30 * mm, 52 * mm, 26 * mm],
        repeatRows=1,
    )
    table.setStyle(TABLE_STYLE)
    elements = _header(title, company, styles)
    elements.append(table)
    elements.append(Spacer(1, 6))
    elements.append(Paragraph(f"Total de veículos: {total}", styles["Normal"]))
    doc.build(elements)
    return output_path


def generate_service_report_pdf(
    report: ServiceReport,
    output_path: Path,
    *,
    company: CompanyProfile = DEFAULT_COMPANY_PROFILE,
) -> Path:
    """Write the service report: summary figures, rows and monthly totals."""
    title = "Relatório de Serviços"
    doc = _document(output_path, title, company)
    styles = _styles()
    elements = _header(title, company, styles)

    filters = report.filters
    start = format_date(filters.start_date) if filters.start_date else "Início"
    end = format_date(filters.end_date) if filters.end_date else "Hoje"
    period = f"Período: {start} até {end}"
    elements.append(Paragraph(period, styles["Normal"]))
    elements.append(Spacer(1, 6))

    summary = Table(
        [
            ["Total de Serviços", str(report.summary.total_services)],
            ["Faturamento Total", format_currency(report.summary.total_revenue)],
            ["Ticket Médio", format_currency(report.summary.average_ticket)],
        ],
        colWidths=[45 * mm, 45 * mm],
    )
    summary.setStyle(
        TableStyle(
            [
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("BACKGROUND", (0, 0), (0, -1), colors.whitesmoke),
            ]
        )
    )
    elements.append(summary)
    elements.append(Spacer(1, 10))

    rows = [["Serviço", "Cliente", "Placa", "Status", "Prazo", "Valor"]]
    for row in report.rows:
        service = row.service
        rows.append(
            [
                Paragraph(escape(service.name), styles["SmallText"]),
                Paragraph(escape(row.client_name), styles["SmallText"]),
                row.vehicle_plate,
                SERVICE_STATUS_LABELS[ServiceStatus(service.status)],
                format_date(service.due_date),
                format_currency(service.price),
            ]
        )
    table = Table(
        rows,
        colWidths=[70 * mm, 60 * mm, 25 * mm, 42 * mm, 25 * mm, 30 * mm],
        repeatRows=1,
    )
    table.setStyle(TABLE_STYLE)
    elements.append(table)

    if report.monthly:
        elements.append(Spacer(1, 10))
        monthly_rows = [["Mês", "Serviços", "Valor"]]
        for item in report.monthly:
            monthly_rows.append(
                [format_month(item.month), str(item.count), format_currency(item.total)]
            )
        monthly = Table(monthly_rows, colWidths=[30 * mm, 25 * mm, 35 * mm], repeatRows=1)
        monthly.setStyle(TABLE_STYLE)
        elements.append(Paragraph("Serviços por mês", styles["Heading3"]))
        elements.append(monthly)

    doc.build(elements)
    return output_path
