"""Brazilian display formats shared by the CLI and the PDFs."""

from __future__ import annotations

from datetime import datetime
from typing import Optional


def format_currency(value: float) -> str:
    formatted = f"{value:,.2f}"
    return f"R$ {formatted.replace(',', 'X').replace('.', ',').replace('X', '.')}"


def format_date(value: Optional[str]) -> str:
    """``YYYY-MM-DD`` (optionally with a time part) as ``DD/MM/YYYY``."""
    if not value:
        return "-"
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d").strftime("%d/%m/%Y")
    except ValueError:
        return value


def format_month(value: str) -> str:
    """``YYYY-MM`` as ``MM/YYYY``."""
    year, _, month = value.partition("-")
    return f"{month}/{year}" if month else value
