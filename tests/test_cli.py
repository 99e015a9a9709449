"""Tests for the command-line entry point."""

import pytest

from despachante_manager.app import main
from despachante_manager.paths import get_backup_dir


@pytest.fixture
def initialized(capsys):
    assert main(["init", "--admin-name", "Ana", "--admin-email", "ana@example.com"]) == 0
    capsys.readouterr()


class TestCli:
    """Tests for the CLI commands."""

    def test_init_creates_admin_once(self, capsys):
        assert main(["init", "--admin-email", "ana@example.com"]) == 0
        assert "ana@example.com" in capsys.readouterr().out
        assert main(["init", "--admin-email", "outra@example.com"]) == 1
        assert "Erro:" in capsys.readouterr().err

    def test_alerts_empty(self, initialized, capsys):
        assert main(["alerts", "--date", "2024-06-01"]) == 0
        assert "Nenhum alerta" in capsys.readouterr().out

    def test_finance_and_dashboard(self, initialized, capsys):
        assert main(["finance"]) == 0
        assert "R$ 0,00" in capsys.readouterr().out
        assert main(["dashboard"]) == 0
        assert "Clientes:" in capsys.readouterr().out

    def test_report_rejects_inverted_period(self, initialized, capsys):
        assert main(["report", "--start", "2024-02-01", "--end", "2024-01-01"]) == 1
        assert "data inicial" in capsys.readouterr().err

    def test_print_clients(self, initialized, tmp_path):
        output = tmp_path / "clientes.pdf"
        assert main(["print", "clients", "--output", str(output)]) == 0
        assert output.read_bytes().startswith(b"%PDF")

    def test_backup_and_list(self, initialized, capsys):
        assert main(["backup"]) == 0
        assert "Backup criado" in capsys.readouterr().out
        assert len(list(get_backup_dir().glob("*.db"))) == 1
        assert main(["backup", "--list"]) == 0
        assert ".db" in capsys.readouterr().out
        assert main(["backup", "--check"]) == 0

    def test_restore_needs_confirmation(self, initialized, capsys):
        main(["backup"])
        backup = next(get_backup_dir().glob("*.db"))
        capsys.readouterr()
        assert main(["backup", "--restore", str(backup)]) == 1
        assert "cancelada" in capsys.readouterr().err
        assert main(["backup", "--restore", str(backup), "--yes"]) == 0
