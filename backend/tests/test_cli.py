"""Tests for the management CLI."""

import pytest

from workhub import cli
from workhub.auth import finance
from workhub.models import Department


@pytest.mark.unit
class TestCheckAccess:
    def test_consistent_tables(self, capsys):
        assert cli.check_access() == 0
        assert "OK" in capsys.readouterr().out

    def test_inconsistent_tables(self, monkeypatch, capsys):
        monkeypatch.setattr(finance, "FINANCE_WRITE_DEPARTMENTS", frozenset({Department.PROCUREMENT}))

        assert cli.check_access() == 1
        assert "FAILED" in capsys.readouterr().out


@pytest.mark.unit
class TestListModules:
    def test_department_modules(self, capsys):
        assert cli.list_modules("hr") == 0
        out = capsys.readouterr().out
        assert "payroll" in out
        assert "leave-management (also open to managers)" in out
        assert "fleet" not in out

    def test_unknown_department(self, capsys):
        assert cli.list_modules("marketing") == 1
        assert "Unknown department" in capsys.readouterr().out
