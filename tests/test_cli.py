"""Tests for the better-controller CLI."""

import ast

import yaml
from click.testing import CliRunner

from better_controller import __version__
from better_controller.cli import main


class TestInit:
    def test_writes_default_config(self, tmp_path):
        target = tmp_path / "better_controller.yaml"
        result = CliRunner().invoke(main, ["init", "--path", str(target)])

        assert result.exit_code == 0, result.output
        data = yaml.safe_load(target.read_text())
        assert data["api_version"] == "v1"
        assert data["pagination"]["per_page"] == 25

    def test_refuses_to_overwrite(self, tmp_path):
        target = tmp_path / "better_controller.yaml"
        target.write_text("api_version: mine\n")

        result = CliRunner().invoke(main, ["init", "--path", str(target)])

        assert result.exit_code == 1
        assert "already" in result.output
        assert target.read_text() == "api_version: mine\n"

    def test_force(self, tmp_path):
        target = tmp_path / "better_controller.yaml"
        target.write_text("api_version: mine\n")
        result = CliRunner().invoke(main, ["init", "--path", str(target), "--force"])

        assert result.exit_code == 0
        assert yaml.safe_load(target.read_text())["api_version"] == "v1"


class TestGenerate:
    def test_controller_and_service(self, tmp_path):
        result = CliRunner().invoke(main, ["generate", "controller", "users", "--output-dir", str(tmp_path)])

        assert result.exit_code == 0, result.output
        controller = (tmp_path / "controllers" / "users_controller.py").read_text()
        service = (tmp_path / "services" / "user_service.py").read_text()

        ast.parse(controller)
        ast.parse(service)
        assert "class UsersController(Controller):" in controller
        assert "from services.user_service import UserService" in controller
        for name in ("index", "new", "create", "show", "edit", "update", "destroy"):
            assert f'@action("{name}")' in controller
        assert "class UserService:" in service

    def test_selected_actions_without_service(self, tmp_path):
        result = CliRunner().invoke(main, [
            "generate", "controller", "AdminReports", "index", "archive",
            "--output-dir", str(tmp_path), "--skip-service",
        ])

        assert result.exit_code == 0, result.output
        controller = (tmp_path / "controllers" / "admin_reports_controller.py").read_text()
        ast.parse(controller)
        assert "class AdminReportsController(Controller):" in controller
        assert '@action("archive")' in controller
        assert '@action("show")' not in controller
        assert "Service" not in controller
        assert not (tmp_path / "services").exists()

    def test_existing_files_are_skipped(self, tmp_path):
        path = tmp_path / "services" / "invoice_service.py"
        path.parent.mkdir()
        path.write_text("# mine\n")

        result = CliRunner().invoke(main, ["generate", "service", "invoice", "--output-dir", str(tmp_path)])

        assert result.exit_code == 0
        assert "skip" in result.output
        assert path.read_text() == "# mine\n"

    def test_service(self, tmp_path):
        result = CliRunner().invoke(main, ["generate", "service", "Invoice", "--output-dir", str(tmp_path)])

        assert result.exit_code == 0, result.output
        service = (tmp_path / "services" / "invoice_service.py").read_text()
        ast.parse(service)
        assert "class InvoiceService:" in service


class TestConfigCommand:
    def test_shows_settings_from_file(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("api_version: v7\n")

        result = CliRunner().invoke(main, ["config", "--path", str(path)])

        assert result.exit_code == 0, result.output
        assert "api_version" in result.output
        assert "v7" in result.output
        assert "pagination.per_page" in result.output

    def test_defaults_when_missing(self, tmp_path):
        result = CliRunner().invoke(main, ["config", "--path", str(tmp_path / "none.yaml")])
        assert result.exit_code == 0
        assert "defaults" in result.output

    def test_invalid_file(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("[1, 2]\n")
        result = CliRunner().invoke(main, ["config", "--path", str(path)])
        assert result.exit_code == 1
        assert "Error" in result.output


def test_version():
    result = CliRunner().invoke(main, ["--version"])
    assert __version__ in result.output
