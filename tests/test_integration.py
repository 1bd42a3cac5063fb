"""Integration tests for GEO Schema Audit.

Covers database setup, module imports, configuration loading, CLI smoke
tests (help for every command plus an offline audit run), and syntax
validation of every Python file in the project.
"""

import ast
import importlib
from pathlib import Path

import pytest
import yaml

# ---------------------------------------------------------------------------
# Project root (conftest.py already puts it on sys.path)
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent


# ===========================================================================
# 1. Database setup
# ===========================================================================
class TestDatabaseSetup:
    """Verify that the database can be initialised with in-memory SQLite."""

    def test_init_db_creates_tables(self, test_db):
        from geo_audit.database import get_engine
        from sqlalchemy import inspect

        table_names = inspect(get_engine()).get_table_names()
        for table in (
            "websites",
            "wordpress_integrations",
            "schema_audits",
            "post_audits",
            "schema_publications",
        ):
            assert table in table_names, (
                "Missing table: " + table + ". Found: " + str(table_names)
            )

    def test_get_session_context_manager(self, test_db):
        from geo_audit.database import get_session
        from sqlalchemy import text as sa_text

        with get_session() as session:
            row = session.execute(sa_text("SELECT 1")).fetchone()
            assert row[0] == 1

    def test_reset_db(self, test_db):
        from geo_audit.database import get_engine, reset_db
        from sqlalchemy import inspect

        reset_db()
        assert len(inspect(get_engine()).get_table_names()) == 5


# ===========================================================================
# 2. Module imports
# ===========================================================================
class TestModuleImports:

    @pytest.mark.parametrize("module_path", [
        "geo_audit",
        "geo_audit.app",
        "geo_audit.cli",
        "geo_audit.database",
        "geo_audit.models",
        "geo_audit.integrations.llm_client",
        "geo_audit.integrations.wordpress_client",
        "geo_audit.modules.schema_audit",
        "geo_audit.modules.schema_audit.pipeline",
        "geo_audit.modules.schema_audit.store",
        "geo_audit.utils.helpers",
        "geo_audit.utils.labels",
    ])
    def test_import(self, module_path):
        assert importlib.import_module(module_path) is not None

    def test_package_exports(self):
        from geo_audit.modules import schema_audit
        for name in ("AuditPipeline", "AnalysisRequestBuilder", "ResultParser", "SchemaGenerator"):
            assert hasattr(schema_audit, name), name


# ===========================================================================
# 3. Utilities
# ===========================================================================
class TestUtilities:

    def test_ensure_scheme(self):
        from geo_audit.utils.helpers import ensure_scheme
        assert ensure_scheme("example.com/") == "https://example.com"
        assert ensure_scheme("http://example.com") == "http://example.com"
        assert ensure_scheme("//cdn.example.com") == "https://cdn.example.com"

    def test_clean_html(self):
        from geo_audit.utils.helpers import clean_html
        assert clean_html("<p>Xin &amp; chào</p>\n<br/>bạn") == "Xin & chào bạn"

    def test_normalise_audit_url(self):
        from geo_audit.utils.helpers import normalise_audit_url
        assert normalise_audit_url("https://example.com") == "https://example.com"
        assert normalise_audit_url("//cdn.example.com/x") == "https://cdn.example.com/x"
        assert normalise_audit_url("example.com/") == "https://example.com"
        for bad in ("not a url", "ftp://x.com", ""):
            with pytest.raises(ValueError):
                normalise_audit_url(bad)

    def test_normalise_site_domain(self):
        from geo_audit.utils.helpers import normalise_site_domain
        assert normalise_site_domain("blog.example.com/") == "https://blog.example.com"
        assert normalise_site_domain("http://example.com/blog/") == "http://example.com/blog"
        for bad in ("blog.example.com/wp-json/wp/v2", "example.com/?p=1", "not a site"):
            with pytest.raises(ValueError):
                normalise_site_domain(bad)

    def test_labels(self):
        from geo_audit.modules.schema_audit.types import AnalysisTier, SchemaStatus
        from geo_audit.utils.labels import status_label, tier_label
        assert status_label(SchemaStatus.PARTIAL, "vi") == "Một phần"
        assert status_label(SchemaStatus.PARTIAL, "en") == "Partial"
        assert tier_label(AnalysisTier.MOCK, "xx") == tier_label(AnalysisTier.MOCK, "en")


# ===========================================================================
# 4. Settings YAML
# ===========================================================================
class TestSettingsYaml:
    """Configuration file should be loadable."""

    def _load(self):
        with open(PROJECT_ROOT / "config" / "settings.yaml", encoding="utf-8") as fh:
            return yaml.safe_load(fh)

    def test_settings_has_required_sections(self):
        config = self._load()
        for section in ("app", "database", "llm", "wordpress"):
            assert section in config, "Missing config section: " + section

    def test_settings_values(self):
        config = self._load()
        assert config["app"]["name"] == "GEO Schema Audit"
        assert config["llm"]["max_tokens"] == 2000
        assert config["llm"]["temperature"] == 0.3


# ===========================================================================
# 5. CLI commands (smoke test via CliRunner)
# ===========================================================================
class TestCLICommands:
    """CLI help should work for all registered commands."""

    def _get_runner_and_app(self):
        from typer.testing import CliRunner
        from geo_audit.cli import app
        return CliRunner(), app

    def test_main_help(self):
        runner, cli_app = self._get_runner_and_app()
        result = runner.invoke(cli_app, ["--help"])
        assert result.exit_code == 0
        assert "GEO Schema Audit" in result.output

    @pytest.mark.parametrize("command", [
        "audit",
        "connect",
        "integrations",
        "disconnect",
        "posts",
        "audit-post",
        "history",
        "status",
    ])
    def test_command_help(self, command):
        runner, cli_app = self._get_runner_and_app()
        result = runner.invoke(cli_app, [command, "--help"])
        assert result.exit_code == 0, (
            "Command '" + command + "' --help failed with exit code "
            + str(result.exit_code) + ": " + result.output
        )

    def test_offline_audit_falls_back_to_placeholder(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        config = tmp_path / "settings.yaml"
        config.write_text(yaml.safe_dump({
            "app": {"language": "en"},
            "database": {"url": "sqlite:///:memory:"},
        }))
        runner, cli_app = self._get_runner_and_app()

        result = runner.invoke(cli_app, ["audit", "example.com", "-c", str(config)])
        assert result.exit_code == 0, result.output
        assert "60/100" in result.output

        result = runner.invoke(cli_app, ["status", "-c", str(config)])
        assert result.exit_code == 0, result.output
        assert "Audits: 1" in result.output

    def test_invalid_url_rejected(self):
        runner, cli_app = self._get_runner_and_app()
        result = runner.invoke(cli_app, ["audit", "not a url"])
        assert result.exit_code == 1

    def test_connect_rejects_rest_endpoint(self):
        runner, cli_app = self._get_runner_and_app()
        result = runner.invoke(cli_app, ["connect", "blog.example.com/wp-json/wp/v2", "admin", "pw"])
        assert result.exit_code == 1
        assert "wp-json" in result.output

    def test_disconnect_unknown_integration(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = tmp_path / "settings.yaml"
        config.write_text(yaml.safe_dump({"database": {"url": "sqlite:///:memory:"}}))
        runner, cli_app = self._get_runner_and_app()
        result = runner.invoke(cli_app, ["disconnect", "999", "-c", str(config)])
        assert result.exit_code == 1


# ===========================================================================
# 6. All Python files syntax validation
# ===========================================================================
class TestAllPythonFilesSyntax:
    """Every .py file in geo_audit/ and tests/ should pass ast.parse."""

    def _collect_python_files(self):
        files = []
        for directory in ("geo_audit", "tests"):
            base = PROJECT_ROOT / directory
            if base.exists():
                for py_file in base.rglob("*.py"):
                    if "__pycache__" in py_file.parts:
                        continue
                    files.append(py_file)
        return sorted(files)

    def test_all_python_files_parse(self):
        py_files = self._collect_python_files()
        assert len(py_files) > 0, "No Python files found"
        errors = []
        for py_file in py_files:
            try:
                ast.parse(py_file.read_text(encoding="utf-8"))
            except SyntaxError as exc:
                errors.append(str(py_file.relative_to(PROJECT_ROOT)) + ": " + str(exc))
        if errors:
            pytest.fail("Python syntax errors:\n" + "\n".join(errors[:20]))


# ===========================================================================
# 7. Requirements / key packages importable
# ===========================================================================
class TestRequirementsInstallable:

    @pytest.mark.parametrize("package", [
        "typer",
        "rich",
        "sqlalchemy",
        "yaml",
        "dotenv",
        "openai",
        "httpx",
    ])
    def test_package_importable(self, package):
        try:
            importlib.import_module(package)
        except ImportError:
            pytest.skip("Package not installed: " + package)
