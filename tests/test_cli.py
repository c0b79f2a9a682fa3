"""Tests for the modelgen command line interface."""

import json
import sqlite3
from pathlib import Path

import pytest

from modelgen_toolkit import cli
from modelgen_toolkit.cli import generate, schema

MIGRATION = """
CREATE TABLE users (
    id SERIAL PRIMARY KEY,
    email VARCHAR(255) NOT NULL
);
ALTER TABLE users ADD COLUMN last_seen TIMESTAMPTZ;
"""


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove settings variables inherited from the shell."""
    for name in (("DB_CONNECTION_STRING", "DB_SCHEMA", "MIGRATIONS_DIR", "MODELS_DIR", "LOG_LEVEL")):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(name="migrations")
def migrations_dir(tmp_path: Path) -> Path:
    """Create a directory with a single migration."""
    directory = tmp_path / "migrations"
    directory.mkdir()
    (directory / "1_users.up.sql").write_text(MIGRATION, encoding="utf-8")
    return directory


def test_generate_from_migrations(tmp_path: Path, migrations: Path) -> None:
    """Test writing models from migration files."""
    output = tmp_path / "models"
    generate(env=tmp_path / ".env", output=output, migrations=migrations)

    assert sorted(path.name for path in output.iterdir()) == ["_base.py", "users.py"]
    model = (output / "users.py").read_text(encoding="utf-8")
    assert "last_seen: Mapped[datetime | None]" in model


def test_generate_missing_migrations(tmp_path: Path) -> None:
    """Test the exit status for a missing migrations directory."""
    with pytest.raises(SystemExit) as exc_info:
        generate(
            env=tmp_path / ".env",
            output=tmp_path / "models",
            migrations=tmp_path / "missing",
        )
    assert exc_info.value.code == 1
    assert not (tmp_path / "models").exists()


def test_generate_from_db_requires_connection_string(tmp_path: Path) -> None:
    """Test that catalog mode fails without a connection string."""
    with pytest.raises(SystemExit) as exc_info:
        generate(env=tmp_path / ".env", output=tmp_path / "models", from_db=True)
    assert exc_info.value.code == 1


def test_generate_from_db(tmp_path: Path) -> None:
    """Test catalog mode with the connection string read from the env file."""
    db_path = tmp_path / "app.sqlite"
    conn = sqlite3.connect(db_path)
    conn.execute("CREATE TABLE projects (id INTEGER PRIMARY KEY, title TEXT NOT NULL)")
    conn.commit()
    conn.close()

    env_file = tmp_path / ".env"
    env_file.write_text(f"DB_CONNECTION_STRING=sqlite:///{db_path}\n", encoding="utf-8")
    output = tmp_path / "models"
    generate(env=env_file, output=output, from_db=True)

    model = (output / "projects.py").read_text(encoding="utf-8")
    assert "class Project(Base):" in model
    assert 'title: Mapped[str] = mapped_column("title", String, nullable=False)' in model


def test_schema_json(
    tmp_path: Path,
    migrations: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Test JSON schema output."""
    schema(env=tmp_path / ".env", migrations=migrations, fmt="json")

    (users,) = json.loads(capsys.readouterr().out)
    assert users["name"] == "users"
    assert [col["name"] for col in users["columns"]] == ["id", "email", "last_seen"]
    assert users["columns"][2]["type"]["python"] == "datetime | None"


def test_schema_table(
    tmp_path: Path,
    migrations: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Test rich table output."""
    schema(env=tmp_path / ".env", migrations=migrations)
    out = capsys.readouterr().out
    assert "users" in out
    assert "last_seen" in out


def test_generate_from_db_with_malformed_url(tmp_path: Path) -> None:
    """Test that an unparsable connection string exits cleanly."""
    env_file = tmp_path / ".env"
    env_file.write_text("DB_CONNECTION_STRING=not a url\n", encoding="utf-8")
    with pytest.raises(SystemExit) as exc_info:
        generate(env=env_file, output=tmp_path / "models", from_db=True)
    assert exc_info.value.code == 1


def test_generate_from_db_without_driver(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Test the exit status when the database driver is not installed."""

    def missing_driver(url: str, timeout: int) -> None:
        msg = "No module named 'psycopg2'"
        raise ModuleNotFoundError(msg, name="psycopg2")

    monkeypatch.setattr(cli, "create_catalog_engine", missing_driver)
    env_file = tmp_path / ".env"
    env_file.write_text("DB_CONNECTION_STRING=postgres://u:p@localhost/app\n", encoding="utf-8")
    with pytest.raises(SystemExit) as exc_info:
        generate(env=env_file, output=tmp_path / "models", from_db=True)
    assert exc_info.value.code == 1


@pytest.mark.parametrize("line", ["LOG_LEVEL=verbose", "DB_TIMEOUT=0"])
def test_invalid_settings_exit_cleanly(tmp_path: Path, migrations: Path, line: str) -> None:
    """Test that settings validation errors exit with status 1."""
    env_file = tmp_path / ".env"
    env_file.write_text(f"{line}\n", encoding="utf-8")
    with pytest.raises(SystemExit) as exc_info:
        schema(env=env_file, migrations=migrations)
    assert exc_info.value.code == 1
