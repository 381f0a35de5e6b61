"""Tests for configuration, connection helpers and CLI commands."""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from app import create_app, engine_options, resolve_database_url, retry_db_operation, check_db
from models import db, Book, UserAccount


class TestConfiguration:
    def test_missing_database_url(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(ValueError, match="DATABASE_URL"):
            resolve_database_url()

    def test_url_from_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite:///from-env.db")
        assert resolve_database_url() == "sqlite:///from-env.db"

    def test_argument_wins_over_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite:///from-env.db")
        assert resolve_database_url("sqlite:///explicit.db") == "sqlite:///explicit.db"

    def test_legacy_postgres_scheme_rewritten(self):
        url = resolve_database_url("postgres://user:pw@db:5432/textbooks")
        assert url == "postgresql://user:pw@db:5432/textbooks"

    def test_sqlite_gets_no_pool_options(self):
        assert engine_options("sqlite:///textbooks.db") == {}

    def test_server_database_pool_options(self, monkeypatch):
        monkeypatch.delenv("DB_SSLMODE", raising=False)
        options = engine_options("postgresql://db/textbooks")
        assert options["pool_size"] == 5
        assert options["max_overflow"] == 10
        assert options["connect_args"] == {"connect_timeout": 10}

    def test_sslmode_passed_through(self, monkeypatch):
        monkeypatch.setenv("DB_SSLMODE", "require")
        options = engine_options("postgresql://db/textbooks")
        assert options["connect_args"]["sslmode"] == "require"

    def test_app_bound_to_url(self, app, database_url):
        assert app.config["SQLALCHEMY_DATABASE_URI"] == database_url

    def test_sqlite_foreign_keys_enforced(self, app):
        with app.app_context():
            assert db.session.execute(text("PRAGMA foreign_keys")).scalar() == 1


class TestRetryDbOperation:
    def test_retries_until_success(self):
        calls = []

        @retry_db_operation(max_attempts=3, delay=0)
        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise OperationalError("SELECT 1", {}, Exception("connection refused"))
            return "ok"

        assert flaky() == "ok"
        assert len(calls) == 3

    def test_reraises_after_last_attempt(self):
        calls = []

        @retry_db_operation(max_attempts=2, delay=0)
        def down():
            calls.append(1)
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        with pytest.raises(OperationalError):
            down()
        assert len(calls) == 2

    def test_other_errors_not_retried(self):
        calls = []

        @retry_db_operation(max_attempts=3, delay=0)
        def broken():
            calls.append(1)
            raise ValueError("bad input")

        with pytest.raises(ValueError):
            broken()
        assert len(calls) == 1

    def test_check_db(self, app):
        with app.app_context():
            assert check_db() == 1


class TestCommands:
    def test_init_db(self, tmp_path):
        app = create_app(f"sqlite:///{tmp_path / 'fresh.db'}")
        result = app.test_cli_runner().invoke(args=["init-db"])
        assert result.exit_code == 0
        with app.app_context():
            assert db.session.query(Book).count() == 0

    def test_init_db_drop_resets_data(self, app):
        runner = app.test_cli_runner()
        assert runner.invoke(args=["seed"]).exit_code == 0
        result = runner.invoke(args=["init-db", "--drop"])
        assert result.exit_code == 0
        assert "Database reset" in result.output
        with app.app_context():
            assert db.session.query(UserAccount).count() == 0

    def test_seed(self, app):
        result = app.test_cli_runner().invoke(args=["seed"])
        assert result.exit_code == 0
        assert "Seed complete" in result.output
        with app.app_context():
            assert db.session.query(Book).count() == 11

    def test_seed_unreachable_database(self, tmp_path):
        app = create_app(f"sqlite:///{tmp_path / 'missing' / 'textbooks.db'}")
        result = app.test_cli_runner().invoke(args=["seed"])
        assert result.exit_code == 1

    def test_wait_db(self, app):
        result = app.test_cli_runner().invoke(args=["wait-db", "--attempts", "1"])
        assert result.exit_code == 0

    def test_wait_db_gives_up(self, tmp_path):
        app = create_app(f"sqlite:///{tmp_path / 'missing' / 'textbooks.db'}")
        result = app.test_cli_runner().invoke(args=["wait-db", "--attempts", "2", "--delay", "0"])
        assert result.exit_code == 1
