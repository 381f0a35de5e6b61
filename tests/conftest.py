"""Shared fixtures: a Flask app bound to a throwaway SQLite database."""

import pytest

from app import create_app
from models import db


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'textbooks.db'}"


@pytest.fixture
def app(database_url):
    app = create_app(database_url)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def session(app):
    with app.app_context():
        yield db.session
        db.session.remove()
