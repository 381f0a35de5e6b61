from flask import Flask, current_app
import os
import sqlite3
import functools
import logging
import time

import click
from dotenv import load_dotenv
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.sql import text

from models import db

# Configure logging
logging.basicConfig(
    level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@event.listens_for(Engine, 'connect')
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()


def resolve_database_url(database_url=None):
    database_url = database_url or os.environ.get('DATABASE_URL')
    if not database_url:
        raise ValueError("DATABASE_URL is not set")
    if database_url.startswith('postgres://'):
        database_url = database_url.replace('postgres://', 'postgresql://', 1)
    return database_url


def engine_options(database_url):
    """Pool and connect options for server databases; SQLite keeps the driver defaults."""
    if database_url.startswith('sqlite'):
        return {}
    options = {
        'connect_args': {'connect_timeout': 10},
        'pool_size': 5,
        'max_overflow': 10,
        'pool_timeout': 30,
    }
    sslmode = os.environ.get('DB_SSLMODE')
    if sslmode:
        options['connect_args']['sslmode'] = sslmode
    return options


def create_app(database_url=None):
    load_dotenv()
    database_url = resolve_database_url(database_url)

    app = Flask(__name__)
    app.config['SQLALCHEMY_DATABASE_URI'] = database_url
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SQLALCHEMY_ENGINE_OPTIONS'] = engine_options(database_url)

    try:
        db.init_app(app)
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise

    register_commands(app)
    return app


# Retry decorator
def retry_db_operation(max_attempts=3, delay=1):
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            attempts = 0
            while attempts < max_attempts:
                try:
                    return func(*args, **kwargs)
                except OperationalError as e:
                    logger.error(f"Database operation failed: {str(e)}")
                    attempts += 1
                    if attempts == max_attempts:
                        raise
                    time.sleep(delay)
                    logger.debug(f"Retrying database operation ({attempts}/{max_attempts})")
            return None
        return wrapper
    return decorator


def check_db():
    with db.engine.connect() as connection:
        result = connection.execute(text('SELECT 1')).scalar()
    logger.debug(f"Database test query successful: {result}")
    return result


def wait_for_db(max_attempts=30, delay=2):
    """Block until the database answers, or re-raise the last OperationalError."""
    logger.info("Waiting for database to be ready...")
    retry_db_operation(max_attempts=max_attempts, delay=delay)(check_db)()
    logger.info("Database is up")


def register_commands(app):
    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop all tables before creating them.')
    def init_db_command(drop):
        """Create the schema."""
        if drop:
            db.drop_all()
            click.echo("🔄 Database reset")
        db.create_all()
        click.echo("✅ Tables created")

    @app.cli.command('wait-db')
    @click.option('--attempts', default=30, show_default=True, help='Connection attempts before giving up.')
    @click.option('--delay', default=2.0, show_default=True, help='Seconds between attempts.')
    def wait_db_command(attempts, delay):
        """Wait until the database accepts connections."""
        try:
            wait_for_db(max_attempts=attempts, delay=delay)
        except OperationalError:
            click.echo("Database is unavailable", err=True)
            raise SystemExit(1)

    @app.cli.command('seed')
    def seed_command():
        """Populate the reference dataset."""
        from seed_data import run_seed

        raise SystemExit(run_seed(current_app._get_current_object()))
