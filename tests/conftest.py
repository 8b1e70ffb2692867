"""Pytest configuration and fixtures."""

import sqlite3
from pathlib import Path

import pytest
import pytest_asyncio

from cipherdb.DatabaseProvider import DatabaseProvider
from explorer.config import ExplorerConfig
from explorer.ExplorerService import ExplorerService
from generate_sample_db import build_database

TEST_PASSWORD = "s3cr3t'pass\\word"


@pytest.fixture
def sample_db(tmp_path: Path) -> str:
    """Plain SQLite shop database: customers, products, orders, line_items."""
    path = tmp_path / "sample.db"
    build_database(path)
    return str(path)


@pytest.fixture
def encrypted_db(tmp_path: Path) -> str:
    """The shop database encrypted with TEST_PASSWORD."""
    path = tmp_path / "encrypted.db"
    build_database(path, key=TEST_PASSWORD)
    return str(path)


@pytest.fixture
def edge_case_db(tmp_path: Path) -> str:
    """Small database with an empty table and an AUTOINCREMENT table."""
    path = tmp_path / "edge.db"
    conn = sqlite3.connect(path)
    conn.executescript(
        """
        CREATE TABLE events (id INTEGER, label TEXT);
        CREATE TABLE counters (id INTEGER PRIMARY KEY AUTOINCREMENT, hits INTEGER);
        INSERT INTO counters (hits) VALUES (3), (NULL), (7);
        """
    )
    conn.commit()
    conn.close()
    return str(path)


@pytest_asyncio.fixture
async def connection(sample_db):
    """Open, verified connection to the sample database."""
    async with DatabaseProvider(sample_db).connect() as conn:
        yield conn


@pytest_asyncio.fixture
async def edge_connection(edge_case_db):
    async with DatabaseProvider(edge_case_db).connect() as conn:
        yield conn


@pytest.fixture
def config(sample_db) -> ExplorerConfig:
    return ExplorerConfig(database_path=sample_db)


@pytest.fixture
def service(config) -> ExplorerService:
    return ExplorerService(config)
