"""
Pytest fixtures and configuration for BestPrice backend tests

This file provides shared fixtures that can be used across all test modules.

Author: TM3
Date: 2025-10-17
"""
import os
import pytest
from dotenv import load_dotenv
import psycopg2
from psycopg2.extras import RealDictCursor

from bestprice.core.auth import TokenUser
from bestprice.domain.organization import Organization

# Load environment variables for tests
load_dotenv()


@pytest.fixture(scope="session")
def database_url():
    """
    Provides the database URL for tests

    Scope: session (created once per test session)
    """
    url = os.getenv("DATABASE_URL")
    if not url:
        pytest.skip("DATABASE_URL not configured")
    return url


@pytest.fixture(scope="function")
def db_connection(database_url):
    """
    Provides a fresh database connection for each test

    Skips when the configured database is unreachable.
    """
    try:
        conn = psycopg2.connect(database_url, connect_timeout=5)
    except psycopg2.OperationalError as e:
        pytest.skip(f"Database not reachable: {e}")
    yield conn
    conn.close()


@pytest.fixture(scope="function")
def db_cursor(db_connection):
    """
    Provides a database cursor with RealDictCursor for each test

    Returns results as dictionaries instead of tuples
    """
    cursor = db_connection.cursor(cursor_factory=RealDictCursor)
    yield cursor
    cursor.close()


@pytest.fixture
def sample_company():
    """Demo organization on the standard plan"""
    return Organization(
        id=3,
        name="Demo Gun Shop",
        slug="demo-gun-shop",
        plan="standard",
        status="active",
    )


@pytest.fixture
def org_admin_user():
    return TokenUser(
        id="12",
        email="owner@example.com",
        name="Store Owner",
        role="org_admin",
        company_id=3,
        company_slug="demo-gun-shop",
    )


@pytest.fixture
def platform_admin_user():
    return TokenUser(id="1", email="admin@example.com", role="admin")
