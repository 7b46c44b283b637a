"""
Pytest fixtures for bookledger backend tests.

Provides test database setup, account (tenant) fixtures, catalog and
customer fixtures, and a test client.
"""

import pytest

from bookledger import create_app
from bookledger.extensions import db
from bookledger.models import Account, Customer, Item


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'LOG_LEVEL': 'WARNING',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def account(db_session):
    """Account A (first bookstore)."""
    acct = Account(name="Account A - Main Street Books", code="MSB", is_active=True)
    db_session.add(acct)
    db_session.commit()
    return acct


@pytest.fixture(scope='function')
def other_account(db_session):
    """Account B (second bookstore), for isolation tests."""
    acct = Account(name="Account B - Harbor Books", code="HRB", is_active=True)
    db_session.add(acct)
    db_session.commit()
    return acct


@pytest.fixture(scope='function')
def book(db_session, account):
    """A book with 10 copies: cost 200.00, price 350.00."""
    item = Item(
        account_id=account.id,
        title="Gitanjali",
        author="Rabindranath Tagore",
        production_price_cents=20000,
        selling_price_cents=35000,
        stock=10,
    )
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def second_book(db_session, account):
    item = Item(
        account_id=account.id,
        title="Padma Nadir Majhi",
        author="Manik Bandopadhyay",
        production_price_cents=15000,
        selling_price_cents=25000,
        stock=3,
    )
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def customer(db_session, account):
    cust = Customer(account_id=account.id, name="Rahim", opening_balance_cents=0, due_balance_cents=0)
    db_session.add(cust)
    db_session.commit()
    return cust


@pytest.fixture(scope='function')
def headers(account):
    return {"X-Account-Id": str(account.id)}

