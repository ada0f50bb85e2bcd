import os
import tempfile

# Must be set before database.py / main.py are imported by any test module.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "ledger-test-logs"))

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from crud.chart_of_accounts import initialize_default_accounts, list_accounts
from crud.journal_entry import create_journal_entry
from database import Base
from schemas.journal_entry import JournalEntryCreate
from schemas.journal_item import JournalItemCreate

TENANT = "tenant-a"
OTHER_TENANT = "tenant-b"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def accounts(db):
    """Default chart for TENANT, keyed by account code."""
    initialize_default_accounts(db, TENANT)
    return {a.account_code: a for a in list_accounts(db, TENANT, include_inactive=True)}


@pytest.fixture
def book(db, accounts):
    """
    Create (and by default post) an entry from (account_code, debit, credit) tuples.

        book([("1110", 100, 0), ("4100", 0, 100)], entry_date=date(2025, 3, 1))
    """
    def _book(lines, entry_date=date(2025, 3, 1), description="Test entry", post=True, tenant_id=TENANT, **extra):
        entry = JournalEntryCreate(
            entry_date=entry_date,
            description=description,
            items=[
                JournalItemCreate(
                    account_id=accounts[code].id,
                    debit=Decimal(str(debit)),
                    credit=Decimal(str(credit)),
                )
                for code, debit, credit in lines
            ],
            **extra,
        )
        return create_journal_entry(db, tenant_id, entry, created_by="tester", post=post)
    return _book


@pytest.fixture
def client(session_factory):
    from fastapi.testclient import TestClient
    from database import get_db
    from main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
