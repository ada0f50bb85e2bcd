from datetime import date

import pytest

import crud.journal_entry as journal_entry_crud
from crud.entry_numbers import format_entry_number, generate_entry_number
from errors import LedgerPersistenceError
from tests.conftest import OTHER_TENANT, TENANT


def test_format_pads_sequence_to_four_digits():
    assert format_entry_number(2025, 7) == "JE-2025-0007"
    assert format_entry_number(2025, 12345) == "JE-2025-12345"


def test_numbers_are_sequential_per_year(book):
    first = book([("1110", 10, 0), ("4100", 0, 10)], entry_date=date(2025, 1, 5))
    second = book([("1110", 10, 0), ("4100", 0, 10)], entry_date=date(2025, 6, 5))
    next_year = book([("1110", 10, 0), ("4100", 0, 10)], entry_date=date(2026, 1, 2))

    assert first.entry_number == "JE-2025-0001"
    assert second.entry_number == "JE-2025-0002"
    assert next_year.entry_number == "JE-2026-0001"


def test_sequences_are_independent_per_tenant(db, book):
    book([("1110", 10, 0), ("4100", 0, 10)], entry_date=date(2025, 1, 5))

    assert generate_entry_number(db, TENANT, date(2025, 2, 1))[0] == "JE-2025-0002"
    assert generate_entry_number(db, OTHER_TENANT, date(2025, 2, 1)) == ("JE-2025-0001", 2025, 1)


def test_collision_is_retried_with_a_fresh_number(book, monkeypatch):
    book([("1110", 10, 0), ("4100", 0, 10)], entry_date=date(2025, 1, 5))

    real = journal_entry_crud.generate_entry_number
    calls = []

    def stale_then_real(db, tenant_id, entry_date):
        calls.append(entry_date)
        if len(calls) == 1:
            return "JE-2025-0001", 2025, 1
        return real(db, tenant_id, entry_date)

    monkeypatch.setattr(journal_entry_crud, "generate_entry_number", stale_then_real)
    entry = book([("1110", 10, 0), ("4100", 0, 10)], entry_date=date(2025, 1, 6))

    assert entry.entry_number == "JE-2025-0002"
    assert len(calls) == 2


def test_gives_up_after_repeated_collisions(book, monkeypatch):
    book([("1110", 10, 0), ("4100", 0, 10)], entry_date=date(2025, 1, 5))
    monkeypatch.setattr(
        journal_entry_crud, "generate_entry_number", lambda db, tenant_id, entry_date: ("JE-2025-0001", 2025, 1)
    )

    with pytest.raises(LedgerPersistenceError):
        book([("1110", 10, 0), ("4100", 0, 10)], entry_date=date(2025, 1, 6))
