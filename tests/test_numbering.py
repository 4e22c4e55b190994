import threading
from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import insert

from database import SessionLocal
from models import Invoice, InvoiceSequence, Organization
from models.invoice import InvoiceStatus
from schemas.invoice import InvoiceCreate, InvoiceItemIn, InvoiceUpdate
from services import numbering
from services.invoice_service import InvoiceService
from services.numbering import (
    assign_invoice_number,
    format_invoice_number,
    next_sequence,
    numbering_year,
    parse_sequence,
)

MARCH_2024 = datetime(2024, 3, 1, 9, 30)


def _create(db, org, customer, user, now=MARCH_2024, **fields):
    data = InvoiceCreate(
        customer_id=customer.id,
        items=[InvoiceItemIn(description="Printing", amount=Decimal("100"))],
        **fields,
    )
    invoice = InvoiceService.create_invoice(db, org.id, data, user_id=user.id, now=now)
    db.commit()
    return invoice


def _legacy_invoice(db, org, customer, invoice_no):
    invoice = Invoice(
        org_id=org.id,
        customer_id=customer.id,
        invoice_no=invoice_no,
        issue_date=datetime(2024, 1, 5),
        due_date=datetime(2024, 2, 4),
        status=InvoiceStatus.SENT,
    )
    db.add(invoice)
    db.commit()
    return invoice


def test_format_and_parse() -> None:
    assert format_invoice_number("INV", 2024, 7) == "INV-2024-00007"
    assert format_invoice_number("INV", 2024, 123456) == "INV-2024-123456"
    assert parse_sequence("INV-2024-00007", "INV", 2024) == 7
    assert parse_sequence("INV-2024-ABCDE", "INV", 2024) is None
    assert parse_sequence("INV-2023-00007", "INV", 2024) is None


def test_numbering_year_sources() -> None:
    issued = datetime(2023, 12, 31)
    now = datetime(2024, 1, 2)

    assert numbering_year(issued, now, "creation_time") == 2024
    assert numbering_year(issued, now, "issue_date") == 2023
    assert numbering_year(None, now, "issue_date") == 2024
    with pytest.raises(ValueError):
        numbering_year(issued, now, "fiscal")


def test_first_invoice_of_the_year(db, org, customer, user) -> None:
    first = _create(db, org, customer, user)
    second = _create(db, org, customer, user)

    assert first.invoice_no == "INV-2024-00001"
    assert second.invoice_no == "INV-2024-00002"
    assert first.numbering_fallback_used is False


def test_counter_continues_from_existing_numbers(db, org, customer, user) -> None:
    _legacy_invoice(db, org, customer, "INV-2024-00007")

    invoice = _create(db, org, customer, user)

    assert invoice.invoice_no == "INV-2024-00008"
    sequence = db.query(InvoiceSequence).filter_by(org_id=org.id, year=2024).one()
    assert sequence.last_value == 8


def test_unparseable_number_falls_back_with_warning(db, org, customer, user, caplog) -> None:
    _legacy_invoice(db, org, customer, "INV-2024-00003")
    _legacy_invoice(db, org, customer, "INV-2024-ABCDE")

    with caplog.at_level("WARNING", logger="services.numbering"):
        invoice = _create(db, org, customer, user)

    assert invoice.invoice_no == "INV-2024-00004"
    assert invoice.numbering_fallback_used is True
    assert "INV-2024-ABCDE" in caplog.text


def test_only_unparseable_numbers_restart_at_one(db, org, customer, user) -> None:
    _legacy_invoice(db, org, customer, "INV-2024-XYZ")

    invoice = _create(db, org, customer, user)

    assert invoice.invoice_no == "INV-2024-00001"
    assert invoice.numbering_fallback_used is True


def test_each_year_has_its_own_sequence(db, org, customer, user) -> None:
    last_of_2024 = _create(db, org, customer, user, now=datetime(2024, 12, 31, 23, 0))
    first_of_2025 = _create(db, org, customer, user, now=datetime(2025, 1, 1, 0, 5))

    assert last_of_2024.invoice_no == "INV-2024-00001"
    assert first_of_2025.invoice_no == "INV-2025-00001"


def test_organizations_number_independently(db, org, customer, user) -> None:
    other = Organization(name="Other Shop", email="hello@othershop.com")
    db.add(other)
    db.commit()

    _create(db, org, customer, user)
    _create(db, org, customer, user)

    assert next_sequence(db, other.id, 2024) == (1, False)


def test_organization_prefix_is_used(db, org, customer, user) -> None:
    org.invoice_prefix = "PS"
    db.commit()

    invoice = _create(db, org, customer, user)

    assert invoice.invoice_no == "PS-2024-00001"


def test_issue_date_year_source(db, org) -> None:
    invoice = Invoice(org_id=org.id, issue_date=datetime(2023, 12, 30))

    assignment = assign_invoice_number(db, invoice, now=datetime(2024, 1, 3), year_source="issue_date")

    assert assignment.invoice_no == "INV-2023-00001"
    assert assignment.year == 2023
    assert invoice.invoice_no == "INV-2023-00001"


def test_numbered_invoice_is_never_renumbered(db, org, customer, user) -> None:
    invoice = _create(db, org, customer, user)

    assert assign_invoice_number(db, invoice, now=datetime(2025, 6, 1)) is None

    InvoiceService.update_invoice(
        db, org.id, invoice.id,
        InvoiceUpdate(items=[InvoiceItemIn(description="Binding", amount=Decimal("40"))]),
    )
    db.commit()

    assert invoice.invoice_no == "INV-2024-00001"
    assert db.query(InvoiceSequence).filter_by(org_id=org.id, year=2024).one().last_value == 1


def test_rolled_back_allocation_releases_the_number(db, org) -> None:
    assert next_sequence(db, org.id, 2024) == (1, False)
    db.commit()

    assert next_sequence(db, org.id, 2024) == (2, False)
    db.rollback()

    assert next_sequence(db, org.id, 2024) == (2, False)


def test_concurrent_allocations_are_unique(db, org) -> None:
    # the counter row exists, so every worker goes through the atomic increment
    assert next_sequence(db, org.id, 2024) == (1, False)
    db.commit()

    results = []
    errors = []

    def allocate():
        session = SessionLocal()
        try:
            value, _ = next_sequence(session, org.id, 2024)
            session.commit()
            results.append(value)
        except Exception as e:
            session.rollback()
            errors.append(e)
        finally:
            session.close()

    threads = [threading.Thread(target=allocate) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert sorted(results) == list(range(2, 10))


def _allocate_in_threads(org_id, year, workers):
    results = []
    errors = []
    start = threading.Barrier(workers)

    def allocate():
        session = SessionLocal()
        try:
            start.wait()
            value, _ = next_sequence(session, org_id, year)
            session.commit()
            results.append(value)
        except Exception as e:
            session.rollback()
            errors.append(e)
        finally:
            session.close()

    threads = [threading.Thread(target=allocate) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return results, errors


@pytest.mark.parametrize("legacy_highest", [None, 4])
def test_concurrent_first_allocations_are_unique(db, org, customer, legacy_highest) -> None:
    if legacy_highest is not None:
        _legacy_invoice(db, org, customer, format_invoice_number("INV", 2024, legacy_highest))
    org_id = org.id
    offset = legacy_highest or 0

    results, errors = _allocate_in_threads(org_id, 2024, 8)

    assert errors == []
    assert sorted(results) == list(range(offset + 1, offset + 9))
    assert db.query(InvoiceSequence).filter_by(org_id=org_id, year=2024).count() == 1


def test_losing_seeder_uses_the_existing_row(db, org, monkeypatch, caplog) -> None:
    def seeded_meanwhile(session, org_id, year, prefix):
        # a concurrent transaction has created the counter row by now
        session.execute(insert(InvoiceSequence).values(org_id=org_id, year=year, last_value=41))
        return 0, False

    monkeypatch.setattr(numbering, "_highest_existing_sequence", seeded_meanwhile)

    with caplog.at_level("DEBUG", logger="services.numbering"):
        assert next_sequence(db, org.id, 2024) == (42, False)
    db.commit()

    assert "created concurrently" in caplog.text
    assert db.query(InvoiceSequence).filter_by(org_id=org.id, year=2024).one().last_value == 42
