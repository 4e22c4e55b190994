from datetime import datetime
from decimal import Decimal

import pytest

from models import Customer, Notification, Payment
from models.invoice import InvoiceStatus
from models.notification import NotificationType
from schemas.invoice import InvoiceCreate, InvoiceItemIn, InvoiceUpdate
from services.errors import ConflictError, InvalidOperationError
from services.invoice_service import InvoiceService


def _invoice(db, org, customer, user, amount="500"):
    data = InvoiceCreate(
        customer_id=customer.id,
        items=[InvoiceItemIn(description="Print run", amount=Decimal(amount))],
        tax=Decimal("0"),
    )
    invoice = InvoiceService.create_invoice(db, org.id, data, user_id=user.id)
    db.commit()
    return invoice


def _send(db, org, invoice, user):
    InvoiceService.send_invoice(db, org.id, invoice.id, user)
    db.commit()


def test_overpayment_leaves_negative_balance() -> None:
    customer = Customer(name="Acme Ltd", email="billing@acme.com")
    customer.update_financials(Decimal("500"), Decimal("500"))

    customer.mark_payment(Decimal("100"))

    assert customer.total_paid == Decimal("600")
    assert customer.outstanding_balance == Decimal("-100")


def test_update_financials_stamps_last_invoice_date() -> None:
    customer = Customer(name="Acme Ltd", email="billing@acme.com")
    when = datetime(2024, 5, 1)

    customer.update_financials(250, when=when)

    assert customer.total_invoiced == Decimal("250")
    assert customer.outstanding_balance == Decimal("250")
    assert customer.last_invoice_date == when


def test_balance_is_recomputed_on_save(db, customer) -> None:
    customer.total_invoiced = Decimal("300")
    customer.total_paid = Decimal("120")
    db.commit()

    stored = db.query(Customer.outstanding_balance).filter(Customer.id == customer.id).scalar()
    assert Decimal(str(stored)) == Decimal("180")


def test_draft_does_not_count_until_sent(db, org, customer, user) -> None:
    invoice = _invoice(db, org, customer, user)

    assert customer.total_invoiced == Decimal("0")

    _send(db, org, invoice, user)

    assert invoice.status == InvoiceStatus.SENT
    assert invoice.sent_at is not None
    assert customer.total_invoiced == Decimal("500")
    assert customer.outstanding_balance == Decimal("500")


def test_resending_does_not_count_twice(db, org, customer, user) -> None:
    invoice = _invoice(db, org, customer, user)
    _send(db, org, invoice, user)
    first_sent_at = invoice.sent_at

    _send(db, org, invoice, user)

    assert customer.total_invoiced == Decimal("500")
    assert invoice.sent_at == first_sent_at


def test_partial_then_full_payment(db, org, customer, user) -> None:
    invoice = _invoice(db, org, customer, user)
    _send(db, org, invoice, user)

    InvoiceService.record_payment(db, org.id, invoice.id, Decimal("200"), user_id=user.id)
    db.commit()

    assert invoice.status == InvoiceStatus.SENT
    assert invoice.amount_paid == Decimal("200.00")
    assert customer.total_paid == Decimal("200")
    assert customer.outstanding_balance == Decimal("300")

    InvoiceService.record_payment(db, org.id, invoice.id, Decimal("300"), user_id=user.id)
    db.commit()

    assert invoice.status == InvoiceStatus.PAID
    assert invoice.paid_at is not None
    assert customer.outstanding_balance == Decimal("0")
    assert db.query(Payment).filter(Payment.invoice_id == invoice.id).count() == 2


def test_payment_above_balance_is_rejected(db, org, customer, user) -> None:
    invoice = _invoice(db, org, customer, user)
    _send(db, org, invoice, user)

    with pytest.raises(InvalidOperationError):
        InvoiceService.record_payment(db, org.id, invoice.id, Decimal("600"))


def test_paying_a_paid_invoice_conflicts(db, org, customer, user) -> None:
    invoice = _invoice(db, org, customer, user)
    InvoiceService.mark_paid(db, org.id, invoice.id, user_id=user.id)
    db.commit()

    with pytest.raises(ConflictError):
        InvoiceService.record_payment(db, org.id, invoice.id, Decimal("1"))


def test_marking_a_draft_paid_counts_it_as_invoiced(db, org, customer, user) -> None:
    invoice = _invoice(db, org, customer, user)

    InvoiceService.mark_paid(db, org.id, invoice.id, user_id=user.id)
    db.commit()

    assert invoice.status == InvoiceStatus.PAID
    assert customer.total_invoiced == Decimal("500")
    assert customer.total_paid == Decimal("500")
    assert customer.outstanding_balance == Decimal("0")


def test_partial_payment_on_a_draft_issues_it(db, org, customer, user) -> None:
    invoice = _invoice(db, org, customer, user)
    received = datetime(2024, 5, 2, 9, 30)

    InvoiceService.record_payment(db, org.id, invoice.id, Decimal("200"), paid_at=received)
    db.commit()

    assert invoice.status == InvoiceStatus.SENT
    assert invoice.sent_at == received
    kinds = [n.type for n in db.query(Notification).filter(Notification.invoice_id == invoice.id)]
    assert kinds == [NotificationType.INVOICE_SENT]
    assert customer.outstanding_balance == Decimal("300")


def test_mark_paid_twice_changes_nothing(db, org, customer, user) -> None:
    invoice = _invoice(db, org, customer, user)
    _send(db, org, invoice, user)
    InvoiceService.mark_paid(db, org.id, invoice.id)
    db.commit()

    InvoiceService.mark_paid(db, org.id, invoice.id)
    db.commit()

    assert customer.total_paid == Decimal("500")
    assert db.query(Payment).filter(Payment.invoice_id == invoice.id).count() == 1


def test_editing_a_sent_invoice_adjusts_total_invoiced(db, org, customer, user) -> None:
    invoice = _invoice(db, org, customer, user)
    _send(db, org, invoice, user)

    InvoiceService.update_invoice(
        db, org.id, invoice.id,
        InvoiceUpdate(items=[InvoiceItemIn(description="Print run", amount=Decimal("700"))]),
    )
    db.commit()

    assert invoice.total == Decimal("700.00")
    assert customer.total_invoiced == Decimal("700")
    assert customer.outstanding_balance == Decimal("700")


def test_paid_invoice_cannot_be_edited(db, org, customer, user) -> None:
    invoice = _invoice(db, org, customer, user)
    InvoiceService.mark_paid(db, org.id, invoice.id)
    db.commit()

    with pytest.raises(ConflictError):
        InvoiceService.update_invoice(db, org.id, invoice.id, InvoiceUpdate(notes="late edit"))
