from datetime import datetime

from services.errors import EmailDeliveryError
import utils.email


def _create(client, headers, customer, **overrides):
    body = {
        "customer_id": customer.id,
        "items": [
            {"description": "Printing", "page_qty": 100, "rate": 1, "amount": 100},
            {"description": "Binding", "page_qty": 1, "rate": 50, "amount": 50},
        ],
        "tax": 10,
        "discount": 20,
    }
    body.update(overrides)
    response = client.post("/api/invoices", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_requires_token(client) -> None:
    assert client.get("/api/invoices").status_code == 401
    assert client.get("/api/invoices", headers={"Authorization": "Bearer nope"}).status_code == 403


def test_create_invoice(client, auth_headers, customer) -> None:
    invoice = _create(client, auth_headers, customer)

    year = datetime.utcnow().year
    assert invoice["invoice_no"] == f"INV-{year}-00001"
    assert invoice["status"] == "draft"
    assert float(invoice["sub_total"]) == 150
    assert float(invoice["total"]) == 140
    assert float(invoice["balance_due"]) == 140
    assert invoice["customer_name"] == "Acme Ltd"
    assert invoice["total_clamped"] is False
    assert [item["description"] for item in invoice["items"]] == ["Printing", "Binding"]


def test_create_for_unknown_customer(client, auth_headers) -> None:
    response = client.post(
        "/api/invoices",
        json={"customer_id": 999, "items": [{"description": "x", "amount": 1}]},
        headers=auth_headers,
    )
    assert response.status_code == 404


def test_due_date_defaults_to_payment_terms(client, auth_headers, customer) -> None:
    invoice = _create(client, auth_headers, customer, issue_date="2024-03-01T00:00:00")

    assert invoice["due_date"].startswith("2024-03-31")


def test_offset_dates_are_stored_as_utc(client, auth_headers, customer) -> None:
    invoice = _create(
        client,
        auth_headers,
        customer,
        issue_date="2024-03-01T00:00:00Z",
        due_date="2024-03-31T00:00:00+02:00",
    )

    assert invoice["issue_date"] == "2024-03-01T00:00:00"
    assert invoice["due_date"] == "2024-03-30T22:00:00"
    assert invoice["is_overdue"] is True

    updated = client.put(
        f"/api/invoices/{invoice['id']}",
        json={"due_date": "2099-01-01T00:00:00+02:00"},
        headers=auth_headers,
    )
    assert updated.status_code == 200, updated.text
    assert updated.json()["due_date"] == "2098-12-31T22:00:00"


def test_payment_with_offset_timestamp(client, auth_headers, customer) -> None:
    invoice = _create(client, auth_headers, customer)
    client.post(f"/api/invoices/{invoice['id']}/send", headers=auth_headers)

    response = client.post(
        f"/api/invoices/{invoice['id']}/payments",
        json={"amount": 40, "paid_at": "2024-06-01T12:00:00-05:00"},
        headers=auth_headers,
    )

    assert response.status_code == 201, response.text
    assert response.json()["paid_at"] == "2024-06-01T17:00:00"


def test_tax_derived_from_organization_rate(client, auth_headers, customer) -> None:
    client.put("/api/organizations", json={"tax_rate": 10}, headers=auth_headers)

    invoice = _create(client, auth_headers, customer, tax=None, discount=0)

    assert float(invoice["tax"]) == 15
    assert float(invoice["total"]) == 165


def test_update_recomputes_totals_and_keeps_number(client, auth_headers, customer) -> None:
    invoice = _create(client, auth_headers, customer)

    response = client.put(
        f"/api/invoices/{invoice['id']}",
        json={"items": [{"description": "Posters", "amount": 300}], "discount": 0},
        headers=auth_headers,
    )

    assert response.status_code == 200
    updated = response.json()
    assert updated["invoice_no"] == invoice["invoice_no"]
    assert float(updated["total"]) == 310


def test_send_remind_and_pay(client, auth_headers, customer, outbox) -> None:
    invoice = _create(client, auth_headers, customer)
    invoice_id = invoice["id"]

    sent = client.post(f"/api/invoices/{invoice_id}/send", json={"custom_message": "Thanks!"}, headers=auth_headers)
    assert sent.status_code == 200, sent.text
    assert sent.json()["message_id"] == "msg-1"
    assert sent.json()["invoice"]["status"] == "sent"
    assert outbox[0]["to"] == "billing@acme.com"
    assert invoice["invoice_no"] in outbox[0]["subject"]

    reminded = client.post(f"/api/invoices/{invoice_id}/remind", headers=auth_headers)
    assert reminded.status_code == 200
    assert len(reminded.json()["reminders"]) == 1

    again = client.post(f"/api/invoices/{invoice_id}/remind", headers=auth_headers)
    assert again.status_code == 400

    payment = client.post(f"/api/invoices/{invoice_id}/payments", json={"amount": 40}, headers=auth_headers)
    assert payment.status_code == 201
    assert float(payment.json()["amount"]) == 40

    paid = client.patch(f"/api/invoices/{invoice_id}/mark-paid", headers=auth_headers)
    assert paid.status_code == 200
    assert paid.json()["status"] == "paid"
    assert float(paid.json()["balance_due"]) == 0

    payments = client.get(f"/api/invoices/{invoice_id}/payments", headers=auth_headers).json()
    assert [float(p["amount"]) for p in payments] == [40, 100]

    customer_detail = client.get(f"/api/customers/{customer.id}", headers=auth_headers).json()
    assert float(customer_detail["total_invoiced"]) == 140
    assert float(customer_detail["total_paid"]) == 140
    assert float(customer_detail["outstanding_balance"]) == 0

    notifications = client.get("/api/notifications/unread", headers=auth_headers).json()
    assert {n["type"] for n in notifications} == {"invoice_sent", "invoice_paid"}


def test_email_html_escapes_user_text(client, auth_headers, customer, outbox) -> None:
    invoice = _create(
        client,
        auth_headers,
        customer,
        items=[{"description": "<script>alert(1)</script>", "amount": 10}],
        tax=0,
        discount=0,
        notes="<a href='http://evil'>pay here</a>",
    )

    client.post(f"/api/invoices/{invoice['id']}/send", headers=auth_headers)

    html = outbox[0]["html"]
    assert "<script>" not in html
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html
    assert "<a href" not in html
    assert "&lt;a href=&#x27;http://evil&#x27;&gt;pay here&lt;/a&gt;" in html


def test_reminder_not_allowed_for_draft(client, auth_headers, customer) -> None:
    invoice = _create(client, auth_headers, customer)

    response = client.post(f"/api/invoices/{invoice['id']}/remind", headers=auth_headers)

    assert response.status_code == 400


def test_send_failure_keeps_draft(client, auth_headers, customer, monkeypatch) -> None:
    invoice = _create(client, auth_headers, customer)

    def failing_send(*args, **kwargs):
        raise EmailDeliveryError("Brevo error: unauthorized")

    monkeypatch.setattr(utils.email, "send_email", failing_send)
    response = client.post(f"/api/invoices/{invoice['id']}/send", headers=auth_headers)

    assert response.status_code == 502
    assert client.get(f"/api/invoices/{invoice['id']}", headers=auth_headers).json()["status"] == "draft"


def test_overpayment_rejected(client, auth_headers, customer) -> None:
    invoice = _create(client, auth_headers, customer)
    client.post(f"/api/invoices/{invoice['id']}/send", headers=auth_headers)

    response = client.post(f"/api/invoices/{invoice['id']}/payments", json={"amount": 500}, headers=auth_headers)

    assert response.status_code == 400


def test_mark_overdue(client, auth_headers, customer) -> None:
    invoice = _create(client, auth_headers, customer)

    assert client.patch(f"/api/invoices/{invoice['id']}/mark-overdue", headers=auth_headers).status_code == 400

    client.post(f"/api/invoices/{invoice['id']}/send", headers=auth_headers)
    response = client.patch(f"/api/invoices/{invoice['id']}/mark-overdue", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["status"] == "overdue"


def test_only_drafts_can_be_deleted(client, auth_headers, customer) -> None:
    draft = _create(client, auth_headers, customer)
    sent = _create(client, auth_headers, customer)
    client.post(f"/api/invoices/{sent['id']}/send", headers=auth_headers)

    assert client.delete(f"/api/invoices/{draft['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/invoices/{draft['id']}", headers=auth_headers).status_code == 404
    assert client.delete(f"/api/invoices/{sent['id']}", headers=auth_headers).status_code == 409


def test_list_filters(client, auth_headers, customer) -> None:
    first = _create(client, auth_headers, customer, issue_date="2024-01-10T10:00:00")
    _create(client, auth_headers, customer, issue_date="2024-02-20T10:00:00")
    client.post(f"/api/invoices/{first['id']}/send", headers=auth_headers)

    everything = client.get("/api/invoices", headers=auth_headers).json()
    assert everything["total"] == 2

    sent = client.get("/api/invoices", params={"status": "sent"}, headers=auth_headers).json()
    assert [inv["id"] for inv in sent["invoices"]] == [first["id"]]

    january = client.get(
        "/api/invoices",
        params={"from": "2024-01-01T00:00:00", "to": "2024-01-10T00:00:00"},
        headers=auth_headers,
    ).json()
    assert [inv["id"] for inv in january["invoices"]] == [first["id"]]


def test_other_organizations_cannot_see_invoices(client, auth_headers, customer) -> None:
    invoice = _create(client, auth_headers, customer)
    registered = client.post(
        "/api/auth/register",
        json={
            "name": "Rival",
            "email": "rival@rivalprint.com",
            "password": "another-password",
            "organization_name": "Rival Print",
        },
    ).json()
    rival_headers = {"Authorization": f"Bearer {registered['token']}"}

    assert client.get(f"/api/invoices/{invoice['id']}", headers=rival_headers).status_code == 404
    assert client.get("/api/invoices", headers=rival_headers).json()["total"] == 0
