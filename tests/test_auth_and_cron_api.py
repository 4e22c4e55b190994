from datetime import datetime, timedelta

from models import Invoice, Notification
from models.invoice import InvoiceStatus


def test_register_and_login(client) -> None:
    registered = client.post(
        "/api/auth/register",
        json={
            "name": "Nia Newcomer",
            "email": "Nia@Newprint.com",
            "password": "long-enough-password",
            "organization_name": "New Print",
        },
    )
    assert registered.status_code == 201, registered.text
    assert registered.json()["user"]["role"] == "ADMIN"

    duplicate = client.post(
        "/api/auth/register",
        json={
            "name": "Nia Again",
            "email": "nia@newprint.com",
            "password": "long-enough-password",
            "organization_name": "New Print 2",
        },
    )
    assert duplicate.status_code == 409

    login = client.post("/api/auth/login", json={"email": "nia@newprint.com", "password": "long-enough-password"})
    assert login.status_code == 200
    headers = {"Authorization": f"Bearer {login.json()['token']}"}

    org = client.get("/api/organizations", headers=headers).json()
    assert org["name"] == "New Print"
    assert org["invoice_prefix"] == "INV"
    assert org["is_setup_complete"] is False


def test_login_with_wrong_password(client, user) -> None:
    response = client.post("/api/auth/login", json={"email": user.email, "password": "wrong-password"})

    assert response.status_code == 401


def test_update_organization_settings(client, auth_headers) -> None:
    response = client.put(
        "/api/organizations",
        json={
            "invoice_prefix": "ps",
            "payment_terms": 14,
            "street": "1 Main St",
            "city": "Springfield",
            "state": "IL",
            "zip_code": "62701",
            "country": "US",
        },
        headers=auth_headers,
    )

    assert response.status_code == 200
    org = response.json()
    assert org["invoice_prefix"] == "PS"
    assert org["payment_terms"] == 14
    assert org["has_basic_info"] is True
    assert org["is_setup_complete"] is True


def test_invalid_prefix_is_rejected(client, auth_headers) -> None:
    response = client.put("/api/organizations", json={"invoice_prefix": "IN-V"}, headers=auth_headers)

    assert response.status_code == 422


def test_cron_requires_secret(client, auth_headers) -> None:
    assert client.get("/api/cron/check-overdue").status_code == 401
    assert client.get("/api/cron/check-overdue", headers=auth_headers).status_code == 401


def test_cron_check_overdue(client, cron_headers, db, org, customer, user) -> None:
    invoice = Invoice(
        org_id=org.id,
        customer_id=customer.id,
        created_by=user.id,
        invoice_no="INV-2024-00001",
        issue_date=datetime.utcnow() - timedelta(days=40),
        due_date=datetime.utcnow() - timedelta(days=10),
        status=InvoiceStatus.SENT,
    )
    db.add(invoice)
    db.commit()

    first = client.get("/api/cron/check-overdue", headers=cron_headers)
    second = client.get("/api/cron/check-overdue", headers=cron_headers)

    assert first.json() == {"success": True, "notifications_created": 1}
    assert second.json() == {"success": True, "notifications_created": 0}
    assert db.query(Notification).filter(Notification.user_id == user.id).count() == 1


def test_notifications_mark_read(client, auth_headers, customer) -> None:
    created = client.post(
        "/api/invoices",
        json={"customer_id": customer.id, "items": [{"description": "Cards", "amount": 25}]},
        headers=auth_headers,
    ).json()
    client.post(f"/api/invoices/{created['id']}/send", headers=auth_headers)

    unread = client.get("/api/notifications/unread", headers=auth_headers).json()
    assert len(unread) == 1

    marked = client.post("/api/notifications/mark-read", json={"ids": [unread[0]["id"]]}, headers=auth_headers)
    assert marked.json() == {"success": True, "updated": 1}
    assert client.get("/api/notifications/unread", headers=auth_headers).json() == []


def test_health(client) -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": True}
