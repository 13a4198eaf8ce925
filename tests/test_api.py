from decimal import Decimal

import woodflow.api.v1.invoices as invoices_api

from tests.conftest import auth_headers

API = "/api/v1"


def _signup(client, email, full_name="Olu Owner", password="secret123"):
    response = client.post(f"{API}/auth/signup", json={
        "full_name": full_name, "email": email, "password": password,
    })
    assert response.status_code == 201, response.text
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def _owner_with_company(client):
    headers = _signup(client, "owner@example.com")
    response = client.post(f"{API}/companies", json={"name": "Oak & Iron"}, headers=headers)
    assert response.status_code == 201, response.text
    return headers


def test_quotation_to_paid_order(client, sent_mail):
    headers = _owner_with_company(client)

    response = client.post(f"{API}/quotations", headers=headers, json={
        "client_name": "Ada Client",
        "email": "ada@example.com",
        "phone_number": "08030000000",
        "discount": 10,
        "items": [{"wood_type": "mahogany", "cost_price": 1000, "selling_price": 1500, "quantity": 2}],
    })
    assert response.status_code == 201, response.text
    quotation = response.json()
    assert quotation["quotation_number"] == "QT-00001"
    assert Decimal(quotation["final_total"]) == Decimal("2700")

    response = client.patch(f"{API}/quotations/{quotation['id']}/status", json={"status": "approved"}, headers=headers)
    assert response.status_code == 200, response.text

    response = client.post(f"{API}/orders", json={"quotation_id": quotation["id"]}, headers=headers)
    assert response.status_code == 201, response.text
    order = response.json()
    assert order["order_number"] == "ORD-00001"

    response = client.post(f"{API}/orders", json={"quotation_id": quotation["id"]}, headers=headers)
    assert response.status_code in (400, 409)

    response = client.post(f"{API}/orders/{order['id']}/payments", json={"amount": 2700}, headers=headers)
    assert response.status_code == 201, response.text
    result = response.json()
    assert result["order"]["payment_status"] == "paid"
    assert Decimal(result["order"]["balance"]) == Decimal("0")
    assert result["receipt"]["receipt_number"] == "RC-0001"
    assert Decimal(result["receipt"]["amount_paid"]) == Decimal("2700")

    [mail] = sent_mail["email"]
    assert mail["to"] == "ada@example.com"
    assert "RC-0001" in mail["subject"]
    assert sent_mail["sms"][0]["to"] == "08030000000"

    response = client.post(f"{API}/orders/{order['id']}/payments", json={"amount": 1}, headers=headers)
    assert response.status_code == 400
    assert "Remaining balance: 0.00" in response.json()["detail"]

    response = client.get(f"{API}/orders/{order['id']}/receipts", headers=headers)
    assert [r["receipt_number"] for r in response.json()] == ["RC-0001"]


def test_validation_errors_are_400(client):
    headers = _owner_with_company(client)
    response = client.post(f"{API}/quotations", json={"items": []}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"].startswith("client_name")


def test_unknown_order_is_404(client):
    headers = _owner_with_company(client)
    response = client.get(f"{API}/orders/999", headers=headers)
    assert response.status_code == 404
    assert response.json() == {"detail": "Order not found"}


def test_authentication_required(client):
    assert client.get(f"{API}/orders").status_code == 401
    bad = {"Authorization": "Bearer not-a-token"}
    assert client.get(f"{API}/auth/me", headers=bad).status_code == 401


def test_login_rejects_wrong_password(client):
    _signup(client, "owner@example.com")
    response = client.post(f"{API}/auth/login", json={"email": "owner@example.com", "password": "wrong"})
    assert response.status_code == 401


def test_user_without_company_is_rejected(client):
    headers = _signup(client, "lonely@example.com")
    response = client.get(f"{API}/quotations", headers=headers)
    assert response.status_code == 400


def test_staff_permissions_are_enforced(client):
    owner = _owner_with_company(client)
    _signup(client, "carpenter@example.com", full_name="Kunle Carpenter")

    response = client.post(f"{API}/staff", headers=owner, json={
        "email": "carpenter@example.com", "permissions": {"quotation": True},
    })
    assert response.status_code == 201, response.text
    membership_id = response.json()["id"]

    staff = auth_headers(client, "carpenter@example.com")
    client.cookies.clear()
    assert client.get(f"{API}/quotations", headers=staff).status_code == 200
    assert client.get(f"{API}/orders", headers=staff).status_code == 403
    assert client.get(f"{API}/staff", headers=staff).status_code == 403

    response = client.post(f"{API}/staff/{membership_id}/access/revoke", headers=owner)
    assert response.status_code == 200, response.text
    assert client.get(f"{API}/quotations", headers=staff).status_code == 403

    # The carpenter was told about the invite and the revocation
    response = client.get(f"{API}/notifications", headers=staff)
    assert {n["type"] for n in response.json()} >= {"staff_added", "access_revoked"}


def test_colleagues_are_notified_of_new_quotation(client):
    owner = _owner_with_company(client)
    _signup(client, "carpenter@example.com", full_name="Kunle Carpenter")
    client.post(f"{API}/staff", headers=owner, json={"email": "carpenter@example.com"})
    staff = auth_headers(client, "carpenter@example.com")
    client.cookies.clear()

    client.post(f"{API}/quotations", headers=owner, json={"client_name": "Ada Client"})

    assert client.get(f"{API}/notifications/unread-count", headers=owner).json()["unread"] == 0
    response = client.get(f"{API}/notifications", headers=staff)
    assert "quotation_created" in [n["type"] for n in response.json()]


def _owner_and_colleague(client, permissions=None):
    owner = _owner_with_company(client)
    _signup(client, "carpenter@example.com", full_name="Kunle Carpenter")
    invite = {"email": "carpenter@example.com"}
    if permissions is not None:
        invite["permissions"] = permissions
    assert client.post(f"{API}/staff", headers=owner, json=invite).status_code == 201
    staff = auth_headers(client, "carpenter@example.com")
    client.cookies.clear()
    return owner, staff


def _notification_types(client, headers):
    return [n["type"] for n in client.get(f"{API}/notifications", headers=headers).json()]


def _quotation(client, headers, **fields):
    body = {
        "client_name": "Ada Client",
        "email": "ada@example.com",
        "items": [{"wood_type": "mahogany", "cost_price": 1000, "selling_price": 1500, "quantity": 2}],
    }
    body.update(fields)
    response = client.post(f"{API}/quotations", headers=headers, json=body)
    assert response.status_code == 201, response.text
    return response.json()


def test_colleagues_hear_about_line_item_changes(client):
    owner, staff = _owner_and_colleague(client)
    quotation = _quotation(client, owner)
    response = client.post(f"{API}/boms", headers=owner, json={"name": "Dining table"})
    assert response.status_code == 201, response.text
    bom = response.json()
    client.post(f"{API}/notifications/read-all", headers=staff)

    response = client.post(f"{API}/quotations/{quotation['id']}/items", headers=owner, json={
        "wood_type": "oak", "cost_price": 100, "selling_price": 150, "quantity": 1,
    })
    assert response.status_code == 201, response.text
    response = client.post(f"{API}/boms/{bom['id']}/materials", headers=owner, json={
        "wood_type": "oak", "price": 100, "width": 100, "length": 200, "quantity": 1,
    })
    assert response.status_code == 201, response.text

    response = client.get(f"{API}/notifications", headers=staff, params={"unread_only": True})
    assert sorted(n["type"] for n in response.json()) == ["bom_updated", "quotation_updated"]
    assert _notification_types(client, owner) == []


def test_invoice_is_issued_when_pdf_rendering_breaks(client, sent_mail, monkeypatch):
    owner = _owner_with_company(client)
    quotation = _quotation(client, owner)

    def broken_pdf(invoice, company):
        raise RuntimeError("pango is missing")

    monkeypatch.setattr(invoices_api, "render_invoice_pdf", broken_pdf)
    response = client.post(f"{API}/invoices", headers=owner, json={"quotation_id": quotation["id"], "send_email": True})
    assert response.status_code == 201, response.text
    invoice = response.json()

    assert client.get(f"{API}/invoices/{invoice['id']}", headers=owner).status_code == 200
    [mail] = sent_mail["email"]
    assert mail["to"] == "ada@example.com"
    assert "INV-00001" in mail["subject"]
    assert "INV-00001" in mail["html"]


def test_invoice_email_failure_is_logged_not_raised(client, sent_mail, monkeypatch):
    owner = _owner_with_company(client)
    quotation = _quotation(client, owner)

    def broken_html(invoice, company):
        raise RuntimeError("template exploded")

    monkeypatch.setattr(invoices_api, "render_invoice_html", broken_html)
    response = client.post(f"{API}/invoices", headers=owner, json={"quotation_id": quotation["id"], "send_email": True})
    assert response.status_code == 201, response.text

    response = client.post(f"{API}/invoices/{response.json()['id']}/send-email", headers=owner)
    assert response.status_code == 200, response.text
    assert sent_mail["email"] == []
    assert len(client.get(f"{API}/invoices", headers=owner).json()) == 1


def test_null_client_name_is_rejected_before_saving(client):
    owner = _owner_with_company(client)
    quotation = _quotation(client, owner, status="sent")
    order = client.post(f"{API}/orders", headers=owner, json={"quotation_id": quotation["id"]}).json()
    invoice = client.post(f"{API}/invoices", headers=owner, json={"order_id": order["id"]}).json()

    for path in (f"quotations/{quotation['id']}", f"orders/{order['id']}", f"invoices/{invoice['id']}"):
        response = client.put(f"{API}/{path}", headers=owner, json={"client_name": None})
        assert response.status_code == 400, path
        assert response.json()["detail"].startswith("client_name")
        assert client.get(f"{API}/{path}", headers=owner).json()["client_name"] == "Ada Client"


def test_singular_payment_route_records_a_payment(client, sent_mail):
    owner = _owner_with_company(client)
    quotation = _quotation(client, owner, status="sent")
    order = client.post(f"{API}/orders", headers=owner, json={"quotation_id": quotation["id"]}).json()

    response = client.post(f"{API}/orders/{order['id']}/payment", headers=owner, json={"amount": 1000})
    assert response.status_code == 201, response.text
    assert response.json()["receipt"]["receipt_number"] == "RC-0001"
    assert response.json()["order"]["payment_status"] == "partial"


def test_material_catalogue(client):
    owner, staff = _owner_and_colleague(client, permissions={"quotation": True})

    response = client.post(f"{API}/materials", headers=owner, json={
        "name": "Plywood 18mm",
        "standard_width": 122,
        "standard_length": 244,
        "price_per_sqm": 5000,
        "types": [{"name": "Marine", "price_per_sqm": 8000}],
    })
    assert response.status_code == 201, response.text
    material = response.json()
    assert Decimal(material["waste_threshold"]) == Decimal("0.75")

    assert client.get(f"{API}/materials", headers=staff).status_code == 403
    assert "material_created" in _notification_types(client, staff)

    # 1.2 x 2.4 fills 97% of a 1.22 x 2.44 sheet, so the whole sheet is charged
    response = client.post(f"{API}/materials/{material['id']}/calculate-cost", headers=owner, json={
        "width": 120, "length": 240,
    })
    assert response.status_code == 200, response.text
    cost = response.json()
    assert Decimal(cost["sheet_area"]) == Decimal("2.9768")
    assert cost["full_sheets"] == 1
    assert Decimal(cost["total_cost"]) == Decimal("14884.00")

    response = client.post(f"{API}/materials/{material['id']}/calculate-cost", headers=owner, json={
        "width": 100, "length": 200, "material_type": "marine",
    })
    assert Decimal(response.json()["total_cost"]) == Decimal("16000.00")

    response = client.post(f"{API}/materials/{material['id']}/calculate-cost", headers=owner, json={"width": 100})
    assert response.status_code == 400

    response = client.delete(f"{API}/materials/{material['id']}", headers=owner)
    assert response.status_code == 200
    assert "material_deleted" in _notification_types(client, staff)


def test_client_details_change_across_quotations(client):
    owner, staff = _owner_and_colleague(client, permissions={"quotation": True})
    _quotation(client, owner)
    _quotation(client, owner, client_name="ada client")
    _quotation(client, owner, client_name="Bola Client", email="bola@example.com")

    response = client.put(f"{API}/sales/clients", headers=owner, json={
        "match": {"client_name": "Ada Client"},
        "update": {"client_name": "Ada Okafor", "phone_number": "08031112222"},
    })
    assert response.status_code == 200, response.text
    assert response.json() == {"client_name": "Ada Okafor", "quotations": 2}
    assert "client_updated" in _notification_types(client, staff)

    names = sorted(c["client_name"] for c in client.get(f"{API}/sales/clients", headers=owner).json())
    assert names == ["Ada Okafor", "Bola Client"]

    response = client.request("DELETE", f"{API}/sales/clients", headers=owner, json={
        "match": {"email": "bola@example.com"},
    })
    assert response.json() == {"client_name": "Bola Client", "quotations": 1}
    assert len(client.get(f"{API}/quotations", headers=owner).json()) == 2

    response = client.request("DELETE", f"{API}/sales/clients", headers=owner, json={"match": {}})
    assert response.status_code == 400
