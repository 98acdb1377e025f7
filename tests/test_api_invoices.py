"""
Tests for the /api/v1/invoices endpoints.
"""
from unittest import mock

import pytest

from invoicely.errors import ConflictError

ITEMS = [
    {"description": "Design", "quantity": 2, "unit_price": 100},
    {"description": "Hosting", "quantity": 1, "unit_price": 50},
]


@pytest.fixture
def prefixed(client, auth_headers):
    resp = client.put("/api/v1/settings", json={"invoice_prefix": "INV-", "invoice_start_number": 1},
                      headers=auth_headers)
    assert resp.status_code == 200


def _create(client, headers, client_id, **extra):
    body = {"client_id": client_id, "items": ITEMS, "discount": 10, "tax_rate": 13}
    body.update(extra)
    return client.post("/api/v1/invoices", json=body, headers=headers)


def test_create_invoice_computes_number_and_totals(client, auth_headers, client_id, prefixed):
    resp = _create(client, auth_headers, client_id)

    assert resp.status_code == 201
    data = resp.get_json()
    assert data["invoice_number"] == "INV-001"
    assert data["status"] == "draft"
    assert data["subtotal"] == 250.0
    assert data["discount_amount"] == 25.0
    assert data["tax_amount"] == 29.25
    assert data["total"] == 254.25
    assert [i["total"] for i in data["items"]] == [200.0, 50.0]


def test_numbers_increase_per_invoice(client, auth_headers, client_id, prefixed):
    numbers = [_create(client, auth_headers, client_id).get_json()["invoice_number"] for _ in range(3)]
    assert numbers == ["INV-001", "INV-002", "INV-003"]

    resp = client.get("/api/v1/invoices/next-number", headers=auth_headers)
    assert resp.get_json() == {"invoice_number": "INV-004"}


def test_start_number_applies_without_prefix(client, auth_headers, client_id):
    client.put("/api/v1/settings", json={"invoice_start_number": 50}, headers=auth_headers)
    assert _create(client, auth_headers, client_id).get_json()["invoice_number"] == "050"


def test_raising_start_number_resets_sequence(client, auth_headers, client_id, prefixed):
    _create(client, auth_headers, client_id)
    client.put("/api/v1/settings", json={"invoice_start_number": 500}, headers=auth_headers)
    assert _create(client, auth_headers, client_id).get_json()["invoice_number"] == "INV-500"


def test_numbering_is_per_user(client, register, auth_headers, client_id, prefixed):
    _create(client, auth_headers, client_id)

    other_headers, _ = register(email="second@example.com")
    other_client = client.post("/api/v1/clients", json={"contact_name": "Bob"}, headers=other_headers)
    resp = _create(client, other_headers, other_client.get_json()["id"])
    assert resp.get_json()["invoice_number"] == "001"


def test_explicit_duplicate_number_is_a_conflict(client, auth_headers, client_id, prefixed):
    _create(client, auth_headers, client_id)
    resp = _create(client, auth_headers, client_id, invoice_number="INV-001")
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "Invoice number already in use"


def test_allocation_exhaustion_returns_conflict(client, auth_headers, client_id):
    with mock.patch(
        "invoicely.repository.InvoiceStore.insert_invoice",
        side_effect=ConflictError("Invoice number already in use"),
    ):
        resp = _create(client, auth_headers, client_id)
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "Could not allocate invoice number, please retry"


@pytest.mark.parametrize("body, message", [
    ({"discount": 150}, "discount must be at most 100"),
    ({"tax_rate": -1}, "tax_rate must be at least 0"),
    ({"items": []}, "At least one item is required"),
    ({"items": [{"description": "", "quantity": 1, "unit_price": 1}]}, "item 1 needs a description"),
    ({"items": [{"description": "x", "quantity": -2, "unit_price": 1}]}, "item 1 quantity must be at least 0"),
    ({"items": [{"description": "x", "quantity": "lots", "unit_price": 1}]}, "item 1 quantity must be a number"),
    ({"due_date": "31/12/2026"}, "due_date must be YYYY-MM-DD format"),
    ({"status": "archived"}, "status must be one of"),
])
def test_create_invoice_validation(client, auth_headers, client_id, body, message):
    resp = _create(client, auth_headers, client_id, **body)
    assert resp.status_code == 400
    assert message in resp.get_json()["error"]


def test_create_invoice_requires_own_client(client, register, auth_headers):
    resp = client.post("/api/v1/invoices", json={"items": ITEMS}, headers=auth_headers)
    assert resp.status_code == 400

    other_headers, _ = register(email="second@example.com")
    foreign = client.post("/api/v1/clients", json={"contact_name": "Bob"}, headers=other_headers)
    resp = _create(client, auth_headers, foreign.get_json()["id"])
    assert resp.status_code == 404


def test_tax_type_resolves_rate(client, auth_headers, client_id):
    client.post("/api/v1/taxes/seed", headers=auth_headers)
    body = {"client_id": client_id, "items": ITEMS, "discount": 10, "tax_type": "ON-HST"}
    resp = client.post("/api/v1/invoices", json=body, headers=auth_headers)

    assert resp.status_code == 201
    data = resp.get_json()
    assert data["tax_rate"] == 13.0
    assert data["tax_type"] == "ON-HST"
    assert data["total"] == 254.25


def test_unknown_tax_type_is_rejected(client, auth_headers, client_id):
    body = {"client_id": client_id, "items": ITEMS, "tax_type": "ZZ-VAT"}
    resp = client.post("/api/v1/invoices", json=body, headers=auth_headers)
    assert resp.status_code == 400


def test_preview_totals(client, auth_headers):
    resp = client.post("/api/v1/invoices/preview", json={"items": ITEMS, "discount": 10, "tax_rate": 13},
                       headers=auth_headers)
    assert resp.status_code == 200
    assert resp.get_json() == {
        "subtotal": 250.0,
        "discount_amount": 25.0,
        "taxable_amount": 225.0,
        "tax_amount": 29.25,
        "total": 254.25,
    }


def test_preview_of_empty_invoice_is_zero(client, auth_headers):
    resp = client.post("/api/v1/invoices/preview", json={}, headers=auth_headers)
    assert resp.get_json()["total"] == 0.0


def test_list_and_get(client, auth_headers, client_id, prefixed):
    created = _create(client, auth_headers, client_id).get_json()
    _create(client, auth_headers, client_id, status="sent")

    listing = client.get("/api/v1/invoices", headers=auth_headers).get_json()
    assert listing["total"] == 2
    assert listing["pages"] == 1

    sent = client.get("/api/v1/invoices?status=sent", headers=auth_headers).get_json()
    assert [i["invoice_number"] for i in sent["invoices"]] == ["INV-002"]

    single = client.get(f"/api/v1/invoices/{created['id']}", headers=auth_headers)
    assert single.status_code == 200
    assert len(single.get_json()["items"]) == 2


def test_get_invalid_or_foreign_invoice(client, register, auth_headers, client_id):
    created = _create(client, auth_headers, client_id).get_json()

    assert client.get("/api/v1/invoices/not-an-id", headers=auth_headers).status_code == 404

    other_headers, _ = register(email="second@example.com")
    assert client.get(f"/api/v1/invoices/{created['id']}", headers=other_headers).status_code == 404


def test_update_recomputes_totals(client, auth_headers, client_id):
    created = _create(client, auth_headers, client_id).get_json()

    resp = client.patch(f"/api/v1/invoices/{created['id']}", json={"discount": 0}, headers=auth_headers)

    assert resp.status_code == 200
    data = resp.get_json()
    assert data["discount_amount"] == 0.0
    assert data["total"] == 282.5
    assert data["invoice_number"] == created["invoice_number"]


def test_pay_then_edit_and_delete_are_refused(client, auth_headers, client_id):
    invoice_id = _create(client, auth_headers, client_id).get_json()["id"]

    paid = client.post(f"/api/v1/invoices/{invoice_id}/pay", headers=auth_headers)
    assert paid.status_code == 200
    assert paid.get_json()["invoice"]["status"] == "paid"
    assert paid.get_json()["invoice"]["paid_at"] is not None

    again = client.post(f"/api/v1/invoices/{invoice_id}/pay", headers=auth_headers)
    assert again.status_code == 400

    edit = client.put(f"/api/v1/invoices/{invoice_id}", json={"notes": "x"}, headers=auth_headers)
    assert edit.status_code == 400
    assert edit.get_json()["error"] == "Cannot edit a paid invoice"

    assert client.delete(f"/api/v1/invoices/{invoice_id}", headers=auth_headers).status_code == 400


def test_delete_invoice(client, auth_headers, client_id):
    invoice_id = _create(client, auth_headers, client_id).get_json()["id"]
    assert client.delete(f"/api/v1/invoices/{invoice_id}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/v1/invoices/{invoice_id}", headers=auth_headers).status_code == 404


def test_extra_precision_is_rounded_to_stored_precision(client, auth_headers, client_id):
    body = {
        "client_id": client_id,
        "items": [{"description": "Widgets", "quantity": 3, "unit_price": "0.333"}],
        "discount": "12.345",
        "tax_rate": "13.0005",
    }
    created = client.post("/api/v1/invoices", json=body, headers=auth_headers).get_json()

    assert created["items"][0]["unit_price"] == 0.33
    assert created["items"][0]["total"] == 0.99
    assert created["subtotal"] == 0.99
    assert created["discount"] == 12.35
    assert created["tax_rate"] == 13.001

    reloaded = client.get(f"/api/v1/invoices/{created['id']}", headers=auth_headers).get_json()
    assert sum(i["total"] for i in reloaded["items"]) == reloaded["subtotal"]
    assert reloaded["total"] == created["total"]

    patched = client.patch(f"/api/v1/invoices/{created['id']}", json={"discount": 0},
                           headers=auth_headers).get_json()
    assert patched["subtotal"] == 0.99
    assert patched["total"] == 1.12


def test_preview_rounds_like_a_saved_invoice(client, auth_headers):
    resp = client.post("/api/v1/invoices/preview", json={
        "items": [{"description": "Widgets", "quantity": 3, "unit_price": "0.333"}],
    }, headers=auth_headers)
    assert resp.get_json()["subtotal"] == 0.99


@pytest.mark.parametrize("body, message", [
    ({"items": [{"description": "d" * 201, "quantity": 1, "unit_price": 1}]},
     "item 1 description must be at most 200 characters"),
    ({"tax_type": "X" * 25, "tax_rate": 13}, "tax_type must be at most 20 characters"),
    ({"items": [{"description": 42, "quantity": 1, "unit_price": 1}]}, "item 1 description must be a string"),
    ({"notes": ["not", "text"]}, "notes must be a string"),
])
def test_create_rejects_values_the_model_cannot_store(client, auth_headers, client_id, body, message):
    resp = _create(client, auth_headers, client_id, **body)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == message


def test_update_rejects_overlong_values(client, auth_headers, client_id):
    invoice_id = _create(client, auth_headers, client_id).get_json()["id"]

    resp = client.patch(f"/api/v1/invoices/{invoice_id}", json={"tax_type": "Y" * 21, "tax_rate": 5},
                        headers=auth_headers)
    assert resp.status_code == 400

    resp = client.patch(f"/api/v1/invoices/{invoice_id}",
                        json={"items": [{"description": "d" * 300, "quantity": 1, "unit_price": 1}]},
                        headers=auth_headers)
    assert resp.status_code == 400

    unchanged = client.get(f"/api/v1/invoices/{invoice_id}", headers=auth_headers).get_json()
    assert unchanged["total"] == 254.25


def test_model_validation_errors_become_bad_requests(client, auth_headers, client_id):
    invoice_id = _create(client, auth_headers, client_id).get_json()["id"]

    with mock.patch("invoicely.api.invoices.apply_invoice_changes",
                    side_effect=lambda invoice, changes: setattr(invoice, "tax_type", "Z" * 40)):
        resp = client.patch(f"/api/v1/invoices/{invoice_id}", json={}, headers=auth_headers)

    assert resp.status_code == 400
    assert "error" in resp.get_json()
