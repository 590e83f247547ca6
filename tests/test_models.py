from typing import get_args

from facturation import config
from facturation.models.company import ROLE_LABELS, UserRole
from facturation.models.invoice import INVOICE_STATUS_LABELS, Invoice, InvoiceStatus
from facturation.models.payment import PAYMENT_METHOD_LABELS, PaymentMethod
from facturation.models.quote import EDITABLE_QUOTE_STATUSES, QUOTE_STATUS_LABELS, Quote, QuoteStatus
from facturation.storage.json_repo import open_default_store


def test_every_status_has_a_label():
    assert set(QUOTE_STATUS_LABELS) == set(get_args(QuoteStatus))
    assert set(INVOICE_STATUS_LABELS) == set(get_args(InvoiceStatus))
    assert set(PAYMENT_METHOD_LABELS) == set(get_args(PaymentMethod))
    assert set(ROLE_LABELS) == set(get_args(UserRole))
    assert "ARCHIVED" not in EDITABLE_QUOTE_STATUSES


def test_documents_serialize_with_camel_case_keys(line):
    q = Quote.model_validate({"id": "q1", "quoteNumber": "DEV-2023-001", "clientId": "1",
                              "issueDate": "2023-10-15", "expiryDate": "2023-11-15",
                              "items": [line], "status": "ACCEPTED", "legacyField": True})
    data = q.to_json_dict()
    assert data["quoteNumber"] == "DEV-2023-001"
    assert data["expiryDate"] == "2023-11-15"
    assert data["items"][0]["unitPrice"] == 100
    assert "legacyField" not in data
    assert q.number == "DEV-2023-001"


def test_new_document_has_no_id():
    assert Invoice().is_new
    assert not Invoice(id="x").is_new


def test_default_store_uses_configured_directory(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "DATA_DIR", tmp_path)
    store = open_default_store()
    store.save("clients", [{"id": "1", "name": "A"}])
    assert (tmp_path / "clients.json").exists()
