import json
from datetime import date

import pytest

from facturation.config import Settings, load_settings
from facturation.errors import StoreError
from facturation.models.payment import Payment
from facturation.services.document_service import DocumentService
from facturation.storage.json_repo import JsonStore
from facturation.storage.repo import MemoryStore


def test_memory_store_returns_copies():
    store = MemoryStore({"clients": [{"id": "1", "name": "A"}]})
    rows = store.load("clients")
    rows[0]["name"] = "changed"
    assert store.load("clients")[0]["name"] == "A"


def test_memory_store_defaults_and_unknown_names():
    store = MemoryStore()
    assert store.load("quotes") == []
    assert store.load("companyInfo", default={}) == {}
    with pytest.raises(StoreError):
        store.load("orders")
    with pytest.raises(StoreError):
        store.save("orders", [])


def test_json_store_round_trip_through_service(tmp_path, line):
    store = JsonStore(tmp_path)
    svc = DocumentService(store, settings=Settings())
    inv = svc.save_document("invoice", {"clientId": "1", "items": [line]})
    svc.reconcile_payment(inv.id, Payment(amount=240))

    on_disk = json.loads((tmp_path / "invoices.json").read_text(encoding="utf-8"))
    assert on_disk[0]["invoiceNumber"] == inv.invoice_number
    assert on_disk[0]["status"] == "PAID"

    reopened = DocumentService(JsonStore(tmp_path), settings=Settings())
    assert reopened.get_invoice(inv.id).status == "PAID"
    assert len(reopened.payments.payments_for(inv.id)) == 1


def test_json_store_keeps_unicode(tmp_path):
    store = JsonStore(tmp_path)
    store.save("clients", [{"id": "1", "name": "Société Générale"}])
    assert "Société" in (tmp_path / "clients.json").read_text(encoding="utf-8")


def test_corrupt_file_is_set_aside(tmp_path):
    (tmp_path / "quotes.json").write_text("{not json", encoding="utf-8")
    store = JsonStore(tmp_path)
    assert store.load("quotes") == []
    assert (tmp_path / "quotes.corrupt.json").exists()


def test_backups_rotate_and_unchanged_content_is_not_rewritten(tmp_path):
    store = JsonStore(tmp_path, backup_keep=2)
    for n in range(5):
        store.save("products", [{"id": str(n), "name": f"P{n}"}])
    backups = sorted(tmp_path.glob("products.*.bak.json"))
    assert len(backups) == 2

    store.save("products", [{"id": "4", "name": "P4"}])
    assert sorted(tmp_path.glob("products.*.bak.json")) == backups


def test_backups_can_be_disabled(tmp_path):
    store = JsonStore(tmp_path, backup_enabled=False)
    store.save("clients", [])
    store.save("clients", [{"id": "1", "name": "A"}])
    assert list(tmp_path.glob("*.bak.json")) == []


def test_load_settings(tmp_path):
    assert load_settings(tmp_path / "missing.json") == Settings()

    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"numbering": {"quote_prefix": "DV"}, "payment_term_days": 15}), encoding="utf-8")
    s = load_settings(path)
    assert s.numbering.quote_prefix == "DV"
    assert s.numbering.invoice_prefix == "FAC"
    assert s.payment_term_days == 15

    path.write_text("[broken", encoding="utf-8")
    assert load_settings(path) == Settings()


def test_custom_prefix_is_used(settings):
    s = settings.model_copy(update={"numbering": settings.numbering.model_copy(update={"quote_prefix": "DV"})})
    svc = DocumentService(MemoryStore(), settings=s, clock=lambda: date(2025, 1, 2))
    assert svc.next_quote_number() == "DV-2025-001"


def test_unreadable_rows_stay_in_the_file(tmp_path, line):
    legacy = {"id": "q-legacy", "quoteNumber": "DEV-2023-004", "status": "Accepté"}
    (tmp_path / "quotes.json").write_text(json.dumps([legacy]), encoding="utf-8")
    svc = DocumentService(JsonStore(tmp_path), settings=Settings())
    saved = svc.save_document("quote", {"clientId": "1", "items": [line]})

    on_disk = json.loads((tmp_path / "quotes.json").read_text(encoding="utf-8"))
    assert on_disk[0] == legacy
    assert [q["id"] for q in on_disk] == ["q-legacy", saved.id]


def test_save_many_leaves_no_temp_files(tmp_path):
    store = JsonStore(tmp_path)
    store.save_many({
        "payments": [{"id": "p1", "invoiceId": "i1", "amount": 10}],
        "invoices": [{"id": "i1", "status": "PARTIALLY_PAID"}],
    })
    assert json.loads((tmp_path / "payments.json").read_text(encoding="utf-8"))[0]["id"] == "p1"
    assert json.loads((tmp_path / "invoices.json").read_text(encoding="utf-8"))[0]["status"] == "PARTIALLY_PAID"
    assert list(tmp_path.glob("*.tmp")) == []


def test_failed_staging_writes_no_collection(tmp_path, monkeypatch):
    store = JsonStore(tmp_path, backup_enabled=False)
    store.save_many({"payments": [], "invoices": []})

    real_stage = JsonStore._stage_raw

    def stage_then_fail(self, path, dump):
        if path.name == "invoices.json":
            raise OSError("disque plein")
        return real_stage(self, path, dump)

    monkeypatch.setattr(JsonStore, "_stage_raw", stage_then_fail)
    with pytest.raises(OSError):
        store.save_many({
            "payments": [{"id": "p1", "invoiceId": "i1", "amount": 10}],
            "invoices": [{"id": "i1", "status": "PAID"}],
        })
    assert json.loads((tmp_path / "payments.json").read_text(encoding="utf-8")) == []
    assert store.load("payments") == []
    assert list(tmp_path.glob("*.tmp")) == []
