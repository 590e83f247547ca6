from __future__ import annotations
from datetime import date
from typing import Dict, List

import pytest

from facturation.config import Settings
from facturation.storage.repo import MemoryStore
from facturation.services.document_service import DocumentService

TODAY = date(2024, 5, 10)


class RecordingStore(MemoryStore):
    """Garde une photo de chaque écriture, pour vérifier ce qu'un lecteur verrait."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.writes: List[Dict[str, object]] = []

    def _persist(self, changes):
        self.writes.append(dict(changes))


@pytest.fixture
def clients_data():
    return [
        {"id": "1", "name": "Tech Solutions Inc.", "email": "contact@techsolutions.com",
         "phone": "0522000001", "address": "123 Main St, Casablanca", "taxId": "001234567000089"},
        {"id": "2", "name": "Innovate SARL", "email": "contact@innovate.ma",
         "phone": "0522000002", "address": "456 Tech Park, Rabat", "taxId": "001234567000090"},
    ]


@pytest.fixture
def store(clients_data):
    return RecordingStore({"clients": clients_data})


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def clock():
    return lambda: TODAY


@pytest.fixture
def service(store, settings, clock):
    return DocumentService(store, settings=settings, clock=clock)


@pytest.fixture
def line():
    return {"id": "l1", "description": "Développement", "quantity": 2, "unitPrice": 100, "taxRate": 20, "unit": "Jour"}
