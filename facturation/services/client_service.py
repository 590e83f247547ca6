from __future__ import annotations
import logging
from typing import List, Optional, Tuple

from facturation.models.client import Client
from facturation.models.common import Rejected, dump_records, gen_id, parse_records, split_records
from facturation.storage.repo import MemoryStore

log = logging.getLogger(__name__)

UNKNOWN_CLIENT = "N/A"


class ClientService:
    def __init__(self, store: MemoryStore):
        self.store = store

    def list_clients(self) -> List[Client]:
        return parse_records(self.store.load("clients"), Client, "client")

    def _load_for_write(self) -> Tuple[List[Client], List[Rejected]]:
        return split_records(self.store.load("clients"), Client, "client")

    def search(self, term: str) -> List[Client]:
        needle = (term or "").strip().lower()
        if not needle:
            return self.list_clients()
        return [
            c for c in self.list_clients()
            if needle in c.name.lower() or needle in c.email.lower()
        ]

    def get_by_id(self, client_id: Optional[str]) -> Optional[Client]:
        for c in self.list_clients():
            if c.id == client_id:
                return c
        return None

    def client_name(self, client_id: Optional[str]) -> str:
        c = self.get_by_id(client_id)
        return c.name if c else UNKNOWN_CLIENT

    def save_client(self, client: Client) -> Client:
        clients, rejected = self._load_for_write()
        if client.id is None:
            client = client.model_copy(update={"id": gen_id()})
            clients.append(client)
        else:
            idx = next((i for i, c in enumerate(clients) if c.id == client.id), None)
            if idx is None:
                clients.append(client)
            else:
                clients[idx] = client
        self.store.save("clients", dump_records(clients, rejected))
        log.info("Client %s enregistré", client.id)
        return client

    def delete_client(self, client_id: str) -> bool:
        # pas de cascade : les documents gardent un client_id orphelin
        clients, rejected = self._load_for_write()
        kept = [c for c in clients if c.id != client_id]
        changed = len(kept) != len(clients)
        if changed:
            self.store.save("clients", dump_records(kept, rejected))
            log.info("Client %s supprimé", client_id)
        return changed
