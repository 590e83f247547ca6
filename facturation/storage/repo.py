from __future__ import annotations

import copy
import threading
from typing import Any, Dict, List, Mapping, Optional, Union

from facturation.config import COLLECTIONS
from facturation.errors import StoreError

Collection = Union[List[Dict[str, Any]], Dict[str, Any]]


class MemoryStore:
    """
    Magasin clé-valeur de collections nommées (clients, quotes, invoices...).
    - load(name) rend une copie : modifier le résultat n'affecte pas le magasin
    - save(name, data) remplace la collection entière (dernier écrivain gagne)
    - save_many écrit plusieurs collections d'un seul geste
    """

    def __init__(self, initial: Optional[Mapping[str, Collection]] = None) -> None:
        self._lock = threading.Lock()
        self._data: Dict[str, Collection] = {}
        for name, value in (initial or {}).items():
            self._check(name)
            self._data[name] = copy.deepcopy(value)

    @staticmethod
    def _check(name: str) -> None:
        if name not in COLLECTIONS:
            raise StoreError(f"Unknown collection '{name}'")

    def load(self, name: str, default: Optional[Collection] = None) -> Collection:
        self._check(name)
        with self._lock:
            if name not in self._data:
                return copy.deepcopy(default) if default is not None else []
            return copy.deepcopy(self._data[name])

    def save(self, name: str, data: Collection) -> None:
        self.save_many({name: data})

    def save_many(self, changes: Mapping[str, Collection]) -> None:
        for name in changes:
            self._check(name)
        snapshot = {name: copy.deepcopy(value) for name, value in changes.items()}
        with self._lock:
            self._persist(snapshot)
            self._data.update(snapshot)

    def _persist(self, changes: Mapping[str, Collection]) -> None:
        """Point d'extension pour les magasins durables (cf. JsonStore)."""
