from __future__ import annotations
from typing import Optional


class FacturationError(Exception):
    """Erreur de base du domaine."""


class NotFoundError(FacturationError):
    def __init__(self, kind: str, obj_id: Optional[str]):
        super().__init__(f"{kind} with id={obj_id} not found")
        self.kind = kind
        self.obj_id = obj_id


class InvalidTransitionError(FacturationError):
    def __init__(self, kind: str, obj_id: Optional[str], current: str, target: str):
        super().__init__(f"{kind} {obj_id}: transition {current} -> {target} not allowed")
        self.kind = kind
        self.obj_id = obj_id
        self.current = current
        self.target = target


class StoreError(FacturationError):
    """Collection inconnue ou donnée illisible côté stockage."""
