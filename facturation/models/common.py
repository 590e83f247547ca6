from __future__ import annotations
import logging
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel
from datetime import date, timedelta
from typing import Any, Iterable, List, Tuple, Type, TypeVar
import uuid

log = logging.getLogger(__name__)

def gen_id() -> str:
    return str(uuid.uuid4())

def days_after(d: date, days: int) -> date:
    return d + timedelta(days=days)

class Record(BaseModel):
    """Base des enregistrements persistés: attributs snake_case, JSON en camelCase."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",  # tolère d'anciennes clés dans les JSON
    )

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


R = TypeVar("R", bound=Record)

# entrée brute invalide et sa position d'origine dans la collection
Rejected = Tuple[int, Any]


def split_records(rows: Iterable[Any], model: Type[R], entity: str = "record") -> Tuple[List[R], List[Rejected]]:
    """
    Hydrate une collection. Les entrées invalides sont journalisées et rendues
    à part, telles quelles, pour être réécrites à l'identique par dump_records.
    """
    out: List[R] = []
    rejected: List[Rejected] = []
    for pos, d in enumerate(rows or []):
        try:
            out.append(model.model_validate(d))
        except ValidationError as e:
            log.warning("Entrée %s ignorée (%d erreur(s)) : %s", entity, e.error_count(), d)
            rejected.append((pos, d))
    return out, rejected


def parse_records(rows: Iterable[Any], model: Type[R], entity: str = "record") -> List[R]:
    """Lecture seule : les entrées invalides sont ignorées (et journalisées)."""
    return split_records(rows, model, entity)[0]


def dump_records(items: Iterable[Record], rejected: Iterable[Rejected] = ()) -> List[dict]:
    """Sérialise la collection en réinsérant les entrées invalides à leur place."""
    out: List[Any] = [it.to_json_dict() for it in items]
    for pos, raw in sorted(rejected, key=lambda r: r[0]):
        out.insert(min(pos, len(out)), raw)
    return out
