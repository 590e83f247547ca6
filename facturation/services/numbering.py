from __future__ import annotations
import logging
import re
from typing import Iterable

log = logging.getLogger(__name__)


def _suffix_value(number: str) -> int:
    tail = number.rsplit("-", 1)[-1]
    # chiffres ASCII seulement, sinon numéro mal formé -> 0
    if not re.fullmatch(r"[0-9]+", tail):
        return 0
    return int(tail)


def next_number(prefix: str, existing_numbers: Iterable[str], year: int) -> str:
    """
    Prochain numéro "{prefix}-{year}-NNN" d'après les numéros existants de l'année.
    Le suffixe est complété à 3 chiffres et s'élargit au-delà de 999.
    """
    year_prefix = f"{prefix}-{year}-"
    max_n = 0
    for num in existing_numbers:
        if isinstance(num, str) and num.startswith(year_prefix):
            max_n = max(max_n, _suffix_value(num))
    number = f"{year_prefix}{max_n + 1:03d}"
    log.debug("Numéro suivant pour %s : %s", year_prefix, number)
    return number
