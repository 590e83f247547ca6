from __future__ import annotations
from typing import Iterable, TYPE_CHECKING
from pydantic import BaseModel

if TYPE_CHECKING:  # pragma: no cover
    from facturation.models.quote import LineItem


class Totals(BaseModel):
    subtotal: float = 0.0
    tax_total: float = 0.0
    grand_total: float = 0.0


def line_total(item: "LineItem") -> float:
    """Montant HT d'une ligne (quantité × prix unitaire)."""
    return item.quantity * item.unit_price


def line_tax(item: "LineItem") -> float:
    return item.quantity * item.unit_price * item.tax_rate / 100


def compute_totals(items: Iterable["LineItem"]) -> Totals:
    """
    Totaux HT / TVA / TTC recalculés à la demande depuis les lignes.
    Aucun arrondi ici (le formatage monétaire est l'affaire de l'affichage),
    et aucun contrôle de signe sur quantités ou prix.
    """
    subtotal = 0.0
    tax_total = 0.0
    for it in items:
        subtotal += line_total(it)
        tax_total += line_tax(it)
    return Totals(subtotal=subtotal, tax_total=tax_total, grand_total=subtotal + tax_total)
