from __future__ import annotations
from pydantic import Field
from typing import Dict, List, Literal, Optional
from datetime import date
from facturation.services.totals import Totals, compute_totals
from .common import Record, gen_id

QuoteStatus = Literal["DRAFT", "SENT", "ACCEPTED", "REJECTED", "ARCHIVED"]

QUOTE_STATUS_LABELS: Dict[str, str] = {
    "DRAFT": "Brouillon",
    "SENT": "Envoyé",
    "ACCEPTED": "Accepté",
    "REJECTED": "Rejeté",
    "ARCHIVED": "Archivé",
}

# statuts proposés dans le formulaire d'édition (l'archivage passe par archive_quote)
EDITABLE_QUOTE_STATUSES = tuple(s for s in QUOTE_STATUS_LABELS if s != "ARCHIVED")
ARCHIVABLE_QUOTE_STATUSES = ("ACCEPTED", "REJECTED")


class LineItem(Record):
    id: str = Field(default_factory=gen_id)
    description: str = ""
    quantity: float = 1.0
    unit_price: float = 0.0  # HT
    tax_rate: float = 20.0  # TVA en %
    unit: str = ""


class PricedDocument(Record):
    """Partie commune devis/facture : client, dates, lignes et totaux."""
    id: Optional[str] = None
    client_id: str = ""
    issue_date: date = Field(default_factory=date.today)
    items: List[LineItem] = Field(default_factory=list)
    notes: Optional[str] = None

    @property
    def is_new(self) -> bool:
        return self.id is None

    # helpers
    def totals(self) -> Totals:
        return compute_totals(self.items)

    def grand_total(self) -> float:
        return self.totals().grand_total


class Quote(PricedDocument):
    quote_number: str = ""
    expiry_date: Optional[date] = None
    status: QuoteStatus = "DRAFT"

    @property
    def number(self) -> str:
        return self.quote_number
