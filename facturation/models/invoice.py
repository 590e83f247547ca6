from __future__ import annotations
from typing import Dict, Literal, Optional
from datetime import date
from .quote import PricedDocument

InvoiceStatus = Literal["DRAFT", "SENT", "PARTIALLY_PAID", "PAID", "OVERDUE"]

INVOICE_STATUS_LABELS: Dict[str, str] = {
    "DRAFT": "Brouillon",
    "SENT": "Envoyé",
    "PARTIALLY_PAID": "Partiellement payé",
    "PAID": "Payé",
    "OVERDUE": "En retard",
}

# statuts dérivés des paiements (cf. payment_service.reconcile)
PAYMENT_DERIVED_STATUSES = ("PARTIALLY_PAID", "PAID")


class Invoice(PricedDocument):
    invoice_number: str = ""
    quote_id: Optional[str] = None  # devis d'origine, peut pointer dans le vide
    due_date: Optional[date] = None
    status: InvoiceStatus = "DRAFT"

    @property
    def number(self) -> str:
        return self.invoice_number

    def is_past_due(self, today: date) -> bool:
        # indicatif seulement : OVERDUE reste un statut posé à la main
        if self.due_date is None or self.status == "PAID":
            return False
        return self.due_date < today
