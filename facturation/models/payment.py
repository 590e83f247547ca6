from __future__ import annotations
from pydantic import Field
from typing import Dict, Literal, Optional
import datetime as dt
from .common import Record

PaymentMethod = Literal["VIREMENT", "CHEQUE", "ESPECES", "CARTE", "AUTRE"]

PAYMENT_METHOD_LABELS: Dict[str, str] = {
    "VIREMENT": "Virement bancaire",
    "CHEQUE": "Chèque",
    "ESPECES": "Espèces",
    "CARTE": "Carte de crédit",
    "AUTRE": "Autre",
}

class Payment(Record):
    id: Optional[str] = None
    invoice_id: str = ""
    date: dt.date = Field(default_factory=dt.date.today)
    amount: float = 0.0
    method: PaymentMethod = "VIREMENT"
