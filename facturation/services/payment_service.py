from __future__ import annotations
import logging
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel

from facturation.errors import NotFoundError
from facturation.models.common import Rejected, dump_records, gen_id, parse_records, split_records
from facturation.models.invoice import Invoice, InvoiceStatus
from facturation.models.payment import Payment
from facturation.storage.repo import MemoryStore

log = logging.getLogger(__name__)


class Reconciliation(BaseModel):
    total_paid: float = 0.0
    balance_due: float = 0.0
    derived_status: InvoiceStatus = "SENT"


def total_paid(invoice_id: Optional[str], payments: Iterable[Payment]) -> float:
    return sum(p.amount for p in payments if p.invoice_id == invoice_id)


def reconcile(invoice: Invoice, payments: Iterable[Payment]) -> Reconciliation:
    """
    Montant payé, solde restant et statut dérivé d'une facture.
    - PAID si payé >= total TTC
    - PARTIALLY_PAID si 0 < payé < total
    - sinon SENT (un règlement ne ramène jamais une facture en brouillon)
    """
    paid = total_paid(invoice.id, payments)
    grand_total = invoice.grand_total()
    if paid >= grand_total:
        status = "PAID"
    elif paid > 0:
        status = "PARTIALLY_PAID"
    else:
        status = "SENT"
    return Reconciliation(total_paid=paid, balance_due=grand_total - paid, derived_status=status)


class PaymentService:
    def __init__(self, store: MemoryStore):
        self.store = store

    def list_payments(self) -> List[Payment]:
        return parse_records(self.store.load("payments"), Payment, "payment")

    def load_for_write(self) -> Tuple[List[Payment], List[Rejected]]:
        return split_records(self.store.load("payments"), Payment, "payment")

    def payments_for(self, invoice_id: str) -> List[Payment]:
        return [p for p in self.list_payments() if p.invoice_id == invoice_id]

    def _load_invoices(self) -> List[Invoice]:
        return parse_records(self.store.load("invoices"), Invoice, "invoice")

    def summarize(self, invoice_id: str) -> Reconciliation:
        """Réconciliation en lecture seule (aucune écriture)."""
        invoice = next((i for i in self._load_invoices() if i.id == invoice_id), None)
        if invoice is None:
            raise NotFoundError("invoice", invoice_id)
        return reconcile(invoice, self.list_payments())

    def record_payment(self, invoice_id: str, payment: Payment) -> Tuple[Payment, Reconciliation]:
        """
        Enregistre un paiement puis réécrit le statut dérivé de la facture.
        Les deux collections partent dans le même save_many : jamais de paiement
        sans recalcul du statut, ni l'inverse.
        """
        invoices, bad_invoices = split_records(self.store.load("invoices"), Invoice, "invoice")
        idx = next((i for i, inv in enumerate(invoices) if inv.id == invoice_id), None)
        if idx is None:
            log.warning("Paiement refusé : facture %s introuvable", invoice_id)
            raise NotFoundError("invoice", invoice_id)

        payment = payment.model_copy(update={
            "id": payment.id or gen_id(),
            "invoice_id": invoice_id,
        })
        payments, bad_payments = self.load_for_write()
        payments.append(payment)
        result = reconcile(invoices[idx], payments)
        invoices[idx] = invoices[idx].model_copy(update={"status": result.derived_status})

        self.store.save_many({
            "payments": dump_records(payments, bad_payments),
            "invoices": dump_records(invoices, bad_invoices),
        })
        log.info(
            "Paiement %s de %.2f sur facture %s -> %s (reste %.2f)",
            payment.id, payment.amount, invoices[idx].invoice_number,
            result.derived_status, result.balance_due,
        )
        return payment, result
