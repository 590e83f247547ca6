from __future__ import annotations

from datetime import date
from typing import Callable, List, Literal, Optional

from pydantic import BaseModel, Field

from facturation.config import Settings, load_settings
from facturation.errors import NotFoundError
from facturation.models.client import Client
from facturation.models.invoice import Invoice
from facturation.models.quote import Quote
from facturation.services.client_service import ClientService
from facturation.services.document_service import DocumentService
from facturation.services.payment_service import PaymentService
from facturation.storage.repo import MemoryStore

ExpiryState = Literal["EXPIRED", "EXPIRING_SOON"]

RECENT_COUNT = 5


class ExpiryInfo(BaseModel):
    state: ExpiryState
    days_left: int


class DashboardStats(BaseModel):
    client_count: int = 0
    pending_quotes: int = 0
    unpaid_invoices: int = 0
    paid_revenue: float = 0.0
    recent_quotes: List[Quote] = Field(default_factory=list)
    recent_invoices: List[Invoice] = Field(default_factory=list)


class ClientStatement(BaseModel):
    client: Client
    quotes: List[Quote] = Field(default_factory=list)
    invoices: List[Invoice] = Field(default_factory=list)
    total_billed: float = 0.0
    total_paid: float = 0.0
    balance_due: float = 0.0


def quote_expiry(quote: Quote, today: date, warning_days: int = 7) -> Optional[ExpiryInfo]:
    """Seuls les devis DRAFT/SENT peuvent expirer."""
    if quote.status not in ("DRAFT", "SENT") or quote.expiry_date is None:
        return None
    days_left = (quote.expiry_date - today).days
    if days_left < 0:
        return ExpiryInfo(state="EXPIRED", days_left=days_left)
    if days_left <= warning_days:
        return ExpiryInfo(state="EXPIRING_SOON", days_left=days_left)
    return None


class ReportService:
    def __init__(
        self,
        store: MemoryStore,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], date]] = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.clock = clock or date.today
        self.documents = DocumentService(store, self.settings, self.clock)
        self.clients = ClientService(store)
        self.payments = PaymentService(store)

    def urgent_quotes(self, include_archived: bool = False) -> List[Quote]:
        today = self.clock()
        return [
            q for q in self.documents.list_quotes(include_archived)
            if quote_expiry(q, today, self.settings.expiry_warning_days) is not None
        ]

    def dashboard(self) -> DashboardStats:
        # ordre d'enregistrement : les derniers en tête des "récents"
        quotes = self.documents.list_quotes(include_archived=True, newest_first=False)
        invoices = self.documents.list_invoices()
        return DashboardStats(
            client_count=len(self.clients.list_clients()),
            pending_quotes=sum(1 for q in quotes if q.status == "SENT"),
            unpaid_invoices=sum(1 for i in invoices if i.status in ("SENT", "OVERDUE")),
            paid_revenue=sum(i.grand_total() for i in invoices if i.status == "PAID"),
            recent_quotes=list(reversed(quotes[-RECENT_COUNT:])),
            recent_invoices=list(reversed(invoices[-RECENT_COUNT:])),
        )

    def client_statement(self, client_id: str) -> ClientStatement:
        client = self.clients.get_by_id(client_id)
        if client is None:
            raise NotFoundError("client", client_id)
        invoices = self.documents.invoices_for_client(client_id)
        ids = {i.id for i in invoices}
        billed = sum(i.grand_total() for i in invoices)
        paid = sum(p.amount for p in self.payments.list_payments() if p.invoice_id in ids)
        return ClientStatement(
            client=client,
            quotes=self.documents.quotes_for_client(client_id),
            invoices=invoices,
            total_billed=billed,
            total_paid=paid,
            balance_due=billed - paid,
        )
