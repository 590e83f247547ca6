from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Tuple, Type, Union

from facturation.config import Settings, load_settings
from facturation.errors import InvalidTransitionError, NotFoundError
from facturation.models.common import Rejected, days_after, dump_records, gen_id, parse_records, split_records
from facturation.models.invoice import PAYMENT_DERIVED_STATUSES, Invoice
from facturation.models.payment import Payment
from facturation.models.product import Product
from facturation.models.quote import ARCHIVABLE_QUOTE_STATUSES, EDITABLE_QUOTE_STATUSES, LineItem, PricedDocument, Quote
from facturation.services.catalog_service import CatalogService
from facturation.services.client_service import ClientService
from facturation.services.numbering import next_number
from facturation.services.payment_service import PaymentService, Reconciliation, reconcile
from facturation.services.totals import Totals, compute_totals
from facturation.storage.repo import MemoryStore

log = logging.getLogger(__name__)

DocumentKind = Literal["quote", "invoice"]
Document = Union[Quote, Invoice]

_COLLECTION: Dict[str, str] = {"quote": "quotes", "invoice": "invoices"}
_MODEL: Dict[str, Type[PricedDocument]] = {"quote": Quote, "invoice": Invoice}


class DocumentService:
    """
    Cycle de vie des devis et factures.

    Devis   : DRAFT -> SENT -> ACCEPTED | REJECTED -> ARCHIVED (terminal)
    Facture : DRAFT -> SENT -> PARTIALLY_PAID -> PAID, OVERDUE posé à la main

    Chaque mutation relit la collection complète, calcule la nouvelle et la
    réécrit d'un bloc dans le magasin. Les entrées illisibles sont ignorées
    à la lecture mais réécrites telles quelles.
    """

    def __init__(
        self,
        store: MemoryStore,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], date]] = None,
    ) -> None:
        self.store = store
        self.settings = settings or load_settings()
        self.clock = clock or date.today
        self.clients = ClientService(store)
        self.catalog = CatalogService(store)
        self.payments = PaymentService(store)

    # ----- Chargement ----- #

    @staticmethod
    def _check_kind(kind: str) -> None:
        if kind not in _COLLECTION:
            raise ValueError(f"Unknown document kind '{kind}'")

    def _load(self, kind: str) -> List[Any]:
        self._check_kind(kind)
        return parse_records(self.store.load(_COLLECTION[kind]), _MODEL[kind], kind)

    def _load_for_write(self, kind: str) -> Tuple[List[Any], List[Rejected]]:
        self._check_kind(kind)
        return split_records(self.store.load(_COLLECTION[kind]), _MODEL[kind], kind)

    def _load_quotes(self) -> List[Quote]:
        return self._load("quote")

    def _load_invoices(self) -> List[Invoice]:
        return self._load("invoice")

    def list_quotes(self, include_archived: bool = False, newest_first: bool = True) -> List[Quote]:
        quotes = [q for q in self._load_quotes() if include_archived or q.status != "ARCHIVED"]
        if not newest_first:
            return quotes
        return sorted(quotes, key=lambda q: q.issue_date, reverse=True)

    def list_invoices(self) -> List[Invoice]:
        return self._load_invoices()

    def get_quote(self, quote_id: Optional[str]) -> Optional[Quote]:
        return next((q for q in self._load_quotes() if q.id == quote_id), None)

    def get_invoice(self, invoice_id: Optional[str]) -> Optional[Invoice]:
        return next((i for i in self._load_invoices() if i.id == invoice_id), None)

    def quotes_for_client(self, client_id: str) -> List[Quote]:
        quotes = [q for q in self._load_quotes() if q.client_id == client_id]
        return sorted(quotes, key=lambda q: q.issue_date, reverse=True)

    def invoices_for_client(self, client_id: str) -> List[Invoice]:
        invoices = [i for i in self._load_invoices() if i.client_id == client_id]
        return sorted(invoices, key=lambda i: i.issue_date, reverse=True)

    # ----- Numérotation / totaux ----- #

    def next_quote_number(self) -> str:
        return next_number(
            self.settings.numbering.quote_prefix,
            (q.quote_number for q in self._load_quotes()),
            self.clock().year,
        )

    def next_invoice_number(self) -> str:
        return next_number(
            self.settings.numbering.invoice_prefix,
            (i.invoice_number for i in self._load_invoices()),
            self.clock().year,
        )

    def _next_number(self, kind: str) -> str:
        return self.next_quote_number() if kind == "quote" else self.next_invoice_number()

    @staticmethod
    def compute_totals(items) -> Totals:
        return compute_totals(items)

    # ----- Création / édition ----- #

    def blank_line(self) -> LineItem:
        return LineItem(quantity=1.0, unit_price=0.0, tax_rate=self.settings.default_tax_rate)

    def create_document(self, kind: DocumentKind, client_id: Optional[str] = None) -> Document:
        """
        Squelette non enregistré (id None) : une ligne vierge, dates du jour et
        d'échéance, statut DRAFT. Le numéro est calculé maintenant, pas à
        l'enregistrement ; deux squelettes créés avant toute sauvegarde
        reçoivent donc le même numéro.
        """
        self._check_kind(kind)
        today = self.clock()
        if client_id is None:
            first = next(iter(self.clients.list_clients()), None)
            client_id = first.id if first else ""
        base = dict(
            id=None,
            client_id=client_id or "",
            issue_date=today,
            items=[self.blank_line()],
            notes="",
            status="DRAFT",
        )
        end = days_after(today, self.settings.payment_term_days)
        if kind == "quote":
            return Quote(quote_number=self.next_quote_number(), expiry_date=end, **base)
        return Invoice(invoice_number=self.next_invoice_number(), due_date=end, **base)

    def add_line_item(self, doc: Document, product: Optional[Product] = None) -> Document:
        line = self.blank_line()
        if product is not None:
            line = self.catalog.fill_line(line, product)
        return doc.model_copy(update={"items": [*doc.items, line]})

    def remove_line_item(self, doc: Document, item_id: str) -> Document:
        # un document garde toujours au moins une ligne
        if len(doc.items) <= 1:
            return doc
        return doc.model_copy(update={"items": [it for it in doc.items if it.id != item_id]})

    def _coerce(self, kind: str, draft: Union[Document, Mapping[str, Any]]) -> Document:
        model = _MODEL[kind]
        if isinstance(draft, model):
            return draft.model_copy(deep=True)
        if isinstance(draft, PricedDocument):
            raise TypeError(f"Expected a {model.__name__}, got {type(draft).__name__}")
        return model.model_validate(dict(draft))

    def _sync_invoice_status(self, invoice: Invoice) -> Invoice:
        """Le statut saisi à la main ne peut pas contredire les paiements enregistrés."""
        if invoice.id is None:
            return invoice
        result = reconcile(invoice, self.payments.list_payments())
        if result.total_paid > 0:
            status = result.derived_status
        elif invoice.status in PAYMENT_DERIVED_STATUSES:
            status = "SENT"
        else:
            return invoice
        if status != invoice.status:
            log.info("Facture %s : statut %s remplacé par %s (paiements)",
                     invoice.invoice_number, invoice.status, status)
        return invoice.model_copy(update={"status": status})

    def save_document(self, kind: DocumentKind, draft: Union[Document, Mapping[str, Any]]) -> Document:
        """
        Sans id : nouvel id unique et ajout en fin de collection.
        Avec id : remplacement complet à la même position (pas de fusion).
        """
        self._check_kind(kind)
        doc = self._coerce(kind, draft)
        docs, rejected = self._load_for_write(kind)
        idx = None if doc.id is None else next(
            (i for i, d in enumerate(docs) if d.id == doc.id), None)

        if kind == "quote":
            current = docs[idx].status if idx is not None else "DRAFT"
            # ARCHIVED est terminal : on n'y entre que par archive_quote, on n'en sort pas
            if current == "ARCHIVED" and doc.status != "ARCHIVED":
                raise InvalidTransitionError("quote", doc.id, current, doc.status)
            if current != "ARCHIVED" and doc.status not in EDITABLE_QUOTE_STATUSES:
                raise InvalidTransitionError("quote", doc.id, current, doc.status)

        if not doc.number:
            field = "quote_number" if kind == "quote" else "invoice_number"
            doc = doc.model_copy(update={field: self._next_number(kind)})
        if doc.id is None:
            doc = doc.model_copy(update={"id": gen_id()})
        if kind == "invoice":
            doc = self._sync_invoice_status(doc)

        if idx is None:
            docs.append(doc)
        else:
            docs[idx] = doc
        self.store.save(_COLLECTION[kind], dump_records(docs, rejected))
        log.info("%s %s enregistré(e) (%s)", kind, doc.number, doc.id)
        return doc

    def delete_document(self, kind: DocumentKind, doc_id: str) -> bool:
        """Supprimer une facture supprime ses paiements ; un devis, rien d'autre."""
        self._check_kind(kind)
        docs, rejected = self._load_for_write(kind)
        kept = [d for d in docs if d.id != doc_id]
        if len(kept) == len(docs):
            return False
        changes: Dict[str, Any] = {_COLLECTION[kind]: dump_records(kept, rejected)}
        if kind == "invoice":
            payments, bad_payments = self.payments.load_for_write()
            remaining = [p for p in payments if p.invoice_id != doc_id]
            changes["payments"] = dump_records(remaining, bad_payments)
            log.info("Facture %s supprimée avec %d paiement(s)", doc_id, len(payments) - len(remaining))
        else:
            log.info("Devis %s supprimé", doc_id)
        self.store.save_many(changes)
        return True

    # ----- Transitions ----- #

    def archive_quote(self, quote_id: str) -> Quote:
        quotes, rejected = self._load_for_write("quote")
        idx = next((i for i, q in enumerate(quotes) if q.id == quote_id), None)
        if idx is None:
            raise NotFoundError("quote", quote_id)
        quote = quotes[idx]
        if quote.status == "ARCHIVED":
            return quote
        if quote.status not in ARCHIVABLE_QUOTE_STATUSES:
            raise InvalidTransitionError("quote", quote_id, quote.status, "ARCHIVED")
        quote = quote.model_copy(update={"status": "ARCHIVED"})
        quotes[idx] = quote
        self.store.save("quotes", dump_records(quotes, rejected))
        log.info("Devis %s archivé", quote.quote_number)
        return quote

    def convert_quote_to_invoice(self, quote_id: str) -> Invoice:
        """
        Nouvelle facture DRAFT depuis un devis : client, lignes (copiées) et notes
        repris, échéance à 30 jours, lien quote_id. Le devis passe ACCEPTED,
        sauf s'il est archivé : il le reste.
        Rien n'empêche de convertir deux fois le même devis.
        """
        quotes, bad_quotes = self._load_for_write("quote")
        idx = next((i for i, q in enumerate(quotes) if q.id == quote_id), None)
        if idx is None:
            raise NotFoundError("quote", quote_id)
        quote = quotes[idx]
        today = self.clock()

        invoice = Invoice(
            id=gen_id(),
            invoice_number=self.next_invoice_number(),
            quote_id=quote.id,
            client_id=quote.client_id,
            issue_date=today,
            due_date=days_after(today, self.settings.payment_term_days),
            items=[it.model_copy(deep=True) for it in quote.items],
            status="DRAFT",
            notes=quote.notes,
        )
        if quote.status != "ARCHIVED":
            quotes[idx] = quote.model_copy(update={"status": "ACCEPTED"})

        invoices, bad_invoices = self._load_for_write("invoice")
        invoices.append(invoice)
        self.store.save_many({
            "quotes": dump_records(quotes, bad_quotes),
            "invoices": dump_records(invoices, bad_invoices),
        })
        log.info("Devis %s converti en facture %s", quote.quote_number, invoice.invoice_number)
        return invoice

    def reconcile_payment(self, invoice_id: str, payment: Payment) -> Reconciliation:
        _, result = self.payments.record_payment(invoice_id, payment)
        return result
