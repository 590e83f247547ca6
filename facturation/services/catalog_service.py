from __future__ import annotations
import logging
from typing import List, Optional, Tuple

from facturation.models.common import Rejected, dump_records, gen_id, parse_records, split_records
from facturation.models.product import Product
from facturation.models.quote import LineItem
from facturation.storage.repo import MemoryStore

log = logging.getLogger(__name__)


class CatalogService:
    """
    Catalogue produits/prestations.
    Un produit sert seulement à pré-remplir une ligne : la ligne reçoit une copie
    des valeurs, aucun lien n'est conservé.
    """

    def __init__(self, store: MemoryStore):
        self.store = store

    def list_products(self) -> List[Product]:
        return parse_records(self.store.load("products"), Product, "product")

    def _load_for_write(self) -> Tuple[List[Product], List[Rejected]]:
        return split_records(self.store.load("products"), Product, "product")

    def get_product(self, product_id: Optional[str]) -> Optional[Product]:
        for p in self.list_products():
            if p.id == product_id:
                return p
        return None

    def save_product(self, product: Product) -> Product:
        products, rejected = self._load_for_write()
        if product.id is None:
            product = product.model_copy(update={"id": gen_id()})
            products.append(product)
        else:
            idx = next((i for i, p in enumerate(products) if p.id == product.id), None)
            if idx is None:
                products.append(product)
            else:
                products[idx] = product
        self.store.save("products", dump_records(products, rejected))
        log.info("Produit %s enregistré", product.id)
        return product

    def delete_product(self, product_id: str) -> bool:
        products, rejected = self._load_for_write()
        kept = [p for p in products if p.id != product_id]
        changed = len(kept) != len(products)
        if changed:
            self.store.save("products", dump_records(kept, rejected))
            log.info("Produit %s supprimé", product_id)
        return changed

    @staticmethod
    def fill_line(line: LineItem, product: Product) -> LineItem:
        """Copie désignation, prix, TVA et unité du produit dans la ligne (même id)."""
        return line.model_copy(update={
            "description": product.name,
            "unit_price": product.unit_price,
            "tax_rate": product.tax_rate,
            "unit": product.unit,
        })

    def line_from_product(self, product: Product, quantity: float = 1.0) -> LineItem:
        return self.fill_line(LineItem(quantity=quantity), product)
