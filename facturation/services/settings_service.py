from __future__ import annotations
import logging
from typing import Optional

from pydantic import ValidationError

from facturation.models.company import READ_ONLY_ROLES, CompanyInfo
from facturation.storage.repo import MemoryStore

log = logging.getLogger(__name__)


class SettingsService:
    """Informations société (en-tête des documents) et rôle courant."""

    def __init__(self, store: MemoryStore):
        self.store = store

    def get_company_info(self) -> CompanyInfo:
        raw = self.store.load("companyInfo", default={})
        if not isinstance(raw, dict):
            log.warning("companyInfo inattendu (%s), valeurs par défaut", type(raw).__name__)
            return CompanyInfo()
        try:
            return CompanyInfo.model_validate(raw)
        except ValidationError as e:
            log.warning("companyInfo invalide, valeurs par défaut : %s", e)
            return CompanyInfo()

    def save_company_info(self, info: CompanyInfo) -> CompanyInfo:
        self.store.save("companyInfo", info.to_json_dict())
        log.info("Informations société enregistrées (rôle %s)", info.role)
        return info

    def is_read_only(self, role: Optional[str] = None) -> bool:
        # affordance d'interface seulement, aucune vérification côté services
        return (role or self.get_company_info().role) in READ_ONLY_ROLES
