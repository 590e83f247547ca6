from __future__ import annotations
from typing import Dict, Literal
from .common import Record

UserRole = Literal["ADMINISTRATEUR", "COMMERCIAL", "COMPTABLE", "ENTREPRENEUR"]

ROLE_LABELS: Dict[str, str] = {
    "ADMINISTRATEUR": "Administrateur",
    "COMMERCIAL": "Commercial",
    "COMPTABLE": "Comptable",
    "ENTREPRENEUR": "Entrepreneur",
}

# rôles en consultation seule (affordances UI, pas une frontière de sécurité)
READ_ONLY_ROLES = ("COMPTABLE",)


class CompanyInfo(Record):
    name: str = "Votre Nom d'Entreprise"
    address: str = ""
    phone: str = ""
    email: str = ""
    website: str = ""
    logo_url: str = ""
    ice: str = ""
    rc: str = ""
    idf: str = ""
    patente: str = ""
    bank_name: str = ""
    rib: str = ""
    role: UserRole = "ENTREPRENEUR"
