from __future__ import annotations
import json
import logging
import os
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, ValidationError

log = logging.getLogger(__name__)

# --- Chemins de base ---
ROOT_DIR = Path(__file__).resolve().parents[1]
DATA_DIR = Path(os.environ.get("FACTURATION_DATA_DIR") or ROOT_DIR / "data")
SETTINGS_JSON = "settings.json"

COLLECTIONS = ("clients", "quotes", "invoices", "products", "payments", "companyInfo")


class NumberingSettings(BaseModel):
    quote_prefix: str = "DEV"
    invoice_prefix: str = "FAC"


class Settings(BaseModel):
    numbering: NumberingSettings = Field(default_factory=NumberingSettings)
    payment_term_days: int = 30  # échéance facture / validité devis
    default_tax_rate: float = 20.0
    expiry_warning_days: int = 7
    backup_keep: int = 5


def data_dir() -> Path:
    return DATA_DIR


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """
    Lit data/settings.json ; fichier absent ou illisible -> valeurs par défaut.
    """
    p = Path(path) if path else data_dir() / SETTINGS_JSON
    if not p.exists():
        return Settings()
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
        return Settings.model_validate(raw if isinstance(raw, dict) else {})
    except (json.JSONDecodeError, ValidationError) as e:
        log.warning("Paramètres illisibles dans %s (%s), valeurs par défaut utilisées", p, e)
        return Settings()
