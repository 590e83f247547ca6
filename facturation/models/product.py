from __future__ import annotations
from typing import Optional
from .common import Record


class Product(Record):
  id: Optional[str] = None
  name: str
  description: str = ""
  unit_price: float = 0.0  # HT
  unit: str = ""
  tax_rate: float = 20.0
