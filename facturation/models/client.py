from __future__ import annotations
from typing import Optional
from .common import Record

class Client(Record):
    id: Optional[str] = None
    name: str
    email: str = ""
    phone: str = ""
    address: str = ""
    tax_id: str = ""  # ICE
