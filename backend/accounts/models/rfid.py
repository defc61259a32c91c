from typing import Optional

from .base import CamelModel


class RfidCard(CamelModel):
    id: str
    person_id: str
    uid: str
    active: bool = True
    created_at: str


class RfidAssociateRequest(CamelModel):
    person_id: str = ""
    uid: str = ""


class RfidUidRequest(CamelModel):
    uid: str = ""


class RfidRead(CamelModel):
    uid: str = ""
    timestamp: Optional[str] = None
