from typing import Literal, Optional

from .base import CamelModel

ActivityStatus = Literal["success", "failed"]


class ActivityEvent(CamelModel):
    id: str
    person_id: Optional[str] = None
    email: Optional[str] = None
    provider: str
    status: ActivityStatus
    reason: Optional[str] = None
    ip: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: str
