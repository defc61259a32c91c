from typing import List, Optional

from .base import CamelModel


class FaceDescriptorRequest(CamelModel):
    descriptor: Optional[List[float]] = None


class FaceRegisterRequest(CamelModel):
    person_id: str = ""
    descriptor: Optional[List[float]] = None
    image_url: Optional[str] = None


class FaceRemoveRequest(CamelModel):
    person_id: str = ""


class FaceMatch(CamelModel):
    id: str
    email: str
    name: str
    company: str
    distance: float
    confidence: int


class FaceVerifyResponse(CamelModel):
    found: bool
    match: Optional[FaceMatch] = None
