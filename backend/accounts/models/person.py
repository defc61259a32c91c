from pydantic import Field, field_validator
from typing import Optional
import logging

from .base import CamelModel

logger = logging.getLogger(__name__)


class Person(CamelModel):
    id: str
    email: str
    name: str
    company: str
    # Stored verbatim as submitted at enrollment
    face_descriptor: Optional[list] = None
    face_image_url: Optional[str] = None
    active: bool = True
    is_admin: bool = False
    created_at: str
    updated_at: str

    @field_validator("face_descriptor", mode="before")
    @classmethod
    def drop_corrupt_descriptor(cls, value, info):
        # A stored descriptor that is not a list reads as not enrolled
        if value is None or isinstance(value, list):
            return value
        person_id = info.data.get("id", "?")
        logger.warning(f"Ignoring corrupt face descriptor of {person_id} ({type(value).__name__})")
        return None

    @property
    def has_face_recognition(self) -> bool:
        return bool(self.face_descriptor)


class PersonCreate(CamelModel):
    email: str = ""
    name: str = ""
    company: str = ""
    active: bool = True
    is_admin: bool = False


class PersonUpdate(CamelModel):
    email: Optional[str] = None
    name: Optional[str] = None
    company: Optional[str] = None
    active: Optional[bool] = None
    is_admin: Optional[bool] = None


class PersonView(CamelModel):
    """Public projection of a person, without the raw face descriptor."""

    id: str
    email: str
    name: str
    company: str
    active: bool
    is_admin: bool
    has_face_recognition: bool
    face_image_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_person(cls, person: Person) -> "PersonView":
        return cls(
            id=person.id,
            email=person.email,
            name=person.name,
            company=person.company,
            active=person.active,
            is_admin=person.is_admin,
            has_face_recognition=person.has_face_recognition,
            face_image_url=person.face_image_url,
            created_at=person.created_at,
            updated_at=person.updated_at,
        )


class AuthenticatedUser(PersonView):
    confidence: Optional[int] = Field(default=None, ge=0, le=100)
    distance: Optional[float] = None
