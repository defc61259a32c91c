import logging
from typing import Dict, List, NamedTuple, Optional

from accounts.models.face import FaceMatch
from accounts.models.person import AuthenticatedUser, Person, PersonView
from accounts.services.face_matcher import FACE_MATCH_THRESHOLD, match_identity
from accounts.services.identity_store import IdentityStore, normalize_email

logger = logging.getLogger(__name__)

# Failure reasons recorded in the activity log
DESCRIPTOR_EMPTY = "descriptor_empty"
NO_MATCH = "no_match"
NOT_FOUND = "not_found"
INACTIVE = "inactive"


class AuthOutcome(NamedTuple):
    user: Optional[AuthenticatedUser] = None
    reason: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        return self.user is not None


def _authenticated_user(person: Person, match: Optional[FaceMatch] = None) -> AuthenticatedUser:
    view = PersonView.from_person(person)
    return AuthenticatedUser(
        **view.model_dump(),
        confidence=match.confidence if match else None,
        distance=match.distance if match else None
    )


def authenticate_by_email(
    store: IdentityStore,
    email: str,
    provider: str,
    meta: Dict[str, Optional[str]]
) -> AuthOutcome:
    normalized = normalize_email(email)
    person = store.get_person_by_email(normalized)

    if person is None:
        store.record_activity_event(provider, "failed", email=normalized, reason=NOT_FOUND, **meta)
        return AuthOutcome(reason=NOT_FOUND)

    if not person.active:
        store.record_activity_event(provider, "failed", person_id=person.id, email=normalized, reason=INACTIVE, **meta)
        return AuthOutcome(reason=INACTIVE)

    store.record_activity_event(provider, "success", person_id=person.id, email=normalized, **meta)
    return AuthOutcome(user=_authenticated_user(person))


def authenticate_by_face(
    store: IdentityStore,
    descriptor: Optional[List[float]],
    provider: str,
    meta: Dict[str, Optional[str]],
    threshold: float = FACE_MATCH_THRESHOLD
) -> AuthOutcome:
    """Match a captured descriptor and apply the active-account check."""
    if not descriptor:
        store.record_activity_event(provider, "failed", reason=DESCRIPTOR_EMPTY, **meta)
        return AuthOutcome(reason=DESCRIPTOR_EMPTY)

    persons = store.list_persons()
    match = match_identity(descriptor, persons, threshold)
    if match is None:
        store.record_activity_event(provider, "failed", reason=NO_MATCH, **meta)
        return AuthOutcome(reason=NO_MATCH)

    person = next((p for p in persons if p.id == match.id), None)
    if person is None or not person.active:
        reason = INACTIVE if person else NOT_FOUND
        store.record_activity_event(
            provider,
            "failed",
            person_id=match.id,
            email=match.email,
            reason=reason,
            **meta
        )
        return AuthOutcome(reason=reason)

    logger.info(f"Face login for {person.id} (confidence {match.confidence})")
    store.record_activity_event(provider, "success", person_id=person.id, email=person.email, **meta)
    return AuthOutcome(user=_authenticated_user(person, match))
