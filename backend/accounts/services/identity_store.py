import json
import logging
import os
import re
import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from accounts.models.activity import ActivityEvent, ActivityStatus
from accounts.models.person import Person
from accounts.models.rfid import RfidCard, RfidRead

logger = logging.getLogger(__name__)

RFID_LAST_READ_KEY = "rfid_last_read"


class DuplicateRecordError(ValueError):
    pass


def normalize_email(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def normalize_uid(value: Optional[str]) -> str:
    return re.sub(r"\s+", "", (value or "").strip())


class IdentityStore:
    """Persons, RFID cards and login activity kept in a single JSON document.

    The whole document is read and rewritten on every operation. Lists are
    kept newest first. The activity log keeps at most ``max_activity_events``
    entries so the rewrite on each login attempt stays bounded.
    """

    def __init__(self, path: str, max_activity_events: int = 1000):
        self.path = path
        self.max_activity_events = max_activity_events
        self._lock = threading.RLock()

        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)
        if not os.path.exists(path):
            self._write(self._empty())
            logger.info(f"Created identity store at {path}")

    # ---------- Document I/O ----------

    @staticmethod
    def _empty() -> Dict:
        return {"persons": [], "rfid_cards": [], "activity": [], "app_config": {}}

    def _read(self) -> Dict:
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        for key, default in self._empty().items():
            data.setdefault(key, default)
        return data

    def _write(self, data: Dict):
        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    @staticmethod
    def _now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    # ---------- Persons ----------

    def list_persons(self) -> List[Person]:
        with self._lock:
            return [Person(**row) for row in self._read()["persons"]]

    def get_person(self, person_id: str) -> Optional[Person]:
        with self._lock:
            for row in self._read()["persons"]:
                if row.get("id") == person_id:
                    return Person(**row)
        return None

    def get_person_by_email(self, email: str) -> Optional[Person]:
        normalized = normalize_email(email)
        if not normalized:
            return None
        with self._lock:
            for row in self._read()["persons"]:
                if normalize_email(row.get("email")) == normalized:
                    return Person(**row)
        return None

    def create_person(
        self,
        email: str,
        name: str,
        company: str,
        active: bool = True,
        is_admin: bool = False
    ) -> Person:
        normalized = normalize_email(email)
        now = self._now_iso()
        person = Person(
            id=self._new_id(),
            email=normalized,
            name=name.strip(),
            company=company.strip(),
            active=active,
            is_admin=is_admin,
            created_at=now,
            updated_at=now
        )

        with self._lock:
            data = self._read()
            if any(normalize_email(row.get("email")) == normalized for row in data["persons"]):
                raise DuplicateRecordError(f"Email already registered: {normalized}")
            data["persons"].insert(0, person.model_dump())
            self._write(data)

        logger.info(f"Person created: {person.id}")
        return person

    def _update_person_row(self, person_id: str, changes: Dict) -> Optional[Person]:
        with self._lock:
            data = self._read()
            for row in data["persons"]:
                if row.get("id") == person_id:
                    row.update(changes)
                    row["updated_at"] = self._now_iso()
                    self._write(data)
                    return Person(**row)
        return None

    def update_person(
        self,
        person_id: str,
        email: Optional[str] = None,
        name: Optional[str] = None,
        company: Optional[str] = None,
        active: Optional[bool] = None,
        is_admin: Optional[bool] = None
    ) -> Optional[Person]:
        changes = {}
        if email is not None:
            changes["email"] = normalize_email(email)
        if name is not None:
            changes["name"] = name.strip()
        if company is not None:
            changes["company"] = company.strip()
        if active is not None:
            changes["active"] = active
        if is_admin is not None:
            changes["is_admin"] = is_admin

        with self._lock:
            if "email" in changes:
                existing = self.get_person_by_email(changes["email"])
                if existing and existing.id != person_id:
                    raise DuplicateRecordError(f"Email already registered: {changes['email']}")
            return self._update_person_row(person_id, changes)

    def delete_person(self, person_id: str) -> bool:
        with self._lock:
            data = self._read()
            remaining = [row for row in data["persons"] if row.get("id") != person_id]
            if len(remaining) == len(data["persons"]):
                return False
            data["persons"] = remaining
            data["rfid_cards"] = [
                row for row in data["rfid_cards"] if row.get("person_id") != person_id
            ]
            self._write(data)

        logger.info(f"Person deleted: {person_id}")
        return True

    def save_face_descriptor(
        self,
        person_id: str,
        descriptor: List[float],
        image_url: Optional[str] = None
    ) -> Optional[Person]:
        person = self._update_person_row(
            person_id,
            {"face_descriptor": list(descriptor), "face_image_url": image_url}
        )
        if person:
            logger.info(f"Face descriptor saved for {person_id} ({len(descriptor)} values)")
        return person

    def clear_face_descriptor(self, person_id: str) -> Optional[Person]:
        person = self._update_person_row(
            person_id,
            {"face_descriptor": None, "face_image_url": None}
        )
        if person:
            logger.info(f"Face descriptor cleared for {person_id}")
        return person

    # ---------- Activity ----------

    def list_activity(self, status: Optional[ActivityStatus] = None) -> List[ActivityEvent]:
        with self._lock:
            rows = self._read()["activity"]
        events = [ActivityEvent(**row) for row in rows]
        if status:
            events = [event for event in events if event.status == status]
        return events

    def record_activity_event(
        self,
        provider: str,
        status: ActivityStatus,
        person_id: Optional[str] = None,
        email: Optional[str] = None,
        reason: Optional[str] = None,
        ip: Optional[str] = None,
        city: Optional[str] = None,
        country: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> Optional[ActivityEvent]:
        """Append a login attempt. Failures are logged, never raised."""
        try:
            event = ActivityEvent(
                id=self._new_id(),
                person_id=person_id,
                email=email,
                provider=provider,
                status=status,
                reason=reason,
                ip=ip,
                city=city,
                country=country,
                user_agent=user_agent,
                created_at=self._now_iso()
            )
            with self._lock:
                data = self._read()
                data["activity"].insert(0, event.model_dump())
                del data["activity"][self.max_activity_events:]
                self._write(data)
            return event
        except Exception as e:
            logger.error(f"Activity save failed: {str(e)}")
            return None

    # ---------- RFID cards ----------

    def list_rfid_cards(self, person_id: str) -> List[RfidCard]:
        with self._lock:
            rows = self._read()["rfid_cards"]
        return [RfidCard(**row) for row in rows if row.get("person_id") == person_id]

    def get_rfid_card_by_uid(self, uid: str) -> Optional[RfidCard]:
        normalized = normalize_uid(uid)
        with self._lock:
            for row in self._read()["rfid_cards"]:
                if row.get("uid") == normalized and row.get("active", True):
                    return RfidCard(**row)
        return None

    def has_rfid_cards(self) -> bool:
        with self._lock:
            return any(row.get("active", True) for row in self._read()["rfid_cards"])

    def create_rfid_card(self, person_id: str, uid: str) -> RfidCard:
        card = RfidCard(
            id=self._new_id(),
            person_id=person_id,
            uid=normalize_uid(uid),
            active=True,
            created_at=self._now_iso()
        )
        with self._lock:
            if self.get_rfid_card_by_uid(card.uid):
                raise DuplicateRecordError(f"UID already associated: {card.uid}")
            data = self._read()
            data["rfid_cards"].insert(0, card.model_dump())
            self._write(data)

        logger.info(f"RFID card {card.uid} associated to {person_id}")
        return card

    def deactivate_rfid_card(self, card_id: str) -> Optional[RfidCard]:
        with self._lock:
            data = self._read()
            for row in data["rfid_cards"]:
                if row.get("id") == card_id:
                    row["active"] = False
                    self._write(data)
                    return RfidCard(**row)
        return None

    def delete_rfid_card(self, card_id: str) -> bool:
        with self._lock:
            data = self._read()
            remaining = [row for row in data["rfid_cards"] if row.get("id") != card_id]
            if len(remaining) == len(data["rfid_cards"]):
                return False
            data["rfid_cards"] = remaining
            self._write(data)

        logger.info(f"RFID card deleted: {card_id}")
        return True

    # ---------- Reader bridge ----------

    def set_last_rfid_read(self, uid: str, timestamp: Optional[str] = None) -> RfidRead:
        read = RfidRead(uid=str(uid), timestamp=timestamp or self._now_iso())
        with self._lock:
            data = self._read()
            data["app_config"][RFID_LAST_READ_KEY] = read.model_dump()
            self._write(data)
        return read

    def get_last_rfid_read(self) -> Optional[RfidRead]:
        with self._lock:
            value = self._read()["app_config"].get(RFID_LAST_READ_KEY)
        if not value:
            return None
        return RfidRead(**value)
