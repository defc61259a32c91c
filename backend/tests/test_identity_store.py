import json
import os

import pytest

from accounts.services.identity_store import DuplicateRecordError, IdentityStore
from conftest import make_descriptor


def test_store_creates_empty_document(tmp_path):
    path = tmp_path / "nested" / "identities.json"
    IdentityStore(str(path))

    data = json.loads(path.read_text())
    assert data == {"persons": [], "rfid_cards": [], "activity": [], "app_config": {}}


def test_create_person_normalizes_fields(store):
    person = store.create_person(email="  Ana@Example.COM ", name=" Ana ", company=" Acme ")

    assert person.email == "ana@example.com"
    assert person.name == "Ana"
    assert person.company == "Acme"
    assert person.active is True
    assert person.face_descriptor is None
    assert store.get_person(person.id) == person
    assert store.get_person_by_email("ANA@example.com ").id == person.id


def test_create_person_rejects_duplicate_email(store):
    store.create_person(email="ana@example.com", name="Ana", company="Acme")
    with pytest.raises(DuplicateRecordError):
        store.create_person(email="ANA@example.com", name="Other", company="Acme")


def test_list_persons_newest_first(store):
    first = store.create_person(email="a@example.com", name="A", company="Acme")
    second = store.create_person(email="b@example.com", name="B", company="Acme")
    assert [p.id for p in store.list_persons()] == [second.id, first.id]


def test_update_person_is_partial(store):
    person = store.create_person(email="a@example.com", name="A", company="Acme")
    updated = store.update_person(person.id, company="Globex", active=False)

    assert updated.name == "A"
    assert updated.company == "Globex"
    assert updated.active is False
    assert store.update_person("missing", name="X") is None


def test_update_person_rejects_taken_email(store):
    store.create_person(email="a@example.com", name="A", company="Acme")
    b = store.create_person(email="b@example.com", name="B", company="Acme")
    with pytest.raises(DuplicateRecordError):
        store.update_person(b.id, email="A@example.com")


def test_face_descriptor_save_and_clear(store):
    person = store.create_person(email="a@example.com", name="A", company="Acme")
    descriptor = make_descriptor(0.25, -0.5)

    saved = store.save_face_descriptor(person.id, descriptor, "https://img/a.jpg")
    assert saved.face_descriptor == descriptor
    assert saved.face_image_url == "https://img/a.jpg"
    assert saved.has_face_recognition

    cleared = store.clear_face_descriptor(person.id)
    assert cleared.face_descriptor is None
    assert cleared.face_image_url is None
    assert not cleared.has_face_recognition

    assert store.save_face_descriptor("missing", descriptor) is None
    assert store.clear_face_descriptor("missing") is None


def test_store_survives_reopen(tmp_path):
    path = str(tmp_path / "identities.json")
    person = IdentityStore(path).create_person(email="a@example.com", name="A", company="Acme")
    IdentityStore(path).save_face_descriptor(person.id, make_descriptor(0.1))

    reopened = IdentityStore(path).get_person(person.id)
    assert reopened.face_descriptor == make_descriptor(0.1)


def test_delete_person_removes_cards(store):
    person = store.create_person(email="a@example.com", name="A", company="Acme")
    store.create_rfid_card(person.id, "04 A1 B2")

    assert store.delete_person(person.id) is True
    assert store.get_person(person.id) is None
    assert store.get_rfid_card_by_uid("04A1B2") is None
    assert store.delete_person(person.id) is False


def test_activity_filtering(store):
    store.record_activity_event("face", "failed", reason="no_match")
    store.record_activity_event("crm", "success", person_id="p1", email="a@example.com", ip="10.0.0.1")

    events = store.list_activity()
    assert [e.provider for e in events] == ["crm", "face"]
    assert [e.reason for e in store.list_activity("failed")] == ["no_match"]
    assert store.list_activity("success")[0].ip == "10.0.0.1"


def test_record_activity_never_raises(store):
    # invalid status fails validation and is only logged
    assert store.record_activity_event("face", "unknown") is None
    assert store.list_activity() == []


def test_rfid_card_lifecycle(store):
    person = store.create_person(email="a@example.com", name="A", company="Acme")
    assert store.has_rfid_cards() is False

    card = store.create_rfid_card(person.id, " 04 a1\tb2 ")
    assert card.uid == "04a1b2"
    assert store.has_rfid_cards() is True
    assert store.get_rfid_card_by_uid("04a1 b2").id == card.id
    assert [c.id for c in store.list_rfid_cards(person.id)] == [card.id]

    with pytest.raises(DuplicateRecordError):
        store.create_rfid_card(person.id, "04a1b2")

    deactivated = store.deactivate_rfid_card(card.id)
    assert deactivated.active is False
    assert store.get_rfid_card_by_uid("04a1b2") is None
    assert store.has_rfid_cards() is False

    assert store.delete_rfid_card(card.id) is True
    assert store.delete_rfid_card(card.id) is False


def test_last_rfid_read(store):
    assert store.get_last_rfid_read() is None

    read = store.set_last_rfid_read("04A1B2", "2024-05-01T10:00:00Z")
    assert read.uid == "04A1B2"
    assert store.get_last_rfid_read() == read

    latest = store.set_last_rfid_read("0FFF")
    assert latest.timestamp
    assert store.get_last_rfid_read().uid == "0FFF"


def test_corrupt_descriptor_row_is_listed_as_not_enrolled(store):
    person = store.create_person(email="a@example.com", name="A", company="Acme")
    with open(store.path, "r", encoding="utf-8") as f:
        data = json.load(f)
    data["persons"][0]["face_descriptor"] = {"bad": 1}
    with open(store.path, "w", encoding="utf-8") as f:
        json.dump(data, f)

    listed = store.list_persons()
    assert [p.id for p in listed] == [person.id]
    assert listed[0].face_descriptor is None


def test_failed_write_leaves_no_temp_file(store, monkeypatch):
    def broken_dump(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(json, "dump", broken_dump)
    with pytest.raises(OSError):
        store.create_person(email="a@example.com", name="A", company="Acme")

    monkeypatch.undo()
    assert not os.path.exists(f"{store.path}.tmp")
    assert store.list_persons() == []


def test_activity_log_is_capped(tmp_path):
    store = IdentityStore(str(tmp_path / "ids.json"), max_activity_events=3)
    for i in range(5):
        store.record_activity_event("face", "failed", reason=f"r{i}")

    assert [e.reason for e in store.list_activity()] == ["r4", "r3", "r2"]
