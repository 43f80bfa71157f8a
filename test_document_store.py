"""Test validated persistence against an in-memory database."""
from datetime import datetime

import pytest

from auth import verify_password
from error_handler import DuplicateKeyError, NotFoundError, ValidationFailedError
from validators import record_validator

PUMP = {"name": "Main Pump", "type": "centrifugal", "flowRate": 500, "pressure": 50}
SCHEDULE = {
    "zoneId": "507f1f77bcf86cd799439011",
    "type": "weather",
    "startTime": "06:30",
    "duration": 45,
    "days": [1, 3, 5],
    "weatherConditions": {"maxWindSpeed": 20, "noRain": True},
}


def test_insert_assigns_id_and_timestamps(store):
    pump = store.insert("Pump", PUMP)

    assert pump["id"]
    assert isinstance(pump["createdAt"], datetime)
    assert pump["createdAt"] == pump["updatedAt"]
    assert pump["status"] == "inactive"


def test_caller_timestamps_are_ignored(store):
    pump = store.insert("Pump", {**PUMP, "createdAt": "2000-01-01T00:00:00Z"})
    assert pump["createdAt"].year != 2000


def test_round_trip_matches_normalized_record(store):
    normalized = record_validator.validate("Schedule", SCHEDULE)
    stored = store.insert("Schedule", SCHEDULE)
    reread = store.find_one("Schedule", {"id": stored["id"]})

    for field, value in normalized.items():
        assert reread[field] == value


def test_round_trip_of_nested_dates(store):
    pump = store.insert("Pump", {**PUMP, "health": {"temperature": 40, "lastMaintenance": "2024-05-01T08:00:00Z"}})
    reread = store.find_one("Pump", {"id": pump["id"]})
    assert reread["health"] == {"temperature": 40, "lastMaintenance": datetime(2024, 5, 1, 8, 0)}


def test_invalid_record_is_not_stored(store):
    with pytest.raises(ValidationFailedError):
        store.insert("Pump", {**PUMP, "pressure": 250})
    assert store.count("Pump") == 0


def test_duplicate_email(store):
    contact = {"email": "jane.doe@example.com", "firstName": "Jane", "lastName": "Doe"}
    store.insert("UserContact", contact)

    with pytest.raises(DuplicateKeyError) as exc_info:
        store.insert("UserContact", {**contact, "firstName": "Janet"})
    assert exc_info.value.field == "email"
    assert store.count("UserContact") == 1


def test_duplicate_refresh_token(store):
    session = {"userId": "u-1", "refreshToken": "abc", "expiresAt": "2030-01-01T00:00:00Z"}
    store.insert("Session", session)
    with pytest.raises(DuplicateKeyError) as exc_info:
        store.insert("Session", {**session, "userId": "u-2"})
    assert exc_info.value.field == "refreshToken"


def test_duplicate_preferences_per_user(store):
    store.insert("UserPreferences", {"userId": "u-1"})
    with pytest.raises(DuplicateKeyError) as exc_info:
        store.insert("UserPreferences", {"userId": "u-1", "language": "fr"})
    assert exc_info.value.field == "userId"


def test_store_remains_usable_after_duplicate(store):
    store.insert("UserPreferences", {"userId": "u-1"})
    with pytest.raises(DuplicateKeyError):
        store.insert("UserPreferences", {"userId": "u-1"})
    store.insert("UserPreferences", {"userId": "u-2"})
    assert store.count("UserPreferences") == 2


def test_password_is_hashed_on_insert(store):
    stored = store.insert("UserPassword", {"password": "Password@123"})

    assert stored["password"] != "Password@123"
    assert verify_password("Password@123", stored["password"])
    assert isinstance(stored["last_update"], datetime)


def test_resaving_password_does_not_rehash(store):
    stored = store.insert("UserPassword", {"password": "Password@123"})
    resaved = store.update("UserPassword", stored["id"], {"password": stored["password"]})

    assert resaved["password"] == stored["password"]
    assert resaved["last_update"] == stored["last_update"]
    assert verify_password("Password@123", resaved["password"])


def test_changing_password_rehashes(store):
    stored = store.insert("UserPassword", {"password": "Password@123"})
    changed = store.update("UserPassword", stored["id"], {"password": "NewPassword@456"})

    assert verify_password("NewPassword@456", changed["password"])
    assert not verify_password("Password@123", changed["password"])
    assert changed["last_update"] >= stored["last_update"]


def test_update_merges_and_refreshes_updated_at(store):
    pump = store.insert("Pump", {**PUMP, "health": {"temperature": 40}})
    updated = store.update("Pump", pump["id"], {"status": "active", "health": {"efficiency": 85}})

    assert updated["status"] == "active"
    assert updated["health"] == {"temperature": 40, "efficiency": 85}
    assert updated["createdAt"] == pump["createdAt"]
    assert updated["updatedAt"] >= pump["updatedAt"]


def test_update_is_validated(store):
    pump = store.insert("Pump", PUMP)
    with pytest.raises(ValidationFailedError) as exc_info:
        store.update("Pump", pump["id"], {"flowRate": 20000})
    assert "flowRate" in exc_info.value.errors
    assert store.find_one("Pump", {"id": pump["id"]})["flowRate"] == 500


def test_update_unknown_record(store):
    with pytest.raises(NotFoundError):
        store.update("Pump", "missing", {"status": "active"})


def test_address_refreshes_last_update_on_every_save(store):
    address = store.insert("UserAddress", {"city": "Tunis", "codeZip": "1001"})
    assert address["codeZip"] == 1001
    assert address["country"] == "Tunisia"

    updated = store.update("UserAddress", address["id"], {"city": "Sfax"})
    assert updated["city"] == "Sfax"
    assert updated["last_update"] >= address["last_update"]


def test_user_creation_date(store):
    user = store.insert("User", {"contact": "c-1", "address": "a-1", "password": "p-1"})
    assert isinstance(user["creation_date"], datetime)
    assert user["blocked"] is True


def test_find_count_and_paging(store):
    for index in range(5):
        store.insert("Pump", {**PUMP, "name": f"Pump {index}", "status": "active" if index % 2 else "inactive"})

    assert store.count("Pump") == 5
    assert store.count("Pump", {"status": "active"}) == 2

    everything = store.find("Pump")
    assert sorted(pump["name"] for pump in everything) == [f"Pump {index}" for index in range(5)]

    page = store.find("Pump", skip=2, limit=2)
    assert [pump["id"] for pump in page] == [pump["id"] for pump in everything[2:4]]
    assert len(store.find("Pump", {"status": "inactive"}, limit=10)) == 3


def test_find_one_missing(store):
    assert store.find_one("Pump", {"name": "nothing"}) is None


def test_unknown_filter_field(store):
    with pytest.raises(ValueError):
        store.find("Pump", {"colour": "red"})


def test_unknown_kind(store):
    with pytest.raises(ValueError):
        store.insert("Sprinkler", {})


def test_delete(store):
    pump = store.insert("Pump", PUMP)
    store.insert("Pump", {**PUMP, "name": "Backup Pump"})

    assert store.delete("Pump", {"id": pump["id"]}) == 1
    assert store.delete("Pump", {"id": pump["id"]}) == 0
    assert store.count("Pump") == 1


def test_ping(store):
    store.ping()


def test_non_finite_number_is_not_stored(store):
    with pytest.raises(ValidationFailedError) as exc_info:
        store.insert("Pump", {**PUMP, "flowRate": float("nan")})
    assert "flowRate" in exc_info.value.errors
    assert store.count("Pump") == 0
