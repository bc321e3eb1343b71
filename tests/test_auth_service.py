import datetime

import mongomock
import pytest

from database import USERS, ensure_indexes
from errors import AuthError, ConflictError
from services import auth_service
from utils import hash_password


@pytest.fixture
def db():
    database = mongomock.MongoClient().get_database("auth_test")
    ensure_indexes(database)
    return database


def add_user(db, username, email):
    now = datetime.datetime.utcnow()
    db[USERS].insert_one({
        "username": username,
        "email": email,
        "fullName": username.title(),
        "mobileNo": 9876543210,
        "password": hash_password("s3cret"),
        "refreshToken": None,
        "otp": None,
        "otp_validity": None,
        "isAdmin": False,
        "createdAt": now,
        "updatedAt": now,
    })
    return db[USERS].find_one({"username": username})


class UsersWithoutClashCheck:
    """Users collection whose lookups miss, as if a clashing write landed after the check."""

    def __init__(self, collection):
        self._collection = collection

    def find_one(self, *args, **kwargs):
        return None

    def __getattr__(self, name):
        return getattr(self._collection, name)


class LateClashDatabase:

    def __init__(self, db):
        self._db = db

    def __getitem__(self, name):
        return UsersWithoutClashCheck(self._db[name])


def test_refresh_token_can_only_be_used_once(db):
    add_user(db, "jane", "jane@example.com")
    _, _, refresh_token = auth_service.login_user(db, username="jane", password="s3cret")

    auth_service.refresh_access_token(db, refresh_token)

    with pytest.raises(AuthError):
        auth_service.refresh_access_token(db, refresh_token)


def test_refresh_loses_to_a_rotation_between_read_and_write(db, monkeypatch):
    add_user(db, "jane", "jane@example.com")
    _, _, refresh_token = auth_service.login_user(db, username="jane", password="s3cret")
    original_generate = auth_service.generate_access_token

    def rotate_concurrently(user):
        db[USERS].update_one({"_id": user["_id"]}, {"$set": {"refreshToken": "rotated-elsewhere"}})
        return original_generate(user)

    monkeypatch.setattr(auth_service, "generate_access_token", rotate_concurrently)

    with pytest.raises(AuthError):
        auth_service.refresh_access_token(db, refresh_token)
    assert db[USERS].find_one({"username": "jane"})["refreshToken"] == "rotated-elsewhere"


def test_update_account_email_taken_after_check_is_a_conflict(db):
    jane = add_user(db, "jane", "jane@example.com")
    add_user(db, "bob", "bob@example.com")

    with pytest.raises(ConflictError):
        auth_service.update_account(LateClashDatabase(db), jane, "Jane Doe", "bob@example.com")
    assert db[USERS].find_one({"username": "jane"})["email"] == "jane@example.com"


def test_update_account_normalizes_email(db):
    jane = add_user(db, "jane", "jane@example.com")

    updated = auth_service.update_account(db, jane, "Jane Doe", "  Jane.Doe@Example.COM ")

    assert updated["email"] == "jane.doe@example.com"
