import os

# Configuration is read at import time, so set it before the app is imported.
os.environ["ACCESS_TOKEN_SECRET"] = "test-access-secret"
os.environ["REFRESH_TOKEN_SECRET"] = "test-refresh-secret"
os.environ["ACCESS_TOKEN_EXPIRY"] = "15m"
os.environ["REFRESH_TOKEN_EXPIRY"] = "1d"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["OTP_GATEWAY_URL"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

import mongomock
import pytest
from fastapi.testclient import TestClient

from database import USERS, ensure_indexes, get_database
from main import app
from routes.auth_routes import get_image_uploader, get_otp_sender

PASSWORD = "SecurePass123!"


@pytest.fixture
def db():
    database = mongomock.MongoClient().get_database("referral_store_test")
    ensure_indexes(database)
    return database


@pytest.fixture
def uploads():
    """Filenames passed to the fake image host, in call order."""
    return []


@pytest.fixture
def sent_otps():
    return []


@pytest.fixture
def client(db, uploads, sent_otps):
    def fake_uploader(image):
        uploads.append(image.filename)
        return f"https://res.cloudinary.com/demo/image/upload/{image.filename}"

    def fake_sender(mobile_no, otp):
        sent_otps.append((mobile_no, otp))

    app.dependency_overrides[get_database] = lambda: db
    app.dependency_overrides[get_image_uploader] = lambda: fake_uploader
    app.dependency_overrides[get_otp_sender] = lambda: fake_sender
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def failing_uploads(client):
    app.dependency_overrides[get_image_uploader] = lambda: (lambda image: None)
    return client


def image(name="avatar.png"):
    return (name, b"\x89PNG fake image bytes", "image/png")


def profile(**overrides):
    data = {
        "fullName": "Jane Doe",
        "email": "Jane@Example.com",
        "username": "JaneDoe",
        "password": PASSWORD,
        "mobileNo": "9876543210",
        "sharedId": "REF123",
        "currency": "USDT",
    }
    data.update(overrides)
    return data


def register(client, **overrides):
    return client.post("/api/v1/users/register", data=profile(**overrides), files={"avatar": image()})


def login(client, username, password=PASSWORD, **extra):
    response = client.post("/api/v1/users/login", json={"username": username, "password": password, **extra})
    # keep later requests explicit about which credential they carry
    client.cookies.clear()
    return response


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_token(client):
    register(client)
    return login(client, "janedoe").json()["data"]["accessToken"]


@pytest.fixture
def other_user_token(client):
    register(client, username="bob", email="bob@example.com", fullName="Bob Smith")
    return login(client, "bob").json()["data"]["accessToken"]


@pytest.fixture
def admin_token(client, db):
    register(client, username="admin", email="admin@example.com", fullName="Site Admin")
    db[USERS].update_one({"username": "admin"}, {"$set": {"isAdmin": True}})
    return login(client, "admin").json()["data"]["accessToken"]
