import datetime
import json

import pytest
from bson import ObjectId
from fastapi import FastAPI
from fastapi.testclient import TestClient

from config import parse_expiry
from errors import AuthError, NotFoundError, register_exception_handlers
from models import api_response
from utils import (
    decode_access_token, decode_refresh_token, generate_access_token, generate_otp,
    generate_refresh_token, hash_password, verify_password,
)

USER = {"_id": ObjectId(), "email": "jane@example.com", "username": "janedoe", "fullName": "Jane Doe"}


@pytest.mark.parametrize("raw, expected", [
    ("15m", datetime.timedelta(minutes=15)),
    ("1d", datetime.timedelta(days=1)),
    ("12h", datetime.timedelta(hours=12)),
    ("90", datetime.timedelta(seconds=90)),
    (None, datetime.timedelta(days=10)),
])
def test_parse_expiry(raw, expected):
    assert parse_expiry(raw, "10d") == expected


def test_password_hash_is_not_plaintext():
    hashed = hash_password("s3cret")

    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed)
    assert not verify_password("other", hashed)
    assert not verify_password("", hashed)


def test_access_and_refresh_tokens_use_distinct_secrets():
    access = generate_access_token(USER)
    refresh = generate_refresh_token(USER)

    assert decode_access_token(access)["username"] == "janedoe"
    assert decode_refresh_token(refresh)["id"] == str(USER["_id"])
    with pytest.raises(AuthError):
        decode_refresh_token(access)
    with pytest.raises(AuthError):
        decode_access_token(refresh)


def test_refresh_token_payload_only_identifies_user():
    payload = decode_refresh_token(generate_refresh_token(USER))

    assert "email" not in payload
    assert "username" not in payload


def test_expired_token():
    token = generate_access_token(USER, expires_in=datetime.timedelta(seconds=-30))

    with pytest.raises(AuthError) as exc_info:
        decode_access_token(token)
    assert exc_info.value.message == "Token expired"


def test_generate_otp_has_requested_length():
    for _ in range(50):
        assert len(str(generate_otp(6))) == 6
    assert len(str(generate_otp(4))) == 4


def test_api_response_envelope():
    response = api_response(201, {"ok": 1}, "Created")

    assert response.status_code == 201
    assert json.loads(response.body) == {"statusCode": 201, "data": {"ok": 1}, "message": "Created", "success": True}


def test_error_envelopes():
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/missing")
    async def missing():
        raise NotFoundError("Withdrawal request not found")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("database exploded")

    client = TestClient(app, raise_server_exceptions=False)

    response = client.get("/missing")
    assert response.status_code == 404
    assert response.json() == {
        "statusCode": 404, "data": None, "message": "Withdrawal request not found", "success": False,
    }

    response = client.get("/boom")
    assert response.status_code == 500
    assert response.json()["message"] == "Internal server error"
    assert "exploded" not in response.text

    response = client.get("/no-such-route")
    assert response.status_code == 404
    assert response.json()["success"] is False
