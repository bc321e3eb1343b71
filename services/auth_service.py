import datetime
import logging

from pymongo import ReturnDocument
from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as SchemaValidationError
from pymongo.errors import DuplicateKeyError

import config
from database import USERS, to_object_id
from errors import AuthError, ConflictError, NotFoundError, UploadError, ValidationError
from utils import (
    decode_refresh_token, generate_access_token, generate_otp, generate_refresh_token,
    hash_password, otp_expiry, verify_password,
)

REQUIRED_PROFILE_FIELDS = ("fullName", "email", "username", "password", "mobileNo")

email_adapter = TypeAdapter(EmailStr)


def _blank(value) -> bool:
    return value is None or not str(value).strip()


def _valid_email(email):
    try:
        return email_adapter.validate_python(email.strip()).lower()
    except SchemaValidationError:
        raise ValidationError("Invalid email address")


def _find_by_identifier(db, username=None, email=None):
    if _blank(username) and _blank(email):
        raise ValidationError("Username or email is required")
    clauses = []
    if not _blank(username):
        clauses.append({"username": username.strip().lower()})
    if not _blank(email):
        clauses.append({"email": email.strip().lower()})
    return db[USERS].find_one({"$or": clauses})


def register_user(db, profile: dict, avatar, uploader):
    """Create a user after validating the profile and uploading the avatar.

    Nothing is written unless every check passes and the avatar upload
    returned a URL.
    """
    missing = [field for field in REQUIRED_PROFILE_FIELDS if _blank(profile.get(field))]
    if missing:
        raise ValidationError(
            "All fields are required",
            errors=[{"field": field, "message": "This field is required"} for field in missing],
        )

    username = profile["username"].strip().lower()
    email = _valid_email(profile["email"])
    mobile_no = str(profile["mobileNo"]).strip()
    if not (mobile_no.isascii() and mobile_no.isdigit()):
        raise ValidationError("Mobile number must contain digits only")

    if db[USERS].find_one({"$or": [{"username": username}, {"email": email}]}):
        raise ConflictError("User with email or username already exists")

    if avatar is None or not avatar.filename:
        raise ValidationError("Avatar file is required")

    avatar_url = uploader(avatar)
    if not avatar_url:
        raise UploadError("Error while uploading avatar")

    now = datetime.datetime.utcnow()
    user = {
        "username": username,
        "email": email,
        "fullName": profile["fullName"].strip(),
        "mobileNo": int(mobile_no),
        "password": hash_password(profile["password"]),
        "sharedId": (profile.get("sharedId") or "").strip(),
        "refreshToken": None,
        "avatar": avatar_url,
        "otp": None,
        "otp_validity": None,
        "currency": (profile.get("currency") or config.DEFAULT_CURRENCY).strip(),
        "isAdmin": False,
        "createdAt": now,
        "updatedAt": now,
    }

    try:
        result = db[USERS].insert_one(user)
    except DuplicateKeyError:
        raise ConflictError("User with email or username already exists")

    logging.info(f"Registered user {username}")
    return db[USERS].find_one({"_id": result.inserted_id})


def _verify_otp(user, otp):
    stored = user.get("otp")
    validity = user.get("otp_validity")
    if otp is None or stored is None or int(otp) != int(stored):
        raise AuthError("Invalid OTP")
    if validity is None or validity < datetime.datetime.utcnow():
        raise AuthError("OTP expired")


def _issue_tokens(db, user, extra_updates=None, expected_refresh_token=None):
    """Mint a token pair and store the refresh token.

    With `expected_refresh_token` the write only lands while that token is
    still the stored one. If it was already replaced, the returned user is None.
    """
    access_token = generate_access_token(user)
    refresh_token = generate_refresh_token(user)
    updates = {"refreshToken": refresh_token, "updatedAt": datetime.datetime.utcnow()}
    updates.update(extra_updates or {})
    query = {"_id": user["_id"]}
    if expected_refresh_token is not None:
        query["refreshToken"] = expected_refresh_token
    user = db[USERS].find_one_and_update(
        query,
        {"$set": updates},
        return_document=ReturnDocument.AFTER,
    )
    return user, access_token, refresh_token


def login_user(db, username=None, email=None, password=None, otp=None):
    user = _find_by_identifier(db, username, email)
    if not user or not verify_password(password, user.get("password")):
        raise AuthError("Invalid user credentials")

    extra_updates = {}
    if otp is not None or config.OTP_REQUIRED_FOR_LOGIN:
        _verify_otp(user, otp)
        extra_updates = {"otp": None, "otp_validity": None}

    user, access_token, refresh_token = _issue_tokens(db, user, extra_updates)
    logging.info(f"User {user['username']} logged in")
    return user, access_token, refresh_token


def send_otp(db, sender, username=None, email=None):
    user = _find_by_identifier(db, username, email)
    if not user:
        raise NotFoundError("User does not exist")

    otp = generate_otp()
    db[USERS].update_one(
        {"_id": user["_id"]},
        {"$set": {"otp": otp, "otp_validity": otp_expiry(), "updatedAt": datetime.datetime.utcnow()}},
    )
    sender(user.get("mobileNo"), otp)
    logging.info(f"OTP issued for user {user['username']}")
    return user


def refresh_access_token(db, incoming_token):
    if _blank(incoming_token):
        raise AuthError("Unauthorized request")

    payload = decode_refresh_token(incoming_token)
    try:
        user_id = to_object_id(payload.get("id"), "User")
    except ValidationError:
        raise AuthError("Invalid refresh token")

    user = db[USERS].find_one({"_id": user_id})
    if not user:
        raise AuthError("Invalid refresh token")
    user, access_token, refresh_token = _issue_tokens(db, user, expected_refresh_token=incoming_token)
    if user is None:
        raise AuthError("Refresh token is expired or used")
    return user, access_token, refresh_token


def logout_user(db, user_id):
    db[USERS].update_one(
        {"_id": user_id},
        {"$set": {"refreshToken": None, "updatedAt": datetime.datetime.utcnow()}},
    )
    logging.info(f"User {user_id} logged out")


def change_password(db, user, old_password, new_password):
    if not verify_password(old_password, user.get("password")):
        raise ValidationError("Invalid old password")
    if _blank(new_password):
        raise ValidationError("New password is required")
    db[USERS].update_one(
        {"_id": user["_id"]},
        {"$set": {"password": hash_password(new_password), "updatedAt": datetime.datetime.utcnow()}},
    )


def update_account(db, user, full_name, email):
    if _blank(full_name) or _blank(email):
        raise ValidationError("All fields are required")

    email = _valid_email(email)
    clash = db[USERS].find_one({"email": email, "_id": {"$ne": user["_id"]}})
    if clash:
        raise ConflictError("Email is already in use")

    try:
        return db[USERS].find_one_and_update(
            {"_id": user["_id"]},
            {"$set": {"fullName": full_name.strip(), "email": email, "updatedAt": datetime.datetime.utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
    except DuplicateKeyError:
        raise ConflictError("Email is already in use")


def update_avatar(db, user, avatar, uploader):
    if avatar is None or not avatar.filename:
        raise ValidationError("Avatar file is missing")

    avatar_url = uploader(avatar)
    if not avatar_url:
        raise UploadError("Error while uploading avatar")

    return db[USERS].find_one_and_update(
        {"_id": user["_id"]},
        {"$set": {"avatar": avatar_url, "updatedAt": datetime.datetime.utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
