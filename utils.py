import datetime
import logging
import secrets

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
import requests
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from config import (
    ACCESS_TOKEN_EXPIRY, ACCESS_TOKEN_SECRET, ALGORITHM, BCRYPT_ROUNDS,
    CLOUDINARY_API_KEY, CLOUDINARY_API_SECRET, CLOUDINARY_CLOUD_NAME,
    OTP_EXPIRY_MINUTES, OTP_GATEWAY_API_KEY, OTP_GATEWAY_URL, OTP_LENGTH,
    REFRESH_TOKEN_EXPIRY, REFRESH_TOKEN_SECRET,
)
from errors import AuthError, ServerError

cloudinary.config(
    cloud_name=CLOUDINARY_CLOUD_NAME,
    api_key=CLOUDINARY_API_KEY,
    api_secret=CLOUDINARY_API_SECRET,
)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


def hash_password(password: str):
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str):
    if not password or not hashed_password:
        return False
    return pwd_context.verify(password, hashed_password)


# Tokens

def _sign(payload: dict, secret: str, expires_in: datetime.timedelta):
    to_encode = payload.copy()
    expire = datetime.datetime.utcnow() + expires_in
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, secret, algorithm=ALGORITHM)


def generate_access_token(user: dict, secret: str = ACCESS_TOKEN_SECRET,
                          expires_in: datetime.timedelta = ACCESS_TOKEN_EXPIRY):
    payload = {
        "id": str(user["_id"]),
        "email": user["email"],
        "username": user["username"],
        "fullName": user["fullName"],
    }
    return _sign(payload, secret, expires_in)


def generate_refresh_token(user: dict, secret: str = REFRESH_TOKEN_SECRET,
                           expires_in: datetime.timedelta = REFRESH_TOKEN_EXPIRY):
    # jti keeps two tokens minted in the same second distinct
    return _sign({"id": str(user["_id"]), "jti": secrets.token_hex(8)}, secret, expires_in)


def decode_token(token: str, secret: str):
    try:
        return jwt.decode(token, secret, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise AuthError("Token expired")
    except JWTError:
        raise AuthError("Invalid token")


def decode_access_token(token: str):
    return decode_token(token, ACCESS_TOKEN_SECRET)


def decode_refresh_token(token: str):
    return decode_token(token, REFRESH_TOKEN_SECRET)


# OTP

def generate_otp(length: int = OTP_LENGTH) -> int:
    """Numeric OTP with exactly `length` digits."""
    lower = 10 ** (length - 1)
    return lower + secrets.randbelow(9 * lower)


def otp_expiry(now: datetime.datetime = None) -> datetime.datetime:
    now = now or datetime.datetime.utcnow()
    return now + datetime.timedelta(minutes=OTP_EXPIRY_MINUTES)


def send_otp_sms(mobile_no, otp: int):
    """Deliver an OTP through the configured SMS gateway."""
    if not OTP_GATEWAY_URL:
        logging.warning(f"OTP gateway not configured, OTP for {mobile_no} was not delivered")
        return

    headers = {
        "Authorization": f"Bearer {OTP_GATEWAY_API_KEY}",
        "Content-Type": "application/json",
    }
    data = {
        "to": str(mobile_no),
        "message": f"Your verification code is {otp}. It expires in {OTP_EXPIRY_MINUTES} minutes.",
    }

    try:
        response = requests.post(OTP_GATEWAY_URL, json=data, headers=headers, timeout=10)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        logging.error(f"OTP delivery failed: {e}")
        if getattr(e, "response", None) is not None:
            logging.error(f"Response content: {e.response.content}")
        raise ServerError("Failed to send OTP")

    logging.info(f"OTP sent to {mobile_no}")


# cloudinary setup
def upload_image(image):
    """Upload an UploadFile to Cloudinary; returns the secure URL or None."""
    try:
        result = cloudinary.uploader.upload(image.file)
    except cloudinary.exceptions.Error as e:
        logging.error(f"Cloudinary upload failed for {image.filename}: {e}")
        return None
    return result.get("secure_url")
