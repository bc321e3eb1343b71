import os
import datetime
from dotenv import load_dotenv

load_dotenv()


def parse_expiry(value, default: str) -> datetime.timedelta:
    """Turn "15m", "1d", "12h", "30s" or a plain number of seconds into a timedelta."""
    raw = (value or default).strip().lower()
    units = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}
    if raw[-1] in units:
        return datetime.timedelta(**{units[raw[-1]]: int(raw[:-1])})
    return datetime.timedelta(seconds=int(raw))


def env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
DB_NAME = os.getenv("DB_NAME", "referral_store")

ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET")
REFRESH_TOKEN_SECRET = os.getenv("REFRESH_TOKEN_SECRET")
ACCESS_TOKEN_EXPIRY = parse_expiry(os.getenv("ACCESS_TOKEN_EXPIRY"), "1d")
REFRESH_TOKEN_EXPIRY = parse_expiry(os.getenv("REFRESH_TOKEN_EXPIRY"), "10d")
ALGORITHM = "HS256"

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))

OTP_LENGTH = int(os.getenv("OTP_LENGTH", "6"))
OTP_EXPIRY_MINUTES = int(os.getenv("OTP_EXPIRY_MINUTES", "10"))
OTP_REQUIRED_FOR_LOGIN = env_flag("OTP_REQUIRED_FOR_LOGIN")
OTP_GATEWAY_URL = os.getenv("OTP_GATEWAY_URL")
OTP_GATEWAY_API_KEY = os.getenv("OTP_GATEWAY_API_KEY")

CLOUDINARY_CLOUD_NAME = os.getenv("CLOUDINARY_CLOUD_NAME")
CLOUDINARY_API_KEY = os.getenv("CLOUDINARY_API_KEY")
CLOUDINARY_API_SECRET = os.getenv("CLOUDINARY_API_SECRET")

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]
COOKIE_SECURE = env_flag("COOKIE_SECURE", True)
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "USD")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
