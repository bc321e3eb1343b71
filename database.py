import logging

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, MongoClient

from config import DB_NAME, MONGODB_URI
from errors import ValidationError

client = MongoClient(MONGODB_URI)

USERS = "users"
WITHDRAWAL_REQUESTS = "withdrawal_requests"
PRODUCTS = "products"
EVENTS = "events"
SLIDERS = "sliders"


def get_database():
    """FastAPI dependency returning the application database."""
    return client[DB_NAME]


def ensure_indexes(db):
    db[USERS].create_index([("username", ASCENDING)], unique=True)
    db[USERS].create_index([("email", ASCENDING)], unique=True)
    db[WITHDRAWAL_REQUESTS].create_index([("username", ASCENDING), ("dateTime", ASCENDING)])
    logging.info(f"Indexes ensured on database {db.name}")


def to_object_id(value, label: str = "Record") -> ObjectId:
    if not value:
        raise ValidationError(f"{label} ID is required")
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise ValidationError(f"Invalid {label.lower()} ID")


def serialize_doc(doc, exclude=()):
    """Return a JSON-friendly copy of a Mongo document with a string _id."""
    if doc is None:
        return None
    result = {key: value for key, value in doc.items() if key not in exclude}
    if "_id" in result:
        result["_id"] = str(result["_id"])
    return result


USER_PRIVATE_FIELDS = ("password", "refreshToken", "otp", "otp_validity")


def serialize_user(user):
    return serialize_doc(user, exclude=USER_PRIVATE_FIELDS)
