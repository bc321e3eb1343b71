import datetime
import logging
import math

from pymongo import DESCENDING, ReturnDocument

from database import WITHDRAWAL_REQUESTS, to_object_id
from errors import NotFoundError, ValidationError
from models import ADMIN_TARGET_STATUSES, USER_TARGET_STATUSES, WithdrawalStatus

PENDING = WithdrawalStatus.PENDING.value


def _amount(value, label):
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a number")
    if not math.isfinite(amount):
        raise ValidationError(f"{label} must be a finite number")
    if amount < 0:
        raise ValidationError(f"{label} cannot be negative")
    return amount


def submit_withdrawal(db, user, address, amount, final_amount):
    """Record a new withdrawal request for `user`. Always starts as Pending."""
    if not address or not str(address).strip():
        raise ValidationError("Withdrawal address is required")

    record = {
        "address": str(address).strip(),
        "amount": _amount(amount, "Amount"),
        "finalAmount": _amount(final_amount, "Final amount"),
        "username": user["username"],
        "mobile": str(user.get("mobileNo", "")),
        "currency": user.get("currency"),
        "dateTime": datetime.datetime.utcnow(),
        "status": PENDING,
    }
    result = db[WITHDRAWAL_REQUESTS].insert_one(record)
    record["_id"] = result.inserted_id
    logging.info(f"Withdrawal request {result.inserted_id} submitted by {user['username']} for {record['amount']}")
    return record


def list_for_user(db, user):
    return list(db[WITHDRAWAL_REQUESTS].find({"username": user["username"]}).sort("dateTime", DESCENDING))


def list_all(db):
    return list(db[WITHDRAWAL_REQUESTS].find().sort("dateTime", DESCENDING))


def _transition(db, query, status):
    # Only Pending records match, so terminal states can never be rewritten.
    updated = db[WITHDRAWAL_REQUESTS].find_one_and_update(
        {**query, "status": PENDING},
        {"$set": {"status": status}},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        existing = db[WITHDRAWAL_REQUESTS].find_one(query)
        if existing is None:
            raise NotFoundError("Withdrawal request not found")
        raise ValidationError(f"Withdrawal request is already {existing['status']}")

    logging.info(f"Withdrawal request {updated['_id']} moved to {status}")
    return updated


def _require_status(status):
    if not status:
        raise ValidationError("Status is required")


def update_status_by_user(db, user, request_id, status):
    request_oid = to_object_id(request_id, "Withdrawal request")
    _require_status(status)
    if status not in USER_TARGET_STATUSES:
        raise ValidationError('Invalid status value. Status must be "Rejected"')
    return _transition(db, {"_id": request_oid, "username": user["username"]}, status)


def update_status_by_admin(db, request_id, status):
    request_oid = to_object_id(request_id, "Withdrawal request")
    _require_status(status)
    if status not in ADMIN_TARGET_STATUSES:
        raise ValidationError('Invalid status value. Status must be either "Approved" or "Cancelled by Admin"')
    return _transition(db, {"_id": request_oid}, status)


def delete_withdrawal(db, user, request_id):
    request_oid = to_object_id(request_id, "Withdrawal request")
    query = {"_id": request_oid, "username": user["username"]}

    result = db[WITHDRAWAL_REQUESTS].delete_one({**query, "status": PENDING})
    if result.deleted_count == 0:
        if db[WITHDRAWAL_REQUESTS].find_one(query) is None:
            raise NotFoundError("Withdrawal request not found")
        raise ValidationError("Only pending withdrawal requests can be deleted")

    logging.info(f"Withdrawal request {request_oid} deleted by {user['username']}")
