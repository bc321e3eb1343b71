import datetime
import logging
import math

from pymongo import ReturnDocument

from database import EVENTS, PRODUCTS, SLIDERS, USERS, to_object_id
from errors import NotFoundError, UploadError, ValidationError


def _require_fields(**fields):
    missing = [name for name, value in fields.items() if value is None or not str(value).strip()]
    if missing:
        raise ValidationError(
            "All fields are required",
            errors=[{"field": name, "message": "This field is required"} for name in missing],
        )


def _upload(image, uploader, label, required=True):
    if image is None or not image.filename:
        if required:
            raise ValidationError(f"{label} image is required")
        return None
    url = uploader(image)
    if not url:
        raise UploadError(f"Error while uploading {label.lower()} image")
    return url


def _price(value):
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Price must be a number")
    if not math.isfinite(price):
        raise ValidationError("Price must be a finite number")
    if price < 0:
        raise ValidationError("Price cannot be negative")
    return price


def _date(value, label):
    """Parse an ISO date; offset-aware values are stored as naive UTC."""
    try:
        parsed = datetime.datetime.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError(f"{label} must be an ISO date")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return parsed


def _event_dates(start_date, end_date):
    start, end = _date(start_date, "Start date"), _date(end_date, "End date")
    if end < start:
        raise ValidationError("End date cannot be before start date")
    return start, end


def _update(db, collection, record_id, label, changes):
    updated = db[collection].find_one_and_update(
        {"_id": to_object_id(record_id, label)},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise NotFoundError(f"{label} not found")
    return updated


def _delete(db, collection, record_id, label):
    result = db[collection].delete_one({"_id": to_object_id(record_id, label)})
    if result.deleted_count == 0:
        raise NotFoundError(f"{label} not found")
    logging.info(f"{label} {record_id} deleted")


# Products

def add_product(db, uploader, product_name, level, ratio_between, price, image):
    _require_fields(product_name=product_name, level=level, ratio_between=ratio_between, price=price)
    product = {
        "productName": product_name.strip(),
        "level": level.strip(),
        "ratioBetween": ratio_between.strip(),
        "price": _price(price),
    }
    product["productImg"] = _upload(image, uploader, "Product")
    result = db[PRODUCTS].insert_one(product)
    logging.info(f"Product {result.inserted_id} added")
    return db[PRODUCTS].find_one({"_id": result.inserted_id})


def list_products(db):
    return list(db[PRODUCTS].find())


def update_product(db, uploader, product_id, product_name, level, ratio_between, price, image=None):
    to_object_id(product_id, "Product")
    _require_fields(product_name=product_name, level=level, ratio_between=ratio_between, price=price)
    changes = {
        "productName": product_name.strip(),
        "level": level.strip(),
        "ratioBetween": ratio_between.strip(),
        "price": _price(price),
    }
    image_url = _upload(image, uploader, "Product", required=False)
    if image_url:
        changes["productImg"] = image_url
    return _update(db, PRODUCTS, product_id, "Product", changes)


def delete_product(db, product_id):
    _delete(db, PRODUCTS, product_id, "Product")


# Events

def add_event(db, uploader, title, start_date, end_date, description, image):
    _require_fields(title=title, start_date=start_date, end_date=end_date, description=description)
    start, end = _event_dates(start_date, end_date)
    event = {
        "title": title.strip(),
        "startDate": start,
        "endDate": end,
        "description": description.strip(),
        "eventImg": _upload(image, uploader, "Event"),
    }
    result = db[EVENTS].insert_one(event)
    logging.info(f"Event {result.inserted_id} added")
    return db[EVENTS].find_one({"_id": result.inserted_id})


def list_events(db):
    return list(db[EVENTS].find())


def update_event(db, uploader, event_id, title, start_date, end_date, description, image=None):
    to_object_id(event_id, "Event")
    _require_fields(title=title, start_date=start_date, end_date=end_date, description=description)
    start, end = _event_dates(start_date, end_date)
    changes = {"title": title.strip(), "startDate": start, "endDate": end, "description": description.strip()}
    image_url = _upload(image, uploader, "Event", required=False)
    if image_url:
        changes["eventImg"] = image_url
    return _update(db, EVENTS, event_id, "Event", changes)


def delete_event(db, event_id):
    _delete(db, EVENTS, event_id, "Event")


# Slider images

def add_slider(db, uploader, image):
    slider = {"sliderImg": _upload(image, uploader, "Slider")}
    result = db[SLIDERS].insert_one(slider)
    slider["_id"] = result.inserted_id
    return slider


def list_sliders(db):
    return list(db[SLIDERS].find({}, {"sliderImg": 1}))


def update_slider(db, uploader, slider_id, image):
    to_object_id(slider_id, "Slider")
    return _update(db, SLIDERS, slider_id, "Slider", {"sliderImg": _upload(image, uploader, "Slider")})


def delete_slider(db, slider_id):
    _delete(db, SLIDERS, slider_id, "Slider")


def list_users(db):
    return list(db[USERS].find())
