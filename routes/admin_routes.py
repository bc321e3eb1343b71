from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from database import get_database, serialize_doc, serialize_user
from models import RecordId, StatusUpdate, api_response
from routes.auth_routes import get_admin_user, get_image_uploader
from services import catalog_service, withdrawal_service

router = APIRouter()


def _many(records):
    return [serialize_doc(record) for record in records]


@router.get("/home")
async def home(admin=Depends(get_admin_user)):
    return api_response(200, str(admin["_id"]), "Admin API successfully fetched")


# Products

@router.post("/addProduct")
async def add_product(
        product_name: Optional[str] = Form(None),
        level: Optional[str] = Form(None),
        ratio_between: Optional[str] = Form(None),
        price: Optional[str] = Form(None),
        productImg: Optional[UploadFile] = File(None),
        admin=Depends(get_admin_user),
        db=Depends(get_database),
        uploader=Depends(get_image_uploader),
):
    product = catalog_service.add_product(db, uploader, product_name, level, ratio_between, price, productImg)
    return api_response(200, serialize_doc(product), "Product added successfully")


@router.get("/getAllProducts")
async def get_all_products(admin=Depends(get_admin_user), db=Depends(get_database)):
    return api_response(200, _many(catalog_service.list_products(db)), "Data fetched successfully")


@router.post("/updateProduct")
async def update_product(
        product_id: Optional[str] = Form(None),
        product_name: Optional[str] = Form(None),
        level: Optional[str] = Form(None),
        ratio_between: Optional[str] = Form(None),
        price: Optional[str] = Form(None),
        productImg: Optional[UploadFile] = File(None),
        admin=Depends(get_admin_user),
        db=Depends(get_database),
        uploader=Depends(get_image_uploader),
):
    product = catalog_service.update_product(
        db, uploader, product_id, product_name, level, ratio_between, price, productImg
    )
    return api_response(200, serialize_doc(product), "Product updated successfully")


@router.delete("/deleteProduct")
async def delete_product(body: RecordId, admin=Depends(get_admin_user), db=Depends(get_database)):
    catalog_service.delete_product(db, body.id)
    return api_response(200, {}, "Product deleted successfully")


# Slider images

@router.post("/addslider")
async def add_slider(
        sliderImg: Optional[UploadFile] = File(None),
        admin=Depends(get_admin_user),
        db=Depends(get_database),
        uploader=Depends(get_image_uploader),
):
    slider = catalog_service.add_slider(db, uploader, sliderImg)
    return api_response(200, serialize_doc(slider), "Slider image uploaded successfully")


@router.get("/getSliderImg")
async def get_slider_images(db=Depends(get_database)):
    return api_response(200, _many(catalog_service.list_sliders(db)), "Slider images retrieved successfully")


@router.post("/updateslider")
async def update_slider(
        id: Optional[str] = Form(None),
        sliderImg: Optional[UploadFile] = File(None),
        admin=Depends(get_admin_user),
        db=Depends(get_database),
        uploader=Depends(get_image_uploader),
):
    slider = catalog_service.update_slider(db, uploader, id, sliderImg)
    return api_response(200, serialize_doc(slider), "Slider image updated successfully")


@router.delete("/deleteslider")
async def delete_slider(body: RecordId, admin=Depends(get_admin_user), db=Depends(get_database)):
    catalog_service.delete_slider(db, body.id)
    return api_response(200, {}, "Slider image deleted successfully")


# Events

@router.post("/addEvent")
async def add_event(
        title: Optional[str] = Form(None),
        start_date: Optional[str] = Form(None),
        end_date: Optional[str] = Form(None),
        description: Optional[str] = Form(None),
        eventImg: Optional[UploadFile] = File(None),
        admin=Depends(get_admin_user),
        db=Depends(get_database),
        uploader=Depends(get_image_uploader),
):
    event = catalog_service.add_event(db, uploader, title, start_date, end_date, description, eventImg)
    return api_response(200, serialize_doc(event), "Event added successfully")


@router.get("/getEventRecords")
async def get_event_records(admin=Depends(get_admin_user), db=Depends(get_database)):
    return api_response(200, _many(catalog_service.list_events(db)), "Data fetched successfully")


@router.post("/updateEvent")
async def update_event(
        event_id: Optional[str] = Form(None),
        title: Optional[str] = Form(None),
        start_date: Optional[str] = Form(None),
        end_date: Optional[str] = Form(None),
        description: Optional[str] = Form(None),
        eventImg: Optional[UploadFile] = File(None),
        admin=Depends(get_admin_user),
        db=Depends(get_database),
        uploader=Depends(get_image_uploader),
):
    event = catalog_service.update_event(db, uploader, event_id, title, start_date, end_date, description, eventImg)
    return api_response(200, serialize_doc(event), "Event details updated successfully")


@router.delete("/deleteEvent")
async def delete_event(body: RecordId, admin=Depends(get_admin_user), db=Depends(get_database)):
    catalog_service.delete_event(db, body.id)
    return api_response(200, {}, "Event deleted successfully")


# Users and withdrawals

@router.get("/getUserRecords")
async def get_user_records(admin=Depends(get_admin_user), db=Depends(get_database)):
    users = [serialize_user(user) for user in catalog_service.list_users(db)]
    return api_response(200, users, "Data fetched successfully")


@router.get("/withdrawalrequests")
async def get_all_withdrawals(admin=Depends(get_admin_user), db=Depends(get_database)):
    return api_response(200, _many(withdrawal_service.list_all(db)), "Withdrawal requests retrieved successfully")


@router.post("/withdrawalrequest/status")
async def update_withdrawal_status(body: StatusUpdate, admin=Depends(get_admin_user), db=Depends(get_database)):
    record = withdrawal_service.update_status_by_admin(db, body.id, body.status)
    return api_response(200, serialize_doc(record), f"Withdrawal request {body.status} successfully")
