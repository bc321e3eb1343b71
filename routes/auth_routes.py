from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.security import OAuth2PasswordBearer

from config import COOKIE_SECURE
from database import USERS, get_database, serialize_user, to_object_id
from errors import AuthError, ForbiddenError, ValidationError
from models import (
    ChangePasswordRequest, OtpRequest, RefreshTokenRequest, UpdateAccountRequest,
    UserLogin, api_response,
)
from services import auth_service
from utils import decode_access_token, send_otp_sms, upload_image

router = APIRouter()
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/users/login", auto_error=False)


def get_image_uploader():
    return upload_image


def get_otp_sender():
    return send_otp_sms


async def get_current_user(
        request: Request,
        token: Optional[str] = Depends(oauth2_scheme),
        db=Depends(get_database),
):
    token = token or request.cookies.get("accessToken")
    if not token:
        raise AuthError("Unauthorized request")

    payload = decode_access_token(token)
    try:
        user_id = to_object_id(payload.get("id"), "User")
    except ValidationError:
        raise AuthError("Invalid access token")

    user = db[USERS].find_one({"_id": user_id})
    if not user:
        raise AuthError("Invalid access token")
    return user


async def get_admin_user(current_user=Depends(get_current_user)):
    if not current_user.get("isAdmin", False):
        raise ForbiddenError("Admin privileges required")
    return current_user


def _with_auth_cookies(response, access_token, refresh_token):
    response.set_cookie("accessToken", access_token, httponly=True, secure=COOKIE_SECURE)
    response.set_cookie("refreshToken", refresh_token, httponly=True, secure=COOKIE_SECURE)
    return response


@router.post("/register")
async def register(
        fullName: Optional[str] = Form(None),
        email: Optional[str] = Form(None),
        username: Optional[str] = Form(None),
        password: Optional[str] = Form(None),
        mobileNo: Optional[str] = Form(None),
        sharedId: Optional[str] = Form(None),
        currency: Optional[str] = Form(None),
        avatar: Optional[UploadFile] = File(None),
        db=Depends(get_database),
        uploader=Depends(get_image_uploader),
):
    profile = {
        "fullName": fullName,
        "email": email,
        "username": username,
        "password": password,
        "mobileNo": mobileNo,
        "sharedId": sharedId,
        "currency": currency,
    }
    user = auth_service.register_user(db, profile, avatar, uploader)
    return api_response(201, serialize_user(user), "User registered successfully")


@router.post("/login")
async def login(credentials: UserLogin, db=Depends(get_database)):
    user, access_token, refresh_token = auth_service.login_user(
        db,
        username=credentials.username,
        email=credentials.email,
        password=credentials.password,
        otp=credentials.otp,
    )
    response = api_response(
        200,
        {"user": serialize_user(user), "accessToken": access_token, "refreshToken": refresh_token},
        "User logged in successfully",
    )
    return _with_auth_cookies(response, access_token, refresh_token)


@router.post("/sendOtp")
async def send_otp(body: OtpRequest, db=Depends(get_database), sender=Depends(get_otp_sender)):
    auth_service.send_otp(db, sender, username=body.username, email=body.email)
    return api_response(200, {}, "OTP sent successfully")


@router.post("/refresh-token")
async def refresh_token(request: Request, body: Optional[RefreshTokenRequest] = None, db=Depends(get_database)):
    incoming = request.cookies.get("refreshToken") or (body.refreshToken if body else None)
    user, access_token, new_refresh_token = auth_service.refresh_access_token(db, incoming)
    response = api_response(
        200,
        {"accessToken": access_token, "refreshToken": new_refresh_token},
        "Access token refreshed",
    )
    return _with_auth_cookies(response, access_token, new_refresh_token)


@router.post("/logout")
async def logout(current_user=Depends(get_current_user), db=Depends(get_database)):
    auth_service.logout_user(db, current_user["_id"])
    response = api_response(200, {}, "User logged out")
    response.delete_cookie("accessToken")
    response.delete_cookie("refreshToken")
    return response


@router.post("/change-password")
async def change_password(
        body: ChangePasswordRequest,
        current_user=Depends(get_current_user),
        db=Depends(get_database),
):
    auth_service.change_password(db, current_user, body.oldPassword, body.newPassword)
    return api_response(200, {}, "Password changed successfully")


@router.get("/current-user")
async def current_user_profile(current_user=Depends(get_current_user)):
    return api_response(200, serialize_user(current_user), "User fetched successfully")


@router.patch("/update-account")
async def update_account(
        body: UpdateAccountRequest,
        current_user=Depends(get_current_user),
        db=Depends(get_database),
):
    user = auth_service.update_account(db, current_user, body.fullName, body.email)
    return api_response(200, serialize_user(user), "Account details updated successfully")


@router.patch("/avatar")
async def update_avatar(
        avatar: Optional[UploadFile] = File(None),
        current_user=Depends(get_current_user),
        db=Depends(get_database),
        uploader=Depends(get_image_uploader),
):
    user = auth_service.update_avatar(db, current_user, avatar, uploader)
    return api_response(200, serialize_user(user), "Avatar image updated successfully")
