from enum import Enum
from typing import Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr


class WithdrawalStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED_BY_ADMIN = "Cancelled by Admin"


ADMIN_TARGET_STATUSES = {WithdrawalStatus.APPROVED.value, WithdrawalStatus.CANCELLED_BY_ADMIN.value}
USER_TARGET_STATUSES = {WithdrawalStatus.REJECTED.value}


class UserLogin(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: str
    otp: Optional[int] = None


class OtpRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None


class RefreshTokenRequest(BaseModel):
    refreshToken: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    oldPassword: str
    newPassword: str


class UpdateAccountRequest(BaseModel):
    fullName: Optional[str] = None
    email: Optional[EmailStr] = None


class WithdrawalCreate(BaseModel):
    address: str
    amount: float
    finalAmount: float


class StatusUpdate(BaseModel):
    id: Optional[str] = None
    status: Optional[str] = None


class RecordId(BaseModel):
    id: Optional[str] = None


def api_response(status_code: int, data, message: str = "Success", **extra) -> JSONResponse:
    """Wrap a payload in the {statusCode, data, message, success} envelope."""
    content = {
        "statusCode": status_code,
        "data": data,
        "message": message,
        "success": status_code < 400,
    }
    content.update(extra)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))
