from fastapi import APIRouter, Depends

from database import get_database, serialize_doc
from models import RecordId, StatusUpdate, WithdrawalCreate, api_response
from routes.auth_routes import get_current_user
from services import withdrawal_service

router = APIRouter()


@router.post("/withdrawalrequest")
async def create_withdrawal(
        body: WithdrawalCreate,
        current_user=Depends(get_current_user),
        db=Depends(get_database),
):
    record = withdrawal_service.submit_withdrawal(db, current_user, body.address, body.amount, body.finalAmount)
    return api_response(201, serialize_doc(record), "Withdrawal request submitted successfully")


@router.get("/getwithdrawalrequest")
async def get_withdrawals(current_user=Depends(get_current_user), db=Depends(get_database)):
    records = withdrawal_service.list_for_user(db, current_user)
    return api_response(200, [serialize_doc(record) for record in records], "Withdrawal requests retrieved successfully")


@router.post("/withdrawalrequest/status")
async def update_withdrawal_status(
        body: StatusUpdate,
        current_user=Depends(get_current_user),
        db=Depends(get_database),
):
    record = withdrawal_service.update_status_by_user(db, current_user, body.id, body.status)
    return api_response(200, serialize_doc(record), f"Withdrawal request {body.status} successfully")


@router.delete("/withdrawalrequest/delete")
async def delete_withdrawal(
        body: RecordId,
        current_user=Depends(get_current_user),
        db=Depends(get_database),
):
    withdrawal_service.delete_withdrawal(db, current_user, body.id)
    return api_response(200, {}, "Withdrawal request deleted successfully")
