from fastapi import APIRouter, Depends

from app.auth.dependencies import require_role
from app.crud.enrollments import enrollment_crud
from app.schemas.payments import EnrollResponse, PaymentVerifyRequest

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/verify", response_model=EnrollResponse, response_model_exclude_none=True)
async def verify_payment(payload: PaymentVerifyRequest, current_user=Depends(require_role("student"))):
    return await enrollment_crud.verify_payment(
        payload.razorpay_order_id,
        payload.razorpay_payment_id,
        payload.razorpay_signature,
        payload.courseId,
        current_user["user_id"],
    )
