from pydantic import BaseModel, Field
from typing import Optional


class OrderHandle(BaseModel):
    id: str
    amount: int
    currency: str


class EnrollResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    order: Optional[OrderHandle] = None


class PaymentVerifyRequest(BaseModel):
    razorpay_order_id: str = Field(..., min_length=1)
    razorpay_payment_id: str = Field(..., min_length=1)
    razorpay_signature: str = Field(..., min_length=1)
    courseId: str


class PaymentConfirmation(BaseModel):
    """Gateway identifiers of a payment whose signature has been checked."""

    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str
