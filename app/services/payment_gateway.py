import logging

import requests
from starlette.concurrency import run_in_threadpool

from app.core.config import settings
from app.schemas.payments import OrderHandle
from app.utils.exceptions import PaymentGatewayUnavailable

logger = logging.getLogger(__name__)


class RazorpayGateway:
    """
    Creates orders through the Razorpay Orders API.

    Each call is best effort: any transport error, timeout, non-2xx status
    or malformed body surfaces as PaymentGatewayUnavailable.
    """

    def __init__(self, key_id: str = None, key_secret: str = None, api_url: str = None, timeout: int = None):
        self.key_id = key_id if key_id is not None else settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret if key_secret is not None else settings.RAZORPAY_KEY_SECRET
        self.api_url = (api_url or settings.RAZORPAY_API_URL).rstrip("/")
        self.timeout = timeout or settings.PAYMENT_GATEWAY_TIMEOUT

    def _post_order(self, payload: dict) -> dict:
        response = requests.post(
            f"{self.api_url}/orders",
            json=payload,
            auth=(self.key_id, self.key_secret),
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    async def create_order(self, amount: int, currency: str, receipt: str) -> OrderHandle:
        payload = {"amount": amount, "currency": currency, "receipt": receipt}

        try:
            data = await run_in_threadpool(self._post_order, payload)
            return OrderHandle(
                id=data["id"],
                amount=int(data["amount"]),
                currency=data["currency"],
            )
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            logger.error("Razorpay order creation failed for receipt %s: %s", receipt, e)
            raise PaymentGatewayUnavailable() from e


payment_gateway = RazorpayGateway()
