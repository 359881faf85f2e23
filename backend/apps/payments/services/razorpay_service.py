"""
Razorpay integration service.
Creates gateway orders and checks the signature Razorpay returns to the
client after checkout.

Razorpay Orders documentation: https://razorpay.com/docs/api/orders/
"""
import uuid
from typing import Any, Dict, Optional

import razorpay
from django.conf import settings

from apps.core.services.base import BaseService, ServiceResult


class RazorpayService(BaseService):
    """
    Thin wrapper around the Razorpay client.

    Without a key id the service runs in test mode: orders get a mock id
    (order_test_*) and no API call is made.
    """

    MOCK_ORDER_PREFIX = 'order_test_'

    def __init__(self, key_id: Optional[str] = None, key_secret: Optional[str] = None):
        super().__init__()
        self.key_id = settings.RAZORPAY_KEY_ID if key_id is None else key_id
        self.key_secret = settings.RAZORPAY_KEY_SECRET if key_secret is None else key_secret
        self._client = None

    @property
    def is_test_mode(self) -> bool:
        return not self.key_id

    @property
    def client(self) -> razorpay.Client:
        if self._client is None:
            self._client = razorpay.Client(auth=(self.key_id, self.key_secret))
        return self._client

    def create_order(self, amount_subunits: int, currency: str, receipt: str,
                     notes: Optional[Dict[str, str]] = None) -> ServiceResult:
        """
        Create an order for the given amount.

        Args:
            amount_subunits: Amount in the smallest currency unit (paise)
            currency: ISO currency code
            receipt: Our reference for the order (registration id)
            notes: Extra key/value pairs stored on the order

        Returns:
            ServiceResult containing {'order_id', 'amount', 'currency', 'mock'}
        """
        if self.is_test_mode:
            order_id = f"{self.MOCK_ORDER_PREFIX}{uuid.uuid4().hex[:14]}"
            self.log_info(
                f"Created MOCK Razorpay order {order_id} (test mode)",
                receipt=receipt
            )
            return ServiceResult.ok({
                'order_id': order_id,
                'amount': amount_subunits,
                'currency': currency,
                'mock': True,
            })

        try:
            order: Dict[str, Any] = self.client.order.create(data={
                'amount': amount_subunits,
                'currency': currency,
                'receipt': receipt[:40],
                'notes': notes or {},
            })
        except razorpay.errors.BadRequestError as e:
            self.log_error("Razorpay rejected order", exception=e, receipt=receipt)
            return ServiceResult.fail(
                f"Payment gateway rejected the order: {str(e)}",
                error_code="UPSTREAM_ERROR",
                status_code=500
            )
        except Exception as e:
            self.log_error("Error creating Razorpay order", exception=e, receipt=receipt)
            return ServiceResult.fail(
                "Payment gateway unavailable",
                error_code="UPSTREAM_ERROR",
                status_code=503
            )

        self.log_info(
            f"Created Razorpay order {order.get('id')}",
            receipt=receipt
        )
        return ServiceResult.ok({
            'order_id': order['id'],
            'amount': order.get('amount', amount_subunits),
            'currency': order.get('currency', currency),
            'mock': False,
        })

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """
        Check the signature Razorpay hands the client after checkout.

        The SDK recomputes HMAC-SHA256 of "order_id|payment_id" with the key
        secret and compares it in constant time.
        """
        if not self.key_secret or not signature:
            return False

        signature = str(signature)
        # compare_digest rejects non-ASCII str arguments with TypeError
        if not signature.isascii():
            return False

        try:
            self.client.utility.verify_payment_signature({
                'razorpay_order_id': order_id,
                'razorpay_payment_id': payment_id,
                'razorpay_signature': signature,
            })
        except razorpay.errors.SignatureVerificationError:
            self.log_warning("Razorpay signature mismatch", order_id=order_id)
            return False
        return True
