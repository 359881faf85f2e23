"""
API views for gateway payments.
Handles Razorpay order creation and checkout signature verification.
"""
import logging

from rest_framework import views
from rest_framework.permissions import AllowAny

from drf_spectacular.utils import extend_schema, OpenApiExample

from apps.core.api import result_error_response, success_response
from .serializers import (
    ConfirmationSerializer,
    CreateOrderSerializer,
    OrderResponseSerializer,
    VerifyPaymentSerializer,
)
from .services.reconciliation_service import PaymentReconciliationService

logger = logging.getLogger(__name__)


class CreateOrderView(views.APIView):
    """
    Create a Razorpay order for a registration awaiting payment.

    POST /api/v1/payments/order/

    Request Body:
        {
            "registration_id": "CHK-1733040000000-4821"
        }

    Response:
        {
            "success": true,
            "data": {
                "order_id": "order_xxx",
                "amount": 120000,
                "currency": "INR",
                "key_id": "rzp_live_xxx",
                "registration_id": "CHK-...",
                ...
            }
        }
    """
    permission_classes = [AllowAny]

    @extend_schema(
        summary="Create payment order",
        description="""
        Create a gateway order for a registration in `pending_payment`.

        **Flow:**
        1. Looks up the registration (storage id or public id)
        2. Computes the fee (IEEE members get the discounted amount)
        3. Creates a Razorpay order in paise
        4. Stores the order id on the registration's payment

        Without a configured Razorpay key a mock `order_test_*` id is
        returned and `test_mode` is true.

        **Permissions:** Public
        """,
        request=CreateOrderSerializer,
        responses={200: OrderResponseSerializer},
        examples=[
            OpenApiExample(
                'Create order',
                value={'registration_id': 'CHK-1733040000000-4821'},
                request_only=True
            )
        ],
        tags=['Payments']
    )
    def post(self, request):
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = PaymentReconciliationService().create_order(
            serializer.validated_data['registration_id']
        )
        if not result.success:
            return result_error_response(result)

        return success_response(data=result.data)


class VerifyPaymentView(views.APIView):
    """
    Verify the signature returned by Razorpay Checkout and confirm the
    registration.

    POST /api/v1/payments/verify/
    """
    permission_classes = [AllowAny]

    @extend_schema(
        summary="Verify gateway payment",
        description="""
        Check `HMAC-SHA256(secret, "order_id|payment_id")` against the
        signature from checkout.

        - Signature mismatch: 400, nothing changes
        - Unknown order: 404
        - Already confirmed: 409
        - Otherwise the registration is confirmed, a QR pass is generated
          and confirmation emails are queued

        **Permissions:** Public (signature-authenticated)
        """,
        request=VerifyPaymentSerializer,
        responses={200: ConfirmationSerializer},
        tags=['Payments']
    )
    def post(self, request):
        serializer = VerifyPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = PaymentReconciliationService().verify_payment(
            serializer.validated_data['order_id'],
            serializer.validated_data['payment_id'],
            serializer.validated_data['signature']
        )
        if not result.success:
            logger.warning(
                f"Payment verification failed for order "
                f"{serializer.validated_data['order_id']}: {result.error}"
            )
            return result_error_response(result)

        return success_response(data=result.data, message='Payment verified')
