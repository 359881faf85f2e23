"""
Serializers for payment operations.
Handles validation and formatting for order and verification requests.
"""
from rest_framework import serializers

from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    """Payment sub-record without any file contents."""
    has_screenshot = serializers.BooleanField(read_only=True)

    class Meta:
        model = Payment
        fields = [
            'order_id', 'payment_id', 'amount', 'original_amount',
            'discount_percent', 'currency', 'status', 'utr_number',
            'has_screenshot', 'screenshot_content_type',
            'screenshot_file_name', 'paid_at'
        ]
        read_only_fields = fields


class CreateOrderSerializer(serializers.Serializer):
    """
    Serializer for creating a gateway order.
    Accepts the storage id or the public registration id.
    """
    registration_id = serializers.CharField(
        max_length=64,
        help_text="Registration storage id or public id (CHK-...)"
    )


class VerifyPaymentSerializer(serializers.Serializer):
    """Values Razorpay Checkout hands back to the client."""
    order_id = serializers.CharField(max_length=100)
    payment_id = serializers.CharField(max_length=100)
    signature = serializers.CharField(max_length=256)


class OrderResponseSerializer(serializers.Serializer):
    order_id = serializers.CharField()
    amount = serializers.IntegerField(help_text="Amount in paise")
    currency = serializers.CharField()
    key_id = serializers.CharField(allow_blank=True)
    registration_id = serializers.CharField()
    amount_display = serializers.CharField()
    original_amount = serializers.CharField()
    discount_percent = serializers.CharField()
    test_mode = serializers.BooleanField()


class ConfirmationSerializer(serializers.Serializer):
    """Result of a gateway verification or an admin approval."""
    registration_id = serializers.CharField()
    status = serializers.CharField()
    qr_code = serializers.CharField()
    email_queued = serializers.BooleanField()
    email_recipients = serializers.IntegerField()
