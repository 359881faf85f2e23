"""
API tests for gateway payment endpoints.
"""
import pytest
from django.urls import reverse
from rest_framework import status

from apps.payments.models import Payment
from apps.registrations.models import Registration
from tests.conftest import checkout_signature


@pytest.mark.django_db
class TestCreateOrderAPI:
    """Test POST /payments/order/."""

    def setup_method(self):
        self.url = reverse('payment-create-order')

    def test_create_order(self, api_client, registration):
        response = api_client.post(
            self.url, {'registration_id': registration.registration_id}, format='json')

        assert response.status_code == status.HTTP_200_OK
        data = response.data['data']
        assert data['order_id'].startswith('order_test_')
        assert data['amount'] == 120000
        assert data['currency'] == 'INR'
        assert data['amount_display'] == '1200.00'
        assert data['test_mode'] is True

    def test_live_order(self, api_client, registration, settings, mock_razorpay_order):
        settings.RAZORPAY_KEY_ID = 'rzp_live_abc'

        response = api_client.post(
            self.url, {'registration_id': registration.pk}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['order_id'] == 'order_LIVE123456'
        assert response.data['data']['key_id'] == 'rzp_live_abc'
        registration.payment.refresh_from_db()
        assert registration.payment.order_id == 'order_LIVE123456'

    def test_missing_registration_id(self, api_client):
        response = api_client.post(self.url, {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['success'] is False
        assert response.data['error_code'] == 'VALIDATION_ERROR'

    def test_unknown_registration(self, api_client, db):
        response = api_client.post(self.url, {'registration_id': 'CHK-0-0000'}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_gateway_unavailable(self, api_client, registration, settings, mock_razorpay_order):
        settings.RAZORPAY_KEY_ID = 'rzp_live_abc'
        mock_razorpay_order.order.create.side_effect = ConnectionError('timeout')

        response = api_client.post(
            self.url, {'registration_id': registration.pk}, format='json')

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.data['error_code'] == 'UPSTREAM_ERROR'


@pytest.mark.django_db
class TestVerifyPaymentAPI:
    """Test POST /payments/verify/."""

    def setup_method(self):
        self.url = reverse('payment-verify')

    @pytest.fixture
    def order_id(self, registration):
        registration.payment.order_id = 'order_test_abc123'
        registration.payment.save()
        return 'order_test_abc123'

    def test_verify(self, api_client, registration, order_id):
        response = api_client.post(self.url, {
            'order_id': order_id,
            'payment_id': 'pay_XYZ',
            'signature': checkout_signature(order_id, 'pay_XYZ'),
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['message'] == 'Payment verified'
        assert response.data['data']['status'] == 'confirmed'
        registration.refresh_from_db()
        assert registration.status == Registration.Status.CONFIRMED
        assert registration.qr_code.startswith('data:image/png;base64,')

    def test_bad_signature(self, api_client, registration, order_id):
        response = api_client.post(self.url, {
            'order_id': order_id,
            'payment_id': 'pay_XYZ',
            'signature': '0' * 64,
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['message'] == 'Invalid payment signature'
        registration.refresh_from_db()
        assert registration.status == Registration.Status.PENDING_PAYMENT
        assert registration.payment.status == Payment.Status.CREATED

    def test_missing_signature(self, api_client, order_id):
        response = api_client.post(self.url, {
            'order_id': order_id,
            'payment_id': 'pay_XYZ',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_order(self, api_client, db):
        response = api_client.post(self.url, {
            'order_id': 'order_nope',
            'payment_id': 'pay_XYZ',
            'signature': checkout_signature('order_nope', 'pay_XYZ'),
        }, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['message'] == 'Order not found'

    def test_already_processed(self, api_client, order_id):
        payload = {
            'order_id': order_id,
            'payment_id': 'pay_XYZ',
            'signature': checkout_signature(order_id, 'pay_XYZ'),
        }
        api_client.post(self.url, payload, format='json')

        response = api_client.post(self.url, payload, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['message'] == 'Payment already processed'
