"""
Unit tests for PaymentReconciliationService.
Tests the gateway path (order, verify) and the manual UPI path
(proof, final approval).
"""
from decimal import Decimal
from unittest.mock import Mock

import pytest

from apps.core.services.base import UpstreamError
from apps.payments.models import Payment
from apps.payments.services.reconciliation_service import PaymentReconciliationService
from apps.registrations.models import Registration
from apps.registrations.services.lifecycle import Actor
from tests.conftest import RegistrationFactory, checkout_signature, make_png

QR = 'data:image/png;base64,iVBORw0KGgo='


@pytest.fixture
def dispatcher():
    mock = Mock()
    mock.dispatch_payment_confirmed.return_value = {
        'email_queued': True,
        'email_recipients': 1,
    }
    return mock


@pytest.fixture
def service(razorpay_service, dispatcher):
    return PaymentReconciliationService(
        gateway=razorpay_service,
        dispatcher=dispatcher,
        qr_generator=lambda registration: QR
    )


@pytest.fixture
def ordered_registration(service, registration):
    """A pending registration with a gateway order."""
    result = service.create_order(registration.registration_id)
    assert result.success
    registration.refresh_from_db()
    return registration


@pytest.mark.django_db
class TestCreateOrder:
    """Test gateway order creation."""

    def test_create_order_test_mode(self, service, registration):
        result = service.create_order(registration.registration_id)

        assert result.success is True
        assert result.data['order_id'].startswith('order_test_')
        assert result.data['amount'] == 120000
        assert result.data['currency'] == 'INR'
        assert result.data['test_mode'] is True
        assert result.data['registration_id'] == registration.registration_id

        registration.payment.refresh_from_db()
        assert registration.payment.order_id == result.data['order_id']

    def test_member_order_is_discounted(self, service):
        registration = RegistrationFactory(ieee_member='yes', ieee_id='IEEE-7')

        result = service.create_order(registration.pk)

        assert result.success is True
        assert result.data['amount'] == 100000
        assert result.data['original_amount'] == '1200.00'
        assert result.data['discount_percent'] == '16.67'
        # Payment row is created on demand
        assert Payment.objects.filter(registration=registration).exists()

    def test_create_order_unknown_registration(self, service):
        result = service.create_order('CHK-0-0000')

        assert result.success is False
        assert result.status_code == 404

    def test_create_order_confirmed_registration(self, service, registration):
        registration.status = Registration.Status.CONFIRMED
        registration.save()

        result = service.create_order(registration.pk)

        assert result.success is False
        assert result.error_code == 'PRECONDITION_FAILED'

    def test_gateway_failure_passes_through(self, registration):
        gateway = Mock()
        gateway.create_order.return_value = Mock(
            success=False, error='Payment gateway unavailable', status_code=503)
        service = PaymentReconciliationService(gateway=gateway)

        result = service.create_order(registration.pk)

        assert result.success is False
        assert result.status_code == 503
        registration.payment.refresh_from_db()
        assert registration.payment.order_id == ''


@pytest.mark.django_db
class TestVerifyPayment:
    """Test checkout signature verification."""

    def test_verify_confirms_registration(self, service, dispatcher, ordered_registration):
        order_id = ordered_registration.payment.order_id

        result = service.verify_payment(
            order_id, 'pay_ABC123', checkout_signature(order_id, 'pay_ABC123'))

        assert result.success is True
        assert result.data['status'] == Registration.Status.CONFIRMED
        assert result.data['qr_code'] == QR
        assert result.data['email_queued'] is True

        ordered_registration.refresh_from_db()
        assert ordered_registration.status == Registration.Status.CONFIRMED
        assert ordered_registration.qr_code == QR
        payment = ordered_registration.payment
        assert payment.status == Payment.Status.CAPTURED
        assert payment.payment_id == 'pay_ABC123'
        assert payment.paid_at is not None
        dispatcher.dispatch_payment_confirmed.assert_called_once()

    def test_bad_signature_changes_nothing(self, service, dispatcher, ordered_registration):
        order_id = ordered_registration.payment.order_id

        result = service.verify_payment(order_id, 'pay_ABC123', 'deadbeef')

        assert result.success is False
        assert result.status_code == 400
        assert result.error == 'Invalid payment signature'
        ordered_registration.refresh_from_db()
        assert ordered_registration.status == Registration.Status.PENDING_PAYMENT
        assert ordered_registration.payment.status == Payment.Status.CREATED
        dispatcher.dispatch_payment_confirmed.assert_not_called()

    def test_missing_fields(self, service):
        result = service.verify_payment('order_1', '', 'sig')

        assert result.success is False
        assert result.status_code == 400

    def test_unknown_order(self, service, db):
        result = service.verify_payment(
            'order_missing', 'pay_1', checkout_signature('order_missing', 'pay_1'))

        assert result.success is False
        assert result.status_code == 404
        assert result.error == 'Order not found'

    def test_already_confirmed(self, service, dispatcher, ordered_registration):
        order_id = ordered_registration.payment.order_id
        signature = checkout_signature(order_id, 'pay_ABC123')
        service.verify_payment(order_id, 'pay_ABC123', signature)
        dispatcher.reset_mock()

        result = service.verify_payment(order_id, 'pay_ABC123', signature)

        assert result.success is False
        assert result.status_code == 409
        assert result.error == 'Payment already processed'
        dispatcher.dispatch_payment_confirmed.assert_not_called()

    def test_cancelled_registration(self, service, ordered_registration):
        Registration.objects.filter(pk=ordered_registration.pk).update(
            status=Registration.Status.CANCELLED)
        order_id = ordered_registration.payment.order_id

        result = service.verify_payment(
            order_id, 'pay_1', checkout_signature(order_id, 'pay_1'))

        assert result.success is False
        assert result.error_code == 'PRECONDITION_FAILED'
        ordered_registration.payment.refresh_from_db()
        assert ordered_registration.payment.status == Payment.Status.CREATED

    def test_notification_failure_keeps_confirmation(self, service, dispatcher,
                                                     ordered_registration):
        dispatcher.dispatch_payment_confirmed.side_effect = RuntimeError('broker down')
        order_id = ordered_registration.payment.order_id

        result = service.verify_payment(
            order_id, 'pay_1', checkout_signature(order_id, 'pay_1'))

        assert result.success is True
        assert result.data['email_queued'] is False
        assert result.data['email_recipients'] == 0
        ordered_registration.refresh_from_db()
        assert ordered_registration.status == Registration.Status.CONFIRMED


@pytest.mark.django_db
class TestSubmitProof:
    """Test the manual UPI proof path."""

    def test_submit_proof(self, service, registration):
        result = service.submit_proof(
            registration.registration_id, '1234 5678 9012', make_png())

        assert result.success is True
        assert result.data['already_confirmed'] is False
        registration.refresh_from_db()
        assert registration.status == Registration.Status.UNDER_REVIEW
        payment = registration.payment
        assert payment.utr_number == '123456789012'
        assert payment.has_screenshot
        assert payment.screenshot_file_name == 'screenshot.png'

    @pytest.mark.parametrize('utr', ['', '12345', '1234567890123', '١٢٣٤٥٦٧٨٩٠١٢'])
    def test_utr_must_be_twelve_digits(self, service, registration, utr):
        result = service.submit_proof(registration.pk, utr, make_png())

        assert result.success is False
        assert result.error == 'UTR must be 12 digits'
        registration.refresh_from_db()
        assert registration.status == Registration.Status.PENDING_PAYMENT

    def test_screenshot_required(self, service, registration):
        result = service.submit_proof(registration.pk, '123456789012', None)

        assert result.success is False
        assert result.error == 'Payment screenshot required'

    def test_resubmission_replaces_proof(self, service, under_review_registration):
        result = service.submit_proof(
            under_review_registration.pk, '999988887777', make_png('second.png'))

        assert result.success is True
        under_review_registration.refresh_from_db()
        assert under_review_registration.status == Registration.Status.UNDER_REVIEW
        assert under_review_registration.payment.utr_number == '999988887777'
        assert under_review_registration.payment.screenshot_file_name == 'second.png'

    def test_confirmed_is_left_alone(self, service, registration):
        registration.status = Registration.Status.CONFIRMED
        registration.save()

        result = service.submit_proof(registration.pk, '123456789012', make_png())

        assert result.success is True
        assert result.data['already_confirmed'] is True
        registration.payment.refresh_from_db()
        assert registration.payment.utr_number == ''

    def test_cancelled_rejects_proof(self, service, registration):
        registration.status = Registration.Status.CANCELLED
        registration.save()

        result = service.submit_proof(registration.pk, '123456789012', make_png())

        assert result.success is False
        assert result.error_code == 'PRECONDITION_FAILED'

    def test_unknown_registration(self, service, db):
        result = service.submit_proof('CHK-0-0000', '123456789012', make_png())

        assert result.success is False
        assert result.status_code == 404


@pytest.mark.django_db
class TestFinalApprove:
    """Test admin approval of manual payments."""

    def test_final_approve(self, service, dispatcher, under_review_registration):
        result = service.final_approve(under_review_registration.registration_id)

        assert result.success is True
        assert result.data == {
            'registration_id': under_review_registration.registration_id,
            'status': Registration.Status.CONFIRMED,
            'qr_code': QR,
            'email_queued': True,
            'email_recipients': 1,
        }
        under_review_registration.refresh_from_db()
        assert under_review_registration.status == Registration.Status.CONFIRMED
        payment = under_review_registration.payment
        assert payment.status == Payment.Status.CAPTURED
        assert payment.payment_id == '123456789012'
        assert payment.amount == Decimal('1200.00')

    def test_pending_is_not_under_review(self, service, registration):
        result = service.final_approve(registration.pk)

        assert result.success is False
        assert result.error == 'Not under review'
        registration.refresh_from_db()
        assert registration.status == Registration.Status.PENDING_PAYMENT

    def test_approve_twice(self, service, under_review_registration):
        service.final_approve(under_review_registration.pk)

        result = service.final_approve(under_review_registration.pk)

        assert result.success is False
        assert result.error == 'Not under review'

    def test_database_unavailable(self, service, dispatcher, under_review_registration, mocker):
        mocker.patch(
            'apps.payments.services.reconciliation_service.ensure_storage_available',
            side_effect=UpstreamError('Database unavailable. Please try again later.')
        )

        result = service.final_approve(under_review_registration.pk)

        assert result.success is False
        assert result.status_code == 503
        under_review_registration.refresh_from_db()
        assert under_review_registration.status == Registration.Status.UNDER_REVIEW
        dispatcher.dispatch_payment_confirmed.assert_not_called()

    def test_non_admin_actor_refused(self, service, under_review_registration):
        result = service.final_approve(
            under_review_registration.pk, actor=Actor.REGISTRANT)

        assert result.success is False
        assert result.status_code == 403

    def test_generates_real_qr(self, razorpay_service, dispatcher,
                               under_review_registration):
        service = PaymentReconciliationService(
            gateway=razorpay_service, dispatcher=dispatcher)

        result = service.final_approve(under_review_registration.pk)

        assert result.success is True
        assert result.data['qr_code'].startswith('data:image/png;base64,')
