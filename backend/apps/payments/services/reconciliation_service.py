"""
Payment reconciliation service.

Two ways to confirm a registration:
- gateway: create a Razorpay order, then verify the signature returned
  after checkout;
- manual: the registrant submits a UPI transaction reference (UTR) and a
  screenshot, and an admin approves it.

Both end the same way: payment captured, QR pass generated, status
confirmed, confirmation emails scheduled after commit.
"""
from typing import Any, Callable, Dict, Optional

from django.db import transaction
from django.utils import timezone

from apps.core.services.base import (
    BaseService, ConflictError, NotFoundError, ServiceException,
    ServiceResult, ValidationError
)
from apps.core.utils.db import ensure_storage_available
from apps.payments.models import Payment
from apps.payments.pricing import AmountPolicy
from apps.payments.services.razorpay_service import RazorpayService
from apps.registrations.models import Registration
from apps.registrations.services.lifecycle import (
    Actor, LifecycleEvent, RegistrationLifecycle
)
from apps.registrations.services.registration_service import resolve_registration
from apps.registrations.validation import (
    UTR_LENGTH, RegistrationValidator, normalize_utr
)


class PaymentReconciliationService(BaseService):
    """
    Service that moves registrations to confirmed once payment is proven.
    """

    def __init__(self, gateway: Optional[RazorpayService] = None,
                 amount_policy: Optional[AmountPolicy] = None,
                 dispatcher=None,
                 qr_generator: Optional[Callable[[Registration], str]] = None,
                 validator: Optional[RegistrationValidator] = None):
        super().__init__()
        self.gateway = gateway or RazorpayService()
        self.amount_policy = amount_policy or AmountPolicy()
        self.validator = validator or RegistrationValidator()
        self._dispatcher = dispatcher
        self._qr_generator = qr_generator

    @property
    def dispatcher(self):
        if self._dispatcher is None:
            from apps.notifications.dispatcher import NotificationDispatcher
            self._dispatcher = NotificationDispatcher()
        return self._dispatcher

    def generate_qr(self, registration: Registration) -> str:
        if self._qr_generator is None:
            from apps.notifications.services.qr_service import generate_registration_qr
            self._qr_generator = generate_registration_qr
        return self._qr_generator(registration)

    # ------------------------------------------------------------------
    # Gateway path
    # ------------------------------------------------------------------

    def create_order(self, registration_key) -> ServiceResult:
        """
        Create a gateway order for a registration awaiting payment.

        Args:
            registration_key: Storage id or public registration id

        Returns:
            ServiceResult containing the order handle for checkout
        """
        try:
            ensure_storage_available()
            with transaction.atomic():
                registration = resolve_registration(registration_key, for_update=True)
                if registration.status != Registration.Status.PENDING_PAYMENT:
                    # Same guard as a gateway confirmation
                    RegistrationLifecycle.next_status(
                        registration.status,
                        LifecycleEvent.GATEWAY_VERIFIED,
                        Actor.GATEWAY
                    )

                quote = self.amount_policy.quote_for(registration)
                payment = self._payment_for(registration)
                payment.amount = quote.amount
                payment.original_amount = quote.original_amount
                payment.discount_percent = quote.discount_percent
                payment.currency = quote.currency

                result = self.gateway.create_order(
                    amount_subunits=payment.amount_in_subunits,
                    currency=quote.currency,
                    receipt=registration.registration_id,
                    notes={
                        'registration_id': registration.registration_id,
                        'email': registration.email,
                        'event': registration.event,
                    }
                )
                if not result.success:
                    return result

                payment.order_id = result.data['order_id']
                payment.status = Payment.Status.CREATED
                payment.save()

        except ServiceException as e:
            self.log_warning(f"Order refused: {e.message}", key=str(registration_key))
            return ServiceResult.from_exception(e)
        except Exception as e:
            self.log_error("Error creating order", exception=e, key=str(registration_key))
            return ServiceResult.fail(
                "Failed to create payment order",
                error_code="INTERNAL_ERROR",
                status_code=500
            )

        self.log_info(
            f"Order {payment.order_id} created for {registration.registration_id}",
            amount=str(payment.amount)
        )

        return ServiceResult.ok({
            'order_id': payment.order_id,
            'amount': result.data['amount'],
            'currency': result.data['currency'],
            'key_id': self.gateway.key_id,
            'registration_id': registration.registration_id,
            'amount_display': f"{payment.amount:.2f}",
            'original_amount': f"{payment.original_amount:.2f}",
            'discount_percent': f"{payment.discount_percent:.2f}",
            'test_mode': result.data.get('mock', False),
        })

    def verify_payment(self, order_id: str, payment_id: str, signature: str) -> ServiceResult:
        """
        Confirm a registration from a gateway checkout.

        The signature is checked before anything is read or written, so a
        bad signature never changes state.

        Returns:
            ServiceResult containing the confirmation summary
        """
        order_id = (order_id or '').strip()
        payment_id = (payment_id or '').strip()
        signature = (signature or '').strip()

        try:
            if not order_id or not payment_id or not signature:
                raise ValidationError(
                    'order_id, payment_id and signature are required')

            if not self.gateway.verify_signature(order_id, payment_id, signature):
                self.log_warning("Payment signature mismatch", order_id=order_id)
                raise ValidationError('Invalid payment signature', field='signature')

            ensure_storage_available()
            with transaction.atomic():
                payment = (
                    Payment.objects.select_for_update()
                    .filter(order_id=order_id)
                    .first()
                )
                if payment is None:
                    raise NotFoundError('Order not found')

                registration = Registration.objects.select_for_update().get(
                    pk=payment.registration_id)
                if registration.status == Registration.Status.CONFIRMED:
                    raise ConflictError('Payment already processed')

                RegistrationLifecycle.next_status(
                    registration.status,
                    LifecycleEvent.GATEWAY_VERIFIED,
                    Actor.GATEWAY
                )

                qr_code = self.generate_qr(registration)
                self._capture(payment, payment_id)
                registration.payment = payment
                RegistrationLifecycle.apply(
                    registration,
                    LifecycleEvent.GATEWAY_VERIFIED,
                    Actor.GATEWAY,
                    qr_code=qr_code
                )
                registration.save(update_fields=['status', 'qr_code', 'updated_at'])

                notification = self._notify_confirmed(registration)

        except ServiceException as e:
            return ServiceResult.from_exception(e)
        except Exception as e:
            self.log_error("Error verifying payment", exception=e, order_id=order_id)
            return ServiceResult.fail(
                "Failed to verify payment",
                error_code="INTERNAL_ERROR",
                status_code=500
            )

        self.log_info(
            f"Gateway payment verified for {registration.registration_id}",
            order_id=order_id,
            payment_id=payment_id
        )
        return ServiceResult.ok(self._confirmation_summary(registration, notification))

    # ------------------------------------------------------------------
    # Manual UPI path
    # ------------------------------------------------------------------

    def submit_proof(self, registration_key, utr_number, screenshot) -> ServiceResult:
        """
        Attach a UPI reference and screenshot and move to under_review.

        An already confirmed registration is left untouched and reported
        as success.

        Returns:
            ServiceResult containing {'registration', 'already_confirmed'}
        """
        try:
            utr = normalize_utr(utr_number)
            if len(utr) != UTR_LENGTH:
                raise ValidationError('UTR must be 12 digits', field='utr_number')

            attachment = self.validator.validate_attachment(
                screenshot, 'payment_screenshot')
            if attachment is None:
                raise ValidationError(
                    'Payment screenshot required', field='payment_screenshot')

            ensure_storage_available()
            with transaction.atomic():
                registration = resolve_registration(registration_key, for_update=True)

                if RegistrationLifecycle.is_noop(
                        registration.status, LifecycleEvent.PROOF_SUBMITTED):
                    return ServiceResult.ok({
                        'registration': registration,
                        'already_confirmed': True,
                    })

                RegistrationLifecycle.apply(
                    registration, LifecycleEvent.PROOF_SUBMITTED, Actor.REGISTRANT)

                payment = self._payment_for(registration)
                payment.utr_number = utr
                payment.screenshot = attachment.file
                payment.screenshot_content_type = attachment.content_type
                payment.screenshot_file_name = attachment.file_name
                payment.save()

                registration.save(update_fields=['status', 'updated_at'])

        except ServiceException as e:
            self.log_warning(f"Payment proof refused: {e.message}", key=str(registration_key))
            return ServiceResult.from_exception(e)
        except Exception as e:
            self.log_error("Error storing payment proof", exception=e, key=str(registration_key))
            return ServiceResult.fail(
                "Failed to submit payment proof",
                error_code="INTERNAL_ERROR",
                status_code=500
            )

        self.log_info(
            f"Payment proof submitted for {registration.registration_id}",
            utr=utr
        )
        return ServiceResult.ok({
            'registration': registration,
            'already_confirmed': False,
        })

    def final_approve(self, registration_key, actor: str = Actor.ADMIN) -> ServiceResult:
        """
        Approve a registration under review.

        The response does not wait for email; a failed email never undoes
        the confirmation.

        Returns:
            ServiceResult containing registration_id, status, qr_code,
            email_queued and email_recipients
        """
        try:
            ensure_storage_available()
            with transaction.atomic():
                registration = resolve_registration(registration_key, for_update=True)
                RegistrationLifecycle.next_status(
                    registration.status, LifecycleEvent.ADMIN_APPROVED, actor)

                qr_code = self.generate_qr(registration)

                payment = self._payment_for(registration)
                self._capture(payment, payment.utr_number or 'UPI')
                registration.payment = payment
                RegistrationLifecycle.apply(
                    registration,
                    LifecycleEvent.ADMIN_APPROVED,
                    actor,
                    qr_code=qr_code
                )
                registration.save(update_fields=['status', 'qr_code', 'updated_at'])

                notification = self._notify_confirmed(registration)

        except ServiceException as e:
            self.log_warning(f"Approval refused: {e.message}", key=str(registration_key))
            return ServiceResult.from_exception(e)
        except Exception as e:
            self.log_error("Error approving payment", exception=e, key=str(registration_key))
            return ServiceResult.fail(
                "Failed to approve payment",
                error_code="INTERNAL_ERROR",
                status_code=500
            )

        self.log_info(
            f"Payment approved for {registration.registration_id}",
            email_queued=notification['email_queued']
        )
        return ServiceResult.ok(self._confirmation_summary(registration, notification))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _payment_for(self, registration: Registration) -> Payment:
        quote = self.amount_policy.quote_for(registration)
        payment, _ = Payment.objects.select_for_update().get_or_create(
            registration=registration,
            defaults={
                'amount': quote.amount,
                'original_amount': quote.original_amount,
                'discount_percent': quote.discount_percent,
                'currency': quote.currency,
            }
        )
        return payment

    def _capture(self, payment: Payment, payment_id: str) -> None:
        payment.payment_id = payment_id
        payment.status = Payment.Status.CAPTURED
        payment.paid_at = timezone.now()
        payment.save(update_fields=['payment_id', 'status', 'paid_at', 'updated_at'])

    def _notify_confirmed(self, registration: Registration) -> Dict[str, Any]:
        try:
            return self.dispatcher.dispatch_payment_confirmed(registration)
        except Exception as e:
            self.log_error(
                "Could not schedule confirmation email",
                exception=e,
                registration_id=registration.registration_id
            )
            return {'email_queued': False, 'email_recipients': 0}

    @staticmethod
    def _confirmation_summary(registration: Registration,
                              notification: Dict[str, Any]) -> Dict[str, Any]:
        return {
            'registration_id': registration.registration_id,
            'status': registration.status,
            'qr_code': registration.qr_code,
            'email_queued': notification['email_queued'],
            'email_recipients': notification['email_recipients'],
        }
