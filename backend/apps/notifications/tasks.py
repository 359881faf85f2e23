"""
Celery tasks for registration emails.
Failures are logged and never retried; email is best-effort and never
changes registration state.
"""
import logging
from urllib.parse import quote

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from .services.email_service import get_email_service
from .services.qr_service import decode_data_uri

logger = logging.getLogger(__name__)


def frontend_base_url() -> str:
    origins = getattr(settings, 'FRONTEND_ORIGINS', None) or [settings.FRONTEND_URL]
    return (origins[0] or 'http://localhost:3000').rstrip('/')


def registration_received_context(registration):
    return {
        'event_name': settings.EVENT_NAME,
        'full_name': registration.full_name,
        'email': registration.email,
        'event': registration.event,
        'registration_id': registration.registration_id,
        'payment_required': True,
        'payment_link': f"{frontend_base_url()}/payment/{registration.pk}",
        'year': timezone.now().year,
    }


def payment_confirmation_context(registration):
    payment = getattr(registration, 'payment', None)
    ticket_url = (
        f"{frontend_base_url()}/registration/success"
        f"?id={quote(registration.registration_id)}"
    )
    return {
        'event_name': settings.EVENT_NAME,
        'full_name': (
            registration.team_name or registration.full_name
            if registration.is_team else registration.full_name
        ),
        'team_name': registration.team_name if registration.is_team else '',
        'event': registration.event,
        'registration_id': registration.registration_id,
        'payment_id': payment.payment_id if payment else '',
        'qr_code': 'cid:qrcode',
        'ticket_url': ticket_url,
        'year': timezone.now().year,
    }


def _load_registration(registration_pk):
    from apps.registrations.models import Registration

    try:
        return Registration.objects.select_related('payment').get(pk=registration_pk)
    except Registration.DoesNotExist:
        logger.warning(f"Registration {registration_pk} not found for email")
        return None


@shared_task(name='send_registration_received_email', ignore_result=True)
def send_registration_received_email(registration_pk):
    """
    Tell the registrant their submission was received and payment is due.

    Args:
        registration_pk: Primary key of the registration
    """
    registration = _load_registration(registration_pk)
    if registration is None:
        return False

    try:
        return get_email_service().send(
            to=[registration.email],
            subject=(
                f"{settings.EVENT_NAME} - Registration Processing "
                f"({registration.registration_id})"
            ),
            template_name='emails/registration_confirmation.html',
            context=registration_received_context(registration)
        )
    except Exception as e:
        logger.error(
            f"Failed to send registration email for {registration.registration_id}: {e}",
            exc_info=e
        )
        return False


@shared_task(name='send_payment_confirmation_email', ignore_result=True)
def send_payment_confirmation_email(registration_pk, recipient):
    """
    Send the confirmation email with the QR pass inlined as cid:qrcode.

    Args:
        registration_pk: Primary key of the registration
        recipient: A single recipient address
    """
    registration = _load_registration(registration_pk)
    if registration is None:
        return False

    try:
        inline_images = {}
        if registration.qr_code:
            inline_images['qrcode'] = decode_data_uri(registration.qr_code)

        return get_email_service().send(
            to=[recipient],
            subject=f"{settings.EVENT_NAME} - Registration Confirmed",
            template_name='emails/payment_confirmation.html',
            context=payment_confirmation_context(registration),
            inline_images=inline_images
        )
    except Exception as e:
        logger.error(
            f"Payment confirmation email to {recipient} failed "
            f"for {registration.registration_id}: {e}",
            exc_info=e
        )
        return False
