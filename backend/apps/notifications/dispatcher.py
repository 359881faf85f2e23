"""
Notification dispatcher.

Schedules confirmation emails after the surrounding transaction commits.
Each recipient gets its own Celery task, so one bad address or SMTP
failure never blocks the others, and nothing here can fail the request
that triggered it.
"""
from functools import partial
from typing import Dict, List

from django.db import transaction

from apps.core.services.base import BaseService
from apps.registrations.validation import is_valid_email, normalize_email

from .services.email_service import EmailService, get_email_service
from .tasks import send_payment_confirmation_email, send_registration_received_email


class NotificationDispatcher(BaseService):
    """
    Fire-and-forget delivery of registration emails.
    """

    def __init__(self, email_service: EmailService = None):
        super().__init__()
        self.email_service = email_service or get_email_service()

    @staticmethod
    def collect_recipients(registration) -> List[str]:
        """
        Registrant first, then team members; lower-cased, de-duplicated
        and limited to structurally valid addresses.
        """
        candidates = [registration.email]
        if registration.is_team:
            candidates.extend(m.email for m in registration.team_members.all())

        recipients = []
        for candidate in candidates:
            email = normalize_email(candidate)
            if email and is_valid_email(email) and email not in recipients:
                recipients.append(email)
        return recipients

    def dispatch_registration_received(self, registration) -> bool:
        """Queue the registration-received email to the registrant."""
        if not self.email_service.is_configured():
            self.log_warning(
                "Email not configured; registration email skipped",
                registration_id=registration.registration_id
            )
            return False

        transaction.on_commit(partial(
            self._enqueue, send_registration_received_email, registration.pk
        ))
        return True

    def dispatch_payment_confirmed(self, registration) -> Dict[str, object]:
        """
        Queue the confirmation email (with inline QR) to every recipient.

        Returns:
            Dict with email_queued and email_recipients
        """
        recipients = self.collect_recipients(registration)
        email_queued = bool(self.email_service.is_configured() and recipients)

        if email_queued:
            for recipient in recipients:
                transaction.on_commit(partial(
                    self._enqueue, send_payment_confirmation_email,
                    registration.pk, recipient
                ))
        else:
            self.log_warning(
                "Confirmation email not queued",
                registration_id=registration.registration_id,
                recipients=len(recipients)
            )

        return {
            'email_queued': email_queued,
            'email_recipients': len(recipients),
        }

    def _enqueue(self, task, *args) -> None:
        try:
            task.delay(*args)
        except Exception as e:
            self.log_error(
                f"Could not enqueue {task.name}",
                exception=e,
                args=args
            )
