"""
Process-scoped email service.

One EmailService lives per process. Celery workers start it when a worker
process boots and stop it on shutdown so that the SMTP connection is
reused across messages.
"""
from email.mime.image import MIMEImage
from typing import Dict, List, Optional, Sequence

from django.conf import settings
from django.core.mail import EmailMultiAlternatives, get_connection
from django.template.loader import render_to_string
from django.utils.html import strip_tags

from apps.core.services.base import BaseService

PLACEHOLDER_USERS = {'your-email@gmail.com', 'your_email@gmail.com'}
PLACEHOLDER_PASSWORDS = {'your-app-specific-password', 'your_email_app_password'}

SMTP_BACKEND = 'django.core.mail.backends.smtp.EmailBackend'


class EmailService(BaseService):
    """
    Renders templates and sends HTML email over a shared connection.
    """

    def __init__(self):
        super().__init__()
        self._connection = None

    @property
    def is_running(self) -> bool:
        return self._connection is not None

    def is_configured(self) -> bool:
        """
        SMTP needs real credentials; other backends (console, locmem)
        are always usable.
        """
        if settings.EMAIL_BACKEND != SMTP_BACKEND:
            return True

        user = (settings.EMAIL_HOST_USER or '').strip()
        password = (settings.EMAIL_HOST_PASSWORD or '').strip()
        return bool(
            user and password
            and user not in PLACEHOLDER_USERS
            and password not in PLACEHOLDER_PASSWORDS
        )

    def start(self) -> None:
        """Open the shared mail connection. Safe to call twice."""
        if self._connection is not None:
            return
        if not self.is_configured():
            self.log_warning(
                "Email credentials missing or placeholder; emails will be skipped")
            return

        connection = get_connection(fail_silently=False)
        try:
            connection.open()
        except Exception as e:
            # A later send retries with a fresh connection
            self.log_error("Could not open mail connection", exception=e)
            return
        self._connection = connection

    def stop(self) -> None:
        if self._connection is None:
            return
        try:
            self._connection.close()
        except Exception as e:
            self.log_warning(f"Error closing mail connection: {e}")
        finally:
            self._connection = None

    def render(self, template_name: str, context: Dict) -> str:
        return render_to_string(template_name, context)

    def send(self, to: Sequence[str], subject: str, template_name: str,
             context: Dict, inline_images: Optional[Dict[str, bytes]] = None,
             bcc: Optional[List[str]] = None) -> bool:
        """
        Render a template and send it.

        Args:
            to: Recipient addresses
            subject: Subject line
            template_name: Django template for the HTML body
            context: Template context
            inline_images: content-id -> PNG bytes, referenced as cid:<id>
            bcc: Blind-copy addresses

        Returns:
            True when the message was handed to the mail backend,
            False when email is not configured

        Raises:
            Exception: whatever the mail backend raises on delivery failure
        """
        if not self.is_configured():
            self.log_warning("Email not configured; skipping send", subject=subject)
            return False

        html_body = self.render(template_name, context)

        message = EmailMultiAlternatives(
            subject=subject,
            body=strip_tags(html_body),
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=list(to),
            bcc=bcc or None,
            connection=self._connection or get_connection(fail_silently=False),
        )
        message.attach_alternative(html_body, 'text/html')

        if inline_images:
            message.mixed_subtype = 'related'
            for content_id, data in inline_images.items():
                image = MIMEImage(data, _subtype='png')
                image.add_header('Content-ID', f'<{content_id}>')
                image.add_header('Content-Disposition', 'inline',
                                 filename=f'{content_id}.png')
                message.attach(image)

        try:
            message.send(fail_silently=False)
        except Exception:
            # Next send reconnects
            self.stop()
            raise
        self.log_info(f"Email sent: {subject}", recipients=list(to))
        return True


_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Return this process's EmailService."""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
