# apps/registrations/models.py

import random
import time

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from apps.core.services.base import PreconditionFailed


def generate_registration_id():
    """Generate a public registration id: CHK-<epoch millis>-<4 digits>."""
    millis = int(time.time() * 1000)
    return f"CHK-{millis}-{random.randint(1000, 9999)}"


class Registration(models.Model):
    """
    A registrant's submission for one event.
    Status only moves through RegistrationLifecycle; rows are cancelled,
    never deleted.
    """

    class Status(models.TextChoices):
        PENDING_PAYMENT = 'pending_payment', _('Pending Payment')
        UNDER_REVIEW = 'under_review', _('Under Review')
        CONFIRMED = 'confirmed', _('Confirmed')
        CANCELLED = 'cancelled', _('Cancelled')

    IEEE_CHOICES = [
        ('yes', 'Yes'),
        ('no', 'No'),
    ]

    registration_id = models.CharField(
        max_length=32,
        unique=True,
        default=generate_registration_id,
        editable=False
    )

    full_name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=10)
    college = models.CharField(max_length=255)
    event = models.CharField(max_length=200)

    ieee_member = models.CharField(
        max_length=3,
        choices=IEEE_CHOICES,
        default='no'
    )
    ieee_id = models.CharField(max_length=50, blank=True)
    ieee_certificate = models.FileField(
        upload_to='ieee_certificates/%Y/%m/',
        blank=True
    )
    ieee_certificate_content_type = models.CharField(max_length=100, blank=True)
    ieee_certificate_file_name = models.CharField(max_length=255, blank=True)

    is_team = models.BooleanField(default=False)
    team_name = models.CharField(max_length=200, blank=True)

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING_PAYMENT
    )

    # PNG data URI, set at confirmation
    qr_code = models.TextField(blank=True)

    registered_at = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'registrations'
        verbose_name = _('Registration')
        verbose_name_plural = _('Registrations')
        constraints = [
            models.UniqueConstraint(
                fields=['email', 'event'],
                name='unique_registration_per_event'
            ),
        ]
        indexes = [
            models.Index(fields=['status', 'created_at']),
            models.Index(fields=['event']),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.registration_id} - {self.full_name}"

    @property
    def has_ieee_certificate(self):
        return bool(
            self.ieee_member == 'yes'
            and self.ieee_certificate
            and self.ieee_certificate_content_type
        )

    def mark_confirmed(self, qr_code: str):
        """
        Move to confirmed with the given QR code attached.
        The caller saves; the payment must already be captured.
        """
        payment = getattr(self, 'payment', None)
        if payment is None or payment.status != 'captured':
            raise PreconditionFailed('Payment has not been captured')
        if not qr_code:
            raise PreconditionFailed('QR code is required to confirm')

        self.qr_code = qr_code
        self.status = self.Status.CONFIRMED


class TeamMember(models.Model):
    """A member of a team registration, kept in submitted order."""

    registration = models.ForeignKey(
        Registration,
        on_delete=models.CASCADE,
        related_name='team_members'
    )
    name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=10)
    position = models.PositiveSmallIntegerField(default=0)

    class Meta:
        db_table = 'registration_team_members'
        verbose_name = _('Team Member')
        verbose_name_plural = _('Team Members')
        ordering = ['position', 'id']

    def __str__(self):
        return f"{self.name} ({self.registration.registration_id})"
