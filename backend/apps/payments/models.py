# apps/payments/models.py

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.registrations.models import Registration


class Payment(models.Model):
    """
    Payment sub-record of a registration.
    Covers both the gateway order and the manual UPI proof.
    """

    class Status(models.TextChoices):
        CREATED = 'created', _('Created')
        CAPTURED = 'captured', _('Captured')
        FAILED = 'failed', _('Failed')

    registration = models.OneToOneField(
        Registration,
        on_delete=models.CASCADE,
        related_name='payment'
    )

    order_id = models.CharField(max_length=100, blank=True, db_index=True)
    payment_id = models.CharField(max_length=100, blank=True)

    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    original_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True
    )
    discount_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0.00')
    )
    currency = models.CharField(max_length=3, default='INR')

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.CREATED
    )

    # Manual UPI proof
    utr_number = models.CharField(max_length=12, blank=True)
    screenshot = models.FileField(
        upload_to='payment_screenshots/%Y/%m/',
        blank=True
    )
    screenshot_content_type = models.CharField(max_length=100, blank=True)
    screenshot_file_name = models.CharField(max_length=255, blank=True)

    paid_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'registration_payments'
        verbose_name = _('Payment')
        verbose_name_plural = _('Payments')

    def __str__(self):
        return f"{self.registration.registration_id} - {self.amount} {self.currency} ({self.status})"

    @property
    def has_screenshot(self):
        return bool(self.screenshot and self.screenshot_content_type)

    @property
    def amount_in_subunits(self):
        """Amount in the smallest currency unit (paise for INR)."""
        return int((self.amount * 100).quantize(Decimal('1')))
