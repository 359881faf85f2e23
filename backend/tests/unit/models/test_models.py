"""
Unit tests for registration and payment models.
"""
import re
from decimal import Decimal

import pytest
from django.db import IntegrityError

from apps.core.models import User
from apps.core.services.base import PreconditionFailed
from apps.payments.models import Payment
from apps.registrations.models import Registration, generate_registration_id
from tests.conftest import PaymentFactory, RegistrationFactory, TeamMemberFactory


class TestRegistrationId:

    def test_format(self):
        assert re.match(r'^CHK-\d{13}-\d{4}$', generate_registration_id())


@pytest.mark.django_db
class TestRegistration:
    """Test the Registration model."""

    def test_default_status_and_id(self):
        registration = RegistrationFactory()

        assert registration.status == Registration.Status.PENDING_PAYMENT
        assert registration.registration_id.startswith('CHK-')

    def test_one_registration_per_email_and_event(self):
        RegistrationFactory(email='asha@example.com', event='Hackathon')

        with pytest.raises(IntegrityError):
            RegistrationFactory(email='asha@example.com', event='Hackathon')

    def test_team_members_in_submitted_order(self):
        registration = RegistrationFactory(is_team=True, team_name='Bytes')
        TeamMemberFactory(registration=registration, name='Second', position=1)
        TeamMemberFactory(registration=registration, name='First', position=0)

        assert [m.name for m in registration.team_members.all()] == ['First', 'Second']

    def test_has_ieee_certificate_needs_membership(self):
        registration = RegistrationFactory(
            ieee_member='no',
            ieee_certificate='ieee_certificates/cert.pdf',
            ieee_certificate_content_type='application/pdf'
        )

        assert registration.has_ieee_certificate is False

    def test_mark_confirmed(self):
        payment = PaymentFactory(status=Payment.Status.CAPTURED)
        registration = payment.registration

        registration.mark_confirmed('data:image/png;base64,AAAA')

        assert registration.status == Registration.Status.CONFIRMED
        assert registration.qr_code == 'data:image/png;base64,AAAA'

    def test_mark_confirmed_needs_capture(self):
        registration = PaymentFactory().registration

        with pytest.raises(PreconditionFailed):
            registration.mark_confirmed('data:image/png;base64,AAAA')

    def test_mark_confirmed_without_payment(self):
        registration = RegistrationFactory()

        with pytest.raises(PreconditionFailed):
            registration.mark_confirmed('data:image/png;base64,AAAA')


@pytest.mark.django_db
class TestPayment:

    def test_amount_in_subunits(self):
        payment = PaymentFactory(amount=Decimal('999.50'))

        assert payment.amount_in_subunits == 99950

    def test_has_screenshot(self):
        payment = PaymentFactory()

        assert payment.has_screenshot is False


@pytest.mark.django_db
class TestUserManager:

    def test_create_admin(self):
        user = User.objects.create_admin('Admin@Example.com', 'secret-pass')

        assert user.email == 'admin@example.com'
        assert user.is_admin is True
        assert user.check_password('secret-pass')

    def test_single_setup_admin(self):
        User.objects.create_admin('first@example.com', 'secret-pass', is_setup_admin=True)
        User.objects.create_admin('second@example.com', 'secret-pass')

        with pytest.raises(IntegrityError):
            User.objects.create_admin('third@example.com', 'secret-pass', is_setup_admin=True)

    def test_regular_user_is_not_admin(self):
        user = User.objects.create_user('staff@example.com', 'secret-pass')

        assert user.role == User.ROLE_STAFF
        assert user.is_admin is False
