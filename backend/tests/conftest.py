"""
Pytest configuration and fixtures for Chakravyuh tests.
Provides reusable test fixtures for models, services, and common test data.
"""
import hashlib
import hmac
import json
import os
import sys
from decimal import Decimal

import django
import pytest

# Add the backend directory to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Configure Django settings before any Django imports
os.environ.setdefault('DJANGO_SETTINGS_MODULE',
                      'chakravyuh.settings.test')
django.setup()

# Now safe to import Django and third-party modules
import factory
from django.core.files.uploadedfile import SimpleUploadedFile
from factory.django import DjangoModelFactory
from faker import Faker
from rest_framework.test import APIClient

from apps.core.models import User
from apps.payments.models import Payment
from apps.registrations.models import Registration, TeamMember

# Initialize Faker for realistic test data
fake = Faker('en_IN')

PDF_BYTES = b'%PDF-1.4\n1 0 obj<<>>endobj\ntrailer<<>>\n%%EOF\n'
PNG_BYTES = (
    b'\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01'
    b'\x08\x06\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\nIDATx\x9cc\x00\x01'
    b'\x00\x00\x05\x00\x01\r\n-\xb4\x00\x00\x00\x00IEND\xaeB`\x82'
)


class UserFactory(DjangoModelFactory):
    """Factory for creating test users."""

    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f'staff{n}@example.com')
    name = factory.Faker('name')
    role = User.ROLE_STAFF
    is_active = True

    @factory.post_generation
    def password(self, create, extracted, **kwargs):
        """Set user password."""
        self.set_password(extracted or 'testpass123')
        if create:
            self.save()


class AdminUserFactory(UserFactory):
    """Factory for event admins."""

    email = factory.Sequence(lambda n: f'admin{n}@example.com')
    role = User.ROLE_ADMIN
    is_staff = True


class RegistrationFactory(DjangoModelFactory):
    """Factory for creating test registrations."""

    class Meta:
        model = Registration

    full_name = factory.Faker('name')
    email = factory.Sequence(lambda n: f'registrant{n}@example.com')
    phone = factory.Sequence(lambda n: f'98765{n % 100000:05d}')
    college = factory.LazyAttribute(lambda _: f"{fake.city()} Institute of Technology")
    event = 'Hackathon'
    ieee_member = 'no'
    is_team = False
    team_name = ''
    status = Registration.Status.PENDING_PAYMENT


class TeamMemberFactory(DjangoModelFactory):
    """Factory for creating team members."""

    class Meta:
        model = TeamMember

    registration = factory.SubFactory(RegistrationFactory, is_team=True, team_name='Code Warriors')
    name = factory.Faker('name')
    email = factory.Sequence(lambda n: f'member{n}@example.com')
    phone = factory.Sequence(lambda n: f'91234{n % 100000:05d}')
    position = factory.Sequence(lambda n: n)


class PaymentFactory(DjangoModelFactory):
    """Factory for registration payments."""

    class Meta:
        model = Payment

    registration = factory.SubFactory(RegistrationFactory)
    amount = Decimal('1200.00')
    original_amount = Decimal('1200.00')
    discount_percent = Decimal('0.00')
    currency = 'INR'
    status = Payment.Status.CREATED


def checkout_signature(order_id, payment_id, secret='test-razorpay-secret'):
    """Signature Razorpay returns to the browser after a successful checkout."""
    return hmac.new(
        secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256
    ).hexdigest()


def make_pdf(name='certificate.pdf', content=PDF_BYTES):
    return SimpleUploadedFile(name, content, content_type='application/pdf')


def make_png(name='screenshot.png', content=PNG_BYTES):
    return SimpleUploadedFile(name, content, content_type='image/png')


def registration_payload(**overrides):
    """Valid solo registration form data."""
    data = {
        'full_name': 'Asha Verma',
        'email': 'asha@example.com',
        'phone': '9876543210',
        'college': 'NIT Trichy',
        'event': 'Hackathon',
        'ieee_member': 'no',
        'is_team': 'false',
    }
    data.update(overrides)
    return data


def team_payload(members=None, **overrides):
    """Valid team registration form data with team_members as a JSON string."""
    if members is None:
        members = [
            {'name': 'Ravi Kumar', 'email': 'ravi@example.com', 'phone': '9123456780'},
            {'name': 'Meera Iyer', 'email': 'meera@example.com', 'phone': '8123456789'},
        ]
    data = registration_payload(
        is_team='true',
        team_name='Code Warriors',
        team_members=json.dumps(members),
    )
    data.update(overrides)
    return data


# Fixtures

@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    """Keep uploaded files out of the source tree."""
    settings.MEDIA_ROOT = str(tmp_path / 'media')
    return settings.MEDIA_ROOT


@pytest.fixture(autouse=True)
def reset_email_service():
    """Each test gets a fresh process-scoped EmailService."""
    from apps.notifications.services import email_service

    email_service._email_service = None
    yield
    if email_service._email_service is not None:
        email_service._email_service.stop()
    email_service._email_service = None


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def admin_user(db):
    return AdminUserFactory(email='admin@example.com', password='AdminPass123!')


@pytest.fixture
def admin_client(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture
def staff_client(db):
    client = APIClient()
    client.force_authenticate(user=UserFactory())
    return client


@pytest.fixture
def registration(db):
    """A solo registration awaiting payment, with its payment record."""
    payment = PaymentFactory(registration__email='solo@example.com')
    return payment.registration


@pytest.fixture
def team_registration(db):
    """A team registration whose roster repeats the registrant's address."""
    registration = RegistrationFactory(
        email='lead@example.com',
        is_team=True,
        team_name='Code Warriors'
    )
    TeamMemberFactory(registration=registration, email='LEAD@example.com', position=0)
    TeamMemberFactory(registration=registration, email='ravi@example.com', position=1)
    TeamMemberFactory(registration=registration, email='meera@example.com', position=2)
    PaymentFactory(registration=registration)
    return registration


@pytest.fixture
def under_review_registration(registration):
    """A registration with a UPI proof waiting for admin approval."""
    payment = registration.payment
    payment.utr_number = '123456789012'
    payment.screenshot = make_png()
    payment.screenshot_content_type = 'image/png'
    payment.screenshot_file_name = 'screenshot.png'
    payment.save()
    registration.status = Registration.Status.UNDER_REVIEW
    registration.save()
    return registration


@pytest.fixture
def pdf_upload():
    return make_pdf()


@pytest.fixture
def png_upload():
    return make_png()


@pytest.fixture
def razorpay_service():
    """Razorpay service in test mode with a known secret."""
    from apps.payments.services.razorpay_service import RazorpayService
    return RazorpayService(key_id='', key_secret='test-razorpay-secret')


@pytest.fixture
def reconciliation_service(razorpay_service):
    from apps.payments.services.reconciliation_service import PaymentReconciliationService
    return PaymentReconciliationService(gateway=razorpay_service)


@pytest.fixture
def registration_service():
    from apps.registrations.services.registration_service import RegistrationService
    return RegistrationService()


@pytest.fixture
def mock_razorpay_order(mocker):
    """Mock a successful Razorpay order creation."""
    mock_client = mocker.MagicMock()
    mock_client.order.create.return_value = {
        'id': 'order_LIVE123456',
        'amount': 120000,
        'currency': 'INR',
        'status': 'created',
    }
    mocker.patch('razorpay.Client', return_value=mock_client)
    return mock_client
