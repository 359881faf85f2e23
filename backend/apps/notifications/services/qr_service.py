"""
QR pass generation.
"""
import base64
from io import BytesIO

import qrcode
from django.conf import settings
from django.urls import reverse

DATA_URI_PREFIX = 'data:image/png;base64,'


def generate_qr_data_uri(payload: str) -> str:
    """Render a payload as a PNG QR code and return it as a data URI."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=10,
        border=4,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buffer = BytesIO()
    img.save(buffer, format='PNG')

    return DATA_URI_PREFIX + base64.b64encode(buffer.getvalue()).decode()


def decode_data_uri(data_uri: str) -> bytes:
    """Return the raw PNG bytes of a data URI produced above."""
    if 'base64,' in data_uri:
        data_uri = data_uri.split('base64,', 1)[1]
    return base64.b64decode(data_uri)


def qr_pass_url(registration_id: str) -> str:
    """Public URL of the QR pass page for a registration."""
    path = reverse('registration-qr-pass', kwargs={'registration_id': registration_id})
    return f"{settings.BACKEND_PUBLIC_URL}{path}"


def generate_registration_qr(registration) -> str:
    """QR code pointing at the registration's public pass page."""
    return generate_qr_data_uri(qr_pass_url(registration.registration_id))
