"""
Normalization and validation of inbound registration payloads.

Multipart forms deliver every field as a string (team members as a JSON
string, flags as "true"/"false"); JSON bodies deliver native types. Both
are normalized here into a single typed RegistrationRequest.
"""
import json
import re
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from django.conf import settings

from apps.core.services.base import PayloadTooLarge, ValidationError

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PHONE_RE = re.compile(r'^[6-9][0-9]{9}$')
UTR_LENGTH = 12


@dataclass(frozen=True)
class AttachmentData:
    """An uploaded file with its declared type and original name."""
    file: Any
    content_type: str
    file_name: str
    size: int


@dataclass(frozen=True)
class TeamMemberData:
    name: str
    email: str
    phone: str


@dataclass
class RegistrationRequest:
    """A registration payload that passed every boundary check."""
    full_name: str
    email: str
    phone: str
    college: str
    event: str
    ieee_member: str = 'no'
    ieee_id: str = ''
    ieee_certificate: Optional[AttachmentData] = None
    is_team: bool = False
    team_name: str = ''
    team_members: List[TeamMemberData] = field(default_factory=list)


def as_trimmed_string(value) -> str:
    if value is None:
        return ''
    return str(value).strip()


def is_valid_email(value) -> bool:
    return bool(EMAIL_RE.match(as_trimmed_string(value)))


def normalize_email(value) -> str:
    return as_trimmed_string(value).lower()


def normalize_utr(value) -> str:
    """Keep only the digits of a UPI transaction reference."""
    return re.sub(r'[^0-9]', '', as_trimmed_string(value))


def parse_bool(value, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False

    text = as_trimmed_string(value).lower()
    if text in ('', 'false'):
        return False
    if text == 'true':
        return True
    raise ValidationError(f'{field_name} must be true or false', field=field_name)


class RegistrationValidator:
    """
    Turns a raw submission into a RegistrationRequest or raises
    ValidationError naming the offending field.
    """

    REQUIRED_FIELDS = ('full_name', 'email', 'phone', 'college', 'event')

    def __init__(self, max_upload_size: Optional[int] = None,
                 allowed_content_types: Optional[List[str]] = None):
        self.max_upload_size = max_upload_size or settings.MAX_UPLOAD_SIZE
        self.allowed_content_types = (
            allowed_content_types or settings.ALLOWED_UPLOAD_CONTENT_TYPES
        )

    def validate(self, data: Mapping, certificate=None) -> RegistrationRequest:
        """
        Validate a registration submission.

        Args:
            data: Form or JSON fields
            certificate: Optional uploaded IEEE membership certificate

        Returns:
            Normalized RegistrationRequest

        Raises:
            ValidationError: on any missing or malformed field
            PayloadTooLarge: when the certificate exceeds the size ceiling
        """
        values = {name: as_trimmed_string(data.get(name))
                  for name in self.REQUIRED_FIELDS}

        # Parse before the required check so bad JSON is reported as such
        raw_members = self._parse_team_members(data.get('team_members'))
        is_team = parse_bool(data.get('is_team'), 'is_team')

        missing = [name for name in self.REQUIRED_FIELDS if not values[name]]
        if missing:
            raise ValidationError(
                'All required fields must be filled',
                field=missing[0],
                details={'missing': missing}
            )

        values['email'] = values['email'].lower()
        self.check_email(values['email'], 'email')
        self.check_phone(values['phone'], 'phone')

        request = RegistrationRequest(**values)
        self._apply_ieee(request, data, certificate)

        if is_team:
            team_name = as_trimmed_string(data.get('team_name'))
            if not team_name or not raw_members:
                raise ValidationError(
                    'Team name and at least 1 team member is required',
                    field='team_name' if not team_name else 'team_members'
                )
            request.is_team = True
            request.team_name = team_name
            request.team_members = [self._validate_member(m) for m in raw_members]
        else:
            request.is_team = False
            request.team_name = ''
            request.team_members = []

        return request

    def validate_attachment(self, upload, field_name: str) -> Optional[AttachmentData]:
        """
        Check an uploaded file against the allowed types and size ceiling.
        Returns None when nothing (or an empty file) was uploaded.
        """
        if upload is None or not getattr(upload, 'size', 0):
            return None

        content_type = getattr(upload, 'content_type', '') or ''
        if content_type not in self.allowed_content_types:
            raise ValidationError(
                'Only PDF, JPG, PNG files are allowed', field=field_name)

        if upload.size > self.max_upload_size:
            raise PayloadTooLarge(
                'Uploaded file is too large',
                details={'field': field_name, 'max_size': self.max_upload_size}
            )

        return AttachmentData(
            file=upload,
            content_type=content_type,
            file_name=getattr(upload, 'name', '') or field_name,
            size=upload.size
        )

    @staticmethod
    def check_email(value: str, field_name: str, label: Optional[str] = None):
        if not EMAIL_RE.match(value):
            if label:
                raise ValidationError(
                    f'Invalid email format for team member: {label}', field=field_name)
            raise ValidationError(
                'Please provide a valid email address', field=field_name)

    @staticmethod
    def check_phone(value: str, field_name: str):
        if not PHONE_RE.match(value):
            raise ValidationError(
                'Please provide a valid 10-digit Indian phone number',
                field=field_name
            )

    def _apply_ieee(self, request: RegistrationRequest, data: Mapping, certificate):
        ieee_member = as_trimmed_string(data.get('ieee_member') or 'no').lower()
        if ieee_member not in ('yes', 'no'):
            raise ValidationError('IEEE Member must be yes or no', field='ieee_member')

        request.ieee_member = ieee_member
        if ieee_member == 'no':
            request.ieee_id = ''
            request.ieee_certificate = None
            return

        ieee_id = as_trimmed_string(data.get('ieee_id'))
        if not ieee_id:
            raise ValidationError(
                'IEEE ID is required for IEEE members', field='ieee_id')

        attachment = self.validate_attachment(certificate, 'ieee_certificate')
        if attachment is None or not attachment.content_type:
            raise ValidationError(
                'IEEE Membership Certificate is required for IEEE members',
                field='ieee_certificate'
            )

        request.ieee_id = ieee_id
        request.ieee_certificate = attachment

    @staticmethod
    def _parse_team_members(value) -> List[Any]:
        if value is None or value == '':
            return []
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                raise ValidationError('Invalid team_members data', field='team_members')
        if not isinstance(value, list):
            raise ValidationError('Invalid team_members data', field='team_members')
        return value

    def _validate_member(self, member) -> TeamMemberData:
        if not isinstance(member, Mapping):
            raise ValidationError('Invalid team_members data', field='team_members')

        name = as_trimmed_string(member.get('name'))
        email = normalize_email(member.get('email'))
        phone = as_trimmed_string(member.get('phone'))
        if not name or not email or not phone:
            raise ValidationError(
                'Each team member must have name, email, and phone',
                field='team_members'
            )

        self.check_email(email, 'team_members', label=name)
        self.check_phone(phone, 'team_members')
        return TeamMemberData(name=name, email=email, phone=phone)
