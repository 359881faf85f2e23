# apps/registrations/serializers.py

from rest_framework import serializers

from apps.payments.serializers import PaymentSerializer
from .models import Registration, TeamMember


class TeamMemberSerializer(serializers.ModelSerializer):

    class Meta:
        model = TeamMember
        fields = ['name', 'email', 'phone']
        read_only_fields = fields


class RegistrationSerializer(serializers.ModelSerializer):
    """Registration as returned to clients. File contents are never included."""
    team_members = TeamMemberSerializer(many=True, read_only=True)
    payment = PaymentSerializer(read_only=True)
    has_ieee_certificate = serializers.BooleanField(read_only=True)

    class Meta:
        model = Registration
        fields = [
            'id', 'registration_id', 'full_name', 'email', 'phone',
            'college', 'event', 'ieee_member', 'ieee_id',
            'has_ieee_certificate', 'ieee_certificate_content_type',
            'ieee_certificate_file_name', 'is_team', 'team_name',
            'team_members', 'status', 'qr_code', 'payment',
            'registered_at', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class IEEECertificateListSerializer(serializers.ModelSerializer):
    """Registrations holding an IEEE membership certificate."""

    class Meta:
        model = Registration
        fields = [
            'id', 'registration_id', 'full_name', 'email', 'phone',
            'college', 'event', 'ieee_id', 'is_team', 'team_name',
            'created_at'
        ]
        read_only_fields = fields


class RegistrationCreateSerializer(serializers.Serializer):
    """
    Shape of the registration form, for API documentation.
    The submission itself is normalized by RegistrationValidator.
    """
    full_name = serializers.CharField()
    email = serializers.EmailField()
    phone = serializers.CharField(help_text="10 digits, starting 6-9")
    college = serializers.CharField()
    event = serializers.CharField()
    ieee_member = serializers.ChoiceField(choices=['yes', 'no'], required=False)
    ieee_id = serializers.CharField(required=False)
    ieee_certificate = serializers.FileField(
        required=False, help_text="PDF, JPG or PNG up to 5 MB")
    is_team = serializers.BooleanField(required=False)
    team_name = serializers.CharField(required=False)
    team_members = serializers.CharField(
        required=False,
        help_text='JSON list: [{"name": ..., "email": ..., "phone": ...}]'
    )


class UPIProofSerializer(serializers.Serializer):
    """Shape of the manual payment proof form, for API documentation."""
    utr_number = serializers.CharField(help_text="12-digit UPI transaction reference")
    payment_screenshot = serializers.FileField(help_text="PDF, JPG or PNG up to 5 MB")
