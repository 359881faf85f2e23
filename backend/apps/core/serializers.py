# apps/core/serializers.py

from django.contrib.auth import get_user_model
from rest_framework import serializers

User = get_user_model()


class AdminUserSerializer(serializers.ModelSerializer):
    """Admin identity returned by login, setup and /me."""

    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'role']
        read_only_fields = fields


class AdminSetupSerializer(serializers.Serializer):
    """First-admin bootstrap payload."""
    name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    setup_key = serializers.CharField(
        required=False, allow_blank=True, write_only=True)

    def validate_email(self, value):
        return value.strip().lower()

    def validate_name(self, value):
        return value.strip()


class AdminLoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate_email(self, value):
        return value.strip().lower()
