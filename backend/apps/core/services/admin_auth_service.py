"""
Admin authentication service.
Handles first-admin bootstrap and credential checks for the admin console.
"""
import hmac
from typing import Any, Dict, Optional

from django.conf import settings
from django.contrib.auth import authenticate
from django.db import IntegrityError, transaction
from rest_framework_simplejwt.tokens import RefreshToken

from apps.core.models import User
from apps.core.services.base import (
    AuthError, BaseService, ConflictError, ServiceResult
)


class AdminAuthService(BaseService):
    """
    Service for admin accounts.
    Admins authenticate with email and password and receive a bearer token.
    """

    def setup_status(self) -> Dict[str, bool]:
        return {
            'admin_exists': User.objects.filter(role=User.ROLE_ADMIN).exists(),
            'setup_key_required': bool(settings.ADMIN_SETUP_KEY),
        }

    def setup_admin(self, email: str, password: str, name: str = '',
                    setup_key: Optional[str] = None) -> ServiceResult:
        """
        Create the first admin account.

        Args:
            email: Admin email (already normalized)
            password: Raw password
            name: Display name
            setup_key: Must match ADMIN_SETUP_KEY when one is configured

        Returns:
            ServiceResult containing the admin user and access token
        """
        try:
            if User.objects.filter(role=User.ROLE_ADMIN).exists():
                raise ConflictError('Admin already exists')

            expected_key = settings.ADMIN_SETUP_KEY
            if expected_key:
                if not setup_key:
                    raise AuthError('Setup key is required', status_code=403)
                if not hmac.compare_digest(str(setup_key), str(expected_key)):
                    raise AuthError('Invalid setup key', status_code=403)

            # The unique_setup_admin constraint admits one concurrent winner
            with transaction.atomic():
                user = User.objects.create_admin(
                    email=email,
                    password=password,
                    name=name or 'Admin',
                    is_setup_admin=True
                )

            self.log_info(f"Created admin {user.email}", user_id=user.id)

            return ServiceResult.ok(self._token_payload(user))

        except IntegrityError:
            if User.objects.filter(is_setup_admin=True).exists():
                self.log_warning("Admin setup lost a concurrent race", email=email)
                return ServiceResult.from_exception(
                    ConflictError('Admin already exists'))
            return ServiceResult.from_exception(
                ConflictError('A user with that email already exists.')
            )
        except (AuthError, ConflictError) as e:
            self.log_warning(f"Admin setup refused: {e.message}")
            return ServiceResult.from_exception(e)

    def login(self, email: str, password: str, request=None) -> ServiceResult:
        """
        Check admin credentials and issue a token.

        Unknown email, wrong password and non-admin users all get the
        same 401 response.
        """
        user = authenticate(request, username=email, password=password)
        if not user or user.role != User.ROLE_ADMIN:
            self.log_warning("Failed admin login", email=email)
            return ServiceResult.from_exception(AuthError('Invalid credentials'))

        return ServiceResult.ok(self._token_payload(user))

    def _token_payload(self, user: User) -> Dict[str, Any]:
        token = RefreshToken.for_user(user).access_token
        return {
            'token': str(token),
            'user': user,
        }
