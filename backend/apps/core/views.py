"""
ViewSet implementations for admin authentication.
Handles first-admin setup, login and identity lookup.
"""
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny

from drf_spectacular.utils import extend_schema, OpenApiExample

from .api import result_error_response, success_response
from .permissions import IsAdminRole
from .serializers import (
    AdminLoginSerializer,
    AdminSetupSerializer,
    AdminUserSerializer,
)
from .services.admin_auth_service import AdminAuthService


class AdminAuthViewSet(viewsets.ViewSet):
    """
    ViewSet for admin console authentication.
    Registrants never log in; only admins hold accounts.
    """
    permission_classes = [AllowAny]

    def get_permissions(self):
        """Configure permissions per action."""
        if self.action == 'me':
            return [IsAdminRole()]
        return [AllowAny()]

    @extend_schema(
        summary="Admin setup status",
        description="""
        Report whether an admin account exists yet and whether the
        bootstrap requires a setup key.

        **Permissions:** Public
        """,
        responses={200: {
            'type': 'object',
            'properties': {
                'success': {'type': 'boolean'},
                'admin_exists': {'type': 'boolean'},
                'setup_key_required': {'type': 'boolean'},
            }
        }},
        tags=['Admin']
    )
    @action(detail=False, methods=['get'], url_path='setup', url_name='setup-status')
    def setup_status(self, request):
        """
        GET /api/v1/admin/setup/
        """
        return success_response(**AdminAuthService().setup_status())

    @extend_schema(
        summary="Create the first admin",
        description="""
        Bootstrap the first admin account. Refused with 409 once any admin
        exists. When `ADMIN_SETUP_KEY` is configured, `setup_key` must match.

        **Permissions:** Public (guarded by setup key)
        """,
        request=AdminSetupSerializer,
        examples=[
            OpenApiExample(
                'Setup',
                value={
                    'name': 'Event Admin',
                    'email': 'admin@example.com',
                    'password': 'a-long-password',
                    'setup_key': 'from-env'
                },
                request_only=True
            )
        ],
        tags=['Admin']
    )
    @setup_status.mapping.post
    def setup(self, request):
        """
        POST /api/v1/admin/setup/
        """
        serializer = AdminSetupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AdminAuthService().setup_admin(
            email=serializer.validated_data['email'],
            password=serializer.validated_data['password'],
            name=serializer.validated_data.get('name', ''),
            setup_key=serializer.validated_data.get('setup_key')
        )
        if not result.success:
            return result_error_response(result)

        return success_response(
            token=result.data['token'],
            user=AdminUserSerializer(result.data['user']).data,
            status_code=status.HTTP_201_CREATED
        )

    @extend_schema(
        summary="Admin login",
        description="""
        Authenticate an admin with email and password and return a bearer
        token for the admin endpoints.

        **Permissions:** Public
        """,
        request=AdminLoginSerializer,
        tags=['Admin']
    )
    @action(detail=False, methods=['post'])
    def login(self, request):
        """
        POST /api/v1/admin/login/
        """
        serializer = AdminLoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AdminAuthService().login(
            serializer.validated_data['email'],
            serializer.validated_data['password'],
            request=request
        )
        if not result.success:
            return result_error_response(result)

        return success_response(
            token=result.data['token'],
            user=AdminUserSerializer(result.data['user']).data
        )

    @extend_schema(
        summary="Current admin",
        responses={200: AdminUserSerializer},
        tags=['Admin']
    )
    @action(detail=False, methods=['get'])
    def me(self, request):
        """
        GET /api/v1/admin/me/
        """
        return success_response(user=AdminUserSerializer(request.user).data)
