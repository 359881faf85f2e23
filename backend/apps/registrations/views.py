"""
ViewSet implementations for registrations.
Handles public submission, manual payment proof, QR passes and the admin
review endpoints.
"""
from django.conf import settings
from django.db.models import Prefetch
from django.http import FileResponse, HttpResponse
from django.shortcuts import render
from django.utils import timezone
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.renderers import JSONRenderer, StaticHTMLRenderer
from rest_framework.permissions import AllowAny

from drf_spectacular.utils import (
    extend_schema,
    extend_schema_view,
    OpenApiParameter,
)
from drf_spectacular.types import OpenApiTypes as Types

from apps.core.api import result_error_response, success_response
from apps.core.permissions import IsAdminRole
from apps.core.services.base import NotFoundError
from apps.payments.serializers import ConfirmationSerializer
from apps.payments.services.reconciliation_service import PaymentReconciliationService
from apps.registrations.services.lifecycle import Actor

from .filters import RegistrationFilter
from .models import Registration, TeamMember
from .serializers import (
    IEEECertificateListSerializer,
    RegistrationCreateSerializer,
    RegistrationSerializer,
    UPIProofSerializer,
)
from .services.registration_service import RegistrationService, resolve_registration

STATUS_CLASSES = {
    Registration.Status.CONFIRMED: 'status confirmed',
    Registration.Status.PENDING_PAYMENT: 'status pending',
    Registration.Status.CANCELLED: 'status cancelled',
}


def stream_attachment(field_file, content_type, file_name, default_name):
    """Serve a stored upload inline with its declared type and name."""
    return FileResponse(
        field_file.open('rb'),
        content_type=content_type,
        filename=file_name or default_name,
    )


class RegistrationLookupMixin:
    """
    Registration querysets and lookup by storage id or public id.
    """
    lookup_value_regex = '[^/]+'

    def get_queryset(self):
        return Registration.objects.select_related('payment').prefetch_related(
            Prefetch('team_members', queryset=TeamMember.objects.order_by('position', 'id'))
        )

    def get_object(self):
        registration = resolve_registration(self.kwargs[self.lookup_field])
        self.check_object_permissions(self.request, registration)
        return registration

    def _ieee_certificate_response(self, registration):
        if not registration.has_ieee_certificate:
            raise NotFoundError('IEEE certificate not available')
        return stream_attachment(
            registration.ieee_certificate,
            registration.ieee_certificate_content_type,
            registration.ieee_certificate_file_name,
            'ieee-certificate'
        )

    def _list_response(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        serializer = RegistrationSerializer(queryset, many=True)
        return success_response(data=serializer.data)


@extend_schema_view(
    list=extend_schema(
        summary="List registrations (admin only)",
        description="""
        All registrations, newest first. File contents are never included.
        Filter by `status`, `event`, `ieee_member`, `is_team`; search by
        name, email, registration id or team name.

        **Permissions:** Admin
        """,
        tags=['Registrations']
    ),
    retrieve=extend_schema(
        summary="Get a registration",
        description="""
        Look up a registration by storage id or by public registration id
        (`CHK-...`).

        **Permissions:** Public
        """,
        tags=['Registrations']
    ),
)
class RegistrationViewSet(RegistrationLookupMixin, viewsets.GenericViewSet):
    """
    ViewSet for registration operations.
    Provides submission, lookup, manual payment proof and admin review.
    """
    serializer_class = RegistrationSerializer
    parser_classes = [MultiPartParser, FormParser, JSONParser]
    filter_backends = [DjangoFilterBackend,
                       filters.SearchFilter, filters.OrderingFilter]
    filterset_class = RegistrationFilter
    search_fields = ['full_name', 'email', 'registration_id', 'team_name']
    ordering_fields = ['created_at', 'full_name', 'status']
    ordering = ['-created_at']

    ADMIN_ACTIONS = [
        'list', 'ieee_certificates', 'payment_screenshot',
        'ieee_certificate', 'final_approve', 'cancel'
    ]

    def get_permissions(self):
        """Configure permissions per action."""
        if self.action in self.ADMIN_ACTIONS:
            permission_classes = [IsAdminRole]
        else:
            permission_classes = [AllowAny]
        return [permission() for permission in permission_classes]

    def list(self, request):
        """
        GET /api/v1/registrations/
        """
        return self._list_response(request)

    def retrieve(self, request, pk=None):
        """
        GET /api/v1/registrations/{id}/
        """
        registration = self.get_object()
        return success_response(data=RegistrationSerializer(registration).data)

    @extend_schema(
        summary="Submit a registration",
        description="""
        Register for an event, solo or as a team.

        **Validation:**
        - `full_name`, `email`, `phone`, `college`, `event` are required
        - `phone` is a 10-digit Indian mobile number
        - `ieee_member=yes` needs `ieee_id` and an `ieee_certificate` file
        - `is_team=true` needs `team_name` and at least one team member
        - one registration per email per event (409 otherwise)

        The registration starts in `pending_payment` with the fee set by
        IEEE membership. A registration-received email is queued.

        **Permissions:** Public
        """,
        request={'multipart/form-data': RegistrationCreateSerializer},
        responses={201: RegistrationSerializer},
        tags=['Registrations']
    )
    def create(self, request):
        """
        POST /api/v1/registrations/
        """
        result = RegistrationService().create_registration(
            request.data,
            certificate=request.FILES.get('ieee_certificate')
        )
        if not result.success:
            return result_error_response(result)

        data = RegistrationSerializer(result.data).data
        data['payment_required'] = True
        return success_response(
            data=data,
            message='Registration successful. Please complete the payment.',
            status_code=status.HTTP_201_CREATED
        )

    @extend_schema(
        summary="List IEEE certificate holders (admin only)",
        responses={200: IEEECertificateListSerializer(many=True)},
        tags=['Registrations']
    )
    @action(detail=False, methods=['get'], url_path='ieee-certificates')
    def ieee_certificates(self, request):
        """
        GET /api/v1/registrations/ieee-certificates/
        """
        queryset = (
            Registration.objects.filter(ieee_member='yes')
            .exclude(ieee_certificate='')
            .order_by('-created_at')
        )
        serializer = IEEECertificateListSerializer(queryset, many=True)
        return success_response(data=serializer.data)

    @extend_schema(
        summary="Public QR pass page",
        description="""
        HTML page shown when a QR pass is scanned at the venue: name,
        event, team roster and status. No files or payment data.

        **Permissions:** Public
        """,
        parameters=[
            OpenApiParameter('registration_id', Types.STR, OpenApiParameter.PATH)
        ],
        responses={(200, 'text/html'): Types.STR},
        tags=['Registrations']
    )
    @action(
        detail=False,
        methods=['get'],
        url_path=r'qr/(?P<registration_id>[^/]+)',
        url_name='qr-pass',
        renderer_classes=[StaticHTMLRenderer, JSONRenderer]
    )
    def qr_pass(self, request, registration_id=None):
        """
        GET /api/v1/registrations/qr/{registration_id}/
        """
        registration = (
            Registration.objects.filter(registration_id=registration_id.strip())
            .prefetch_related('team_members')
            .first()
        )
        if registration is None:
            return HttpResponse(
                'Registration not found',
                status=status.HTTP_404_NOT_FOUND,
                content_type='text/plain; charset=utf-8'
            )

        return render(request, 'registrations/qr_pass.html', {
            'registration': registration,
            'team_members': registration.team_members.all(),
            'status_class': STATUS_CLASSES.get(registration.status, 'status'),
            'event_name': settings.EVENT_NAME,
            'year': timezone.now().year,
        })

    @extend_schema(
        summary="Submit manual UPI payment proof",
        description="""
        Attach a 12-digit UTR and a payment screenshot. The registration
        moves to `under_review` for an admin to approve. Resubmitting
        while under review replaces the proof; a confirmed registration
        is left as is.

        **Permissions:** Public
        """,
        request={'multipart/form-data': UPIProofSerializer},
        tags=['Payments']
    )
    @action(detail=True, methods=['post'], url_path='upi-proof')
    def upi_proof(self, request, pk=None):
        """
        POST /api/v1/registrations/{id}/upi-proof/
        """
        result = PaymentReconciliationService().submit_proof(
            pk,
            request.data.get('utr_number'),
            request.FILES.get('payment_screenshot')
        )
        if not result.success:
            return result_error_response(result)

        if result.data['already_confirmed']:
            return success_response(message='Already confirmed')
        return success_response(message='Payment proof submitted successfully')

    @extend_schema(
        summary="View payment screenshot (admin only)",
        responses={(200, 'application/octet-stream'): Types.BINARY},
        tags=['Payments']
    )
    @action(detail=True, methods=['get'], url_path='payment-screenshot')
    def payment_screenshot(self, request, pk=None):
        """
        GET /api/v1/registrations/{id}/payment-screenshot/
        """
        registration = self.get_object()
        payment = getattr(registration, 'payment', None)
        if payment is None or not payment.has_screenshot:
            raise NotFoundError('Screenshot not found')

        return stream_attachment(
            payment.screenshot,
            payment.screenshot_content_type,
            payment.screenshot_file_name,
            'payment-screenshot'
        )

    @extend_schema(
        summary="View IEEE membership certificate (admin only)",
        responses={(200, 'application/octet-stream'): Types.BINARY},
        tags=['Registrations']
    )
    @action(detail=True, methods=['get'], url_path='ieee-certificate')
    def ieee_certificate(self, request, pk=None):
        """
        GET /api/v1/registrations/{id}/ieee-certificate/
        """
        return self._ieee_certificate_response(self.get_object())

    @extend_schema(
        summary="Approve a manual payment (admin only)",
        description="""
        Confirm a registration that is `under_review`: the payment is
        captured, a QR pass is generated and confirmation emails are
        queued for the registrant and every team member.

        The response does not wait for email delivery.

        **Permissions:** Admin
        """,
        request=None,
        responses={200: ConfirmationSerializer},
        tags=['Payments']
    )
    @action(detail=True, methods=['post'], url_path='final-approve')
    def final_approve(self, request, pk=None):
        """
        POST /api/v1/registrations/{id}/final-approve/
        """
        result = PaymentReconciliationService().final_approve(pk, actor=Actor.ADMIN)
        if not result.success:
            return result_error_response(result)

        return success_response(data=result.data, message='Payment approved')

    @extend_schema(
        summary="Cancel a registration (admin only)",
        description="""
        Cancel a registration that is `pending_payment` or `under_review`.
        Confirmed registrations cannot be cancelled.

        **Permissions:** Admin
        """,
        request=None,
        responses={200: RegistrationSerializer},
        tags=['Registrations']
    )
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """
        POST /api/v1/registrations/{id}/cancel/
        """
        result = RegistrationService().cancel_registration(pk, actor=Actor.ADMIN)
        if not result.success:
            return result_error_response(result)

        return success_response(
            data=RegistrationSerializer(result.data).data,
            message='Registration cancelled'
        )


@extend_schema_view(
    list=extend_schema(summary="List registrations", tags=['Admin']),
    retrieve=extend_schema(summary="Get a registration", tags=['Admin']),
)
class AdminRegistrationViewSet(RegistrationLookupMixin, viewsets.GenericViewSet):
    """
    Admin console view of registrations.
    """
    serializer_class = RegistrationSerializer
    permission_classes = [IsAdminRole]
    filter_backends = [DjangoFilterBackend,
                       filters.SearchFilter, filters.OrderingFilter]
    filterset_class = RegistrationFilter
    search_fields = ['full_name', 'email', 'registration_id', 'team_name']
    ordering_fields = ['created_at', 'full_name', 'status']
    ordering = ['-created_at']

    def list(self, request):
        """
        GET /api/v1/admin/registrations/
        """
        return self._list_response(request)

    def retrieve(self, request, pk=None):
        """
        GET /api/v1/admin/registrations/{id}/
        """
        return success_response(data=RegistrationSerializer(self.get_object()).data)

    @extend_schema(
        summary="View IEEE membership certificate",
        responses={(200, 'application/octet-stream'): Types.BINARY},
        tags=['Admin']
    )
    @action(detail=True, methods=['get'], url_path='ieee-certificate')
    def ieee_certificate(self, request, pk=None):
        """
        GET /api/v1/admin/registrations/{id}/ieee-certificate/
        """
        return self._ieee_certificate_response(self.get_object())
