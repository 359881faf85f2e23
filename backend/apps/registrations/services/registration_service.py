"""
Registration service.
Handles admission of new registrations, lookup and cancellation.
"""
from typing import Mapping, Optional

from django.db import IntegrityError, transaction

from apps.core.services.base import (
    BaseService, ConflictError, NotFoundError, ServiceException,
    ServiceResult, UpstreamError, ValidationError
)
from apps.core.utils.db import ensure_storage_available
from apps.payments.models import Payment
from apps.payments.pricing import AmountPolicy
from apps.registrations.models import (
    Registration, TeamMember, generate_registration_id
)
from apps.registrations.services.lifecycle import (
    Actor, LifecycleEvent, RegistrationLifecycle
)
from apps.registrations.validation import RegistrationRequest, RegistrationValidator

DUPLICATE_MESSAGE = 'You have already registered for this event'


def resolve_registration(key, for_update: bool = False) -> Registration:
    """
    Find a registration by storage id or public registration id.

    Raises:
        ValidationError: blank key
        NotFoundError: no such registration
    """
    key = str(key or '').strip()
    if not key:
        raise ValidationError('Invalid registration id', field='id')

    queryset = Registration.objects.all()
    if for_update:
        queryset = queryset.select_for_update()

    registration = None
    if key.isascii() and key.isdigit():
        registration = queryset.filter(pk=int(key)).first()
    if registration is None:
        registration = queryset.filter(registration_id=key).first()
    if registration is None:
        raise NotFoundError('Registration not found')
    return registration


class RegistrationService(BaseService):
    """
    Service for registration admission and admin housekeeping.
    """

    # Attempts at a fresh registration_id on a unique-index collision
    MAX_ID_ATTEMPTS = 3

    def __init__(self, validator: Optional[RegistrationValidator] = None,
                 amount_policy: Optional[AmountPolicy] = None,
                 dispatcher=None):
        super().__init__()
        self.validator = validator or RegistrationValidator()
        self.amount_policy = amount_policy or AmountPolicy()
        self._dispatcher = dispatcher

    @property
    def dispatcher(self):
        if self._dispatcher is None:
            from apps.notifications.dispatcher import NotificationDispatcher
            self._dispatcher = NotificationDispatcher()
        return self._dispatcher

    def create_registration(self, data: Mapping, certificate=None) -> ServiceResult:
        """
        Validate and store a new registration in pending_payment.

        Args:
            data: Submitted form or JSON fields
            certificate: Optional uploaded IEEE membership certificate

        Returns:
            ServiceResult containing the Registration or error
        """
        try:
            request = self.validator.validate(data, certificate)
            ensure_storage_available()

            if Registration.objects.filter(
                email=request.email, event=request.event
            ).exists():
                raise ConflictError(DUPLICATE_MESSAGE)

            registration = self._store(request)

        except ServiceException as e:
            self.log_warning(
                f"Registration rejected: {e.message}",
                error_code=e.code
            )
            return ServiceResult.from_exception(e)
        except Exception as e:
            self.log_error("Error creating registration", exception=e)
            return ServiceResult.fail(
                "Failed to create registration",
                error_code="INTERNAL_ERROR",
                status_code=500
            )

        self.log_info(
            f"Created registration {registration.registration_id}",
            registration_id=registration.registration_id,
            event=registration.event
        )

        try:
            self.dispatcher.dispatch_registration_received(registration)
        except Exception as e:
            self.log_error(
                "Could not schedule registration email",
                exception=e,
                registration_id=registration.registration_id
            )

        return ServiceResult.ok(registration)

    def _store(self, request: RegistrationRequest) -> Registration:
        quote = self.amount_policy.quote(request.ieee_member == 'yes')

        for attempt in range(1, self.MAX_ID_ATTEMPTS + 1):
            registration = None
            try:
                with transaction.atomic():
                    registration = Registration(
                        registration_id=generate_registration_id(),
                        full_name=request.full_name,
                        email=request.email,
                        phone=request.phone,
                        college=request.college,
                        event=request.event,
                        ieee_member=request.ieee_member,
                        ieee_id=request.ieee_id,
                        is_team=request.is_team,
                        team_name=request.team_name,
                        status=Registration.Status.PENDING_PAYMENT,
                    )
                    certificate = request.ieee_certificate
                    if certificate is not None:
                        registration.ieee_certificate = certificate.file
                        registration.ieee_certificate_content_type = certificate.content_type
                        registration.ieee_certificate_file_name = certificate.file_name
                    registration.save()

                    TeamMember.objects.bulk_create([
                        TeamMember(
                            registration=registration,
                            name=member.name,
                            email=member.email,
                            phone=member.phone,
                            position=position
                        )
                        for position, member in enumerate(request.team_members)
                    ])

                    Payment.objects.create(
                        registration=registration,
                        amount=quote.amount,
                        original_amount=quote.original_amount,
                        discount_percent=quote.discount_percent,
                        currency=quote.currency,
                        status=Payment.Status.CREATED
                    )
                return registration

            except IntegrityError as e:
                if request.ieee_certificate is not None:
                    self._discard_certificate(registration)

                # Lost the (email, event) race to a concurrent submission
                if Registration.objects.filter(
                    email=request.email, event=request.event
                ).exists():
                    raise ConflictError(DUPLICATE_MESSAGE) from e
                self.log_warning(
                    "Registration id collision, retrying",
                    attempt=attempt
                )

        raise UpstreamError('Could not allocate a registration id')

    def _discard_certificate(self, registration: Optional[Registration]) -> None:
        """
        Remove a certificate written by a save whose row was rolled back.

        FileField stores the upload in pre_save, before the INSERT runs.
        The storage backend is called directly so the uploaded file stays
        open for the next attempt.
        """
        if registration is None:
            return
        stored = registration.ieee_certificate
        # _committed is set once FieldFile.save() has written to storage
        if not stored or not getattr(stored, '_committed', False):
            return
        try:
            stored.storage.delete(stored.name)
        except Exception as e:
            self.log_error(
                "Could not remove orphaned IEEE certificate",
                exception=e,
                name=stored.name
            )

    def get_registration(self, key) -> ServiceResult:
        """
        Look up a registration by storage id or public registration id.
        """
        try:
            return ServiceResult.ok(resolve_registration(key))
        except ServiceException as e:
            return ServiceResult.from_exception(e)

    def cancel_registration(self, key, actor: str = Actor.ADMIN) -> ServiceResult:
        """
        Cancel a registration that is not yet confirmed.

        Args:
            key: Storage id or public registration id
            actor: Who is cancelling; only admins may

        Returns:
            ServiceResult containing the Registration or error
        """
        try:
            with transaction.atomic():
                registration = resolve_registration(key, for_update=True)
                RegistrationLifecycle.apply(
                    registration, LifecycleEvent.ADMIN_CANCELLED, actor)
                registration.save(update_fields=['status', 'updated_at'])

        except ServiceException as e:
            self.log_warning(f"Cancel refused: {e.message}", key=str(key))
            return ServiceResult.from_exception(e)

        self.log_info(
            f"Cancelled registration {registration.registration_id}",
            registration_id=registration.registration_id
        )
        return ServiceResult.ok(registration)
