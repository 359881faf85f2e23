"""
Registration lifecycle state machine.

Every status change goes through RegistrationLifecycle.apply so that the
legal transitions, and who may trigger them, live in one table.
"""
from typing import Dict, FrozenSet, Tuple

from apps.core.services.base import AuthError, PreconditionFailed
from apps.registrations.models import Registration

Status = Registration.Status


class LifecycleEvent:
    GATEWAY_VERIFIED = 'gateway_verified'
    PROOF_SUBMITTED = 'proof_submitted'
    ADMIN_APPROVED = 'admin_approved'
    ADMIN_CANCELLED = 'admin_cancelled'


class Actor:
    GATEWAY = 'gateway'
    REGISTRANT = 'registrant'
    ADMIN = 'admin'


class RegistrationLifecycle:
    """
    Transition table keyed by (current status, event).
    """

    TRANSITIONS: Dict[Tuple[str, str], str] = {
        (Status.PENDING_PAYMENT, LifecycleEvent.GATEWAY_VERIFIED): Status.CONFIRMED,
        (Status.PENDING_PAYMENT, LifecycleEvent.PROOF_SUBMITTED): Status.UNDER_REVIEW,
        # Resubmitting replaces the proof under review
        (Status.UNDER_REVIEW, LifecycleEvent.PROOF_SUBMITTED): Status.UNDER_REVIEW,
        (Status.UNDER_REVIEW, LifecycleEvent.ADMIN_APPROVED): Status.CONFIRMED,
        (Status.PENDING_PAYMENT, LifecycleEvent.ADMIN_CANCELLED): Status.CANCELLED,
        (Status.UNDER_REVIEW, LifecycleEvent.ADMIN_CANCELLED): Status.CANCELLED,
    }

    # Accepted as successful no-ops
    IDEMPOTENT: FrozenSet[Tuple[str, str]] = frozenset({
        (Status.CONFIRMED, LifecycleEvent.PROOF_SUBMITTED),
    })

    ALLOWED_ACTORS: Dict[str, FrozenSet[str]] = {
        LifecycleEvent.GATEWAY_VERIFIED: frozenset({Actor.GATEWAY}),
        LifecycleEvent.PROOF_SUBMITTED: frozenset({Actor.REGISTRANT}),
        LifecycleEvent.ADMIN_APPROVED: frozenset({Actor.ADMIN}),
        LifecycleEvent.ADMIN_CANCELLED: frozenset({Actor.ADMIN}),
    }

    FAILURE_MESSAGES = {
        LifecycleEvent.GATEWAY_VERIFIED: 'Registration is not awaiting payment',
        LifecycleEvent.PROOF_SUBMITTED: 'Registration can no longer accept payment proof',
        LifecycleEvent.ADMIN_APPROVED: 'Not under review',
        LifecycleEvent.ADMIN_CANCELLED: 'Registration cannot be cancelled',
    }

    @classmethod
    def is_noop(cls, status: str, event: str) -> bool:
        return (status, event) in cls.IDEMPOTENT

    @classmethod
    def next_status(cls, status: str, event: str, actor: str) -> str:
        """
        Return the status an event leads to, without touching any record.

        Raises:
            AuthError: the actor may not trigger this event (403)
            PreconditionFailed: the event is illegal from this status
        """
        if actor not in cls.ALLOWED_ACTORS.get(event, frozenset()):
            raise AuthError('Not allowed to perform this action', status_code=403)

        if cls.is_noop(status, event):
            return status

        try:
            return cls.TRANSITIONS[(status, event)]
        except KeyError:
            raise PreconditionFailed(
                cls.FAILURE_MESSAGES.get(event, 'Illegal status transition'),
                details={'status': status, 'event': event}
            )

    @classmethod
    def apply(cls, registration: Registration, event: str, actor: str,
              qr_code: str = '') -> bool:
        """
        Move a registration along an event, in memory. The caller saves.

        Confirming requires a captured payment and the QR code to attach.

        Returns:
            True if the status changed, False for an idempotent no-op
        """
        target = cls.next_status(registration.status, event, actor)
        if cls.is_noop(registration.status, event):
            return False

        if target == Status.CONFIRMED:
            registration.mark_confirmed(qr_code)
        else:
            registration.status = target
        return True
