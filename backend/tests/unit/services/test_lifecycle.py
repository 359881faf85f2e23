"""
Unit tests for the registration lifecycle state machine.
"""
import pytest

from apps.core.services.base import AuthError, PreconditionFailed
from apps.payments.models import Payment
from apps.registrations.models import Registration
from apps.registrations.services.lifecycle import (
    Actor,
    LifecycleEvent,
    RegistrationLifecycle,
)

Status = Registration.Status


class TestTransitionTable:
    """Test next_status without touching records."""

    @pytest.mark.parametrize('status,event,actor,expected', [
        (Status.PENDING_PAYMENT, LifecycleEvent.GATEWAY_VERIFIED, Actor.GATEWAY, Status.CONFIRMED),
        (Status.PENDING_PAYMENT, LifecycleEvent.PROOF_SUBMITTED, Actor.REGISTRANT, Status.UNDER_REVIEW),
        (Status.UNDER_REVIEW, LifecycleEvent.PROOF_SUBMITTED, Actor.REGISTRANT, Status.UNDER_REVIEW),
        (Status.UNDER_REVIEW, LifecycleEvent.ADMIN_APPROVED, Actor.ADMIN, Status.CONFIRMED),
        (Status.PENDING_PAYMENT, LifecycleEvent.ADMIN_CANCELLED, Actor.ADMIN, Status.CANCELLED),
        (Status.UNDER_REVIEW, LifecycleEvent.ADMIN_CANCELLED, Actor.ADMIN, Status.CANCELLED),
    ])
    def test_legal_transitions(self, status, event, actor, expected):
        assert RegistrationLifecycle.next_status(status, event, actor) == expected

    @pytest.mark.parametrize('status,event,actor', [
        (Status.PENDING_PAYMENT, LifecycleEvent.ADMIN_APPROVED, Actor.ADMIN),
        (Status.CONFIRMED, LifecycleEvent.ADMIN_APPROVED, Actor.ADMIN),
        (Status.CONFIRMED, LifecycleEvent.GATEWAY_VERIFIED, Actor.GATEWAY),
        (Status.CONFIRMED, LifecycleEvent.ADMIN_CANCELLED, Actor.ADMIN),
        (Status.CANCELLED, LifecycleEvent.PROOF_SUBMITTED, Actor.REGISTRANT),
        (Status.CANCELLED, LifecycleEvent.GATEWAY_VERIFIED, Actor.GATEWAY),
    ])
    def test_illegal_transitions(self, status, event, actor):
        with pytest.raises(PreconditionFailed):
            RegistrationLifecycle.next_status(status, event, actor)

    def test_approve_requires_review_message(self):
        with pytest.raises(PreconditionFailed) as exc:
            RegistrationLifecycle.next_status(
                Status.PENDING_PAYMENT, LifecycleEvent.ADMIN_APPROVED, Actor.ADMIN)

        assert exc.value.message == 'Not under review'

    def test_wrong_actor_is_forbidden(self):
        """Test that a registrant cannot approve their own payment."""
        with pytest.raises(AuthError) as exc:
            RegistrationLifecycle.next_status(
                Status.UNDER_REVIEW, LifecycleEvent.ADMIN_APPROVED, Actor.REGISTRANT)

        assert exc.value.status_code == 403

    def test_proof_on_confirmed_is_noop(self):
        assert RegistrationLifecycle.is_noop(Status.CONFIRMED, LifecycleEvent.PROOF_SUBMITTED)
        assert RegistrationLifecycle.next_status(
            Status.CONFIRMED, LifecycleEvent.PROOF_SUBMITTED, Actor.REGISTRANT
        ) == Status.CONFIRMED


@pytest.mark.django_db
class TestApply:
    """Test applying events to registrations."""

    def test_apply_moves_status(self, registration):
        changed = RegistrationLifecycle.apply(
            registration, LifecycleEvent.PROOF_SUBMITTED, Actor.REGISTRANT)

        assert changed is True
        assert registration.status == Status.UNDER_REVIEW

    def test_apply_noop_returns_false(self, registration):
        registration.status = Status.CONFIRMED

        changed = RegistrationLifecycle.apply(
            registration, LifecycleEvent.PROOF_SUBMITTED, Actor.REGISTRANT)

        assert changed is False
        assert registration.status == Status.CONFIRMED

    def test_confirm_requires_captured_payment(self, under_review_registration):
        """Test that confirmation refuses an uncaptured payment."""
        with pytest.raises(PreconditionFailed):
            RegistrationLifecycle.apply(
                under_review_registration,
                LifecycleEvent.ADMIN_APPROVED,
                Actor.ADMIN,
                qr_code='data:image/png;base64,AAAA'
            )

        assert under_review_registration.status == Status.UNDER_REVIEW

    def test_confirm_requires_qr_code(self, under_review_registration):
        under_review_registration.payment.status = Payment.Status.CAPTURED

        with pytest.raises(PreconditionFailed):
            RegistrationLifecycle.apply(
                under_review_registration, LifecycleEvent.ADMIN_APPROVED, Actor.ADMIN)

    def test_confirm_attaches_qr_code(self, under_review_registration):
        under_review_registration.payment.status = Payment.Status.CAPTURED

        RegistrationLifecycle.apply(
            under_review_registration,
            LifecycleEvent.ADMIN_APPROVED,
            Actor.ADMIN,
            qr_code='data:image/png;base64,AAAA'
        )

        assert under_review_registration.status == Status.CONFIRMED
        assert under_review_registration.qr_code == 'data:image/png;base64,AAAA'
