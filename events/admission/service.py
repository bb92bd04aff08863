"""RegistrationAdmissionService: window, eligibility and capacity in one admission."""

import datetime
import logging
import typing as t

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from events import signals
from events.exceptions import ConcurrencyConflictError
from events.models import Registration
from events.utils import applicant_attributes

from .capacity import admit
from .eligibility import evaluate_eligibility
from .enums import AdmissionStage, CapacityDecision, RejectionReason, WindowStatus
from .store import AdmissionStore, DjangoAdmissionStore
from .types import AdmissionResult
from .window import check_registration_window

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3

WINDOW_REJECTIONS = {
    WindowStatus.CLOSED: RejectionReason.WINDOW_CLOSED,
    WindowStatus.NOT_YET_OPEN: RejectionReason.NOT_YET_OPEN,
}


class RegistrationAdmissionService:
    """Admit or reject one registration request.

    Every attempt runs in a single transaction: the duplicate check, the
    capacity check, the conditional increment and the record creation commit
    together. When the conditional write loses a race the whole decision is
    retried from fresh reads, up to ``max_attempts`` times.
    """

    def __init__(
        self,
        store: AdmissionStore | None = None,
        clock: t.Callable[[], datetime.datetime] | None = None,
        max_attempts: int | None = None,
    ) -> None:
        """Initialize the service."""
        self.store = store or DjangoAdmissionStore()
        self.clock = clock or timezone.now
        if max_attempts is None:
            max_attempts = getattr(settings, 'ADMISSION_MAX_ATTEMPTS', DEFAULT_MAX_ATTEMPTS)
        self.max_attempts = max(1, int(max_attempts))

    def admit_registration(
        self, user_id: int, event_id: int, now: datetime.datetime | None = None
    ) -> AdmissionResult:
        """Process a registration request for ``user_id`` on ``event_id``.

        Returns:
            AdmissionResult

        Raises:
            AdmissionNotFoundError: the user or the event does not exist.
            AdmissionSystemError: storage failed, or every attempt lost a race.
        """
        now = now or self.clock()
        for attempt in range(1, self.max_attempts + 1):
            try:
                with self.store.atomic():
                    result = self._attempt(user_id, event_id, now)
            except ConcurrencyConflictError:
                logger.warning(
                    "Admission conflict for user %s on event %s (attempt %d/%d)",
                    user_id, event_id, attempt, self.max_attempts,
                )
                continue
            self._log_outcome(user_id, event_id, result)
            if result.registration is not None:
                registration = result.registration
                transaction.on_commit(
                    lambda: signals.registration_admitted.send(sender=self.__class__, registration=registration)
                )
            return result

        logger.error("Admission for user %s on event %s gave up after %d attempts",
                     user_id, event_id, self.max_attempts)
        raise ConcurrencyConflictError(
            f"Could not admit user {user_id} to event {event_id} after {self.max_attempts} attempts"
        )

    def _attempt(self, user_id: int, event_id: int, now: datetime.datetime) -> AdmissionResult:
        user = self.store.get_user(user_id)
        event = self.store.get_event(event_id)

        if self.store.find_active_registration(user.pk, event.pk) is not None:
            return AdmissionResult.rejected(RejectionReason.ALREADY_REGISTERED)

        policy = event.registration_policy
        window = check_registration_window(policy, now)
        if window in WINDOW_REJECTIONS:
            return AdmissionResult.rejected(WINDOW_REJECTIONS[window], window=window)

        eligibility = evaluate_eligibility(applicant_attributes(user), event.eligibility_rules)
        if not eligibility.eligible:
            return AdmissionResult.rejected(eligibility.reason, window=window)

        if window == WindowStatus.NOT_REQUIRED:
            return AdmissionResult(
                admitted=True,
                stage=AdmissionStage.ADMITTED,
                registration_required=False,
                window=window,
            )

        if admit(policy.current_count, policy.max_participants) == CapacityDecision.REJECT:
            return AdmissionResult.rejected(RejectionReason.CAPACITY_EXCEEDED, window=window)

        if not self.store.increment_registration_count(event.pk):
            # Someone else took the seat between our read and our write.
            raise ConcurrencyConflictError(f"Lost capacity race on event {event.pk}")
        registration = self.store.create_registration(user, event)
        return AdmissionResult(
            admitted=True,
            stage=AdmissionStage.ADMITTED,
            registration=registration,
            window=window,
        )

    def cancel_registration(self, user_id: int, event_id: int) -> Registration | None:
        """Cancel the user's active registration and free its seat.

        Returns None when there is nothing to cancel.
        """
        with self.store.atomic():
            user = self.store.get_user(user_id)
            event = self.store.get_event(event_id)
            registration = self.store.find_active_registration(user.pk, event.pk)
            if registration is None:
                return None
            was_confirmed = registration.status == 'confirmed'
            self.store.cancel_registration(registration)
            if was_confirmed and not self.store.decrement_registration_count(event.pk):
                logger.warning("Registration count of event %s was already zero", event.pk)

        logger.info("Registration %s cancelled by user %s", registration.pk, user_id)
        transaction.on_commit(
            lambda: signals.registration_cancelled.send(sender=self.__class__, registration=registration)
        )
        return registration

    @staticmethod
    def _log_outcome(user_id: int, event_id: int, result: AdmissionResult) -> None:
        if result.admitted:
            logger.info("User %s admitted to event %s (registration=%s)", user_id, event_id,
                        result.registration.pk if result.registration else None)
        else:
            logger.info("User %s rejected from event %s: %s", user_id, event_id, result.reason)


def admit_registration(user_id: int, event_id: int, now: datetime.datetime | None = None) -> AdmissionResult:
    """Admit a registration with the default Django-backed service."""
    return RegistrationAdmissionService().admit_registration(user_id, event_id, now=now)

