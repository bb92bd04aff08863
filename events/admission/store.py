"""Persistence port of the admission engine and its Django implementation."""

import typing as t

from django.contrib.auth.models import User
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F, Q
from django.utils import timezone

from events.exceptions import (
    AdmissionUnavailableError,
    ConcurrencyConflictError,
    EventNotFoundError,
    UserNotFoundError,
)
from events.models import Event, Registration


class AdmissionStore(t.Protocol):
    """Everything the admission service needs from storage."""

    def atomic(self) -> t.ContextManager[t.Any]: ...

    def get_user(self, user_id: int) -> User: ...

    def get_event(self, event_id: int) -> Event: ...

    def find_active_registration(self, user_id: int, event_id: int) -> Registration | None: ...

    def increment_registration_count(self, event_id: int) -> bool: ...

    def decrement_registration_count(self, event_id: int) -> bool: ...

    def create_registration(self, user: User, event: Event) -> Registration: ...

    def cancel_registration(self, registration: Registration) -> Registration: ...


class DjangoAdmissionStore:
    """AdmissionStore backed by the Django ORM.

    Database failures are translated into the admission error taxonomy so
    callers never see a raw ``DatabaseError``.
    """

    def atomic(self) -> t.ContextManager[t.Any]:
        return transaction.atomic()

    def get_user(self, user_id: int) -> User:
        try:
            return User.objects.select_related('profile').get(pk=user_id)
        except User.DoesNotExist as exc:
            raise UserNotFoundError(f"User {user_id} not found") from exc
        except DatabaseError as exc:
            raise AdmissionUnavailableError("Could not load user") from exc

    def get_event(self, event_id: int) -> Event:
        try:
            return Event.objects.get(pk=event_id)
        except Event.DoesNotExist as exc:
            raise EventNotFoundError(f"Event {event_id} not found") from exc
        except DatabaseError as exc:
            raise AdmissionUnavailableError("Could not load event") from exc

    def find_active_registration(self, user_id: int, event_id: int) -> Registration | None:
        try:
            return (
                Registration.objects.filter(user_id=user_id, event_id=event_id)
                .exclude(status='cancelled')
                .first()
            )
        except DatabaseError as exc:
            raise AdmissionUnavailableError("Could not look up registrations") from exc

    def increment_registration_count(self, event_id: int) -> bool:
        """Take one seat if one is left. False means another request got there first."""
        has_room = Q(max_participants__isnull=True) | Q(current_count__lt=F('max_participants'))
        try:
            updated = (
                Event.objects.filter(has_room, pk=event_id)
                .update(current_count=F('current_count') + 1)
            )
        except IntegrityError as exc:
            raise ConcurrencyConflictError("Capacity constraint rejected the increment") from exc
        except DatabaseError as exc:
            raise AdmissionUnavailableError("Could not update registration count") from exc
        return updated == 1

    def decrement_registration_count(self, event_id: int) -> bool:
        try:
            updated = (
                Event.objects.filter(pk=event_id, current_count__gt=0)
                .update(current_count=F('current_count') - 1)
            )
        except DatabaseError as exc:
            raise AdmissionUnavailableError("Could not update registration count") from exc
        return updated == 1

    def create_registration(self, user: User, event: Event) -> Registration:
        try:
            # Savepoint so a unique violation leaves the outer transaction usable.
            with transaction.atomic():
                return Registration.objects.create(user=user, event=event, status='confirmed')
        except IntegrityError as exc:
            raise ConcurrencyConflictError("An active registration already exists") from exc
        except DatabaseError as exc:
            raise AdmissionUnavailableError("Could not create registration") from exc

    def cancel_registration(self, registration: Registration) -> Registration:
        registration.status = 'cancelled'
        registration.cancelled_at = timezone.now()
        try:
            registration.save(update_fields=['status', 'cancelled_at'])
        except DatabaseError as exc:
            raise AdmissionUnavailableError("Could not cancel registration") from exc
        return registration
