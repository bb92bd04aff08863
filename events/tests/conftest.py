"""Shared fixtures for the events app tests."""

import typing as t
from datetime import datetime, timedelta

import pytest
from django.contrib.auth.models import User
from django.utils import timezone
from rest_framework.test import APIClient

from events.models import Event, Registration, UserProfile


class ProfileUserFactory:
    """Creates users together with their role profile."""

    def __init__(self) -> None:
        self.counter = 0

    def __call__(self, role: str = "student", **profile: t.Any) -> User:
        self.counter += 1
        username = profile.pop("username", f"{role}{self.counter}")
        user = User.objects.create_user(
            username=username,
            email=f"{username}@example.edu",
            password="pass1234",
            first_name=role.title(),
            last_name=str(self.counter),
        )
        if role == "student":
            profile.setdefault("department", "CSE")
            profile.setdefault("program", "B.Tech")
            profile.setdefault("year", 2)
            profile.setdefault("section", "A")
        else:
            profile.setdefault("employee_id", f"EMP-{self.counter:04d}")
        UserProfile.objects.create(user=user, role=role, **profile)
        return user


@pytest.fixture
def user_factory() -> ProfileUserFactory:
    return ProfileUserFactory()


@pytest.fixture
def student(user_factory: ProfileUserFactory) -> User:
    return user_factory("student", username="student", department="CSE", year=2, section="A")


@pytest.fixture
def faculty(user_factory: ProfileUserFactory) -> User:
    return user_factory("faculty", username="faculty", department="CSE")


@pytest.fixture
def campus_admin(user_factory: ProfileUserFactory) -> User:
    return user_factory("admin", username="campus_admin")


@pytest.fixture
def now() -> datetime:
    return timezone.now()


@pytest.fixture
def event_factory(faculty: User, now: datetime) -> t.Callable[..., Event]:
    """Creates an approved event whose registration window is currently open."""

    def create(**kwargs: t.Any) -> Event:
        defaults: dict[str, t.Any] = {
            "title": "CRT Aptitude Bootcamp",
            "description": "Placement training",
            "category": "CRT",
            "event_type": "training",
            "status": "approved",
            "start_date": now + timedelta(days=7),
            "end_date": now + timedelta(days=7, hours=4),
            "coordinator": faculty,
            "registration_open": True,
            "registration_start": now - timedelta(days=1),
            "registration_end": now + timedelta(days=5),
            "max_participants": 10,
        }
        defaults.update(kwargs)
        return Event.objects.create(**defaults)

    return create


@pytest.fixture
def event(event_factory: t.Callable[..., Event]) -> Event:
    return event_factory()


@pytest.fixture
def confirmed_registration(event: Event, user_factory: ProfileUserFactory) -> Registration:
    """A registration taken through the counter, as the admission service would."""
    registration = Registration.objects.create(event=event, user=user_factory("student"), status="confirmed")
    Event.objects.filter(pk=event.pk).update(current_count=1)
    event.refresh_from_db()
    return registration


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def student_client(student: User) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=student)
    return client


@pytest.fixture
def faculty_client(faculty: User) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=faculty)
    return client


@pytest.fixture
def campus_admin_client(campus_admin: User) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=campus_admin)
    return client
