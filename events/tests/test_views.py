import typing as t
from datetime import timedelta

import pytest
from rest_framework.test import APIClient

from events.admission.service import RegistrationAdmissionService
from events.exceptions import ConcurrencyConflictError
from events.models import Event, Registration

pytestmark = pytest.mark.django_db


def register_url(event: Event) -> str:
    return f"/api/events/{event.pk}/register/"


class TestRegister:
    def test_admitted(self, student_client: APIClient, student: t.Any, event: Event) -> None:
        response = student_client.post(register_url(event))

        assert response.status_code == 201
        assert response.data["status"] == "confirmed"
        assert response.data["user"] == student.pk
        event.refresh_from_db()
        assert event.current_count == 1

    def test_already_registered_is_a_conflict(self, student_client: APIClient, event: Event) -> None:
        student_client.post(register_url(event))

        response = student_client.post(register_url(event))

        assert response.status_code == 409
        assert response.data["reason"] == "already_registered"

    def test_full_event_is_a_conflict(self, student_client: APIClient, event_factory: t.Any) -> None:
        event = event_factory(max_participants=1, current_count=1)

        response = student_client.post(register_url(event))

        assert response.status_code == 409
        assert response.data["reason"] == "capacity_exceeded"

    def test_closed_window(self, student_client: APIClient, event_factory: t.Any) -> None:
        event = event_factory(registration_open=False)

        response = student_client.post(register_url(event))

        assert response.status_code == 400
        assert response.data["reason"] == "window_closed"

    def test_not_yet_open(self, student_client: APIClient, event_factory: t.Any, now: t.Any) -> None:
        event = event_factory(registration_start=now + timedelta(days=1))

        response = student_client.post(register_url(event))

        assert response.status_code == 400
        assert response.data["reason"] == "not_yet_open"

    def test_ineligible_names_the_dimension(self, student_client: APIClient, event_factory: t.Any) -> None:
        event = event_factory(eligible_years=[3, 4])

        response = student_client.post(register_url(event))

        assert response.status_code == 403
        assert response.data["reason"] == "ineligible:years"
        assert "years" in response.data["error"]

    def test_registration_not_required(self, student_client: APIClient, event_factory: t.Any) -> None:
        event = event_factory(registration_required=False)

        response = student_client.post(register_url(event))

        assert response.status_code == 200
        assert response.data["status"] == "registration_not_required"
        assert not Registration.objects.filter(event=event).exists()

    def test_unknown_event(self, student_client: APIClient) -> None:
        response = student_client.post("/api/events/987654/register/")
        assert response.status_code == 404

    def test_system_error_is_unavailable(
        self, student_client: APIClient, event: Event, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def lose_every_race(self: t.Any, user_id: int, event_id: int, now: t.Any = None) -> t.NoReturn:
            raise ConcurrencyConflictError("lost")

        monkeypatch.setattr(RegistrationAdmissionService, "admit_registration", lose_every_race)

        response = student_client.post(register_url(event))

        assert response.status_code == 503

    def test_requires_authentication(self, api_client: APIClient, event: Event) -> None:
        response = api_client.post(register_url(event))
        assert response.status_code == 401


class TestCancelRegistration:
    def test_cancel_frees_the_seat(self, student_client: APIClient, event: Event) -> None:
        student_client.post(register_url(event))

        response = student_client.post(f"/api/events/{event.pk}/cancel_registration/")

        assert response.status_code == 200
        assert response.data["status"] == "registration_cancelled"
        assert response.data["registration"]["status"] == "cancelled"
        event.refresh_from_db()
        assert event.current_count == 0

    def test_cancel_without_registration(self, student_client: APIClient, event: Event) -> None:
        response = student_client.post(f"/api/events/{event.pk}/cancel_registration/")
        assert response.status_code == 400


class TestEligibilityPreview:
    def test_open_event(self, student_client: APIClient, event: Event) -> None:
        response = student_client.get(f"/api/events/{event.pk}/eligibility/")

        assert response.status_code == 200
        assert response.data["window"] == "open"
        assert response.data["eligible"] is True
        assert response.data["reason"] is None
        assert response.data["seats_left"] == 10
        assert response.data["can_register"] is True

    def test_preview_does_not_register(self, student_client: APIClient, event: Event) -> None:
        student_client.get(f"/api/events/{event.pk}/eligibility/")
        assert not Registration.objects.filter(event=event).exists()

    def test_ineligible(self, student_client: APIClient, event_factory: t.Any) -> None:
        event = event_factory(eligible_sections=["B", "C"])

        response = student_client.get(f"/api/events/{event.pk}/eligibility/")

        assert response.data["eligible"] is False
        assert response.data["reason"] == "ineligible:sections"
        assert response.data["can_register"] is False

    def test_full_event_cannot_be_registered(self, student_client: APIClient, event_factory: t.Any) -> None:
        event = event_factory(max_participants=2, current_count=2)

        response = student_client.get(f"/api/events/{event.pk}/eligibility/")

        assert response.data["seats_left"] == 0
        assert response.data["can_register"] is False


class TestEventRegistrations:
    def test_coordinator_sees_registrations(
        self, faculty_client: APIClient, event: Event, confirmed_registration: Registration
    ) -> None:
        response = faculty_client.get(f"/api/events/{event.pk}/registrations/")

        assert response.status_code == 200
        assert response.data["count"] == 1
        row = response.data["results"][0]
        assert row["id"] == confirmed_registration.pk
        assert row["department"] == "CSE"

    def test_limit_paginates(self, faculty_client: APIClient, event_factory: t.Any, user_factory: t.Any) -> None:
        event = event_factory(max_participants=None)
        for _ in range(3):
            Registration.objects.create(event=event, user=user_factory("student"))

        response = faculty_client.get(f"/api/events/{event.pk}/registrations/", {"limit": 2})

        assert response.data["count"] == 3
        assert len(response.data["results"]) == 2
        assert response.data["next"] is not None

    def test_students_cannot_list_registrations(self, student_client: APIClient, event: Event) -> None:
        response = student_client.get(f"/api/events/{event.pk}/registrations/")
        assert response.status_code == 403

    def test_other_coordinators_cannot_list_registrations(self, user_factory: t.Any, event: Event) -> None:
        client = APIClient()
        client.force_authenticate(user=user_factory("faculty", department="ECE"))

        response = client.get(f"/api/events/{event.pk}/registrations/")

        assert response.status_code == 403


class TestEventList:
    def test_anonymous_sees_public_events_only(self, api_client: APIClient, event_factory: t.Any) -> None:
        visible = event_factory(status="approved")
        event_factory(status="draft")

        response = api_client.get("/api/events/")

        assert response.status_code == 200
        assert [row["id"] for row in response.data] == [visible.pk]

    def test_staff_see_everything(self, faculty_client: APIClient, event_factory: t.Any) -> None:
        event_factory(status="approved")
        event_factory(status="draft")

        response = faculty_client.get("/api/events/")

        assert len(response.data) == 2

    def test_department_filter_keeps_unrestricted_events(
        self, student_client: APIClient, event_factory: t.Any
    ) -> None:
        open_to_all = event_factory()
        for_cse = event_factory(eligible_departments=["CSE"])
        event_factory(eligible_departments=["MECH"])

        response = student_client.get("/api/events/", {"department": "CSE"})

        assert {row["id"] for row in response.data} == {open_to_all.pk, for_cse.pk}

    def test_serialized_seats_and_registration_status(
        self, student_client: APIClient, event: Event
    ) -> None:
        student_client.post(register_url(event))

        response = student_client.get(f"/api/events/{event.pk}/")

        assert response.data["seats_left"] == 9
        assert response.data["user_registration_status"] == "confirmed"

    def test_students_cannot_create_events(self, student_client: APIClient, now: t.Any) -> None:
        response = student_client.post("/api/events/", {
            "title": "Hackathon",
            "description": "24 hours",
            "start_date": (now + timedelta(days=3)).isoformat(),
            "end_date": (now + timedelta(days=4)).isoformat(),
        }, format="json")
        assert response.status_code == 403

    def test_created_event_starts_as_draft(self, faculty_client: APIClient, faculty: t.Any, now: t.Any) -> None:
        response = faculty_client.post("/api/events/", {
            "title": "Hackathon",
            "description": "24 hours",
            "start_date": (now + timedelta(days=3)).isoformat(),
            "end_date": (now + timedelta(days=4)).isoformat(),
            "eligible_years": [2, 3],
            "max_participants": 100,
        }, format="json")

        assert response.status_code == 201
        event = Event.objects.get(pk=response.data["id"])
        assert event.status == "draft"
        assert event.coordinator == faculty
        assert event.eligible_years == [2, 3]

    def test_invalid_section_rule_is_rejected(self, faculty_client: APIClient, now: t.Any) -> None:
        response = faculty_client.post("/api/events/", {
            "title": "Hackathon",
            "description": "24 hours",
            "start_date": (now + timedelta(days=3)).isoformat(),
            "end_date": (now + timedelta(days=4)).isoformat(),
            "eligible_sections": ["ab"],
        }, format="json")
        assert response.status_code == 400

    def test_capacity_cannot_drop_below_count(
        self, faculty_client: APIClient, event: Event, confirmed_registration: Registration
    ) -> None:
        response = faculty_client.patch(f"/api/events/{event.pk}/", {"max_participants": 0}, format="json")
        assert response.status_code == 400

    def test_delete_cancels(self, faculty_client: APIClient, event: Event) -> None:
        response = faculty_client.delete(f"/api/events/{event.pk}/")

        assert response.status_code == 204
        event.refresh_from_db()
        assert event.status == "cancelled"
        assert event.registration_open is False


class TestRegistrationSwitch:
    def test_coordinator_cannot_open_registration_on_create(
        self, faculty_client: APIClient, now: t.Any
    ) -> None:
        response = faculty_client.post("/api/events/", {
            "title": "Hackathon",
            "description": "24 hours",
            "start_date": (now + timedelta(days=3)).isoformat(),
            "end_date": (now + timedelta(days=4)).isoformat(),
            "registration_open": True,
        }, format="json")

        assert response.status_code == 201
        assert Event.objects.get(pk=response.data["id"]).registration_open is False

    def test_coordinator_cannot_open_registration_on_edit(self, faculty_client: APIClient, event_factory: t.Any) -> None:
        event = event_factory(registration_open=False)

        faculty_client.patch(f"/api/events/{event.pk}/", {"registration_open": True}, format="json")

        event.refresh_from_db()
        assert event.registration_open is False

    def test_draft_event_refuses_registrations(self, student_client: APIClient, event_factory: t.Any) -> None:
        event = event_factory(status="draft", registration_open=True)

        response = student_client.post(register_url(event))

        assert response.status_code == 400
        assert response.data["reason"] == "window_closed"
        assert not Registration.objects.filter(event=event).exists()

    def test_cancelled_event_refuses_registrations(self, faculty_client: APIClient, student_client: APIClient,
                                                   event: Event) -> None:
        faculty_client.delete(f"/api/events/{event.pk}/")

        response = student_client.post(register_url(event))

        assert response.status_code == 400
        assert response.data["reason"] == "window_closed"

    def test_admin_toggles_registration(self, campus_admin_client: APIClient, event_factory: t.Any) -> None:
        event = event_factory(registration_open=False)

        response = campus_admin_client.patch(f"/api/events/{event.pk}/toggle_registration/")

        assert response.status_code == 200
        assert response.data["registration_open"] is True
        event.refresh_from_db()
        assert event.registration_open is True

        response = campus_admin_client.patch(f"/api/events/{event.pk}/toggle_registration/")
        assert response.data["registration_open"] is False

    def test_coordinator_cannot_toggle(self, faculty_client: APIClient, event: Event) -> None:
        response = faculty_client.patch(f"/api/events/{event.pk}/toggle_registration/")
        assert response.status_code == 403

    @pytest.mark.parametrize("event_status", ["draft", "pending", "rejected", "completed", "cancelled"])
    def test_toggle_needs_a_public_event(
        self, campus_admin_client: APIClient, event_factory: t.Any, event_status: str
    ) -> None:
        event = event_factory(status=event_status, registration_open=False)

        response = campus_admin_client.patch(f"/api/events/{event.pk}/toggle_registration/")

        assert response.status_code == 400
        event.refresh_from_db()
        assert event.registration_open is False


class TestTransitions:
    def test_coordinator_submits_for_approval(self, faculty_client: APIClient, event_factory: t.Any) -> None:
        event = event_factory(status="draft")

        response = faculty_client.post(f"/api/events/{event.pk}/transition/", {"status": "pending"})

        assert response.status_code == 200
        assert response.data["status"] == "pending"

    def test_coordinator_cannot_approve(self, faculty_client: APIClient, event_factory: t.Any) -> None:
        event = event_factory(status="pending")

        response = faculty_client.post(f"/api/events/{event.pk}/transition/", {"status": "approved"})

        assert response.status_code == 403

    def test_admin_approves(
        self, campus_admin_client: APIClient, campus_admin: t.Any, event_factory: t.Any
    ) -> None:
        event = event_factory(status="pending")

        response = campus_admin_client.post(f"/api/events/{event.pk}/transition/", {"status": "approved"})

        assert response.status_code == 200
        event.refresh_from_db()
        assert event.approved_by == campus_admin

    def test_illegal_transition(self, campus_admin_client: APIClient, event_factory: t.Any) -> None:
        event = event_factory(status="completed")

        response = campus_admin_client.post(f"/api/events/{event.pk}/transition/", {"status": "approved"})

        assert response.status_code == 400
        assert "completed" in response.data["error"]


class TestProfiles:
    def test_me(self, student_client: APIClient, student: t.Any) -> None:
        response = student_client.get("/api/profiles/me/")

        assert response.status_code == 200
        assert response.data["username"] == "student"
        assert response.data["profile"]["section"] == "A"

    def test_students_only_see_themselves(
        self, student_client: APIClient, student: t.Any, faculty: t.Any
    ) -> None:
        response = student_client.get("/api/profiles/")
        assert [row["user"] for row in response.data] == [student.pk]

    def test_students_cannot_edit_attributes(self, student_client: APIClient, student: t.Any) -> None:
        response = student_client.patch(
            f"/api/profiles/{student.profile.pk}/", {"year": 4}, format="json"
        )
        assert response.status_code == 403

    def test_admin_edits_attributes(self, campus_admin_client: APIClient, student: t.Any) -> None:
        response = campus_admin_client.patch(
            f"/api/profiles/{student.profile.pk}/", {"year": 3, "section": "C"}, format="json"
        )

        assert response.status_code == 200
        student.profile.refresh_from_db()
        assert (student.profile.year, student.profile.section) == (3, "C")

    def test_role_invariants_are_enforced(self, campus_admin_client: APIClient, student: t.Any) -> None:
        response = campus_admin_client.patch(
            f"/api/profiles/{student.profile.pk}/", {"role": "faculty"}, format="json"
        )
        assert response.status_code == 400
        assert "employee_id" in response.data


class TestMyRegistrations:
    def test_lists_only_own_registrations(
        self, student_client: APIClient, event: Event, confirmed_registration: Registration
    ) -> None:
        student_client.post(register_url(event))

        response = student_client.get("/api/registrations/")

        assert response.status_code == 200
        assert len(response.data) == 1
        assert response.data[0]["event_title"] == event.title
