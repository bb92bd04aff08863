from django.core.management.base import BaseCommand
from django.contrib.auth.models import User
from django.db import transaction
from django.utils import timezone
from datetime import timedelta

from events.admission.service import RegistrationAdmissionService
from events.models import Event, UserProfile


class Command(BaseCommand):
    help = "Seeds demo users and events with registration windows for local testing."

    def handle(self, *args, **options):
        self.stdout.write(self.style.NOTICE("Starting demo data seeding..."))
        with transaction.atomic():
            users = self._seed_users()
            events = self._seed_events(users["faculty"], users["admin"])
        self._seed_registrations(users["student"], events)
        self.stdout.write(self.style.SUCCESS("Demo data seeded successfully."))

    def _create_user(self, username, first_name, last_name, profile, is_staff=False, is_superuser=False):
        user, created = User.objects.get_or_create(
            username=username,
            defaults={
                "email": f"{username}@example.edu",
                "first_name": first_name,
                "last_name": last_name,
                "is_staff": is_staff,
                "is_superuser": is_superuser,
            },
        )
        if created:
            user.set_password("123456")
            user.save()
        UserProfile.objects.update_or_create(user=user, defaults=profile)
        return user

    def _seed_users(self):
        return {
            "admin": self._create_user(
                "admin", "System", "Admin",
                {"role": "admin", "employee_id": "EMP-0001", "department": "Administration"},
                is_staff=True, is_superuser=True,
            ),
            "faculty": self._create_user(
                "faculty", "Event", "Coordinator",
                {"role": "faculty", "employee_id": "EMP-0042", "department": "CSE"},
            ),
            "trainer": self._create_user(
                "trainer", "Guest", "Trainer",
                {"role": "trainer", "employee_id": "TRN-0007", "organization": "Acme Training"},
            ),
            "student": self._create_user(
                "student", "Sample", "Student",
                {
                    "role": "student",
                    "department": "CSE",
                    "program": "B.Tech",
                    "year": 2,
                    "section": "A",
                    "roll_number": "21CSE001",
                },
            ),
        }

    def _seed_events(self, coordinator, approver):
        now = timezone.now()
        events_seed = [
            {
                "title": "CRT Aptitude Bootcamp",
                "description": "Campus recruitment training for second and third year students.",
                "category": "CRT",
                "event_type": "training",
                "days_from_now": 10,
                "max_participants": 60,
                "eligible_departments": ["CSE", "IT", "ECE"],
                "eligible_years": [2, 3],
            },
            {
                "title": "Faculty Development Programme on ML",
                "description": "Five-day FDP on applied machine learning.",
                "category": "FDP",
                "event_type": "academic",
                "days_from_now": 20,
                "max_participants": 40,
                "eligible_departments": ["CSE", "AIDS"],
                "eligible_years": [],
            },
            {
                "title": "Annual Cultural Night",
                "description": "Music, dance and drama from every department.",
                "category": "Cultural",
                "event_type": "cultural",
                "days_from_now": 30,
                "max_participants": None,
                "eligible_departments": [],
                "eligible_years": [],
            },
        ]

        created_events = []
        for data in events_seed:
            start = now + timedelta(days=data["days_from_now"])
            event, _ = Event.objects.get_or_create(
                title=data["title"],
                defaults={
                    "description": data["description"],
                    "category": data["category"],
                    "event_type": data["event_type"],
                    "start_date": start,
                    "end_date": start + timedelta(hours=6),
                    "coordinator": coordinator,
                    "eligible_departments": data["eligible_departments"],
                    "eligible_years": data["eligible_years"],
                    "max_participants": data["max_participants"],
                    "registration_open": True,
                    "registration_start": now - timedelta(days=1),
                    "registration_end": start - timedelta(days=1),
                },
            )
            if event.status == "draft":
                event.transition_to("pending", actor=coordinator)
                event.transition_to("approved", actor=approver)
            created_events.append(event)

        return created_events

    def _seed_registrations(self, student, events):
        service = RegistrationAdmissionService()
        for event in events:
            result = service.admit_registration(student.pk, event.pk)
            outcome = "admitted" if result.admitted else result.reason
            self.stdout.write(f"  {student.username} -> {event.title}: {outcome}")
