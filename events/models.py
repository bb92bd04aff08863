from django.db import models
from django.db.models import F, Q
from django.contrib.auth.models import User
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator, RegexValidator
from django.utils import timezone

from .admission.types import EligibilityRules, RegistrationPolicy, StaffAttributes, StudentAttributes
from .exceptions import EventTransitionError


class UserProfile(models.Model):
    ROLES = (
        ('admin', 'Admin'),
        ('faculty', 'Faculty'),
        ('student', 'Student'),
        ('trainer', 'Trainer'),
    )
    STAFF_ROLES = ('admin', 'faculty', 'trainer')

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name='profile',
        related_query_name='profile'
    )
    role = models.CharField(max_length=20, choices=ROLES, default='student')
    department = models.CharField(max_length=100, blank=True)
    program = models.CharField(max_length=50, blank=True)
    year = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(4)]
    )
    section = models.CharField(
        max_length=1,
        blank=True,
        validators=[RegexValidator(r'^[A-Z]$', 'Section must be a single uppercase letter.')]
    )
    roll_number = models.CharField(max_length=50, blank=True)
    employee_id = models.CharField(max_length=50, blank=True)
    organization = models.CharField(max_length=200, blank=True)
    contact_number = models.CharField(max_length=15, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.user.username} ({self.role})"

    @property
    def is_staff_role(self):
        return self.role in self.STAFF_ROLES

    def clean(self):
        errors = {}
        if self.role == 'student':
            if self.year is None:
                errors['year'] = 'Students must have a year.'
            if not self.section:
                errors['section'] = 'Students must have a section.'
        elif self.role in self.STAFF_ROLES and not self.employee_id:
            errors['employee_id'] = 'Staff members must have an employee identifier.'
        if errors:
            raise ValidationError(errors)

    def attributes(self):
        """Return the role-specific attributes used for eligibility."""
        if self.role == 'student':
            return StudentAttributes(
                department=self.department or None,
                program=self.program or None,
                year=self.year,
                section=self.section or None,
            )
        return StaffAttributes(
            role=self.role,
            employee_id=self.employee_id,
            department=self.department or None,
            organization=self.organization or None,
        )


class Event(models.Model):
    STATUS_CHOICES = (
        ('draft', 'Draft'),
        ('pending', 'Pending Approval'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
        ('ongoing', 'Ongoing'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    )

    # Lifecycle edges; completed and cancelled are terminal.
    TRANSITIONS = {
        'draft': ('pending', 'cancelled'),
        'pending': ('approved', 'rejected', 'cancelled'),
        'rejected': ('draft',),
        'approved': ('ongoing', 'cancelled'),
        'ongoing': ('completed', 'cancelled'),
        'completed': (),
        'cancelled': (),
    }

    # Statuses visible to students browsing events.
    PUBLIC_STATUSES = ('approved', 'ongoing')

    CATEGORY_CHOICES = (
        ('CRT', 'CRT'),
        ('FDP', 'FDP'),
        ('Workshop', 'Workshop'),
        ('Cultural', 'Cultural'),
        ('Sports', 'Sports'),
        ('Seminar', 'Seminar'),
        ('Conference', 'Conference'),
        ('Other', 'Other'),
    )

    TYPE_CHOICES = (
        ('academic', 'Academic'),
        ('training', 'Training'),
        ('cultural', 'Cultural'),
        ('sports', 'Sports'),
        ('technical', 'Technical'),
    )

    title = models.CharField(max_length=200)
    description = models.TextField()
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='Other')
    event_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='academic')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft')
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    coordinator = models.ForeignKey(User, on_delete=models.CASCADE, related_name='coordinated_events')
    approved_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='approved_events'
    )
    approved_at = models.DateTimeField(null=True, blank=True)

    eligible_departments = models.JSONField(default=list, blank=True)
    eligible_programs = models.JSONField(default=list, blank=True)
    eligible_years = models.JSONField(default=list, blank=True)
    eligible_sections = models.JSONField(default=list, blank=True)

    registration_required = models.BooleanField(default=True)
    registration_start = models.DateTimeField(null=True, blank=True)
    registration_end = models.DateTimeField(null=True, blank=True)
    max_participants = models.PositiveIntegerField(null=True, blank=True)
    registration_open = models.BooleanField(default=False)
    # Mutated only through conditional updates in the admission store.
    current_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=Q(current_count__gte=0),
                name='event_current_count_non_negative',
            ),
            models.CheckConstraint(
                condition=Q(max_participants__isnull=True) | Q(current_count__lte=F('max_participants')),
                name='event_current_count_within_capacity',
            ),
        ]
        indexes = [
            models.Index(fields=['status', 'start_date'], name='event_status_start_idx'),
        ]

    def __str__(self):
        return self.title

    def clean(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError({'end_date': 'Event cannot end before it starts.'})
        if (self.registration_start and self.registration_end
                and self.registration_end < self.registration_start):
            raise ValidationError({'registration_end': 'Registration cannot close before it opens.'})

    @property
    def eligibility_rules(self):
        return EligibilityRules(
            departments=tuple(self.eligible_departments or ()),
            programs=tuple(self.eligible_programs or ()),
            years=tuple(self.eligible_years or ()),
            sections=tuple(self.eligible_sections or ()),
        )

    @property
    def registration_policy(self):
        return RegistrationPolicy(
            required=self.registration_required,
            is_open=self.accepts_registrations,
            start=self.registration_start,
            end=self.registration_end,
            max_participants=self.max_participants,
            current_count=self.current_count,
        )

    @property
    def accepts_registrations(self):
        """The switch only counts while the event is publicly listed."""
        return self.registration_open and self.status in self.PUBLIC_STATUSES

    def can_transition_to(self, status):
        return status in self.TRANSITIONS.get(self.status, ())

    def transition_to(self, status, actor=None):
        """Move the event along its lifecycle and save it."""
        if not self.can_transition_to(status):
            raise EventTransitionError(
                f"Cannot move event from '{self.status}' to '{status}'."
            )
        self.status = status
        update_fields = ['status', 'updated_at']
        if status == 'approved':
            self.approved_by = actor
            self.approved_at = timezone.now()
            update_fields += ['approved_by', 'approved_at']
        elif status in ('cancelled', 'completed'):
            self.registration_open = False
            update_fields.append('registration_open')
        self.save(update_fields=update_fields)
        return self


class Registration(models.Model):
    REG_STATUS = (
        ('confirmed', 'Confirmed'),
        ('waitlisted', 'Waitlisted'),
        ('cancelled', 'Cancelled'),
    )
    ACTIVE_STATUSES = ('confirmed', 'waitlisted')

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name='registrations')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='registrations')
    status = models.CharField(max_length=20, choices=REG_STATUS, default='confirmed')
    registered_at = models.DateTimeField(default=timezone.now)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['event', 'user'],
                condition=~Q(status='cancelled'),
                name='unique_active_registration',
            ),
        ]
        indexes = [
            models.Index(fields=['event', 'status'], name='registration_event_status_idx'),
            models.Index(fields=['user', 'status'], name='registration_user_status_idx'),
        ]

    def __str__(self):
        return f"{self.user.username} - {self.event.title} ({self.status})"

    @property
    def is_active(self):
        return self.status != 'cancelled'
