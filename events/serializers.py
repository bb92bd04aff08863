from rest_framework import serializers
from django.contrib.auth.models import User
from .admission import seats_left
from .models import Event, Registration, UserProfile


class UserProfileSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True)
    email = serializers.CharField(source='user.email', read_only=True)

    class Meta:
        model = UserProfile
        fields = [
            'id', 'user', 'username', 'email', 'role', 'department', 'program', 'year',
            'section', 'roll_number', 'employee_id', 'organization', 'contact_number', 'created_at',
        ]
        read_only_fields = ['user', 'created_at']

    def validate(self, attrs):
        """Apply the role invariants to the profile as it will be saved."""
        instance = self.instance or UserProfile()
        merged = {
            field: attrs.get(field, getattr(instance, field))
            for field in ('role', 'year', 'section', 'employee_id')
        }
        if merged['role'] == 'student':
            errors = {}
            if merged['year'] is None:
                errors['year'] = 'Students must have a year.'
            if not merged['section']:
                errors['section'] = 'Students must have a section.'
            if errors:
                raise serializers.ValidationError(errors)
        elif merged['role'] in UserProfile.STAFF_ROLES and not merged['employee_id']:
            raise serializers.ValidationError({'employee_id': 'Staff members must have an employee identifier.'})
        return attrs


class UserSerializer(serializers.ModelSerializer):
    profile = UserProfileSerializer(read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'profile']


class EventSerializer(serializers.ModelSerializer):
    coordinator_name = serializers.CharField(source='coordinator.get_full_name', read_only=True)
    eligible_departments = serializers.ListField(
        child=serializers.CharField(max_length=100), required=False, default=list
    )
    eligible_programs = serializers.ListField(
        child=serializers.CharField(max_length=50), required=False, default=list
    )
    eligible_years = serializers.ListField(
        child=serializers.IntegerField(min_value=1, max_value=4), required=False, default=list
    )
    eligible_sections = serializers.ListField(
        child=serializers.RegexField(r'^[A-Z]$'), required=False, default=list
    )
    seats_left = serializers.SerializerMethodField()
    user_registration_status = serializers.SerializerMethodField()

    class Meta:
        model = Event
        fields = '__all__'
        read_only_fields = [
            'status', 'coordinator', 'approved_by', 'approved_at', 'registration_open', 'current_count',
        ]

    def get_seats_left(self, obj):
        return seats_left(obj.current_count, obj.max_participants)

    def get_user_registration_status(self, obj):
        request = self.context.get('request')
        if request and request.user.is_authenticated:
            registration = (
                Registration.objects.filter(event=obj, user=request.user)
                .exclude(status='cancelled')
                .first()
            )
            return registration.status if registration else None
        return None

    def validate(self, attrs):
        def current(field):
            if field in attrs:
                return attrs[field]
            return getattr(self.instance, field, None)

        start, end = current('start_date'), current('end_date')
        if start and end and end < start:
            raise serializers.ValidationError({'end_date': 'Event cannot end before it starts.'})
        reg_start, reg_end = current('registration_start'), current('registration_end')
        if reg_start and reg_end and reg_end < reg_start:
            raise serializers.ValidationError({'registration_end': 'Registration cannot close before it opens.'})
        max_participants = current('max_participants')
        if self.instance and max_participants is not None and max_participants < self.instance.current_count:
            raise serializers.ValidationError(
                {'max_participants': 'Cannot be lower than the number of confirmed registrations.'}
            )
        return attrs


class RegistrationSerializer(serializers.ModelSerializer):
    event_title = serializers.CharField(source='event.title', read_only=True)
    user_name = serializers.CharField(source='user.get_full_name', read_only=True)

    class Meta:
        model = Registration
        fields = ['id', 'event', 'event_title', 'user', 'user_name', 'status', 'registered_at', 'cancelled_at']
        read_only_fields = fields


class EventRegistrationSerializer(RegistrationSerializer):
    """Registration row as seen by the event's coordinator."""

    user_email = serializers.CharField(source='user.email', read_only=True)
    roll_number = serializers.CharField(source='user.profile.roll_number', read_only=True, default='')
    department = serializers.CharField(source='user.profile.department', read_only=True, default='')

    class Meta(RegistrationSerializer.Meta):
        fields = RegistrationSerializer.Meta.fields + ['user_email', 'roll_number', 'department']
        read_only_fields = fields


class EventTransitionSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Event.STATUS_CHOICES)
