from django.contrib import admin
from .models import Event, Registration, UserProfile


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ['user', 'role', 'department', 'program', 'year', 'section', 'employee_id']
    list_filter = ['role', 'department', 'year']
    search_fields = ['user__username', 'user__email', 'roll_number', 'employee_id']


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ['title', 'coordinator', 'start_date', 'status', 'current_count', 'max_participants']
    list_filter = ['status', 'category', 'event_type', 'registration_open']
    search_fields = ['title', 'description']
    # The counter moves with admissions only
    readonly_fields = ['current_count', 'approved_by', 'approved_at']


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):
    list_display = ['event', 'user', 'status', 'registered_at']
    list_filter = ['status']
    readonly_fields = ['registered_at', 'cancelled_at']
