import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='UserProfile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(choices=[('admin', 'Admin'), ('faculty', 'Faculty'), ('student', 'Student'), ('trainer', 'Trainer')], default='student', max_length=20)),
                ('department', models.CharField(blank=True, max_length=100)),
                ('program', models.CharField(blank=True, max_length=50)),
                ('year', models.PositiveSmallIntegerField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(4)])),
                ('section', models.CharField(blank=True, max_length=1, validators=[django.core.validators.RegexValidator('^[A-Z]$', 'Section must be a single uppercase letter.')])),
                ('roll_number', models.CharField(blank=True, max_length=50)),
                ('employee_id', models.CharField(blank=True, max_length=50)),
                ('organization', models.CharField(blank=True, max_length=200)),
                ('contact_number', models.CharField(blank=True, max_length=15)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='profile', related_query_name='profile', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='Event',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField()),
                ('category', models.CharField(choices=[('CRT', 'CRT'), ('FDP', 'FDP'), ('Workshop', 'Workshop'), ('Cultural', 'Cultural'), ('Sports', 'Sports'), ('Seminar', 'Seminar'), ('Conference', 'Conference'), ('Other', 'Other')], default='Other', max_length=20)),
                ('event_type', models.CharField(choices=[('academic', 'Academic'), ('training', 'Training'), ('cultural', 'Cultural'), ('sports', 'Sports'), ('technical', 'Technical')], default='academic', max_length=20)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('pending', 'Pending Approval'), ('approved', 'Approved'), ('rejected', 'Rejected'), ('ongoing', 'Ongoing'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], default='draft', max_length=20)),
                ('start_date', models.DateTimeField()),
                ('end_date', models.DateTimeField()),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('eligible_departments', models.JSONField(blank=True, default=list)),
                ('eligible_programs', models.JSONField(blank=True, default=list)),
                ('eligible_years', models.JSONField(blank=True, default=list)),
                ('eligible_sections', models.JSONField(blank=True, default=list)),
                ('registration_required', models.BooleanField(default=True)),
                ('registration_start', models.DateTimeField(blank=True, null=True)),
                ('registration_end', models.DateTimeField(blank=True, null=True)),
                ('max_participants', models.PositiveIntegerField(blank=True, null=True)),
                ('registration_open', models.BooleanField(default=False)),
                ('current_count', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('approved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='approved_events', to=settings.AUTH_USER_MODEL)),
                ('coordinator', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='coordinated_events', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'indexes': [models.Index(fields=['status', 'start_date'], name='event_status_start_idx')],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('current_count__gte', 0)), name='event_current_count_non_negative'),
                    models.CheckConstraint(condition=models.Q(('max_participants__isnull', True), ('current_count__lte', models.F('max_participants')), _connector='OR'), name='event_current_count_within_capacity'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Registration',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('confirmed', 'Confirmed'), ('waitlisted', 'Waitlisted'), ('cancelled', 'Cancelled')], default='confirmed', max_length=20)),
                ('registered_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('event', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='registrations', to='events.event')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='registrations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'indexes': [
                    models.Index(fields=['event', 'status'], name='registration_event_status_idx'),
                    models.Index(fields=['user', 'status'], name='registration_user_status_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('status', 'cancelled'), _negated=True), fields=('event', 'user'), name='unique_active_registration'),
                ],
            },
        ),
    ]
