from django.core.management.base import BaseCommand
from django.db import transaction
from django.db.models import Count, Q

from events.models import Event


class Command(BaseCommand):
    help = 'Recomputes each event\'s registration counter from its confirmed registrations'

    def add_arguments(self, parser):
        parser.add_argument('--dry-run', action='store_true', help='Only report mismatches')

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        self.stdout.write('Scanning events for registration count drift...')

        events = Event.objects.annotate(
            confirmed=Count('registrations', filter=Q(registrations__status='confirmed'))
        )

        fixed = 0
        for event in events:
            if event.current_count == event.confirmed:
                continue
            self.stdout.write(
                f'{event.title}: counter {event.current_count}, confirmed {event.confirmed}'
            )
            if not dry_run:
                with transaction.atomic():
                    Event.objects.filter(pk=event.pk).update(current_count=event.confirmed)
            fixed += 1

        verb = 'Found' if dry_run else 'Fixed'
        self.stdout.write(self.style.SUCCESS(f'{verb} {fixed} event(s)'))
