from django.dispatch import Signal

# Sent on commit with ``registration``; notification delivery hooks in here.
registration_admitted = Signal()
registration_cancelled = Signal()
