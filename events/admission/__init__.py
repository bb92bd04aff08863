"""Event eligibility and registration admission engine.

The pure checks (window, eligibility, capacity) have no Django dependencies
beyond settings-free value objects; the service and the store import the ORM
and are loaded on first use.
"""

from .capacity import admit, seats_left
from .eligibility import evaluate_eligibility
from .enums import (
    AdmissionStage,
    CapacityDecision,
    EligibilityDimension,
    RejectionReason,
    WindowStatus,
)
from .types import (
    AdmissionResult,
    EligibilityResult,
    EligibilityRules,
    RegistrationPolicy,
    StaffAttributes,
    StudentAttributes,
)
from .window import check_registration_window


def admit_registration(user_id, event_id, now=None):
    """Admit a registration with the default Django-backed service."""
    from .service import admit_registration as _admit

    return _admit(user_id, event_id, now=now)


__all__ = [
    "AdmissionResult",
    "AdmissionStage",
    "CapacityDecision",
    "EligibilityDimension",
    "EligibilityResult",
    "EligibilityRules",
    "RegistrationPolicy",
    "RejectionReason",
    "StaffAttributes",
    "StudentAttributes",
    "WindowStatus",
    "admit",
    "admit_registration",
    "check_registration_window",
    "evaluate_eligibility",
    "seats_left",
]
