"""Value objects exchanged between the admission components."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .enums import AdmissionStage, EligibilityDimension, RejectionReason, WindowStatus

if TYPE_CHECKING:
    from events.models import Registration


@dataclass(frozen=True, slots=True)
class StudentAttributes:
    """Eligibility-relevant attributes of a student."""

    department: str | None = None
    program: str | None = None
    year: int | None = None
    section: str | None = None

    @property
    def role(self) -> str:
        return "student"

    def value_for(self, dimension: EligibilityDimension) -> str | int | None:
        return {
            EligibilityDimension.DEPARTMENTS: self.department,
            EligibilityDimension.PROGRAMS: self.program,
            EligibilityDimension.YEARS: self.year,
            EligibilityDimension.SECTIONS: self.section,
        }[dimension]


@dataclass(frozen=True, slots=True)
class StaffAttributes:
    """Attributes of an admin, faculty member or trainer."""

    role: str
    employee_id: str
    department: str | None = None
    organization: str | None = None


ApplicantAttributes = StudentAttributes | StaffAttributes


@dataclass(frozen=True, slots=True)
class EligibilityRules:
    """Per-dimension allow-lists. An empty tuple places no restriction."""

    departments: tuple[str, ...] = ()
    programs: tuple[str, ...] = ()
    years: tuple[int, ...] = ()
    sections: tuple[str, ...] = ()

    def allowed(self, dimension: EligibilityDimension) -> tuple[str | int, ...]:
        return getattr(self, dimension.value)


@dataclass(frozen=True, slots=True)
class RegistrationPolicy:
    """The registration sub-record of an event."""

    required: bool = True
    is_open: bool = False
    start: datetime.datetime | None = None
    end: datetime.datetime | None = None
    max_participants: int | None = None
    current_count: int = 0


@dataclass(frozen=True, slots=True)
class EligibilityResult:
    eligible: bool
    dimension: EligibilityDimension | None = None

    @property
    def reason(self) -> str | None:
        if self.eligible or self.dimension is None:
            return None
        return f"{RejectionReason.INELIGIBLE}:{self.dimension}"


@dataclass(frozen=True)
class AdmissionResult:
    """Outcome of one admission request.

    ``admitted`` discriminates the two shapes: an admitted result may carry a
    registration (None when the event does not require registration), a
    rejected one always carries a ``reason`` code.
    """

    admitted: bool
    stage: AdmissionStage
    registration: Registration | None = None
    reason: str | None = None
    registration_required: bool = True
    window: WindowStatus | None = field(default=None, compare=False)

    @classmethod
    def rejected(cls, reason: str, window: WindowStatus | None = None) -> AdmissionResult:
        return cls(admitted=False, stage=AdmissionStage.REJECTED, reason=reason, window=window)
