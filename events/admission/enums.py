"""Enums for the registration admission engine."""

from enum import StrEnum


class WindowStatus(StrEnum):
    """State of an event's registration window at a given instant."""

    OPEN = "open"
    NOT_YET_OPEN = "not_yet_open"
    CLOSED = "closed"
    NOT_REQUIRED = "not_required"


class EligibilityDimension(StrEnum):
    """Eligibility dimensions, declared in evaluation order."""

    DEPARTMENTS = "departments"
    PROGRAMS = "programs"
    YEARS = "years"
    SECTIONS = "sections"


class CapacityDecision(StrEnum):
    CONFIRM = "confirm"
    REJECT = "reject"


class AdmissionStage(StrEnum):
    """Stages a registration request moves through."""

    RECEIVED = "received"
    WINDOW_CHECKED = "window_checked"
    ELIGIBILITY_CHECKED = "eligibility_checked"
    CAPACITY_CHECKED = "capacity_checked"
    ADMITTED = "admitted"
    REJECTED = "rejected"


class RejectionReason(StrEnum):
    """Stable machine-readable codes for business rejections."""

    ALREADY_REGISTERED = "already_registered"
    WINDOW_CLOSED = "window_closed"
    NOT_YET_OPEN = "not_yet_open"
    INELIGIBLE = "ineligible"
    CAPACITY_EXCEEDED = "capacity_exceeded"


REJECTION_MESSAGES = {
    RejectionReason.ALREADY_REGISTERED: "Already registered for this event",
    RejectionReason.WINDOW_CLOSED: "Registration is closed for this event",
    RejectionReason.NOT_YET_OPEN: "Registration has not started yet",
    RejectionReason.INELIGIBLE: "Not eligible: {dimension} restriction",
    RejectionReason.CAPACITY_EXCEEDED: "Event is full",
}
