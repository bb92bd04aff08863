from .enums import CapacityDecision


def admit(current_count: int, max_participants: int | None) -> CapacityDecision:
    """Decide whether one more confirmed registration fits.

    The caller owns the increment; see ``AdmissionStore.increment_registration_count``.
    """
    if max_participants is None or current_count < max_participants:
        return CapacityDecision.CONFIRM
    return CapacityDecision.REJECT


def seats_left(current_count: int, max_participants: int | None) -> int | None:
    if max_participants is None:
        return None
    return max(max_participants - current_count, 0)
