import datetime

from .enums import WindowStatus
from .types import RegistrationPolicy


def check_registration_window(policy: RegistrationPolicy, now: datetime.datetime) -> WindowStatus:
    """Tell whether registration is possible at ``now``.

    The admin switch (``is_open``) wins over the dates. Missing dates leave
    that side of the window unbounded.
    """
    if not policy.required:
        return WindowStatus.NOT_REQUIRED
    if not policy.is_open:
        return WindowStatus.CLOSED
    if policy.start is not None and now < policy.start:
        return WindowStatus.NOT_YET_OPEN
    if policy.end is not None and now > policy.end:
        return WindowStatus.CLOSED
    return WindowStatus.OPEN
