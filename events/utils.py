from typing import Optional

from .admission.types import StudentAttributes
from .models import UserProfile


def get_user_profile(user) -> Optional[UserProfile]:
    """
    Safely retrieve the profile for a user, or None when it does not exist.
    """
    if not user or not getattr(user, 'is_authenticated', True):
        return None
    return getattr(user, 'profile', None)


def applicant_attributes(user):
    """
    Eligibility attributes of a user. A user without a profile has no
    attributes and fails every restricted dimension.
    """
    profile = get_user_profile(user)
    if profile is None:
        return StudentAttributes()
    return profile.attributes()


def is_staff_member(user) -> bool:
    if not user or not user.is_authenticated:
        return False
    if user.is_staff:
        return True
    profile = get_user_profile(user)
    return bool(profile and profile.is_staff_role)


def is_admin(user) -> bool:
    if not user or not user.is_authenticated:
        return False
    if user.is_superuser:
        return True
    profile = get_user_profile(user)
    return bool(profile and profile.role == 'admin')
