from .enums import EligibilityDimension
from .types import ApplicantAttributes, EligibilityResult, EligibilityRules, StaffAttributes


def evaluate_eligibility(attributes: ApplicantAttributes, rules: EligibilityRules) -> EligibilityResult:
    """Check the applicant against every restricted dimension, in declaration order.

    Eligibility rules restrict students only; staff are always eligible.
    The first failing dimension is reported. A missing attribute never
    satisfies a non-empty rule.
    """
    if isinstance(attributes, StaffAttributes):
        return EligibilityResult(eligible=True)
    for dimension in EligibilityDimension:
        allowed = rules.allowed(dimension)
        if not allowed:
            continue
        value = attributes.value_for(dimension)
        if value is None or value == "" or value not in allowed:
            return EligibilityResult(eligible=False, dimension=dimension)
    return EligibilityResult(eligible=True)
