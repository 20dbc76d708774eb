"""Cancellation policy domain logic.

Applies only on the refund path: a paid booking is never cancelled by a bare
status flip, the renter's refund is computed from the booking's policy.

Policies:
- flexible: Full refund up to 1 day before the rental starts, 50% after
- moderate: Full refund up to 5 days before, 50% up to 1 day, 0% after
- strict: 50% refund up to 7 days before, 0% after
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

CENT = Decimal("0.01")


class CancellationPolicy(str, Enum):
    """Cancellation policy types."""

    FLEXIBLE = "flexible"
    MODERATE = "moderate"
    STRICT = "strict"


# Refund rules: list of (days_before_start, refund_percentage)
# Evaluated in order - first match wins
POLICY_RULES: dict[CancellationPolicy, list[tuple[int, Decimal]]] = {
    CancellationPolicy.FLEXIBLE: [
        (1, Decimal("100")),
        (0, Decimal("50")),
    ],
    CancellationPolicy.MODERATE: [
        (5, Decimal("100")),
        (1, Decimal("50")),
        (0, Decimal("0")),
    ],
    CancellationPolicy.STRICT: [
        (7, Decimal("50")),
        (0, Decimal("0")),
    ],
}


def _coerce_policy(policy: str | CancellationPolicy) -> CancellationPolicy:
    if isinstance(policy, CancellationPolicy):
        return policy
    try:
        return CancellationPolicy(policy)
    except ValueError:
        # Unknown policies fall back to the marketplace default
        return CancellationPolicy.MODERATE


def calculate_refund_percentage(
    policy: str | CancellationPolicy,
    start_date: date,
    cancellation_date: date,
) -> Decimal:
    """Calculate refund percentage based on policy and timing.

    Args:
        policy: The cancellation policy type
        start_date: First day of the rental
        cancellation_date: Date of cancellation

    Returns:
        Decimal: Refund percentage (0-100)
    """
    days_before = (start_date - cancellation_date).days

    for min_days, refund_pct in POLICY_RULES[_coerce_policy(policy)]:
        if days_before >= min_days:
            return refund_pct

    return Decimal("0")


def calculate_refund_amount(
    policy: str | CancellationPolicy,
    start_date: date,
    cancellation_date: date,
    total_amount: Decimal,
) -> Decimal:
    """Calculate the refund owed to the renter, rounded to cents.

    Args:
        policy: The cancellation policy type
        start_date: First day of the rental
        cancellation_date: Date of cancellation
        total_amount: Amount the renter paid

    Returns:
        Decimal: Refund amount
    """
    refund_pct = calculate_refund_percentage(policy, start_date, cancellation_date)
    refund = Decimal(total_amount) * refund_pct / Decimal("100")
    return refund.quantize(CENT, rounding=ROUND_HALF_UP)


def get_policy_description(policy: str | CancellationPolicy) -> str:
    """Get human-readable policy description."""
    descriptions = {
        CancellationPolicy.FLEXIBLE: (
            "Full refund up to 1 day before the rental starts. "
            "50% refund if cancelled later."
        ),
        CancellationPolicy.MODERATE: (
            "Full refund up to 5 days before the rental starts. "
            "50% refund if cancelled 1-5 days before. "
            "No refund on the start day."
        ),
        CancellationPolicy.STRICT: (
            "50% refund up to 7 days before the rental starts. "
            "No refund if cancelled less than 7 days before."
        ),
    }

    if isinstance(policy, str):
        try:
            policy = CancellationPolicy(policy)
        except ValueError:
            return "Unknown cancellation policy"

    return descriptions.get(policy, "Unknown cancellation policy")
