from datetime import date
from decimal import Decimal

import pytest

from rentalflow.domain.cancellation_policy import (
    CancellationPolicy,
    calculate_refund_amount,
    calculate_refund_percentage,
    get_policy_description,
)

START = date(2024, 6, 10)


@pytest.mark.parametrize(
    "policy,cancelled_on,expected",
    [
        (CancellationPolicy.FLEXIBLE, date(2024, 6, 9), Decimal("100")),
        (CancellationPolicy.FLEXIBLE, date(2024, 6, 10), Decimal("50")),
        (CancellationPolicy.FLEXIBLE, date(2024, 6, 11), Decimal("0")),
        (CancellationPolicy.MODERATE, date(2024, 6, 5), Decimal("100")),
        (CancellationPolicy.MODERATE, date(2024, 6, 6), Decimal("50")),
        (CancellationPolicy.MODERATE, date(2024, 6, 10), Decimal("0")),
        (CancellationPolicy.STRICT, date(2024, 6, 3), Decimal("50")),
        (CancellationPolicy.STRICT, date(2024, 6, 4), Decimal("0")),
    ],
)
def test_refund_percentage(policy, cancelled_on, expected):
    assert calculate_refund_percentage(policy, START, cancelled_on) == expected


def test_refund_amount_rounds_to_cents():
    amount = calculate_refund_amount("moderate", START, date(2024, 6, 8), Decimal("132.55"))

    assert amount == Decimal("66.28")


def test_unknown_policy_falls_back_to_moderate():
    assert calculate_refund_percentage("lenient", START, date(2024, 6, 1)) == Decimal("100")


def test_policy_description():
    assert "7 days" in get_policy_description("strict")
    assert get_policy_description("lenient") == "Unknown cancellation policy"
