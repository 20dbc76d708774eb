from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal

import pytest

from rentalflow.core.exceptions import InvalidRange, ValidationError
from rentalflow.domain.pricing import (
    calculate_service_fee,
    normalize_rental_window,
    quote,
    round2,
    verify_booking_totals,
)

TODAY = date(2024, 5, 20)


def test_three_day_rental_with_deposit():
    price = quote(Decimal("25"), date(2024, 6, 1), date(2024, 6, 4), Decimal("50"), today=TODAY)

    assert price.days == 3
    assert price.subtotal == Decimal("75")
    assert price.service_fee == Decimal("7.50")
    assert price.deposit_amount == Decimal("50")
    assert price.total == Decimal("132.50")


def test_total_is_sum_of_parts():
    price = quote("19.99", date(2024, 6, 1), date(2024, 6, 8), "12.34", today=TODAY)

    assert price.days == 7
    assert price.total == price.subtotal + price.service_fee + price.deposit_amount


@pytest.mark.parametrize("rate", ["0.01", "0.05", "1", "19.99", "33.33", "250.55", "1234.57"])
@pytest.mark.parametrize("days", [1, 2, 3, 7, 13, 30])
@pytest.mark.parametrize("deposit", ["0", "12.34", "500"])
def test_total_matches_fee_formula(rate, days, deposit):
    start = date(2024, 6, 1)
    price = quote(rate, start, start + timedelta(days=days), deposit, today=TODAY)

    subtotal = Decimal(rate) * days
    fee = (subtotal * Decimal("0.10")).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    assert price.days == days
    assert price.service_fee == fee
    assert price.total == subtotal + fee + Decimal(deposit)


def test_deposit_defaults_to_zero():
    price = quote(100, date(2024, 6, 1), date(2024, 6, 2), today=TODAY)

    assert price.deposit_amount == Decimal("0")
    assert price.total == Decimal("110.00")


def test_time_of_day_is_ignored():
    start = datetime(2024, 6, 1, 18, 30)
    end = datetime(2024, 6, 4, 9, 0)

    assert quote(25, start, end, today=TODAY).days == 3


def test_service_fee_rounds_half_up():
    assert calculate_service_fee(Decimal("0.05")) == Decimal("0.01")
    assert calculate_service_fee(Decimal("33.35")) == Decimal("3.34")
    assert round2(Decimal("2.345")) == Decimal("2.35")


def test_float_rate_does_not_leak_binary_noise():
    price = quote(0.1, date(2024, 6, 1), date(2024, 6, 4), today=TODAY)

    assert price.subtotal == Decimal("0.3")


def test_custom_fee_percent():
    price = quote(100, date(2024, 6, 1), date(2024, 6, 2), today=TODAY, fee_percent=Decimal("12.5"))

    assert price.service_fee == Decimal("12.50")


@pytest.mark.parametrize(
    "start,end",
    [
        (date(2024, 6, 4), date(2024, 6, 1)),
        (date(2024, 6, 1), date(2024, 6, 1)),
    ],
)
def test_reversed_or_empty_range_is_rejected(start, end):
    with pytest.raises(InvalidRange):
        quote(25, start, end, today=TODAY)


def test_backdated_start_is_rejected():
    with pytest.raises(InvalidRange, match="past"):
        quote(25, date(2024, 5, 19), date(2024, 5, 22), today=TODAY)


def test_start_today_is_allowed():
    assert quote(25, TODAY, date(2024, 5, 21), today=TODAY).days == 1


def test_invalid_range_is_a_validation_error():
    with pytest.raises(ValidationError):
        quote(25, date(2024, 6, 4), date(2024, 6, 1), today=TODAY)


@pytest.mark.parametrize("rate", [0, -5])
def test_non_positive_rate_is_rejected(rate):
    with pytest.raises(ValidationError, match="Daily rate"):
        quote(rate, date(2024, 6, 1), date(2024, 6, 2), today=TODAY)


def test_negative_deposit_is_rejected():
    with pytest.raises(ValidationError, match="deposit"):
        quote(25, date(2024, 6, 1), date(2024, 6, 2), security_deposit=-1, today=TODAY)


def test_normalize_rental_window_covers_whole_days():
    start, end = normalize_rental_window(date(2024, 6, 1), date(2024, 6, 4))

    assert start == datetime(2024, 6, 1, 0, 0, 0)
    assert end == datetime(2024, 6, 4, 23, 59, 59)


def test_normalize_rental_window_keeps_timezone():
    start, end = normalize_rental_window(
        datetime(2024, 6, 1, 15, 0, tzinfo=timezone.utc),
        datetime(2024, 6, 4, 8, 0, tzinfo=timezone.utc),
    )

    assert start == datetime(2024, 6, 1, tzinfo=timezone.utc)
    assert end.tzinfo is timezone.utc
    assert (end.hour, end.minute, end.second) == (23, 59, 59)


def test_normalized_window_still_quotes_requested_days():
    start, end = normalize_rental_window(date(2024, 6, 1), date(2024, 6, 4))

    assert quote(25, start, end, today=TODAY).days == 3


def test_verify_booking_totals_accepts_consistent_booking(make_booking):
    expected = verify_booking_totals(make_booking())

    assert expected.total == Decimal("132.50")


def test_verify_booking_totals_ignores_backdating(make_booking):
    booking = make_booking(start_date="2020-01-01", end_date="2020-01-04")

    assert verify_booking_totals(booking).days == 3


def test_verify_booking_totals_reports_mismatch(make_booking):
    booking = make_booking(total_amount="140.00")

    with pytest.raises(ValidationError, match="total_amount"):
        verify_booking_totals(booking)


def test_verify_booking_totals_reports_wrong_fee(make_booking):
    booking = make_booking(service_fee="5.00")

    with pytest.raises(ValidationError, match="service_fee"):
        verify_booking_totals(booking)
