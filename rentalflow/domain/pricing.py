"""Rental price calculation.

CRITICAL BUSINESS LOGIC:
- subtotal = daily_rate * days, where days counts whole calendar days (min 1)
- service fee = 10% of subtotal, rounded half-up to cents
- total = subtotal + service fee + security deposit
- the same formula must reproduce the totals stored on any booking
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal

from rentalflow.core.exceptions import InvalidRange, ValidationError
from rentalflow.models.booking import Booking, count_rental_days

SERVICE_FEE_PERCENT = Decimal("10")
CENT = Decimal("0.01")

END_OF_DAY = time(23, 59, 59)


@dataclass(frozen=True)
class PriceQuote:
    """Money breakdown for a rental."""

    days: int
    daily_rate: Decimal
    subtotal: Decimal
    service_fee: Decimal
    deposit_amount: Decimal
    total: Decimal


def round2(amount: Decimal) -> Decimal:
    """Round to cents, half-up."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _to_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps float inputs like 0.1 from dragging binary noise along
    return Decimal(str(value))


def _as_day(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def calculate_service_fee(subtotal: Decimal, fee_percent: Decimal = SERVICE_FEE_PERCENT) -> Decimal:
    return round2(subtotal * fee_percent / Decimal("100"))


def quote(
    daily_rate: Decimal | int | float | str,
    start_date: date | datetime,
    end_date: date | datetime,
    security_deposit: Decimal | int | float | str | None = None,
    today: date | None = None,
    fee_percent: Decimal = SERVICE_FEE_PERCENT,
) -> PriceQuote:
    """Quote a rental over [start_date, end_date).

    Time of day is ignored; both ends are reduced to calendar days. Safe to
    call on every keystroke of a date picker.

    Args:
        daily_rate: Price per day
        start_date: First rental day
        end_date: Return day, strictly after start_date
        security_deposit: Refundable deposit, defaults to 0
        today: Reference date for rejecting backdated rentals
        fee_percent: Service fee percentage of the subtotal

    Returns:
        PriceQuote with days, subtotal, service fee, deposit and total

    Raises:
        InvalidRange: If end is not after start, or start is before today
        ValidationError: If the rate is not positive or the deposit negative
    """
    start = _as_day(start_date)
    end = _as_day(end_date)
    today = today or date.today()

    if end <= start:
        raise InvalidRange("End date must be after start date")
    if start < today:
        raise InvalidRange("Start date cannot be in the past")

    rate = _to_decimal(daily_rate)
    deposit = _to_decimal(security_deposit) if security_deposit is not None else Decimal("0")
    if rate <= 0:
        raise ValidationError("Daily rate must be positive")
    if deposit < 0:
        raise ValidationError("Security deposit cannot be negative")

    days = count_rental_days(start, end)
    subtotal = rate * days
    service_fee = calculate_service_fee(subtotal, fee_percent)

    return PriceQuote(
        days=days,
        daily_rate=rate,
        subtotal=subtotal,
        service_fee=service_fee,
        deposit_amount=deposit,
        total=subtotal + service_fee + deposit,
    )


def normalize_rental_window(start: date | datetime, end: date | datetime) -> tuple[datetime, datetime]:
    """Stretch a requested window to 00:00:00 of the start day and 23:59:59 of the end day.

    Timezone info on datetime inputs is kept; plain dates become naive local
    datetimes.
    """
    start_dt = datetime.combine(_as_day(start), time.min)
    end_dt = datetime.combine(_as_day(end), END_OF_DAY)
    if isinstance(start, datetime) and start.tzinfo is not None:
        start_dt = start_dt.replace(tzinfo=start.tzinfo)
    if isinstance(end, datetime) and end.tzinfo is not None:
        end_dt = end_dt.replace(tzinfo=end.tzinfo)
    return start_dt, end_dt


def verify_booking_totals(booking: Booking, fee_percent: Decimal = SERVICE_FEE_PERCENT) -> PriceQuote:
    """Recompute a stored booking's totals from its snapshots.

    Backdating is not checked: the booking was valid when it was created.

    Raises:
        ValidationError: If any stored amount disagrees with the formula
    """
    expected_days = count_rental_days(booking.start_date, booking.end_date)
    subtotal = booking.daily_rate * expected_days
    service_fee = calculate_service_fee(subtotal, fee_percent)
    expected = PriceQuote(
        days=expected_days,
        daily_rate=booking.daily_rate,
        subtotal=subtotal,
        service_fee=service_fee,
        deposit_amount=booking.security_deposit,
        total=subtotal + service_fee + booking.security_deposit,
    )

    mismatches = []
    if booking.total_days != expected.days:
        mismatches.append(f"total_days {booking.total_days} != {expected.days}")
    if round2(booking.subtotal) != round2(expected.subtotal):
        mismatches.append(f"subtotal {booking.subtotal} != {expected.subtotal}")
    if round2(booking.service_fee) != expected.service_fee:
        mismatches.append(f"service_fee {booking.service_fee} != {expected.service_fee}")
    if round2(booking.total_amount) != round2(expected.total):
        mismatches.append(f"total_amount {booking.total_amount} != {expected.total}")

    if mismatches:
        raise ValidationError(
            f"Booking {booking.booking_number or booking.id} totals are inconsistent: "
            + "; ".join(mismatches)
        )
    return expected
