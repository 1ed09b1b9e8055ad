"""Booking statistics queries for the operator dashboard."""
import calendar
from datetime import datetime, timedelta
from typing import Any

from database import get_db
from models.booking_state import STATUS_PAID
from utils.datetime_helpers import get_now, to_local, day_bounds, to_storage
from utils.errors import ValidationError

STATISTICS_PERIODS = ('day', 'week', 'month', 'year', 'lifetime')


def _shift_months(dt: datetime, months: int) -> datetime:
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def get_period_start(period: str, now: datetime) -> datetime | None:
    """
    Start of a statistics period ending now.

    Args:
        period: 'day', 'week', 'month', 'year' or 'lifetime'
        now: Current local time

    Returns:
        Aware datetime, or None for lifetime
    """
    if period == 'day':
        return day_bounds(now.date())[0]
    if period == 'week':
        return now - timedelta(days=7)
    if period == 'month':
        return _shift_months(now, -1)
    if period == 'year':
        return _shift_months(now, -12)
    return None


def get_booking_statistics(period: str = 'lifetime', now=None) -> dict[str, Any]:
    """
    Booking counts and revenue for a period.

    Period filters apply to the booked slot's start time. todayBookings is
    always the number of bookings whose slot starts today.

    Args:
        period: One of STATISTICS_PERIODS
        now: Current time (defaults to wall clock)

    Returns:
        dict with totalBookings, todayBookings, confirmedBookings, totalRevenue, period
    """
    if period not in STATISTICS_PERIODS:
        raise ValidationError('Invalid period', field='period')

    now = to_local(now) if now else get_now()
    period_start = get_period_start(period, now)
    today_start, today_end = day_bounds(now.date())

    period_sql = ''
    period_params: list = []
    if period_start is not None:
        period_sql = ' AND start_time >= ?'
        period_params = [to_storage(period_start)]

    db = get_db()
    total = db.execute(
        'SELECT COUNT(*) FROM turf_bookings WHERE 1 = 1' + period_sql, period_params
    ).fetchone()[0]

    today_count = db.execute('''
        SELECT COUNT(*) FROM turf_bookings
        WHERE start_time >= ? AND start_time < ?
    ''', (to_storage(today_start), to_storage(today_end))).fetchone()[0]

    paid = db.execute(
        'SELECT COUNT(*), COALESCE(SUM(total_amount), 0) FROM turf_bookings '
        'WHERE payment_status = ?' + period_sql,
        [STATUS_PAID] + period_params
    ).fetchone()

    return {
        'period': period,
        'totalBookings': total,
        'todayBookings': today_count,
        'confirmedBookings': paid[0],
        'totalRevenue': paid[1]
    }
