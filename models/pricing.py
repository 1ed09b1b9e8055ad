"""
Pricing calculator.
Per-hour price lookup keyed by day type (weekday/weekend) and half-day band.

Every hour of a multi-hour booking is priced at its own band's rate, so a
booking that crosses 18:00 has a mixed total.
"""

import logging
from datetime import date

from flask import current_app

logger = logging.getLogger(__name__)


FIRST_HALF_START = 6   # 06:00
SECOND_HALF_START = 18  # 18:00, runs until 05:59 next morning


def get_day_type(booking_date: date) -> str:
    """'Weekend' for Saturday/Sunday, otherwise 'Weekday'."""
    return 'Weekend' if booking_date.weekday() >= 5 else 'Weekday'


def get_day_half(hour: int) -> str:
    """'first_half' for 06-17, 'second_half' for 18-05."""
    return 'first_half' if FIRST_HALF_START <= hour < SECOND_HALF_START else 'second_half'


def get_pricing_key(booking_date: date, hour: int) -> str:
    """Pricing table key for a date and hour, e.g. 'Weekday_first_half'."""
    return f'{get_day_type(booking_date)}_{get_day_half(hour)}'


def price_for_hour(ground: dict, booking_date: date, hour: int) -> int:
    """
    Price of one hour on a ground.

    Falls back to DEFAULT_HOURLY_PRICE when the ground's pricing table
    lacks the key, and logs a warning.

    Args:
        ground: Ground dict with a parsed 'pricing' mapping
        booking_date: Civil date
        hour: Hour 0-23

    Returns:
        Amount in whole currency units
    """
    key = get_pricing_key(booking_date, hour)
    pricing = ground.get('pricing') or {}

    if key not in pricing:
        default = current_app.config.get('DEFAULT_HOURLY_PRICE', 1000)
        logger.warning(
            'No %s price for ground %s, using default %s',
            key, ground.get('name'), default
        )
        return default

    return pricing[key]


def calculate_total_price(ground: dict, booking_date: date, hours) -> int:
    """Sum of price_for_hour over each requested hour."""
    return sum(price_for_hour(ground, booking_date, hour) for hour in hours)


def get_price_breakdown(ground: dict, booking_date: date, hours) -> list:
    """
    Per-hour price lines for display.

    Returns:
        List of dicts: {hour, pricing_key, price}
    """
    return [
        {
            'hour': hour,
            'pricing_key': get_pricing_key(booking_date, hour),
            'price': price_for_hour(ground, booking_date, hour)
        }
        for hour in hours
    ]
