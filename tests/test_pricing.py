"""
Tests for the pricing calculator.
"""

import logging
from datetime import date

import pytest

from models.pricing import (
    get_day_type, get_day_half, get_pricing_key, price_for_hour, calculate_total_price,
    get_price_breakdown
)

TUESDAY = date(2025, 1, 14)
SATURDAY = date(2025, 1, 18)
SUNDAY = date(2025, 1, 19)

G1 = {
    'name': 'G1',
    'pricing': {
        'Weekday_first_half': 1000, 'Weekday_second_half': 1200,
        'Weekend_first_half': 1500, 'Weekend_second_half': 1800
    }
}


class TestClassification:

    def test_day_type(self):
        assert get_day_type(TUESDAY) == 'Weekday'
        assert get_day_type(SATURDAY) == 'Weekend'
        assert get_day_type(SUNDAY) == 'Weekend'
        assert get_day_type(date(2025, 1, 17)) == 'Weekday'  # Friday

    @pytest.mark.parametrize('hour', [6, 12, 17])
    def test_first_half(self, hour):
        assert get_day_half(hour) == 'first_half'

    @pytest.mark.parametrize('hour', [18, 23, 0, 5])
    def test_second_half_wraps_midnight(self, hour):
        assert get_day_half(hour) == 'second_half'

    def test_pricing_key(self):
        assert get_pricing_key(SATURDAY, 20) == 'Weekend_second_half'
        assert get_pricing_key(TUESDAY, 9) == 'Weekday_first_half'


class TestPrices:

    def test_price_for_hour(self, app):
        assert price_for_hour(G1, TUESDAY, 10) == 1000
        assert price_for_hour(G1, TUESDAY, 19) == 1200
        assert price_for_hour(G1, SATURDAY, 10) == 1500
        assert price_for_hour(G1, SUNDAY, 22) == 1800

    def test_multi_hour_booking_across_boundary(self, app):
        # Tuesday, hours 17 and 18: one first-half hour plus one second-half hour
        assert calculate_total_price(G1, TUESDAY, [17, 18]) == 2200

    @pytest.mark.parametrize('hours', [[6], [16, 17], [17, 18, 19], [20, 21, 22, 23], [0]])
    def test_total_is_sum_of_hours(self, app, hours):
        for day in (TUESDAY, SATURDAY):
            expected = sum(price_for_hour(G1, day, hour) for hour in hours)
            assert calculate_total_price(G1, day, hours) == expected

    def test_missing_key_falls_back_and_logs(self, app, caplog):
        ground = {'name': 'G2', 'pricing': {'Weekday_first_half': 700}}

        with caplog.at_level(logging.WARNING, logger='models.pricing'):
            price = price_for_hour(ground, TUESDAY, 20)

        assert price == 1000
        assert 'Weekday_second_half' in caplog.text
        assert 'G2' in caplog.text

    def test_fallback_uses_configured_default(self, app):
        app.config['DEFAULT_HOURLY_PRICE'] = 750
        assert price_for_hour({'name': 'X', 'pricing': {}}, TUESDAY, 10) == 750

    def test_breakdown(self, app):
        lines = get_price_breakdown(G1, TUESDAY, [17, 18])
        assert lines == [
            {'hour': 17, 'pricing_key': 'Weekday_first_half', 'price': 1000},
            {'hour': 18, 'pricing_key': 'Weekday_second_half', 'price': 1200},
        ]
