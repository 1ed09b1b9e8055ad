"""Reports model module."""
from models.reports.statistics import (
    STATISTICS_PERIODS,
    get_period_start,
    get_booking_statistics
)

__all__ = [
    'STATISTICS_PERIODS',
    'get_period_start',
    'get_booking_statistics'
]
