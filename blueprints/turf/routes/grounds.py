"""
Ground API routes.
Ground listing, availability views and operator pricing edits.
"""

from flask import request, current_app

from models.booking import (
    get_available_dates, get_available_grounds, get_available_slots, group_dates_by_month
)
from models.ground import get_all_grounds, update_ground_pricing, get_related_grounds
from utils.api_response import api_success, api_error
from utils.decorators import operator_required
from utils.messages import get_message
from utils.validators import parse_date, parse_hours


def register_routes(bp):
    """Register ground routes on the blueprint."""

    @bp.route('/grounds', methods=['GET'])
    def list_grounds():
        """All grounds with pricing and the grounds each one overlaps."""
        grounds = get_all_grounds()
        for ground in grounds:
            ground['related_grounds'] = list(get_related_grounds(ground['name']))
        return api_success(data=grounds)

    @bp.route('/grounds/available-dates', methods=['GET'])
    def available_dates():
        """
        Dates in the booking window with at least one free slot.

        Query params:
            days: Window length (default BOOKING_WINDOW_DAYS, max 90)

        Returns:
            {'YYYY-MM': [{'date': ..., 'enabled': bool}, ...]}
        """
        window = current_app.config.get('BOOKING_WINDOW_DAYS', 45)
        days = request.args.get('days', window, type=int)
        if days is None or days < 1 or days > 90:
            return api_error('days must be between 1 and 90', status=400, field='days')

        dates = get_available_dates(days)
        return api_success(data=group_dates_by_month(dates))

    @bp.route('/grounds/available-slots', methods=['GET'])
    def available_slots():
        """
        The 24 hour slots of a date with their enabled flag.

        Query params:
            date: YYYY-MM-DD (required)
        """
        booking_date = parse_date(request.args.get('date'))
        return api_success(data=get_available_slots(booking_date))

    @bp.route('/grounds/available-grounds', methods=['GET'])
    def available_grounds():
        """
        Availability and price of every ground for an hour set.

        Query params:
            date: YYYY-MM-DD (required)
            hours: Comma-separated consecutive hours, e.g. 17,18
                (startHours / startHour accepted as aliases)
        """
        booking_date = parse_date(request.args.get('date'))
        raw_hours = (request.args.get('hours')
                     or request.args.get('startHours')
                     or request.args.get('startHour'))
        hours = parse_hours(raw_hours)
        return api_success(data=get_available_grounds(booking_date, hours))

    @bp.route('/grounds/<int:ground_id>/pricing', methods=['PUT'])
    @operator_required
    def update_pricing(ground_id):
        """
        Replace pricing entries of a ground.

        Request body:
            pricing: {"Weekday_first_half": 1000, ...}
        """
        data = request.get_json(silent=True)
        if not data:
            return api_error(get_message('request_body_required'), status=400)

        ground = update_ground_pricing(ground_id, data.get('pricing'))
        current_app.logger.info('Pricing updated for ground %s: %s', ground['name'], ground['pricing'])
        return api_success(data=ground, message=get_message('pricing_updated'))
