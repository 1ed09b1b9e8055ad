"""
Operator routes.
Booking listings and search, statistics, offline bookings, refunds and
blocked-slot management. Every route requires an operator session.
"""

from flask import request, Blueprint, current_app
from flask_login import current_user

from models.blocked_slot import create_blocked_slot, deactivate_blocked_slot, get_active_blocks
from models.booking import (
    get_bookings, search_bookings, get_booking_or_404, get_status_history,
    create_offline_booking, mark_refunded
)
from models.ground import resolve_ground
from models.reports import get_booking_statistics
from utils.api_response import api_success, api_error
from utils.decorators import operator_required
from utils.messages import get_message
from utils.validators import hours_from_payload

admin_bp = Blueprint('admin', __name__)


def _ground_id_arg(value):
    """Ground ID for a groundId parameter (ID or name), None when absent."""
    if value in (None, ''):
        return None
    return resolve_ground(value)['id']


# =============================================================================
# BOOKINGS
# =============================================================================

@admin_bp.route('/bookings', methods=['GET'])
@operator_required
def bookings():
    """
    List bookings.

    Query params:
        date, fromDate, phone, email, status, groundId: Filters
        page, limit: Pagination (limit defaults to ITEMS_PER_PAGE)
    """
    filters = {
        'date': request.args.get('date'),
        'from_date': request.args.get('fromDate'),
        'phone': request.args.get('phone'),
        'email': request.args.get('email'),
        'status': request.args.get('status'),
        'ground_id': _ground_id_arg(request.args.get('groundId')),
    }
    page = request.args.get('page', 1, type=int)
    limit = request.args.get('limit', current_app.config.get('ITEMS_PER_PAGE', 50), type=int)

    result = get_bookings(filters, page=page, per_page=min(limit, 200))
    return api_success(
        data=result['bookings'],
        pagination={
            'total': result['total'],
            'page': result['page'],
            'per_page': result['per_page'],
            'pages': result['pages']
        }
    )


@admin_bp.route('/bookings/search', methods=['GET'])
@operator_required
def bookings_search():
    """Search bookings by phone, email or customer name (?q=, max 20)."""
    query = request.args.get('q') or request.args.get('query')
    if not query:
        return api_error('Search query is required', status=400, field='q')
    return api_success(data=search_bookings(query, limit=20))


@admin_bp.route('/bookings/<int:booking_id>', methods=['GET'])
@operator_required
def booking_detail(booking_id):
    """Full booking record, including gateway fields."""
    return api_success(data=get_booking_or_404(booking_id))


@admin_bp.route('/bookings/<int:booking_id>/history', methods=['GET'])
@operator_required
def booking_history(booking_id):
    """Status transitions of a booking, oldest first."""
    get_booking_or_404(booking_id)
    return api_success(data=get_status_history(booking_id))


@admin_bp.route('/bookings/<int:booking_id>/refund', methods=['POST'])
@operator_required
def booking_refund(booking_id):
    """
    Mark a paid booking as refunded.

    Request body (optional):
        reason: Refund note
    """
    data = request.get_json(silent=True) or {}
    booking = mark_refunded(booking_id, reason=data.get('reason'), changed_by=current_user.id)
    return api_success(data=booking, message=get_message('booking_refunded'))


@admin_bp.route('/offline-bookings', methods=['POST'])
@operator_required
def offline_booking():
    """
    Record a walk-in booking paid in cash.

    Request body:
        name, phone, email, groundId, date
        hours (or startHour + duration)
        totalAmount: Optional amount collected (defaults to computed price)
    """
    data = request.get_json(silent=True)
    if not data:
        return api_error(get_message('request_body_required'), status=400)

    booking = create_offline_booking(
        ground_ref=data.get('groundId') or data.get('ground'),
        booking_date=data.get('date'),
        hours=hours_from_payload(data),
        name=data.get('name'),
        phone=data.get('phone'),
        email=data.get('email'),
        total_amount=data.get('totalAmount'),
        created_by=current_user.id
    )
    return api_success(data=booking, message=get_message('offline_booking_created'), status=201)


# =============================================================================
# STATISTICS
# =============================================================================

@admin_bp.route('/statistics', methods=['GET'])
@operator_required
def statistics():
    """Booking statistics (?period=day|week|month|year|lifetime)."""
    period = request.args.get('period', 'lifetime')
    return api_success(data=get_booking_statistics(period))


# =============================================================================
# BLOCKED SLOTS
# =============================================================================

@admin_bp.route('/blocked-slots', methods=['GET'])
@operator_required
def blocked_slots():
    """Active blocks, optionally for a date and/or ground."""
    blocks = get_active_blocks(
        block_date=request.args.get('date') or None,
        ground_id=_ground_id_arg(request.args.get('groundId'))
    )
    return api_success(data=blocks)


@admin_bp.route('/blocked-slots', methods=['POST'])
@operator_required
def block_slot():
    """
    Block a slot.

    Request body:
        date: YYYY-MM-DD
        timeSlot: Slot label, e.g. "2:00 PM to 3:00 PM" (or hour: 14)
        groundId: Optional ground; omitted blocks every ground
        reason: Optional reason
    """
    data = request.get_json(silent=True)
    if not data:
        return api_error(get_message('request_body_required'), status=400)

    time_slot = data.get('timeSlot')
    if time_slot is None and data.get('hour') is not None:
        time_slot = data.get('hour')

    block = create_blocked_slot(
        block_date=data.get('date'),
        time_slot=time_slot,
        ground_id=_ground_id_arg(data.get('groundId')),
        reason=data.get('reason'),
        blocked_by=current_user.id
    )
    return api_success(data=block, message=get_message('slot_blocked'), status=201)


@admin_bp.route('/blocked-slots/<int:block_id>', methods=['DELETE'])
@operator_required
def unblock_slot(block_id):
    """Unblock a slot (the block is deactivated, not deleted)."""
    block = deactivate_blocked_slot(block_id)
    return api_success(data=block, message=get_message('slot_unblocked'))
