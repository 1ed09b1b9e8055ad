"""
Booking CRUD operations.
Create (online and offline), read, list/search, cancel, refund and expiry.

Every write that can occupy a slot runs inside immediate_transaction(), which
holds the database write lock across the conflict re-check and the insert.
"""

import logging
from datetime import timedelta

from flask import current_app

from database import get_db, immediate_transaction
from models.booking_availability import find_unavailable_hours, is_closed_hour, is_slot_elapsed
from models.booking_state import (
    STATUS_PENDING, STATUS_PROCESSING, STATUS_PAID, STATUS_FAILED, STATUS_REFUNDED,
    STATUS_DELETED, BOOKING_TYPE_ONLINE, BOOKING_TYPE_OFFLINE, PAYMENT_STATUSES,
    PUBLIC_BLOCKING_STATUSES, CHECKOUT_BLOCKING_STATUSES,
    record_status_change, validate_status_transition
)
from models.ground import resolve_ground
from models.pricing import calculate_total_price
from utils.datetime_helpers import (
    get_now, to_local, slot_start, slot_end, to_storage, from_storage, get_slot_label
)
from utils.errors import (
    ValidationError, NotFoundError, SlotUnavailableError, ForbiddenTransitionError
)
from utils.validators import parse_date, parse_hours, parse_whole_number, validate_customer

logger = logging.getLogger(__name__)


# =============================================================================
# SERIALIZATION
# =============================================================================

def _row_to_booking(row) -> dict:
    """Booking row -> dict with local hours and slot labels added."""
    booking = dict(row)
    start_local = to_local(from_storage(booking['start_time']))
    booking['start_hour'] = start_local.hour
    booking['end_hour'] = start_local.hour + booking['duration']
    booking['hours'] = list(range(booking['start_hour'], booking['end_hour']))
    booking['time_slots'] = [get_slot_label(hour) for hour in booking['hours']]
    return booking


BOOKING_SELECT = '''
    SELECT b.*, g.name AS ground_name
    FROM turf_bookings b
    JOIN turf_grounds g ON b.ground_id = g.id
'''


# =============================================================================
# VALIDATION
# =============================================================================

def _check_hours_open(hours: list) -> None:
    closed = [hour for hour in hours if is_closed_hour(hour)]
    if closed:
        raise ValidationError(
            'Bookings are not allowed between 1 AM and 6 AM',
            field='hours',
            closed_hours=closed
        )


def _check_booking_window(booking_date, now) -> None:
    window_days = current_app.config.get('BOOKING_WINDOW_DAYS', 45)
    if booking_date > now.date() + timedelta(days=window_days - 1):
        raise ValidationError(
            f'Bookings are only open for the next {window_days} days',
            field='date'
        )


def _raise_unavailable(ground: dict, booking_date, unavailable: dict) -> None:
    hours = sorted(unavailable)
    logger.info(
        'Slot unavailable: ground=%s date=%s hours=%s reasons=%s',
        ground['name'], booking_date, hours, unavailable
    )
    raise SlotUnavailableError(
        'Selected time slot is no longer available',
        unavailable_hours=hours
    )


# =============================================================================
# CREATE
# =============================================================================

def create_booking(ground_ref, booking_date, hours, name, phone, email, now=None) -> dict:
    """
    Create an online booking in 'pending' status.

    Validation runs before any write. The availability re-check and the
    insert share one write transaction, and count pending, processing and
    paid bookings as occupying the slot.

    Args:
        ground_ref: Ground ID or name
        booking_date: Date (YYYY-MM-DD or date)
        hours: Consecutive hours (list, or string accepted by parse_hours)
        name: Customer name
        phone: Customer phone
        email: Customer email
        now: Current time (defaults to wall clock)

    Returns:
        Created booking dict

    Raises:
        ValidationError: Bad input, closed hours, elapsed slot or date outside window
        NotFoundError: Unknown ground
        SlotUnavailableError: Slot occupied or blocked
    """
    now = to_local(now) if now else get_now()

    customer = validate_customer(name, phone, email)
    booking_date = parse_date(booking_date)
    hours = parse_hours(hours)
    ground = resolve_ground(ground_ref)

    _check_hours_open(hours)
    if is_slot_elapsed(booking_date, hours[0], now):
        raise ValidationError('Selected time slot has already started', field='hours')
    _check_booking_window(booking_date, now)

    with immediate_transaction() as conn:
        unavailable = find_unavailable_hours(
            ground, booking_date, hours, CHECKOUT_BLOCKING_STATUSES, now
        )
        if unavailable:
            _raise_unavailable(ground, booking_date, unavailable)

        booking_id = _insert_booking(
            conn, ground, booking_date, hours, customer,
            total_amount=calculate_total_price(ground, booking_date, hours),
            status=STATUS_PENDING,
            booking_type=BOOKING_TYPE_ONLINE,
            now=now
        )
        record_status_change(conn, booking_id, None, STATUS_PENDING, 'Booking created')

    logger.info('Booking created: id=%s ground=%s date=%s hours=%s',
                booking_id, ground['name'], booking_date, hours)
    return get_booking_by_id(booking_id)


def create_offline_booking(ground_ref, booking_date, hours, name, phone, email,
                           total_amount=None, created_by: int = None, now=None) -> dict:
    """
    Record a walk-in booking, paid in cash.

    Goes straight to 'paid'. Only paid bookings are checked for conflicts,
    so an online checkout in progress does not stop the operator. Closed
    hours are still rejected.

    Args:
        ground_ref: Ground ID or name
        booking_date: Date (YYYY-MM-DD or date)
        hours: Consecutive hours
        name: Customer name
        phone: Customer phone
        email: Customer email
        total_amount: Amount collected (defaults to the computed price)
        created_by: Operator user ID
        now: Current time (defaults to wall clock)

    Returns:
        Created booking dict

    Raises:
        ValidationError, NotFoundError, SlotUnavailableError
    """
    now = to_local(now) if now else get_now()

    customer = validate_customer(name, phone, email)
    booking_date = parse_date(booking_date)
    hours = parse_hours(hours)
    ground = resolve_ground(ground_ref)
    _check_hours_open(hours)

    if total_amount not in (None, ''):
        total_amount = parse_whole_number(total_amount, 'totalAmount',
                                          'Total amount must be a whole number')
        if total_amount < 0:
            raise ValidationError('Total amount cannot be negative', field='totalAmount')
    else:
        total_amount = None

    with immediate_transaction() as conn:
        unavailable = find_unavailable_hours(
            ground, booking_date, hours, PUBLIC_BLOCKING_STATUSES, now,
            check_elapsed=False, check_blocks=False
        )
        if unavailable:
            _raise_unavailable(ground, booking_date, unavailable)

        if total_amount is None:
            total_amount = calculate_total_price(ground, booking_date, hours)

        booking_id = _insert_booking(
            conn, ground, booking_date, hours, customer,
            total_amount=total_amount,
            status=STATUS_PAID,
            booking_type=BOOKING_TYPE_OFFLINE,
            now=now,
            payment_method='cash',
            created_by=created_by
        )
        record_status_change(conn, booking_id, None, STATUS_PAID, 'Offline booking', created_by)

    logger.info('Offline booking created: id=%s ground=%s date=%s hours=%s by=%s',
                booking_id, ground['name'], booking_date, hours, created_by)
    return get_booking_by_id(booking_id)


def _insert_booking(conn, ground, booking_date, hours, customer, total_amount,
                    status, booking_type, now, payment_method=None, created_by=None) -> int:
    start = slot_start(booking_date, hours[0])
    end = slot_end(booking_date, hours[-1])
    timestamp = to_storage(now)
    completed_at = timestamp if status == STATUS_PAID else None

    cursor = conn.execute('''
        INSERT INTO turf_bookings (
            customer_name, phone, email, ground_id, booking_date,
            start_time, end_time, duration, total_amount,
            payment_status, booking_type, payment_method, payment_attempts,
            payment_completed_at, created_by, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?, ?, ?, ?)
    ''', (
        customer['customer_name'], customer['phone'], customer['email'], ground['id'],
        booking_date.isoformat(), to_storage(start), to_storage(end), len(hours), total_amount,
        status, booking_type, payment_method, completed_at, created_by, timestamp, timestamp
    ))
    return cursor.lastrowid


# =============================================================================
# READ
# =============================================================================

def get_booking_by_id(booking_id: int) -> dict:
    """
    Get booking by ID with ground name.

    Returns:
        Booking dict or None if not found
    """
    db = get_db()
    row = db.execute(BOOKING_SELECT + ' WHERE b.id = ?', (booking_id,)).fetchone()
    return _row_to_booking(row) if row else None


def get_booking_or_404(booking_id: int) -> dict:
    """
    Get booking by ID.

    Raises:
        NotFoundError: If the booking doesn't exist
    """
    booking = get_booking_by_id(booking_id)
    if not booking:
        raise NotFoundError('Booking not found', booking_id=booking_id)
    return booking


def get_bookings(filters: dict = None, page: int = 1, per_page: int = 50) -> dict:
    """
    List bookings with optional filters and pagination.

    Args:
        filters: Optional dict with keys date, from_date, phone, email,
            status, ground_id
        page: Page number (1-based)
        per_page: Page size

    Returns:
        dict: {bookings: [...], total, page, per_page, pages}
    """
    filters = filters or {}
    where = []
    params = []

    if filters.get('date'):
        where.append('b.booking_date = ?')
        params.append(parse_date(filters['date']).isoformat())

    if filters.get('from_date'):
        where.append('b.booking_date >= ?')
        params.append(parse_date(filters['from_date'], field='fromDate').isoformat())

    if filters.get('phone'):
        where.append('b.phone LIKE ?')
        params.append(f"%{filters['phone']}%")

    if filters.get('email'):
        where.append('b.email LIKE ?')
        params.append(f"%{filters['email'].lower()}%")

    if filters.get('status'):
        if filters['status'] not in PAYMENT_STATUSES:
            raise ValidationError('Invalid status filter', field='status')
        where.append('b.payment_status = ?')
        params.append(filters['status'])

    if filters.get('ground_id'):
        where.append('b.ground_id = ?')
        params.append(int(filters['ground_id']))

    where_sql = (' WHERE ' + ' AND '.join(where)) if where else ''
    page = max(int(page or 1), 1)
    per_page = max(int(per_page or 50), 1)

    db = get_db()
    total = db.execute(
        'SELECT COUNT(*) FROM turf_bookings b' + where_sql, params
    ).fetchone()[0]

    rows = db.execute(
        BOOKING_SELECT + where_sql + ' ORDER BY b.start_time DESC, b.id DESC LIMIT ? OFFSET ?',
        params + [per_page, (page - 1) * per_page]
    ).fetchall()

    return {
        'bookings': [_row_to_booking(row) for row in rows],
        'total': total,
        'page': page,
        'per_page': per_page,
        'pages': (total + per_page - 1) // per_page
    }


def search_bookings(query: str, limit: int = 20) -> list:
    """
    Free-text search on phone, email and customer name.

    Returns:
        Up to `limit` bookings, newest first
    """
    query = (query or '').strip()
    if not query:
        return []

    pattern = f'%{query}%'
    db = get_db()
    rows = db.execute(BOOKING_SELECT + '''
        WHERE b.phone LIKE ? OR b.email LIKE ? OR b.customer_name LIKE ?
        ORDER BY b.created_at DESC, b.id DESC
        LIMIT ?
    ''', (pattern, pattern, pattern, limit)).fetchall()
    return [_row_to_booking(row) for row in rows]


# =============================================================================
# CANCEL / REFUND / EXPIRE
# =============================================================================

def cancel_booking(booking_id: int) -> None:
    """
    Cancel (hard-delete) an unpaid booking.

    Raises:
        NotFoundError: If the booking doesn't exist
        ForbiddenTransitionError: If the booking is paid or refunded
    """
    with immediate_transaction() as conn:
        row = conn.execute(
            'SELECT payment_status FROM turf_bookings WHERE id = ?', (booking_id,)
        ).fetchone()
        if not row:
            raise NotFoundError('Booking not found', booking_id=booking_id)

        status = row['payment_status']
        if status in (STATUS_PAID, STATUS_REFUNDED):
            raise ForbiddenTransitionError(
                'Cannot cancel paid booking. Please request refund.',
                current_status=status
            )
        validate_status_transition(status, STATUS_DELETED)

        conn.execute('DELETE FROM turf_bookings WHERE id = ?', (booking_id,))

    logger.info('Booking cancelled: id=%s (was %s)', booking_id, status)


def mark_refunded(booking_id: int, reason: str = None, changed_by: int = None) -> dict:
    """
    Mark a paid booking as refunded. The money movement itself happens elsewhere.

    Raises:
        NotFoundError, InvalidStatusTransitionError
    """
    with immediate_transaction() as conn:
        row = conn.execute(
            'SELECT payment_status FROM turf_bookings WHERE id = ?', (booking_id,)
        ).fetchone()
        if not row:
            raise NotFoundError('Booking not found', booking_id=booking_id)

        validate_status_transition(row['payment_status'], STATUS_REFUNDED)

        conn.execute('''
            UPDATE turf_bookings
            SET payment_status = ?, updated_at = ?
            WHERE id = ?
        ''', (STATUS_REFUNDED, to_storage(get_now()), booking_id))
        record_status_change(conn, booking_id, row['payment_status'], STATUS_REFUNDED,
                             reason or 'Refund issued', changed_by)

    logger.info('Booking refunded: id=%s by=%s', booking_id, changed_by)
    return get_booking_by_id(booking_id)


def expire_stale_bookings(hold_minutes: int = None, now=None) -> int:
    """
    Fail online bookings stuck in pending/processing longer than the hold time.

    Runs only when invoked (CLI `flask expire-bookings`); nothing expires
    bookings automatically.

    Args:
        hold_minutes: Age threshold (defaults to BOOKING_HOLD_MINUTES)
        now: Current time (defaults to wall clock)

    Returns:
        Number of bookings expired
    """
    now = to_local(now) if now else get_now()
    if hold_minutes is None:
        hold_minutes = current_app.config.get('BOOKING_HOLD_MINUTES', 30)
    cutoff = to_storage(now - timedelta(minutes=hold_minutes))
    reason = 'Reservation expired'

    with immediate_transaction() as conn:
        rows = conn.execute('''
            SELECT id, payment_status FROM turf_bookings
            WHERE payment_status IN (?, ?) AND booking_type = ? AND updated_at < ?
        ''', (STATUS_PENDING, STATUS_PROCESSING, BOOKING_TYPE_ONLINE, cutoff)).fetchall()

        for row in rows:
            conn.execute('''
                UPDATE turf_bookings
                SET payment_status = ?, payment_failure_reason = ?, updated_at = ?
                WHERE id = ?
            ''', (STATUS_FAILED, reason, to_storage(now), row['id']))
            record_status_change(conn, row['id'], row['payment_status'], STATUS_FAILED, reason)

    if rows:
        logger.info('Expired %s stale bookings', len(rows))
    return len(rows)
