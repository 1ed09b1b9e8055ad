"""
Availability engine.
Decides whether a ground is free for a set of hours on a date, and builds
the bulk date/slot/ground views shown to customers.

An hour is unavailable on a ground when any of these holds:
    - it falls in the closed window (01:00-05:59)
    - the slot started more than SLOT_GRACE_MINUTES ago
    - a blocking booking on the ground or a related ground overlaps it
    - an active admin block for the ground (or for all grounds) covers it

Which bookings count as blocking depends on the caller: public views use
PUBLIC_BLOCKING_STATUSES, the checkout path CHECKOUT_BLOCKING_STATUSES.
"""

from datetime import date, timedelta

from flask import current_app

from database import get_db
from models.ground import get_all_grounds, get_conflict_group, resolve_ground
from models.booking_state import PUBLIC_BLOCKING_STATUSES, CHECKOUT_BLOCKING_STATUSES
from models.pricing import calculate_total_price, price_for_hour
from utils.datetime_helpers import (
    get_now, to_local, slot_start, slot_end, day_bounds,
    get_slot_label, parse_slot_label, to_storage, from_storage
)


CLOSED_HOURS_START = 1   # 01:00
CLOSED_HOURS_END = 6     # until 05:59

REASON_CLOSED = 'closed'
REASON_ELAPSED = 'elapsed'
REASON_BOOKED = 'booked'
REASON_BLOCKED = 'blocked'


# =============================================================================
# HOUR RULES
# =============================================================================

def is_closed_hour(hour: int) -> bool:
    """True for hours in the nightly closed window."""
    return CLOSED_HOURS_START <= hour < CLOSED_HOURS_END


def is_slot_elapsed(booking_date: date, hour: int, now=None) -> bool:
    """
    True once the slot's grace window has passed.

    A slot stays bookable until SLOT_GRACE_MINUTES after its start.
    """
    now = to_local(now) if now else get_now()
    grace = current_app.config.get('SLOT_GRACE_MINUTES', 30)
    return now >= slot_start(booking_date, hour) + timedelta(minutes=grace)


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    """Half-open interval overlap; touching edges do not overlap."""
    return start_a < end_b and end_a > start_b


# =============================================================================
# DATA LOADING
# =============================================================================

def _fetch_bookings(range_start, range_end, statuses, ground_names=None, exclude_booking_id=None) -> list:
    """
    Bookings in the given statuses whose interval overlaps [range_start, range_end).

    Returns:
        List of dicts: id, ground_name, payment_status, start, end (aware datetimes)
    """
    query = f'''
        SELECT b.id, b.start_time, b.end_time, b.payment_status, g.name AS ground_name
        FROM turf_bookings b
        JOIN turf_grounds g ON b.ground_id = g.id
        WHERE b.payment_status IN ({','.join('?' * len(statuses))})
          AND b.start_time < ?
          AND b.end_time > ?
    '''
    params = list(statuses) + [to_storage(range_end), to_storage(range_start)]

    if ground_names:
        query += f' AND g.name IN ({",".join("?" * len(ground_names))})'
        params.extend(ground_names)

    if exclude_booking_id:
        query += ' AND b.id != ?'
        params.append(exclude_booking_id)

    db = get_db()
    bookings = []
    for row in db.execute(query, params).fetchall():
        bookings.append({
            'id': row['id'],
            'ground_name': row['ground_name'],
            'payment_status': row['payment_status'],
            'start': from_storage(row['start_time']),
            'end': from_storage(row['end_time']),
        })
    return bookings


def _fetch_blocks(from_date: date, to_date: date, ground_id: int = None) -> list:
    """
    Active blocks between two dates (inclusive).

    Returns:
        List of dicts: block_date (str), hour, ground_id
    """
    query = '''
        SELECT block_date, time_slot, ground_id
        FROM turf_blocked_slots
        WHERE is_active = 1 AND block_date BETWEEN ? AND ?
    '''
    params = [from_date.isoformat(), to_date.isoformat()]

    if ground_id is not None:
        query += ' AND (ground_id IS NULL OR ground_id = ?)'
        params.append(ground_id)

    db = get_db()
    blocks = []
    for row in db.execute(query, params).fetchall():
        hour = parse_slot_label(row['time_slot'])
        if hour is not None:
            blocks.append({
                'block_date': row['block_date'],
                'hour': hour,
                'ground_id': row['ground_id'],
            })
    return blocks


# =============================================================================
# CORE CHECK
# =============================================================================

def get_hour_unavailable_reason(ground: dict, booking_date: date, hour: int,
                                bookings: list, blocks: list, now=None,
                                check_elapsed: bool = True):
    """
    Why an hour is unavailable on a ground, or None if it is free.

    Args:
        ground: Ground dict (id, name)
        booking_date: Civil date
        hour: Hour 0-23
        bookings: Pre-fetched blocking bookings (see _fetch_bookings)
        blocks: Pre-fetched active blocks (see _fetch_blocks)
        now: Current time (defaults to wall clock)
        check_elapsed: Apply the grace-window rule

    Returns:
        One of REASON_* or None
    """
    if is_closed_hour(hour):
        return REASON_CLOSED

    if check_elapsed and is_slot_elapsed(booking_date, hour, now):
        return REASON_ELAPSED

    date_str = booking_date.isoformat()
    for block in blocks:
        if (block['block_date'] == date_str and block['hour'] == hour
                and (block['ground_id'] is None or block['ground_id'] == ground['id'])):
            return REASON_BLOCKED

    group = get_conflict_group(ground['name'])
    requested_start = slot_start(booking_date, hour)
    requested_end = slot_end(booking_date, hour)
    for booking in bookings:
        if booking['ground_name'] in group and overlaps(
                booking['start'], booking['end'], requested_start, requested_end):
            return REASON_BOOKED

    return None


def find_unavailable_hours(ground: dict, booking_date: date, hours, statuses,
                           now=None, check_elapsed: bool = True, check_blocks: bool = True,
                           exclude_booking_id: int = None) -> dict:
    """
    Check a set of hours on one ground against the database.

    Args:
        ground: Ground dict
        booking_date: Civil date
        hours: Iterable of hours 0-23
        statuses: Booking statuses that occupy a slot
        now: Current time (defaults to wall clock)
        check_elapsed: Apply the grace-window rule
        check_blocks: Consider admin blocks
        exclude_booking_id: Booking to ignore (when re-checking itself)

    Returns:
        dict: {hour: reason} for every unavailable hour (empty if all free)
    """
    hours = sorted(hours)
    if not hours:
        return {}

    range_start = slot_start(booking_date, hours[0])
    range_end = slot_end(booking_date, hours[-1])
    bookings = _fetch_bookings(
        range_start, range_end, statuses,
        ground_names=get_conflict_group(ground['name']),
        exclude_booking_id=exclude_booking_id
    )
    blocks = _fetch_blocks(booking_date, booking_date, ground['id']) if check_blocks else []

    unavailable = {}
    for hour in hours:
        reason = get_hour_unavailable_reason(
            ground, booking_date, hour, bookings, blocks, now, check_elapsed
        )
        if reason:
            unavailable[hour] = reason
    return unavailable


def is_available(ground, booking_date: date, hours, now=None) -> bool:
    """
    Public availability: True only if every hour is free.

    Only paid bookings occupy a slot here.
    """
    if not isinstance(ground, dict):
        ground = resolve_ground(ground)
    return not find_unavailable_hours(ground, booking_date, hours, PUBLIC_BLOCKING_STATUSES, now)


def is_available_for_checkout(ground, booking_date: date, hours, now=None,
                              exclude_booking_id: int = None) -> bool:
    """
    Checkout availability: pending and processing bookings also occupy a slot.
    """
    if not isinstance(ground, dict):
        ground = resolve_ground(ground)
    return not find_unavailable_hours(
        ground, booking_date, hours, CHECKOUT_BLOCKING_STATUSES, now,
        exclude_booking_id=exclude_booking_id
    )


# =============================================================================
# BULK VIEWS
# =============================================================================

def get_available_slots(booking_date: date, now=None) -> list:
    """
    Status of all 24 hour slots on a date.

    A slot is enabled when at least one ground is free at that hour.

    Returns:
        List of 24 dicts: {hour, slot, enabled, grounds: [free ground names]}
    """
    grounds = get_all_grounds()
    start, end = day_bounds(booking_date)
    bookings = _fetch_bookings(start, end, PUBLIC_BLOCKING_STATUSES)
    blocks = _fetch_blocks(booking_date, booking_date)

    slots = []
    for hour in range(24):
        free = [
            ground['name'] for ground in grounds
            if get_hour_unavailable_reason(ground, booking_date, hour, bookings, blocks, now) is None
        ]
        slots.append({
            'hour': hour,
            'slot': get_slot_label(hour),
            'enabled': bool(free),
            'grounds': free
        })
    return slots


def get_available_dates(window_days: int = None, now=None) -> dict:
    """
    Per-date enabled flag for the booking window starting today.

    A date is enabled when any hour has any free ground.

    Returns:
        dict: {'YYYY-MM-DD': bool} in date order
    """
    now = to_local(now) if now else get_now()
    if window_days is None:
        window_days = current_app.config.get('BOOKING_WINDOW_DAYS', 45)

    today = now.date()
    last_day = today + timedelta(days=window_days - 1)
    grounds = get_all_grounds()
    bookings = _fetch_bookings(day_bounds(today)[0], day_bounds(last_day)[1], PUBLIC_BLOCKING_STATUSES)
    blocks = _fetch_blocks(today, last_day)

    result = {}
    for offset in range(window_days):
        current = today + timedelta(days=offset)
        result[current.isoformat()] = any(
            get_hour_unavailable_reason(ground, current, hour, bookings, blocks, now) is None
            for hour in range(24)
            for ground in grounds
        )
    return result


def group_dates_by_month(dates: dict) -> dict:
    """
    Regroup get_available_dates() output for display.

    Returns:
        dict: {'YYYY-MM': [{'date': 'YYYY-MM-DD', 'enabled': bool}, ...]}
    """
    grouped = {}
    for date_str, enabled in dates.items():
        grouped.setdefault(date_str[:7], []).append({'date': date_str, 'enabled': enabled})
    return grouped


def get_available_grounds(booking_date: date, hours, now=None) -> list:
    """
    Availability and total price of every ground for an hour set.

    Returns:
        List of dicts: {id, name, description, available, price, price_per_hour, pricing}
    """
    hours = sorted(hours)
    result = []
    for ground in get_all_grounds():
        available = not find_unavailable_hours(
            ground, booking_date, hours, PUBLIC_BLOCKING_STATUSES, now
        )
        result.append({
            'id': ground['id'],
            'name': ground['name'],
            'description': ground['description'],
            'available': available,
            'price': calculate_total_price(ground, booking_date, hours),
            'price_per_hour': [price_for_hour(ground, booking_date, hour) for hour in hours],
            'pricing': ground['pricing']
        })
    return result
