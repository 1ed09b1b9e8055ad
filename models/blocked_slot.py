"""
Blocked slot model.
Operator-imposed holds on a date + hour slot, for one ground or all of them.

Blocks are soft-deleted (is_active = 0) and never otherwise edited. They do
not check existing bookings; a block only stops new ones.
The duplicate check and the insert hold the write lock together.
"""

import logging

from database import get_db, immediate_transaction
from utils.datetime_helpers import get_now, to_storage, parse_slot_label, get_slot_label
from utils.errors import ConflictError, NotFoundError, ValidationError
from utils.validators import parse_date, sanitize_input

logger = logging.getLogger(__name__)

DEFAULT_BLOCK_REASON = 'Blocked by admin'


# =============================================================================
# CRUD OPERATIONS
# =============================================================================

def create_blocked_slot(
    block_date,
    time_slot,
    ground_id: int = None,
    reason: str = None,
    blocked_by: int = None
) -> dict:
    """
    Block a slot.

    Args:
        block_date: Date (YYYY-MM-DD or date)
        time_slot: Slot label ("2:00 PM to 3:00 PM") or hour int
        ground_id: Ground to block, None for every ground
        reason: Reason text (defaults to 'Blocked by admin')
        blocked_by: Operator user ID

    Returns:
        Created block dict

    Raises:
        ValidationError: If date or slot is invalid
        ConflictError: If an identical active block exists
    """
    block_date = parse_date(block_date, field='date')

    if isinstance(time_slot, int) and not isinstance(time_slot, bool) and 0 <= time_slot <= 23:
        label = get_slot_label(time_slot)
    else:
        hour = parse_slot_label(time_slot if isinstance(time_slot, str) else None)
        if hour is None:
            raise ValidationError('Invalid time slot', field='timeSlot')
        label = get_slot_label(hour)

    reason = sanitize_input(reason, 255) or DEFAULT_BLOCK_REASON
    now = to_storage(get_now())

    with immediate_transaction() as conn:
        existing = conn.execute('''
            SELECT id FROM turf_blocked_slots
            WHERE block_date = ? AND time_slot = ? AND ground_id IS ? AND is_active = 1
        ''', (block_date.isoformat(), label, ground_id)).fetchone()

        if existing:
            raise ConflictError('This slot is already blocked', block_id=existing['id'])

        cursor = conn.execute('''
            INSERT INTO turf_blocked_slots
            (block_date, time_slot, ground_id, reason, blocked_by, is_active, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, 1, ?, ?)
        ''', (block_date.isoformat(), label, ground_id, reason, blocked_by, now, now))
        block_id = cursor.lastrowid

    logger.info('Slot blocked: %s %s ground=%s by=%s', block_date, label, ground_id, blocked_by)
    return get_blocked_slot_by_id(block_id)


def deactivate_blocked_slot(block_id: int) -> dict:
    """
    Unblock a slot (soft delete).

    Raises:
        NotFoundError: If the block doesn't exist
    """
    block = get_blocked_slot_by_id(block_id)
    if not block:
        raise NotFoundError('Blocked slot not found', block_id=block_id)

    with get_db() as conn:
        conn.execute('''
            UPDATE turf_blocked_slots
            SET is_active = 0, updated_at = ?
            WHERE id = ?
        ''', (to_storage(get_now()), block_id))

    logger.info('Slot unblocked: id=%s', block_id)
    return get_blocked_slot_by_id(block_id)


# =============================================================================
# QUERIES
# =============================================================================

def get_blocked_slot_by_id(block_id: int) -> dict:
    """Get block by ID with ground name, or None."""
    db = get_db()
    row = db.execute('''
        SELECT b.*, g.name AS ground_name
        FROM turf_blocked_slots b
        LEFT JOIN turf_grounds g ON b.ground_id = g.id
        WHERE b.id = ?
    ''', (block_id,)).fetchone()
    return dict(row) if row else None


def get_active_blocks(block_date=None, ground_id: int = None) -> list:
    """
    List active blocks, optionally for a date and/or ground.

    A ground filter also returns unscoped blocks, since those apply to it.
    """
    query = '''
        SELECT b.*, g.name AS ground_name
        FROM turf_blocked_slots b
        LEFT JOIN turf_grounds g ON b.ground_id = g.id
        WHERE b.is_active = 1
    '''
    params = []

    if block_date is not None:
        query += ' AND b.block_date = ?'
        params.append(parse_date(block_date).isoformat())

    if ground_id is not None:
        query += ' AND (b.ground_id IS NULL OR b.ground_id = ?)'
        params.append(ground_id)

    query += ' ORDER BY b.block_date, b.id'

    db = get_db()
    return [dict(row) for row in db.execute(query, params).fetchall()]
