"""
Booking payment-state machine.
Status constants, the transition table, blocking predicates and history.

Two different status filters decide whether a booking occupies its slot:
public availability only treats paid bookings as taken, while the checkout
path also treats bookings with a payment in flight as taken so that two
customers cannot pay for the same slot at once.
"""

from database import get_db
from utils.datetime_helpers import get_now, to_storage
from utils.errors import InvalidStatusTransitionError


# =============================================================================
# CONSTANTS
# =============================================================================

STATUS_PENDING = 'pending'
STATUS_PROCESSING = 'processing'
STATUS_PAID = 'paid'
STATUS_FAILED = 'failed'
STATUS_REFUNDED = 'refunded'

# Pseudo-status recorded when a booking is cancelled (row is deleted)
STATUS_DELETED = 'deleted'

PAYMENT_STATUSES = (
    STATUS_PENDING,
    STATUS_PROCESSING,
    STATUS_PAID,
    STATUS_FAILED,
    STATUS_REFUNDED,
)

BOOKING_TYPE_ONLINE = 'online'
BOOKING_TYPE_OFFLINE = 'offline'

STATUS_TRANSITIONS = {
    STATUS_PENDING: (STATUS_PROCESSING, STATUS_FAILED, STATUS_DELETED),
    STATUS_PROCESSING: (STATUS_PAID, STATUS_FAILED, STATUS_DELETED),
    STATUS_FAILED: (STATUS_PROCESSING, STATUS_FAILED, STATUS_DELETED),
    STATUS_PAID: (STATUS_REFUNDED,),
    STATUS_REFUNDED: (),
}

PUBLIC_BLOCKING_STATUSES = (STATUS_PAID,)
CHECKOUT_BLOCKING_STATUSES = (STATUS_PENDING, STATUS_PROCESSING, STATUS_PAID)


# =============================================================================
# PREDICATES
# =============================================================================

def blocks_public_availability(status: str) -> bool:
    """True if a booking in this status hides its slot from public availability."""
    return status in PUBLIC_BLOCKING_STATUSES


def blocks_checkout(status: str) -> bool:
    """True if a booking in this status prevents another checkout of its slot."""
    return status in CHECKOUT_BLOCKING_STATUSES


def can_transition(from_status: str, to_status: str) -> bool:
    """Check the transition table."""
    return to_status in STATUS_TRANSITIONS.get(from_status, ())


def validate_status_transition(from_status: str, to_status: str) -> None:
    """
    Raise if a booking may not move between two statuses.

    Raises:
        InvalidStatusTransitionError: If the transition is not in the table
    """
    if not can_transition(from_status, to_status):
        raise InvalidStatusTransitionError(
            f'Cannot change booking from {from_status} to {to_status}',
            current_status=from_status
        )


# =============================================================================
# HISTORY
# =============================================================================

def record_status_change(
    conn,
    booking_id: int,
    from_status: str,
    to_status: str,
    reason: str = None,
    changed_by: int = None
) -> None:
    """
    Insert a history row on the caller's connection (no commit).

    Args:
        conn: Open connection, usually inside a transaction
        booking_id: Booking ID
        from_status: Previous status (None on creation)
        to_status: New status
        reason: Optional reason text
        changed_by: Operator user ID, if any
    """
    conn.execute('''
        INSERT INTO turf_booking_status_history
        (booking_id, from_status, to_status, reason, changed_by, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
    ''', (booking_id, from_status, to_status, reason, changed_by, to_storage(get_now())))


def get_status_history(booking_id: int) -> list:
    """
    Get status history for a booking, oldest first.

    Returns:
        List of history dicts
    """
    db = get_db()
    rows = db.execute('''
        SELECT h.*, u.username AS changed_by_username
        FROM turf_booking_status_history h
        LEFT JOIN users u ON h.changed_by = u.id
        WHERE h.booking_id = ?
        ORDER BY h.id
    ''', (booking_id,)).fetchall()
    return [dict(row) for row in rows]
