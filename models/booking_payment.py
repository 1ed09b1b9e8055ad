"""
Booking payment-state updates.
Database side of the payment lifecycle: attaching gateway orders, marking
bookings paid or failed, and recording caller-reported failures.

Gateway calls are made by blueprints/turf/services/payment_service.py;
nothing here talks to the network.
"""

import logging

from database import immediate_transaction
from models.booking_availability import find_unavailable_hours
from models.booking_crud import get_booking_by_id
from models.booking_state import (
    STATUS_PROCESSING, STATUS_PAID, STATUS_FAILED, STATUS_REFUNDED,
    CHECKOUT_BLOCKING_STATUSES, PUBLIC_BLOCKING_STATUSES,
    record_status_change, validate_status_transition
)
from models.ground import get_ground_by_id
from utils.datetime_helpers import get_now, to_local, to_storage
from utils.errors import (
    NotFoundError, ConflictError, SlotUnavailableError, InvalidStatusTransitionError
)
from utils.validators import parse_date, sanitize_input

logger = logging.getLogger(__name__)

REFUND_REQUIRED_REASON = 'Slot was booked by another customer. Refund required'


def _lock_booking(conn, booking_id: int):
    row = conn.execute('''
        SELECT id, payment_status, gateway_order_id, payment_attempts
        FROM turf_bookings WHERE id = ?
    ''', (booking_id,)).fetchone()
    if not row:
        raise NotFoundError('Booking not found', booking_id=booking_id)
    return row


def _booking_slot(booking_id: int):
    """(ground, date, hours) of a booking, for conflict re-checks."""
    booking = get_booking_by_id(booking_id)
    ground = get_ground_by_id(booking['ground_id'])
    return ground, parse_date(booking['booking_date']), booking['hours']


# =============================================================================
# BEGIN PAYMENT
# =============================================================================

def check_retry_available(booking_id: int, now=None) -> None:
    """
    Make sure a failed booking's slot is still free before retrying payment.

    Raises:
        SlotUnavailableError: If another checkout or a block now holds the slot
    """
    ground, booking_date, hours = _booking_slot(booking_id)
    unavailable = find_unavailable_hours(
        ground, booking_date, hours, CHECKOUT_BLOCKING_STATUSES, now,
        exclude_booking_id=booking_id
    )
    if unavailable:
        raise SlotUnavailableError(
            'Selected time slot is no longer available',
            unavailable_hours=sorted(unavailable)
        )


def attach_order(booking_id: int, order_id: str, expected_status: str, now=None) -> dict:
    """
    Move a booking into 'processing' with a gateway order attached.

    A booking keeps the first order id it was given; an attempt to attach a
    different one is rejected. A retry from 'failed' re-checks the slot in
    the same transaction.

    Args:
        booking_id: Booking ID
        order_id: Gateway order ID
        expected_status: Status the caller saw ('pending' or 'failed')
        now: Current time (defaults to wall clock)

    Returns:
        Updated booking dict

    Raises:
        NotFoundError, InvalidStatusTransitionError, SlotUnavailableError, ConflictError
    """
    now = to_local(now) if now else get_now()

    with immediate_transaction() as conn:
        row = _lock_booking(conn, booking_id)
        status = row['payment_status']

        if status != expected_status:
            raise InvalidStatusTransitionError(
                f'Booking status changed to {status}, please retry',
                current_status=status
            )
        validate_status_transition(status, STATUS_PROCESSING)

        if row['gateway_order_id'] and row['gateway_order_id'] != order_id:
            raise ConflictError('Booking already has a payment order')

        if status == STATUS_FAILED:
            check_retry_available(booking_id, now)

        conn.execute('''
            UPDATE turf_bookings
            SET gateway_order_id = COALESCE(gateway_order_id, ?),
                payment_status = ?,
                payment_failure_reason = NULL,
                updated_at = ?
            WHERE id = ?
        ''', (order_id, STATUS_PROCESSING, to_storage(now), booking_id))
        record_status_change(conn, booking_id, status, STATUS_PROCESSING,
                             f'Payment order {order_id}')

    logger.info('Payment started: booking=%s order=%s', booking_id, order_id)
    return get_booking_by_id(booking_id)


# =============================================================================
# OUTCOMES
# =============================================================================

def mark_payment_failed(booking_id: int, reason: str, payment_id: str = None,
                        signature: str = None, now=None) -> dict:
    """
    Move a booking to 'failed', count the attempt and record why.

    Args:
        booking_id: Booking ID
        reason: Failure reason stored on the booking
        payment_id: Gateway payment ID, when the gateway reported one
        signature: Signature supplied with it
        now: Current time (defaults to wall clock)

    Returns:
        Updated booking dict

    Raises:
        NotFoundError, InvalidStatusTransitionError
    """
    now = to_local(now) if now else get_now()

    with immediate_transaction() as conn:
        row = _lock_booking(conn, booking_id)
        status = row['payment_status']
        validate_status_transition(status, STATUS_FAILED)

        conn.execute('''
            UPDATE turf_bookings
            SET payment_status = ?,
                payment_failure_reason = ?,
                payment_attempts = payment_attempts + 1,
                gateway_payment_id = COALESCE(?, gateway_payment_id),
                gateway_signature = COALESCE(?, gateway_signature),
                updated_at = ?
            WHERE id = ?
        ''', (STATUS_FAILED, reason, payment_id, signature, to_storage(now), booking_id))
        record_status_change(conn, booking_id, status, STATUS_FAILED, reason)

    logger.warning('Payment failed: booking=%s reason=%s', booking_id, reason)
    return get_booking_by_id(booking_id)


def note_payment_issue(booking_id: int, note: str, now=None) -> None:
    """Record a note on a processing booking without changing its status."""
    now = to_local(now) if now else get_now()

    with immediate_transaction() as conn:
        conn.execute('''
            UPDATE turf_bookings
            SET payment_failure_reason = ?, updated_at = ?
            WHERE id = ? AND payment_status = ?
        ''', (note, to_storage(now), booking_id, STATUS_PROCESSING))


def mark_payment_paid(booking_id: int, payment_id: str, signature: str,
                      method: str = None, now=None) -> dict:
    """
    Move a processing booking to 'paid'.

    The slot is re-checked against other paid bookings in the same
    transaction. If an offline booking took it meanwhile, this booking is
    failed with a refund-required reason and ConflictError is raised.

    Args:
        booking_id: Booking ID
        payment_id: Gateway payment ID
        signature: Verified signature
        method: Payment method reported by the gateway
        now: Current time (defaults to wall clock)

    Returns:
        Updated booking dict

    Raises:
        NotFoundError, InvalidStatusTransitionError, ConflictError
    """
    now = to_local(now) if now else get_now()
    timestamp = to_storage(now)
    taken = False

    with immediate_transaction() as conn:
        row = _lock_booking(conn, booking_id)
        status = row['payment_status']
        validate_status_transition(status, STATUS_PAID)

        ground, booking_date, hours = _booking_slot(booking_id)
        taken = bool(find_unavailable_hours(
            ground, booking_date, hours, PUBLIC_BLOCKING_STATUSES, now,
            check_elapsed=False, check_blocks=False, exclude_booking_id=booking_id
        ))

        if taken:
            conn.execute('''
                UPDATE turf_bookings
                SET payment_status = ?, payment_failure_reason = ?,
                    payment_attempts = payment_attempts + 1,
                    gateway_payment_id = ?, gateway_signature = ?, payment_method = ?,
                    updated_at = ?
                WHERE id = ?
            ''', (STATUS_FAILED, REFUND_REQUIRED_REASON, payment_id, signature, method,
                  timestamp, booking_id))
            record_status_change(conn, booking_id, status, STATUS_FAILED, REFUND_REQUIRED_REASON)
        else:
            conn.execute('''
                UPDATE turf_bookings
                SET payment_status = ?, payment_failure_reason = NULL,
                    payment_attempts = payment_attempts + 1,
                    gateway_payment_id = ?, gateway_signature = ?, payment_method = ?,
                    payment_completed_at = ?, updated_at = ?
                WHERE id = ?
            ''', (STATUS_PAID, payment_id, signature, method, timestamp, timestamp, booking_id))
            record_status_change(conn, booking_id, status, STATUS_PAID, f'Payment {payment_id}')

    if taken:
        logger.error('Paid booking %s lost its slot, refund required (payment %s)',
                     booking_id, payment_id)
        raise ConflictError(REFUND_REQUIRED_REASON, booking_id=booking_id)

    logger.info('Booking paid: id=%s payment=%s method=%s', booking_id, payment_id, method)
    return get_booking_by_id(booking_id)


def record_payment_failure(booking_id: int, reason: str = None, now=None) -> dict:
    """
    Record a failure reported by the customer's checkout (e.g. closed the
    payment window). The gateway is not contacted.

    Raises:
        NotFoundError: If the booking doesn't exist
        InvalidStatusTransitionError: If the booking is already paid or refunded
    """
    booking = get_booking_by_id(booking_id)
    if not booking:
        raise NotFoundError('Booking not found', booking_id=booking_id)
    if booking['payment_status'] in (STATUS_PAID, STATUS_REFUNDED):
        raise InvalidStatusTransitionError(
            'Booking is already paid',
            current_status=booking['payment_status']
        )

    reason = sanitize_input(reason, 255) or 'Payment failed by user'
    return mark_payment_failed(booking_id, reason, now=now)
