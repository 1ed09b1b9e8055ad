"""
Booking data access functions.
Availability checks, booking lifecycle and payment-state updates.

This module re-exports the split modules so callers can import from one place:
- booking_state.py: Status constants, transition table, predicates, history
- booking_availability.py: Availability engine and bulk views
- booking_crud.py: Create, read, list, cancel, refund, expiry
- booking_payment.py: Payment order attachment and outcomes
"""

# =============================================================================
# RE-EXPORTS
# =============================================================================

# State machine
from .booking_state import (
    STATUS_PENDING,
    STATUS_PROCESSING,
    STATUS_PAID,
    STATUS_FAILED,
    STATUS_REFUNDED,
    PAYMENT_STATUSES,
    PUBLIC_BLOCKING_STATUSES,
    CHECKOUT_BLOCKING_STATUSES,
    blocks_public_availability,
    blocks_checkout,
    can_transition,
    validate_status_transition,
    get_status_history,
)

# Availability
from .booking_availability import (
    is_closed_hour,
    is_slot_elapsed,
    is_available,
    is_available_for_checkout,
    find_unavailable_hours,
    get_available_slots,
    get_available_dates,
    get_available_grounds,
    group_dates_by_month,
)

# CRUD operations
from .booking_crud import (
    create_booking,
    create_offline_booking,
    get_booking_by_id,
    get_booking_or_404,
    get_bookings,
    search_bookings,
    cancel_booking,
    mark_refunded,
    expire_stale_bookings,
)

# Payment state
from .booking_payment import (
    attach_order,
    mark_payment_failed,
    mark_payment_paid,
    note_payment_issue,
    record_payment_failure,
)

__all__ = [
    'STATUS_PENDING', 'STATUS_PROCESSING', 'STATUS_PAID', 'STATUS_FAILED', 'STATUS_REFUNDED',
    'PAYMENT_STATUSES', 'PUBLIC_BLOCKING_STATUSES', 'CHECKOUT_BLOCKING_STATUSES',
    'blocks_public_availability', 'blocks_checkout', 'can_transition',
    'validate_status_transition', 'get_status_history',
    'is_closed_hour', 'is_slot_elapsed', 'is_available', 'is_available_for_checkout',
    'find_unavailable_hours', 'get_available_slots', 'get_available_dates',
    'get_available_grounds', 'group_dates_by_month',
    'create_booking', 'create_offline_booking', 'get_booking_by_id', 'get_booking_or_404',
    'get_bookings', 'search_bookings', 'cancel_booking', 'mark_refunded',
    'expire_stale_bookings',
    'attach_order', 'mark_payment_failed', 'mark_payment_paid', 'note_payment_issue',
    'record_payment_failure',
]
