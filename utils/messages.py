"""
Centralized user-facing messages.
All API response text in one place for consistency.
"""

MESSAGES = {
    # Success messages
    'login_success': 'Welcome {name}',
    'logout_success': 'Logged out successfully',
    'booking_created': 'Booking created. Complete payment to confirm your slot',
    'booking_cancelled': 'Booking cancelled',
    'booking_refunded': 'Booking marked as refunded',
    'offline_booking_created': 'Offline booking created successfully',
    'payment_order_created': 'Payment order created',
    'payment_verified': 'Payment verified successfully',
    'payment_failure_recorded': 'Payment failure recorded',
    'pricing_updated': 'Ground pricing updated',
    'slot_blocked': 'Slot blocked successfully',
    'slot_unblocked': 'Slot unblocked successfully',

    # Error messages
    'invalid_credentials': 'Invalid username or password',
    'login_required': 'Please log in to access this resource',
    'permission_denied': 'You do not have permission for this action',
    'request_body_required': 'Request body must be JSON',
    'ground_not_found': 'Ground not found',
    'booking_not_found': 'Booking not found',
    'block_not_found': 'Blocked slot not found',
    'slot_unavailable': 'Selected time slot is no longer available',
    'closed_hours': 'Bookings are not allowed between 1 AM and 6 AM',
    'slot_elapsed': 'Selected time slot has already started',
    'outside_window': 'Bookings are only open for the next {days} days',
    'cannot_cancel_paid': 'Cannot cancel paid booking. Please request refund.',
    'already_paid': 'Booking is already paid',
    'invalid_signature': 'Invalid payment signature',
    'gateway_fetch_failed': 'Could not fetch payment details from gateway',
    'gateway_unreachable': 'Payment gateway is not responding. Please retry verification',
    'gateway_order_failed': 'Could not create payment order',
    'payment_status': 'Payment status: {status}',
    'payment_failed_by_user': 'Payment failed by user',
    'booking_expired': 'Reservation expired',
    'slot_already_blocked': 'This slot is already blocked',
    'invalid_slot_label': 'Invalid time slot',
    'not_found': 'Resource not found',
    'method_not_allowed': 'Method not allowed',
    'internal_error': 'Internal server error',
}


def get_message(key: str, **kwargs) -> str:
    """
    Get message with optional formatting.

    Args:
        key: Message key
        **kwargs: Format parameters

    Returns:
        Formatted message or key if not found
    """
    message = MESSAGES.get(key, key)
    if kwargs:
        return message.format(**kwargs)
    return message
