"""
Payment Service - Orchestrates the online payment lifecycle.

Handles:
- Starting checkout: creating (or reusing) the gateway order
- Verifying checkout callbacks: signature gate, then authoritative status
- Recording customer-side payment failures

Failures that are certain leave the booking 'failed' with a reason.
A gateway timeout while verifying leaves it 'processing', since the real
outcome is unknown and a later verify can still settle it.
"""

import logging
from typing import Any, Dict

from flask import current_app

from blueprints.turf.services.payment_gateway import (
    PaymentGateway, get_payment_gateway, SUCCESSFUL_PAYMENT_STATUSES
)
from models.booking import (
    STATUS_PROCESSING, STATUS_PAID, STATUS_FAILED, STATUS_REFUNDED,
    get_booking_or_404, attach_order, mark_payment_failed, mark_payment_paid,
    note_payment_issue, record_payment_failure
)
from models.booking_payment import check_retry_available
from utils.errors import (
    ConflictError, InvalidSignatureError, PaymentDeclinedError,
    InvalidStatusTransitionError, UpstreamError, GatewayTimeoutError
)

logger = logging.getLogger(__name__)

INVALID_SIGNATURE_REASON = 'Invalid payment signature'
FETCH_FAILED_REASON = 'Could not fetch payment details from gateway'
ORDER_FAILED_REASON = 'Could not create payment order'
TIMEOUT_NOTE = 'Payment verification timed out, status unknown'


def _checkout_payload(booking: dict, gateway: PaymentGateway) -> Dict[str, Any]:
    return {
        'booking_id': booking['id'],
        'order_id': booking['gateway_order_id'],
        'amount': booking['total_amount'] * 100,
        'currency': current_app.config.get('CURRENCY', 'INR'),
        'key_id': gateway.key_id,
        'booking': booking
    }


# =============================================================================
# BEGIN PAYMENT
# =============================================================================

def begin_payment(booking_id: int, gateway: PaymentGateway = None, now=None) -> Dict[str, Any]:
    """
    Start (or resume) checkout for a booking.

    pending    -> create a gateway order, attach it, move to processing
    processing -> return the existing order unchanged
    failed     -> re-check the slot, reuse the stored order (or create one),
                  move to processing

    Args:
        booking_id: Booking ID
        gateway: Gateway client (defaults to the app's)
        now: Current time (defaults to wall clock)

    Returns:
        dict with booking_id, order_id, amount (paise), currency, key_id, booking

    Raises:
        NotFoundError, ConflictError, SlotUnavailableError, UpstreamError
    """
    gateway = gateway or get_payment_gateway()
    booking = get_booking_or_404(booking_id)
    status = booking['payment_status']

    if status == STATUS_PROCESSING:
        return _checkout_payload(booking, gateway)

    if status in (STATUS_PAID, STATUS_REFUNDED):
        raise ConflictError('Booking is already paid', current_status=status)

    if status == STATUS_FAILED:
        check_retry_available(booking_id, now)

    order_id = booking['gateway_order_id']
    if not order_id:
        try:
            order = gateway.create_order(
                amount=booking['total_amount'],
                currency=current_app.config.get('CURRENCY', 'INR'),
                receipt=f'booking_{booking_id}',
                notes={
                    'booking_id': str(booking_id),
                    'customer_name': booking['customer_name'],
                    'ground': booking['ground_name'],
                    'date': booking['booking_date'],
                    'slots': ', '.join(booking['time_slots'])
                }
            )
        except UpstreamError:
            mark_payment_failed(booking_id, ORDER_FAILED_REASON, now=now)
            raise
        order_id = order['id']

    booking = attach_order(booking_id, order_id, expected_status=status, now=now)
    return _checkout_payload(booking, gateway)


# =============================================================================
# CONFIRM PAYMENT
# =============================================================================

def confirm_payment(booking_id: int, order_id: str, payment_id: str, signature: str,
                    gateway: PaymentGateway = None, now=None) -> dict:
    """
    Verify a checkout callback and settle the booking.

    The signature is checked first; a mismatch fails the booking without
    any gateway call. Only then is the payment's status fetched.

    Args:
        booking_id: Booking ID
        order_id: Order ID reported by the checkout
        payment_id: Payment ID reported by the checkout
        signature: Signature reported by the checkout
        gateway: Gateway client (defaults to the app's)
        now: Current time (defaults to wall clock)

    Returns:
        The paid booking dict

    Raises:
        InvalidSignatureError: Signature or order mismatch (booking failed)
        PaymentDeclinedError: Gateway reports a non-successful status (booking failed)
        GatewayTimeoutError: Status unknown (booking left processing)
        UpstreamError: Gateway error (booking failed)
        ConflictError: Already settled, or slot lost to a paid booking
        InvalidStatusTransitionError: Booking is not awaiting payment
    """
    gateway = gateway or get_payment_gateway()
    booking = get_booking_or_404(booking_id)
    status = booking['payment_status']

    if status == STATUS_PAID:
        if payment_id and booking['gateway_payment_id'] == payment_id:
            return booking
        raise ConflictError('Booking is already paid', current_status=status)

    if status != STATUS_PROCESSING:
        raise InvalidStatusTransitionError(
            f'Booking is not awaiting payment (status {status})',
            current_status=status
        )

    if order_id != booking['gateway_order_id'] or not gateway.verify_signature(
            order_id, payment_id, signature):
        mark_payment_failed(booking_id, INVALID_SIGNATURE_REASON, now=now)
        logger.warning('Invalid payment signature for booking %s (order %s)', booking_id, order_id)
        raise InvalidSignatureError(INVALID_SIGNATURE_REASON)

    try:
        payment = gateway.fetch_payment(payment_id)
    except GatewayTimeoutError:
        note_payment_issue(booking_id, TIMEOUT_NOTE, now=now)
        raise
    except UpstreamError as e:
        mark_payment_failed(booking_id, FETCH_FAILED_REASON, now=now)
        raise UpstreamError(FETCH_FAILED_REASON) from e

    payment_status = payment.get('status')
    if payment_status not in SUCCESSFUL_PAYMENT_STATUSES:
        reason = f'Payment status: {payment_status}'
        mark_payment_failed(booking_id, reason, payment_id=payment_id,
                            signature=signature, now=now)
        raise PaymentDeclinedError(reason, payment_status=payment_status)

    return mark_payment_paid(booking_id, payment_id, signature,
                             method=payment.get('method'), now=now)


# =============================================================================
# FAILURE REPORT
# =============================================================================

def report_payment_failure(booking_id: int, error: Any = None, now=None) -> dict:
    """
    Record a failure the customer's checkout reported.

    Args:
        booking_id: Booking ID
        error: Checkout error payload; its 'description' (or the string
            itself) becomes the reason
        now: Current time (defaults to wall clock)

    Returns:
        Updated booking dict
    """
    reason = None
    if isinstance(error, dict):
        reason = error.get('description') or error.get('reason')
    elif isinstance(error, str):
        reason = error

    booking = record_payment_failure(booking_id, reason, now=now)
    logger.info('Payment failure reported for booking %s: %s',
                booking_id, booking['payment_failure_reason'])
    return booking
