"""
Booking API routes.
Customer checkout: create a booking, pay for it, report failures, cancel.

These endpoints are called by the public booking page, which has no
operator session, so they are exempt from CSRF protection.
"""

from flask import request

from blueprints.turf.services.payment_service import (
    begin_payment, confirm_payment, report_payment_failure
)
from extensions import csrf
from models.booking import create_booking, get_booking_or_404, cancel_booking
from utils.api_response import api_success, api_error
from utils.messages import get_message
from utils.validators import hours_from_payload

PUBLIC_BOOKING_FIELDS = (
    'id', 'customer_name', 'ground_id', 'ground_name', 'booking_date', 'start_time',
    'end_time', 'duration', 'hours', 'time_slots', 'total_amount', 'payment_status',
    'booking_type', 'gateway_order_id', 'payment_method', 'payment_attempts',
    'payment_failure_reason', 'payment_completed_at', 'created_at'
)


def public_booking(booking: dict) -> dict:
    """Booking fields safe to return to the customer."""
    return {key: booking.get(key) for key in PUBLIC_BOOKING_FIELDS}


def register_routes(bp):
    """Register booking routes on the blueprint."""

    @bp.route('/bookings', methods=['POST'])
    @csrf.exempt
    def create():
        """
        Create a pending booking.

        Request body:
            name, phone, email: Customer contact
            groundId: Ground ID or name
            date: YYYY-MM-DD
            hours: Consecutive hours (or startHours, or startHour + duration)

        Returns:
            201 with the booking
        """
        data = request.get_json(silent=True)
        if not data:
            return api_error(get_message('request_body_required'), status=400)

        booking = create_booking(
            ground_ref=data.get('groundId') or data.get('ground'),
            booking_date=data.get('date'),
            hours=hours_from_payload(data),
            name=data.get('name'),
            phone=data.get('phone'),
            email=data.get('email')
        )
        return api_success(
            data=public_booking(booking),
            message=get_message('booking_created'),
            status=201
        )

    @bp.route('/bookings/<int:booking_id>', methods=['GET'])
    def detail(booking_id):
        """Booking status for the checkout page."""
        return api_success(data=public_booking(get_booking_or_404(booking_id)))

    @bp.route('/bookings/<int:booking_id>/payment', methods=['POST'])
    @csrf.exempt
    def start_payment(booking_id):
        """
        Start checkout: returns the gateway order to open the payment form with.

        Returns:
            order_id, amount (paise), currency, key_id, booking
        """
        checkout = begin_payment(booking_id)
        checkout['booking'] = public_booking(checkout['booking'])
        return api_success(data=checkout, message=get_message('payment_order_created'))

    @bp.route('/bookings/<int:booking_id>/payment/verify', methods=['POST'])
    @csrf.exempt
    def verify_payment(booking_id):
        """
        Verify the checkout callback.

        Request body:
            razorpay_order_id, razorpay_payment_id, razorpay_signature
            (orderId, paymentId, signature accepted as aliases)
        """
        data = request.get_json(silent=True)
        if not data:
            return api_error(get_message('request_body_required'), status=400)

        booking = confirm_payment(
            booking_id,
            order_id=data.get('razorpay_order_id') or data.get('orderId'),
            payment_id=data.get('razorpay_payment_id') or data.get('paymentId'),
            signature=data.get('razorpay_signature') or data.get('signature')
        )
        return api_success(data=public_booking(booking), message=get_message('payment_verified'))

    @bp.route('/bookings/<int:booking_id>/payment/failure', methods=['POST'])
    @csrf.exempt
    def payment_failure(booking_id):
        """
        Record a checkout failure reported by the payment form.

        Request body (optional):
            error: {"description": "..."} or a reason string
        """
        data = request.get_json(silent=True) or {}
        booking = report_payment_failure(booking_id, data.get('error') or data.get('reason'))
        return api_success(data=public_booking(booking),
                           message=get_message('payment_failure_recorded'))

    @bp.route('/bookings/<int:booking_id>', methods=['DELETE'])
    @csrf.exempt
    def cancel(booking_id):
        """Cancel an unpaid booking. Paid bookings must be refunded instead."""
        cancel_booking(booking_id)
        return api_success(message=get_message('booking_cancelled'))
