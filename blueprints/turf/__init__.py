"""
Turf blueprint initialization.
Public booking API: grounds, availability, bookings and payments.

Route logic is split by entity:
- routes/grounds.py - Grounds, availability views, pricing edits
- routes/bookings.py - Booking creation, payment, cancellation
"""

from flask import Blueprint

# Create main turf blueprint
turf_bp = Blueprint('turf', __name__)

from blueprints.turf.routes import grounds, bookings  # noqa: E402

grounds.register_routes(turf_bp)
bookings.register_routes(turf_bp)
