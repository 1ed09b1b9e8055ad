"""
Booking error taxonomy.

Every business or infrastructure failure raised by the models and services
derives from BookingError, which carries the HTTP status the API layer
answers with. The error handlers in app.py translate these into the standard
JSON error envelope (see utils/api_response.py).

    BookingError
    ├── ValidationError        400  caller-fixable input problem
    ├── NotFoundError          404
    ├── ConflictError          409  business rejection
    │   ├── SlotUnavailableError
    │   ├── InvalidSignatureError
    │   ├── PaymentDeclinedError
    │   ├── InvalidStatusTransitionError
    │   └── ForbiddenTransitionError   403
    ├── UpstreamError          502  payment gateway problem, retryable
    │   └── GatewayTimeoutError  504  outcome unknown
    └── StorageError           500  database failure, opaque to callers
"""


class BookingError(Exception):
    """Base class for all booking errors."""

    status_code = 500

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict:
        """Extra fields merged into the JSON error response."""
        return dict(self.context)


class ValidationError(BookingError, ValueError):
    """Malformed or missing input. Never retried automatically."""

    status_code = 400

    def __init__(self, message: str, field: str = None, **context):
        super().__init__(message, **context)
        self.field = field

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.field:
            data['field'] = self.field
        return data


class NotFoundError(BookingError):
    status_code = 404


class ConflictError(BookingError):
    """Business-logic rejection, reported verbatim to the caller."""

    status_code = 409


class SlotUnavailableError(ConflictError):
    pass


class InvalidSignatureError(ConflictError):
    status_code = 400


class PaymentDeclinedError(ConflictError):
    status_code = 400


class InvalidStatusTransitionError(ConflictError):
    pass


class ForbiddenTransitionError(ConflictError):
    status_code = 403


class UpstreamError(BookingError):
    """The payment gateway could not give a usable answer."""

    status_code = 502

    def __init__(self, message: str, retryable: bool = True, **context):
        super().__init__(message, **context)
        self.retryable = retryable

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['retryable'] = self.retryable
        return data


class StorageError(BookingError):
    """Database failure. Details are logged, never returned."""

    status_code = 500


class GatewayTimeoutError(UpstreamError):
    """The gateway did not answer in time; the payment outcome is unknown."""

    status_code = 504
