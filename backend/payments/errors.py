class PaymentError(Exception):
    """Base class for failures raised by the booking payment lifecycle."""


class BookingNotFound(PaymentError):
    def __init__(self, booking_id):
        self.booking_id = booking_id
        super().__init__(f"Booking {booking_id} not found.")


class InvalidPaymentRequest(PaymentError):
    """Caller input was well-formed but not acceptable for this booking."""


class InvalidWebhookSignature(PaymentError):
    """Webhook authenticity check failed; the event was not processed."""


class MalformedWebhookEvent(PaymentError):
    """Webhook payload is not JSON or lacks the booking metadata."""


class PaymentProviderUnavailable(PaymentError):
    """No payment provider is configured in this deployment."""


class PaymentProviderError(PaymentError):
    """The payment provider rejected or failed a request."""
