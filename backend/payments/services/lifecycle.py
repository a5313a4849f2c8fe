"""
Payment lifecycle for bookings.

A booking's ``payment_status`` moves in response to three triggers: staff
overrides, the synchronous confirm call made right after the guest completes
the Stripe payment form, and Stripe webhooks. The only rule linking the two
status fields is forward: once ``payment_status`` becomes ``paid`` the booking
``status`` becomes ``confirmed``. Nothing reverts ``status`` afterwards.

Every write is a whole-field overwrite and is skipped when the stored value
already matches, so redelivered webhooks and repeated confirm calls leave the
booking untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Optional

from django.conf import settings

from bookings.models import Booking
from bookings.storage import BookingRecord, BookingStorage, get_booking_storage
from payments.errors import InvalidPaymentRequest, MalformedWebhookEvent
from payments.services.providers import BasePaymentProvider, get_payment_provider, to_minor_units

logger = logging.getLogger(__name__)

METADATA_BOOKING_KEY = "bookingId"

INTENT_SUCCEEDED = "succeeded"
INTENT_AWAITING_CUSTOMER = frozenset(
    {
        "requires_payment_method",
        "requires_confirmation",
        "requires_action",
    }
)

WEBHOOK_PAYMENT_STATUSES = {
    "payment_intent.succeeded": Booking.PAYMENT_PAID,
    "payment_intent.payment_failed": Booking.PAYMENT_FAILED,
    "payment_intent.canceled": Booking.PAYMENT_CANCELED,
    "payment_intent.processing": Booking.PAYMENT_PROCESSING,
}

BOOKING_STATUSES = {value for value, _ in Booking.STATUSES}
PAYMENT_STATUSES = {value for value, _ in Booking.PAYMENT_STATUSES}


@dataclass(frozen=True)
class CreatedPaymentIntent:
    client_secret: str
    payment_intent_id: str


@dataclass(frozen=True)
class PaymentConfirmation:
    success: bool
    status: str


@dataclass(frozen=True)
class WebhookAcknowledgement:
    event_type: str
    handled: bool
    booking_id: Optional[int] = None
    payment_status: Optional[str] = None


@dataclass(frozen=True)
class PaymentStatusSnapshot:
    payment_status: str
    booking_status: str
    payment_intent_id: str
    total_amount: Optional[Decimal]

    @classmethod
    def from_record(cls, booking: BookingRecord) -> "PaymentStatusSnapshot":
        return cls(
            payment_status=booking.payment_status,
            booking_status=booking.status,
            payment_intent_id=booking.payment_intent_id,
            total_amount=booking.total_amount,
        )


def _parse_amount(value: Any) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidPaymentRequest("Amount must be a decimal number.") from exc
    if not amount.is_finite() or amount <= 0:
        raise InvalidPaymentRequest("Amount must be greater than zero.")
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _event_intent(event: Dict[str, Any]) -> Dict[str, Any]:
    data = event.get("data")
    intent = data.get("object") if isinstance(data, dict) else None
    if not isinstance(intent, dict):
        raise MalformedWebhookEvent("Webhook event does not carry a payment intent.")
    return intent


def _booking_id_from_metadata(intent: Dict[str, Any]) -> int:
    metadata = intent.get("metadata")
    raw = metadata.get(METADATA_BOOKING_KEY) if isinstance(metadata, dict) else None
    if raw is None or raw == "":
        raise MalformedWebhookEvent("Payment intent metadata is missing the booking id.")
    try:
        booking_id = int(str(raw).strip())
    except ValueError as exc:
        raise MalformedWebhookEvent(f"Payment intent metadata has an invalid booking id: {raw!r}.") from exc
    if booking_id <= 0:
        raise MalformedWebhookEvent(f"Payment intent metadata has an invalid booking id: {raw!r}.")
    return booking_id


class BookingPaymentManager:
    """
    Reconcile bookings with payment intents.

    The payment provider is resolved lazily so a deployment without Stripe
    configured still serves read-only calls and only fails on the operations
    that need the provider.
    """

    def __init__(
        self,
        storage: Optional[BookingStorage] = None,
        provider: Optional[BasePaymentProvider] = None,
    ):
        self.storage = storage if storage is not None else get_booking_storage()
        self._provider = provider

    @property
    def provider(self) -> BasePaymentProvider:
        if self._provider is None:
            self._provider = get_payment_provider()
        return self._provider

    def _apply_payment_status(
        self,
        booking: BookingRecord,
        payment_status: str,
        *,
        payment_intent_id: Optional[str] = None,
    ) -> BookingRecord:
        intent_changed = bool(payment_intent_id) and booking.payment_intent_id != payment_intent_id
        if booking.payment_status != payment_status or intent_changed:
            previous = booking.payment_status
            booking = self.storage.update_booking_payment_status(
                booking.id,
                payment_status,
                payment_intent_id=payment_intent_id or None,
            )
            logger.info("Booking %s payment status %s -> %s", booking.id, previous, payment_status)

        if payment_status == Booking.PAYMENT_PAID and booking.status != Booking.CONFIRMED:
            booking = self.storage.update_booking_status(booking.id, Booking.CONFIRMED)
            logger.info("Booking %s confirmed after payment", booking.id)
        return booking

    def create_payment_intent(
        self,
        booking_id,
        amount,
        currency: Optional[str] = None,
        description: Optional[str] = None,
    ) -> CreatedPaymentIntent:
        booking = self.storage.get_booking(booking_id)
        amount = _parse_amount(amount)
        if booking.payment_status == Booking.PAYMENT_PAID:
            raise InvalidPaymentRequest(f"Booking {booking.id} has already been paid.")

        currency = (currency or getattr(settings, "STRIPE_DEFAULT_CURRENCY", "usd")).lower()
        intent = self.provider.create_intent(
            amount_minor_units=to_minor_units(amount),
            currency=currency,
            metadata={METADATA_BOOKING_KEY: str(booking.id)},
            description=description or f"Stay Chill booking #{booking.id}",
        )

        try:
            self.storage.update_booking_payment_status(
                booking.id,
                Booking.PAYMENT_PROCESSING,
                payment_intent_id=intent.id,
            )
            self.storage.update_booking_total_amount(booking.id, amount)
        except Exception:
            # the intent exists at Stripe but is not recorded on the booking
            logger.exception(
                "Payment intent %s created for booking %s but the booking could not be updated",
                intent.id,
                booking.id,
            )
            raise

        logger.info(
            "Created payment intent %s for booking %s (%s %s)",
            intent.id,
            booking.id,
            amount,
            currency,
        )
        return CreatedPaymentIntent(client_secret=intent.client_secret, payment_intent_id=intent.id)

    def confirm_payment(self, payment_intent_id: str, booking_id) -> PaymentConfirmation:
        booking = self.storage.get_booking(booking_id)
        intent = self.provider.retrieve_intent(payment_intent_id)

        owner = intent.metadata.get(METADATA_BOOKING_KEY)
        if owner is not None:
            belongs = str(owner) == str(booking.id)
        else:
            # without metadata only the intent recorded on the booking is accepted
            belongs = bool(booking.payment_intent_id) and intent.id == booking.payment_intent_id
        if not belongs:
            raise InvalidPaymentRequest("Payment intent does not belong to this booking.")

        if intent.status == INTENT_SUCCEEDED:
            self._apply_payment_status(booking, Booking.PAYMENT_PAID, payment_intent_id=intent.id)
            return PaymentConfirmation(success=True, status=intent.status)

        if intent.status in INTENT_AWAITING_CUSTOMER:
            logger.info("Payment intent %s for booking %s awaits customer: %s", intent.id, booking.id, intent.status)
            return PaymentConfirmation(success=False, status=intent.status)

        self._apply_payment_status(booking, Booking.PAYMENT_FAILED, payment_intent_id=intent.id)
        return PaymentConfirmation(success=False, status=intent.status)

    def handle_webhook_event(self, payload, signature_header: Optional[str]) -> WebhookAcknowledgement:
        event = self.provider.construct_event(payload, signature_header)
        event_type = event["type"]

        payment_status = WEBHOOK_PAYMENT_STATUSES.get(event_type)
        if payment_status is None:
            logger.debug("Ignoring Stripe event %s", event_type)
            return WebhookAcknowledgement(event_type=event_type, handled=False)

        intent = _event_intent(event)
        booking = self.storage.get_booking(_booking_id_from_metadata(intent))
        if payment_status == Booking.PAYMENT_PROCESSING and booking.payment_status == Booking.PAYMENT_PAID:
            # Stripe does not order events; processing never reopens a paid booking
            logger.info("Ignoring late %s for paid booking %s", event_type, booking.id)
            return WebhookAcknowledgement(
                event_type=event_type,
                handled=True,
                booking_id=booking.id,
                payment_status=booking.payment_status,
            )
        booking = self._apply_payment_status(booking, payment_status)
        logger.info(
            "Applied Stripe event %s (%s) to booking %s",
            event_type,
            intent.get("id", ""),
            booking.id,
        )
        return WebhookAcknowledgement(
            event_type=event_type,
            handled=True,
            booking_id=booking.id,
            payment_status=booking.payment_status,
        )

    def get_payment_status(self, booking_id) -> PaymentStatusSnapshot:
        return PaymentStatusSnapshot.from_record(self.storage.get_booking(booking_id))

    def set_payment_status(
        self,
        booking_id,
        payment_status: str,
        payment_intent_id: Optional[str] = None,
    ) -> PaymentStatusSnapshot:
        if payment_status not in PAYMENT_STATUSES:
            raise InvalidPaymentRequest(f"Unknown payment status: {payment_status!r}.")
        booking = self.storage.get_booking(booking_id)
        booking = self._apply_payment_status(booking, payment_status, payment_intent_id=payment_intent_id)
        return PaymentStatusSnapshot.from_record(booking)

    def update_booking_status(self, booking_id, status: str) -> BookingRecord:
        if status not in BOOKING_STATUSES:
            raise InvalidPaymentRequest(f"Unknown booking status: {status!r}.")
        booking = self.storage.get_booking(booking_id)
        if booking.status == status:
            return booking
        logger.info("Booking %s status %s -> %s", booking.id, booking.status, status)
        return self.storage.update_booking_status(booking.id, status)
