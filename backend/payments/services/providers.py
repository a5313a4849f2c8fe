from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional
from uuid import uuid4

import stripe
from django.conf import settings

from payments.errors import (
    InvalidWebhookSignature,
    MalformedWebhookEvent,
    PaymentProviderError,
    PaymentProviderUnavailable,
)

logger = logging.getLogger(__name__)

WEBHOOK_TOLERANCE_SECONDS = 300


@dataclass
class PaymentIntent:
    """Subset of a Stripe PaymentIntent consumed by the booking lifecycle."""

    id: str
    status: str
    client_secret: str = ""
    metadata: Dict[str, str] = field(default_factory=dict)


def to_minor_units(amount: Decimal) -> int:
    """Convert a decimal amount in major units to integer cents, rounding half up."""
    cents = (Decimal(str(amount)) * Decimal("100")).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)


def _metadata_dict(value: Any) -> Dict[str, str]:
    if not value:
        return {}
    if isinstance(value, dict):
        return dict(value)
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return dict(value)


def _intent_from_stripe(intent: Any) -> PaymentIntent:
    return PaymentIntent(
        id=intent.id,
        status=intent.status,
        client_secret=getattr(intent, "client_secret", "") or "",
        metadata=_metadata_dict(getattr(intent, "metadata", None)),
    )


def _stripe_message(exc: Exception) -> str:
    return getattr(exc, "user_message", None) or str(exc) or "Stripe request failed."


class BasePaymentProvider:
    def __init__(self, *, webhook_secret: str = ""):
        self.webhook_secret = webhook_secret

    def create_intent(
        self,
        *,
        amount_minor_units: int,
        currency: str,
        metadata: Dict[str, str],
        description: Optional[str] = None,
    ) -> PaymentIntent:
        raise NotImplementedError

    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        raise NotImplementedError

    def construct_event(self, payload: bytes | str, sig_header: Optional[str]) -> Dict[str, Any]:
        """
        Verify the ``Stripe-Signature`` header against the signing secret and
        return the decoded event as a plain dict.
        """

        if not self.webhook_secret:
            raise PaymentProviderUnavailable("Stripe webhook secret is not configured.")
        if not sig_header:
            raise InvalidWebhookSignature("Missing Stripe signature header.")

        if isinstance(payload, bytes):
            try:
                payload = payload.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise InvalidWebhookSignature("Webhook payload is not valid UTF-8.") from exc

        try:
            stripe.WebhookSignature.verify_header(
                payload,
                sig_header,
                self.webhook_secret,
                tolerance=WEBHOOK_TOLERANCE_SECONDS,
            )
        except stripe.SignatureVerificationError as exc:
            raise InvalidWebhookSignature("Invalid Stripe signature.") from exc

        try:
            event = json.loads(payload)
        except ValueError as exc:
            raise MalformedWebhookEvent("Webhook payload is not valid JSON.") from exc
        if not isinstance(event, dict) or not event.get("type"):
            raise MalformedWebhookEvent("Webhook payload is not a Stripe event.")
        return event


class StripePaymentProvider(BasePaymentProvider):
    """
    Stripe PaymentIntent API. The secret key is only needed for API calls;
    webhook verification works with the signing secret alone.
    """

    def __init__(self, *, api_key: str = "", webhook_secret: str = ""):
        super().__init__(webhook_secret=webhook_secret)
        self.api_key = api_key

    def _configure(self) -> None:
        if not self.api_key:
            raise PaymentProviderUnavailable("Stripe secret key is not configured.")
        stripe.api_key = self.api_key

    def create_intent(self, *, amount_minor_units, currency, metadata, description=None) -> PaymentIntent:
        self._configure()
        params: Dict[str, Any] = {
            "amount": amount_minor_units,
            "currency": currency,
            "metadata": metadata,
            "automatic_payment_methods": {"enabled": True},
        }
        if description:
            params["description"] = description
        try:
            intent = stripe.PaymentIntent.create(**params)
        except stripe.StripeError as exc:
            logger.exception("Failed to create Stripe payment intent: %s", exc)
            raise PaymentProviderError(_stripe_message(exc)) from exc
        return _intent_from_stripe(intent)

    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        self._configure()
        try:
            intent = stripe.PaymentIntent.retrieve(intent_id)
        except stripe.StripeError as exc:
            logger.exception("Failed to retrieve Stripe payment intent %s: %s", intent_id, exc)
            raise PaymentProviderError(_stripe_message(exc)) from exc
        return _intent_from_stripe(intent)


class StubPaymentProvider(BasePaymentProvider):
    """
    Offline stand-in for Stripe used in local development and tests.

    Intents get predictable ``pi_test_`` identifiers and never leave the
    process. Retrieval only knows intents issued by a stub in this process and
    reports them with ``intent_status``, so the confirm flow can be exercised
    end to end. Webhooks are still verified against the real Stripe signature
    scheme.
    """

    issued: Dict[str, PaymentIntent] = {}

    def __init__(self, *, webhook_secret: str = "", intent_status: str = "succeeded"):
        super().__init__(webhook_secret=webhook_secret)
        self.intent_status = intent_status

    def create_intent(self, *, amount_minor_units, currency, metadata, description=None) -> PaymentIntent:
        intent_id = f"pi_test_{uuid4().hex}"
        intent = PaymentIntent(
            id=intent_id,
            status="requires_payment_method",
            client_secret=f"{intent_id}_secret_{uuid4().hex[:24]}",
            metadata=dict(metadata),
        )
        StubPaymentProvider.issued[intent_id] = intent
        return intent

    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        issued = StubPaymentProvider.issued.get(intent_id)
        if issued is None:
            # mirrors Stripe's resource_missing error
            raise PaymentProviderError(f"No such payment_intent: '{intent_id}'")
        return replace(issued, status=self.intent_status, metadata=dict(issued.metadata))


def get_payment_provider() -> BasePaymentProvider:
    webhook_secret = getattr(settings, "STRIPE_WEBHOOK_SECRET", "")
    if getattr(settings, "STRIPE_USE_STUB", False):
        return StubPaymentProvider(
            webhook_secret=webhook_secret,
            intent_status=getattr(settings, "STRIPE_STUB_INTENT_STATUS", "succeeded"),
        )
    return StripePaymentProvider(
        api_key=getattr(settings, "STRIPE_SECRET_KEY", ""),
        webhook_secret=webhook_secret,
    )
