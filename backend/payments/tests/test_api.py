import hashlib
import hmac
import json
import time
import types
from datetime import date
from decimal import Decimal

import pytest
import stripe
from django.urls import reverse
from rest_framework.test import APIClient

from accounts.models import User
from bookings.models import Booking
from properties.models import Property


def _signature(payload: str, secret: str = "whsec_test") -> str:
    timestamp = int(time.time())
    digest = hmac.new(secret.encode("utf-8"), f"{timestamp}.{payload}".encode("utf-8"), hashlib.sha256)
    return f"t={timestamp},v1={digest.hexdigest()}"


def _event(event_type, booking_id):
    return json.dumps(
        {
            "id": "evt_test",
            "type": event_type,
            "data": {"object": {"id": "pi_test_1", "metadata": {"bookingId": str(booking_id)}}},
        }
    )


@pytest.fixture
def guest(db):
    return User.objects.create_user(
        username="guest@example.com",
        email="guest@example.com",
        password="examplepass",
    )


@pytest.fixture
def staff(db):
    return User.objects.create_user(
        username="staff@example.com",
        email="staff@example.com",
        password="examplepass",
        is_staff=True,
    )


@pytest.fixture
def stranger(db):
    return User.objects.create_user(
        username="other@example.com",
        email="other@example.com",
        password="examplepass",
    )


@pytest.fixture
def villa(db):
    return Property.objects.create(
        title="Luxurious Beachfront Villa",
        description="Private access to the sea.",
        location="North Coast, Sahel",
        area="Sahel",
        price=350,
        bedrooms=4,
        bathrooms=3,
        max_guests=8,
    )


@pytest.fixture
def booking(villa, guest):
    return Booking.objects.create(
        property=villa,
        user=guest,
        name="Layla Guest",
        email="guest@example.com",
        phone="01001234567",
        check_in=date(2025, 7, 1),
        check_out=date(2025, 7, 5),
        guests=4,
    )


def _client(user=None):
    client = APIClient()
    if user is not None:
        client.force_authenticate(user)
    return client


@pytest.mark.django_db
def test_create_payment_intent_for_own_booking(guest, booking):
    response = _client(guest).post(
        reverse("payment-intent-create"),
        {"booking_id": booking.id, "amount": "1400.00"},
        format="json",
    )

    assert response.status_code == 201
    body = response.json()
    assert body["payment_intent_id"].startswith("pi_test_")
    assert body["client_secret"].startswith(body["payment_intent_id"])
    booking.refresh_from_db()
    assert booking.payment_status == Booking.PAYMENT_PROCESSING
    assert booking.payment_intent_id == body["payment_intent_id"]
    assert booking.total_amount == Decimal("1400.00")


@pytest.mark.django_db
def test_create_payment_intent_validates_amount(guest, booking):
    response = _client(guest).post(
        reverse("payment-intent-create"),
        {"booking_id": booking.id, "amount": "0"},
        format="json",
    )

    assert response.status_code == 400
    assert "amount" in response.json()


@pytest.mark.django_db
def test_create_payment_intent_requires_authentication(booking):
    response = _client().post(
        reverse("payment-intent-create"),
        {"booking_id": booking.id, "amount": "100.00"},
        format="json",
    )

    assert response.status_code == 401


@pytest.mark.django_db
def test_create_payment_intent_for_someone_elses_booking_is_forbidden(stranger, booking):
    response = _client(stranger).post(
        reverse("payment-intent-create"),
        {"booking_id": booking.id, "amount": "100.00"},
        format="json",
    )

    assert response.status_code == 403
    booking.refresh_from_db()
    assert booking.payment_status == Booking.PAYMENT_UNPAID


@pytest.mark.django_db
def test_create_payment_intent_for_missing_booking_is_404(guest):
    response = _client(guest).post(
        reverse("payment-intent-create"),
        {"booking_id": 9999, "amount": "100.00"},
        format="json",
    )

    assert response.status_code == 404
    assert response.json()["detail"] == "Booking 9999 not found."


@pytest.mark.django_db
def test_create_payment_intent_without_provider_is_503(settings, guest, booking):
    settings.STRIPE_USE_STUB = False
    settings.STRIPE_SECRET_KEY = ""

    response = _client(guest).post(
        reverse("payment-intent-create"),
        {"booking_id": booking.id, "amount": "100.00"},
        format="json",
    )

    assert response.status_code == 503


@pytest.mark.django_db
def test_stripe_failure_is_502(settings, monkeypatch, guest, booking):
    settings.STRIPE_USE_STUB = False
    settings.STRIPE_SECRET_KEY = "sk_test_123"
    original_api_key = stripe.api_key

    def fake_create(**kwargs):
        raise stripe.StripeError("Amount must be at least $0.50 usd")

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
    try:
        response = _client(guest).post(
            reverse("payment-intent-create"),
            {"booking_id": booking.id, "amount": "0.10"},
            format="json",
        )
    finally:
        stripe.api_key = original_api_key

    assert response.status_code == 502
    assert "at least" in response.json()["detail"]
    booking.refresh_from_db()
    assert booking.payment_status == Booking.PAYMENT_UNPAID


def _start_payment(client, booking, amount="1400.00"):
    response = client.post(
        reverse("payment-intent-create"),
        {"booking_id": booking.id, "amount": amount},
        format="json",
    )
    assert response.status_code == 201
    return response.json()["payment_intent_id"]


@pytest.mark.django_db
def test_confirm_payment_marks_booking_paid(guest, booking):
    client = _client(guest)
    intent_id = _start_payment(client, booking)

    response = client.post(
        reverse("payment-confirm"),
        {"payment_intent_id": intent_id, "booking_id": booking.id},
        format="json",
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "status": "succeeded"}
    booking.refresh_from_db()
    assert booking.payment_status == Booking.PAYMENT_PAID
    assert booking.status == Booking.CONFIRMED


@pytest.mark.django_db
def test_confirm_payment_awaiting_customer_changes_nothing(settings, guest, booking):
    client = _client(guest)
    intent_id = _start_payment(client, booking)
    settings.STRIPE_STUB_INTENT_STATUS = "requires_action"

    response = client.post(
        reverse("payment-confirm"),
        {"payment_intent_id": intent_id, "booking_id": booking.id},
        format="json",
    )

    assert response.status_code == 200
    assert response.json() == {"success": False, "status": "requires_action"}
    booking.refresh_from_db()
    assert booking.payment_status == Booking.PAYMENT_PROCESSING
    assert booking.status == Booking.PENDING


@pytest.mark.django_db
def test_confirm_with_unissued_intent_does_not_mark_paid(guest, booking):
    response = _client(guest).post(
        reverse("payment-confirm"),
        {"payment_intent_id": "pi_made_up", "booking_id": booking.id},
        format="json",
    )

    assert response.status_code == 502
    booking.refresh_from_db()
    assert booking.payment_status == Booking.PAYMENT_UNPAID
    assert booking.status == Booking.PENDING


@pytest.mark.django_db
def test_confirm_with_intent_of_another_booking_is_rejected(guest, villa, booking):
    second = Booking.objects.create(
        property=villa,
        user=guest,
        name="Layla Guest",
        email="guest@example.com",
        phone="01001234567",
        check_in=date(2025, 9, 1),
        check_out=date(2025, 9, 3),
        guests=2,
    )
    client = _client(guest)
    intent_id = _start_payment(client, booking)

    response = client.post(
        reverse("payment-confirm"),
        {"payment_intent_id": intent_id, "booking_id": second.id},
        format="json",
    )

    assert response.status_code == 400
    second.refresh_from_db()
    assert second.payment_status == Booking.PAYMENT_UNPAID
    assert second.status == Booking.PENDING


@pytest.mark.django_db
def test_payment_status_for_owner(guest, booking):
    booking.payment_status = Booking.PAYMENT_PROCESSING
    booking.payment_intent_id = "pi_abc"
    booking.total_amount = Decimal("500.00")
    booking.save()

    response = _client(guest).get(reverse("booking-payment-status", args=[booking.id]))

    assert response.status_code == 200
    assert response.json() == {
        "payment_status": "processing",
        "booking_status": "pending",
        "payment_intent_id": "pi_abc",
        "total_amount": "500.00",
    }


@pytest.mark.django_db
def test_payment_status_matches_booking_email_without_user(villa):
    walk_in = Booking.objects.create(
        property=villa,
        name="Walk In",
        email="Walk.In@example.com",
        phone="01001234567",
        check_in=date(2025, 8, 1),
        check_out=date(2025, 8, 3),
        guests=2,
    )
    account = User.objects.create_user(
        username="walk.in@example.com",
        email="walk.in@example.com",
        password="examplepass",
    )

    response = _client(account).get(reverse("booking-payment-status", args=[walk_in.id]))

    assert response.status_code == 200
    assert response.json()["payment_status"] == "unpaid"


@pytest.mark.django_db
def test_staff_can_override_payment_status(staff, booking):
    response = _client(staff).patch(
        reverse("booking-payment-status", args=[booking.id]),
        {"payment_status": "paid", "payment_intent_id": "pi_manual"},
        format="json",
    )

    assert response.status_code == 200
    assert response.json()["booking_status"] == "confirmed"
    booking.refresh_from_db()
    assert booking.payment_status == Booking.PAYMENT_PAID
    assert booking.payment_intent_id == "pi_manual"


@pytest.mark.django_db
def test_guest_cannot_override_payment_status(guest, booking):
    response = _client(guest).patch(
        reverse("booking-payment-status", args=[booking.id]),
        {"payment_status": "paid"},
        format="json",
    )

    assert response.status_code == 403
    booking.refresh_from_db()
    assert booking.payment_status == Booking.PAYMENT_UNPAID


@pytest.mark.django_db
def test_override_rejects_unknown_payment_status(staff, booking):
    response = _client(staff).patch(
        reverse("booking-payment-status", args=[booking.id]),
        {"payment_status": "settled"},
        format="json",
    )

    assert response.status_code == 400
    assert "payment_status" in response.json()


@pytest.mark.django_db
def test_webhook_applies_signed_event(booking):
    payload = _event("payment_intent.succeeded", booking.id)

    response = _client().post(
        reverse("stripe-webhook"),
        data=payload,
        content_type="application/json",
        HTTP_STRIPE_SIGNATURE=_signature(payload),
    )

    assert response.status_code == 200
    assert response.json() == {"received": True, "type": "payment_intent.succeeded", "handled": True}
    booking.refresh_from_db()
    assert booking.payment_status == Booking.PAYMENT_PAID
    assert booking.status == Booking.CONFIRMED


@pytest.mark.django_db
def test_webhook_failed_payment_keeps_booking_pending(booking):
    payload = _event("payment_intent.payment_failed", booking.id)

    response = _client().post(
        reverse("stripe-webhook"),
        data=payload,
        content_type="application/json",
        HTTP_STRIPE_SIGNATURE=_signature(payload),
    )

    assert response.status_code == 200
    booking.refresh_from_db()
    assert booking.payment_status == Booking.PAYMENT_FAILED
    assert booking.status == Booking.PENDING


@pytest.mark.django_db
def test_webhook_acknowledges_unhandled_event(booking):
    payload = json.dumps({"id": "evt_test", "type": "customer.created", "data": {"object": {}}})

    response = _client().post(
        reverse("stripe-webhook"),
        data=payload,
        content_type="application/json",
        HTTP_STRIPE_SIGNATURE=_signature(payload),
    )

    assert response.status_code == 200
    assert response.json()["handled"] is False


@pytest.mark.django_db
@pytest.mark.parametrize("header", [None, "t=1,v1=deadbeef"])
def test_webhook_rejects_missing_or_invalid_signature(booking, header):
    payload = _event("payment_intent.succeeded", booking.id)
    extra = {} if header is None else {"HTTP_STRIPE_SIGNATURE": header}

    response = _client().post(reverse("stripe-webhook"), data=payload, content_type="application/json", **extra)

    assert response.status_code == 400
    booking.refresh_from_db()
    assert booking.payment_status == Booking.PAYMENT_UNPAID
    assert booking.status == Booking.PENDING


@pytest.mark.django_db
def test_webhook_for_unknown_booking_is_404():
    payload = _event("payment_intent.succeeded", 424242)

    response = _client().post(
        reverse("stripe-webhook"),
        data=payload,
        content_type="application/json",
        HTTP_STRIPE_SIGNATURE=_signature(payload),
    )

    assert response.status_code == 404


@pytest.mark.django_db
def test_webhook_without_secret_is_503(settings, booking):
    settings.STRIPE_WEBHOOK_SECRET = ""
    payload = _event("payment_intent.succeeded", booking.id)

    response = _client().post(
        reverse("stripe-webhook"),
        data=payload,
        content_type="application/json",
        HTTP_STRIPE_SIGNATURE=_signature(payload),
    )

    assert response.status_code == 503


@pytest.mark.django_db
def test_webhook_needs_only_the_signing_secret(settings, booking):
    settings.STRIPE_USE_STUB = False
    settings.STRIPE_SECRET_KEY = ""
    payload = _event("payment_intent.succeeded", booking.id)

    response = _client().post(
        reverse("stripe-webhook"),
        data=payload,
        content_type="application/json",
        HTTP_STRIPE_SIGNATURE=_signature(payload),
    )

    assert response.status_code == 200
    booking.refresh_from_db()
    assert booking.payment_status == Booking.PAYMENT_PAID
