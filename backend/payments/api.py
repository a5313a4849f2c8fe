import logging

from rest_framework import status
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .errors import (
    BookingNotFound,
    InvalidPaymentRequest,
    InvalidWebhookSignature,
    MalformedWebhookEvent,
    PaymentError,
    PaymentProviderError,
    PaymentProviderUnavailable,
)
from .serializers import (
    ConfirmPaymentSerializer,
    CreatePaymentIntentSerializer,
    PaymentConfirmationSerializer,
    PaymentIntentResponseSerializer,
    PaymentStatusSerializer,
    PaymentStatusUpdateSerializer,
)
from .services.lifecycle import BookingPaymentManager

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    BookingNotFound: status.HTTP_404_NOT_FOUND,
    InvalidPaymentRequest: status.HTTP_400_BAD_REQUEST,
    InvalidWebhookSignature: status.HTTP_400_BAD_REQUEST,
    MalformedWebhookEvent: status.HTTP_400_BAD_REQUEST,
    PaymentProviderUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
    PaymentProviderError: status.HTTP_502_BAD_GATEWAY,
}


def payment_error_response(exc: PaymentError) -> Response:
    status_code = ERROR_STATUS_CODES.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response({"detail": str(exc)}, status=status_code)


def get_payment_manager() -> BookingPaymentManager:
    return BookingPaymentManager()


class BookingPaymentView(APIView):
    """Base for guest-facing payment endpoints: only the booking's owner or staff may act."""

    permission_classes = [IsAuthenticated]

    def check_booking_access(self, request, booking_id, manager: BookingPaymentManager):
        booking = manager.storage.get_booking(booking_id)
        user = request.user
        if user.is_staff:
            return booking
        if booking.user_id is not None and booking.user_id == user.pk:
            return booking
        if booking.email and user.email and booking.email.lower() == user.email.lower():
            return booking
        raise PermissionDenied("You do not have access to this booking.")


class CreatePaymentIntentView(BookingPaymentView):
    def post(self, request, *args, **kwargs):
        serializer = CreatePaymentIntentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        manager = get_payment_manager()
        try:
            self.check_booking_access(request, data["booking_id"], manager)
            created = manager.create_payment_intent(
                data["booking_id"],
                data["amount"],
                currency=data.get("currency"),
                description=data.get("description") or None,
            )
        except PaymentError as exc:
            return payment_error_response(exc)

        payload = PaymentIntentResponseSerializer(created).data
        return Response(payload, status=status.HTTP_201_CREATED)


class ConfirmPaymentView(BookingPaymentView):
    def post(self, request, *args, **kwargs):
        serializer = ConfirmPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        manager = get_payment_manager()
        try:
            self.check_booking_access(request, data["booking_id"], manager)
            confirmation = manager.confirm_payment(data["payment_intent_id"], data["booking_id"])
        except PaymentError as exc:
            return payment_error_response(exc)
        return Response(PaymentConfirmationSerializer(confirmation).data)


class PaymentStatusView(BookingPaymentView):
    """Read the combined payment state; staff may also override it."""

    def get_permissions(self):
        if self.request.method == "PATCH":
            return [IsAuthenticated(), IsAdminUser()]
        return super().get_permissions()

    def get(self, request, booking_id, *args, **kwargs):
        manager = get_payment_manager()
        try:
            self.check_booking_access(request, booking_id, manager)
            snapshot = manager.get_payment_status(booking_id)
        except PaymentError as exc:
            return payment_error_response(exc)
        return Response(PaymentStatusSerializer(snapshot).data)

    def patch(self, request, booking_id, *args, **kwargs):
        serializer = PaymentStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        manager = get_payment_manager()
        try:
            snapshot = manager.set_payment_status(
                booking_id,
                data["payment_status"],
                payment_intent_id=data.get("payment_intent_id") or None,
            )
        except PaymentError as exc:
            return payment_error_response(exc)
        logger.info(
            "User %s set booking %s payment status to %s",
            request.user.pk,
            booking_id,
            data["payment_status"],
        )
        return Response(PaymentStatusSerializer(snapshot).data)


class StripeWebhookView(APIView):
    """Receive Stripe payment intent events."""

    permission_classes: list = []
    authentication_classes: list = []

    def post(self, request, *args, **kwargs):
        payload = request.body
        sig_header = request.META.get("HTTP_STRIPE_SIGNATURE")
        manager = get_payment_manager()
        try:
            ack = manager.handle_webhook_event(payload, sig_header)
        except PaymentProviderUnavailable as exc:
            logger.error("Stripe webhook rejected: %s", exc)
            return payment_error_response(exc)
        except (InvalidWebhookSignature, MalformedWebhookEvent, BookingNotFound) as exc:
            logger.warning("Stripe webhook rejected: %s", exc)
            return payment_error_response(exc)

        return Response(
            {
                "received": True,
                "type": ack.event_type,
                "handled": ack.handled,
            }
        )
