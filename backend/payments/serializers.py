from decimal import Decimal

from rest_framework import serializers

from bookings.models import Booking


class CreatePaymentIntentSerializer(serializers.Serializer):
    booking_id = serializers.IntegerField(min_value=1)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal("0.01"))
    currency = serializers.RegexField(r"^[A-Za-z]{3}$", required=False)
    description = serializers.CharField(required=False, allow_blank=True, max_length=500)


class PaymentIntentResponseSerializer(serializers.Serializer):
    client_secret = serializers.CharField()
    payment_intent_id = serializers.CharField()


class ConfirmPaymentSerializer(serializers.Serializer):
    payment_intent_id = serializers.CharField(max_length=255)
    booking_id = serializers.IntegerField(min_value=1)


class PaymentConfirmationSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    status = serializers.CharField()


class PaymentStatusSerializer(serializers.Serializer):
    payment_status = serializers.CharField()
    booking_status = serializers.CharField()
    payment_intent_id = serializers.CharField(allow_blank=True)
    total_amount = serializers.DecimalField(max_digits=10, decimal_places=2, allow_null=True)


class PaymentStatusUpdateSerializer(serializers.Serializer):
    payment_status = serializers.ChoiceField(choices=Booking.PAYMENT_STATUSES)
    payment_intent_id = serializers.CharField(required=False, allow_blank=True, max_length=255)


class BookingStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.STATUSES)
