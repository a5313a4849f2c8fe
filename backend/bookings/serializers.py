from decimal import Decimal

from rest_framework import serializers

from bookings.models import Booking, Inquiry

MIN_PHONE_LENGTH = 10


def _validate_phone(value: str) -> str:
    value = value.strip()
    if len(value) < MIN_PHONE_LENGTH:
        raise serializers.ValidationError(f"Phone number must be at least {MIN_PHONE_LENGTH} digits.")
    return value


class BookingSerializer(serializers.ModelSerializer):
    property_title = serializers.CharField(source="property.title", read_only=True)
    nights = serializers.SerializerMethodField()
    quoted_amount = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "property",
            "property_title",
            "name",
            "email",
            "phone",
            "check_in",
            "check_out",
            "nights",
            "guests",
            "message",
            "status",
            "payment_status",
            "payment_intent_id",
            "total_amount",
            "quoted_amount",
            "created_at",
        ]
        read_only_fields = fields

    def get_nights(self, obj: Booking) -> int:
        return (obj.check_out - obj.check_in).days

    def get_quoted_amount(self, obj: Booking) -> str:
        amount = Decimal(obj.property.price) * self.get_nights(obj)
        return f"{amount:.2f}"


class BookingCreateSerializer(serializers.ModelSerializer):
    property_id = serializers.IntegerField(min_value=1)

    class Meta:
        model = Booking
        fields = [
            "property_id",
            "name",
            "email",
            "phone",
            "check_in",
            "check_out",
            "guests",
            "message",
        ]
        extra_kwargs = {"guests": {"min_value": 1}}

    def validate_phone(self, value):
        return _validate_phone(value)

    def validate(self, attrs):
        if attrs["check_out"] <= attrs["check_in"]:
            raise serializers.ValidationError({"check_out": "Check-out must be after check-in."})
        return attrs

    def create(self, validated_data):
        validated_data.pop("property_id", None)
        return Booking.objects.create(**validated_data)


class InquirySerializer(serializers.ModelSerializer):
    property_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)

    class Meta:
        model = Inquiry
        fields = [
            "id",
            "property_id",
            "name",
            "email",
            "phone",
            "message",
            "responded",
            "created_at",
        ]
        read_only_fields = ["id", "responded", "created_at"]

    def validate_phone(self, value):
        return _validate_phone(value)

    def validate_message(self, value):
        if len(value.strip()) < 10:
            raise serializers.ValidationError("Message must be at least 10 characters.")
        return value
