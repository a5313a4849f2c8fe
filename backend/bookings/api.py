from django.db.models import Q
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from bookings.models import Booking, Inquiry
from bookings.serializers import BookingCreateSerializer, BookingSerializer, InquirySerializer
from payments.api import get_payment_manager, payment_error_response
from payments.errors import PaymentError
from payments.serializers import BookingStatusUpdateSerializer
from properties.models import Property


def _property_or_none(property_id):
    if property_id is None:
        return None
    return Property.objects.filter(pk=property_id).first()


class BookingViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Guests submit the booking form anonymously; listing and detail are limited
    to the account that booked (matched by user or email) unless the caller is
    staff.
    """

    serializer_class = BookingSerializer
    filterset_fields = ["status", "payment_status", "property"]
    ordering_fields = ["check_in", "created_at"]

    def get_permissions(self):
        if self.action == "create":
            return [permissions.AllowAny()]
        if self.action == "set_status":
            return [permissions.IsAuthenticated(), permissions.IsAdminUser()]
        return [permissions.IsAuthenticated()]

    def get_queryset(self):
        user = self.request.user
        queryset = Booking.objects.select_related("property").order_by("-created_at", "-id")
        if user.is_staff:
            return queryset
        ownership = Q(user=user)
        if user.email:
            ownership |= Q(email__iexact=user.email)
        return queryset.filter(ownership)

    def get_serializer_class(self):
        if self.action == "create":
            return BookingCreateSerializer
        return super().get_serializer_class()

    def create(self, request, *args, **kwargs):
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        property_obj = _property_or_none(data["property_id"])
        if property_obj is None:
            return Response({"detail": "Property not found."}, status=status.HTTP_404_NOT_FOUND)
        if data["guests"] > property_obj.max_guests:
            return Response(
                {"guests": f"This property accommodates at most {property_obj.max_guests} guests."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        user = request.user if request.user.is_authenticated else None
        booking = serializer.save(property=property_obj, user=user)
        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["patch"], url_path="status")
    def set_status(self, request, pk=None):
        serializer = BookingStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            record = get_payment_manager().update_booking_status(pk, serializer.validated_data["status"])
        except PaymentError as exc:
            return payment_error_response(exc)
        booking = Booking.objects.select_related("property").get(pk=record.id)
        return Response(BookingSerializer(booking).data)


class InquiryViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet,
):
    queryset = Inquiry.objects.select_related("property").order_by("-created_at", "-id")
    serializer_class = InquirySerializer
    filterset_fields = ["responded", "property"]

    def get_permissions(self):
        if self.action == "create":
            return [permissions.AllowAny()]
        return [permissions.IsAuthenticated(), permissions.IsAdminUser()]

    def create(self, request, *args, **kwargs):
        serializer = InquirySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        property_id = serializer.validated_data.pop("property_id", None)

        property_obj = _property_or_none(property_id)
        if property_id is not None and property_obj is None:
            return Response({"detail": "Property not found."}, status=status.HTTP_404_NOT_FOUND)

        inquiry = serializer.save(property=property_obj)
        return Response(InquirySerializer(inquiry).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def respond(self, request, pk=None):
        inquiry = self.get_object()
        inquiry.mark_responded()
        return Response(InquirySerializer(inquiry).data)
