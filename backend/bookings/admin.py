from django.contrib import admin

from .models import Booking, Inquiry


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "property", "email", "check_in", "check_out", "status", "payment_status", "total_amount")
    list_filter = ("status", "payment_status")
    search_fields = ("email", "name", "payment_intent_id", "property__title")
    readonly_fields = ("payment_intent_id", "created_at", "updated_at")


@admin.register(Inquiry)
class InquiryAdmin(admin.ModelAdmin):
    list_display = ("email", "property", "responded", "created_at")
    list_filter = ("responded",)
    search_fields = ("email", "name", "message")
