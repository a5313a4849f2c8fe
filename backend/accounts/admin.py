from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import User


@admin.register(User)
class StayChillUserAdmin(UserAdmin):
    list_display = ("email", "display_name", "phone", "is_staff", "date_joined")
    search_fields = ("email", "display_name", "first_name", "last_name")
    fieldsets = UserAdmin.fieldsets + (
        ("Profile", {"fields": ("display_name", "phone")}),
    )
