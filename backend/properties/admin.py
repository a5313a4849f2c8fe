from django.contrib import admin

from .models import Property


@admin.register(Property)
class PropertyAdmin(admin.ModelAdmin):
    list_display = ("title", "area", "price", "bedrooms", "max_guests", "featured", "is_new")
    list_filter = ("area", "featured", "is_new")
    search_fields = ("title", "location", "description")
