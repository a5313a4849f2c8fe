from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from accounts.models import User
from bookings.models import Booking, Inquiry
from properties.models import Property


SEED_PASSWORD = "StayChill123!"
SUPERUSER_EMAIL = "admin@staychill.test"
SUPERUSER_PASSWORD = "AdminStayChill123!"
GUEST_EMAIL = "guest@staychill.test"

IMAGE_BASE = "https://images.unsplash.com"

SAMPLE_PROPERTIES = [
    {
        "title": "Luxurious Beachfront Villa",
        "description": "Stunning villa right on the beach with private access to the sea. Perfect for family getaways.",
        "location": "North Coast, Sahel",
        "area": "Sahel",
        "price": 350,
        "bedrooms": 4,
        "bathrooms": 3,
        "max_guests": 8,
        "images": [f"{IMAGE_BASE}/photo-1582610116397-edb318620f90?auto=format&fit=crop&w=800&q=80"],
        "amenities": ["Beachfront", "Private Pool", "Wi-Fi", "Air Conditioning", "BBQ"],
        "featured": True,
        "is_new": False,
        "rating": 50,
        "review_count": 15,
    },
    {
        "title": "Ras El Hekma Chalet",
        "description": "Beautiful chalet with amazing sea views, just a few steps from the beach.",
        "location": "Ras El Hekma",
        "area": "Ras El Hekma",
        "price": 220,
        "bedrooms": 3,
        "bathrooms": 2,
        "max_guests": 6,
        "images": [f"{IMAGE_BASE}/photo-1600596542815-ffad4c1539a9?auto=format&fit=crop&w=800&q=80"],
        "amenities": ["Sea View", "Shared Pool", "Wi-Fi", "Air Conditioning"],
        "featured": True,
        "is_new": True,
        "rating": 45,
        "review_count": 8,
    },
    {
        "title": "Modern Sahel Apartment",
        "description": "Contemporary apartment near the marina with all modern amenities for a comfortable stay.",
        "location": "Marina, Sahel",
        "area": "Sahel",
        "price": 180,
        "bedrooms": 2,
        "bathrooms": 1,
        "max_guests": 4,
        "images": [f"{IMAGE_BASE}/photo-1613553507747-5f8d62ad5904?auto=format&fit=crop&w=800&q=80"],
        "amenities": ["Beach Nearby", "Pool Access", "Wi-Fi", "Air Conditioning"],
        "featured": True,
        "is_new": False,
        "rating": 40,
        "review_count": 12,
    },
    {
        "title": "Seaside Retreat Villa",
        "description": "Elegant villa with direct beach access and stunning views of the Mediterranean.",
        "location": "Premium Sahel Neighborhood",
        "area": "Sahel",
        "price": 450,
        "bedrooms": 5,
        "bathrooms": 4,
        "max_guests": 10,
        "images": [f"{IMAGE_BASE}/photo-1575517111839-3a3843ee7f5d?auto=format&fit=crop&w=800&q=80"],
        "amenities": ["Private Beach", "Infinity Pool", "Wi-Fi", "Air Conditioning", "Gym"],
        "featured": False,
        "is_new": False,
        "rating": 50,
        "review_count": 28,
    },
    {
        "title": "Ras El Hekma Getaway",
        "description": "Perfect beachfront property for a relaxing vacation with friends and family.",
        "location": "Ras El Hekma, Seafront",
        "area": "Ras El Hekma",
        "price": 275,
        "bedrooms": 3,
        "bathrooms": 2,
        "max_guests": 7,
        "images": [f"{IMAGE_BASE}/photo-1564013799919-ab600027ffc6?auto=format&fit=crop&w=800&q=80"],
        "amenities": ["Ocean View", "Pool", "Wi-Fi", "Air Conditioning", "BBQ"],
        "featured": False,
        "is_new": False,
        "rating": 47,
        "review_count": 19,
    },
    {
        "title": "Coastal Charm House",
        "description": "Charming house with a beautiful garden, just a 5-minute walk to the beach.",
        "location": "North Sahel, Beach Area",
        "area": "Sahel",
        "price": 195,
        "bedrooms": 2,
        "bathrooms": 1,
        "max_guests": 5,
        "images": [f"{IMAGE_BASE}/photo-1512917774080-9991f1c4c750?auto=format&fit=crop&w=800&q=80"],
        "amenities": ["Garden", "5 min to Beach", "Wi-Fi", "Air Conditioning"],
        "featured": False,
        "is_new": False,
        "rating": 42,
        "review_count": 15,
    },
]


class Command(BaseCommand):
    help = "Populate the local development database with sample listings, accounts and a booking."

    def handle(self, *args, **options):
        if not settings.DEBUG:
            raise CommandError("Refusing to seed data while DEBUG is False.")

        with transaction.atomic():
            self.stdout.write(self.style.MIGRATE_HEADING("Creating properties"))
            properties = [self._ensure_property(data) for data in SAMPLE_PROPERTIES]

            self.stdout.write(self.style.MIGRATE_HEADING("Creating accounts"))
            self._ensure_superuser()
            guest = self._ensure_user(
                email=GUEST_EMAIL,
                first_name="Layla",
                last_name="Mansour",
                phone="01001234567",
            )

            self.stdout.write(self.style.MIGRATE_HEADING("Creating bookings and inquiries"))
            Booking.objects.filter(email=GUEST_EMAIL).delete()
            check_in = timezone.localdate() + timedelta(days=21)
            Booking.objects.create(
                property=properties[0],
                user=guest,
                name="Layla Mansour",
                email=GUEST_EMAIL,
                phone=guest.phone,
                check_in=check_in,
                check_out=check_in + timedelta(days=4),
                guests=4,
                message="Arriving late on the first night.",
            )
            Inquiry.objects.get_or_create(
                email=GUEST_EMAIL,
                property=properties[1],
                defaults={
                    "name": "Layla Mansour",
                    "phone": guest.phone,
                    "message": "Is the shared pool heated in winter?",
                },
            )

        self.stdout.write(self.style.SUCCESS("Development seed data created."))
        self.stdout.write(self.style.NOTICE(f"Guest login {GUEST_EMAIL} password: {SEED_PASSWORD}"))
        self.stdout.write(self.style.NOTICE(f"Admin superuser {SUPERUSER_EMAIL} password: {SUPERUSER_PASSWORD}"))

    def _ensure_property(self, data: dict) -> Property:
        defaults = {key: value for key, value in data.items() if key != "title"}
        prop, created = Property.objects.update_or_create(title=data["title"], defaults=defaults)
        if created:
            self.stdout.write(self.style.NOTICE(f"Added {prop.title}"))
        return prop

    def _ensure_user(self, *, email: str, first_name: str, last_name: str, phone: str) -> User:
        user, created = User.objects.get_or_create(
            email=email,
            defaults={
                "username": email,
                "first_name": first_name,
                "last_name": last_name,
                "display_name": f"{first_name} {last_name}",
                "phone": phone,
            },
        )
        if created or not user.has_usable_password():
            user.set_password(SEED_PASSWORD)
            user.save()
        return user

    def _ensure_superuser(self) -> User:
        user, created = User.objects.get_or_create(
            email=SUPERUSER_EMAIL,
            defaults={
                "username": SUPERUSER_EMAIL,
                "display_name": "Stay Chill Admin",
                "is_staff": True,
                "is_superuser": True,
            },
        )
        if created or not user.is_superuser:
            user.is_staff = True
            user.is_superuser = True
            user.set_password(SUPERUSER_PASSWORD)
            user.save()
        return user
