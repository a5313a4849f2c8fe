"""
Booking persistence used by the payment lifecycle.

The lifecycle manager only talks to :class:`BookingStorage`; which backend
answers is decided by ``settings.BOOKING_STORAGE_BACKEND``. Every mutator is a
whole-field overwrite and returns a fresh :class:`BookingRecord` snapshot.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, fields as dataclass_fields, replace
from datetime import date
from decimal import Decimal
from functools import lru_cache
from typing import Dict, Optional

from django.conf import settings
from django.utils.module_loading import import_string

from bookings.models import Booking
from payments.errors import BookingNotFound


@dataclass(frozen=True)
class BookingRecord:
    id: int
    property_id: int
    check_in: date
    check_out: date
    guests: int
    status: str = Booking.PENDING
    payment_status: str = Booking.PAYMENT_UNPAID
    payment_intent_id: str = ""
    total_amount: Optional[Decimal] = None
    user_id: Optional[int] = None
    email: str = ""

    @classmethod
    def from_model(cls, booking: Booking) -> "BookingRecord":
        return cls(
            id=booking.pk,
            property_id=booking.property_id,
            check_in=booking.check_in,
            check_out=booking.check_out,
            guests=booking.guests,
            status=booking.status,
            payment_status=booking.payment_status,
            payment_intent_id=booking.payment_intent_id or "",
            total_amount=booking.total_amount,
            user_id=booking.user_id,
            email=booking.email,
        )


class BookingStorage:
    def get_booking(self, booking_id) -> BookingRecord:
        raise NotImplementedError

    def create_booking(self, **fields) -> BookingRecord:
        raise NotImplementedError

    def update_booking_status(self, booking_id, status: str) -> BookingRecord:
        raise NotImplementedError

    def update_booking_payment_status(
        self,
        booking_id,
        payment_status: str,
        payment_intent_id: str | None = None,
    ) -> BookingRecord:
        raise NotImplementedError

    def update_booking_total_amount(self, booking_id, amount: Decimal) -> BookingRecord:
        raise NotImplementedError


class DatabaseBookingStorage(BookingStorage):
    """Relational backend on the Django ORM."""

    def _get(self, booking_id) -> Booking:
        try:
            return Booking.objects.get(pk=booking_id)
        except (Booking.DoesNotExist, ValueError, TypeError):
            raise BookingNotFound(booking_id) from None

    def _update(self, booking_id, **fields) -> BookingRecord:
        booking = self._get(booking_id)
        for name, value in fields.items():
            setattr(booking, name, value)
        booking.save(update_fields=[*fields.keys(), "updated_at"])
        return BookingRecord.from_model(booking)

    def get_booking(self, booking_id) -> BookingRecord:
        return BookingRecord.from_model(self._get(booking_id))

    def create_booking(self, **fields) -> BookingRecord:
        booking = Booking(**fields)
        booking.full_clean()
        booking.save()
        return BookingRecord.from_model(booking)

    def update_booking_status(self, booking_id, status: str) -> BookingRecord:
        return self._update(booking_id, status=status)

    def update_booking_payment_status(self, booking_id, payment_status, payment_intent_id=None) -> BookingRecord:
        fields = {"payment_status": payment_status}
        if payment_intent_id is not None:
            fields["payment_intent_id"] = payment_intent_id
        return self._update(booking_id, **fields)

    def update_booking_total_amount(self, booking_id, amount: Decimal) -> BookingRecord:
        return self._update(booking_id, total_amount=amount)


class MemoryBookingStorage(BookingStorage):
    """Process-local backend; bookings live as long as the instance does."""

    def __init__(self):
        self._bookings: Dict[int, BookingRecord] = {}
        self._ids = itertools.count(1)

    def _get(self, booking_id) -> BookingRecord:
        try:
            return self._bookings[int(booking_id)]
        except (KeyError, ValueError, TypeError):
            raise BookingNotFound(booking_id) from None

    def _update(self, booking_id, **fields) -> BookingRecord:
        record = replace(self._get(booking_id), **fields)
        self._bookings[record.id] = record
        return record

    def get_booking(self, booking_id) -> BookingRecord:
        return self._get(booking_id)

    def create_booking(self, **fields) -> BookingRecord:
        booking_id = fields.pop("id", None)
        if booking_id is None:
            booking_id = next(self._ids)
            while booking_id in self._bookings:
                booking_id = next(self._ids)
        elif int(booking_id) in self._bookings:
            raise ValueError(f"Booking {booking_id} already exists.")
        booking_id = int(booking_id)
        known = {field.name for field in dataclass_fields(BookingRecord)}
        record = BookingRecord(id=booking_id, **{k: v for k, v in fields.items() if k in known})
        self._bookings[record.id] = record
        return record

    def update_booking_status(self, booking_id, status: str) -> BookingRecord:
        return self._update(booking_id, status=status)

    def update_booking_payment_status(self, booking_id, payment_status, payment_intent_id=None) -> BookingRecord:
        fields = {"payment_status": payment_status}
        if payment_intent_id is not None:
            fields["payment_intent_id"] = payment_intent_id
        return self._update(booking_id, **fields)

    def update_booking_total_amount(self, booking_id, amount: Decimal) -> BookingRecord:
        return self._update(booking_id, total_amount=amount)


@lru_cache(maxsize=None)
def _load_storage(backend: str) -> BookingStorage:
    return import_string(backend)()


def get_booking_storage() -> BookingStorage:
    """Return the configured backend; one shared instance per dotted path."""
    backend = getattr(settings, "BOOKING_STORAGE_BACKEND", "bookings.storage.DatabaseBookingStorage")
    return _load_storage(backend)
