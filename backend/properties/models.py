from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class Property(models.Model):
    """A rentable unit listed on the marketplace."""

    title = models.CharField(max_length=200)
    description = models.TextField()
    location = models.CharField(max_length=200)
    area = models.CharField(max_length=120, db_index=True)
    price = models.PositiveIntegerField(help_text="Nightly rate in whole currency units.")
    bedrooms = models.PositiveIntegerField()
    bathrooms = models.PositiveIntegerField()
    max_guests = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    images = models.JSONField(default=list, blank=True)
    amenities = models.JSONField(default=list, blank=True)
    featured = models.BooleanField(default=False)
    is_new = models.BooleanField(default=False)
    # tenths of a star, 45 == 4.5
    rating = models.PositiveSmallIntegerField(default=0, validators=[MaxValueValidator(50)])
    review_count = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["id"]
        verbose_name_plural = "properties"

    def __str__(self):
        return f"{self.title} ({self.area})"

    @property
    def star_rating(self) -> float:
        return self.rating / 10

    def has_amenities(self, amenities) -> bool:
        return all(amenity in (self.amenities or []) for amenity in amenities)
