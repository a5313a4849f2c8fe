from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Guest or host account; the email address doubles as the username."""

    display_name = models.CharField(max_length=120, blank=True)
    phone = models.CharField(max_length=30, blank=True)

    def __str__(self):
        return self.display_name or self.email or self.username
