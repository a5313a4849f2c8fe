import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Property",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=200)),
                ("description", models.TextField()),
                ("location", models.CharField(max_length=200)),
                ("area", models.CharField(db_index=True, max_length=120)),
                ("price", models.PositiveIntegerField(help_text="Nightly rate in whole currency units.")),
                ("bedrooms", models.PositiveIntegerField()),
                ("bathrooms", models.PositiveIntegerField()),
                ("max_guests", models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ("images", models.JSONField(blank=True, default=list)),
                ("amenities", models.JSONField(blank=True, default=list)),
                ("featured", models.BooleanField(default=False)),
                ("is_new", models.BooleanField(default=False)),
                (
                    "rating",
                    models.PositiveSmallIntegerField(
                        default=0, validators=[django.core.validators.MaxValueValidator(50)]
                    ),
                ),
                ("review_count", models.PositiveIntegerField(default=0)),
            ],
            options={
                "ordering": ["id"],
                "verbose_name_plural": "properties",
            },
        ),
    ]
