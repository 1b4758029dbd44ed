import uuid

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Event",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4, editable=False, primary_key=True, serialize=False
                    ),
                ),
                ("name", models.CharField(max_length=255, verbose_name="name")),
                (
                    "deadline",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the event is due.",
                        null=True,
                        verbose_name="deadline",
                    ),
                ),
                (
                    "estimated_hours",
                    models.FloatField(
                        blank=True,
                        help_text="Expected effort in hours (e.g. 0.5, 1, 2).",
                        null=True,
                        validators=[django.core.validators.MinValueValidator(0.0)],
                        verbose_name="estimated hours",
                    ),
                ),
                (
                    "difficulty",
                    models.CharField(blank=True, max_length=64, verbose_name="difficulty"),
                ),
                ("is_completed", models.BooleanField(default=False, verbose_name="is completed")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
            ],
            options={
                "verbose_name": "Event",
                "verbose_name_plural": "Events",
                "ordering": ["is_completed", "deadline", "created_at"],
            },
        ),
    ]
