import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Course",
            fields=[
                ("id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="ClassGroup",
            fields=[
                ("id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                (
                    "course",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="classes",
                        to="events.course",
                    ),
                ),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Member",
            fields=[
                ("uid", models.CharField(max_length=128, primary_key=True, serialize=False)),
                ("email", models.EmailField(max_length=255, unique=True)),
                ("name", models.CharField(blank=True, default="", max_length=255)),
                ("rm", models.CharField(blank=True, default="", max_length=64)),
                (
                    "role",
                    models.CharField(
                        choices=[("admin", "Admin"), ("user", "User")],
                        default="user",
                        max_length=10,
                    ),
                ),
                ("is_onboarded", models.BooleanField(default=False)),
                (
                    "class_group",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="members",
                        to="events.classgroup",
                    ),
                ),
                (
                    "course",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="members",
                        to="events.course",
                    ),
                ),
            ],
            options={
                "ordering": ["email"],
            },
        ),
        migrations.CreateModel(
            name="Event",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4, editable=False, primary_key=True, serialize=False
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("location", models.CharField(blank=True, default="", max_length=255)),
                (
                    "visibility",
                    models.CharField(
                        choices=[("public", "Public"), ("course", "Course"), ("class", "Class")],
                        default="public",
                        max_length=10,
                    ),
                ),
                ("created_by", models.CharField(blank=True, default="", max_length=128)),
                ("created_at", models.DateTimeField()),
                ("version", models.PositiveIntegerField(default=0)),
                (
                    "allowed_classes",
                    models.ManyToManyField(
                        blank=True, related_name="events", to="events.classgroup"
                    ),
                ),
                (
                    "allowed_courses",
                    models.ManyToManyField(blank=True, related_name="events", to="events.course"),
                ),
                (
                    "parent",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="children",
                        to="events.event",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["-created_at", "-id"], name="event_created_idx"),
                    models.Index(fields=["visibility"], name="event_visibility_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Enrollment",
            fields=[
                ("id", models.CharField(max_length=255, primary_key=True, serialize=False)),
                ("user_id", models.CharField(max_length=128)),
                ("event_id", models.UUIDField()),
                ("session_id", models.UUIDField()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("confirmed", "Confirmed"),
                            ("canceled", "Canceled"),
                            ("waitlist", "Waitlist"),
                        ],
                        default="confirmed",
                        max_length=10,
                    ),
                ),
                ("enrolled_at", models.DateTimeField()),
            ],
            options={
                "ordering": ["enrolled_at"],
                "indexes": [
                    models.Index(fields=["user_id", "status"], name="enrollment_user_status_idx"),
                    models.Index(fields=["event_id", "status"], name="enrollment_event_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Session",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4, editable=False, primary_key=True, serialize=False
                    ),
                ),
                ("position", models.PositiveIntegerField(default=0)),
                ("date", models.DateField()),
                ("start_time", models.TimeField()),
                ("end_time", models.TimeField()),
                ("capacity", models.PositiveIntegerField()),
                ("filled", models.PositiveIntegerField(default=0)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sessions",
                        to="events.event",
                    ),
                ),
            ],
            options={
                "ordering": ["position"],
                "indexes": [
                    models.Index(fields=["event", "position"], name="session_event_position_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("filled__lte", models.F("capacity"))),
                        name="session_filled_lte_capacity",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("start_time__lt", models.F("end_time"))),
                        name="session_starts_before_end",
                    ),
                ],
            },
        ),
    ]
