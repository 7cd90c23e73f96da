from __future__ import annotations

from django.db import migrations, models


def create_election_config(apps, schema_editor) -> None:
    ElectionConfig = apps.get_model("core", "ElectionConfig")
    ElectionConfig.objects.get_or_create(pk=1, defaults={"is_open": False, "results_revealed": False})


class Migration(migrations.Migration):
    initial = True

    dependencies: list[tuple[str, str]] = []

    operations = [
        migrations.CreateModel(
            name="Member",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("member_number", models.CharField(max_length=64, unique=True)),
                ("name", models.CharField(max_length=255)),
                (
                    "fee_status",
                    models.CharField(
                        choices=[("paid", "Paid"), ("pending", "Pending")],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("id_card_hash", models.CharField(max_length=255)),
                ("has_voted", models.BooleanField(default=False)),
                ("ethics_accepted", models.BooleanField(blank=True, default=None, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ("name", "id"),
                "db_table": "members",
            },
        ),
        migrations.CreateModel(
            name="Candidate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("bio", models.TextField(blank=True, default="")),
                ("photo_url", models.URLField(blank=True, default="", max_length=2048)),
                ("president_votes", models.PositiveIntegerField(default=0)),
                ("member_votes", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ("name", "id"),
                "db_table": "candidates",
            },
        ),
        migrations.CreateModel(
            name="AuthSession",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("token", models.CharField(max_length=128, unique=True)),
                ("role", models.CharField(choices=[("member", "Member"), ("admin", "Admin")], max_length=16)),
                ("subject_id", models.BigIntegerField()),
                ("expires_at", models.DateTimeField(db_index=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "sessions",
                "indexes": [models.Index(fields=["role", "subject_id"], name="session_role_subject")],
            },
        ),
        migrations.CreateModel(
            name="ElectionConfig",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("is_open", models.BooleanField(default=False)),
                ("results_revealed", models.BooleanField(default=False)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "election_config",
                "constraints": [models.CheckConstraint(condition=models.Q(id=1), name="election_config_singleton")],
            },
        ),
        migrations.CreateModel(
            name="ElectionAuditLogEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("timestamp", models.DateTimeField(auto_now_add=True)),
                ("event_type", models.CharField(max_length=64)),
                ("actor", models.CharField(blank=True, default="", max_length=150)),
                ("payload", models.JSONField(blank=True, default=dict)),
            ],
            options={
                "verbose_name_plural": "Election audit log entries",
                "ordering": ("timestamp", "id"),
                "indexes": [models.Index(fields=["event_type", "timestamp"], name="audit_event_ts")],
            },
        ),
        migrations.RunPython(create_election_config, migrations.RunPython.noop),
    ]
