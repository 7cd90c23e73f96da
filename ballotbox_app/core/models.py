from __future__ import annotations

import datetime
import logging
import secrets

from django.db import models
from django.db.models import Q
from django.utils import timezone

logger = logging.getLogger(__name__)


class MemberQuerySet(models.QuerySet["Member"]):
    def eligible(self) -> MemberQuerySet:
        return self.filter(fee_status=Member.FeeStatus.paid)

    def voted(self) -> MemberQuerySet:
        return self.filter(has_voted=True)


class Member(models.Model):
    class FeeStatus(models.TextChoices):
        paid = "paid", "Paid"
        pending = "pending", "Pending"

    member_number = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    fee_status = models.CharField(max_length=16, choices=FeeStatus.choices, default=FeeStatus.pending)
    id_card_hash = models.CharField(max_length=255)

    has_voted = models.BooleanField(default=False)
    # Stored against the member on purpose: unlike candidate choices, the
    # ethics answer is not anonymous.
    ethics_accepted = models.BooleanField(null=True, blank=True, default=None)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = MemberQuerySet.as_manager()

    class Meta:
        ordering = ("name", "id")
        db_table = "members"

    def __str__(self) -> str:
        return f"{self.member_number} ({self.name})"

    @property
    def is_fee_eligible(self) -> bool:
        return self.fee_status == Member.FeeStatus.paid


class Candidate(models.Model):
    name = models.CharField(max_length=255)
    bio = models.TextField(blank=True, default="")
    photo_url = models.URLField(blank=True, default="", max_length=2048)

    # Only aggregate counters are kept; nothing links a ballot to a member.
    president_votes = models.PositiveIntegerField(default=0)
    member_votes = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("name", "id")
        db_table = "candidates"

    def __str__(self) -> str:
        return self.name


class AuthSession(models.Model):
    class Role(models.TextChoices):
        member = "member", "Member"
        admin = "admin", "Admin"

    token = models.CharField(max_length=128, unique=True)
    role = models.CharField(max_length=16, choices=Role.choices)
    subject_id = models.BigIntegerField()
    expires_at = models.DateTimeField(db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "sessions"
        indexes = [
            models.Index(fields=["role", "subject_id"], name="session_role_subject"),
        ]

    def __str__(self) -> str:
        return f"{self.role}:{self.subject_id}"

    @classmethod
    def generate_token(cls) -> str:
        return secrets.token_urlsafe(32)

    def is_expired(self, *, now: datetime.datetime | None = None) -> bool:
        return self.expires_at <= (now or timezone.now())


class ElectionConfig(models.Model):
    """The singleton election lifecycle record.

    There is exactly one row (pk=1). Always read and mutate it through the
    database so every process observes the same state.
    """

    SINGLETON_PK = 1

    is_open = models.BooleanField(default=False)
    results_revealed = models.BooleanField(default=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "election_config"
        constraints = [
            models.CheckConstraint(condition=Q(id=1), name="election_config_singleton"),
        ]

    def __str__(self) -> str:
        opened = "open" if self.is_open else "closed"
        revealed = "revealed" if self.results_revealed else "hidden"
        return f"election ({opened}, {revealed})"

    @classmethod
    def load(cls, *, for_update: bool = False) -> ElectionConfig:
        qs = cls.objects.select_for_update() if for_update else cls.objects
        config, _ = qs.get_or_create(pk=cls.SINGLETON_PK)
        return config

    def as_dict(self) -> dict[str, bool]:
        return {
            "is_open": bool(self.is_open),
            "results_revealed": bool(self.results_revealed),
        }


class ElectionAuditLogEntry(models.Model):
    # Lifecycle and roster events only. Ballot contents are never logged.
    timestamp = models.DateTimeField(auto_now_add=True)
    event_type = models.CharField(max_length=64)
    actor = models.CharField(max_length=150, blank=True, default="")
    payload = models.JSONField(blank=True, default=dict)

    class Meta:
        verbose_name_plural = "Election audit log entries"
        ordering = ("timestamp", "id")
        indexes = [
            models.Index(fields=["event_type", "timestamp"], name="audit_event_ts"),
        ]

    def __str__(self) -> str:
        return f"{self.event_type} by {self.actor or '-'}"
