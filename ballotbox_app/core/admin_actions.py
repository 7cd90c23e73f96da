"""Administrative actions behind ``/api/admin``.

Every handler starts by resolving the admin session; the admin's username is
recorded as the actor on audit log entries.
"""

import logging
from typing import Any

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, Q

from core import election_state
from core.api import ActionContext, ActionRegistry
from core.ballots import coerce_pk
from core.errors import (
    CandidateHasVotesError,
    ConfirmationRequiredError,
    InvalidSessionError,
    MissingFieldsError,
    NotFoundError,
    ResultsHiddenError,
    ValidationError,
)
from core.member_import import import_members
from core.models import AuthSession, Candidate, ElectionConfig, Member
from core.sessions import validate_session
from core.tally import tally_invariant_holds
from core.views_utils import _normalize_str

logger = logging.getLogger(__name__)

admin_actions = ActionRegistry("admin")

_CANDIDATE_TEXT_LIMITS = {"name": 255, "photo_url": 2048}


def _require_admin(ctx: ActionContext) -> str:
    """Return the acting admin's username, or raise when the session is not an admin's."""
    session = validate_session(ctx.token, required_role=AuthSession.Role.admin)
    user = (
        get_user_model()
        ._default_manager.filter(pk=session.subject_id, is_active=True, is_staff=True)
        .first()
    )
    if user is None:
        raise InvalidSessionError()
    return user.get_username()


def _require_id(ctx: ActionContext, field: str = "id") -> int:
    value = coerce_pk(ctx.data.get(field))
    if value is None:
        raise MissingFieldsError(f"A valid {field} is required")
    return value


def _candidate_fields(ctx: ActionContext, *, partial: bool) -> dict[str, str]:
    fields: dict[str, str] = {}
    for name in ("name", "bio", "photo_url"):
        if name not in ctx.data:
            continue
        value = _normalize_str(ctx.data.get(name))
        limit = _CANDIDATE_TEXT_LIMITS.get(name)
        if limit is not None and len(value) > limit:
            raise ValidationError(f"{name} must be at most {limit} characters")
        fields[name] = value

    if "name" in fields and not fields["name"]:
        raise MissingFieldsError("Candidate name is required")
    if not partial and "name" not in fields:
        raise MissingFieldsError("Candidate name is required")
    return fields


def _candidate_payload(candidate: Candidate, *, with_counts: bool) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": candidate.pk,
        "name": candidate.name,
        "bio": candidate.bio,
        "photo_url": candidate.photo_url,
    }
    if with_counts:
        payload["president_votes"] = candidate.president_votes
        payload["member_votes"] = candidate.member_votes
    return payload


def _require_results_revealed() -> ElectionConfig:
    config = ElectionConfig.load()
    if not config.results_revealed:
        raise ResultsHiddenError()
    return config


# Election lifecycle


@admin_actions.register("get-config")
def get_config(ctx: ActionContext) -> dict[str, bool]:
    _require_admin(ctx)
    return ElectionConfig.load().as_dict()


@admin_actions.register("toggle-election")
def toggle_election(ctx: ActionContext) -> dict[str, object]:
    actor = _require_admin(ctx)
    is_open = ctx.data.get("is_open")
    if not isinstance(is_open, bool):
        raise MissingFieldsError("is_open must be true or false")

    changed = election_state.set_election_open(is_open=is_open, actor=actor)
    return {"success": True, "changed": changed}


@admin_actions.register("reveal-results")
def reveal_results(ctx: ActionContext) -> dict[str, object]:
    actor = _require_admin(ctx)
    changed = election_state.reveal_results(actor=actor)
    return {"success": True, "changed": changed}


@admin_actions.register("hide-results")
def hide_results(ctx: ActionContext) -> dict[str, object]:
    actor = _require_admin(ctx)
    changed = election_state.hide_results(actor=actor)
    return {"success": True, "changed": changed}


@admin_actions.register("reset-votes")
def reset_votes(ctx: ActionContext) -> dict[str, object]:
    actor = _require_admin(ctx)
    expected = str(settings.ELECTION_RESET_CONFIRMATION)
    if _normalize_str(ctx.data.get("confirm")) != expected:
        raise ConfirmationRequiredError(f'Type "{expected}" to confirm the reset')

    summary = election_state.reset_election(actor=actor)
    return {"success": True, **summary}


# Candidates


@admin_actions.register("get-candidates")
def get_candidates(ctx: ActionContext) -> list[dict[str, Any]]:
    _require_admin(ctx)
    with_counts = ElectionConfig.load().results_revealed
    return [_candidate_payload(c, with_counts=with_counts) for c in Candidate.objects.order_by("name", "id")]


@admin_actions.register("add-candidate")
def add_candidate(ctx: ActionContext) -> dict[str, Any]:
    actor = _require_admin(ctx)
    fields = _candidate_fields(ctx, partial=False)

    with transaction.atomic():
        candidate = Candidate.objects.create(**fields)
        election_state.record_audit_event(
            "candidate_added",
            actor=actor,
            payload={"candidate_id": candidate.pk, "name": candidate.name},
        )
    logger.info("Candidate %s added by %s", candidate.pk, actor)
    return _candidate_payload(candidate, with_counts=False)


@admin_actions.register("update-candidate")
def update_candidate(ctx: ActionContext) -> dict[str, Any]:
    actor = _require_admin(ctx)
    candidate_id = _require_id(ctx)
    fields = _candidate_fields(ctx, partial=True)

    with transaction.atomic():
        candidate = Candidate.objects.select_for_update().filter(pk=candidate_id).first()
        if candidate is None:
            raise NotFoundError("Candidate not found")
        if fields:
            for name, value in fields.items():
                setattr(candidate, name, value)
            # Counters are left out so concurrent ballots are never overwritten.
            candidate.save(update_fields=[*fields, "updated_at"])
            election_state.record_audit_event(
                "candidate_updated",
                actor=actor,
                payload={"candidate_id": candidate.pk, "fields": sorted(fields)},
            )

    return _candidate_payload(candidate, with_counts=False)


@admin_actions.register("delete-candidate")
def delete_candidate(ctx: ActionContext) -> dict[str, bool]:
    actor = _require_admin(ctx)
    candidate_id = _require_id(ctx)

    with transaction.atomic():
        candidate = Candidate.objects.select_for_update().filter(pk=candidate_id).first()
        if candidate is None:
            return {"success": True}
        if candidate.president_votes or candidate.member_votes:
            raise CandidateHasVotesError()
        candidate.delete()
        election_state.record_audit_event(
            "candidate_deleted",
            actor=actor,
            payload={"candidate_id": candidate_id},
        )

    logger.info("Candidate %s deleted by %s", candidate_id, actor)
    return {"success": True}


# Members


@admin_actions.register("get-members")
def get_members(ctx: ActionContext) -> list[dict[str, Any]]:
    _require_admin(ctx)
    return list(
        Member.objects.order_by("name", "id").values(
            "id",
            "member_number",
            "name",
            "fee_status",
            "has_voted",
            "ethics_accepted",
        )
    )


@admin_actions.register("import-members")
def import_members_action(ctx: ActionContext) -> dict[str, object]:
    actor = _require_admin(ctx)
    members = ctx.data.get("members")
    if not isinstance(members, list):
        raise ValidationError("members must be a list")
    if not all(isinstance(row, dict) for row in members):
        raise ValidationError("Each member must be a JSON object")

    return import_members(members, actor=actor).as_dict()


@admin_actions.register("delete-members")
def delete_members(ctx: ActionContext) -> dict[str, object]:
    """Remove members who have not voted.

    Members who already voted are skipped: their ballot is part of the
    tallies, and removing them would break the vote count.
    """
    actor = _require_admin(ctx)
    raw_ids = ctx.data.get("member_ids")
    if not isinstance(raw_ids, list) or not raw_ids:
        raise MissingFieldsError("Select at least one member")

    member_ids = [coerce_pk(raw) for raw in raw_ids]
    if any(member_id is None for member_id in member_ids):
        raise ValidationError("member_ids must contain member ids")

    with transaction.atomic():
        targets = Member.objects.select_for_update().filter(pk__in=member_ids)
        deletable = list(targets.filter(has_voted=False).values_list("id", flat=True))
        skipped = targets.filter(has_voted=True).count()

        deleted, _ = Member.objects.filter(pk__in=deletable).delete()
        AuthSession.objects.filter(role=AuthSession.Role.member, subject_id__in=deletable).delete()
        election_state.record_audit_event(
            "members_deleted",
            actor=actor,
            payload={"deleted": deleted, "skipped": skipped},
        )

    logger.info("Members deleted by %s: %d deleted, %d skipped", actor, deleted, skipped)
    return {"success": True, "deleted": deleted, "skipped": skipped}


# Reporting


@admin_actions.register("get-stats")
def get_stats(ctx: ActionContext) -> dict[str, object]:
    _require_admin(ctx)
    counts = Member.objects.aggregate(
        total=Count("id"),
        eligible=Count("id", filter=Q(fee_status=Member.FeeStatus.paid)),
        voted=Count("id", filter=Q(has_voted=True)),
    )
    return {
        "total": counts["total"],
        "eligible": counts["eligible"],
        "voted": counts["voted"],
        "config": ElectionConfig.load().as_dict(),
        "tally_consistent": tally_invariant_holds(),
    }


@admin_actions.register("get-results")
def get_results(ctx: ActionContext) -> list[dict[str, Any]]:
    _require_admin(ctx)
    _require_results_revealed()
    return list(
        Candidate.objects.order_by("-president_votes", "name", "id").values(
            "id",
            "name",
            "photo_url",
            "president_votes",
            "member_votes",
        )
    )


@admin_actions.register("get-ethics-summary")
def get_ethics_summary(ctx: ActionContext) -> dict[str, int]:
    _require_admin(ctx)
    _require_results_revealed()
    return Member.objects.voted().aggregate(
        accepted=Count("id", filter=Q(ethics_accepted=True)),
        rejected=Count("id", filter=Q(ethics_accepted=False)),
        unanswered=Count("id", filter=Q(ethics_accepted__isnull=True)),
    )
