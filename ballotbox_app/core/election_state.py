"""Election lifecycle: open/closed voting and hidden/revealed results.

The lifecycle is the cross product of two flags on the ElectionConfig
singleton. Every transition locks that row, so concurrent administrators
serialize, and writes an audit log entry when the state actually changes.
"""

import logging

from django.conf import settings
from django.db import transaction

from core.errors import ElectionOpenError
from core.models import Candidate, ElectionAuditLogEntry, ElectionConfig, Member

logger = logging.getLogger(__name__)


def get_election_config() -> ElectionConfig:
    return ElectionConfig.load()


def record_audit_event(event_type: str, *, actor: str | None, payload: dict[str, object] | None = None) -> None:
    ElectionAuditLogEntry.objects.create(
        event_type=event_type,
        actor=actor or "",
        payload=payload or {},
    )


@transaction.atomic
def set_election_open(*, is_open: bool, actor: str | None = None) -> bool:
    """Open or close voting. Returns False when voting was already in that state.

    Opening never touches ``results_revealed``; hiding results again is a
    separate decision for the committee.
    """
    config = ElectionConfig.load(for_update=True)
    if config.is_open == is_open:
        return False

    config.is_open = is_open
    config.save(update_fields=["is_open", "updated_at"])

    event_type = "election_opened" if is_open else "election_closed"
    record_audit_event(event_type, actor=actor, payload=config.as_dict())
    logger.info("Election %s by %s", "opened" if is_open else "closed", actor or "-")
    return True


def open_election(*, actor: str | None = None) -> bool:
    return set_election_open(is_open=True, actor=actor)


def close_election(*, actor: str | None = None) -> bool:
    return set_election_open(is_open=False, actor=actor)


@transaction.atomic
def reveal_results(*, actor: str | None = None) -> bool:
    config = ElectionConfig.load(for_update=True)
    if config.results_revealed:
        return False

    if config.is_open and not settings.ELECTION_ALLOW_REVEAL_WHILE_OPEN:
        raise ElectionOpenError()

    config.results_revealed = True
    config.save(update_fields=["results_revealed", "updated_at"])

    record_audit_event("results_revealed", actor=actor, payload=config.as_dict())
    logger.info("Results revealed by %s", actor or "-")
    return True


@transaction.atomic
def hide_results(*, actor: str | None = None) -> bool:
    config = ElectionConfig.load(for_update=True)
    if not config.results_revealed:
        return False

    config.results_revealed = False
    config.save(update_fields=["results_revealed", "updated_at"])

    record_audit_event("results_hidden", actor=actor, payload=config.as_dict())
    logger.info("Results hidden by %s", actor or "-")
    return True


@transaction.atomic
def reset_election(*, actor: str | None = None) -> dict[str, int]:
    """Close voting, hide results, zero every tally and clear every member's vote.

    Destructive and irreversible. Holding the config row lock makes
    concurrent resets run one after the other.
    """
    config = ElectionConfig.load(for_update=True)
    config.is_open = False
    config.results_revealed = False
    config.save(update_fields=["is_open", "results_revealed", "updated_at"])

    candidates_reset = Candidate.objects.exclude(president_votes=0, member_votes=0).update(
        president_votes=0,
        member_votes=0,
    )
    members_reset = Member.objects.exclude(has_voted=False, ethics_accepted__isnull=True).update(
        has_voted=False,
        ethics_accepted=None,
    )

    summary = {"candidates_reset": candidates_reset, "members_reset": members_reset}
    record_audit_event("votes_reset", actor=actor, payload=summary)
    logger.warning(
        "Election reset by %s: %d candidates and %d members cleared",
        actor or "-",
        candidates_reset,
        members_reset,
    )
    return summary
