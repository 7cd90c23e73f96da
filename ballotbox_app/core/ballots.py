"""Ballot validation.

A ballot is never stored. It only lives long enough to be validated here and
committed by ``core.tally``.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from django.conf import settings

from core.errors import (
    AlreadyVotedError,
    ElectionClosedError,
    InvalidSessionError,
    MissingEthicsAnswerError,
    MissingPresidentError,
    TooManyMembersError,
    UnknownCandidateError,
)
from core.models import AuthSession, Candidate, ElectionConfig, Member
from core.sessions import validate_session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidatedBallot:
    member_id: int
    president_id: int
    # President first, then the extra choices; no duplicates.
    effective_member_ids: tuple[int, ...]
    ethics_accepted: bool


_MAX_PK = 2**63 - 1


def coerce_pk(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, int) and 0 < value <= _MAX_PK:
        return value
    return None


def _resolve_candidate_ids(raw_ids: Sequence[object]) -> list[int]:
    """Map raw ids to existing candidate PKs, deduplicated in first-seen order."""
    candidate_ids: list[int] = []
    for raw in raw_ids:
        cid = coerce_pk(raw)
        if cid is None:
            raise UnknownCandidateError()
        candidate_ids.append(cid)

    unique_ids = list(dict.fromkeys(candidate_ids))
    existing = set(Candidate.objects.filter(pk__in=unique_ids).values_list("id", flat=True))
    if len(existing) != len(unique_ids):
        raise UnknownCandidateError()
    return unique_ids


def validate_ballot(*, token: object, payload: Mapping[str, object]) -> ValidatedBallot:
    session = validate_session(token, required_role=AuthSession.Role.member)

    if not ElectionConfig.load().is_open:
        raise ElectionClosedError()

    member = Member.objects.filter(pk=session.subject_id).only("id", "has_voted").first()
    if member is None:
        # The member was removed from the roster after logging in.
        raise InvalidSessionError()
    if member.has_voted:
        raise AlreadyVotedError()

    president_raw = payload.get("president_id")
    if not president_raw or (isinstance(president_raw, str) and not president_raw.strip()):
        raise MissingPresidentError()

    member_ids_raw = payload.get("member_ids")
    max_choices = int(settings.BALLOT_MAX_MEMBER_CHOICES)
    if not isinstance(member_ids_raw, list) or len(member_ids_raw) > max_choices:
        raise TooManyMembersError(f"Up to {max_choices} additional members can be selected")

    ethics_accepted = payload.get("ethics_accepted")
    if not isinstance(ethics_accepted, bool):
        raise MissingEthicsAnswerError()

    effective_ids = _resolve_candidate_ids([president_raw, *member_ids_raw])

    return ValidatedBallot(
        member_id=int(member.pk),
        president_id=effective_ids[0],
        effective_member_ids=tuple(effective_ids),
        ethics_accepted=ethics_accepted,
    )
