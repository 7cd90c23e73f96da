import logging

from django.db import transaction
from django.db.models import F, Sum

from core.ballots import ValidatedBallot
from core.errors import AlreadyVotedError, ElectionClosedError, UnknownCandidateError
from core.models import Candidate, ElectionConfig, Member

logger = logging.getLogger(__name__)


@transaction.atomic
def commit_ballot(ballot: ValidatedBallot) -> None:
    """Record a validated ballot.

    The election row is locked for the length of the transaction so a close
    or reset either lands before the ballot or waits for it to commit. The
    member's ``has_voted`` flag is flipped with a conditional UPDATE, so only
    one concurrent request per member can win. Counters are only touched by
    the winner, using database-side increments. Any failure rolls the whole
    ballot back.
    """
    config = ElectionConfig.load(for_update=True)
    if not config.is_open:
        raise ElectionClosedError()

    flipped = Member.objects.filter(pk=ballot.member_id, has_voted=False).update(
        has_voted=True,
        ethics_accepted=ballot.ethics_accepted,
    )
    if flipped != 1:
        raise AlreadyVotedError()

    president_updated = Candidate.objects.filter(pk=ballot.president_id).update(
        president_votes=F("president_votes") + 1,
    )
    members_updated = Candidate.objects.filter(pk__in=ballot.effective_member_ids).update(
        member_votes=F("member_votes") + 1,
    )
    if president_updated != 1 or members_updated != len(ballot.effective_member_ids):
        # A candidate was deleted after validation.
        raise UnknownCandidateError()

    logger.info("Ballot committed for member %s", ballot.member_id)


def tally_invariant_holds() -> bool:
    """True when the president tallies add up to the number of members who voted."""
    president_total = Candidate.objects.aggregate(total=Sum("president_votes"))["total"] or 0
    return president_total == Member.objects.voted().count()
