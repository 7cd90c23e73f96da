"""Member-facing voting endpoint: candidate listing and ballot submission."""

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from core.api import ActionContext, ActionRegistry, dispatch
from core.ballots import validate_ballot
from core.models import AuthSession, Candidate
from core.sessions import validate_session
from core.tally import commit_ballot

vote_actions = ActionRegistry("vote", default_action="submit")


@vote_actions.register("get-candidates")
def get_candidates(ctx: ActionContext) -> list[dict[str, object]]:
    # Voters never see the tallies.
    validate_session(ctx.token, required_role=AuthSession.Role.member)
    return list(Candidate.objects.order_by("name", "id").values("id", "name", "bio", "photo_url"))


@vote_actions.register("submit")
def submit(ctx: ActionContext) -> dict[str, object]:
    ballot = validate_ballot(token=ctx.token, payload=ctx.data)
    commit_ballot(ballot)
    return {"success": True, "message": "Vote recorded successfully"}


@csrf_exempt
@require_POST
def vote_endpoint(request: HttpRequest) -> JsonResponse:
    return dispatch(vote_actions, request)
