import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from core.api import ActionContext, ActionRegistry, dispatch
from core.credentials import verify_admin, verify_member
from core.errors import BallotboxError, InvalidSessionError, MissingFieldsError, RateLimitedError
from core.models import AuthSession, Member
from core.rate_limit import allow_request
from core.sessions import create_session, revoke_session, validate_session
from core.views_utils import _normalize_str, client_ip, keyed_digest, request_id

logger = logging.getLogger(__name__)

auth_actions = ActionRegistry("auth")


def _member_payload(member: Member) -> dict[str, object]:
    return {
        "id": member.pk,
        "name": member.name,
        "member_number": member.member_number,
        "has_voted": member.has_voted,
    }


def _admin_payload(user) -> dict[str, object]:
    return {"id": user.pk, "username": user.get_username()}


def _emit_rate_limit_denial_log(
    request: HttpRequest,
    *,
    action: str,
    limit: int,
    window_seconds: int,
    subject: str,
) -> None:
    log_payload: dict[str, str | int | bool] = {
        "event": "ballotbox.security.rate_limit.denied",
        "component": "auth",
        "outcome": "denied",
        "endpoint": f"auth.{action}",
        "http_method": "POST",
        "limit": limit,
        "window_seconds": window_seconds,
    }

    rid = request_id(request)
    if rid:
        log_payload["request_id"] = rid

    ip = client_ip(request)
    if ip:
        log_payload["ip_hash"] = keyed_digest(ip.lower())
    else:
        log_payload["ip_present"] = False

    if subject:
        log_payload["subject_hash"] = keyed_digest(subject)

    logger.warning("Rate limit denied", extra=log_payload)


def _enforce_login_rate_limit(ctx: ActionContext, *, subject: str) -> None:
    limit = settings.AUTH_RATE_LIMIT_LOGIN_LIMIT
    window_seconds = settings.AUTH_RATE_LIMIT_LOGIN_WINDOW_SECONDS
    if allow_request(
        scope=f"auth.{ctx.action}",
        key_parts=[client_ip(ctx.request), subject],
        limit=limit,
        window_seconds=window_seconds,
    ):
        return

    _emit_rate_limit_denial_log(
        ctx.request,
        action=ctx.action,
        limit=limit,
        window_seconds=window_seconds,
        subject=subject,
    )
    raise RateLimitedError()


@auth_actions.register("member-login")
def member_login(ctx: ActionContext) -> dict[str, object]:
    member_number = _normalize_str(ctx.data.get("member_number"))
    id_card = _normalize_str(ctx.data.get("id_card"))
    if not member_number or not id_card:
        raise MissingFieldsError()

    _enforce_login_rate_limit(ctx, subject=member_number.lower())

    try:
        member = verify_member(member_number, id_card)
    except BallotboxError as exc:
        logger.info("Member login rejected: %s", type(exc).__name__)
        raise

    session = create_session(subject_id=member.pk, role=AuthSession.Role.member)
    logger.info("Member login member_id=%s", member.pk)
    return {"token": session.token, "user": _member_payload(member)}


@auth_actions.register("admin-login")
def admin_login(ctx: ActionContext) -> dict[str, object]:
    username = _normalize_str(ctx.data.get("username"))
    password = ctx.data.get("password")
    if not username or not isinstance(password, str) or not password:
        raise MissingFieldsError()

    _enforce_login_rate_limit(ctx, subject=username.lower())

    try:
        user = verify_admin(username, password)
    except BallotboxError as exc:
        logger.info("Admin login rejected: %s", type(exc).__name__)
        raise

    session = create_session(subject_id=user.pk, role=AuthSession.Role.admin)
    logger.info("Admin login username=%s", user.get_username())
    return {"token": session.token, "user": _admin_payload(user)}


@auth_actions.register("validate-session")
def validate_session_action(ctx: ActionContext) -> dict[str, object]:
    if not ctx.token:
        raise MissingFieldsError("Token required")

    session = validate_session(ctx.token)
    if session.is_member:
        member = Member.objects.filter(pk=session.subject_id).first()
        if member is None:
            raise InvalidSessionError()
        return {"user_type": session.role, "user": _member_payload(member)}

    user = get_user_model()._default_manager.filter(pk=session.subject_id, is_active=True, is_staff=True).first()
    if user is None:
        raise InvalidSessionError()
    return {"user_type": session.role, "user": _admin_payload(user)}


@auth_actions.register("logout")
def logout(ctx: ActionContext) -> dict[str, object]:
    revoke_session(ctx.token)
    return {"success": True}


@csrf_exempt
@require_POST
def auth_endpoint(request: HttpRequest) -> JsonResponse:
    return dispatch(auth_actions, request)
