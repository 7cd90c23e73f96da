"""Time-limited opaque session tokens for members and administrators."""

import datetime
import logging
from dataclasses import dataclass

from django.conf import settings
from django.utils import timezone

from core.errors import InvalidSessionError
from core.models import AuthSession
from core.views_utils import _normalize_str

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionInfo:
    token: str
    role: str
    subject_id: int
    expires_at: datetime.datetime

    @property
    def is_admin(self) -> bool:
        return self.role == AuthSession.Role.admin

    @property
    def is_member(self) -> bool:
        return self.role == AuthSession.Role.member


def session_ttl(role: str) -> datetime.timedelta:
    if role == AuthSession.Role.admin:
        return datetime.timedelta(seconds=settings.SESSION_ADMIN_TTL_SECONDS)
    if role == AuthSession.Role.member:
        return datetime.timedelta(seconds=settings.SESSION_MEMBER_TTL_SECONDS)
    raise ValueError(f"unknown session role: {role!r}")


def create_session(*, subject_id: int, role: str) -> AuthSession:
    ttl = session_ttl(role)
    return AuthSession.objects.create(
        token=AuthSession.generate_token(),
        role=role,
        subject_id=int(subject_id),
        expires_at=timezone.now() + ttl,
    )


def validate_session(token: object, *, required_role: str | None = None) -> SessionInfo:
    raw_token = _normalize_str(token)
    if not raw_token:
        raise InvalidSessionError()

    session = AuthSession.objects.filter(token=raw_token, expires_at__gt=timezone.now()).first()
    if session is None:
        raise InvalidSessionError()

    if required_role is not None and session.role != required_role:
        raise InvalidSessionError()

    return SessionInfo(
        token=session.token,
        role=session.role,
        subject_id=int(session.subject_id),
        expires_at=session.expires_at,
    )


def revoke_session(token: object) -> None:
    raw_token = _normalize_str(token)
    if not raw_token:
        return
    AuthSession.objects.filter(token=raw_token).delete()


def purge_expired_sessions(*, now: datetime.datetime | None = None) -> int:
    cutoff = now or timezone.now()
    deleted, _ = AuthSession.objects.filter(expires_at__lte=cutoff).delete()
    if deleted:
        logger.info("Purged %d expired sessions", deleted)
    return deleted
