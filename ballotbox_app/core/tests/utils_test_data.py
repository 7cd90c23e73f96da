from __future__ import annotations

from django.contrib.auth import get_user_model

from core.credentials import hash_identity_secret
from core.models import AuthSession, Candidate, ElectionConfig, Member
from core.sessions import create_session


def make_member(
    member_number: str = "1001",
    *,
    name: str = "Ana Pérez",
    id_card: str = "1-2345-6789",
    fee_status: str = Member.FeeStatus.paid,
    has_voted: bool = False,
) -> Member:
    return Member.objects.create(
        member_number=member_number,
        name=name,
        fee_status=fee_status,
        id_card_hash=hash_identity_secret(id_card),
        has_voted=has_voted,
    )


def make_admin(username: str = "committee", password: str = "s3cret-pass", *, is_staff: bool = True):
    return get_user_model().objects.create_user(
        username=username,
        password=password,
        is_staff=is_staff,
    )


def make_candidates(*names: str) -> list[Candidate]:
    return [Candidate.objects.create(name=name) for name in names]


def member_token(member: Member) -> str:
    return create_session(subject_id=member.pk, role=AuthSession.Role.member).token


def admin_token(user) -> str:
    return create_session(subject_id=user.pk, role=AuthSession.Role.admin).token


def set_election(*, is_open: bool, results_revealed: bool = False) -> ElectionConfig:
    config = ElectionConfig.load()
    config.is_open = is_open
    config.results_revealed = results_revealed
    config.save()
    return config
