import logging

from django.contrib.auth import get_user_model
from django.contrib.auth.hashers import check_password, make_password
from django.contrib.auth.models import AbstractBaseUser

from core.errors import InvalidCredentialsError, NotEligibleError
from core.models import Member
from core.views_utils import _normalize_str

logger = logging.getLogger(__name__)


def hash_identity_secret(secret: str) -> str:
    return make_password(_normalize_str(secret))


def verify_member(member_number: str, secret: str) -> Member:
    """Return the member owning ``member_number`` if ``secret`` matches.

    Raises InvalidCredentialsError for an unknown member or a wrong secret and
    NotEligibleError when the member's fees are not paid. Eligibility is only
    checked after the secret matches so it does not leak roster membership.
    """
    member_number = _normalize_str(member_number)
    secret = _normalize_str(secret)

    member = Member.objects.filter(member_number=member_number).first()
    if member is None:
        # Run the hasher anyway so an unknown number costs the same time.
        make_password(secret)
        raise InvalidCredentialsError()

    def _upgrade_hash(raw: str) -> None:
        Member.objects.filter(pk=member.pk).update(id_card_hash=make_password(raw))

    if not check_password(secret, member.id_card_hash, setter=_upgrade_hash):
        raise InvalidCredentialsError()

    if not member.is_fee_eligible:
        raise NotEligibleError()

    return member


def verify_admin(username: str, secret: str) -> AbstractBaseUser:
    user_model = get_user_model()
    username = _normalize_str(username)

    try:
        user = user_model._default_manager.get_by_natural_key(username)
    except user_model.DoesNotExist:
        user_model().set_password(secret)
        raise InvalidCredentialsError("Invalid administrator credentials") from None

    if not user.check_password(secret):
        raise InvalidCredentialsError("Invalid administrator credentials")
    if not user.is_active or not user.is_staff:
        raise InvalidCredentialsError("Invalid administrator credentials")

    return user
