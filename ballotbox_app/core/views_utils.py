"""Shared request helpers for the JSON API views."""

import hashlib
import hmac
import logging
from collections.abc import Mapping

from django.conf import settings
from django.http import HttpRequest

logger = logging.getLogger(__name__)


def _normalize_str(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def client_ip(request: HttpRequest) -> str:
    # X-Forwarded-For is client-controlled; only trust the socket peer.
    return _normalize_str(request.META.get("REMOTE_ADDR"))


def request_id(request: HttpRequest) -> str:
    return _normalize_str(request.headers.get("X-Request-ID"))


def session_token_from_request(request: HttpRequest, data: Mapping[str, object]) -> str:
    """Return the session token from the body or an ``Authorization: Bearer`` header."""
    token = _normalize_str(data.get("token"))
    if token:
        return token

    header = _normalize_str(request.headers.get("Authorization"))
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer":
        return _normalize_str(value)
    return ""


def keyed_digest(value: str) -> str:
    """HMAC a value with SECRET_KEY so it can be logged without exposing it."""
    secret = str(settings.SECRET_KEY).encode("utf-8")
    return hmac.new(key=secret, msg=value.encode("utf-8"), digestmod=hashlib.sha256).hexdigest()
