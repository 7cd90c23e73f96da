"""JSON action dispatch shared by the auth, vote and admin endpoints.

Each endpoint owns an ``ActionRegistry``. Handlers receive an ``ActionContext``
and return a JSON-serializable payload or raise a ``BallotboxError``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, TypeAlias

from django.db import OperationalError
from django.http import HttpRequest, JsonResponse

from core.errors import (
    BallotboxError,
    InternalError,
    InvalidActionError,
    ServiceUnavailableError,
    ValidationError,
)
from core.views_utils import _normalize_str, request_id, session_token_from_request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionContext:
    request: HttpRequest
    action: str
    data: Mapping[str, Any]
    token: str


ActionHandler: TypeAlias = Callable[[ActionContext], object]


class ActionRegistry:
    def __init__(self, name: str, *, default_action: str | None = None) -> None:
        self.name = name
        self.default_action = default_action
        self._handlers: dict[str, ActionHandler] = {}

    def register(self, action: str) -> Callable[[ActionHandler], ActionHandler]:
        def decorator(handler: ActionHandler) -> ActionHandler:
            if action in self._handlers:
                raise ValueError(f"{self.name}: action {action!r} registered twice")
            self._handlers[action] = handler
            return handler

        return decorator

    @property
    def actions(self) -> list[str]:
        return sorted(self._handlers)

    def resolve(self, action: str) -> ActionHandler:
        handler = self._handlers.get(action or (self.default_action or ""))
        if handler is None:
            raise InvalidActionError()
        return handler


def _parse_body(request: HttpRequest) -> dict[str, Any]:
    if not request.body:
        return {}
    try:
        data = json.loads(request.body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise ValidationError("Request body must be valid JSON") from None
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def error_response(exc: BallotboxError) -> JsonResponse:
    return JsonResponse({"error": exc.message}, status=exc.status_code)


def dispatch(registry: ActionRegistry, request: HttpRequest) -> JsonResponse:
    action = ""
    try:
        data = _parse_body(request)
        action = _normalize_str(data.get("action")) or (registry.default_action or "")
        handler = registry.resolve(action)
        context = ActionContext(
            request=request,
            action=action,
            data=data,
            token=session_token_from_request(request, data),
        )
        payload = handler(context)
    except BallotboxError as exc:
        return error_response(exc)
    except OperationalError:
        logger.warning(
            "Database unavailable during %s/%s request_id=%s",
            registry.name,
            action or "-",
            request_id(request) or "-",
            exc_info=True,
        )
        return error_response(ServiceUnavailableError())
    except Exception:
        logger.exception(
            "Unhandled error during %s/%s request_id=%s",
            registry.name,
            action or "-",
            request_id(request) or "-",
        )
        return error_response(InternalError())

    return JsonResponse(payload, safe=not isinstance(payload, list))
