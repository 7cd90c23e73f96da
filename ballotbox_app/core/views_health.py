from __future__ import annotations

import logging

from django.db import DEFAULT_DB_ALIAS, DatabaseError, connections
from django.db.migrations.executor import MigrationExecutor
from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET

from core.models import ElectionConfig

logger = logging.getLogger(__name__)


def _pending_migrations() -> int:
    connection = connections[DEFAULT_DB_ALIAS]
    executor = MigrationExecutor(connection)
    targets = executor.loader.graph.leaf_nodes()
    return len(executor.migration_plan(targets))


@require_GET
def healthz(_request: HttpRequest) -> JsonResponse:
    return JsonResponse({"status": "ok"})


@require_GET
def readyz(_request: HttpRequest) -> JsonResponse:
    try:
        connections[DEFAULT_DB_ALIAS].ensure_connection()
        pending = _pending_migrations()
        if not pending:
            ElectionConfig.objects.filter(pk=ElectionConfig.SINGLETON_PK).exists()
    except DatabaseError as exc:
        logger.exception("Health check readyz failed")
        return JsonResponse({"status": "not ready", "error": str(exc)}, status=503)

    if pending:
        logger.warning("Health check readyz: %d unapplied migrations", pending)
        return JsonResponse({"status": "not ready", "migrations": "pending"}, status=503)

    return JsonResponse({"status": "ready", "database": "ok"})
