import logging
from typing_extensions import override

from django.core.management.base import BaseCommand
from django.utils import timezone

from core.models import AuthSession
from core.sessions import purge_expired_sessions

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Delete member and admin sessions whose expiry has passed."

    @override
    def add_arguments(self, parser) -> None:
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only count the expired sessions.",
        )

    @override
    def handle(self, *args, **options) -> None:
        dry_run: bool = bool(options.get("dry_run"))

        if dry_run:
            expired = AuthSession.objects.filter(expires_at__lte=timezone.now()).count()
            self.stdout.write(f"[dry-run] Would delete {expired} expired session(s).")
            return

        deleted = purge_expired_sessions()
        logger.info("purge_expired_sessions: deleted=%d", deleted)
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} expired session(s)."))
