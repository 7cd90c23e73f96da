import logging
from pathlib import Path
from typing_extensions import override

from django.core.management.base import BaseCommand, CommandError

from core.csv_import_utils import dataset_from_csv_text
from core.member_import import import_dataset

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = (
        "Import or update the member roster from a CSV file. Rows are matched "
        "by member number; voting state of existing members is kept."
    )

    @override
    def add_arguments(self, parser) -> None:
        parser.add_argument("path", help="CSV file with a header row.")
        parser.add_argument(
            "--encoding",
            default="utf-8",
            help="File encoding (default: utf-8).",
        )
        parser.add_argument(
            "--actor",
            default="manage.py",
            help="Name recorded in the audit log for this import.",
        )

    @override
    def handle(self, *args, **options) -> None:
        path = Path(str(options["path"]))
        encoding = str(options.get("encoding") or "utf-8")
        actor = str(options.get("actor") or "manage.py")

        try:
            text = path.read_text(encoding=encoding)
        except (OSError, UnicodeDecodeError) as exc:
            raise CommandError(f"Cannot read {path}: {exc}") from exc

        dataset = dataset_from_csv_text(text)
        if not dataset.headers:
            raise CommandError(f"{path} has no header row.")

        result = import_dataset(dataset, actor=actor)

        for error in result.errors:
            self.stderr.write(error)
        self.stdout.write(
            self.style.SUCCESS(f"Imported {result.imported} member(s) with {len(result.errors)} error(s).")
        )
