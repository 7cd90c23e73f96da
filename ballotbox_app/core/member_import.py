"""Roster import: normalize member rows and upsert them by member number.

Rows arrive with headers in several spellings (English and Spanish, with or
without accents). Each row is handled on its own so one bad row never blocks
the rest of the batch.
"""

from __future__ import annotations

import logging
import unicodedata
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from django.db import DatabaseError, transaction
from tablib import Dataset

from core.credentials import hash_identity_secret
from core.csv_import_utils import dataset_from_records, matching_column_headers
from core.election_state import record_audit_event
from core.models import Member
from core.views_utils import _normalize_str

logger = logging.getLogger(__name__)

MEMBER_NUMBER_ALIASES = ("member_number", "numero_miembro", "número_miembro", "member number", "member_no")
ID_CARD_ALIASES = ("id_card", "carnet", "carné", "cedula")
NAME_ALIASES = ("name", "nombre")
FEE_STATUS_ALIASES = ("fee_status", "estado", "cuota")


def _fold_token(value: object) -> str:
    decomposed = unicodedata.normalize("NFKD", _normalize_str(value).lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


_PAID_TOKENS = frozenset(
    _fold_token(token)
    for token in ("paid", "pagado", "al día", "al dia", "si", "sí", "yes", "1", "true")
)


def classify_fee_status(value: object) -> str:
    # Accents are folded so "al día" and "sí" match their unaccented forms.
    if _fold_token(value) in _PAID_TOKENS:
        return Member.FeeStatus.paid
    return Member.FeeStatus.pending


@dataclass
class ImportResult:
    imported: int = 0
    errors: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, object]:
        return {"imported": self.imported, "errors": list(self.errors)}


@dataclass(frozen=True)
class _Columns:
    # Every header that matches a field, in alias priority order. Records
    # built from JSON may mix spellings across rows.
    member_number: tuple[str, ...]
    id_card: tuple[str, ...]
    name: tuple[str, ...]
    fee_status: tuple[str, ...]

    @classmethod
    def from_headers(cls, headers: list[str]) -> _Columns:
        return cls(
            member_number=matching_column_headers(headers, *MEMBER_NUMBER_ALIASES),
            id_card=matching_column_headers(headers, *ID_CARD_ALIASES),
            name=matching_column_headers(headers, *NAME_ALIASES),
            fee_status=matching_column_headers(headers, *FEE_STATUS_ALIASES),
        )


def _cell(row: Mapping[str, object], columns: tuple[str, ...]) -> str:
    for column in columns:
        value = _normalize_str(row.get(column))
        if value:
            return value
    return ""


def _upsert_member(*, member_number: str, name: str, id_card: str, fee_status: str) -> bool:
    """Create or update one member. Voting state is never touched. Returns True when created."""
    _, created = Member.objects.update_or_create(
        member_number=member_number,
        defaults={
            "name": name,
            "fee_status": fee_status,
            "id_card_hash": hash_identity_secret(id_card),
        },
    )
    return created


def import_dataset(dataset: Dataset, *, actor: str | None = None) -> ImportResult:
    result = ImportResult()
    headers = list(dataset.headers or [])
    columns = _Columns.from_headers(headers)
    # Without headers every row is incomplete, but each one is still reported.
    rows = dataset.dict if headers else [{} for _ in range(dataset.height)]
    created_count = 0

    for row in rows:
        member_number = _cell(row, columns.member_number)
        id_card = _cell(row, columns.id_card)
        name = _cell(row, columns.name)

        if not id_card or not member_number or not name:
            result.errors.append(f"Incomplete row: {member_number or 'no number'}")
            continue

        try:
            with transaction.atomic():
                created = _upsert_member(
                    member_number=member_number,
                    name=name,
                    id_card=id_card,
                    fee_status=classify_fee_status(_cell(row, columns.fee_status)),
                )
        except DatabaseError as exc:
            logger.warning("Member import failed for row %s", member_number, exc_info=True)
            result.errors.append(f"Error with member {member_number}: {exc}")
            continue

        result.imported += 1
        created_count += int(created)

    record_audit_event(
        "members_imported",
        actor=actor,
        payload={
            "imported": result.imported,
            "created": created_count,
            "errors": len(result.errors),
        },
    )
    logger.info(
        "Member import by %s: %d imported (%d new), %d errors",
        actor or "-",
        result.imported,
        created_count,
        len(result.errors),
    )
    return result


def import_members(records: Iterable[Mapping[str, object]], *, actor: str | None = None) -> ImportResult:
    """Upsert roster rows keyed by member number.

    Rows missing the member number, identity secret or name are reported in
    ``errors`` and skipped. Existing members get their name, fee status and
    secret hash refreshed; ``has_voted`` and ``ethics_accepted`` are kept.
    """
    return import_dataset(dataset_from_records(records), actor=actor)
