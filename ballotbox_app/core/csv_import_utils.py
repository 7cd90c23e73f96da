import unicodedata
from collections.abc import Iterable, Mapping, Sequence

from tablib import Dataset

from core.views_utils import _normalize_str


def norm_csv_header(value: str) -> str:
    """Case-, accent- and punctuation-insensitive header key."""
    decomposed = unicodedata.normalize("NFKD", str(value or "").strip().lower())
    return "".join(ch for ch in decomposed if ch.isascii() and ch.isalnum())


def matching_column_headers(headers: Sequence[str], *aliases: str) -> tuple[str, ...]:
    """Return every header matching an alias, ordered by alias priority then header order."""
    matches: list[str] = []
    for alias in aliases:
        wanted = norm_csv_header(alias)
        for header in headers:
            if norm_csv_header(header) == wanted and header not in matches:
                matches.append(header)
    return tuple(matches)


def dataset_from_records(records: Iterable[Mapping[str, object]]) -> Dataset:
    """Build a Dataset whose headers are the union of all record keys, in first-seen order."""
    rows = [dict(record) for record in records]

    headers: list[str] = []
    for row in rows:
        for key in row:
            if str(key) not in headers:
                headers.append(str(key))

    dataset = Dataset(headers=headers)
    for row in rows:
        values = {str(k): v for k, v in row.items()}
        dataset.append([_normalize_str(values.get(header)) for header in headers])
    return dataset


def dataset_from_csv_text(text: str) -> Dataset:
    dataset = Dataset()
    if text.strip():
        dataset.load(text.lstrip("\ufeff"), format="csv")
    return dataset