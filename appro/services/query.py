"""Record filtering and ordering — pure functions over already-loaded records."""


import re
from collections.abc import Iterable
from datetime import datetime

from appro.schemas.procurement import ProcurementFilters, ProcurementOut

# Record dates are YYYY-MM-DD strings
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
_DATE_RE = re.compile(DATE_PATTERN)


def is_iso_date(value: str) -> bool:
    """Zero-padded YYYY-MM-DD naming a real calendar day."""
    if not _DATE_RE.fullmatch(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


# Wire/sort key -> record attribute
SORT_FIELDS: dict[str, str] = {
    "date": "date",
    "reference": "reference",
    "montantTotal": "total_amount",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "statut": "status",
    "fournisseur": "supplier_name",
}


def _matches(record: ProcurementOut, f: ProcurementFilters) -> bool:
    if f.search_term:
        term = f.search_term.lower()
        in_reference = term in record.reference.lower()
        in_supplier = term in (record.supplier_name or "").lower()
        if not (in_reference or in_supplier):
            return False

    # Either identifier the dataset carries: the supplier id or its name snapshot
    if f.supplier_id and f.supplier_id not in (record.supplier_id, record.supplier_name):
        return False

    if f.status and record.status != f.status:
        return False

    # YYYY-MM-DD strings: lexical order is chronological order
    if f.date_from and record.date < f.date_from:
        return False
    if f.date_to and record.date > f.date_to:
        return False

    return True


def filter_records(
    records: Iterable[ProcurementOut], filters: ProcurementFilters | None = None
) -> list[ProcurementOut]:
    """Return the records matching every set filter, in input order.

    Always a new list; the input is never mutated or returned as-is.
    """
    if filters is None:
        return list(records)
    return [r for r in records if _matches(r, filters)]


def sort_records(
    records: Iterable[ProcurementOut], sort: str | None = None, order: str = "asc"
) -> list[ProcurementOut]:
    """Stable sort on a known key; unknown or missing key keeps input order."""
    attr = SORT_FIELDS.get(sort or "")
    items = list(records)
    if attr is None:
        return items

    def key(record: ProcurementOut):
        value = getattr(record, attr)
        # None sorts first in ascending order
        return (value is not None, value if value is not None else 0)

    return sorted(items, key=key, reverse=(order == "desc"))
