"""Reference code generation: ``<PREFIX>-<YYYY><MM>-<NNN>``."""


import re
from collections.abc import Iterable
from datetime import datetime

_REFERENCE_RE = re.compile(r"^[A-Z][A-Z0-9]*-\d{6}-\d{3,}$")


def month_prefix(now: datetime, prefix: str = "APP") -> str:
    return f"{prefix}-{now.year:04d}{now.month:02d}-"


def generate_reference(
    existing_references: Iterable[str], now: datetime, prefix: str = "APP"
) -> str:
    """Next reference for the month of *now*.

    Takes the highest numeric suffix among references of that month (0 when
    there is none) plus one, zero-padded to three digits. Deterministic for a
    given set and month; two callers can compute the same value, so creation
    must still handle a duplicate.
    """
    month = month_prefix(now, prefix)
    numbers = []
    for ref in existing_references:
        if not ref or not ref.startswith(month):
            continue
        suffix = ref[len(month):]
        if suffix.isdigit():
            numbers.append(int(suffix))
    last = max(numbers, default=0)
    return f"{month}{last + 1:03d}"


def is_valid_reference(reference: str) -> bool:
    return bool(_REFERENCE_RE.match(reference))
