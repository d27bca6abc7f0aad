"""Domain package — all ORM models are imported here so Alembic autogenerate detects them.

Folder intent:
  catalog.py      — Suppliers ("fournisseurs") and articles (reference data)
  procurement.py  — Procurement records, their line items, and the status vocabulary
  mixins.py       — Shared TimestampMixin
"""

from appro.domain.catalog import Article, Supplier
from appro.domain.procurement import ProcurementLine, ProcurementRecord, ProcurementStatus

__all__ = [
    "Article",
    "ProcurementLine",
    "ProcurementRecord",
    "ProcurementStatus",
    "Supplier",
]
