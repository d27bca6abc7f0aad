"""Procurement service — the record store behind every procurement endpoint.

Owns the business rules: draft validation, line normalisation, reference
allocation with retry on duplicates, supplier-name snapshots, timestamps,
filtering, statistics. All storage goes through the injected repositories,
whichever backend provides them.

Rule: No SQLAlchemy / no FastAPI here. Pure Python business logic.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta, timezone

from appro.core.exceptions import ConflictError, NotFoundError, ValidationError
from appro.domain.procurement import ProcurementStatus
from appro.repositories.base import Repositories
from appro.schemas.catalog import ArticleOut
from appro.schemas.procurement import (
    DraftPreview,
    LineItem,
    LineItemIn,
    MainSupplier,
    ProcurementCreate,
    ProcurementFilters,
    ProcurementOut,
    ProcurementStats,
    ProcurementUpdate,
)
from appro.services.export import export_csv
from appro.services.line_items import LineItemAggregator
from appro.services.query import filter_records, is_iso_date, sort_records
from appro.services.references import generate_reference, is_valid_reference

logger = logging.getLogger(__name__)

ENTITY = "Procurement record"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _date_error(value: str | None) -> str | None:
    if not value:
        return "Date is required"
    if not is_iso_date(value):
        return "Expected a date formatted YYYY-MM-DD"
    return None


class ProcurementService:
    def __init__(
        self,
        repos: Repositories,
        *,
        clock: Callable[[], datetime] = utc_now,
        reference_prefix: str = "APP",
        reference_retry_limit: int = 3,
    ):
        self._records = repos.procurements
        self._catalog = repos.catalog
        self._clock = clock
        self._prefix = reference_prefix
        self._retry_limit = max(1, reference_retry_limit)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def list_procurements(
        self,
        filters: ProcurementFilters | None = None,
        sort: str | None = None,
        order: str = "asc",
    ) -> list[ProcurementOut]:
        records = await self._records.list_all()
        return sort_records(filter_records(records, filters), sort, order)

    async def get_procurement(self, record_id: str) -> ProcurementOut:
        record = await self._records.get(record_id)
        if not record:
            raise NotFoundError(ENTITY, record_id)
        return record

    async def find_by_reference(self, reference: str) -> list[ProcurementOut]:
        return await self._records.find_by_reference(reference)

    async def reference_exists(self, reference: str) -> bool:
        return bool(await self._records.find_by_reference(reference))

    async def next_reference(self) -> str:
        records = await self._records.list_all()
        return generate_reference((r.reference for r in records), self._clock(), self._prefix)

    async def export(
        self,
        filters: ProcurementFilters | None = None,
        sort: str | None = None,
        order: str = "asc",
    ) -> str:
        return export_csv(await self.list_procurements(filters, sort, order))

    async def statistics(
        self, date_from: str | None = None, date_to: str | None = None
    ) -> ProcurementStats:
        records = filter_records(
            await self._records.list_all(),
            ProcurementFilters(date_from=date_from, date_to=date_to),
        )
        total = sum(r.total_amount for r in records)
        by_status = {s: 0 for s in ProcurementStatus}
        by_supplier: dict[str, float] = defaultdict(float)
        for r in records:
            by_status[r.status] += 1
            by_supplier[r.supplier_name or ""] += r.total_amount

        main_name, main_amount = max(by_supplier.items(), key=lambda kv: kv[1], default=("", 0.0))
        return ProcurementStats(
            total_amount=total,
            count=len(records),
            pending=by_status[ProcurementStatus.PENDING],
            received=by_status[ProcurementStatus.RECEIVED],
            cancelled=by_status[ProcurementStatus.CANCELLED],
            main_supplier=MainSupplier(
                name=main_name,
                amount=main_amount,
                percentage=(main_amount / total * 100) if total > 0 else 0,
            ),
        )

    # ------------------------------------------------------------------
    # Line normalisation
    # ------------------------------------------------------------------

    def _aggregate(
        self, lines: Iterable[LineItemIn], articles: list[ArticleOut]
    ) -> tuple[LineItemAggregator, dict[str, str]]:
        """Run submitted lines through an aggregator; collect per-line field errors."""
        aggregator = LineItemAggregator(articles)
        errors: dict[str, str] = {}
        for i, line in enumerate(lines):
            if line.article_id and not aggregator.has_article(line.article_id):
                errors[f"articles[{i}].articleId"] = f"Unknown article '{line.article_id}'"
                continue
            try:
                aggregator.add_line(line.article_id, line.quantity, line.unit_price)
            except ValidationError as exc:
                for field, message in exc.errors.items():
                    errors[f"articles[{i}].{field}"] = message
        return aggregator, errors

    async def preview_draft(self, lines: list[LineItemIn]) -> DraftPreview:
        """Normalised lines and total for a draft, without persisting anything."""
        aggregator, errors = self._aggregate(lines, await self._catalog.list_articles())
        if errors:
            raise ValidationError.from_fields(errors)
        return DraftPreview(lines=aggregator.lines, total_amount=aggregator.total())

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def create_procurement(self, draft: ProcurementCreate) -> ProcurementOut:
        errors: dict[str, str] = {}

        date_error = _date_error(draft.date)
        if date_error:
            errors["date"] = date_error

        fixed_reference = draft.reference or None
        if fixed_reference and not is_valid_reference(fixed_reference):
            errors["reference"] = "Expected a reference formatted PREFIX-YYYYMM-NNN"

        supplier = None
        if not draft.supplier_id:
            errors["fournisseurId"] = "A supplier is required"
        else:
            supplier = await self._catalog.get_supplier(draft.supplier_id)
            if supplier is None:
                errors["fournisseurId"] = f"Unknown supplier '{draft.supplier_id}'"

        if not draft.lines:
            errors["articles"] = "At least one article line is required"
        aggregator, line_errors = self._aggregate(draft.lines, await self._catalog.list_articles())
        errors.update(line_errors)

        if errors:
            raise ValidationError.from_fields(errors)

        now = self._clock()
        values = {
            "reference": fixed_reference,
            "date": draft.date,
            "supplier_id": supplier.id,
            "supplier_name": supplier.name,
            "notes": draft.notes,
            "lines": aggregator.lines,
            "total_amount": aggregator.total(),
            "status": draft.status,
            "created_at": now,
            "updated_at": now,
        }

        for attempt in range(1, self._retry_limit + 1):
            if not fixed_reference:
                values["reference"] = await self.next_reference()
            try:
                record = await self._records.insert(values)
            except ConflictError:
                if fixed_reference:
                    raise
                logger.warning(
                    "Reference %s already taken (attempt %d/%d), regenerating",
                    values["reference"], attempt, self._retry_limit,
                )
                continue
            logger.info(
                "Created procurement %s (%s) for %s, total %s",
                record.reference, record.id, record.supplier_name, record.total_amount,
            )
            return record

        raise ConflictError(
            f"Could not allocate a unique reference after {self._retry_limit} attempts"
        )

    async def update_procurement(self, record_id: str, data: ProcurementUpdate) -> ProcurementOut:
        current = await self.get_procurement(record_id)  # raises 404 if missing

        given = {
            name: getattr(data, name)
            for name in data.model_fields_set
            if getattr(data, name) is not None
        }
        errors: dict[str, str] = {}
        changes: dict = {}

        if "date" in given:
            date_error = _date_error(given["date"])
            if date_error:
                errors["date"] = date_error
            changes["date"] = given["date"]

        if "reference" in given:
            if not is_valid_reference(given["reference"]):
                errors["reference"] = "Expected a reference formatted PREFIX-YYYYMM-NNN"
            changes["reference"] = given["reference"]

        if "supplier_id" in given and given["supplier_id"] != current.supplier_id:
            supplier = await self._catalog.get_supplier(given["supplier_id"])
            if supplier is None:
                errors["fournisseurId"] = f"Unknown supplier '{given['supplier_id']}'"
            else:
                changes["supplier_id"] = supplier.id
                changes["supplier_name"] = supplier.name

        if "lines" in given:
            if not given["lines"]:
                errors["articles"] = "At least one article line is required"
            aggregator, line_errors = self._aggregate(
                given["lines"], await self._catalog.list_articles()
            )
            errors.update(line_errors)
            changes["lines"] = aggregator.lines
            changes["total_amount"] = aggregator.total()

        if errors:
            raise ValidationError.from_fields(errors)

        for name in ("notes", "status"):
            if name in given:
                changes[name] = given[name]

        changes["updated_at"] = self._update_stamp(current.updated_at)
        record = await self._records.patch(record_id, changes)
        if record is None:
            raise NotFoundError(ENTITY, record_id)
        logger.info("Updated procurement %s (%s)", record.reference, ", ".join(sorted(changes)))
        return record

    def _update_stamp(self, previous: datetime | None) -> datetime:
        """Current time, forced strictly after *previous*."""
        now = self._clock()
        if previous is not None and now <= previous:
            now = previous + timedelta(microseconds=1)
        return now

    async def change_status(self, record_id: str, status: ProcurementStatus) -> ProcurementOut:
        return await self.update_procurement(record_id, ProcurementUpdate(status=status))

    async def confirm_receipt(self, record_id: str) -> ProcurementOut:
        return await self.change_status(record_id, ProcurementStatus.RECEIVED)

    async def delete_procurement(self, record_id: str) -> None:
        deleted = await self._records.delete(record_id)
        if not deleted:
            raise NotFoundError(ENTITY, record_id)
        logger.info("Deleted procurement %s", record_id)

    async def delete_by_reference(self, reference: str) -> int:
        removed = await self._records.delete_by_reference(reference)
        if not removed:
            raise NotFoundError(ENTITY, reference)
        logger.info("Deleted %d procurement(s) with reference %s", removed, reference)
        return removed
