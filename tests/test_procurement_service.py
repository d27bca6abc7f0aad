"""Record store behaviour through ProcurementService over the memory backend."""

from datetime import timedelta

import pytest

from appro.core.exceptions import ConflictError, NotFoundError, ValidationError
from appro.domain.procurement import ProcurementStatus
from appro.repositories.base import Repositories
from appro.repositories.memory import (
    MemoryCatalogRepository,
    MemoryProcurementRepository,
    default_catalog,
)
from appro.schemas.procurement import (
    LineItemIn,
    ProcurementCreate,
    ProcurementFilters,
    ProcurementUpdate,
)
from appro.services.procurement import ProcurementService

pytestmark = pytest.mark.anyio


def _draft(**overrides) -> ProcurementCreate:
    values = {
        "date": "2024-01-15",
        "supplier_id": "1",
        "lines": [
            LineItemIn(article_id="1", quantity=2, unit_price=5000),
            LineItemIn(article_id="2", quantity=1, unit_price=15000),
        ],
    }
    values.update(overrides)
    return ProcurementCreate(**values)


class FlakyProcurementRepository(MemoryProcurementRepository):
    """Raises ConflictError on the first *failures* inserts."""

    def __init__(self, failures: int):
        super().__init__()
        self.failures = failures
        self.attempts = 0

    async def insert(self, values):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise ConflictError(f"Reference '{values['reference']}' already exists")
        return await super().insert(values)


def _service_with(repo, clock) -> ProcurementService:
    suppliers, articles = default_catalog()
    repos = Repositories(procurements=repo, catalog=MemoryCatalogRepository(suppliers, articles))
    return ProcurementService(repos, clock=clock)


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

class TestCreate:
    async def test_create_totals_lines_and_stamps(self, service):
        record = await service.create_procurement(_draft())

        assert record.id
        assert record.reference == "APP-202401-001"
        assert record.total_amount == 25000
        assert [line.amount for line in record.lines] == [10000, 15000]
        assert record.status == ProcurementStatus.PENDING
        assert record.supplier_name == "Textiles Dakar SARL"
        assert record.created_at == record.updated_at

        stored = await service.get_procurement(record.id)
        assert stored == record

    async def test_references_increase_within_month(self, service):
        first = await service.create_procurement(_draft())
        second = await service.create_procurement(_draft())
        assert (first.reference, second.reference) == ("APP-202401-001", "APP-202401-002")

    async def test_missing_unit_price_uses_reference_price(self, service):
        record = await service.create_procurement(
            _draft(lines=[LineItemIn(article_id="3", quantity=2)])
        )
        assert record.lines[0].unit_price == 8000
        assert record.total_amount == 16000

    async def test_duplicate_articles_are_merged(self, service):
        record = await service.create_procurement(
            _draft(
                lines=[
                    LineItemIn(article_id="1", quantity=2, unit_price=5000),
                    LineItemIn(article_id="1", quantity=3, unit_price=5000),
                ]
            )
        )
        assert len(record.lines) == 1
        assert record.lines[0].quantity == 5
        assert record.total_amount == 25000

    async def test_empty_draft_reports_every_missing_field(self, service):
        with pytest.raises(ValidationError) as exc_info:
            await service.create_procurement(ProcurementCreate())
        assert {"date", "fournisseurId", "articles"} <= set(exc_info.value.errors)
        assert await service.list_procurements() == []

    async def test_invalid_lines_are_reported_by_index(self, service):
        draft = _draft(
            lines=[
                LineItemIn(article_id="1", quantity=0, unit_price=5000),
                LineItemIn(article_id="999", quantity=1, unit_price=10),
            ]
        )
        with pytest.raises(ValidationError) as exc_info:
            await service.create_procurement(draft)
        assert "articles[0].quantite" in exc_info.value.errors
        assert "articles[1].articleId" in exc_info.value.errors
        assert await service.list_procurements() == []

    async def test_unknown_supplier(self, service):
        with pytest.raises(ValidationError) as exc_info:
            await service.create_procurement(_draft(supplier_id="42"))
        assert "fournisseurId" in exc_info.value.errors

    async def test_bad_date_and_reference(self, service):
        with pytest.raises(ValidationError) as exc_info:
            await service.create_procurement(_draft(date="15/01/2024", reference="nope"))
        assert set(exc_info.value.errors) == {"date", "reference"}

    @pytest.mark.parametrize("date", ["2024-1-5", "2024-01-5", "2024-02-30", "2024-01-05\n"])
    async def test_date_must_be_zero_padded_calendar_day(self, service, date):
        with pytest.raises(ValidationError) as exc_info:
            await service.create_procurement(_draft(date=date))
        assert set(exc_info.value.errors) == {"date"}
        assert await service.list_procurements() == []

    async def test_fixed_reference_conflict_propagates(self, service):
        await service.create_procurement(_draft(reference="APP-202401-007"))
        with pytest.raises(ConflictError):
            await service.create_procurement(_draft(reference="APP-202401-007"))
        assert len(await service.find_by_reference("APP-202401-007")) == 1

    async def test_generated_reference_is_retried_on_conflict(self, clock):
        repo = FlakyProcurementRepository(failures=1)
        service = _service_with(repo, clock)

        record = await service.create_procurement(_draft())

        assert repo.attempts == 2
        assert record.reference == "APP-202401-001"
        assert len(await service.list_procurements()) == 1

    async def test_retry_gives_up_after_limit(self, clock):
        repo = FlakyProcurementRepository(failures=10)
        service = _service_with(repo, clock)

        with pytest.raises(ConflictError, match="after 3 attempts"):
            await service.create_procurement(_draft())
        assert repo.attempts == 3
        assert await service.list_procurements() == []


# ---------------------------------------------------------------------------
# Update / status
# ---------------------------------------------------------------------------

class TestUpdate:
    async def test_update_moves_updated_at_forward(self, service):
        record = await service.create_procurement(_draft())
        updated = await service.update_procurement(record.id, ProcurementUpdate(notes="Livraison partielle"))

        assert updated.notes == "Livraison partielle"
        assert updated.created_at == record.created_at
        assert updated.updated_at > record.updated_at

    async def test_update_stamp_is_strictly_later_with_frozen_clock(self, memory_backend, clock):
        clock.step = timedelta(0)
        service = ProcurementService(memory_backend.repositories, clock=clock)
        record = await service.create_procurement(_draft())

        updated = await service.update_procurement(record.id, ProcurementUpdate(notes="x"))
        assert updated.updated_at > record.updated_at

    async def test_replacing_lines_recomputes_total(self, service):
        record = await service.create_procurement(_draft())
        updated = await service.update_procurement(
            record.id,
            ProcurementUpdate(lines=[LineItemIn(article_id="4", quantity=10, unit_price=3000)]),
        )
        assert updated.total_amount == 30000
        assert [line.article_id for line in updated.lines] == ["4"]

    async def test_changing_supplier_refreshes_name(self, service):
        record = await service.create_procurement(_draft())
        updated = await service.update_procurement(record.id, ProcurementUpdate(supplier_id="2"))
        assert updated.supplier_name == "Mercerie Centrale"

    async def test_invalid_update_leaves_record_untouched(self, service):
        record = await service.create_procurement(_draft())
        with pytest.raises(ValidationError):
            await service.update_procurement(record.id, ProcurementUpdate(date="2024-13-45"))
        assert await service.get_procurement(record.id) == record

    async def test_unpadded_date_update_is_rejected(self, service):
        record = await service.create_procurement(_draft(date="2024-01-05"))
        with pytest.raises(ValidationError) as exc_info:
            await service.update_procurement(record.id, ProcurementUpdate(date="2024-1-5"))
        assert "date" in exc_info.value.errors

        january = await service.list_procurements(
            ProcurementFilters(date_from="2024-01-01", date_to="2024-01-31")
        )
        assert [r.date for r in january] == ["2024-01-05"]

    async def test_change_status_keeps_lines(self, service):
        record = await service.create_procurement(_draft())
        updated = await service.change_status(record.id, ProcurementStatus.CANCELLED)

        assert updated.status == ProcurementStatus.CANCELLED
        assert updated.lines == record.lines
        assert updated.total_amount == record.total_amount
        assert updated.updated_at > record.updated_at

    async def test_confirm_receipt(self, service):
        record = await service.create_procurement(_draft())
        received = await service.confirm_receipt(record.id)
        assert received.status == ProcurementStatus.RECEIVED

    async def test_update_missing_record(self, service):
        with pytest.raises(NotFoundError):
            await service.update_procurement("missing", ProcurementUpdate(notes="x"))
        with pytest.raises(NotFoundError):
            await service.change_status("missing", ProcurementStatus.RECEIVED)


# ---------------------------------------------------------------------------
# Read / delete
# ---------------------------------------------------------------------------

class TestReadAndDelete:
    async def test_get_missing_record(self, service):
        with pytest.raises(NotFoundError, match="missing"):
            await service.get_procurement("missing")

    async def test_delete(self, service):
        record = await service.create_procurement(_draft())
        await service.delete_procurement(record.id)
        assert await service.list_procurements() == []
        with pytest.raises(NotFoundError):
            await service.delete_procurement(record.id)

    async def test_delete_by_reference(self, service):
        record = await service.create_procurement(_draft())
        assert await service.reference_exists(record.reference)

        assert await service.delete_by_reference(record.reference) == 1
        assert not await service.reference_exists(record.reference)
        with pytest.raises(NotFoundError):
            await service.delete_by_reference(record.reference)

    async def test_next_reference_is_not_reserved(self, service):
        assert await service.next_reference() == "APP-202401-001"
        assert await service.next_reference() == "APP-202401-001"

    async def test_list_filters_and_sorts(self, service):
        await service.create_procurement(_draft(date="2024-01-20"))
        await service.create_procurement(_draft(date="2024-01-05", supplier_id="2"))

        newest_first = await service.list_procurements(sort="date", order="desc")
        assert [r.date for r in newest_first] == ["2024-01-20", "2024-01-05"]

        mercerie = await service.list_procurements(ProcurementFilters(search_term="mercerie"))
        assert [r.supplier_id for r in mercerie] == ["2"]


# ---------------------------------------------------------------------------
# Statistics / export / draft preview
# ---------------------------------------------------------------------------

class TestReports:
    async def test_statistics(self, service):
        a = await service.create_procurement(_draft())  # 25000, supplier 1
        await service.create_procurement(
            _draft(supplier_id="2", lines=[LineItemIn(article_id="4", quantity=5, unit_price=3000)])
        )  # 15000, supplier 2
        await service.confirm_receipt(a.id)

        stats = await service.statistics()

        assert stats.total_amount == 40000
        assert stats.count == 2
        assert (stats.pending, stats.received, stats.cancelled) == (1, 1, 0)
        assert stats.main_supplier.name == "Textiles Dakar SARL"
        assert stats.main_supplier.percentage == pytest.approx(62.5)

    async def test_statistics_on_empty_store(self, service):
        stats = await service.statistics()
        assert stats.count == 0
        assert stats.main_supplier.percentage == 0

    async def test_export(self, service):
        await service.create_procurement(_draft())
        csv = await service.export()
        assert csv.splitlines()[1] == "APP-202401-001,2024-01-15,Textiles Dakar SARL,25000,En attente"

    async def test_preview_draft_persists_nothing(self, service):
        preview = await service.preview_draft(
            [LineItemIn(article_id="1", quantity=1), LineItemIn(article_id="1", quantity=1)]
        )
        assert preview.total_amount == 10000
        assert len(preview.lines) == 1
        assert await service.list_procurements() == []
