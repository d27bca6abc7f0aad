"""SQL backend — async SQLAlchemy repositories over the ORM models in ``appro.domain``."""

from __future__ import annotations

import logging
from datetime import timezone
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any, Generic, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from appro.core.exceptions import ConflictError
from appro.db.base import Base, create_engine, create_session_factory
from appro.domain.catalog import Article, Supplier
from appro.domain.procurement import ProcurementLine, ProcurementRecord
from appro.repositories.base import (
    CatalogRepository,
    DataBackend,
    ProcurementRepository,
    Repositories,
)
from appro.schemas.catalog import ArticleOut, SupplierOut
from appro.schemas.procurement import LineItem, ProcurementOut

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Generic async CRUD over one ORM model."""

    model: type[ModelT]

    def __init__(self, session: AsyncSession):
        self._session = session

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_id(self, entity_id: str) -> ModelT | None:
        result = await self._session.execute(
            select(self.model).where(self.model.id == entity_id)
        )
        return result.scalars().first()

    async def list(
        self,
        *,
        order_by: str | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[ModelT]:
        """Return rows matching simple equality filters, optionally ordered."""
        q = select(self.model)

        if filters:
            for col_name, value in filters.items():
                if value is not None and hasattr(self.model, col_name):
                    q = q.where(getattr(self.model, col_name) == value)

        if order_by is not None:
            q = q.order_by(getattr(self.model, order_by))

        items = (await self._session.execute(q)).scalars().all()
        return list(items)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def create(self, **kwargs: Any) -> ModelT:
        instance = self.model(**kwargs)
        self._session.add(instance)
        await self._session.flush()  # populate id
        await self._session.refresh(instance)
        return instance

    async def update(self, entity_id: str, **kwargs: Any) -> ModelT | None:
        kwargs.pop("id", None)
        instance = await self.get_by_id(entity_id)
        if instance is None:
            return None
        for key, value in kwargs.items():
            setattr(instance, key, value)
        await self._session.flush()
        await self._session.refresh(instance)
        return instance

    async def delete(self, entity_id: str) -> bool:
        result = await self._session.execute(
            delete(self.model).where(self.model.id == entity_id)
        )
        await self._session.flush()
        return result.rowcount > 0


class _SupplierTable(BaseRepository[Supplier]):
    model = Supplier


class _ArticleTable(BaseRepository[Article]):
    model = Article


class _RecordTable(BaseRepository[ProcurementRecord]):
    model = ProcurementRecord


def _record_out(row: ProcurementRecord) -> ProcurementOut:
    record = ProcurementOut.model_validate(row)
    # SQLite hands back naive datetimes; they were written as UTC
    for name in ("created_at", "updated_at"):
        value = getattr(record, name)
        if value is not None and value.tzinfo is None:
            setattr(record, name, value.replace(tzinfo=timezone.utc))
    return record


def _line_rows(lines: list[LineItem]) -> list[ProcurementLine]:
    return [
        ProcurementLine(
            position=i,
            article_id=line.article_id,
            quantity=line.quantity,
            unit_price=line.unit_price,
            amount=line.amount,
        )
        for i, line in enumerate(lines)
    ]


def _column_values(values: dict[str, Any]) -> dict[str, Any]:
    out = dict(values)
    if "status" in out and out["status"] is not None:
        out["status"] = getattr(out["status"], "value", out["status"])
    if "lines" in out:
        out["lines"] = _line_rows([LineItem.model_validate(line) for line in out["lines"]])
    return out


class SqlProcurementRepository(ProcurementRepository):
    def __init__(self, session: AsyncSession):
        self._session = session
        self._table = _RecordTable(session)

    async def list_all(self) -> list[ProcurementOut]:
        rows = await self._session.execute(
            select(ProcurementRecord).order_by(
                ProcurementRecord.created_at, ProcurementRecord.reference
            )
        )
        return [_record_out(r) for r in rows.scalars().all()]

    async def get(self, record_id: str) -> ProcurementOut | None:
        row = await self._table.get_by_id(record_id)
        return None if row is None else _record_out(row)

    async def find_by_reference(self, reference: str) -> list[ProcurementOut]:
        rows = await self._table.list(filters={"reference": reference})
        return [_record_out(r) for r in rows]

    async def _reference_taken(self, reference: str, other_than: str | None = None) -> bool:
        q = select(func.count()).select_from(ProcurementRecord).where(
            ProcurementRecord.reference == reference
        )
        if other_than is not None:
            q = q.where(ProcurementRecord.id != other_than)
        return (await self._session.execute(q)).scalar_one() > 0

    async def insert(self, values: dict[str, Any]) -> ProcurementOut:
        reference = values["reference"]
        if await self._reference_taken(reference):
            raise ConflictError(f"Reference '{reference}' already exists")
        try:
            row = await self._table.create(**_column_values(values))
        except IntegrityError as exc:
            # Lost the race against another writer between the check and the flush
            await self._session.rollback()
            raise ConflictError(f"Reference '{reference}' already exists") from exc
        return _record_out(row)

    async def patch(self, record_id: str, changes: dict[str, Any]) -> ProcurementOut | None:
        new_ref = changes.get("reference")
        if new_ref is not None and await self._reference_taken(new_ref, other_than=record_id):
            raise ConflictError(f"Reference '{new_ref}' already exists")
        row = await self._table.update(record_id, **_column_values(changes))
        return None if row is None else _record_out(row)

    async def delete(self, record_id: str) -> bool:
        row = await self._table.get_by_id(record_id)
        if row is None:
            return False
        # ORM delete so the line cascade runs on backends without FK enforcement
        await self._session.delete(row)
        await self._session.flush()
        return True


class SqlCatalogRepository(CatalogRepository):
    def __init__(self, session: AsyncSession):
        self._suppliers = _SupplierTable(session)
        self._articles = _ArticleTable(session)

    async def list_suppliers(self) -> list[SupplierOut]:
        return [SupplierOut.model_validate(s) for s in await self._suppliers.list(order_by="name")]

    async def get_supplier(self, supplier_id: str) -> SupplierOut | None:
        row = await self._suppliers.get_by_id(supplier_id)
        return None if row is None else SupplierOut.model_validate(row)

    async def create_supplier(self, values: dict[str, Any]) -> SupplierOut:
        return SupplierOut.model_validate(await self._suppliers.create(**values))

    async def update_supplier(self, supplier_id: str, changes: dict[str, Any]) -> SupplierOut | None:
        row = await self._suppliers.update(supplier_id, **changes)
        return None if row is None else SupplierOut.model_validate(row)

    async def delete_supplier(self, supplier_id: str) -> bool:
        return await self._suppliers.delete(supplier_id)

    async def list_articles(self, search: str | None = None) -> list[ArticleOut]:
        rows = await self._articles.list(order_by="name")
        if search:
            needle = search.lower()
            rows = [r for r in rows if needle in r.name.lower()]
        return [ArticleOut.model_validate(a) for a in rows]

    async def get_article(self, article_id: str) -> ArticleOut | None:
        row = await self._articles.get_by_id(article_id)
        return None if row is None else ArticleOut.model_validate(row)

    async def create_article(self, values: dict[str, Any]) -> ArticleOut:
        return ArticleOut.model_validate(await self._articles.create(**values))

    async def update_article(self, article_id: str, changes: dict[str, Any]) -> ArticleOut | None:
        row = await self._articles.update(article_id, **changes)
        return None if row is None else ArticleOut.model_validate(row)

    async def delete_article(self, article_id: str) -> bool:
        return await self._articles.delete(article_id)


class SqlBackend(DataBackend):
    """Session-per-unit-of-work: commit on success, roll back on error."""

    name = "sql"

    def __init__(self, database_url: str, echo: bool = False, create_tables: bool = True):
        self._database_url = database_url
        self._echo = echo
        self._create_tables = create_tables
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    async def startup(self) -> None:
        self._engine = create_engine(self._database_url, echo=self._echo)
        self._session_factory = create_session_factory(self._engine)
        if self._create_tables:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        logger.info("SQL backend ready (%s)", self._engine.url.render_as_string(hide_password=True))

    async def shutdown(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    def session(self) -> AbstractAsyncContextManager[Repositories]:
        return self._unit_of_work()

    @asynccontextmanager
    async def _unit_of_work(self) -> AsyncIterator[Repositories]:
        if self._session_factory is None:
            raise RuntimeError("SqlBackend.startup() has not been awaited")
        async with self._session_factory() as session:
            try:
                yield Repositories(
                    procurements=SqlProcurementRepository(session),
                    catalog=SqlCatalogRepository(session),
                )
                await session.commit()
            except Exception:
                await session.rollback()
                raise
