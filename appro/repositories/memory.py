"""In-process backend: records and catalog held in memory.

Used for local development and tests. The catalog is seeded from an injected
snapshot (``default_catalog()`` by default) rather than module-level state, so
every backend instance owns its own copy.
"""

from __future__ import annotations

import uuid
from contextlib import AbstractAsyncContextManager
from typing import Any

from appro.core.exceptions import ConflictError
from appro.repositories.base import (
    CatalogRepository,
    DataBackend,
    ProcurementRepository,
    Repositories,
    shared_unit,
)
from appro.schemas.catalog import ArticleOut, SupplierOut
from appro.schemas.procurement import ProcurementOut


def _new_id() -> str:
    return str(uuid.uuid4())


def default_catalog() -> tuple[list[SupplierOut], list[ArticleOut]]:
    """Fixture suppliers and articles used when no snapshot is injected."""
    suppliers = [
        SupplierOut(id="1", name="Textiles Dakar SARL", contact="77 123 45 67"),
        SupplierOut(id="2", name="Mercerie Centrale", contact="76 234 56 78"),
        SupplierOut(id="3", name="Tissus Premium", contact="78 345 67 89"),
        SupplierOut(id="4", name="Distribution Moderne", contact="70 456 78 90"),
    ]
    articles = [
        ArticleOut(id="1", name="Coton blanc 100%", reference_price=5000),
        ArticleOut(id="2", name="Soie naturelle", reference_price=15000),
        ArticleOut(id="3", name="Lin premium", reference_price=8000),
        ArticleOut(id="4", name="Polyester résistant", reference_price=3000),
        ArticleOut(id="5", name="Laine mérinos", reference_price=12000),
        ArticleOut(id="6", name="Velours de luxe", reference_price=18000),
        ArticleOut(id="7", name="Denim brut", reference_price=6000),
        ArticleOut(id="8", name="Satin brillant", reference_price=10000),
    ]
    return suppliers, articles


class MemoryProcurementRepository(ProcurementRepository):
    def __init__(self, records: list[ProcurementOut] | None = None):
        self._records: list[ProcurementOut] = [r.model_copy(deep=True) for r in records or []]

    def _index(self, record_id: str) -> int | None:
        for i, record in enumerate(self._records):
            if record.id == record_id:
                return i
        return None

    async def list_all(self) -> list[ProcurementOut]:
        return [r.model_copy(deep=True) for r in self._records]

    async def get(self, record_id: str) -> ProcurementOut | None:
        i = self._index(record_id)
        return None if i is None else self._records[i].model_copy(deep=True)

    async def find_by_reference(self, reference: str) -> list[ProcurementOut]:
        return [r.model_copy(deep=True) for r in self._records if r.reference == reference]

    async def insert(self, values: dict[str, Any]) -> ProcurementOut:
        if any(r.reference == values.get("reference") for r in self._records):
            raise ConflictError(f"Reference '{values.get('reference')}' already exists")
        record = ProcurementOut.model_validate({**values, "id": _new_id()}).model_copy(deep=True)
        self._records.append(record)
        return record.model_copy(deep=True)

    async def patch(self, record_id: str, changes: dict[str, Any]) -> ProcurementOut | None:
        i = self._index(record_id)
        if i is None:
            return None
        new_ref = changes.get("reference")
        if new_ref is not None and any(
            r.reference == new_ref and r.id != record_id for r in self._records
        ):
            raise ConflictError(f"Reference '{new_ref}' already exists")
        merged = {**self._records[i].model_dump(), **changes, "id": record_id}
        self._records[i] = ProcurementOut.model_validate(merged).model_copy(deep=True)
        return self._records[i].model_copy(deep=True)

    async def delete(self, record_id: str) -> bool:
        i = self._index(record_id)
        if i is None:
            return False
        del self._records[i]
        return True

    async def delete_by_reference(self, reference: str) -> int:
        # Records without an id can only be addressed by reference
        before = len(self._records)
        self._records = [r for r in self._records if r.reference != reference]
        return before - len(self._records)


class MemoryCatalogRepository(CatalogRepository):
    def __init__(
        self,
        suppliers: list[SupplierOut] | None = None,
        articles: list[ArticleOut] | None = None,
    ):
        self._suppliers: dict[str, SupplierOut] = {s.id: s.model_copy() for s in suppliers or []}
        self._articles: dict[str, ArticleOut] = {a.id: a.model_copy() for a in articles or []}

    # Suppliers ---------------------------------------------------------

    async def list_suppliers(self) -> list[SupplierOut]:
        return [s.model_copy() for s in self._suppliers.values()]

    async def get_supplier(self, supplier_id: str) -> SupplierOut | None:
        supplier = self._suppliers.get(supplier_id)
        return supplier.model_copy() if supplier else None

    async def create_supplier(self, values: dict[str, Any]) -> SupplierOut:
        supplier = SupplierOut.model_validate({**values, "id": _new_id()})
        self._suppliers[supplier.id] = supplier
        return supplier.model_copy()

    async def update_supplier(self, supplier_id: str, changes: dict[str, Any]) -> SupplierOut | None:
        current = self._suppliers.get(supplier_id)
        if current is None:
            return None
        updated = current.model_copy(update={**changes, "id": supplier_id})
        self._suppliers[supplier_id] = updated
        return updated.model_copy()

    async def delete_supplier(self, supplier_id: str) -> bool:
        return self._suppliers.pop(supplier_id, None) is not None

    # Articles ----------------------------------------------------------

    async def list_articles(self, search: str | None = None) -> list[ArticleOut]:
        articles = list(self._articles.values())
        if search:
            needle = search.lower()
            articles = [a for a in articles if needle in a.name.lower()]
        return [a.model_copy() for a in articles]

    async def get_article(self, article_id: str) -> ArticleOut | None:
        article = self._articles.get(article_id)
        return article.model_copy() if article else None

    async def create_article(self, values: dict[str, Any]) -> ArticleOut:
        article = ArticleOut.model_validate({**values, "id": _new_id()})
        self._articles[article.id] = article
        return article.model_copy()

    async def update_article(self, article_id: str, changes: dict[str, Any]) -> ArticleOut | None:
        current = self._articles.get(article_id)
        if current is None:
            return None
        updated = current.model_copy(update={**changes, "id": article_id})
        self._articles[article_id] = updated
        return updated.model_copy()

    async def delete_article(self, article_id: str) -> bool:
        return self._articles.pop(article_id, None) is not None


class MemoryBackend(DataBackend):
    """All requests share one in-process store for the lifetime of the app."""

    name = "memory"

    def __init__(
        self,
        suppliers: list[SupplierOut] | None = None,
        articles: list[ArticleOut] | None = None,
        records: list[ProcurementOut] | None = None,
    ):
        if suppliers is None and articles is None:
            suppliers, articles = default_catalog()
        self._repos = Repositories(
            procurements=MemoryProcurementRepository(records),
            catalog=MemoryCatalogRepository(suppliers, articles),
        )

    @property
    def repositories(self) -> Repositories:
        return self._repos

    def session(self) -> AbstractAsyncContextManager[Repositories]:
        return shared_unit(self._repos)
