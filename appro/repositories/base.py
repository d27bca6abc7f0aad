"""Data-access strategy interfaces shared by every backend.

A backend (memory fixture, JSON-Server, SQL database) provides two
repositories: one for procurement records and one for the supplier/article
catalog. Repositories speak in schema objects (``ProcurementOut``,
``SupplierOut``, ``ArticleOut``) so the service layer never sees a backend
type.

Repositories report absence with ``None``/``False`` and leave the decision to
raise ``NotFoundError`` to the service. A duplicate reference on insert is
always raised as ``ConflictError``; transport failures as ``TransportError``.
"""

from __future__ import annotations

import abc
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass
from typing import Any

from appro.schemas.catalog import ArticleOut, SupplierOut
from appro.schemas.procurement import ProcurementOut


class ProcurementRepository(abc.ABC):
    """Storage of procurement records, in store (insertion) order."""

    @abc.abstractmethod
    async def list_all(self) -> list[ProcurementOut]: ...

    @abc.abstractmethod
    async def get(self, record_id: str) -> ProcurementOut | None: ...

    @abc.abstractmethod
    async def find_by_reference(self, reference: str) -> list[ProcurementOut]: ...

    @abc.abstractmethod
    async def insert(self, values: dict[str, Any]) -> ProcurementOut:
        """Persist a new record; the backend assigns ``id``.

        Raises ConflictError when ``values["reference"]`` is already taken.
        """

    @abc.abstractmethod
    async def patch(self, record_id: str, changes: dict[str, Any]) -> ProcurementOut | None: ...

    @abc.abstractmethod
    async def delete(self, record_id: str) -> bool: ...

    async def delete_by_reference(self, reference: str) -> int:
        """Delete every record carrying *reference*; returns how many were removed."""
        removed = 0
        for record in await self.find_by_reference(reference):
            if record.id is not None and await self.delete(record.id):
                removed += 1
        return removed


class CatalogRepository(abc.ABC):
    """Suppliers and articles."""

    @abc.abstractmethod
    async def list_suppliers(self) -> list[SupplierOut]: ...

    @abc.abstractmethod
    async def get_supplier(self, supplier_id: str) -> SupplierOut | None: ...

    @abc.abstractmethod
    async def create_supplier(self, values: dict[str, Any]) -> SupplierOut: ...

    @abc.abstractmethod
    async def update_supplier(self, supplier_id: str, changes: dict[str, Any]) -> SupplierOut | None: ...

    @abc.abstractmethod
    async def delete_supplier(self, supplier_id: str) -> bool: ...

    @abc.abstractmethod
    async def list_articles(self, search: str | None = None) -> list[ArticleOut]:
        """All articles, or those whose name contains *search* (case-insensitive)."""

    @abc.abstractmethod
    async def get_article(self, article_id: str) -> ArticleOut | None: ...

    @abc.abstractmethod
    async def create_article(self, values: dict[str, Any]) -> ArticleOut: ...

    @abc.abstractmethod
    async def update_article(self, article_id: str, changes: dict[str, Any]) -> ArticleOut | None: ...

    @abc.abstractmethod
    async def delete_article(self, article_id: str) -> bool: ...


@dataclass
class Repositories:
    procurements: ProcurementRepository
    catalog: CatalogRepository


class DataBackend(abc.ABC):
    """A data-access strategy selected once, at application construction."""

    name: str

    async def startup(self) -> None:
        """Acquire long-lived resources (HTTP client, engine)."""

    async def shutdown(self) -> None:
        """Release whatever ``startup`` acquired."""

    @abc.abstractmethod
    def session(self) -> AbstractAsyncContextManager[Repositories]:
        """Async context manager yielding the repositories for one unit of work."""


@asynccontextmanager
async def shared_unit(repos: Repositories) -> AsyncIterator[Repositories]:
    yield repos
