"""Catalog service — suppliers and articles referenced by procurement records."""


import logging

from appro.core.exceptions import NotFoundError
from appro.repositories.base import Repositories
from appro.schemas.catalog import (
    ArticleCreate,
    ArticleOut,
    ArticleUpdate,
    SupplierCreate,
    SupplierOut,
    SupplierUpdate,
)

logger = logging.getLogger(__name__)

class CatalogService:
    def __init__(self, repos: Repositories):
        self._repo = repos.catalog

    # Suppliers ---------------------------------------------------------

    async def list_suppliers(self) -> list[SupplierOut]:
        return await self._repo.list_suppliers()

    async def get_supplier(self, supplier_id: str) -> SupplierOut:
        supplier = await self._repo.get_supplier(supplier_id)
        if not supplier:
            raise NotFoundError("Supplier", supplier_id)
        return supplier

    async def create_supplier(self, data: SupplierCreate) -> SupplierOut:
        supplier = await self._repo.create_supplier(data.model_dump(exclude_none=True))
        logger.info("Created supplier %s (%s)", supplier.name, supplier.id)
        return supplier

    async def update_supplier(self, supplier_id: str, data: SupplierUpdate) -> SupplierOut:
        updated = await self._repo.update_supplier(
            supplier_id, data.model_dump(exclude_none=True, exclude_unset=True)
        )
        if not updated:
            raise NotFoundError("Supplier", supplier_id)
        return updated

    async def delete_supplier(self, supplier_id: str) -> None:
        deleted = await self._repo.delete_supplier(supplier_id)
        if not deleted:
            raise NotFoundError("Supplier", supplier_id)

    # Articles ----------------------------------------------------------

    async def list_articles(self, search: str | None = None) -> list[ArticleOut]:
        return await self._repo.list_articles(search)

    async def get_article(self, article_id: str) -> ArticleOut:
        article = await self._repo.get_article(article_id)
        if not article:
            raise NotFoundError("Article", article_id)
        return article

    async def create_article(self, data: ArticleCreate) -> ArticleOut:
        article = await self._repo.create_article(data.model_dump(exclude_none=True))
        logger.info("Created article %s (%s)", article.name, article.id)
        return article

    async def update_article(self, article_id: str, data: ArticleUpdate) -> ArticleOut:
        updated = await self._repo.update_article(
            article_id, data.model_dump(exclude_none=True, exclude_unset=True)
        )
        if not updated:
            raise NotFoundError("Article", article_id)
        return updated

    async def delete_article(self, article_id: str) -> None:
        deleted = await self._repo.delete_article(article_id)
        if not deleted:
            raise NotFoundError("Article", article_id)
