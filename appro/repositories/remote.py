"""JSON-Server backend — procurement data served by a REST collaborator over HTTP.

Resources: ``/articles``, ``/fournisseurs``, ``/approvisionnements``.
Equality filters are query parameters (``?reference=...``), substring search
uses ``<field>_like``. Payloads use the French wire names (schema aliases).
"""

from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager
from typing import Any, TypeVar

import httpx
import pydantic
from pydantic import BaseModel
from pydantic_core import to_jsonable_python

from appro.core.exceptions import ConflictError, TransportError
from appro.repositories.base import (
    CatalogRepository,
    DataBackend,
    ProcurementRepository,
    Repositories,
    shared_unit,
)
from appro.schemas.catalog import ArticleOut, SupplierOut
from appro.schemas.procurement import ProcurementOut

logger = logging.getLogger(__name__)

_RECORDS = "approvisionnements"
_SUPPLIERS = "fournisseurs"
_ARTICLES = "articles"


def _to_wire(model_cls: type[BaseModel], values: dict[str, Any]) -> dict[str, Any]:
    """Map python-named values to the JSON body JSON-Server stores (aliases, JSON types)."""
    aliases = {
        name: field.alias or name for name, field in model_cls.model_fields.items()
    }
    return {
        aliases.get(name, name): to_jsonable_python(value, by_alias=True)
        for name, value in values.items()
    }


ModelT = TypeVar("ModelT", bound=BaseModel)


def _parse(model_cls: type[ModelT], raw: Any, resource: str) -> ModelT:
    """Validate one upstream row; a row the schema rejects is an upstream failure."""
    try:
        return model_cls.model_validate(raw)
    except pydantic.ValidationError as exc:
        row_id = raw.get("id") if isinstance(raw, dict) else None
        logger.error("JSON-Server returned an invalid %s record (id=%s): %s", resource, row_id, exc)
        raise TransportError(
            f"Data server returned an invalid {resource} record (id={row_id})"
        ) from exc


class JsonServerClient:
    """Thin async wrapper over ``httpx.AsyncClient`` with error mapping.

    * connection errors / timeouts   -> TransportError
    * 404                            -> ``None`` / ``False`` (absent)
    * any other non-2xx              -> TransportError carrying the status
    """

    def __init__(self, http: httpx.AsyncClient):
        self._http = http

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response | None:
        try:
            response = await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("JSON-Server %s %s failed: %s", method, path, exc)
            raise TransportError(f"Data server unreachable ({method} {path}): {exc}") from exc

        if response.status_code == 404:
            return None
        if response.is_error:
            logger.error("JSON-Server %s %s -> %s", method, path, response.status_code)
            raise TransportError(
                f"Data server answered {response.status_code} to {method} {path}",
                upstream_status=response.status_code,
            )
        return response

    async def list(self, resource: str, params: dict[str, Any] | None = None) -> list[dict]:
        response = await self._request("GET", f"/{resource}", params=params)
        if response is None:
            raise TransportError(f"Data server has no '{resource}' resource", upstream_status=404)
        return response.json()

    async def get(self, resource: str, entity_id: str) -> dict | None:
        response = await self._request("GET", f"/{resource}/{entity_id}")
        return None if response is None else response.json()

    async def create(self, resource: str, body: dict[str, Any]) -> dict:
        response = await self._request("POST", f"/{resource}", json=body)
        if response is None:
            raise TransportError(f"Data server has no '{resource}' resource", upstream_status=404)
        return response.json()

    async def patch(self, resource: str, entity_id: str, body: dict[str, Any]) -> dict | None:
        response = await self._request("PATCH", f"/{resource}/{entity_id}", json=body)
        return None if response is None else response.json()

    async def delete(self, resource: str, entity_id: str) -> bool:
        return await self._request("DELETE", f"/{resource}/{entity_id}") is not None


class RemoteProcurementRepository(ProcurementRepository):
    def __init__(self, client: JsonServerClient):
        self._client = client

    async def list_all(self) -> list[ProcurementOut]:
        return [_parse(ProcurementOut, r, _RECORDS) for r in await self._client.list(_RECORDS)]

    async def get(self, record_id: str) -> ProcurementOut | None:
        raw = await self._client.get(_RECORDS, record_id)
        return None if raw is None else _parse(ProcurementOut, raw, _RECORDS)

    async def find_by_reference(self, reference: str) -> list[ProcurementOut]:
        rows = await self._client.list(_RECORDS, params={"reference": reference})
        return [_parse(ProcurementOut, r, _RECORDS) for r in rows]

    async def insert(self, values: dict[str, Any]) -> ProcurementOut:
        # JSON-Server enforces no uniqueness; check first (racy across clients)
        if await self.find_by_reference(values["reference"]):
            raise ConflictError(f"Reference '{values['reference']}' already exists")
        raw = await self._client.create(_RECORDS, _to_wire(ProcurementOut, values))
        return _parse(ProcurementOut, raw, _RECORDS)

    async def patch(self, record_id: str, changes: dict[str, Any]) -> ProcurementOut | None:
        new_ref = changes.get("reference")
        if new_ref is not None:
            taken = [r for r in await self.find_by_reference(new_ref) if r.id != record_id]
            if taken:
                raise ConflictError(f"Reference '{new_ref}' already exists")
        raw = await self._client.patch(_RECORDS, record_id, _to_wire(ProcurementOut, changes))
        return None if raw is None else _parse(ProcurementOut, raw, _RECORDS)

    async def delete(self, record_id: str) -> bool:
        return await self._client.delete(_RECORDS, record_id)


class RemoteCatalogRepository(CatalogRepository):
    def __init__(self, client: JsonServerClient):
        self._client = client

    async def list_suppliers(self) -> list[SupplierOut]:
        return [_parse(SupplierOut, s, _SUPPLIERS) for s in await self._client.list(_SUPPLIERS)]

    async def get_supplier(self, supplier_id: str) -> SupplierOut | None:
        raw = await self._client.get(_SUPPLIERS, supplier_id)
        return None if raw is None else _parse(SupplierOut, raw, _SUPPLIERS)

    async def create_supplier(self, values: dict[str, Any]) -> SupplierOut:
        raw = await self._client.create(_SUPPLIERS, _to_wire(SupplierOut, values))
        return _parse(SupplierOut, raw, _SUPPLIERS)

    async def update_supplier(self, supplier_id: str, changes: dict[str, Any]) -> SupplierOut | None:
        raw = await self._client.patch(_SUPPLIERS, supplier_id, _to_wire(SupplierOut, changes))
        return None if raw is None else _parse(SupplierOut, raw, _SUPPLIERS)

    async def delete_supplier(self, supplier_id: str) -> bool:
        return await self._client.delete(_SUPPLIERS, supplier_id)

    async def list_articles(self, search: str | None = None) -> list[ArticleOut]:
        params = {"nom_like": search} if search else None
        return [_parse(ArticleOut, a, _ARTICLES) for a in await self._client.list(_ARTICLES, params)]

    async def get_article(self, article_id: str) -> ArticleOut | None:
        raw = await self._client.get(_ARTICLES, article_id)
        return None if raw is None else _parse(ArticleOut, raw, _ARTICLES)

    async def create_article(self, values: dict[str, Any]) -> ArticleOut:
        raw = await self._client.create(_ARTICLES, _to_wire(ArticleOut, values))
        return _parse(ArticleOut, raw, _ARTICLES)

    async def update_article(self, article_id: str, changes: dict[str, Any]) -> ArticleOut | None:
        raw = await self._client.patch(_ARTICLES, article_id, _to_wire(ArticleOut, changes))
        return None if raw is None else _parse(ArticleOut, raw, _ARTICLES)

    async def delete_article(self, article_id: str) -> bool:
        return await self._client.delete(_ARTICLES, article_id)


class RemoteBackend(DataBackend):
    """One shared ``httpx.AsyncClient`` opened at startup, closed at shutdown."""

    name = "remote"

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport
        self._http: httpx.AsyncClient | None = None
        self._repos: Repositories | None = None

    async def startup(self) -> None:
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers={"Content-Type": "application/json"},
            transport=self._transport,
        )
        client = JsonServerClient(self._http)
        self._repos = Repositories(
            procurements=RemoteProcurementRepository(client),
            catalog=RemoteCatalogRepository(client),
        )
        logger.info("Remote backend ready at %s", self._base_url)

    async def shutdown(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None
            self._repos = None

    def session(self) -> AbstractAsyncContextManager[Repositories]:
        if self._repos is None:
            raise RuntimeError("RemoteBackend.startup() has not been awaited")
        return shared_unit(self._repos)
