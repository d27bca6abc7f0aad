"""Procurement ("approvisionnements") router — list/filter/paginate, CRUD, status, export."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from appro.core.config import settings
from appro.core.pagination import PaginationParams, Paginator
from appro.core.response import DataResponse, ListResponse, paginated
from appro.domain.procurement import ProcurementStatus
from appro.repositories.base import Repositories
from appro.repositories.factory import get_repositories
from appro.schemas.procurement import (
    DraftLines,
    DraftPreview,
    NextReference,
    ProcurementCreate,
    ProcurementFilters,
    ProcurementOut,
    ProcurementStats,
    ProcurementUpdate,
    ReferenceCheck,
    StatusChange,
)
from appro.services.procurement import ProcurementService
from appro.services.query import DATE_PATTERN

router = APIRouter(prefix="/approvisionnements", tags=["Approvisionnements"])


# ------------------------------------------------------------------
# Helpers: service construction and shared query parameters
# ------------------------------------------------------------------

def _svc(repos: Repositories) -> ProcurementService:
    return ProcurementService(
        repos,
        reference_prefix=settings.reference_prefix,
        reference_retry_limit=settings.reference_retry_limit,
    )


def _filters(
    search_term: Optional[str] = Query(
        default=None, alias="searchTerm", description="Substring of reference or supplier name",
    ),
    supplier_id: Optional[str] = Query(
        default=None, alias="supplierId", description="Supplier id or name",
    ),
    filter_status: Optional[ProcurementStatus] = Query(default=None, alias="status"),
    date_from: Optional[str] = Query(default=None, alias="dateFrom", pattern=DATE_PATTERN),
    date_to: Optional[str] = Query(default=None, alias="dateTo", pattern=DATE_PATTERN),
) -> ProcurementFilters:
    return ProcurementFilters(
        search_term=search_term,
        supplier_id=supplier_id,
        status=filter_status,
        date_from=date_from,
        date_to=date_to,
    )


# ------------------------------------------------------------------
# Collection endpoints
# ------------------------------------------------------------------

@router.get("", response_model=ListResponse[ProcurementOut])
async def list_procurements(
    filters: ProcurementFilters = Depends(_filters),
    pagination: PaginationParams = Depends(),
    repos: Repositories = Depends(get_repositories),
):
    """List procurement records, filtered then paginated. Out-of-range pages are clamped."""
    records = await _svc(repos).list_procurements(filters, pagination.sort, pagination.order)
    paginator = Paginator(len(records), pagination.limit, pagination.page)
    return paginated(records, paginator, settings.max_visible_pages)


@router.get("/export", response_class=Response)
async def export_procurements(
    filters: ProcurementFilters = Depends(_filters),
    sort: Optional[str] = Query(default=None),
    order: str = Query(default="asc", pattern="^(asc|desc)$"),
    repos: Repositories = Depends(get_repositories),
):
    """CSV of every record matching the filters, in display order."""
    content = await _svc(repos).export(filters, sort, order)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="approvisionnements.csv"'},
    )


@router.get("/stats", response_model=DataResponse[ProcurementStats])
async def procurement_stats(
    date_from: Optional[str] = Query(default=None, alias="dateFrom", pattern=DATE_PATTERN),
    date_to: Optional[str] = Query(default=None, alias="dateTo", pattern=DATE_PATTERN),
    repos: Repositories = Depends(get_repositories),
):
    stats = await _svc(repos).statistics(date_from, date_to)
    return {"data": stats}


@router.get("/next-reference", response_model=DataResponse[NextReference])
async def next_reference(repos: Repositories = Depends(get_repositories)):
    """Next free reference for the current month (not reserved)."""
    return {"data": NextReference(reference=await _svc(repos).next_reference())}


@router.get("/reference-exists", response_model=DataResponse[ReferenceCheck])
async def reference_exists(
    reference: str = Query(..., min_length=1),
    repos: Repositories = Depends(get_repositories),
):
    exists = await _svc(repos).reference_exists(reference)
    return {"data": ReferenceCheck(reference=reference, exists=exists)}


@router.post("/draft", response_model=DataResponse[DraftPreview])
async def preview_draft(
    body: DraftLines,
    repos: Repositories = Depends(get_repositories),
):
    """Normalise draft lines (merge duplicates, default prices) and total them. Nothing is saved."""
    return {"data": await _svc(repos).preview_draft(body.lines)}


@router.post("", response_model=DataResponse[ProcurementOut], status_code=status.HTTP_201_CREATED)
async def create_procurement(
    body: ProcurementCreate,
    repos: Repositories = Depends(get_repositories),
):
    """Create a procurement record. A reference is generated when none is given."""
    record = await _svc(repos).create_procurement(body)
    return {"data": record}


@router.delete("/by-reference/{reference}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_by_reference(
    reference: str,
    repos: Repositories = Depends(get_repositories),
):
    """Fallback removal for records that carry no server-assigned id."""
    await _svc(repos).delete_by_reference(reference)


# ------------------------------------------------------------------
# Item endpoints
# ------------------------------------------------------------------

@router.get("/{record_id}", response_model=DataResponse[ProcurementOut])
async def get_procurement(
    record_id: str,
    repos: Repositories = Depends(get_repositories),
):
    return {"data": await _svc(repos).get_procurement(record_id)}


@router.patch("/{record_id}", response_model=DataResponse[ProcurementOut])
async def update_procurement(
    record_id: str,
    body: ProcurementUpdate,
    repos: Repositories = Depends(get_repositories),
):
    return {"data": await _svc(repos).update_procurement(record_id, body)}


@router.patch("/{record_id}/status", response_model=DataResponse[ProcurementOut])
async def change_status(
    record_id: str,
    body: StatusChange,
    repos: Repositories = Depends(get_repositories),
):
    return {"data": await _svc(repos).change_status(record_id, body.status)}


@router.post("/{record_id}/receive", response_model=DataResponse[ProcurementOut])
async def confirm_receipt(
    record_id: str,
    repos: Repositories = Depends(get_repositories),
):
    """Mark the record as received ("Reçu")."""
    return {"data": await _svc(repos).confirm_receipt(record_id)}


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_procurement(
    record_id: str,
    repos: Repositories = Depends(get_repositories),
):
    await _svc(repos).delete_procurement(record_id)
