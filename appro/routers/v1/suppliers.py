"""Supplier ("fournisseurs") CRUD router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from appro.core.response import DataResponse
from appro.repositories.base import Repositories
from appro.repositories.factory import get_repositories
from appro.schemas.catalog import SupplierCreate, SupplierOut, SupplierUpdate
from appro.services.catalog import CatalogService

router = APIRouter(prefix="/fournisseurs", tags=["Fournisseurs"])


@router.get("", response_model=DataResponse[list[SupplierOut]])
async def list_suppliers(repos: Repositories = Depends(get_repositories)):
    return {"data": await CatalogService(repos).list_suppliers()}


@router.post("", response_model=DataResponse[SupplierOut], status_code=status.HTTP_201_CREATED)
async def create_supplier(
    body: SupplierCreate,
    repos: Repositories = Depends(get_repositories),
):
    return {"data": await CatalogService(repos).create_supplier(body)}


@router.get("/{supplier_id}", response_model=DataResponse[SupplierOut])
async def get_supplier(
    supplier_id: str,
    repos: Repositories = Depends(get_repositories),
):
    return {"data": await CatalogService(repos).get_supplier(supplier_id)}


@router.patch("/{supplier_id}", response_model=DataResponse[SupplierOut])
async def update_supplier(
    supplier_id: str,
    body: SupplierUpdate,
    repos: Repositories = Depends(get_repositories),
):
    return {"data": await CatalogService(repos).update_supplier(supplier_id, body)}


@router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_supplier(
    supplier_id: str,
    repos: Repositories = Depends(get_repositories),
):
    await CatalogService(repos).delete_supplier(supplier_id)
