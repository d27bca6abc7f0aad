"""Catalog article CRUD router."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from appro.core.response import DataResponse
from appro.repositories.base import Repositories
from appro.repositories.factory import get_repositories
from appro.schemas.catalog import ArticleCreate, ArticleOut, ArticleUpdate
from appro.services.catalog import CatalogService

router = APIRouter(prefix="/articles", tags=["Articles"])


@router.get("", response_model=DataResponse[list[ArticleOut]])
async def list_articles(
    search: Optional[str] = Query(default=None, description="Substring of the article name"),
    repos: Repositories = Depends(get_repositories),
):
    return {"data": await CatalogService(repos).list_articles(search)}


@router.post("", response_model=DataResponse[ArticleOut], status_code=status.HTTP_201_CREATED)
async def create_article(
    body: ArticleCreate,
    repos: Repositories = Depends(get_repositories),
):
    return {"data": await CatalogService(repos).create_article(body)}


@router.get("/{article_id}", response_model=DataResponse[ArticleOut])
async def get_article(
    article_id: str,
    repos: Repositories = Depends(get_repositories),
):
    return {"data": await CatalogService(repos).get_article(article_id)}


@router.patch("/{article_id}", response_model=DataResponse[ArticleOut])
async def update_article(
    article_id: str,
    body: ArticleUpdate,
    repos: Repositories = Depends(get_repositories),
):
    return {"data": await CatalogService(repos).update_article(article_id, body)}


@router.delete("/{article_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_article(
    article_id: str,
    repos: Repositories = Depends(get_repositories),
):
    await CatalogService(repos).delete_article(article_id)
