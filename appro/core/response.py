"""Standardized JSON response envelope helpers."""


from collections.abc import Sequence
from typing import Generic, TypeVar

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from appro.core.pagination import PageMeta, Paginator

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """Single-item response envelope: `{ data: {...} }`"""

    data: T

    model_config = {
        "populate_by_name": True,
        "alias_generator": to_camel,
    }


class ListResponse(BaseModel, Generic[T]):
    """Paginated list response envelope: `{ data: [...], meta: {...} }`"""

    data: list[T]
    meta: PageMeta

    model_config = {
        "populate_by_name": True,
        "alias_generator": to_camel,
    }


def paginated(items: Sequence, paginator: Paginator, max_visible: int = 5) -> dict:
    """Slice *items* to the paginator's window and build a ListResponse dict."""
    return {
        "data": paginator.slice(items),
        "meta": PageMeta.from_paginator(paginator, max_visible),
    }
