"""Supplier and article Pydantic schemas (request DTOs and response models)."""

from pydantic import Field

from appro.schemas.common import CamelModel

class SupplierCreate(CamelModel):
    name: str = Field(alias="nom", min_length=1)
    contact: str | None = None
    email: str | None = None
    address: str | None = Field(default=None, alias="adresse")

class SupplierUpdate(CamelModel):
    name: str | None = Field(default=None, alias="nom", min_length=1)
    contact: str | None = None
    email: str | None = None
    address: str | None = Field(default=None, alias="adresse")

class SupplierOut(CamelModel):
    id: str
    name: str = Field(alias="nom")
    contact: str | None = None
    email: str | None = None
    address: str | None = Field(default=None, alias="adresse")

class ArticleCreate(CamelModel):
    name: str = Field(alias="nom", min_length=1)
    description: str | None = None
    reference_price: float | None = Field(default=None, alias="prixReference", ge=0)
    unit: str | None = Field(default=None, alias="unite")
    category: str | None = Field(default=None, alias="categorie")

class ArticleUpdate(CamelModel):
    name: str | None = Field(default=None, alias="nom", min_length=1)
    description: str | None = None
    reference_price: float | None = Field(default=None, alias="prixReference", ge=0)
    unit: str | None = Field(default=None, alias="unite")
    category: str | None = Field(default=None, alias="categorie")

class ArticleOut(CamelModel):
    id: str
    name: str = Field(alias="nom")
    description: str | None = None
    reference_price: float | None = Field(default=None, alias="prixReference")
    unit: str | None = Field(default=None, alias="unite")
    category: str | None = Field(default=None, alias="categorie")
