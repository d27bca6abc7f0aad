"""Procurement record Pydantic schemas (request DTOs and response models)."""


from datetime import datetime

from pydantic import Field

from appro.domain.procurement import ProcurementStatus
from appro.schemas.common import CamelModel

class LineItem(CamelModel):
    """A committed line: ``amount == quantity * unit_price``."""

    article_id: str = Field(alias="articleId")
    quantity: float = Field(alias="quantite")
    unit_price: float = Field(alias="prixUnitaire")
    amount: float = Field(default=0, alias="montant")

    @classmethod
    def build(cls, article_id: str, quantity: float, unit_price: float) -> "LineItem":
        return cls(
            article_id=article_id,
            quantity=quantity,
            unit_price=unit_price,
            amount=quantity * unit_price,
        )

    def recompute_amount(self) -> None:
        self.amount = self.quantity * self.unit_price

class LineItemIn(CamelModel):
    """A submitted line. Missing unit price defaults to the article's reference price;
    any client-side ``montant`` is ignored and recomputed."""

    article_id: str = Field(default="", alias="articleId")
    quantity: float = Field(default=0, alias="quantite")
    unit_price: float | None = Field(default=None, alias="prixUnitaire")

class ProcurementCreate(CamelModel):
    # Field checks run in the service so that every error is reported at once
    reference: str | None = None
    date: str | None = None
    supplier_id: str | None = Field(default=None, alias="fournisseurId")
    notes: str | None = Field(default=None, alias="observations")
    lines: list[LineItemIn] = Field(default_factory=list, alias="articles")
    status: ProcurementStatus = Field(default=ProcurementStatus.PENDING, alias="statut")

class ProcurementUpdate(CamelModel):
    reference: str | None = None
    date: str | None = None
    supplier_id: str | None = Field(default=None, alias="fournisseurId")
    notes: str | None = Field(default=None, alias="observations")
    lines: list[LineItemIn] | None = Field(default=None, alias="articles")
    status: ProcurementStatus | None = Field(default=None, alias="statut")

class ProcurementOut(CamelModel):
    id: str | None = None
    reference: str
    date: str
    supplier_id: str = Field(alias="fournisseurId")
    supplier_name: str | None = Field(default=None, alias="fournisseur")
    notes: str | None = Field(default=None, alias="observations")
    lines: list[LineItem] = Field(default_factory=list, alias="articles")
    total_amount: float = Field(default=0, alias="montantTotal")
    status: ProcurementStatus = Field(default=ProcurementStatus.PENDING, alias="statut")
    created_at: datetime | None = None
    updated_at: datetime | None = None

class StatusChange(CamelModel):
    status: ProcurementStatus = Field(alias="statut")

class ProcurementFilters(CamelModel):
    """Optional list filters; ``None`` and empty strings match everything."""

    search_term: str | None = None
    supplier_id: str | None = None
    status: ProcurementStatus | None = None
    date_from: str | None = None
    date_to: str | None = None

    def merge(self, other: "ProcurementFilters") -> "ProcurementFilters":
        """Combine two filter sets; fields set on *other* win."""
        return self.model_copy(update=other.model_dump(exclude_none=True))

class DraftPreview(CamelModel):
    lines: list[LineItem] = Field(alias="articles")
    total_amount: float = Field(alias="montantTotal")

class MainSupplier(CamelModel):
    name: str = Field(alias="nom")
    amount: float = Field(alias="montant")
    percentage: float = Field(alias="pourcentage")

class ProcurementStats(CamelModel):
    total_amount: float = Field(alias="totalMontant")
    count: int = Field(alias="nombreApprovisionnements")
    pending: int = Field(alias="enAttente")
    received: int = Field(alias="recus")
    cancelled: int = Field(alias="annules")
    main_supplier: MainSupplier = Field(alias="fournisseurPrincipal")

class NextReference(CamelModel):
    reference: str

class ReferenceCheck(CamelModel):
    reference: str
    exists: bool

class DraftLines(CamelModel):
    lines: list[LineItemIn] = Field(default_factory=list, alias="articles")
