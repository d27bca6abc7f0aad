"""SQLAlchemy ORM models for procurement records and their line items."""

from __future__ import annotations

import enum
import uuid
from typing import List, Optional

from sqlalchemy import ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from appro.db.base import Base
from appro.domain.mixins import TimestampMixin


class ProcurementStatus(str, enum.Enum):
    PENDING = "En attente"
    RECEIVED = "Reçu"
    CANCELLED = "Annulé"


class ProcurementRecord(Base, TimestampMixin):
    """One procurement order ("approvisionnement")."""

    __tablename__ = "approvisionnements"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    # APP-YYYYMM-NNN
    reference: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    # YYYY-MM-DD kept as text so lexical and chronological order coincide
    date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)

    # Supplier referenced by plain id; the name is a snapshot taken at creation
    supplier_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    supplier_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    total_amount: Mapped[float] = mapped_column(
        Numeric(14, 2, asdecimal=False), default=0, nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), default=ProcurementStatus.PENDING.value, nullable=False, index=True
    )

    lines: Mapped[List["ProcurementLine"]] = relationship(
        back_populates="record",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="ProcurementLine.position",
    )


class ProcurementLine(Base):
    """One article line of a procurement record (at most one per article)."""

    __tablename__ = "approvisionnement_lignes"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    record_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("approvisionnements.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    article_id: Mapped[str] = mapped_column(String(36), nullable=False)
    quantity: Mapped[float] = mapped_column(Numeric(14, 3, asdecimal=False), nullable=False)
    unit_price: Mapped[float] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=False)
    amount: Mapped[float] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=False)

    record: Mapped["ProcurementRecord"] = relationship(back_populates="lines")
