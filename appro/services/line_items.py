"""Line-item aggregation for one procurement record being drafted.

The aggregator keeps the committed lines plus a scratch "current line". Every
edit of the scratch line recomputes its amount; committing merges into an
existing line for the same article, so no two lines ever share an article.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from appro.core.exceptions import ValidationError
from appro.schemas.catalog import ArticleOut
from appro.schemas.procurement import LineItem

logger = logging.getLogger(__name__)

UNKNOWN_ARTICLE = "Article inconnu"


@dataclass
class CurrentLine:
    article_id: str = ""
    quantity: float = 0
    unit_price: float = 0
    amount: float = 0


class LineItemAggregator:
    def __init__(self, articles: Mapping[str, ArticleOut] | Iterable[ArticleOut] = ()):
        if isinstance(articles, Mapping):
            self._articles = dict(articles)
        else:
            self._articles = {a.id: a for a in articles}
        self.lines: list[LineItem] = []
        self.current = CurrentLine()

    # ------------------------------------------------------------------
    # Scratch line
    # ------------------------------------------------------------------

    def set_current_line(
        self, article_id: str, quantity: float = 0, unit_price: float | None = None
    ) -> CurrentLine:
        self.current = CurrentLine(article_id=article_id, quantity=quantity)
        if unit_price is not None:
            self.current.unit_price = unit_price
        else:
            self.current.unit_price = self._reference_price(article_id)
        self.recompute_amount()
        return self.current

    def select_article(self, article_id: str) -> None:
        """Switch the scratch line to *article_id*, pre-filling its reference price."""
        self.current.article_id = article_id
        article = self._articles.get(article_id)
        if article is not None and article.reference_price:
            self.current.unit_price = article.reference_price
        self.recompute_amount()

    def set_quantity(self, quantity: float) -> None:
        self.current.quantity = quantity
        self.recompute_amount()

    def set_unit_price(self, unit_price: float) -> None:
        self.current.unit_price = unit_price
        self.recompute_amount()

    def recompute_amount(self) -> float:
        self.current.amount = self.current.quantity * self.current.unit_price
        return self.current.amount

    def _reference_price(self, article_id: str) -> float:
        article = self._articles.get(article_id)
        if article is None or article.reference_price is None:
            return 0
        return article.reference_price

    # ------------------------------------------------------------------
    # Committed lines
    # ------------------------------------------------------------------

    def commit_current_line(self) -> LineItem:
        """Validate the scratch line and add it (or merge it) into ``lines``."""
        errors: dict[str, str] = {}
        if not self.current.article_id:
            errors["articleId"] = "An article is required"
        if self.current.quantity <= 0:
            errors["quantite"] = "Quantity must be greater than 0"
        if self.current.unit_price < 0:
            errors["prixUnitaire"] = "Unit price cannot be negative"
        if errors:
            raise ValidationError.from_fields(errors)

        self.recompute_amount()
        existing = self.find_line(self.current.article_id)
        if existing is not None:
            # The line keeps its original unit price; only quantities add up
            existing.quantity += self.current.quantity
            existing.recompute_amount()
            line = existing
            logger.debug("Merged %s into existing line (qty=%s)", line.article_id, line.quantity)
        else:
            line = LineItem.build(
                self.current.article_id, self.current.quantity, self.current.unit_price
            )
            self.lines.append(line)

        self.current = CurrentLine()
        return line

    def add_line(
        self, article_id: str, quantity: float, unit_price: float | None = None
    ) -> LineItem:
        self.set_current_line(article_id, quantity, unit_price)
        return self.commit_current_line()

    def remove_line(self, index: int) -> LineItem:
        if not 0 <= index < len(self.lines):
            raise IndexError(f"No line at index {index} (have {len(self.lines)})")
        return self.lines.pop(index)

    def find_line(self, article_id: str) -> LineItem | None:
        for line in self.lines:
            if line.article_id == article_id:
                return line
        return None

    def total(self) -> float:
        return sum(line.amount for line in self.lines)

    def article_name(self, article_id: str) -> str:
        article = self._articles.get(article_id)
        return article.name if article else UNKNOWN_ARTICLE

    def has_article(self, article_id: str) -> bool:
        return article_id in self._articles
