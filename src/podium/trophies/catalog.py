"""Trophy catalog: validated, deterministically ordered trophy definitions."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from podium.db.models import TrophyDefinition
from podium.trophies.exceptions import ConfigurationError, UnknownTrophyError, UpstreamFetchError
from podium.trophies.types import (
    CONDITION_TYPES,
    MONTHLY_BEST_PROFIT,
    ROLLING_TYPES,
    THRESHOLD_TYPES,
    Trophy,
)

logger = logging.getLogger(__name__)


def _field(row: Any, name: str, default: Any = None) -> Any:
    if isinstance(row, dict):
        return row.get(name, default)
    return getattr(row, name, default)


def build_trophy(row: Any) -> Trophy:
    """Validate one definition (ORM row or dict). Raises ConfigurationError."""
    trophy_id = str(_field(row, "id", "") or "")
    if not trophy_id:
        raise ConfigurationError("<missing id>", "definition has no id")

    condition_type = _field(row, "condition_type")
    if condition_type not in CONDITION_TYPES:
        raise ConfigurationError(trophy_id, f"unknown condition_type {condition_type!r}")

    threshold: Decimal | None = None
    if condition_type in THRESHOLD_TYPES:
        raw = _field(row, "threshold_value")
        if raw is None:
            raise ConfigurationError(trophy_id, "threshold_value is required")
        try:
            threshold = Decimal(str(raw))
        except InvalidOperation as e:
            raise ConfigurationError(trophy_id, f"threshold_value {raw!r} is not a number") from e
        if not threshold.is_finite() or threshold <= 0:
            raise ConfigurationError(trophy_id, f"threshold_value must be positive, got {raw!r}")

    window_days: int | None = None
    if condition_type in ROLLING_TYPES:
        window_days = _field(row, "window_days")
        if not isinstance(window_days, int) or window_days <= 0:
            raise ConfigurationError(trophy_id, f"window_days must be a positive integer, got {window_days!r}")

    repeatable = bool(_field(row, "repeatable", False))
    if repeatable != (condition_type == MONTHLY_BEST_PROFIT):
        raise ConfigurationError(
            trophy_id, "only monthly_best_profit trophies are repeatable, and they always are"
        )

    auto_award = _field(row, "auto_award", True)
    return Trophy(
        id=trophy_id,
        name=_field(row, "name") or trophy_id,
        condition_type=condition_type,
        threshold_value=threshold,
        window_days=window_days,
        year=_field(row, "year"),
        repeatable=repeatable,
        auto_award=True if auto_award is None else bool(auto_award),
        sort_order=_field(row, "sort_order") or 0,
        description=_field(row, "description") or "",
        icon=_field(row, "icon") or "",
        color=_field(row, "color") or "",
    )


def _sort_key(trophy: Trophy) -> tuple[int, Decimal, int, str]:
    # Threshold-less trophies sort after every threshold trophy
    if trophy.threshold_value is None:
        return (1, Decimal(0), trophy.sort_order, trophy.id)
    return (0, trophy.threshold_value, trophy.sort_order, trophy.id)


class TrophyCatalog:
    """Immutable set of valid trophies for one evaluation pass."""

    def __init__(self, trophies: Iterable[Trophy]) -> None:
        self._trophies = sorted(trophies, key=_sort_key)
        self._by_id = {t.id: t for t in self._trophies}

    @classmethod
    def from_rows(cls, rows: Iterable[Any]) -> TrophyCatalog:
        """Validate raw definitions; invalid ones are logged and dropped."""
        trophies = []
        for row in rows:
            try:
                trophies.append(build_trophy(row))
            except ConfigurationError as e:
                logger.error("Excluding trophy from catalog: %s", e)
        return cls(trophies)

    def all(self) -> list[Trophy]:
        return list(self._trophies)

    def auto_awardable(self) -> list[Trophy]:
        return [t for t in self._trophies if t.auto_award]

    def get(self, trophy_id: str) -> Trophy:
        try:
            return self._by_id[trophy_id]
        except KeyError:
            raise UnknownTrophyError(trophy_id) from None

    def __contains__(self, trophy_id: object) -> bool:
        return trophy_id in self._by_id

    def __len__(self) -> int:
        return len(self._trophies)


class TrophyCatalogStore:
    """Reads trophy definitions from the ``trophies`` table."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def fetch_definitions(self) -> list[TrophyDefinition]:
        try:
            result = await self.db.execute(
                select(TrophyDefinition).where(TrophyDefinition.is_active.is_(True))
            )
        except SQLAlchemyError as e:
            raise UpstreamFetchError(f"Trophy catalog unavailable: {e}") from e
        return list(result.scalars())


async def load_catalog(db: AsyncSession) -> TrophyCatalog:
    """Fetch and validate the catalog once for an evaluation pass."""
    rows = await TrophyCatalogStore(db).fetch_definitions()
    catalog = TrophyCatalog.from_rows(rows)
    logger.debug("Loaded %d/%d trophy definitions", len(catalog), len(rows))
    return catalog
