"""Default trophy catalog, inserted on startup when missing."""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from podium.database import dialect_insert
from podium.db.models import TrophyDefinition

logger = logging.getLogger(__name__)

TROPHY_SEED_DATA: list[dict] = [
    # Revenue milestones
    {
        "id": "revenue_1m",
        "name": "Premier Million",
        "description": "Reach 1,000,000 in cumulative revenue",
        "icon": "\U0001f949",
        "color": "#CD7F32",
        "condition_type": "cumulative_revenue",
        "threshold_value": Decimal("1000000"),
        "sort_order": 1,
    },
    {
        "id": "revenue_5m",
        "name": "Cap des 5 Millions",
        "description": "Reach 5,000,000 in cumulative revenue",
        "icon": "\U0001f948",
        "color": "#C0C0C0",
        "condition_type": "cumulative_revenue",
        "threshold_value": Decimal("5000000"),
        "sort_order": 2,
    },
    {
        "id": "revenue_10m",
        "name": "Club des 10 Millions",
        "description": "Reach 10,000,000 in cumulative revenue",
        "icon": "\U0001f947",
        "color": "#FFD700",
        "condition_type": "cumulative_revenue",
        "threshold_value": Decimal("10000000"),
        "sort_order": 3,
    },
    # Rolling windows
    {
        "id": "sprint_90d_revenue",
        "name": "Sprint Trimestriel",
        "description": "10,000,000 in revenue over the last 90 days",
        "icon": "⚡",
        "color": "#3B82F6",
        "condition_type": "rolling_window_revenue",
        "threshold_value": Decimal("10000000"),
        "window_days": 90,
        "sort_order": 4,
    },
    {
        "id": "sprint_90d_profit",
        "name": "Marge Trimestrielle",
        "description": "1,000,000 in profit over the last 90 days",
        "icon": "\U0001f4c8",
        "color": "#10B981",
        "condition_type": "rolling_window_profit",
        "threshold_value": Decimal("1000000"),
        "window_days": 90,
        "sort_order": 5,
    },
    # Profit
    {
        "id": "profit_1m",
        "name": "Million de Profit",
        "description": "Reach 1,000,000 in cumulative profit",
        "icon": "\U0001f48e",
        "color": "#8B5CF6",
        "condition_type": "cumulative_profit",
        "threshold_value": Decimal("1000000"),
        "sort_order": 6,
    },
    {
        "id": "annual_2025",
        "name": "Objectif 2025",
        "description": "2,000,000 in profit over calendar year 2025",
        "icon": "\U0001f31f",
        "color": "#F59E0B",
        "condition_type": "calendar_year_profit",
        "threshold_value": Decimal("2000000"),
        "year": 2025,
        "auto_award": False,
        "sort_order": 7,
    },
    # Repeatable
    {
        "id": "monthly_best",
        "name": "Meilleur du Mois",
        "description": "Highest profit of all participants for the month",
        "icon": "\U0001f451",
        "color": "#EF4444",
        "condition_type": "monthly_best_profit",
        "repeatable": True,
        "sort_order": 8,
    },
]


async def seed_trophies(db: AsyncSession) -> int:
    """Insert default trophies that do not exist yet. Returns rows inserted.

    Existing rows are left alone so admin edits to the catalog survive restarts.
    """
    insert = dialect_insert(db)
    seeded = 0
    for trophy_data in TROPHY_SEED_DATA:
        stmt = insert(TrophyDefinition).values(**trophy_data)
        stmt = stmt.on_conflict_do_nothing(index_elements=["id"])
        result = await db.execute(stmt)
        seeded += max(result.rowcount or 0, 0)

    await db.commit()
    logger.info("Seeded %d trophy definitions", seeded)
    return seeded
