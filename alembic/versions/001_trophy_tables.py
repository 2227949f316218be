"""Trophy engine tables.

Creates participants, daily_results, trophies and trophy_awards. The award
table carries the uniqueness constraints that make award creation idempotent.

Revision ID: 001_trophy_tables
Revises:
Create Date: 2026-10-18
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_trophy_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Participants ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS participants (
            id VARCHAR(64) PRIMARY KEY,
            full_name VARCHAR(128) NOT NULL DEFAULT '',
            is_active BOOLEAN NOT NULL DEFAULT true,
            is_admin BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Daily results ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS daily_results (
            id BIGSERIAL PRIMARY KEY,
            participant_id VARCHAR(64) NOT NULL REFERENCES participants(id) ON DELETE CASCADE,
            result_date DATE NOT NULL,
            revenue NUMERIC(16, 2) NOT NULL DEFAULT 0 CHECK (revenue >= 0),
            profit NUMERIC(16, 2) NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_daily_results_participant_date UNIQUE (participant_id, result_date)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_daily_results_participant_id
        ON daily_results(participant_id)
    """)

    # --- Trophy catalog ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS trophies (
            id VARCHAR(64) PRIMARY KEY,
            name VARCHAR(128) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            icon VARCHAR(16) NOT NULL DEFAULT '',
            color VARCHAR(16) NOT NULL DEFAULT '',
            condition_type VARCHAR(32) NOT NULL,
            threshold_value NUMERIC(16, 2),
            window_days INTEGER,
            year INTEGER,
            repeatable BOOLEAN NOT NULL DEFAULT false,
            auto_award BOOLEAN NOT NULL DEFAULT true,
            sort_order INTEGER NOT NULL DEFAULT 0,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Award ledger ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS trophy_awards (
            id BIGSERIAL PRIMARY KEY,
            participant_id VARCHAR(64) NOT NULL REFERENCES participants(id) ON DELETE CASCADE,
            trophy_id VARCHAR(64) NOT NULL REFERENCES trophies(id),
            period_key VARCHAR(16) NOT NULL DEFAULT 'once',
            awarded_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            awarded_by VARCHAR(8) NOT NULL CHECK (awarded_by IN ('auto', 'manual')),
            granted_by VARCHAR(64),
            value_achieved NUMERIC(16, 2) NOT NULL DEFAULT 0,
            CONSTRAINT uq_trophy_awards_participant_trophy_period
                UNIQUE (participant_id, trophy_id, period_key)
        )
    """)
    op.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS uq_trophy_awards_trophy_month
        ON trophy_awards(trophy_id, period_key)
        WHERE period_key <> 'once'
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_trophy_awards_participant_id
        ON trophy_awards(participant_id)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_trophy_awards_awarded_at
        ON trophy_awards(awarded_at)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS trophy_awards")
    op.execute("DROP TABLE IF EXISTS trophies")
    op.execute("DROP TABLE IF EXISTS daily_results")
    op.execute("DROP TABLE IF EXISTS participants")
