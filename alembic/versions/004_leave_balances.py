"""004 – Yearly leave balances.

Revision ID: 004_leave_balances
Revises: 003_leave_request_overlap_guard
Create Date: 2026-10-18 15:00:00.000000+00:00
"""

from alembic import op

# Revision identifiers
revision = "004_leave_balances"
down_revision = "003_leave_request_overlap_guard"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS leave_balances (
            id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id UUID NOT NULL REFERENCES profiles(id),
            leave_type_id UUID NOT NULL REFERENCES leave_types(id),
            year INTEGER NOT NULL,
            allocated_days INTEGER NOT NULL DEFAULT 0,
            used_days INTEGER NOT NULL DEFAULT 0 CHECK (used_days >= 0),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_leave_balance UNIQUE (user_id, leave_type_id, year)
        )
    """)
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_leave_balances_user_year "
        "ON leave_balances (user_id, year)"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS leave_balances")
