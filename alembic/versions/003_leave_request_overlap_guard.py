"""003 – Reject overlapping active leave requests at the database.

The overlap check in the workflow reads before it writes, so two
concurrent submissions can both pass it. This exclusion constraint makes
the second insert fail instead.

Revision ID: 003_leave_request_overlap_guard
Revises: 002_leave_policy_governance
Create Date: 2026-10-18 11:00:00.000000+00:00
"""

from alembic import op

# Revision identifiers
revision = "003_leave_request_overlap_guard"
down_revision = "002_leave_policy_governance"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
    op.execute("""
        ALTER TABLE leave_requests
            ADD CONSTRAINT ex_leave_requests_active_overlap
            EXCLUDE USING gist (
                user_id WITH =,
                daterange(start_date, end_date, '[]') WITH &&
            )
            WHERE (status IN ('pending', 'pending_evidence', 'approved'))
    """)


def downgrade() -> None:
    op.execute(
        "ALTER TABLE leave_requests DROP CONSTRAINT IF EXISTS ex_leave_requests_active_overlap"
    )
