"""002 – Add governance columns to leave_policies.

Adds eligibility_conditions, required_documents, frequency_rules and
override_allowed. The policy loader still reads databases that have not
run this migration.

Uses ADD COLUMN IF NOT EXISTS; columns already added by hand are left
as they are.

Revision ID: 002_leave_policy_governance
Revises: 001_leave_workflow_schema
Create Date: 2026-10-18 10:30:00.000000+00:00
"""

from alembic import op

# Revision identifiers
revision = "002_leave_policy_governance"
down_revision = "001_leave_workflow_schema"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("""
        ALTER TABLE leave_policies
            ADD COLUMN IF NOT EXISTS eligibility_conditions JSONB DEFAULT '{}'::jsonb,
            ADD COLUMN IF NOT EXISTS required_documents     JSONB DEFAULT '[]'::jsonb,
            ADD COLUMN IF NOT EXISTS frequency_rules        JSONB DEFAULT '{}'::jsonb,
            ADD COLUMN IF NOT EXISTS override_allowed       BOOLEAN DEFAULT TRUE
    """)


def downgrade() -> None:
    op.execute("""
        ALTER TABLE leave_policies
            DROP COLUMN IF EXISTS override_allowed,
            DROP COLUMN IF EXISTS frequency_rules,
            DROP COLUMN IF EXISTS required_documents,
            DROP COLUMN IF EXISTS eligibility_conditions
    """)
