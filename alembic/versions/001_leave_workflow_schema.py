"""001 – Leave workflow base schema: profiles, leave, attendance, notifications.

Creates the legacy ``leave_policies`` shape (no governance columns); 002
adds those.

Revision ID: 001_leave_workflow_schema
Revises:
Create Date: 2026-10-18 10:00:00.000000+00:00
"""

from alembic import op

# Revision identifiers
revision = "001_leave_workflow_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Extensions ────────────────────────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── 1. profiles ───────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE profiles (
            id                  UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            full_name           VARCHAR(200),
            company_email       VARCHAR(255),
            additional_email    VARCHAR(255),
            department_id       UUID,
            is_department_lead  BOOLEAN DEFAULT FALSE,
            role                VARCHAR(30) DEFAULT 'employee',
            location            VARCHAR(100),
            gender              VARCHAR(20),
            employment_date     DATE,
            employment_type     VARCHAR(30),
            marital_status      VARCHAR(20),
            has_children        BOOLEAN,
            pregnancy_status    VARCHAR(20),
            created_at          TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX idx_profiles_department ON profiles(department_id)")
    op.execute("CREATE INDEX idx_profiles_email      ON profiles(LOWER(company_email))")

    # ── 2. employee_life_events ───────────────────────────────────────────
    op.execute("""
        CREATE TABLE employee_life_events (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id UUID NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            event_type  VARCHAR(30) NOT NULL,
            event_date  DATE NOT NULL,
            notes       TEXT,
            created_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute(
        "CREATE INDEX idx_life_events_employee ON employee_life_events(employee_id, event_type)"
    )

    # ── 3. leave_types ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_types (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            code        VARCHAR(20) UNIQUE,
            name        VARCHAR(100) NOT NULL,
            description TEXT,
            max_days    INTEGER DEFAULT 0,
            is_active   BOOLEAN DEFAULT TRUE,
            created_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 4. leave_policies (legacy columns) ────────────────────────────────
    op.execute("""
        CREATE TABLE leave_policies (
            id                UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            leave_type_id     UUID NOT NULL UNIQUE REFERENCES leave_types(id) ON DELETE CASCADE,
            annual_days       INTEGER DEFAULT 0,
            eligibility       VARCHAR(20) DEFAULT 'all',
            min_tenure_months INTEGER DEFAULT 0,
            notice_days       INTEGER DEFAULT 0,
            accrual_mode      VARCHAR(20) DEFAULT 'calendar_days',
            is_active         BOOLEAN DEFAULT TRUE,
            updated_at        TIMESTAMPTZ DEFAULT NOW(),
            CHECK (eligibility IN ('all', 'female_only', 'male_only')),
            CHECK (accrual_mode IN ('calendar_days', 'business_days'))
        )
    """)

    # ── 5. leave_requests ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_requests (
            id                  UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id             UUID NOT NULL REFERENCES profiles(id),
            leave_type_id       UUID NOT NULL REFERENCES leave_types(id),
            start_date          DATE NOT NULL,
            end_date            DATE NOT NULL,
            resume_date         DATE,
            days_count          INTEGER NOT NULL CHECK (days_count > 0),
            reason              TEXT,
            status              VARCHAR(30) DEFAULT 'pending',
            approval_stage      VARCHAR(30),
            reliever_id         UUID REFERENCES profiles(id),
            supervisor_id       UUID REFERENCES profiles(id),
            requested_days_mode VARCHAR(20) DEFAULT 'calendar_days',
            rejected_reason     TEXT,
            hr_comment          TEXT,
            original_request_id UUID REFERENCES leave_requests(id),
            request_kind        VARCHAR(20) DEFAULT 'standard',
            created_at          TIMESTAMPTZ DEFAULT NOW(),
            updated_at          TIMESTAMPTZ DEFAULT NOW(),
            CHECK (end_date >= start_date)
        )
    """)
    op.execute(
        "CREATE INDEX ix_leave_requests_user_dates ON leave_requests(user_id, start_date, end_date)"
    )
    op.execute("CREATE INDEX ix_leave_requests_status     ON leave_requests(status)")
    op.execute("CREATE INDEX idx_leave_requests_reliever  ON leave_requests(reliever_id)")

    # ── 6. leave_approvals ────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_approvals (
            id               UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            leave_request_id UUID NOT NULL REFERENCES leave_requests(id) ON DELETE CASCADE,
            approver_id      UUID NOT NULL REFERENCES profiles(id),
            approval_level   INTEGER NOT NULL CHECK (approval_level IN (1, 2, 3)),
            status           VARCHAR(20) NOT NULL,
            comments         TEXT,
            approved_at      TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute(
        "CREATE INDEX ix_leave_approvals_leave_request_id ON leave_approvals(leave_request_id)"
    )

    # ── 7. leave_evidence ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_evidence (
            id               UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            leave_request_id UUID NOT NULL REFERENCES leave_requests(id) ON DELETE CASCADE,
            document_type    VARCHAR(50) NOT NULL,
            file_url         VARCHAR(500),
            uploaded_by      UUID REFERENCES profiles(id),
            status           VARCHAR(20) DEFAULT 'pending',
            notes            TEXT,
            verified_by      UUID REFERENCES profiles(id),
            verified_at      TIMESTAMPTZ,
            created_at       TIMESTAMPTZ DEFAULT NOW(),
            CHECK (status IN ('pending', 'verified', 'rejected'))
        )
    """)
    op.execute(
        "CREATE INDEX ix_leave_evidence_leave_request_id ON leave_evidence(leave_request_id)"
    )

    # ── 8. holiday_calendar ───────────────────────────────────────────────
    op.execute("""
        CREATE TABLE holiday_calendar (
            id              UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            location        VARCHAR(100) NOT NULL DEFAULT 'global',
            holiday_date    DATE NOT NULL,
            name            VARCHAR(200),
            is_business_day BOOLEAN DEFAULT FALSE,
            created_at      TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_holiday_location_date UNIQUE (location, holiday_date)
        )
    """)

    # ── 9. attendance_records ─────────────────────────────────────────────
    op.execute("""
        CREATE TABLE attendance_records (
            id         UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id    UUID NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            date       DATE NOT NULL,
            status     VARCHAR(30) NOT NULL,
            notes      TEXT,
            updated_at TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_attendance_user_date UNIQUE (user_id, date)
        )
    """)

    # ── 10. notifications ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE notifications (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id     UUID NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            type        VARCHAR(50) NOT NULL,
            category    VARCHAR(50) NOT NULL,
            title       VARCHAR(200) NOT NULL,
            message     TEXT NOT NULL,
            priority    VARCHAR(20) DEFAULT 'normal',
            link_url    VARCHAR(500),
            actor_id    UUID,
            entity_type VARCHAR(50),
            entity_id   UUID,
            is_read     BOOLEAN DEFAULT FALSE,
            created_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_notifications_user_id ON notifications(user_id)")
    op.execute(
        "CREATE INDEX idx_notifications_unread ON notifications(user_id) WHERE is_read = FALSE"
    )


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "notifications",
        "attendance_records",
        "holiday_calendar",
        "leave_evidence",
        "leave_approvals",
        "leave_requests",
        "leave_policies",
        "leave_types",
        "employee_life_events",
        "profiles",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")

    op.execute('DROP EXTENSION IF EXISTS "uuid-ossp"')
