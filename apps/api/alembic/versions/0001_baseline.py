"""Baseline migration - tenants, schedule, history, payments

Revision ID: 0001_baseline
Revises: 
Create Date: 2026-10-19

Creates every table of the advisor desk.
"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables."""

    op.execute('CREATE EXTENSION IF NOT EXISTS pgcrypto')  # For gen_random_uuid()

    # ==========================================================================
    # Tenants and users
    # ==========================================================================
    op.execute('''
        CREATE TABLE organizations (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(255) NOT NULL,
            slug VARCHAR(100) UNIQUE NOT NULL,
            timezone VARCHAR(50) NOT NULL DEFAULT 'Asia/Kolkata',
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')

    op.execute('''
        CREATE TABLE users (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            username VARCHAR(100) UNIQUE NOT NULL,
            full_name VARCHAR(255) NOT NULL,
            password_hash VARCHAR(255) NOT NULL,
            role VARCHAR(30) NOT NULL,
            is_active BOOLEAN NOT NULL DEFAULT true,
            token_version INTEGER NOT NULL DEFAULT 1,
            last_login_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute('CREATE INDEX ix_users_organization_id ON users(organization_id)')

    # ==========================================================================
    # Clients
    # ==========================================================================
    op.execute('''
        CREATE TABLE clients (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            name VARCHAR(255) NOT NULL,
            type VARCHAR(30) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_client_org_name UNIQUE (organization_id, name)
        )
    ''')
    op.execute('CREATE INDEX ix_clients_organization_id ON clients(organization_id)')

    op.execute('''
        CREATE TABLE client_notes (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            client_id UUID NOT NULL REFERENCES clients(id) ON DELETE CASCADE,
            content TEXT NOT NULL,
            created_by_id UUID REFERENCES users(id) ON DELETE SET NULL,
            created_by_name VARCHAR(255) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute('CREATE INDEX idx_client_notes_client ON client_notes(client_id, created_at)')

    # ==========================================================================
    # Schedule and history
    # ==========================================================================
    op.execute('''
        CREATE TABLE scheduled_meetings (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            client_id UUID NOT NULL REFERENCES clients(id) ON DELETE RESTRICT,
            meeting_type VARCHAR(20) NOT NULL,
            start_date DATE NOT NULL,
            start_time TIME NOT NULL,
            location VARCHAR(500) NOT NULL,
            agenda TEXT,
            meeting_link VARCHAR(1000),
            alert_type VARCHAR(20) NOT NULL DEFAULT 'none',
            reminder_minutes INTEGER NOT NULL DEFAULT 30,
            reminder_sent BOOLEAN NOT NULL DEFAULT false,
            attachments JSONB NOT NULL DEFAULT '[]'::jsonb,
            created_by_id UUID REFERENCES users(id) ON DELETE SET NULL,
            created_by_name VARCHAR(255) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute(
        'CREATE INDEX idx_meetings_org_start '
        'ON scheduled_meetings(organization_id, start_date, start_time)'
    )
    op.execute('CREATE INDEX ix_scheduled_meetings_client_id ON scheduled_meetings(client_id)')

    op.execute('''
        CREATE TABLE meeting_history (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            original_meeting_id UUID UNIQUE NOT NULL,
            client_id UUID REFERENCES clients(id) ON DELETE SET NULL,
            client_name VARCHAR(255) NOT NULL,
            meeting_type VARCHAR(20) NOT NULL,
            start_date DATE NOT NULL,
            start_time TIME NOT NULL,
            location VARCHAR(500) NOT NULL,
            agenda TEXT,
            meeting_link VARCHAR(1000),
            alert_type VARCHAR(20) NOT NULL DEFAULT 'none',
            attachments JSONB NOT NULL DEFAULT '[]'::jsonb,
            mom_files JSONB NOT NULL DEFAULT '[]'::jsonb,
            created_by_id UUID REFERENCES users(id) ON DELETE SET NULL,
            created_by_name VARCHAR(255) NOT NULL,
            archived_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute('CREATE INDEX idx_history_org_start ON meeting_history(organization_id, start_date)')

    # ==========================================================================
    # Payments
    # ==========================================================================
    op.execute('''
        CREATE TABLE payment_schedules (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            client_id UUID NOT NULL REFERENCES clients(id) ON DELETE RESTRICT,
            amount NUMERIC(12, 2) NOT NULL,
            amounts JSONB,
            due_dates JSONB NOT NULL DEFAULT '[]'::jsonb,
            frequency VARCHAR(20) NOT NULL,
            payment_method VARCHAR(20),
            payment_status JSONB NOT NULL DEFAULT '{}'::jsonb,
            comments TEXT,
            created_by_id UUID REFERENCES users(id) ON DELETE SET NULL,
            created_by_name VARCHAR(255) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute(
        'CREATE INDEX idx_payments_org_client ON payment_schedules(organization_id, client_id)'
    )

    # ==========================================================================
    # Activity log, integrations, jobs
    # ==========================================================================
    op.execute('''
        CREATE TABLE activity_logs (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            user_id UUID REFERENCES users(id) ON DELETE SET NULL,
            username VARCHAR(100) NOT NULL,
            action_type VARCHAR(20) NOT NULL,
            table_name VARCHAR(50) NOT NULL,
            record_id VARCHAR(64),
            payload JSONB,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute(
        'CREATE INDEX idx_activity_org_created ON activity_logs(organization_id, created_at)'
    )

    op.execute('''
        CREATE TABLE oauth_connections (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            provider VARCHAR(30) NOT NULL,
            connected_by_user_id UUID REFERENCES users(id) ON DELETE SET NULL,
            account_email VARCHAR(255),
            access_token TEXT NOT NULL,
            refresh_token TEXT,
            token_expiry TIMESTAMPTZ,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    ''')
    op.execute('''
        CREATE UNIQUE INDEX uq_oauth_active_provider
        ON oauth_connections(organization_id, provider)
        WHERE is_active
    ''')

    op.execute('''
        CREATE TABLE jobs (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            organization_id UUID REFERENCES organizations(id) ON DELETE CASCADE,
            job_type VARCHAR(50) NOT NULL,
            payload JSONB NOT NULL DEFAULT '{}'::jsonb,
            run_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            status VARCHAR(20) NOT NULL DEFAULT 'pending',
            attempts INTEGER NOT NULL DEFAULT 0,
            max_attempts INTEGER NOT NULL DEFAULT 3,
            last_error TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            completed_at TIMESTAMPTZ
        )
    ''')
    op.execute('CREATE INDEX idx_jobs_pending ON jobs(status, run_at)')


def downgrade() -> None:
    """Drop all tables."""

    # Drop tables in reverse order (respecting foreign keys)
    op.execute('DROP TABLE IF EXISTS jobs')
    op.execute('DROP TABLE IF EXISTS oauth_connections')
    op.execute('DROP TABLE IF EXISTS activity_logs')
    op.execute('DROP TABLE IF EXISTS payment_schedules')
    op.execute('DROP TABLE IF EXISTS meeting_history')
    op.execute('DROP TABLE IF EXISTS scheduled_meetings')
    op.execute('DROP TABLE IF EXISTS client_notes')
    op.execute('DROP TABLE IF EXISTS clients')
    op.execute('DROP TABLE IF EXISTS users')
    op.execute('DROP TABLE IF EXISTS organizations')
