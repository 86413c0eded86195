"""Baseline migration - tenants, component library, UPAs, projects, budgets

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-18

Creates every table of the BuildCost schema on PostgreSQL.
"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


TIMESTAMPS = '''
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
'''


def _catalog_table(table: str, label_column: str) -> str:
    return f'''
        CREATE TABLE {table} (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            code VARCHAR(100),
            {label_column} VARCHAR(255) NOT NULL,
            description TEXT,
            unit VARCHAR(50) NOT NULL,
            unit_price NUMERIC(14, 2) NOT NULL,
            is_public BOOLEAN NOT NULL DEFAULT false,
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            {TIMESTAMPS},
            CONSTRAINT ck_{table}_unit_price CHECK (unit_price >= 0)
        )
    '''


def _line_table(table: str, label_column: str, ref_column: str, ref_table: str) -> str:
    return f'''
        CREATE TABLE {table} (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            unit_price_analysis_id UUID NOT NULL
                REFERENCES unit_price_analyses(id) ON DELETE CASCADE,
            position INTEGER NOT NULL DEFAULT 0,
            code VARCHAR(100),
            {label_column} VARCHAR(255) NOT NULL,
            description TEXT,
            quantity NUMERIC(14, 4) NOT NULL,
            unit VARCHAR(50) NOT NULL,
            unit_price NUMERIC(14, 2) NOT NULL,
            total_price NUMERIC(16, 2) NOT NULL,
            {ref_column} UUID REFERENCES {ref_table}(id) ON DELETE SET NULL,
            {TIMESTAMPS}
        )
    '''


def upgrade() -> None:
    """Create all tables."""

    op.execute('CREATE EXTENSION IF NOT EXISTS pgcrypto')  # For gen_random_uuid()

    # ==========================================================================
    # Tenants & users
    # ==========================================================================
    op.execute(f'''
        CREATE TABLE organizations (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(255) NOT NULL,
            type VARCHAR(20) NOT NULL DEFAULT 'CONTRACTOR',
            {TIMESTAMPS},
            CONSTRAINT ck_organizations_type CHECK (type IN ('CONTRACTOR', 'STORE'))
        )
    ''')

    op.execute(f'''
        CREATE TABLE users (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            email VARCHAR(320) UNIQUE NOT NULL,
            display_name VARCHAR(255) NOT NULL,
            token_version INTEGER NOT NULL DEFAULT 1,
            is_active BOOLEAN NOT NULL DEFAULT true,
            {TIMESTAMPS}
        )
    ''')

    op.execute(f'''
        CREATE TABLE memberships (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            role VARCHAR(20) NOT NULL DEFAULT 'MEMBER',
            {TIMESTAMPS},
            CONSTRAINT uq_membership_user_org UNIQUE (user_id, organization_id)
        )
    ''')
    op.execute('CREATE INDEX ix_memberships_organization_id ON memberships(organization_id)')

    # ==========================================================================
    # Component library
    # ==========================================================================
    op.execute(_catalog_table('materials', 'name'))
    op.execute(_catalog_table('labor', 'role'))
    op.execute(_catalog_table('equipment', 'name'))
    for table in ('materials', 'labor', 'equipment'):
        op.execute(f'CREATE INDEX ix_{table}_organization_id ON {table}(organization_id)')

    # ==========================================================================
    # Unit price analyses
    # ==========================================================================
    op.execute(f'''
        CREATE TABLE unit_price_analyses (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            title VARCHAR(255) NOT NULL,
            description TEXT,
            code VARCHAR(100),
            unit VARCHAR(50) NOT NULL,
            total_price NUMERIC(16, 2) NOT NULL DEFAULT 0,
            has_annual_maintenance BOOLEAN NOT NULL DEFAULT false,
            maintenance_years INTEGER,
            annual_maintenance_rate NUMERIC(5, 2),
            is_public BOOLEAN NOT NULL DEFAULT false,
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            {TIMESTAMPS}
        )
    ''')
    op.execute(
        'CREATE INDEX ix_unit_price_analyses_org_updated '
        'ON unit_price_analyses(organization_id, updated_at)'
    )

    op.execute(_line_table('upa_materials', 'name', 'material_id', 'materials'))
    op.execute(_line_table('upa_labor', 'role', 'labor_id', 'labor'))
    op.execute(_line_table('upa_equipment', 'name', 'equipment_id', 'equipment'))
    for table, ref_column in (
        ('upa_materials', 'material_id'),
        ('upa_labor', 'labor_id'),
        ('upa_equipment', 'equipment_id'),
    ):
        op.execute(
            f'CREATE INDEX ix_{table}_unit_price_analysis_id ON {table}(unit_price_analysis_id)'
        )
        op.execute(f'CREATE INDEX ix_{table}_{ref_column} ON {table}({ref_column})')

    # ==========================================================================
    # Projects
    # ==========================================================================
    op.execute(f'''
        CREATE TABLE projects (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(255) NOT NULL,
            description TEXT,
            status VARCHAR(20) NOT NULL DEFAULT 'PLANNING',
            project_type VARCHAR(30),
            client_name VARCHAR(255),
            contact_person VARCHAR(255),
            client_phone VARCHAR(50),
            client_email VARCHAR(320),
            billing_address TEXT,
            project_address TEXT,
            project_scope TEXT,
            start_date DATE,
            end_date DATE,
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            created_by_user_id UUID REFERENCES users(id) ON DELETE SET NULL,
            {TIMESTAMPS}
        )
    ''')
    op.execute('CREATE INDEX ix_projects_org_updated ON projects(organization_id, updated_at)')

    op.execute(f'''
        CREATE TABLE project_viewers (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            project_id UUID NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            {TIMESTAMPS},
            CONSTRAINT uq_project_viewer UNIQUE (project_id, user_id)
        )
    ''')
    op.execute('CREATE INDEX ix_project_viewers_user_id ON project_viewers(user_id)')

    # ==========================================================================
    # Store items & budgets
    # ==========================================================================
    op.execute(f'''
        CREATE TABLE items (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            code VARCHAR(100),
            name VARCHAR(255) NOT NULL,
            description TEXT,
            unit VARCHAR(50) NOT NULL,
            price NUMERIC(14, 2) NOT NULL,
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            {TIMESTAMPS},
            CONSTRAINT ck_items_price CHECK (price >= 0)
        )
    ''')
    op.execute('CREATE INDEX ix_items_organization_id ON items(organization_id)')

    op.execute(f'''
        CREATE TABLE budgets (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            title VARCHAR(255) NOT NULL,
            description TEXT,
            is_template BOOLEAN NOT NULL DEFAULT false,
            organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            {TIMESTAMPS}
        )
    ''')
    op.execute('CREATE INDEX ix_budgets_org_updated ON budgets(organization_id, updated_at)')

    op.execute(f'''
        CREATE TABLE budget_projects (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            budget_id UUID NOT NULL REFERENCES budgets(id) ON DELETE CASCADE,
            project_id UUID NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            {TIMESTAMPS},
            CONSTRAINT uq_budget_project UNIQUE (budget_id, project_id)
        )
    ''')
    op.execute('CREATE INDEX ix_budget_projects_project_id ON budget_projects(project_id)')

    op.execute(f'''
        CREATE TABLE budget_items (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            budget_id UUID NOT NULL REFERENCES budgets(id) ON DELETE CASCADE,
            item_id UUID NOT NULL REFERENCES items(id) ON DELETE RESTRICT,
            quantity NUMERIC(14, 4) NOT NULL,
            price_at_time NUMERIC(14, 2) NOT NULL,
            {TIMESTAMPS},
            CONSTRAINT ck_budget_items_quantity CHECK (quantity > 0)
        )
    ''')
    op.execute('CREATE INDEX ix_budget_items_budget_id ON budget_items(budget_id)')
    op.execute('CREATE INDEX ix_budget_items_item_id ON budget_items(item_id)')


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    for table in (
        'budget_items',
        'budget_projects',
        'budgets',
        'items',
        'project_viewers',
        'projects',
        'upa_equipment',
        'upa_labor',
        'upa_materials',
        'unit_price_analyses',
        'equipment',
        'labor',
        'materials',
        'memberships',
        'users',
        'organizations',
    ):
        op.execute(f'DROP TABLE IF EXISTS {table}')
