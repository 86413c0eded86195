"""SQLAlchemy ORM models for tenants, cost catalogs, unit price analyses and budgets."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean, CheckConstraint, Date, ForeignKey, Index, Integer, Numeric,
    String, Text, UniqueConstraint, Uuid, func, text
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from buildcost.db.base import Base
from buildcost.db.enums import (
    DEFAULT_MEMBER_ROLE, DEFAULT_PROJECT_STATUS, OrganizationType,
)


MONEY = Numeric(14, 2)
TOTAL = Numeric(16, 2)
QUANTITY = Numeric(14, 4)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )


# =============================================================================
# Auth & Tenant Models
# =============================================================================

class Organization(TimestampMixin, Base):
    """
    A tenant (contractor or store) in the multi-tenant system.

    All domain entities belong to an organization
    and must be scoped by organization_id in all queries.
    """
    __tablename__ = "organizations"
    __table_args__ = (
        CheckConstraint("type IN ('CONTRACTOR', 'STORE')", name="ck_organizations_type"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(
        String(20), default=OrganizationType.CONTRACTOR.value, nullable=False
    )

    memberships: Mapped[list["Membership"]] = relationship(
        back_populates="organization", cascade="all, delete-orphan"
    )


class User(TimestampMixin, Base):
    """
    Application user.

    Authentication is delegated to an identity provider; no passwords stored.
    """
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    token_version: Mapped[int] = mapped_column(
        Integer, default=1, server_default=text("1"), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=text("true"), nullable=False
    )

    memberships: Mapped[list["Membership"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )


class Membership(TimestampMixin, Base):
    """
    Links a user to an organization with a role.

    A user may belong to many organizations, once each.
    """
    __tablename__ = "memberships"
    __table_args__ = (
        UniqueConstraint("user_id", "organization_id", name="uq_membership_user_org"),
        Index("ix_memberships_organization_id", "organization_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_MEMBER_ROLE.value, nullable=False
    )

    user: Mapped["User"] = relationship(back_populates="memberships")
    organization: Mapped["Organization"] = relationship(back_populates="memberships")


# =============================================================================
# Component Library (catalog)
# =============================================================================

class CatalogComponentMixin(TimestampMixin):
    """Columns shared by materials, labor and equipment."""

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    code: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    unit: Mapped[str] = mapped_column(String(50), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    is_public: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )


class Material(CatalogComponentMixin, Base):
    __tablename__ = "materials"
    __table_args__ = (
        CheckConstraint("unit_price >= 0", name="ck_materials_unit_price"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)


class Labor(CatalogComponentMixin, Base):
    __tablename__ = "labor"
    __table_args__ = (
        CheckConstraint("unit_price >= 0", name="ck_labor_unit_price"),
    )

    role: Mapped[str] = mapped_column(String(255), nullable=False)


class Equipment(CatalogComponentMixin, Base):
    __tablename__ = "equipment"
    __table_args__ = (
        CheckConstraint("unit_price >= 0", name="ck_equipment_unit_price"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)


# =============================================================================
# Unit Price Analyses
# =============================================================================

class UnitPriceAnalysis(TimestampMixin, Base):
    """
    Composite costed line item.

    total_price is a persisted cache of the sum of all line totals and is
    only ever written through pricing.recompute_total().
    """
    __tablename__ = "unit_price_analyses"
    __table_args__ = (
        Index("ix_unit_price_analyses_org_updated", "organization_id", "updated_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    code: Mapped[str | None] = mapped_column(String(100), nullable=True)
    unit: Mapped[str] = mapped_column(String(50), nullable=False)
    total_price: Mapped[Decimal] = mapped_column(
        TOTAL, default=Decimal("0"), server_default=text("0"), nullable=False
    )
    has_annual_maintenance: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    maintenance_years: Mapped[int | None] = mapped_column(Integer, nullable=True)
    annual_maintenance_rate: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    is_public: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )

    materials: Mapped[list["UPAMaterial"]] = relationship(
        back_populates="unit_price_analysis",
        cascade="all, delete-orphan",
        order_by="UPAMaterial.position",
    )
    labor: Mapped[list["UPALabor"]] = relationship(
        back_populates="unit_price_analysis",
        cascade="all, delete-orphan",
        order_by="UPALabor.position",
    )
    equipment: Mapped[list["UPAEquipment"]] = relationship(
        back_populates="unit_price_analysis",
        cascade="all, delete-orphan",
        order_by="UPAEquipment.position",
    )


class UPALineMixin(TimestampMixin):
    """Columns shared by the three UPA line categories."""

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    unit_price_analysis_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("unit_price_analyses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    code: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    quantity: Mapped[Decimal] = mapped_column(QUANTITY, nullable=False)
    unit: Mapped[str] = mapped_column(String(50), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    total_price: Mapped[Decimal] = mapped_column(TOTAL, nullable=False)


class UPAMaterial(UPALineMixin, Base):
    __tablename__ = "upa_materials"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    material_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("materials.id", ondelete="SET NULL"), nullable=True, index=True
    )

    unit_price_analysis: Mapped["UnitPriceAnalysis"] = relationship(back_populates="materials")


class UPALabor(UPALineMixin, Base):
    __tablename__ = "upa_labor"

    role: Mapped[str] = mapped_column(String(255), nullable=False)
    labor_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("labor.id", ondelete="SET NULL"), nullable=True, index=True
    )

    unit_price_analysis: Mapped["UnitPriceAnalysis"] = relationship(back_populates="labor")


class UPAEquipment(UPALineMixin, Base):
    __tablename__ = "upa_equipment"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    equipment_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("equipment.id", ondelete="SET NULL"), nullable=True, index=True
    )

    unit_price_analysis: Mapped["UnitPriceAnalysis"] = relationship(back_populates="equipment")


# =============================================================================
# Projects
# =============================================================================

class Project(TimestampMixin, Base):
    """Construction project owned by a contractor organization."""
    __tablename__ = "projects"
    __table_args__ = (
        Index("ix_projects_org_updated", "organization_id", "updated_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_PROJECT_STATUS.value, nullable=False
    )
    project_type: Mapped[str | None] = mapped_column(String(30), nullable=True)

    # Client details
    client_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_person: Mapped[str | None] = mapped_column(String(255), nullable=True)
    client_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    client_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    billing_address: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Project details
    project_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    project_scope: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    organization: Mapped["Organization"] = relationship()
    viewers: Mapped[list["ProjectViewer"]] = relationship(
        back_populates="project", cascade="all, delete-orphan"
    )
    budget_projects: Mapped[list["BudgetProject"]] = relationship(
        back_populates="project", cascade="all, delete-orphan"
    )


class ProjectViewer(TimestampMixin, Base):
    """Explicit read grant on one project for a VIEWER member."""
    __tablename__ = "project_viewers"
    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_viewer"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    project: Mapped["Project"] = relationship(back_populates="viewers")
    user: Mapped["User"] = relationship()


# =============================================================================
# Store Items
# =============================================================================

class Item(TimestampMixin, Base):
    """Sellable item listed by a store organization."""
    __tablename__ = "items"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_items_price"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    code: Mapped[str | None] = mapped_column(String(100), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    unit: Mapped[str] = mapped_column(String(50), nullable=False)
    price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )


# =============================================================================
# Budgets
# =============================================================================

class Budget(TimestampMixin, Base):
    """Named collection of costed items, optionally a reusable template."""
    __tablename__ = "budgets"
    __table_args__ = (
        Index("ix_budgets_org_updated", "organization_id", "updated_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_template: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )

    budget_items: Mapped[list["BudgetItem"]] = relationship(
        back_populates="budget", cascade="all, delete-orphan", order_by="BudgetItem.created_at"
    )
    budget_projects: Mapped[list["BudgetProject"]] = relationship(
        back_populates="budget", cascade="all, delete-orphan"
    )


class BudgetProject(TimestampMixin, Base):
    """Join record linking a budget to a project."""
    __tablename__ = "budget_projects"
    __table_args__ = (
        UniqueConstraint("budget_id", "project_id", name="uq_budget_project"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    budget_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("budgets.id", ondelete="CASCADE"), nullable=False
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )

    budget: Mapped["Budget"] = relationship(back_populates="budget_projects")
    project: Mapped["Project"] = relationship(back_populates="budget_projects")


class BudgetItem(TimestampMixin, Base):
    """Item line in a budget with the item price captured when it was added."""
    __tablename__ = "budget_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_budget_items_quantity"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    budget_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("budgets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("items.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    quantity: Mapped[Decimal] = mapped_column(QUANTITY, nullable=False)
    price_at_time: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    budget: Mapped["Budget"] = relationship(back_populates="budget_items")
    item: Mapped["Item"] = relationship()
