"""Enum definitions for application constants."""

from enum import Enum


class Role(str, Enum):
    """
    Member roles within an organization.

    - ADMIN: manages membership and organization settings, plus all business records
    - MEMBER: manages business records (catalog, UPAs, projects, budgets, items)
    - VIEWER: read-only; sees only projects explicitly shared with them
    """
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"
    VIEWER = "VIEWER"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_


class OrganizationType(str, Enum):
    """Contractors own projects, catalogs and UPAs; stores own sellable items."""
    CONTRACTOR = "CONTRACTOR"
    STORE = "STORE"


class ProjectStatus(str, Enum):
    PLANNING = "PLANNING"
    IN_PROGRESS = "IN_PROGRESS"
    ON_HOLD = "ON_HOLD"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ProjectType(str, Enum):
    RESIDENTIAL = "RESIDENTIAL"
    COMMERCIAL = "COMMERCIAL"
    INDUSTRIAL = "INDUSTRIAL"
    INSTITUTIONAL = "INSTITUTIONAL"
    INFRASTRUCTURE = "INFRASTRUCTURE"
    RENOVATION = "RENOVATION"
    OTHER = "OTHER"


class ComponentKind(str, Enum):
    """
    Discriminant for catalog components and UPA lines.

    Materials and equipment are labelled by ``name``; labor by ``role``.
    """
    MATERIAL = "material"
    LABOR = "labor"
    EQUIPMENT = "equipment"

    @property
    def label_field(self) -> str:
        return "role" if self is ComponentKind.LABOR else "name"


# =============================================================================
# Defaults
# =============================================================================

DEFAULT_PROJECT_STATUS = ProjectStatus.PLANNING
DEFAULT_MEMBER_ROLE = Role.MEMBER


# =============================================================================
# Role permission sets
# =============================================================================

# Read any org-scoped record (projects additionally need a viewer grant for VIEWER)
ROLES_CAN_VIEW = {Role.ADMIN, Role.MEMBER, Role.VIEWER}

# Create / update / delete catalog components, UPAs, projects, budgets, items
ROLES_CAN_EDIT = {Role.ADMIN, Role.MEMBER}

# Organization settings and membership management
ROLES_CAN_MANAGE_ORG = {Role.ADMIN}
