"""Pydantic schemas for API request/response models."""

from buildcost.schemas.auth import MeResponse, RequestContext, TokenPayload
from buildcost.schemas.budget import (
    ApplyBudgetRequest,
    ApplyBudgetResult,
    BudgetCreate,
    BudgetDetail,
    BudgetItemAdd,
    BudgetRead,
    BudgetUpdate,
)
from buildcost.schemas.catalog import (
    EquipmentCreate,
    EquipmentRead,
    EquipmentUpdate,
    LaborCreate,
    LaborRead,
    LaborUpdate,
    MaterialCreate,
    MaterialRead,
    MaterialUpdate,
)
from buildcost.schemas.item import ItemCreate, ItemRead, ItemUpdate
from buildcost.schemas.org import MemberInvite, MemberRead, OrgCreate, OrgDetail, OrgRead, OrgUpdate
from buildcost.schemas.project import ProjectCreate, ProjectRead, ProjectUpdate, ViewerAdd, ViewerRead
from buildcost.schemas.upa import UPACreate, UPARead, UPAUpdate
from buildcost.schemas.user import UserCreate, UserRead
