from typing import Optional

from pydantic import BaseModel, ConfigDict


class Role:
    """Role constants. Stored as-is in users.role."""
    SUPER_ADMIN = "SUPER_ADMIN"
    AGENCY_ADMIN = "AGENCY_ADMIN"
    AGENT = "AGENT"


ALL_ROLES = (Role.SUPER_ADMIN, Role.AGENCY_ADMIN, Role.AGENT)


class Actor(BaseModel):
    """
    Authenticated user performing an operation.
    agency_id is None for super admins.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    role: str
    agency_id: Optional[str] = None
    email: str = ""
    is_active: bool = True
