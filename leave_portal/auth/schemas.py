"""Auth Pydantic schemas — the acting principal as asserted by the directory service."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from leave_portal.common.constants import UserRole


class Actor(BaseModel):
    """Identity, role and department of the caller."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: UserRole
    department: Optional[str] = None
    email: Optional[str] = None
