"""
PeopleDesk HR - Authentication Schemas
"""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class LoginRequest(BaseModel):
    """Login with work email and password."""
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    employee_id: UUID
    roles: List[str] = []


class CurrentUserResponse(BaseModel):
    """Claims of the authenticated caller and the roles in effect."""
    subject: str
    employee_id: Optional[UUID] = None
    token_roles: List[str] = []
    effective_roles: List[str] = []
