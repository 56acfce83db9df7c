"""
Pydantic schemas for admin console endpoints.
"""
from pydantic import BaseModel

from app.models.enums import Role

class AdminRoleUpdateIn(BaseModel):
    """
    Request model for changing a user's role.
    The last remaining admin cannot be demoted, and admins cannot demote themselves.
    """
    role: Role
