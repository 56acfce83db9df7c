"""
Pydantic schemas for profile endpoints.
"""
from typing import Optional
from pydantic import BaseModel, Field

class ProfileUpdateIn(BaseModel):
    """
    Request model for profile updates. Omitted fields are left unchanged.
    """
    name: Optional[str] = Field(default=None, min_length=1, max_length=128)
    avatar: Optional[str] = Field(default=None, max_length=1024)  # Avatar image URL
