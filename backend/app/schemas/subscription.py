"""
Pydantic schemas for subscription endpoints.
"""
from pydantic import BaseModel

from app.models.enums import Plan

class UpdatePlanIn(BaseModel):
    plan: Plan  # Target plan (downgrade or renewal; upgrades go through payment)
