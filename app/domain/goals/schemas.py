"""Pydantic schemas for financial goals."""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


class GoalBase(BaseModel):
    """Shared attributes for goal payloads."""

    name: str | None = None
    description: Optional[str] = None
    target_amount: Decimal | None = None
    start_date: date | None = None
    target_date: date | None = None
    category_id: Optional[int] = None
    account_id: int | None = None

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class GoalCreate(GoalBase):
    """Schema for creating a goal; ``savings_box_id`` links it right away."""

    name: str
    target_amount: Decimal
    target_date: date
    account_id: int
    savings_box_id: Optional[int] = None


class GoalUpdate(GoalBase):
    """Schema for updating a goal. Progress and linkage have their own endpoints."""

    pass


class GoalOut(BaseModel):
    id: int
    name: str
    description: Optional[str]
    target_amount: int
    current_amount: int
    start_date: date
    target_date: date
    category_id: Optional[int]
    account_id: int
    savings_box_id: Optional[int]
    is_completed: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class GoalLinkRequest(BaseModel):
    savings_box_id: Optional[int] = None

    model_config = ConfigDict(extra="forbid")


class GoalLinkOut(BaseModel):
    goal: GoalOut
    transition: Literal["linking", "unlinking", "relinking", "no-op"]


class GoalContributionRequest(BaseModel):
    amount: Decimal

    model_config = ConfigDict(extra="forbid")
