"""Pydantic schemas for financial accounts."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class AccountCreate(BaseModel):
    name: str
    type: str = "checking"
    balance: Decimal = Decimal("0")
    currency: Optional[str] = None

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class AccountOut(BaseModel):
    id: int
    name: str
    type: str
    balance: int
    currency: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)
