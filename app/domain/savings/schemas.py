"""Pydantic schemas for savings boxes and their ledger movements.

Request amounts are major units (``10.50``); the services convert them to
minor units. Response amounts are the stored minor units.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


class SavingsBoxBase(BaseModel):
    """Shared attributes for savings box payloads."""

    name: str | None = None
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    target_amount: Optional[Decimal] = None

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class SavingsBoxCreate(SavingsBoxBase):
    """Schema for creating a savings box."""

    name: str


class SavingsBoxUpdate(SavingsBoxBase):
    """Schema for updating a savings box. The balance is never editable."""

    pass


class SavingsBoxOut(BaseModel):
    id: int
    name: str
    description: Optional[str]
    color: str
    icon: str
    current_amount: int
    target_amount: Optional[int]
    is_active: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class DepositRequest(BaseModel):
    amount: Decimal
    account_id: Optional[int] = None
    description: Optional[str] = None

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class WithdrawRequest(DepositRequest):
    pass


class TransferRequest(BaseModel):
    from_box_id: int
    to_box_id: int
    amount: Decimal
    description: Optional[str] = None

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class SavingsTransactionOut(BaseModel):
    id: int
    savings_box_id: int
    target_savings_box_id: Optional[int]
    source_account_id: Optional[int]
    amount: int
    type: Literal["DEPOSIT", "WITHDRAW", "TRANSFER"]
    description: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
