"""JSON API aggregate router mounted under ``/api``."""
from __future__ import annotations

from fastapi import APIRouter

from app.web.routes import api_accounts
from app.web.routes import api_goals
from app.web.routes import api_savings_boxes
from app.web.routes import api_savings_transactions

router = APIRouter()

router.include_router(api_accounts.router, prefix="/accounts", tags=["accounts"])
router.include_router(api_savings_boxes.router, prefix="/savings-boxes", tags=["savings-boxes"])
router.include_router(
    api_savings_transactions.router,
    prefix="/savings-transactions",
    tags=["savings-transactions"],
)
router.include_router(api_goals.router, prefix="/goals", tags=["goals"])
