"""Import every mapped model so the metadata and mapper registry are complete."""
from app.domain.users.models import User
from app.domain.accounts.models import FinancialAccount
from app.domain.savings.models import SavingsBox, SavingsTransaction, SavingsTransactionType
from app.domain.goals.models import Goal
from app.domain.transactions.models import Transaction

__all__ = [
    "User",
    "FinancialAccount",
    "SavingsBox",
    "SavingsTransaction",
    "SavingsTransactionType",
    "Goal",
    "Transaction",
]
