from datetime import datetime
from sqlalchemy import (
    BigInteger,
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    Text,
    Index,
)
from sqlalchemy.orm import backref, relationship
from app.core.database import Base


class Transaction(Base):
    """Income/expense movement on a financial account."""

    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_account_date", "account_id", "transaction_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("financial_accounts.id"), nullable=False)
    goal_id = Column(
        Integer,
        ForeignKey("financial_goals.id", ondelete="SET NULL"),
        nullable=True,
    )
    amount = Column(BigInteger, nullable=False)  # minor units, always positive
    transaction_type = Column(String, nullable=False)  # income, expense
    category = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    transaction_date = Column(DateTime, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    account = relationship("FinancialAccount", backref="transactions")
    goal = relationship("Goal", backref=backref("transactions", passive_deletes=True))

    @property
    def signed_amount(self) -> int:
        """Amount as seen from the account: expenses are negative."""
        if self.transaction_type == "expense":
            return -int(self.amount or 0)
        return int(self.amount or 0)
