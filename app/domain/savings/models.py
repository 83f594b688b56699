import enum
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from app.core.database import Base


class SavingsTransactionType(str, enum.Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    TRANSFER = "TRANSFER"


class SavingsBox(Base):
    """Earmarked sub-account ("cofrinho"); retired boxes are soft-deleted."""

    __tablename__ = "savings_boxes"
    __table_args__ = (
        CheckConstraint("current_amount >= 0", name="ck_savings_boxes_non_negative"),
        Index("ix_savings_boxes_user_active", "user_id", "is_active"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String, nullable=False, default="#3B82F6")
    icon = Column(String, nullable=False, default="piggy-bank")
    current_amount = Column(BigInteger, nullable=False, default=0)  # minor units
    target_amount = Column(BigInteger, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", backref="savings_boxes")
    transactions = relationship(
        "SavingsTransaction",
        foreign_keys="SavingsTransaction.savings_box_id",
        back_populates="savings_box",
    )
    goals = relationship("Goal", back_populates="savings_box")


class SavingsTransaction(Base):
    """Immutable movement on a savings box; ``amount`` is always positive."""

    __tablename__ = "savings_transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_savings_transactions_positive"),
        Index("ix_savings_transactions_user_created", "user_id", "created_at"),
        Index("ix_savings_transactions_target", "target_savings_box_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    savings_box_id = Column(Integer, ForeignKey("savings_boxes.id"), nullable=False, index=True)
    target_savings_box_id = Column(Integer, ForeignKey("savings_boxes.id"), nullable=True)
    source_account_id = Column(
        Integer,
        ForeignKey("financial_accounts.id", ondelete="SET NULL"),
        nullable=True,
    )
    amount = Column(BigInteger, nullable=False)
    type = Column(String(16), nullable=False)  # DEPOSIT, WITHDRAW, TRANSFER
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    savings_box = relationship(
        "SavingsBox", foreign_keys=[savings_box_id], back_populates="transactions"
    )
    target_box = relationship("SavingsBox", foreign_keys=[target_savings_box_id])
    source_account = relationship("FinancialAccount")
