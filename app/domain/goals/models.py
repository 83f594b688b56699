from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from app.core.database import Base


class Goal(Base):
    """Financial goal, optionally mirroring the balance of a savings box."""

    __tablename__ = "financial_goals"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    target_amount = Column(BigInteger, nullable=False)  # minor units
    current_amount = Column(BigInteger, nullable=False, default=0)
    start_date = Column(Date, nullable=False)
    target_date = Column(Date, nullable=False)
    category_id = Column(Integer, nullable=True)
    account_id = Column(Integer, ForeignKey("financial_accounts.id"), nullable=False)
    savings_box_id = Column(Integer, ForeignKey("savings_boxes.id"), nullable=True, index=True)
    is_completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    account = relationship("FinancialAccount")
    savings_box = relationship("SavingsBox", back_populates="goals")
