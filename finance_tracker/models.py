"""SQLAlchemy models for users, expense transactions and loans."""
from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Optional

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from .database import Base

EXPENSE_TYPE = "expense"


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class User(Base):
    __tablename__ = "users"

    user_id: int = Column(Integer, primary_key=True, index=True)
    name: str = Column(String(100), nullable=False)
    email: str = Column(String(255), unique=True, nullable=False, index=True)
    password: str = Column(String(255), nullable=False)
    created_at: datetime = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    transactions = relationship("Transaction", back_populates="owner", cascade="all, delete-orphan")
    loans = relationship("Loan", back_populates="owner", cascade="all, delete-orphan")


class Transaction(Base):
    __tablename__ = "transactions"

    transaction_id: int = Column(Integer, primary_key=True, index=True)
    user_id: int = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    type: str = Column(String(20), nullable=False, default=EXPENSE_TYPE)
    category: str = Column(String(100), nullable=False)
    amount: float = Column(Numeric(12, 2), nullable=False)
    description: Optional[str] = Column(Text, nullable=True)
    date: datetime = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    owner = relationship("User", back_populates="transactions")


class Loan(Base):
    __tablename__ = "loans"

    loan_id: int = Column(Integer, primary_key=True, index=True)
    user_id: int = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    person_name: str = Column(String(100), nullable=False)
    type: str = Column(String(50), nullable=False)
    amount: float = Column(Numeric(12, 2), nullable=False)
    description: str = Column(Text, nullable=False)
    status: str = Column(String(20), nullable=False, default="pending")
    due_date: Optional[date] = Column(Date, nullable=True)
    date: datetime = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at: datetime = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    owner = relationship("User", back_populates="loans")
