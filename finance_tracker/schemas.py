"""Pydantic schemas validating requests and serialising rows."""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

AMOUNT_MESSAGE = "Amount must be a positive number"
# Numeric(12, 2) storage.
MAX_AMOUNT = Decimal("9999999999.99")
CENT = Decimal("0.01")
MAX_PASSWORD_BYTES = 72

# Client-facing labels for fields whose absence is reported as "<label> is required".
FIELD_LABELS = {
    "name": "Name",
    "email": "Email",
    "password": "Password",
    "category": "Category",
    "amount": "Amount",
    "description": "Description",
    "person_name": "Person name",
    "type": "Loan type",
    "status": "Status",
    "due_date": "Due date",
}


def _required_text(value: Any, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{label} is required")
    return value.strip()


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError("Description must be text")
    return value.strip()


def positive_amount(value: Any) -> Decimal:
    """Parse ``value`` as a positive, finite decimal amount."""

    if isinstance(value, bool) or value is None:
        raise ValueError(AMOUNT_MESSAGE)
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(AMOUNT_MESSAGE) from exc
    if not amount.is_finite() or amount <= 0:
        raise ValueError(AMOUNT_MESSAGE)
    if amount > MAX_AMOUNT:
        raise ValueError(f"Amount must not exceed {MAX_AMOUNT}")
    if amount != amount.quantize(CENT):
        raise ValueError("Amount must have at most 2 decimal places")
    return amount


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class LoanStatus(str, Enum):
    PENDING = "pending"
    SETTLED = "settled"
    OVERDUE = "overdue"

    def can_become(self, target: "LoanStatus") -> bool:
        return target in _TRANSITIONS[self]


_TRANSITIONS = {
    LoanStatus.PENDING: {LoanStatus.PENDING, LoanStatus.OVERDUE, LoanStatus.SETTLED},
    LoanStatus.OVERDUE: {LoanStatus.OVERDUE, LoanStatus.PENDING, LoanStatus.SETTLED},
    LoanStatus.SETTLED: {LoanStatus.SETTLED},
}


class RegisterRequest(BaseModel):
    name: str = Field(..., max_length=100)
    email: str = Field(..., max_length=255)
    password: str

    @field_validator("name", mode="before")
    @classmethod
    def _check_name(cls, value: Any) -> str:
        return _required_text(value, "Name")

    @field_validator("email", mode="before")
    @classmethod
    def _check_email(cls, value: Any) -> str:
        email = _required_text(value, "Email").lower()
        if "@" not in email:
            raise ValueError("Email must be a valid address")
        return email

    @field_validator("password", mode="before")
    @classmethod
    def _check_password(cls, value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise ValueError("Password is required")
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def _check_email(cls, value: Any) -> str:
        return _required_text(value, "Email").lower()

    @field_validator("password", mode="before")
    @classmethod
    def _check_password(cls, value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise ValueError("Password is required")
        return value


class TokenResponse(BaseModel):
    token: str


class LoginResponse(TokenResponse):
    name: str


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str


class ExpenseBase(BaseModel):
    category: str = Field(..., max_length=100)
    amount: Decimal
    description: Optional[str] = None

    @field_validator("category", mode="before")
    @classmethod
    def _check_category(cls, value: Any) -> str:
        return _required_text(value, "Category")

    @field_validator("amount", mode="before")
    @classmethod
    def _check_amount(cls, value: Any) -> Decimal:
        return positive_amount(value)

    @field_validator("description", mode="before")
    @classmethod
    def _check_description(cls, value: Any) -> Optional[str]:
        return _optional_text(value)


class ExpenseCreate(ExpenseBase):
    pass


class ExpenseUpdate(ExpenseBase):
    pass


class ExpenseRead(ORMModel):
    transaction_id: int
    user_id: int
    type: str
    category: str
    amount: Decimal
    description: Optional[str] = None
    date: datetime


class LoanBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    person_name: str = Field(
        ...,
        max_length=100,
        validation_alias=AliasChoices("person_name", "personName"),
    )
    type: str = Field(..., max_length=50)
    amount: Decimal
    description: str
    due_date: Optional[date] = Field(None, validation_alias=AliasChoices("due_date", "dueDate"))

    @field_validator("person_name", mode="before")
    @classmethod
    def _check_person_name(cls, value: Any) -> str:
        return _required_text(value, "Person name")

    @field_validator("type", mode="before")
    @classmethod
    def _check_type(cls, value: Any) -> str:
        return _required_text(value, "Loan type")

    @field_validator("description", mode="before")
    @classmethod
    def _check_description(cls, value: Any) -> str:
        return _required_text(value, "Description")

    @field_validator("amount", mode="before")
    @classmethod
    def _check_amount(cls, value: Any) -> Decimal:
        return positive_amount(value)

    @field_validator("due_date", mode="before")
    @classmethod
    def _blank_due_date(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class LoanCreate(LoanBase):
    status: LoanStatus = LoanStatus.PENDING


class LoanUpdate(LoanBase):
    status: Optional[LoanStatus] = None


class LoanRead(ORMModel):
    loan_id: int
    user_id: int
    person_name: str
    type: str
    amount: Decimal
    description: str
    status: LoanStatus
    due_date: Optional[date] = None
    date: datetime
    updated_at: datetime


class CategorySummary(BaseModel):
    category: str
    total: Decimal


class LoanTypeSummary(BaseModel):
    type: str
    outstanding: Decimal
    count: int


class SummaryRead(BaseModel):
    total_expense: Decimal
    by_category: List[CategorySummary]
    open_loans: List[LoanTypeSummary]
