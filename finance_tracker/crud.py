"""CRUD helper functions scoped to the owning user."""
from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from typing import List

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from . import models, schemas
from .errors import EntityNotFoundError, InputValidationError

CENT = Decimal("0.01")


def _as_decimal(value: object) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT)


def list_expenses(session: Session, user_id: int) -> List[models.Transaction]:
    stmt = (
        select(models.Transaction)
        .where(
            models.Transaction.user_id == user_id,
            models.Transaction.type == models.EXPENSE_TYPE,
        )
        .order_by(models.Transaction.date.desc(), models.Transaction.transaction_id.desc())
    )
    return list(session.scalars(stmt))


def get_expense(session: Session, user_id: int, expense_id: int) -> models.Transaction:
    stmt = select(models.Transaction).where(
        models.Transaction.transaction_id == expense_id,
        models.Transaction.user_id == user_id,
        models.Transaction.type == models.EXPENSE_TYPE,
    )
    expense = session.scalars(stmt).first()
    if expense is None:
        raise EntityNotFoundError("Transaction not found")
    return expense


def create_expense(session: Session, user_id: int, expense_in: schemas.ExpenseCreate) -> models.Transaction:
    expense = models.Transaction(user_id=user_id, type=models.EXPENSE_TYPE, **expense_in.model_dump())
    session.add(expense)
    session.flush()
    session.refresh(expense)
    return expense


def update_expense(
    session: Session,
    user_id: int,
    expense_id: int,
    update_in: schemas.ExpenseUpdate,
) -> models.Transaction:
    expense = get_expense(session, user_id, expense_id)
    for field, value in update_in.model_dump().items():
        setattr(expense, field, value)
    session.flush()
    session.refresh(expense)
    return expense


def delete_expense(session: Session, user_id: int, expense_id: int) -> None:
    expense = get_expense(session, user_id, expense_id)
    session.delete(expense)
    session.flush()


def list_loans(session: Session, user_id: int) -> List[models.Loan]:
    stmt = (
        select(models.Loan)
        .where(models.Loan.user_id == user_id)
        .order_by(models.Loan.date.desc(), models.Loan.loan_id.desc())
    )
    return list(session.scalars(stmt))


def get_loan(session: Session, user_id: int, loan_id: int) -> models.Loan:
    stmt = select(models.Loan).where(models.Loan.loan_id == loan_id, models.Loan.user_id == user_id)
    loan = session.scalars(stmt).first()
    if loan is None:
        raise EntityNotFoundError("Loan not found")
    return loan


def create_loan(session: Session, user_id: int, loan_in: schemas.LoanCreate) -> models.Loan:
    data = loan_in.model_dump()
    data["status"] = loan_in.status.value
    loan = models.Loan(user_id=user_id, **data)
    session.add(loan)
    session.flush()
    session.refresh(loan)
    return loan


def update_loan(session: Session, user_id: int, loan_id: int, update_in: schemas.LoanUpdate) -> models.Loan:
    loan = get_loan(session, user_id, loan_id)
    current = schemas.LoanStatus(loan.status)
    target = update_in.status or current
    if not current.can_become(target):
        raise InputValidationError(f"Cannot change loan status from {current.value} to {target.value}")

    # An omitted due date keeps the stored one; an explicit null clears it.
    data = update_in.model_dump(exclude={"status"}, exclude_unset=True)
    for field, value in data.items():
        setattr(loan, field, value)
    loan.status = target.value
    loan.updated_at = datetime.now(tz=UTC)
    session.flush()
    session.refresh(loan)
    return loan


def delete_loan(session: Session, user_id: int, loan_id: int) -> None:
    loan = get_loan(session, user_id, loan_id)
    session.delete(loan)
    session.flush()


def financial_summary(session: Session, user_id: int) -> schemas.SummaryRead:
    expense_filter = (
        models.Transaction.user_id == user_id,
        models.Transaction.type == models.EXPENSE_TYPE,
    )
    total_stmt = select(func.coalesce(func.sum(models.Transaction.amount), 0)).where(*expense_filter)
    total_value = _as_decimal(session.scalar(total_stmt))

    by_category_stmt = (
        select(
            models.Transaction.category,
            func.coalesce(func.sum(models.Transaction.amount), 0).label("total"),
        )
        .where(*expense_filter)
        .group_by(models.Transaction.category)
        .order_by(models.Transaction.category)
    )
    by_category = [
        schemas.CategorySummary(category=row.category, total=_as_decimal(row.total))
        for row in session.execute(by_category_stmt)
    ]

    open_loans_stmt = (
        select(
            models.Loan.type,
            func.coalesce(func.sum(models.Loan.amount), 0).label("outstanding"),
            func.count(models.Loan.loan_id).label("count"),
        )
        .where(
            models.Loan.user_id == user_id,
            models.Loan.status != schemas.LoanStatus.SETTLED.value,
        )
        .group_by(models.Loan.type)
        .order_by(models.Loan.type)
    )
    open_loans = [
        schemas.LoanTypeSummary(type=row.type, outstanding=_as_decimal(row.outstanding), count=row.count)
        for row in session.execute(open_loans_stmt)
    ]

    return schemas.SummaryRead(total_expense=total_value, by_category=by_category, open_loans=open_loans)
