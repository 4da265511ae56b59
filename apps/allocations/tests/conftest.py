import pytest
from datetime import date
from decimal import Decimal
from apps.budget.models import EnvelopeIncomeAllocation, Transaction, TransactionType


@pytest.fixture
def payday():
    return date(2025, 3, 14)


@pytest.fixture
def pay_transaction(user, checking_account, payday):
    """An incoming $2,000 salary payment."""
    return Transaction.objects.create(
        user=user,
        account=checking_account,
        amount=Decimal('2000.00'),
        occurred_at=payday,
        merchant_name='ACME LTD',
        description='ACME SALARY MAR',
        transaction_type=TransactionType.INCOME,
    )


@pytest.fixture
def salary_plan(user, salary, rent_envelope, groceries_envelope):
    """Salary commits $600 to rent and $200 to groceries every pay."""
    return [
        EnvelopeIncomeAllocation.objects.create(
            user=user,
            income_source=salary,
            envelope=rent_envelope,
            amount=Decimal('600.00'),
            priority=1,
        ),
        EnvelopeIncomeAllocation.objects.create(
            user=user,
            income_source=salary,
            envelope=groceries_envelope,
            amount=Decimal('200.00'),
            priority=2,
        ),
    ]
