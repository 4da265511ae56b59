import pytest
from decimal import Decimal
from apps.budget.models import AccountType, BankAccount
from apps.debts.payoff import CardDebt


@pytest.fixture
def two_cards():
    """Card A $1000 @ 24% (min $30) and card B $500 @ 12% (min $20)."""
    return [
        CardDebt(account_id=None, name='Card A', balance=Decimal('1000.00'),
                 apr=Decimal('24.00'), minimum_payment=Decimal('30.00')),
        CardDebt(account_id=None, name='Card B', balance=Decimal('500.00'),
                 apr=Decimal('12.00'), minimum_payment=Decimal('20.00')),
    ]


@pytest.fixture
def visa_account(user):
    return BankAccount.objects.create(
        user=user,
        name='Visa',
        account_type=AccountType.CREDIT_CARD,
        current_balance=Decimal('-1000.00'),
        apr=Decimal('24.00'),
        minimum_payment=Decimal('30.00'),
    )


@pytest.fixture
def car_loan_account(user):
    return BankAccount.objects.create(
        user=user,
        name='Car Loan',
        account_type=AccountType.DEBT,
        current_balance=Decimal('-500.00'),
        apr=Decimal('12.00'),
    )
