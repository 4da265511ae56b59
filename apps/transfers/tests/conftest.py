import pytest
from datetime import timedelta
from decimal import Decimal
from django.utils import timezone
from apps.budget.models import Transaction, TransactionType


@pytest.fixture
def today():
    return timezone.localdate()


@pytest.fixture
def make_transaction(user):
    """Factory for the owner's transactions; dates are offsets from today."""
    def _make(account, amount, days_ago=0, merchant_name='', description='', **extra):
        amount = Decimal(str(amount))
        extra.setdefault(
            'transaction_type',
            TransactionType.INCOME if amount >= 0 else TransactionType.EXPENSE,
        )
        return Transaction.objects.create(
            user=user,
            account=account,
            amount=amount,
            occurred_at=timezone.localdate() - timedelta(days=days_ago),
            merchant_name=merchant_name,
            description=description,
            **extra,
        )
    return _make


@pytest.fixture
def outgoing(make_transaction, checking_account):
    """$100 leaving checking two days ago."""
    return make_transaction(checking_account, '-100.00', days_ago=2, merchant_name='Online payment')


@pytest.fixture
def incoming(make_transaction, savings_account):
    """$100 landing in savings a day later."""
    return make_transaction(savings_account, '100.00', days_ago=1, merchant_name='Deposit')
