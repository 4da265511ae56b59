import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.budget.models import (
    AccountType,
    BankAccount,
    Envelope,
    EnvelopePriority,
    IncomeSource,
    PayCycle,
)


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def user(db):
    """Create and return the budget owner used by most tests."""
    return User.objects.create_user(
        email='owner@example.com',
        password='TestPass123!',
        display_name='Budget Owner',
    )


@pytest.fixture
def other_user(db):
    """Create and return a second user whose rows must stay invisible."""
    return User.objects.create_user(
        email='other@example.com',
        password='TestPass123!',
        display_name='Other User',
    )


@pytest.fixture
def authenticated_client(api_client, user):
    """Return API client authenticated as the budget owner."""
    refresh = RefreshToken.for_user(user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def other_client(user, other_user):
    """Return a separate API client authenticated as the other user."""
    client = APIClient()
    refresh = RefreshToken.for_user(other_user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


# =============================================================================
# Budget rows
# =============================================================================

@pytest.fixture
def checking_account(user):
    return BankAccount.objects.create(
        user=user,
        name='Everyday',
        account_type=AccountType.CHECKING,
        current_balance=Decimal('800.00'),
    )


@pytest.fixture
def savings_account(user):
    return BankAccount.objects.create(
        user=user,
        name='Rainy Day Saver',
        nickname='Savings',
        account_type=AccountType.SAVINGS,
        current_balance=Decimal('0.00'),
    )


@pytest.fixture
def salary(user):
    """Fortnightly salary of $2,000."""
    return IncomeSource.objects.create(
        user=user,
        name='Acme Salary',
        amount=Decimal('2000.00'),
        pay_cycle=PayCycle.FORTNIGHTLY,
    )


@pytest.fixture
def rent_envelope(user):
    return Envelope.objects.create(
        user=user,
        name='Rent',
        priority=EnvelopePriority.ESSENTIAL,
        target_amount=Decimal('1200.00'),
        current_amount=Decimal('0.00'),
        pay_cycle_amount=Decimal('600.00'),
    )


@pytest.fixture
def groceries_envelope(user):
    return Envelope.objects.create(
        user=user,
        name='Groceries',
        priority=EnvelopePriority.ESSENTIAL,
        target_amount=Decimal('400.00'),
        current_amount=Decimal('0.00'),
        pay_cycle_amount=Decimal('200.00'),
    )


@pytest.fixture
def surplus_envelope(user):
    return Envelope.objects.create(
        user=user,
        name='Surplus',
        is_surplus_envelope=True,
    )


@pytest.fixture
def cc_holding_envelope(user):
    return Envelope.objects.create(
        user=user,
        name='Credit Card Holding',
        is_cc_holding=True,
    )
