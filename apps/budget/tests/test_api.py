import pytest
from datetime import date
from decimal import Decimal
from django.db import IntegrityError
from django.urls import reverse
from rest_framework import status
from apps.budget.models import BankAccount, Envelope, Transaction, TransactionType
from apps.transfers.services import link_transfer, unlink_transfer


# =============================================================================
# Accounts
# =============================================================================

@pytest.mark.django_db
class TestBankAccountEndpoints:
    """Tests for /api/budget/accounts/"""

    def test_list_only_own_accounts(self, authenticated_client, other_user, checking_account):
        """Other users' accounts are not listed."""
        BankAccount.objects.create(user=other_user, name='Not mine')

        url = reverse('budget:account-list')
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert response.data['results'][0]['name'] == 'Everyday'
        assert response.data['results'][0]['current_balance'] == '800.00'

    def test_create_account(self, authenticated_client, user):
        url = reverse('budget:account-list')
        response = authenticated_client.post(url, {
            'name': 'Bills',
            'nickname': 'Bills Account',
            'account_type': 'transaction',
            'current_balance': '150.25',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['display_name'] == 'Bills Account'
        assert BankAccount.objects.get(id=response.data['id']).user == user

    def test_other_users_account_is_404(self, other_client, checking_account):
        url = reverse('budget:account-detail', kwargs={'pk': checking_account.id})
        response = other_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_unauthenticated(self, api_client):
        response = api_client.get(reverse('budget:account-list'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# Envelopes
# =============================================================================

@pytest.mark.django_db
class TestEnvelopeEndpoints:
    """Tests for /api/budget/envelopes/"""

    def test_deficit_is_reported(self, authenticated_client, rent_envelope):
        url = reverse('budget:envelope-detail', kwargs={'pk': rent_envelope.id})
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['deficit'] == '1200.00'

    def test_surplus_and_cc_holding_are_exclusive(self, authenticated_client):
        url = reverse('budget:envelope-list')
        response = authenticated_client.post(url, {
            'name': 'Confused',
            'is_surplus_envelope': True,
            'is_cc_holding': True,
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_cannot_flag_surplus_envelope_as_cc_holding(self, authenticated_client, surplus_envelope):
        url = reverse('budget:envelope-detail', kwargs={'pk': surplus_envelope.id})
        response = authenticated_client.patch(url, {'is_cc_holding': True}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert Envelope.objects.get(id=surplus_envelope.id).is_cc_holding is False


# =============================================================================
# Income sources
# =============================================================================

@pytest.mark.django_db
class TestIncomeSourceEndpoints:
    """Tests for /api/budget/income-sources/"""

    def test_create(self, authenticated_client):
        url = reverse('budget:income-source-list')
        response = authenticated_client.post(url, {
            'name': 'Side gig',
            'amount': '300.00',
            'pay_cycle': 'weekly',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['is_active'] is True

    def test_negative_amount_rejected(self, authenticated_client):
        url = reverse('budget:income-source-list')
        response = authenticated_client.post(url, {
            'name': 'Refund',
            'amount': '-10.00',
            'pay_cycle': 'monthly',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST


# =============================================================================
# Transactions
# =============================================================================

@pytest.fixture
def lunch(user, checking_account):
    return Transaction.objects.create(
        user=user,
        account=checking_account,
        amount=Decimal('-4.50'),
        occurred_at=date(2025, 3, 3),
        merchant_name='Corner Cafe',
    )


@pytest.mark.django_db
class TestTransactionEndpoints:
    """Tests for /api/budget/transactions/"""

    def test_create(self, authenticated_client, checking_account, groceries_envelope):
        url = reverse('budget:transaction-list')
        response = authenticated_client.post(url, {
            'account': str(checking_account.id),
            'amount': '-62.10',
            'occurred_at': '2025-03-04',
            'merchant_name': 'Supermarket',
            'envelope': str(groceries_envelope.id),
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['transaction_type'] == TransactionType.EXPENSE
        assert response.data['linked_transaction'] is None

    def test_create_on_other_users_account(self, other_client, checking_account):
        url = reverse('budget:transaction-list')
        response = other_client.post(url, {
            'account': str(checking_account.id),
            'amount': '-1.00',
            'occurred_at': '2025-03-04',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_amount_cannot_change(self, authenticated_client, lunch):
        url = reverse('budget:transaction-detail', kwargs={'pk': lunch.id})
        response = authenticated_client.patch(url, {'amount': '4.50'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert Transaction.objects.get(id=lunch.id).amount == Decimal('-4.50')

    def test_classification_can_change(self, authenticated_client, lunch, groceries_envelope):
        url = reverse('budget:transaction-detail', kwargs={'pk': lunch.id})
        response = authenticated_client.patch(url, {
            'envelope': str(groceries_envelope.id),
            'description': 'Team lunch',
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert Transaction.objects.get(id=lunch.id).envelope == groceries_envelope

    def test_pending_transfer_cannot_take_envelope(self, authenticated_client, lunch, groceries_envelope):
        Transaction.objects.filter(id=lunch.id).update(transfer_pending=True)

        url = reverse('budget:transaction-detail', kwargs={'pk': lunch.id})
        response = authenticated_client.patch(url, {'envelope': str(groceries_envelope.id)}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_linked_flag_is_read_only(self, authenticated_client, lunch, user, savings_account):
        partner = Transaction.objects.create(
            user=user, account=savings_account, amount=Decimal('4.50'), occurred_at=date(2025, 3, 3),
        )

        url = reverse('budget:transaction-detail', kwargs={'pk': lunch.id})
        authenticated_client.patch(url, {'linked_transaction': str(partner.id)}, format='json')

        assert Transaction.objects.get(id=lunch.id).linked_transaction_id is None

    def test_list_filters(self, authenticated_client, lunch, user, savings_account):
        Transaction.objects.create(
            user=user, account=savings_account, amount=Decimal('10.00'), occurred_at=date(2025, 2, 1),
        )

        url = reverse('budget:transaction-list')
        response = authenticated_client.get(url, {'date_from': '2025-03-01'})

        assert response.status_code == status.HTTP_200_OK
        assert [row['id'] for row in response.data['results']] == [str(lunch.id)]

    def test_list_includes_pending_without_filter(self, authenticated_client, lunch):
        Transaction.objects.filter(id=lunch.id).update(transfer_pending=True)

        response = authenticated_client.get(reverse('budget:transaction-list'))

        assert response.data['count'] == 1

    def test_invalid_date_range(self, authenticated_client):
        url = reverse('budget:transaction-list')
        response = authenticated_client.get(url, {'date_from': '2025-03-10', 'date_to': '2025-03-01'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_pending_transfer_with_envelope_is_rejected_by_the_database(self, lunch, groceries_envelope):
        lunch.transfer_pending = True
        lunch.envelope = groceries_envelope

        with pytest.raises(IntegrityError):
            lunch.save()


# =============================================================================
# Deleting linked transfers
# =============================================================================

@pytest.fixture
def linked_pair(user, lunch, savings_account):
    partner = Transaction.objects.create(
        user=user, account=savings_account, amount=Decimal('4.50'), occurred_at=date(2025, 3, 3),
    )
    return link_transfer(user=user, first_id=lunch.id, second_id=partner.id)


@pytest.mark.django_db
class TestDeleteLinkedTransfer:
    """A linked pair only comes apart through an explicit unlink."""

    def test_cannot_delete_one_side(self, authenticated_client, linked_pair):
        outgoing, incoming = linked_pair

        url = reverse('budget:transaction-detail', kwargs={'pk': incoming.id})
        response = authenticated_client.delete(url)

        assert response.status_code == status.HTTP_409_CONFLICT
        outgoing.refresh_from_db()
        assert outgoing.linked_transaction_id == incoming.id
        assert Transaction.objects.filter(id=incoming.id).exists()

    def test_delete_after_unlink(self, authenticated_client, user, linked_pair):
        outgoing, incoming = linked_pair
        unlink_transfer(user=user, transaction_id=outgoing.id)

        url = reverse('budget:transaction-detail', kwargs={'pk': incoming.id})
        response = authenticated_client.delete(url)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        outgoing.refresh_from_db()
        assert outgoing.transaction_type == TransactionType.EXPENSE

    def test_cannot_delete_account_holding_a_linked_side(self, authenticated_client, savings_account, linked_pair):
        url = reverse('budget:account-detail', kwargs={'pk': savings_account.id})
        response = authenticated_client.delete(url)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert BankAccount.objects.filter(id=savings_account.id).exists()
        assert Transaction.objects.linked_transfers().count() == 2

    def test_delete_unlinked_transaction(self, authenticated_client, lunch):
        url = reverse('budget:transaction-detail', kwargs={'pk': lunch.id})
        response = authenticated_client.delete(url)

        assert response.status_code == status.HTTP_204_NO_CONTENT
