"""
Service layer tests for transfers app.

Tests cover:
- Candidate detection and suggested actions
- Greedy scanning and auto-linking
- Linking / unlinking and the money-conservation side effects
- Pending transfer flags
"""

import pytest
import uuid
from decimal import Decimal
from unittest.mock import patch

from django.db.models import Sum

from apps.budget.models import BankAccount, AccountType, Transaction, TransactionType
from apps.transfers.services import (
    detect_for_transaction,
    scan_for_transfers,
    auto_link_transfers,
    link_transfer,
    unlink_transfer,
    list_pending,
    mark_transfer_pending,
    clear_transfer_pending,
)
from apps.transfers.services.exceptions import (
    AlreadyLinkedError,
    NotLinkedError,
    TransactionNotFoundError,
    TransferValidationError,
)


def account_total(account):
    return Transaction.objects.filter(account=account).aggregate(total=Sum('amount'))['total']


# =============================================================================
# Detection
# =============================================================================

@pytest.mark.django_db
class TestDetectForTransaction:

    def test_exact_pair_one_day_apart_suggests_auto_link(self, user, outgoing, incoming):
        result = detect_for_transaction(user=user, transaction_id=outgoing.id)

        assert result['suggested_action'] == 'auto_link'
        assert result['is_likely_transfer'] is True
        assert result['highest_confidence'] == 85
        assert [c['transaction_id'] for c in result['candidates']] == [incoming.id]
        assert result['candidates'][0]['confidence'] == 'high'

    def test_two_cents_off_is_never_a_candidate(self, user, make_transaction, checking_account, savings_account):
        source = make_transaction(checking_account, '-100.00', days_ago=1)
        make_transaction(savings_account, '100.02', days_ago=1)

        result = detect_for_transaction(user=user, transaction_id=source.id)

        assert result['candidates'] == []
        assert result['suggested_action'] == 'treat_as_expense'

    def test_weak_candidate_prompts_user(self, user, make_transaction, checking_account, savings_account):
        source = make_transaction(checking_account, '-100.00', days_ago=4)
        make_transaction(savings_account, '100.01', days_ago=1)

        result = detect_for_transaction(user=user, transaction_id=source.id)

        assert result['highest_confidence'] == 55
        assert result['suggested_action'] == 'prompt_user'
        assert result['is_likely_transfer'] is False

    def test_keyword_without_candidate_suggests_pending(self, user, make_transaction, checking_account):
        source = make_transaction(checking_account, '40.00', description='TFR from joint account')

        result = detect_for_transaction(user=user, transaction_id=source.id)

        assert result['suggested_action'] == 'mark_pending'

    def test_outgoing_keyword_without_candidate_is_an_expense(self, user, make_transaction, checking_account):
        source = make_transaction(checking_account, '-40.00', description='TFR to joint account')

        result = detect_for_transaction(user=user, transaction_id=source.id)

        assert result['suggested_action'] == 'treat_as_expense'

    def test_other_users_rows_are_ignored(self, user, other_user, outgoing, incoming):
        other_account = BankAccount.objects.create(
            user=other_user, name='Theirs', account_type=AccountType.SAVINGS,
        )
        Transaction.objects.create(
            user=other_user,
            account=other_account,
            amount=Decimal('100.00'),
            occurred_at=outgoing.occurred_at,
        )

        result = detect_for_transaction(user=user, transaction_id=outgoing.id)

        assert len(result['candidates']) == 1

    def test_not_found(self, other_user, outgoing):
        with pytest.raises(TransactionNotFoundError):
            detect_for_transaction(user=other_user, transaction_id=outgoing.id)


# =============================================================================
# Scanning
# =============================================================================

@pytest.mark.django_db
class TestScanForTransfers:

    def test_greedy_uses_each_row_once(self, user, make_transaction, checking_account, savings_account):
        bills = BankAccount.objects.create(user=user, name='Bills', account_type=AccountType.TRANSACTION)
        out = make_transaction(checking_account, '-50.00', days_ago=3)
        same_day = make_transaction(savings_account, '50.00', days_ago=3)
        make_transaction(bills, '50.00', days_ago=2)

        pairs = scan_for_transfers(user=user)

        assert len(pairs) == 1
        assert pairs[0]['outgoing_id'] == out.id
        assert pairs[0]['incoming_id'] == same_day.id
        assert pairs[0]['score'] == 90

    def test_best_pairs_first(self, user, make_transaction, checking_account, savings_account):
        make_transaction(checking_account, '-20.00', days_ago=5)
        make_transaction(savings_account, '20.00', days_ago=3)
        make_transaction(checking_account, '-80.00', days_ago=1)
        make_transaction(savings_account, '80.00', days_ago=1)

        pairs = scan_for_transfers(user=user)

        assert [pair['score'] for pair in pairs] == [90, 75]

    def test_window_excludes_old_rows(self, user, make_transaction, checking_account, savings_account):
        make_transaction(checking_account, '-20.00', days_ago=40)
        make_transaction(savings_account, '20.00', days_ago=40)

        assert scan_for_transfers(user=user) == []
        assert len(scan_for_transfers(user=user, window_days=60)) == 1

    def test_linked_rows_are_not_rescanned(self, user, outgoing, incoming):
        link_transfer(user=user, first_id=outgoing.id, second_id=incoming.id)

        assert scan_for_transfers(user=user) == []


@pytest.mark.django_db
class TestAutoLink:

    def test_links_only_high_confidence(self, user, make_transaction, checking_account, savings_account):
        strong_out = make_transaction(checking_account, '-80.00', days_ago=1)
        strong_in = make_transaction(savings_account, '80.00', days_ago=1)
        weak_out = make_transaction(checking_account, '-20.00', days_ago=5)
        weak_in = make_transaction(savings_account, '20.01', days_ago=2)

        linked = auto_link_transfers(user=user)

        assert len(linked) == 1
        strong_out.refresh_from_db()
        weak_out.refresh_from_db()
        assert strong_out.linked_transaction_id == strong_in.id
        assert weak_out.linked_transaction_id is None
        assert not Transaction.objects.get(id=weak_in.id).is_linked

    def test_lost_race_is_skipped(self, user, outgoing, incoming):
        with patch(
            'apps.transfers.services.matching.link_transfer',
            side_effect=AlreadyLinkedError('taken'),
        ):
            linked = auto_link_transfers(user=user)

        assert linked == []


# =============================================================================
# Linking
# =============================================================================

@pytest.mark.django_db
class TestLinkTransfer:

    def test_link_sets_both_sides(self, user, outgoing, incoming):
        first, second = link_transfer(user=user, first_id=outgoing.id, second_id=incoming.id)

        assert first.linked_transaction_id == second.id
        assert second.linked_transaction_id == first.id
        assert first.transaction_type == TransactionType.TRANSFER
        assert second.transaction_type == TransactionType.TRANSFER
        assert first.pre_transfer_type == TransactionType.EXPENSE
        assert second.pre_transfer_type == TransactionType.INCOME

    def test_link_keeps_account_totals_and_leaves_envelopes(
        self, user, outgoing, incoming, checking_account, savings_account, groceries_envelope
    ):
        Transaction.objects.filter(id=outgoing.id).update(envelope=groceries_envelope)
        checking_before = account_total(checking_account)
        savings_before = account_total(savings_account)
        assert Transaction.objects.for_user(user).counting_toward_envelopes().count() == 1

        link_transfer(user=user, first_id=outgoing.id, second_id=incoming.id)

        assert account_total(checking_account) == checking_before
        assert account_total(savings_account) == savings_before
        assert Transaction.objects.for_user(user).counting_toward_envelopes().count() == 0
        assert Transaction.objects.get(id=outgoing.id).envelope is None

    def test_relinking_same_pair_is_idempotent(self, user, outgoing, incoming):
        link_transfer(user=user, first_id=outgoing.id, second_id=incoming.id)
        first, second = link_transfer(user=user, first_id=outgoing.id, second_id=incoming.id)

        assert first.linked_transaction_id == incoming.id
        assert second.linked_transaction_id == outgoing.id

    def test_third_row_cannot_join(self, user, outgoing, incoming, make_transaction, savings_account):
        other = make_transaction(savings_account, '100.00', days_ago=2)
        link_transfer(user=user, first_id=outgoing.id, second_id=incoming.id)

        with pytest.raises(AlreadyLinkedError):
            link_transfer(user=user, first_id=outgoing.id, second_id=other.id)

    def test_stale_read_loses_the_claim(self, user, outgoing, incoming, make_transaction, savings_account):
        """A request that read both rows before another link landed must not overwrite it."""
        other = make_transaction(savings_account, '100.00', days_ago=2)
        stale_outgoing = Transaction.objects.get(id=outgoing.id)
        stale_other = Transaction.objects.get(id=other.id)

        link_transfer(user=user, first_id=outgoing.id, second_id=incoming.id)

        with patch(
            'apps.transfers.services.linking._owned',
            side_effect=[stale_outgoing, stale_other],
        ):
            with pytest.raises(AlreadyLinkedError):
                link_transfer(user=user, first_id=outgoing.id, second_id=other.id)

        other.refresh_from_db()
        outgoing.refresh_from_db()
        assert other.linked_transaction_id is None
        assert other.transaction_type == TransactionType.INCOME
        assert outgoing.linked_transaction_id == incoming.id

    def test_same_account_rejected(self, user, make_transaction, checking_account):
        out = make_transaction(checking_account, '-10.00')
        back = make_transaction(checking_account, '10.00')

        with pytest.raises(TransferValidationError):
            link_transfer(user=user, first_id=out.id, second_id=back.id)

    def test_same_sign_rejected(self, user, make_transaction, checking_account, savings_account):
        first = make_transaction(checking_account, '10.00')
        second = make_transaction(savings_account, '10.00')

        with pytest.raises(TransferValidationError):
            link_transfer(user=user, first_id=first.id, second_id=second.id)

    def test_self_link_rejected(self, user, outgoing):
        with pytest.raises(TransferValidationError):
            link_transfer(user=user, first_id=outgoing.id, second_id=outgoing.id)

    def test_other_users_row_not_found(self, other_user, outgoing, incoming):
        with pytest.raises(TransactionNotFoundError):
            link_transfer(user=other_user, first_id=outgoing.id, second_id=incoming.id)


@pytest.mark.django_db
class TestUnlinkTransfer:

    def test_unlink_restores_previous_types(self, user, outgoing, incoming):
        link_transfer(user=user, first_id=outgoing.id, second_id=incoming.id)

        first, second = unlink_transfer(user=user, transaction_id=incoming.id)

        by_id = {row.id: row for row in (first, second)}
        assert by_id[outgoing.id].transaction_type == TransactionType.EXPENSE
        assert by_id[incoming.id].transaction_type == TransactionType.INCOME
        assert by_id[outgoing.id].linked_transaction_id is None
        assert by_id[incoming.id].linked_transaction_id is None
        assert not by_id[outgoing.id].type_needs_review

    def test_unknown_previous_type_is_flagged(self, user, make_transaction, checking_account, savings_account):
        out = make_transaction(checking_account, '-30.00', transaction_type=TransactionType.TRANSFER)
        back = make_transaction(savings_account, '30.00', transaction_type=TransactionType.TRANSFER)
        link_transfer(user=user, first_id=out.id, second_id=back.id)

        unlink_transfer(user=user, transaction_id=out.id)

        out.refresh_from_db()
        back.refresh_from_db()
        assert out.transaction_type == TransactionType.EXPENSE
        assert back.transaction_type == TransactionType.INCOME
        assert out.type_needs_review and back.type_needs_review

    def test_unlinking_unlinked_row_fails(self, user, outgoing):
        with pytest.raises(NotLinkedError):
            unlink_transfer(user=user, transaction_id=outgoing.id)

    def test_unknown_id(self, user):
        with pytest.raises(TransactionNotFoundError):
            unlink_transfer(user=user, transaction_id=uuid.uuid4())


# =============================================================================
# Pending transfers
# =============================================================================

@pytest.mark.django_db
class TestPendingTransfers:

    def test_mark_clears_envelope(self, user, outgoing, groceries_envelope):
        Transaction.objects.filter(id=outgoing.id).update(envelope=groceries_envelope)

        row = mark_transfer_pending(user=user, transaction_id=outgoing.id)

        assert row.transfer_pending is True
        assert row.envelope_id is None
        assert list(list_pending(user=user)) == [row]
        assert not Transaction.objects.for_user(user).counting_toward_envelopes().exists()

    def test_linked_row_cannot_be_marked(self, user, outgoing, incoming):
        link_transfer(user=user, first_id=outgoing.id, second_id=incoming.id)

        with pytest.raises(AlreadyLinkedError):
            mark_transfer_pending(user=user, transaction_id=outgoing.id)

    def test_linking_clears_pending(self, user, outgoing, incoming):
        mark_transfer_pending(user=user, transaction_id=outgoing.id)

        link_transfer(user=user, first_id=outgoing.id, second_id=incoming.id)

        assert not list_pending(user=user).exists()

    def test_clear(self, user, outgoing):
        mark_transfer_pending(user=user, transaction_id=outgoing.id)

        row = clear_transfer_pending(user=user, transaction_id=outgoing.id)

        assert row.transfer_pending is False
        assert not list_pending(user=user).exists()

    def test_other_user_not_found(self, other_user, outgoing):
        with pytest.raises(TransactionNotFoundError):
            mark_transfer_pending(user=other_user, transaction_id=outgoing.id)
        with pytest.raises(TransactionNotFoundError):
            clear_transfer_pending(user=other_user, transaction_id=outgoing.id)
