"""
Unit tests for transfer scoring.

Scoring is pure, so these use unsaved model instances and never touch
the database.
"""

import uuid
from datetime import date, timedelta
from decimal import Decimal

from apps.budget.models import AccountType, BankAccount, Transaction
from apps.transfers.services.scoring import (
    confidence_label,
    find_candidates,
    has_transfer_keyword,
    is_inverse_amount,
    mentions_account,
    score_transfer_pair,
)

DAY = date(2025, 3, 10)


def account(name, nickname=''):
    return BankAccount(
        id=uuid.uuid4(),
        name=name,
        nickname=nickname,
        account_type=AccountType.CHECKING,
    )


def row(acct, amount, days=0, merchant_name='', description=''):
    return Transaction(
        id=uuid.uuid4(),
        account=acct,
        amount=Decimal(amount),
        occurred_at=DAY + timedelta(days=days),
        merchant_name=merchant_name,
        description=description,
    )


class TestConfidenceLabel:

    def test_thresholds(self):
        assert confidence_label(100) == 'high'
        assert confidence_label(80) == 'high'
        assert confidence_label(79) == 'medium'
        assert confidence_label(60) == 'medium'
        assert confidence_label(59) == 'low'
        assert confidence_label(0) == 'low'


class TestAmountMatching:

    def test_exact_inverse(self):
        assert is_inverse_amount(-10000, 10000)

    def test_one_cent_tolerance(self):
        assert is_inverse_amount(-10000, 10001)
        assert is_inverse_amount(-10000, 9999)

    def test_two_cents_never_match(self):
        assert not is_inverse_amount(-10000, 10002)
        assert not is_inverse_amount(-10000, 9998)

    def test_same_sign_or_zero_never_match(self):
        assert not is_inverse_amount(10000, 10000)
        assert not is_inverse_amount(0, 0)


class TestScoreTransferPair:

    def setup_method(self):
        self.checking = account('Everyday')
        self.savings = account('Rainy Day Saver', nickname='Savings')

    def test_exact_amount_one_day_apart_is_high(self):
        result = score_transfer_pair(
            row(self.checking, '-100.00'),
            row(self.savings, '100.00', days=1),
        )

        assert result.amount_points == 50
        assert result.date_points == 35
        assert result.text_points == 0
        assert result.score == 85
        assert result.label == 'high'

    def test_same_day_exact_scores_ninety(self):
        result = score_transfer_pair(
            row(self.checking, '-250.00'),
            row(self.savings, '250.00'),
        )
        assert result.score == 90

    def test_cent_off_three_days_apart_is_low(self):
        result = score_transfer_pair(
            row(self.checking, '-100.00'),
            row(self.savings, '100.01', days=3),
        )

        assert result.amount_points == 40
        assert result.date_points == 15
        assert result.score == 55
        assert result.label == 'low'

    def test_text_hint_adds_points(self):
        result = score_transfer_pair(
            row(self.checking, '-100.00', description='TFR to savings'),
            row(self.savings, '100.00', days=3),
        )

        assert result.text_points == 10
        assert result.score == 75
        assert result.label == 'medium'

    def test_best_possible_pair_scores_100(self):
        result = score_transfer_pair(
            row(self.checking, '-100.00', description='transfer'),
            row(self.savings, '100.00'),
        )
        assert result.score == 100

    def test_outside_date_window_scores_no_date_points(self):
        result = score_transfer_pair(
            row(self.checking, '-100.00'),
            row(self.savings, '100.00', days=5),
        )

        assert result.date_points == 0
        assert result.days_apart == 5


class TestTextHints:

    def test_keywords_match_whole_words(self):
        assert has_transfer_keyword(row(account('A'), '-5.00', merchant_name='Internal XFER'))
        assert has_transfer_keyword(row(account('A'), '-5.00', description='Sweep to savings'))
        assert not has_transfer_keyword(row(account('A'), '-5.00', merchant_name='Transferwise Ltd'))

    def test_mentions_account_by_name_or_nickname(self):
        savings = account('Rainy Day Saver', nickname='Savings')

        assert mentions_account(row(account('A'), '-5.00', description='to RAINY DAY SAVER'), savings)
        assert mentions_account(row(account('A'), '-5.00', description='savings top up'), savings)
        assert not mentions_account(row(account('A'), '-5.00', description='coffee'), savings)

    def test_short_names_are_ignored(self):
        short = account('CC')
        assert not mentions_account(row(account('A'), '-5.00', description='cc payment'), short)


class TestFindCandidates:

    def setup_method(self):
        self.checking = account('Everyday')
        self.savings = account('Rainy Day Saver', nickname='Savings')
        self.bills = account('Bills')

    def test_filters_and_ranks(self):
        source = row(self.checking, '-100.00')
        best = row(self.savings, '100.00')
        later = row(self.bills, '100.00', days=2)
        same_account = row(self.checking, '100.00')
        too_far = row(self.savings, '100.00', days=4)
        wrong_amount = row(self.savings, '100.02')
        same_sign = row(self.savings, '-100.00')

        matches = find_candidates(
            source,
            [later, same_account, too_far, wrong_amount, same_sign, best, source],
            window_days=3,
        )

        assert [partner for partner, _ in matches] == [best, later]
        assert matches[0][1].score > matches[1][1].score

    def test_linked_partners_are_skipped(self):
        source = row(self.checking, '-100.00')
        taken = row(self.savings, '100.00')
        taken.linked_transaction_id = uuid.uuid4()

        assert find_candidates(source, [taken]) == []

    def test_ties_break_on_id(self):
        source = row(self.checking, '-100.00')
        first = row(self.savings, '100.00', days=1)
        second = row(self.bills, '100.00', days=-1)

        matches = find_candidates(source, [first, second])

        expected = sorted([first, second], key=lambda partner: str(partner.id))
        assert [partner for partner, _ in matches] == expected
