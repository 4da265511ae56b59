"""
Reconciliation Module
=====================

This module checks the money-conservation identity between where money
physically sits (bank accounts) and what it is earmarked for (envelopes):

    Sum(bank accounts) = Sum(envelopes) - CC holding + surplus

Rearranged, the unallocated surplus is::

    surplus = bank accounts - envelopes + CC holding

The CC holding envelope is money still in the bank but already spent on a
credit card, so it is added back.

Functions:
    build_reconciliation_report: Full breakdown plus balanced/discrepancy flags.

Example:
    Checking the books::

        from apps.reconciliation.reconciliation import build_reconciliation_report

        report = build_reconciliation_report(user=user)
        if not report['is_balanced']:
            print(report['explanation'])

Note:
    This module is read-only. A failed identity is reported, never
    corrected; fixing it is a manual action.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional

from django.conf import settings
from django.db.models import Count, Max, Sum

from apps.accounts.models import User
from apps.budget.models import (
    BANK_ACCOUNT_TYPES,
    DEBT_ACCOUNT_TYPES,
    BankAccount,
    Envelope,
    Transaction,
)
from apps.budget.money import from_cents, to_cents, format_money

logger = logging.getLogger(__name__)

# Discrepancies under this many cents are shown as a warning, not an error
WARNING_THRESHOLD_CENTS = 1000


def epsilon_cents() -> int:
    return to_cents(getattr(settings, 'RECONCILIATION_EPSILON', Decimal('0.01')))


def account_breakdown(user: User) -> List[Dict]:
    """
    Summarize every bank account with its transaction activity.

    Credit-card and debt accounts are left out; they are liabilities, not
    places where envelope money sits.

    Returns:
        list[dict]: One entry per bank account, each containing:
            - account_id (UUID)
            - display_name (str): Nickname, falling back to the name.
            - account_name (str)
            - account_type (str)
            - institution (str)
            - current_balance (Decimal)
            - transaction_count (int)
            - last_transaction_date (date | None)
    """
    accounts = (
        BankAccount.objects
        .filter(user=user, account_type__in=BANK_ACCOUNT_TYPES)
        .annotate(
            transaction_count=Count('transactions'),
            last_transaction_date=Max('transactions__occurred_at'),
        )
        .order_by('name')
    )

    return [
        {
            'account_id': account.id,
            'display_name': account.display_name,
            'account_name': account.name,
            'account_type': account.account_type,
            'institution': account.institution,
            'current_balance': account.current_balance,
            'transaction_count': account.transaction_count,
            'last_transaction_date': account.last_transaction_date,
        }
        for account in accounts
    ]


def envelope_breakdown(user: User) -> List[Dict]:
    """
    Summarize every envelope with the spending that counts toward it.

    ``activity`` sums only transactions that count toward envelopes, so
    linked and pending transfers never show up as spending.
    """
    activity = dict(
        Transaction.objects
        .for_user(user)
        .counting_toward_envelopes()
        .values('envelope_id')
        .annotate(total=Sum('amount'))
        .values_list('envelope_id', 'total')
    )

    return [
        {
            'envelope_id': envelope.id,
            'name': envelope.name,
            'current_amount': envelope.current_amount,
            'target_amount': envelope.target_amount,
            'is_cc_holding': envelope.is_cc_holding,
            'is_surplus_envelope': envelope.is_surplus_envelope,
            'activity': activity.get(envelope.id) or Decimal('0.00'),
        }
        for envelope in Envelope.objects.filter(user=user).order_by('name')
    ]


def explain(discrepancy_cents: int, balanced: bool, account_count: int) -> str:
    if balanced:
        if account_count == 1:
            return "Your account is balanced with your envelope allocations."
        return f"All {account_count} accounts are balanced with your envelope allocations."
    if discrepancy_cents > 0:
        return (
            f"You have {format_money(discrepancy_cents)} more in your accounts than expected. "
            "This could be unallocated income."
        )
    return (
        f"Your envelopes expect {format_money(-discrepancy_cents)} more than is in your accounts. "
        "Review recent transactions."
    )


def status_for(discrepancy_cents: int, balanced: bool) -> str:
    if balanced:
        return 'balanced'
    if abs(discrepancy_cents) < WARNING_THRESHOLD_CENTS:
        return 'warning'
    return 'error'


def build_reconciliation_report(*, user: User, expected_surplus: Optional[Decimal] = None) -> Dict:
    """
    Build the reconciliation report for the caller.

    Args:
        user (User): Owner of the accounts and envelopes.
        expected_surplus (Decimal, optional): The surplus the caller
            believes is unallocated. When given, the discrepancy is the
            difference between the actual and the expected surplus.
            When omitted, only a negative surplus (envelopes holding more
            than the accounts) counts as a discrepancy.

    Returns:
        dict: A dictionary containing:
            - accounts (list[dict]): See ``account_breakdown``.
            - envelopes (list[dict]): See ``envelope_breakdown``.
            - total_bank_balance (Decimal)
            - total_envelope_balance (Decimal)
            - cc_holding_balance (Decimal)
            - surplus (Decimal): accounts - envelopes + CC holding.
            - expected_bank_balance (Decimal)
            - discrepancy (Decimal): Positive = more in the bank than expected.
            - is_balanced (bool): ``|discrepancy| < RECONCILIATION_EPSILON``.
            - status (str): balanced, warning (under $10) or error.
            - explanation (str)
            - available_cash (Decimal): Bank balance minus CC holding.
            - credit_card_debt (Decimal): Owed on card/debt accounts, positive.
            - cc_holding_covers_debt (bool): CC holding is at least the debt.
            - cc_holding_shortfall (Decimal): Debt not yet set aside, never negative.
            - net_worth (Decimal): Bank balance minus debt.
            - pending_transfer_count (int)
            - linked_transfer_count (int): Pairs, not rows.

    Example:
        The identity with $800 in the bank, $750 in envelopes of which
        $50 is CC holding::

            report = build_reconciliation_report(user=user)
            report['surplus']   # Decimal('100.00')
    """
    accounts = account_breakdown(user)
    envelopes = envelope_breakdown(user)

    bank_cents = sum(to_cents(account['current_balance']) for account in accounts)
    envelope_cents = sum(to_cents(envelope['current_amount']) for envelope in envelopes)
    cc_holding_cents = sum(
        to_cents(envelope['current_amount']) for envelope in envelopes if envelope['is_cc_holding']
    )

    surplus_cents = bank_cents - envelope_cents + cc_holding_cents

    if expected_surplus is None:
        compared_surplus = max(0, surplus_cents)
    else:
        compared_surplus = to_cents(expected_surplus)

    expected_bank_cents = envelope_cents - cc_holding_cents + compared_surplus
    discrepancy_cents = bank_cents - expected_bank_cents
    balanced = abs(discrepancy_cents) < epsilon_cents()

    debt_balances = BankAccount.objects.filter(
        user=user,
        account_type__in=DEBT_ACCOUNT_TYPES,
    ).values_list('current_balance', flat=True)
    debt_cents = sum(abs(to_cents(balance)) for balance in debt_balances)

    transactions = Transaction.objects.for_user(user)
    pending_count = transactions.pending_transfers().count()
    linked_rows = transactions.linked_transfers().count()

    if not balanced:
        logger.warning(
            "Reconciliation for user %s off by %d cents (surplus %d, expected %d)",
            user.id, discrepancy_cents, surplus_cents, compared_surplus,
        )

    return {
        'accounts': accounts,
        'envelopes': envelopes,
        'total_bank_balance': from_cents(bank_cents),
        'total_envelope_balance': from_cents(envelope_cents),
        'cc_holding_balance': from_cents(cc_holding_cents),
        'surplus': from_cents(surplus_cents),
        'expected_bank_balance': from_cents(expected_bank_cents),
        'discrepancy': from_cents(discrepancy_cents),
        'is_balanced': balanced,
        'status': status_for(discrepancy_cents, balanced),
        'explanation': explain(discrepancy_cents, balanced, len(accounts)),
        'available_cash': from_cents(bank_cents - cc_holding_cents),
        'credit_card_debt': from_cents(debt_cents),
        'cc_holding_covers_debt': cc_holding_cents >= debt_cents,
        'cc_holding_shortfall': from_cents(max(0, debt_cents - cc_holding_cents)),
        'net_worth': from_cents(bank_cents - debt_cents),
        'pending_transfer_count': pending_count,
        # Every transfer occupies two rows
        'linked_transfer_count': linked_rows // 2,
    }
