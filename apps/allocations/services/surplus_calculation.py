"""
Income reality service.

Answers "how much of each pay is already spoken for?" by reading the
allocation ledger (``envelope_income_allocations``) per income source.
Read-only; results are plain dicts ready for serialization.
"""

import logging
from decimal import Decimal
from typing import Dict, List

from django.db.models import Sum

from apps.accounts.models import User
from apps.budget.models import Envelope, EnvelopeIncomeAllocation, IncomeSource
from apps.budget.money import from_cents, to_cents

logger = logging.getLogger(__name__)


def counted_envelopes(user: User):
    """Envelopes that hold commitments: not the surplus envelope, not dismissed."""
    return Envelope.objects.filter(
        user=user,
        is_surplus_envelope=False,
        is_dismissed=False,
    )


def cc_holding_balance(user: User) -> Decimal:
    total = Envelope.objects.filter(user=user, is_cc_holding=True).aggregate(
        total=Sum('current_amount')
    )['total']
    return total or Decimal('0.00')


def committed_by_source(user: User) -> Dict:
    """Map income source id -> committed cents per pay, from the ledger."""
    rows = (
        EnvelopeIncomeAllocation.objects
        .filter(
            user=user,
            envelope__is_surplus_envelope=False,
            envelope__is_dismissed=False,
        )
        .values('income_source_id')
        .annotate(total=Sum('amount'))
    )
    return {row['income_source_id']: to_cents(row['total']) for row in rows}


def compute_income_reality(*, user: User) -> Dict:
    """
    Per-source and aggregate surplus for the caller.

    Each source's committed amount is the sum of its own ledger rows, so
    two sources never share (or estimate) each other's commitments.

    Returns:
        dict with ``sources`` (list of per-source dicts) and totals:
        total_income, total_committed, total_allocated,
        unfunded_commitment, total_surplus, cc_holding_balance,
        allocatable_surplus.
    """
    sources = list(IncomeSource.objects.filter(user=user, is_active=True))
    committed = committed_by_source(user)

    per_source: List[Dict] = []
    total_income = 0
    total_allocated = 0
    total_surplus = 0

    for source in sources:
        income = to_cents(source.amount)
        source_committed = committed.get(source.id, 0)
        surplus = max(0, income - source_committed)

        per_source.append({
            'income_source_id': source.id,
            'name': source.name,
            'pay_cycle': source.pay_cycle,
            'income_amount': from_cents(income),
            'total_committed_per_pay': from_cents(source_committed),
            'surplus_amount': from_cents(surplus),
            'over_committed': from_cents(max(0, source_committed - income)),
        })

        total_income += income
        total_allocated += source_committed
        total_surplus += surplus

    total_committed = to_cents(
        counted_envelopes(user).aggregate(total=Sum('pay_cycle_amount'))['total']
    )
    cc_balance = to_cents(cc_holding_balance(user))

    logger.debug(
        "Income reality for user %s: income=%s committed=%s surplus=%s",
        user.id, total_income, total_allocated, total_surplus,
    )

    return {
        'sources': per_source,
        'total_income': from_cents(total_income),
        'total_committed': from_cents(total_committed),
        'total_allocated': from_cents(total_allocated),
        'unfunded_commitment': from_cents(max(0, total_committed - total_allocated)),
        'total_surplus': from_cents(total_surplus),
        'cc_holding_balance': from_cents(cc_balance),
        'allocatable_surplus': from_cents(max(0, total_surplus - cc_balance)),
    }
