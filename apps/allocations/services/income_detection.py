"""
Income detection service.

Guesses which income source an incoming transaction belongs to and
offers that source's saved plan as the starting allocation.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from apps.accounts.models import User
from apps.budget.models import (
    EnvelopeIncomeAllocation,
    IncomeSource,
    Transaction,
    TransactionType,
)
from apps.budget.money import from_cents, to_cents

from .pay_event_approval import get_owned_transaction

logger = logging.getLogger(__name__)

MATCH_THRESHOLD = Decimal('0.5')
AMOUNT_WEIGHT = Decimal('0.5')
NAME_WEIGHT = Decimal('0.3')
TYPE_WEIGHT = Decimal('0.2')

# Amounts further apart than this share of the expected pay score nothing
AMOUNT_TOLERANCE = Decimal('0.05')


def score_income_match(pay: Transaction, source: IncomeSource) -> Decimal:
    """Score in [0, 1]; amount closeness, name mention, income type."""
    score = Decimal('0')

    expected = to_cents(source.amount)
    actual = to_cents(pay.amount)
    if expected > 0:
        diff_ratio = Decimal(abs(actual - expected)) / Decimal(expected)
        if diff_ratio <= AMOUNT_TOLERANCE:
            score += AMOUNT_WEIGHT * (1 - diff_ratio / AMOUNT_TOLERANCE)

    haystack = f"{pay.description} {pay.merchant_name}".lower()
    if source.name and source.name.lower() in haystack:
        score += NAME_WEIGHT

    if pay.transaction_type == TransactionType.INCOME:
        score += TYPE_WEIGHT

    return score.quantize(Decimal('0.01'))


def saved_plan_for(source: IncomeSource) -> List[Dict]:
    rows = (
        EnvelopeIncomeAllocation.objects
        .filter(
            income_source=source,
            envelope__is_surplus_envelope=False,
            envelope__is_dismissed=False,
        )
        .select_related('envelope')
        .order_by('priority', 'created_at')
    )
    return [
        {
            'envelope_id': row.envelope_id,
            'name': row.envelope.name,
            'amount': row.amount,
        }
        for row in rows
    ]


def fit_plan_to_pay(plan: List[Dict], pay_cents: int) -> List[Dict]:
    """
    Fill the saved plan in priority order until the pay runs out.

    The last envelope reached may get less than planned; envelopes after
    it are left out.
    """
    remaining = max(0, pay_cents)
    fitted = []
    for row in plan:
        if remaining <= 0:
            break
        amount = min(to_cents(row['amount']), remaining)
        if amount <= 0:
            continue
        fitted.append({**row, 'amount': from_cents(amount)})
        remaining -= amount
    return fitted


def detect_income_source(*, user: User, transaction_id: UUID) -> Dict:
    """
    Match an incoming transaction to one of the caller's income sources.

    Returns:
        dict with ``matched`` (bool), ``income_source_id``, ``name``,
        ``confidence``, ``suggested_allocations`` (the saved plan, fitted to the pay) and
        ``suggested_surplus``. Allocations plus surplus always add up to
        the pay: a plan larger than the pay is trimmed from the lowest
        priority up and ``plan_shortfall`` says by how much. Unmatched
        results suggest the whole pay as surplus.

    Raises:
        TransactionNotFoundError: Transaction is not the caller's
    """
    pay = get_owned_transaction(user=user, transaction_id=transaction_id)
    pay_cents = to_cents(pay.amount)

    best: Optional[IncomeSource] = None
    best_score = Decimal('0')

    if pay_cents > 0:
        for source in IncomeSource.objects.filter(user=user, is_active=True).order_by('created_at'):
            score = score_income_match(pay, source)
            if score > best_score:
                best, best_score = source, score

    if best is None or best_score < MATCH_THRESHOLD:
        logger.debug("No income source matched transaction %s", pay.id)
        return {
            'transaction_id': pay.id,
            'matched': False,
            'income_source_id': None,
            'name': None,
            'confidence': best_score,
            'suggested_allocations': [],
            'suggested_surplus': from_cents(max(0, pay_cents)),
            'plan_shortfall': from_cents(0),
        }

    plan = saved_plan_for(best)
    planned = sum(to_cents(row['amount']) for row in plan)
    suggested = fit_plan_to_pay(plan, pay_cents)
    allocated = sum(to_cents(row['amount']) for row in suggested)

    logger.info(
        "Transaction %s matched income source %s (confidence %s)",
        pay.id, best.id, best_score,
    )
    return {
        'transaction_id': pay.id,
        'matched': True,
        'income_source_id': best.id,
        'name': best.name,
        'confidence': best_score,
        'suggested_allocations': suggested,
        'suggested_surplus': from_cents(pay_cents - allocated),
        'plan_shortfall': from_cents(max(0, planned - pay_cents)),
    }
