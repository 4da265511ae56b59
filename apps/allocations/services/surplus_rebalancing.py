"""
Surplus rebalancing service.

Hands leftover money to the envelopes that are furthest behind target,
largest deficit first. ``plan_surplus_allocation`` is a pure function;
``apply_surplus_allocation`` moves the money out of the surplus envelope.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.db.models import F

from apps.accounts.models import User
from apps.budget.models import Envelope
from apps.budget.money import from_cents, to_cents

from .exceptions import (
    AllocationValidationError,
    InsufficientSurplusError,
    SurplusEnvelopeMissingError,
)
from .surplus_calculation import compute_income_reality, counted_envelopes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnvelopeDeficit:
    envelope_id: UUID
    name: str
    deficit_cents: int


def deficits_for(envelopes) -> List[EnvelopeDeficit]:
    return [
        EnvelopeDeficit(
            envelope_id=envelope.id,
            name=envelope.name,
            deficit_cents=to_cents(envelope.target_amount) - to_cents(envelope.current_amount),
        )
        for envelope in envelopes
    ]


def plan_surplus_allocation(
    surplus_cents: int,
    deficits: List[EnvelopeDeficit],
    min_deficit_cents: int = 50
) -> Dict:
    """
    Greedy single pass over deficits, largest first.

    Deficits at or below ``min_deficit_cents`` are skipped. Ties are
    broken by envelope id so the result is deterministic. Envelopes that
    qualify but are reached after the surplus runs out get 0.

        >>> plan = plan_surplus_allocation(7000, [a60, b40, c10])
        >>> [row['amount_cents'] for row in plan['allocations']]
        [6000, 1000, 0]
    """
    if surplus_cents < 0:
        raise AllocationValidationError("Surplus to allocate cannot be negative")

    eligible = sorted(
        (d for d in deficits if d.deficit_cents > min_deficit_cents),
        key=lambda d: (-d.deficit_cents, str(d.envelope_id)),
    )

    remaining = surplus_cents
    rows = []
    for deficit in eligible:
        amount = min(remaining, deficit.deficit_cents)
        remaining -= amount
        rows.append({
            'envelope_id': deficit.envelope_id,
            'name': deficit.name,
            'deficit_cents': deficit.deficit_cents,
            'amount_cents': amount,
        })

    return {
        'surplus_cents': surplus_cents,
        'allocations': rows,
        'allocated_cents': surplus_cents - remaining,
        'remaining_cents': remaining,
    }


def _as_money(plan: Dict) -> Dict:
    return {
        'surplus': from_cents(plan['surplus_cents']),
        'allocated': from_cents(plan['allocated_cents']),
        'remaining': from_cents(plan['remaining_cents']),
        'allocations': [
            {
                'envelope_id': row['envelope_id'],
                'name': row['name'],
                'deficit': from_cents(row['deficit_cents']),
                'amount': from_cents(row['amount_cents']),
            }
            for row in plan['allocations']
        ],
    }


def _min_deficit_cents() -> int:
    return to_cents(getattr(settings, 'SURPLUS_MIN_DEFICIT', Decimal('0.50')))


def preview_surplus_allocation(*, user: User, amount: Optional[Decimal] = None) -> Dict:
    """
    Show where ``amount`` (default: allocatable surplus) would go.

    Read-only.
    """
    if amount is None:
        amount = compute_income_reality(user=user)['allocatable_surplus']

    plan = plan_surplus_allocation(
        to_cents(amount),
        deficits_for(counted_envelopes(user).exclude(is_cc_holding=True)),
        _min_deficit_cents(),
    )
    return _as_money(plan)


@transaction.atomic
def apply_surplus_allocation(*, user: User, amount: Optional[Decimal] = None) -> Dict:
    """
    Move money from the surplus envelope into deficit envelopes.

    The amount is capped at what the surplus envelope actually holds.
    The surplus decrement only succeeds while the balance still covers
    it, so two concurrent rebalances cannot overdraw the envelope.

    Raises:
        SurplusEnvelopeMissingError: User has no surplus envelope
        InsufficientSurplusError: Balance dropped below the planned total
    """
    source = (
        Envelope.objects
        .select_for_update()
        .filter(user=user, is_surplus_envelope=True)
        .order_by('created_at')
        .first()
    )
    if source is None:
        raise SurplusEnvelopeMissingError("Create a surplus envelope before allocating surplus")

    if amount is None:
        amount = compute_income_reality(user=user)['allocatable_surplus']

    available = max(0, min(to_cents(amount), to_cents(source.current_amount)))

    plan = plan_surplus_allocation(
        available,
        deficits_for(counted_envelopes(user).exclude(is_cc_holding=True)),
        _min_deficit_cents(),
    )
    moved = plan['allocated_cents']

    if moved > 0:
        updated = (
            Envelope.objects
            .filter(id=source.id, current_amount__gte=from_cents(moved))
            .update(current_amount=F('current_amount') - from_cents(moved))
        )
        if not updated:
            raise InsufficientSurplusError("Surplus envelope balance changed; try again")

        for row in plan['allocations']:
            if row['amount_cents'] > 0:
                Envelope.objects.filter(id=row['envelope_id']).update(
                    current_amount=F('current_amount') + from_cents(row['amount_cents'])
                )

    logger.info(
        "Allocated %d cents of surplus from envelope %s across %d envelopes",
        moved, source.id, sum(1 for row in plan['allocations'] if row['amount_cents'] > 0),
    )

    result = _as_money(plan)
    result['source_envelope_id'] = source.id
    return result
