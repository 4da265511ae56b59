"""
Allocation plan management service.

The plan layer: how much each income source commits to each envelope
every pay. Plans are edited wholesale (delete-then-insert) per envelope
or one row at a time.
"""

import logging
from decimal import Decimal
from typing import Iterable, List, Mapping, Optional
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.budget.models import Envelope, EnvelopeIncomeAllocation, IncomeSource
from apps.budget.money import from_cents, to_cents

from .exceptions import (
    AllocationValidationError,
    EnvelopeNotFoundError,
    IncomeSourceNotFoundError,
)

logger = logging.getLogger(__name__)


def get_owned_envelope(*, user: User, envelope_id: UUID, lock: bool = False) -> Envelope:
    queryset = Envelope.objects.filter(user=user)
    if lock:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(id=envelope_id)
    except Envelope.DoesNotExist:
        raise EnvelopeNotFoundError(f"Envelope with ID {envelope_id} not found")


def get_owned_income_source(*, user: User, income_source_id: UUID) -> IncomeSource:
    try:
        return IncomeSource.objects.get(id=income_source_id, user=user)
    except IncomeSource.DoesNotExist:
        raise IncomeSourceNotFoundError(f"Income source with ID {income_source_id} not found")


def get_envelope_allocations(*, user: User, envelope_id: UUID) -> QuerySet:
    """Return the saved plan rows for one envelope, in priority order."""
    envelope = get_owned_envelope(user=user, envelope_id=envelope_id)
    return (
        EnvelopeIncomeAllocation.objects
        .filter(envelope=envelope)
        .select_related('income_source')
        .order_by('priority', 'created_at')
    )


def clean_allocation_entries(entries: Iterable[Mapping], key: str) -> List[tuple]:
    """
    Validate ``[{key: id, 'amount': x}, ...]`` and drop zero rows.

    Returns ``[(id, cents), ...]`` in input order.
    """
    cleaned = []
    seen = set()

    for entry in entries:
        target_id = entry.get(key)
        if target_id is None or 'amount' not in entry:
            raise AllocationValidationError(f"Each allocation needs '{key}' and 'amount'")

        if target_id in seen:
            raise AllocationValidationError(f"Duplicate allocation for {key} {target_id}")
        seen.add(target_id)

        cents = to_cents(entry['amount'])
        if cents < 0:
            raise AllocationValidationError(
                f"Allocation amount cannot be negative ({from_cents(cents)})"
            )
        if cents > 0:
            cleaned.append((target_id, cents))

    return cleaned


@transaction.atomic
def replace_envelope_allocations(
    *,
    user: User,
    envelope_id: UUID,
    entries: Iterable[Mapping]
) -> List[EnvelopeIncomeAllocation]:
    """
    Replace every plan row for an envelope.

    Args:
        user: Owner of the envelope
        envelope_id: Envelope being planned
        entries: ``[{'income_source_id': UUID, 'amount': Decimal}, ...]``

    Returns:
        The newly inserted allocations, priority 1..n in input order

    Raises:
        EnvelopeNotFoundError: Envelope is not the caller's
        IncomeSourceNotFoundError: An income source is not the caller's
        AllocationValidationError: Duplicate source or negative amount
    """
    envelope = get_owned_envelope(user=user, envelope_id=envelope_id, lock=True)
    cleaned = clean_allocation_entries(entries, 'income_source_id')

    sources = {
        source.id: source
        for source in IncomeSource.objects.filter(
            user=user,
            id__in=[source_id for source_id, _ in cleaned]
        )
    }
    for source_id, _ in cleaned:
        if source_id not in sources:
            raise IncomeSourceNotFoundError(f"Income source with ID {source_id} not found")

    EnvelopeIncomeAllocation.objects.filter(envelope=envelope).delete()

    created = EnvelopeIncomeAllocation.objects.bulk_create([
        EnvelopeIncomeAllocation(
            user=user,
            income_source=sources[source_id],
            envelope=envelope,
            amount=from_cents(cents),
            priority=position,
        )
        for position, (source_id, cents) in enumerate(cleaned, start=1)
    ])

    logger.info(
        "Replaced allocations for envelope %s: %d rows, %d cents",
        envelope.id, len(created), sum(cents for _, cents in cleaned),
    )
    return created


@transaction.atomic
def upsert_envelope_allocation(
    *,
    user: User,
    envelope_id: UUID,
    income_source_id: UUID,
    amount: Decimal
) -> Optional[EnvelopeIncomeAllocation]:
    """
    Set a single plan row.

    An amount of zero or less removes the row; ``None`` is returned then.
    """
    envelope = get_owned_envelope(user=user, envelope_id=envelope_id)
    source = get_owned_income_source(user=user, income_source_id=income_source_id)
    cents = to_cents(amount)

    if cents <= 0:
        deleted, _ = EnvelopeIncomeAllocation.objects.filter(
            envelope=envelope,
            income_source=source,
        ).delete()
        logger.info("Removed allocation %s -> %s (%d rows)", source.id, envelope.id, deleted)
        return None

    next_priority = EnvelopeIncomeAllocation.objects.filter(envelope=envelope).count() + 1
    allocation, created = EnvelopeIncomeAllocation.objects.select_for_update().get_or_create(
        envelope=envelope,
        income_source=source,
        defaults={'amount': from_cents(cents), 'user': user, 'priority': next_priority},
    )
    if not created:
        allocation.amount = from_cents(cents)
        allocation.save(update_fields=['amount', 'updated_at'])

    logger.info(
        "%s allocation %s -> %s: %d cents",
        'Created' if created else 'Updated', source.id, envelope.id, cents,
    )
    return allocation


def replace_source_allocations(
    *,
    user: User,
    income_source: IncomeSource,
    amounts: List[tuple]
) -> None:
    """
    Overwrite one income source's plan with ``[(envelope, cents), ...]``.

    Must run inside the caller's transaction.
    """
    EnvelopeIncomeAllocation.objects.filter(income_source=income_source).delete()
    EnvelopeIncomeAllocation.objects.bulk_create([
        EnvelopeIncomeAllocation(
            user=user,
            income_source=income_source,
            envelope=envelope,
            amount=from_cents(cents),
            priority=position,
        )
        for position, (envelope, cents) in enumerate(amounts, start=1)
        if cents > 0
    ])
