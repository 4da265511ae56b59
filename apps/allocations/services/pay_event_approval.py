"""
Pay event approval service.

Commits one actual pay (an incoming transaction) across envelopes. The
whole approval is one unit of work: splits, envelope increments, the
plan record and the "reconciled" flag either all land or none do.
"""

import calendar
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Tuple
from uuid import UUID

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.accounts.models import User
from apps.budget.models import (
    AllocationPlan,
    AllocationPlanItem,
    Envelope,
    PayCycle,
    PlanStatus,
    Transaction,
    TransactionSplit,
    TransactionType,
)
from apps.budget.money import format_money, from_cents, to_cents, within_tolerance

from .allocation_planning import (
    clean_allocation_entries,
    get_owned_income_source,
    replace_source_allocations,
)
from .exceptions import (
    AllocationValidationError,
    EnvelopeNotFoundError,
    PlanNotFoundError,
    TransactionNotFoundError,
)

logger = logging.getLogger(__name__)


def advance_pay_date(current: date, pay_cycle: str) -> date:
    """Next pay date after ``current`` for the given cycle."""
    if pay_cycle == PayCycle.WEEKLY:
        return current + timedelta(days=7)
    if pay_cycle == PayCycle.FORTNIGHTLY:
        return current + timedelta(days=14)

    # Monthly: same day next month, clamped to the month's length
    year = current.year + (1 if current.month == 12 else 0)
    month = 1 if current.month == 12 else current.month + 1
    day = min(current.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def get_owned_transaction(*, user: User, transaction_id: UUID) -> Transaction:
    try:
        return Transaction.objects.get(id=transaction_id, user=user)
    except Transaction.DoesNotExist:
        raise TransactionNotFoundError(f"Transaction with ID {transaction_id} not found")


def get_allocation_plan(*, user: User, plan_id: UUID) -> AllocationPlan:
    try:
        return (
            AllocationPlan.objects
            .select_related('source_transaction', 'income_source')
            .prefetch_related('items__envelope')
            .get(id=plan_id, user=user)
        )
    except AllocationPlan.DoesNotExist:
        raise PlanNotFoundError(f"Allocation plan with ID {plan_id} not found")


def validate_pay_event(
    *,
    transaction_cents: int,
    allocation_cents: Iterable[int],
    surplus_cents: int
) -> None:
    """
    Check that allocations plus surplus rebuild the pay within one cent.

    Raises:
        AllocationValidationError: naming the amount it is off by
    """
    if transaction_cents <= 0:
        raise AllocationValidationError("Only incoming transactions can be allocated")
    if surplus_cents < 0:
        raise AllocationValidationError(
            f"Surplus cannot be negative ({format_money(surplus_cents)})"
        )

    allocated = sum(allocation_cents)
    difference = allocated + surplus_cents - transaction_cents

    if not within_tolerance(allocated + surplus_cents, transaction_cents):
        direction = 'over' if difference > 0 else 'short'
        raise AllocationValidationError(
            f"Allocations ({format_money(allocated)}) plus surplus "
            f"({format_money(surplus_cents)}) must equal the transaction amount "
            f"({format_money(transaction_cents)}); {direction} by "
            f"{format_money(abs(difference))}"
        )


def approve_pay_event(
    *,
    user: User,
    transaction_id: UUID,
    allocations: Iterable[Mapping],
    surplus_amount: Decimal,
    income_source_id: Optional[UUID] = None,
    update_plan: bool = False
) -> Tuple[AllocationPlan, bool]:
    """
    Approve the split of one incoming transaction across envelopes.

    Everything is validated before the first write. The source
    transaction is then claimed with a conditional update on
    ``is_reconciled``; a second approval of the same transaction finds
    it already claimed and gets the existing plan back untouched.

    Args:
        user: Owner of the transaction and envelopes
        transaction_id: The incoming pay transaction
        allocations: ``[{'envelope_id': UUID, 'amount': Decimal}, ...]``
        surplus_amount: Part of the pay left unallocated
        income_source_id: Income source the pay belongs to, if known
        update_plan: Overwrite that source's saved plan with these amounts

    Returns:
        (plan, created): created is False when the transaction had
        already been approved

    Raises:
        TransactionNotFoundError: Transaction is not the caller's
        EnvelopeNotFoundError: An envelope is not the caller's
        IncomeSourceNotFoundError: Income source is not the caller's
        AllocationValidationError: Bad amounts, or they don't add up
    """
    pay = get_owned_transaction(user=user, transaction_id=transaction_id)

    if pay.is_linked or pay.transfer_pending:
        raise AllocationValidationError("Transfers cannot be allocated as income")

    cleaned = clean_allocation_entries(allocations, 'envelope_id')
    surplus_cents = to_cents(surplus_amount)
    transaction_cents = to_cents(pay.amount)

    envelopes = {
        envelope.id: envelope
        for envelope in Envelope.objects.filter(
            user=user,
            id__in=[envelope_id for envelope_id, _ in cleaned]
        )
    }
    for envelope_id, _ in cleaned:
        if envelope_id not in envelopes:
            raise EnvelopeNotFoundError(f"Envelope with ID {envelope_id} not found")

    income_source = None
    if income_source_id is not None:
        income_source = get_owned_income_source(user=user, income_source_id=income_source_id)

    try:
        validate_pay_event(
            transaction_cents=transaction_cents,
            allocation_cents=[cents for _, cents in cleaned],
            surplus_cents=surplus_cents,
        )
    except AllocationValidationError as e:
        logger.warning("Rejected approval of transaction %s: %s", pay.id, e)
        raise

    with transaction.atomic():
        claimed = (
            Transaction.objects
            .filter(id=pay.id, user=user, is_reconciled=False)
            .update(is_reconciled=True)
        )

        if not claimed:
            existing = AllocationPlan.objects.filter(source_transaction=pay).first()
            if existing is None:
                raise AllocationValidationError("Transaction is already reconciled")
            logger.info("Transaction %s already approved as plan %s", pay.id, existing.id)
            return existing, False

        surplus_envelope = (
            Envelope.objects
            .filter(user=user, is_surplus_envelope=True)
            .order_by('created_at')
            .first()
        )

        splits = [
            TransactionSplit(
                transaction=pay,
                envelope=envelopes[envelope_id],
                amount=from_cents(cents),
            )
            for envelope_id, cents in cleaned
        ]
        if surplus_cents > 0:
            splits.append(TransactionSplit(
                transaction=pay,
                envelope=surplus_envelope,
                amount=from_cents(surplus_cents),
                is_surplus=True,
            ))
        TransactionSplit.objects.bulk_create(splits)

        for envelope_id, cents in cleaned:
            Envelope.objects.filter(id=envelope_id).update(
                current_amount=F('current_amount') + from_cents(cents)
            )
        if surplus_cents > 0 and surplus_envelope is not None:
            Envelope.objects.filter(id=surplus_envelope.id).update(
                current_amount=F('current_amount') + from_cents(surplus_cents)
            )

        regular_cents = sum(cents for _, cents in cleaned)
        plan = AllocationPlan.objects.create(
            user=user,
            source_transaction=pay,
            income_source=income_source,
            amount=pay.amount,
            regular_total=from_cents(regular_cents),
            surplus_total=from_cents(surplus_cents),
            envelope_count=len(cleaned),
            status=PlanStatus.APPROVED,
            applied_at=timezone.now(),
        )
        AllocationPlanItem.objects.bulk_create([
            AllocationPlanItem(
                plan=plan,
                envelope=envelopes[envelope_id],
                amount=from_cents(cents),
                priority=position,
            )
            for position, (envelope_id, cents) in enumerate(cleaned, start=1)
        ])

        if income_source is not None:
            if update_plan:
                replace_source_allocations(
                    user=user,
                    income_source=income_source,
                    amounts=[(envelopes[envelope_id], cents) for envelope_id, cents in cleaned],
                )

            Transaction.objects.filter(id=pay.id).update(
                income_source=income_source,
                transaction_type=TransactionType.INCOME,
            )

            base = max(income_source.next_pay_date or pay.occurred_at, pay.occurred_at)
            income_source.next_pay_date = advance_pay_date(base, income_source.pay_cycle)
            income_source.last_reconciled_date = pay.occurred_at
            income_source.save(update_fields=['next_pay_date', 'last_reconciled_date', 'updated_at'])

    logger.info(
        "Approved transaction %s as plan %s: %d cents to %d envelopes, %d cents surplus",
        pay.id, plan.id, regular_cents, len(cleaned), surplus_cents,
    )
    return plan, True
