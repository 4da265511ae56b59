"""
Transfer linking service.

Linking pairs two transactions on different accounts as the two sides
of one internal transfer. Both rows are claimed with a conditional
update on ``linked_transaction IS NULL`` inside one transaction, so two
concurrent requests can never attach one row to two partners.
"""

import logging
from typing import Tuple
from uuid import UUID

from django.db import IntegrityError, transaction

from apps.accounts.models import User
from apps.budget.models import Transaction, TransactionType

from .exceptions import (
    AlreadyLinkedError,
    NotLinkedError,
    TransactionNotFoundError,
    TransferValidationError,
)

logger = logging.getLogger(__name__)

RESTORABLE_TYPES = (TransactionType.INCOME, TransactionType.EXPENSE)


def _owned(user: User, transaction_id: UUID, lock: bool = False) -> Transaction:
    queryset = Transaction.objects.filter(user=user)
    if lock:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(id=transaction_id)
    except Transaction.DoesNotExist:
        raise TransactionNotFoundError(f"Transaction with ID {transaction_id} not found")


def _claim(row: Transaction, partner: Transaction) -> int:
    """Point ``row`` at ``partner`` if ``row`` is still unlinked."""
    prior = row.transaction_type if row.transaction_type in RESTORABLE_TYPES else ''
    return (
        Transaction.objects
        .filter(id=row.id, linked_transaction__isnull=True)
        .update(
            linked_transaction=partner,
            transaction_type=TransactionType.TRANSFER,
            pre_transfer_type=prior,
            transfer_pending=False,
            envelope=None,
            type_needs_review=False,
        )
    )


def link_transfer(*, user: User, first_id: UUID, second_id: UUID) -> Tuple[Transaction, Transaction]:
    """
    Link two transactions as one transfer.

    Both sides become type ``transfer``, leave any envelope and stop
    being pending. Their previous types are kept for a later unlink.

    Raises:
        TransactionNotFoundError: Either row is not the caller's
        TransferValidationError: Same row, same account, or same sign
        AlreadyLinkedError: Either side is linked to something else
    """
    if first_id == second_id:
        raise TransferValidationError("A transaction cannot be linked to itself")

    first = _owned(user, first_id)
    second = _owned(user, second_id)

    if first.linked_transaction_id == second.id and second.linked_transaction_id == first.id:
        return first, second

    if first.account_id == second.account_id:
        raise TransferValidationError("Both sides of a transfer are on the same account")
    if first.amount == 0 or second.amount == 0 or (first.amount > 0) == (second.amount > 0):
        raise TransferValidationError("A transfer needs one outgoing and one incoming transaction")
    if first.is_linked or second.is_linked:
        raise AlreadyLinkedError("One of these transactions is already linked to another transfer")

    try:
        with transaction.atomic():
            if not _claim(first, second):
                raise AlreadyLinkedError(f"Transaction {first.id} was linked by another request")
            if not _claim(second, first):
                raise AlreadyLinkedError(f"Transaction {second.id} was linked by another request")
    except IntegrityError:
        # Partner already referenced by a third row
        raise AlreadyLinkedError("One of these transactions is already linked to another transfer")

    first.refresh_from_db()
    second.refresh_from_db()

    logger.info("Linked transfer %s <-> %s (%s)", first.id, second.id, second.amount)
    return first, second


@transaction.atomic
def unlink_transfer(*, user: User, transaction_id: UUID) -> Tuple[Transaction, Transaction]:
    """
    Break a linked pair apart.

    Each side gets back the type it had before linking. A row without a
    remembered type is classified by sign (``amount >= 0`` is income)
    and flagged ``type_needs_review``.

    Raises:
        TransactionNotFoundError: Transaction is not the caller's
        NotLinkedError: Transaction is not linked
    """
    row = _owned(user, transaction_id, lock=True)
    if not row.is_linked:
        raise NotLinkedError(f"Transaction {row.id} is not part of a transfer")

    partner = _owned(user, row.linked_transaction_id, lock=True)

    restored = []
    for side in (row, partner):
        if side.pre_transfer_type in RESTORABLE_TYPES:
            new_type, needs_review = side.pre_transfer_type, False
        else:
            new_type = TransactionType.INCOME if side.amount >= 0 else TransactionType.EXPENSE
            needs_review = True

        Transaction.objects.filter(id=side.id).update(
            linked_transaction=None,
            transaction_type=new_type,
            pre_transfer_type='',
            type_needs_review=needs_review,
        )
        restored.append((side.id, new_type, needs_review))

    row.refresh_from_db()
    partner.refresh_from_db()

    logger.info("Unlinked transfer %s <-> %s: %s", row.id, partner.id, restored)
    return row, partner
