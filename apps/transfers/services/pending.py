"""
Pending transfer service.

One side of a transfer can be flagged before its counterpart shows up.
A pending row keeps counting toward its account balance but is held out
of envelope totals.
"""

import logging
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.budget.models import Transaction

from .exceptions import AlreadyLinkedError, TransactionNotFoundError

logger = logging.getLogger(__name__)


def list_pending(*, user: User) -> QuerySet:
    return (
        Transaction.objects
        .for_user(user)
        .pending_transfers()
        .select_related('account')
        .order_by('-occurred_at')
    )


@transaction.atomic
def mark_transfer_pending(*, user: User, transaction_id: UUID) -> Transaction:
    """
    Flag a transaction as awaiting its transfer partner.

    Clears the envelope so the row stops counting toward envelope totals.

    Raises:
        TransactionNotFoundError: Transaction is not the caller's
        AlreadyLinkedError: Transaction is already part of a linked pair
    """
    if not Transaction.objects.filter(id=transaction_id, user=user).exists():
        raise TransactionNotFoundError(f"Transaction with ID {transaction_id} not found")

    updated = (
        Transaction.objects
        .filter(id=transaction_id, user=user, linked_transaction__isnull=True)
        .update(transfer_pending=True, envelope=None)
    )
    if not updated:
        raise AlreadyLinkedError(f"Transaction {transaction_id} is already linked")

    logger.info("Marked transaction %s as pending transfer", transaction_id)
    return Transaction.objects.get(id=transaction_id)


def clear_transfer_pending(*, user: User, transaction_id: UUID) -> Transaction:
    """Remove the pending flag. The envelope stays unassigned."""
    updated = (
        Transaction.objects
        .filter(id=transaction_id, user=user)
        .update(transfer_pending=False)
    )
    if not updated:
        raise TransactionNotFoundError(f"Transaction with ID {transaction_id} not found")

    logger.info("Cleared pending transfer flag on transaction %s", transaction_id)
    return Transaction.objects.get(id=transaction_id)
