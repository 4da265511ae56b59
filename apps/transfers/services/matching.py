"""
Transfer matching service.

Finds probable transfer pairs among the caller's unlinked transactions.
Resolution is greedy: pairs are accepted best score first and each
transaction can be used once.
"""

import logging
from collections import defaultdict
from datetime import timedelta
from typing import Dict, List, Optional
from uuid import UUID

from django.conf import settings
from django.utils import timezone

from apps.accounts.models import User
from apps.budget.models import Transaction
from apps.budget.money import to_cents

from .exceptions import AlreadyLinkedError, TransactionNotFoundError
from .linking import link_transfer
from .scoring import find_candidates, has_transfer_keyword, HIGH_CONFIDENCE

logger = logging.getLogger(__name__)

AUTO_LINK = 'auto_link'
PROMPT_USER = 'prompt_user'
MARK_PENDING = 'mark_pending'
TREAT_AS_EXPENSE = 'treat_as_expense'


def match_window_days() -> int:
    return getattr(settings, 'TRANSFER_MATCH_WINDOW_DAYS', 3)


def scan_window_days() -> int:
    return getattr(settings, 'TRANSFER_SCAN_WINDOW_DAYS', 30)


def _describe(partner, result) -> Dict:
    return {
        'transaction_id': partner.id,
        'account_id': partner.account_id,
        'account_name': partner.account.display_name,
        'amount': partner.amount,
        'occurred_at': partner.occurred_at,
        'merchant_name': partner.merchant_name,
        'score': result.score,
        'confidence': result.label,
        'days_apart': result.days_apart,
    }


def detect_for_transaction(*, user: User, transaction_id: UUID) -> Dict:
    """
    Rank transfer partners for one transaction and suggest what to do.

    Suggested actions:
        auto_link         best candidate is high confidence
        prompt_user       some candidate exists, none is high
        mark_pending      incoming, no candidate yet, but the text looks
                          like a transfer
        treat_as_expense  nothing suggests a transfer

    Raises:
        TransactionNotFoundError: Transaction is not the caller's
    """
    try:
        source = Transaction.objects.select_related('account').get(id=transaction_id, user=user)
    except Transaction.DoesNotExist:
        raise TransactionNotFoundError(f"Transaction with ID {transaction_id} not found")

    window = match_window_days()
    pool = (
        Transaction.objects
        .filter(
            user=user,
            linked_transaction__isnull=True,
            occurred_at__gte=source.occurred_at - timedelta(days=window),
            occurred_at__lte=source.occurred_at + timedelta(days=window),
        )
        .exclude(account_id=source.account_id)
        .select_related('account')
    )

    candidates = [] if source.is_linked else find_candidates(source, pool, window)

    if candidates and candidates[0][1].score >= HIGH_CONFIDENCE:
        action = AUTO_LINK
    elif candidates:
        action = PROMPT_USER
    elif not source.is_linked and source.amount > 0 and has_transfer_keyword(source):
        action = MARK_PENDING
    else:
        action = TREAT_AS_EXPENSE

    highest = candidates[0][1].score if candidates else 0
    return {
        'transaction_id': source.id,
        'is_linked': source.is_linked,
        'is_likely_transfer': highest >= HIGH_CONFIDENCE,
        'highest_confidence': highest,
        'suggested_action': action,
        'candidates': [_describe(partner, result) for partner, result in candidates],
    }


def scan_for_transfers(*, user: User, window_days: Optional[int] = None) -> List[Dict]:
    """
    Propose transfer pairs among recent unlinked transactions.

    Only the last ``window_days`` (default TRANSFER_SCAN_WINDOW_DAYS) are
    read. Every outgoing row is scored against incoming rows with the
    inverse amount; pairs are then accepted greedily, best score first.

    Returns:
        ``[{'outgoing_id', 'incoming_id', 'amount', 'score', 'confidence',
        'days_apart'}, ...]`` in acceptance order
    """
    if window_days is None:
        window_days = scan_window_days()
    since = timezone.localdate() - timedelta(days=window_days)
    match_days = match_window_days()

    rows = list(
        Transaction.objects
        .filter(user=user, linked_transaction__isnull=True, occurred_at__gte=since)
        .exclude(amount=0)
        .select_related('account')
    )

    incoming_by_cents = defaultdict(list)
    for row in rows:
        cents = to_cents(row.amount)
        if cents > 0:
            incoming_by_cents[cents].append(row)

    scored = []
    for outgoing in rows:
        cents = to_cents(outgoing.amount)
        if cents >= 0:
            continue
        nearby = (
            incoming_by_cents[-cents - 1]
            + incoming_by_cents[-cents]
            + incoming_by_cents[-cents + 1]
        )
        for incoming, result in find_candidates(outgoing, nearby, match_days):
            scored.append((outgoing, incoming, result))

    scored.sort(key=lambda item: (
        -item[2].score,
        item[2].days_apart,
        str(item[0].id),
        str(item[1].id),
    ))

    used = set()
    pairs = []
    for outgoing, incoming, result in scored:
        if outgoing.id in used or incoming.id in used:
            continue
        used.update((outgoing.id, incoming.id))
        pairs.append({
            'outgoing_id': outgoing.id,
            'incoming_id': incoming.id,
            'outgoing_account': outgoing.account.display_name,
            'incoming_account': incoming.account.display_name,
            'amount': incoming.amount,
            'score': result.score,
            'confidence': result.label,
            'days_apart': result.days_apart,
        })

    logger.debug("Transfer scan for user %s: %d rows, %d pairs", user.id, len(rows), len(pairs))
    return pairs


def auto_link_transfers(*, user: User, window_days: Optional[int] = None) -> List[Dict]:
    """
    Link every high-confidence pair from a scan.

    A pair that lost a race to another request is skipped, not fatal.
    """
    linked = []
    for pair in scan_for_transfers(user=user, window_days=window_days):
        if pair['score'] < HIGH_CONFIDENCE:
            continue
        try:
            link_transfer(
                user=user,
                first_id=pair['outgoing_id'],
                second_id=pair['incoming_id'],
            )
        except AlreadyLinkedError:
            logger.warning(
                "Skipped auto-link %s <-> %s: already linked",
                pair['outgoing_id'], pair['incoming_id'],
            )
            continue
        linked.append(pair)

    logger.info("Auto-linked %d transfer pairs for user %s", len(linked), user.id)
    return linked
