"""
Transfer confidence scoring.

Pure functions over ``Transaction`` rows (with ``account`` loaded); no
queries. A score is the sum of three factors, capped to 0..100:

    amount   exact inverse 50, within one cent 40
    date     same day 40, 1 day 35, 2 days 25, 3 days 15
    text     10 when either side mentions the other account or a
             transfer keyword

An exact same-day pair scores 90 before any text hint, so the "high"
label never depends on free-text descriptions alone.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List

from apps.budget.money import to_cents, within_tolerance

HIGH_CONFIDENCE = 80
MEDIUM_CONFIDENCE = 60

EXACT_AMOUNT_POINTS = 50
TOLERANCE_AMOUNT_POINTS = 40
DATE_POINTS = {0: 40, 1: 35, 2: 25, 3: 15}
TEXT_POINTS = 10

TRANSFER_KEYWORDS = (
    'transfer',
    'tfr',
    'xfer',
    'internal',
    'from savings',
    'to savings',
    'to bills',
    'from bills',
    'to cheque',
    'from cheque',
    'to checking',
    'from checking',
    'sweep',
)

_KEYWORD_RE = re.compile(
    r'\b(' + '|'.join(re.escape(keyword) for keyword in TRANSFER_KEYWORDS) + r')\b',
    re.IGNORECASE,
)

# Account names shorter than this are too generic to count as a mention
MIN_NAME_LENGTH = 3


@dataclass(frozen=True)
class TransferScore:
    score: int
    amount_points: int
    date_points: int
    text_points: int
    days_apart: int

    @property
    def label(self) -> str:
        return confidence_label(self.score)


def confidence_label(score: int) -> str:
    if score >= HIGH_CONFIDENCE:
        return 'high'
    if score >= MEDIUM_CONFIDENCE:
        return 'medium'
    return 'low'


def text_of(transaction) -> str:
    return f"{transaction.merchant_name or ''} {transaction.description or ''}".lower()


def has_transfer_keyword(transaction) -> bool:
    return bool(_KEYWORD_RE.search(text_of(transaction)))


def account_names(account) -> List[str]:
    return [
        name.lower()
        for name in (account.name, account.nickname)
        if name and len(name) >= MIN_NAME_LENGTH
    ]


def mentions_account(transaction, account) -> bool:
    text = text_of(transaction)
    return any(name in text for name in account_names(account))


def is_inverse_amount(first_cents: int, second_cents: int) -> bool:
    """True when the two signed amounts cancel out within one cent."""
    if first_cents == 0 or second_cents == 0:
        return False
    if (first_cents > 0) == (second_cents > 0):
        return False
    return within_tolerance(first_cents, -second_cents)


def score_transfer_pair(first, second) -> TransferScore:
    """
    Score how likely two transactions are the two sides of one transfer.

    Callers are expected to have filtered to inverse amounts inside the
    match window; anything outside scores 0 for that factor.
    """
    first_cents = to_cents(first.amount)
    second_cents = to_cents(second.amount)

    if first_cents == -second_cents and first_cents != 0:
        amount_points = EXACT_AMOUNT_POINTS
    elif is_inverse_amount(first_cents, second_cents):
        amount_points = TOLERANCE_AMOUNT_POINTS
    else:
        amount_points = 0

    days_apart = abs((first.occurred_at - second.occurred_at).days)
    date_points = DATE_POINTS.get(days_apart, 0)

    text_points = 0
    if (
        has_transfer_keyword(first)
        or has_transfer_keyword(second)
        or mentions_account(first, second.account)
        or mentions_account(second, first.account)
    ):
        text_points = TEXT_POINTS

    score = max(0, min(100, amount_points + date_points + text_points))
    return TransferScore(
        score=score,
        amount_points=amount_points,
        date_points=date_points,
        text_points=text_points,
        days_apart=days_apart,
    )


def find_candidates(source, pool: Iterable, window_days: int = 3) -> List[tuple]:
    """
    Rank possible partners for ``source``.

    A partner sits on a different account, is not linked yet, lands
    within ``window_days`` either side, and carries the inverse amount
    within one cent.

    Returns:
        ``[(partner, TransferScore), ...]`` best first; ties go to the
        closer date, then the lower id.
    """
    source_cents = to_cents(source.amount)
    matches = []

    for partner in pool:
        if partner.id == source.id:
            continue
        if partner.account_id == source.account_id:
            continue
        if partner.linked_transaction_id is not None:
            continue
        if abs((partner.occurred_at - source.occurred_at).days) > window_days:
            continue
        if not is_inverse_amount(source_cents, to_cents(partner.amount)):
            continue

        matches.append((partner, score_transfer_pair(source, partner)))

    matches.sort(key=lambda match: (-match[1].score, match[1].days_apart, str(match[0].id)))
    return matches
