"""
Debt payoff simulation.

Compares two ways of paying down several revolving debts with a fixed
monthly budget (the starting minimums plus an extra amount):

    avalanche   extra money goes to the highest APR first
    snowball    extra money goes to the smallest balance first

Every unpaid card gets its minimum each month; whatever is left of the
budget, including minimums freed by cards already paid off, goes to the
first card in priority order, then the next. All arithmetic is in cents.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

from django.conf import settings

from apps.accounts.models import User
from apps.budget.models import BankAccount, DEBT_ACCOUNT_TYPES
from apps.budget.money import from_cents, to_cents

from .exceptions import UnknownStrategyError

logger = logging.getLogger(__name__)

AVALANCHE = 'avalanche'
SNOWBALL = 'snowball'
STRATEGIES = (AVALANCHE, SNOWBALL)

# Default minimum: 2% of the balance, at least $10
MINIMUM_PAYMENT_RATE = Decimal('0.02')
MINIMUM_PAYMENT_FLOOR_CENTS = 1000

# Avalanche is only worth recommending over snowball above this saving
RECOMMEND_AVALANCHE_ABOVE_CENTS = 5000


@dataclass
class CardDebt:
    """Snapshot of one debt; not persisted."""
    account_id: Optional[str]
    name: str
    balance: Decimal
    apr: Decimal
    minimum_payment: Decimal


def default_minimum_payment(balance: Decimal) -> Decimal:
    balance_cents = to_cents(balance)
    if balance_cents <= 0:
        return Decimal('0.00')
    minimum = max(to_cents(balance * MINIMUM_PAYMENT_RATE), MINIMUM_PAYMENT_FLOOR_CENTS)
    return from_cents(min(minimum, balance_cents))


def card_debts_for_user(user: User) -> List[CardDebt]:
    """Snapshot the caller's credit-card and debt accounts that still owe money."""
    debts = []
    accounts = BankAccount.objects.filter(user=user, account_type__in=DEBT_ACCOUNT_TYPES).order_by('name')
    for account in accounts:
        balance = abs(account.current_balance)
        if balance == 0:
            continue
        minimum = account.minimum_payment
        if minimum is None or minimum <= 0:
            minimum = default_minimum_payment(balance)
        debts.append(CardDebt(
            account_id=str(account.id),
            name=account.display_name,
            balance=balance,
            apr=account.apr,
            minimum_payment=minimum,
        ))
    return debts


def monthly_interest_cents(balance_cents: int, apr: Decimal) -> int:
    """``balance * apr / 12 / 100``, rounded half-up to a cent."""
    if balance_cents <= 0 or apr <= 0:
        return 0
    interest = Decimal(balance_cents) * Decimal(apr) / Decimal(1200)
    return int(interest.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def max_months() -> int:
    return getattr(settings, 'DEBT_MAX_SIMULATION_MONTHS', 600)


class _Card:
    __slots__ = ('index', 'debt', 'balance', 'apr', 'minimum')

    def __init__(self, index: int, debt: CardDebt):
        self.index = index
        self.debt = debt
        self.balance = to_cents(debt.balance)
        self.apr = Decimal(debt.apr)
        self.minimum = to_cents(debt.minimum_payment)


def priority_order(cards: List[_Card], strategy: str) -> List[_Card]:
    if strategy == AVALANCHE:
        return sorted(cards, key=lambda card: (-card.apr, card.balance, card.index))
    return sorted(cards, key=lambda card: (card.balance, -card.apr, card.index))


def simulate_payoff(debts: List[CardDebt], extra_budget: Decimal, strategy: str) -> Dict:
    """
    Simulate paying off ``debts`` month by month.

    Each month every unpaid card accrues interest, receives its minimum
    (capped at its balance), and the rest of the monthly budget flows to
    unpaid cards in priority order. Snowball re-ranks by the current
    balance every month.

    The run is infeasible when a month ends with no less owed than it
    started (the budget does not even cover interest) or when the month
    cap is reached.

    Returns:
        dict with strategy, feasible, monthly_budget, months_to_payoff,
        total_interest, total_paid and payoff_order (``[{'account_id',
        'name', 'month'}]`` in the order cards hit zero). Months and
        totals are None for an infeasible run.

    Raises:
        UnknownStrategyError: ``strategy`` is not avalanche or snowball
    """
    if strategy not in STRATEGIES:
        raise UnknownStrategyError(f"Unknown strategy: '{strategy}'. Valid options: avalanche, snowball")

    cards = [_Card(index, debt) for index, debt in enumerate(debts)]
    budget = sum(min(card.minimum, card.balance) for card in cards if card.balance > 0)
    budget += max(0, to_cents(extra_budget))

    total_interest = 0
    total_paid = 0
    months = 0
    payoff_order = []
    feasible = True
    cap = max_months()

    while any(card.balance > 0 for card in cards):
        if months >= cap:
            feasible = False
            break

        months += 1
        owed_before = sum(card.balance for card in cards)
        unpaid = [card for card in cards if card.balance > 0]

        for card in unpaid:
            interest = monthly_interest_cents(card.balance, card.apr)
            card.balance += interest
            total_interest += interest

        remaining = budget
        for card in unpaid:
            payment = min(card.minimum, card.balance, remaining)
            card.balance -= payment
            remaining -= payment
            total_paid += payment

        for card in priority_order(unpaid, strategy):
            if remaining <= 0:
                break
            payment = min(card.balance, remaining)
            card.balance -= payment
            remaining -= payment
            total_paid += payment

        for card in unpaid:
            if card.balance == 0:
                payoff_order.append({
                    'account_id': card.debt.account_id,
                    'name': card.debt.name,
                    'month': months,
                })

        if sum(card.balance for card in cards) >= owed_before:
            feasible = False
            break

    logger.debug(
        "Simulated %s over %d debts: %d months, %d cents interest, feasible=%s",
        strategy, len(debts), months, total_interest, feasible,
    )

    return {
        'strategy': strategy,
        'feasible': feasible,
        'monthly_budget': from_cents(budget),
        'months_to_payoff': months if feasible else None,
        'total_interest': from_cents(total_interest) if feasible else None,
        'total_paid': from_cents(total_paid) if feasible else None,
        'payoff_order': payoff_order,
    }


def compare_strategies(debts: List[CardDebt], extra_budget: Decimal) -> Dict:
    """
    Run both strategies over the same debts and recommend one.

    ``interest_difference`` is snowball minus avalanche interest.
    Avalanche is recommended when it saves more than $50 (or when only
    it finishes); otherwise snowball, for the quicker early wins.
    """
    avalanche = simulate_payoff(debts, extra_budget, AVALANCHE)
    snowball = simulate_payoff(debts, extra_budget, SNOWBALL)

    interest_difference = None
    months_difference = None
    if avalanche['feasible'] and snowball['feasible']:
        difference_cents = to_cents(snowball['total_interest']) - to_cents(avalanche['total_interest'])
        interest_difference = from_cents(difference_cents)
        months_difference = snowball['months_to_payoff'] - avalanche['months_to_payoff']

        if difference_cents > RECOMMEND_AVALANCHE_ABOVE_CENTS:
            recommended = AVALANCHE
            reason = "Avalanche saves the most interest by paying the highest APR first"
        else:
            recommended = SNOWBALL
            reason = "The interest difference is small; snowball clears balances sooner for quick wins"
    elif snowball['feasible']:
        recommended = SNOWBALL
        reason = "Only snowball pays the debts off with this budget"
    else:
        recommended = AVALANCHE
        reason = (
            "Avalanche minimizes interest"
            if avalanche['feasible']
            else "The monthly budget does not cover the interest; increase the extra budget"
        )

    return {
        'debts': [
            {
                'account_id': debt.account_id,
                'name': debt.name,
                'balance': from_cents(to_cents(debt.balance)),
                'apr': debt.apr,
                'minimum_payment': from_cents(to_cents(debt.minimum_payment)),
            }
            for debt in debts
        ],
        'extra_budget': from_cents(max(0, to_cents(extra_budget))),
        'avalanche': avalanche,
        'snowball': snowball,
        'interest_difference': interest_difference,
        'months_difference': months_difference,
        'recommended': recommended,
        'reason': reason,
    }
