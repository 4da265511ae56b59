"""
Allocations app services layer.

Services contain business logic and orchestrate operations across models.
All state-changing operations use transactions and concurrency protection.
"""

from .exceptions import (
    AllocationsServiceError,
    AllocationValidationError,
    EnvelopeNotFoundError,
    IncomeSourceNotFoundError,
    TransactionNotFoundError,
    PlanNotFoundError,
    SurplusEnvelopeMissingError,
    InsufficientSurplusError,
)

from .surplus_calculation import (
    compute_income_reality,
)

from .allocation_planning import (
    get_envelope_allocations,
    replace_envelope_allocations,
    upsert_envelope_allocation,
)

from .pay_event_approval import (
    approve_pay_event,
    get_allocation_plan,
    validate_pay_event,
    advance_pay_date,
)

from .surplus_rebalancing import (
    EnvelopeDeficit,
    plan_surplus_allocation,
    preview_surplus_allocation,
    apply_surplus_allocation,
)

from .income_detection import (
    detect_income_source,
    score_income_match,
    fit_plan_to_pay,
)


__all__ = [
    # Exceptions
    'AllocationsServiceError',
    'AllocationValidationError',
    'EnvelopeNotFoundError',
    'IncomeSourceNotFoundError',
    'TransactionNotFoundError',
    'PlanNotFoundError',
    'SurplusEnvelopeMissingError',
    'InsufficientSurplusError',

    # Income reality
    'compute_income_reality',

    # Plan editing
    'get_envelope_allocations',
    'replace_envelope_allocations',
    'upsert_envelope_allocation',

    # Pay event approval
    'approve_pay_event',
    'get_allocation_plan',
    'validate_pay_event',
    'advance_pay_date',

    # Surplus rebalancing
    'EnvelopeDeficit',
    'plan_surplus_allocation',
    'preview_surplus_allocation',
    'apply_surplus_allocation',

    # Income detection
    'detect_income_source',
    'score_income_match',
    'fit_plan_to_pay',
]
