"""
Transfers app services layer.

Scoring is pure; matching reads, linking and pending flags write.
Every write claims its rows with a conditional update.
"""

from .exceptions import (
    TransfersServiceError,
    TransactionNotFoundError,
    TransferValidationError,
    AlreadyLinkedError,
    NotLinkedError,
)

from .scoring import (
    TransferScore,
    score_transfer_pair,
    find_candidates,
    confidence_label,
    HIGH_CONFIDENCE,
    MEDIUM_CONFIDENCE,
)

from .linking import (
    link_transfer,
    unlink_transfer,
)

from .matching import (
    detect_for_transaction,
    scan_for_transfers,
    auto_link_transfers,
)

from .pending import (
    list_pending,
    mark_transfer_pending,
    clear_transfer_pending,
)


__all__ = [
    # Exceptions
    'TransfersServiceError',
    'TransactionNotFoundError',
    'TransferValidationError',
    'AlreadyLinkedError',
    'NotLinkedError',

    # Scoring
    'TransferScore',
    'score_transfer_pair',
    'find_candidates',
    'confidence_label',
    'HIGH_CONFIDENCE',
    'MEDIUM_CONFIDENCE',

    # Linking
    'link_transfer',
    'unlink_transfer',

    # Matching
    'detect_for_transaction',
    'scan_for_transfers',
    'auto_link_transfers',

    # Pending
    'list_pending',
    'mark_transfer_pending',
    'clear_transfer_pending',
]
