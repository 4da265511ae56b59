import pytest
from decimal import Decimal
from apps.budget.models import Envelope


@pytest.fixture
def funded_envelopes(rent_envelope, groceries_envelope, cc_holding_envelope):
    """$750 across envelopes, $50 of it held for the credit card."""
    Envelope.objects.filter(id=rent_envelope.id).update(current_amount=Decimal('500.00'))
    Envelope.objects.filter(id=groceries_envelope.id).update(current_amount=Decimal('200.00'))
    Envelope.objects.filter(id=cc_holding_envelope.id).update(current_amount=Decimal('50.00'))
    return [rent_envelope, groceries_envelope, cc_holding_envelope]
