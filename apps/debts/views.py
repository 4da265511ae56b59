from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from .payoff import CardDebt, card_debts_for_user, compare_strategies, default_minimum_payment
from .serializers import (
    # Input serializers
    PayoffQuerySerializer,
    PayoffScenarioSerializer,
    # Response serializers
    PayoffComparisonSerializer,
)


@extend_schema(
    methods=['GET'],
    parameters=[
        OpenApiParameter('extra_budget', OpenApiTypes.DECIMAL, description='Monthly amount above the minimums'),
    ],
    responses={200: PayoffComparisonSerializer},
    description="Compare avalanche and snowball payoff of your credit-card and debt accounts.",
    tags=['debts'],
)
@extend_schema(
    methods=['POST'],
    request=PayoffScenarioSerializer,
    responses={200: PayoffComparisonSerializer},
    description="Compare avalanche and snowball payoff for an explicit set of debts.",
    tags=['debts'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def payoff(request):
    """Debt payoff comparison - thin HTTP handler."""
    if request.method == 'GET':
        query_serializer = PayoffQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)

        debts = card_debts_for_user(request.user)
        extra_budget = query_serializer.validated_data['extra_budget']
    else:
        serializer = PayoffScenarioSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        debts = [
            CardDebt(
                account_id=None,
                name=row['name'],
                balance=row['balance'],
                apr=row['apr'],
                minimum_payment=row.get('minimum_payment') or default_minimum_payment(row['balance']),
            )
            for row in serializer.validated_data['debts']
        ]
        extra_budget = serializer.validated_data['extra_budget']

    data = compare_strategies(debts, extra_budget)
    return Response(PayoffComparisonSerializer(data).data)
