from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from .reconciliation import build_reconciliation_report
from .serializers import ReconciliationQuerySerializer, ReconciliationReportSerializer


@extend_schema(
    parameters=[
        OpenApiParameter(
            'expected_surplus',
            OpenApiTypes.DECIMAL,
            description='Surplus you expect to be unallocated; omit to only flag a negative surplus',
        ),
    ],
    responses={200: ReconciliationReportSerializer},
    description="Check that account balances equal envelope balances less CC holding plus surplus.",
    tags=['reconciliation'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def reconciliation_report(request):
    """Reconciliation report - thin HTTP handler."""
    query_serializer = ReconciliationQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)

    data = build_reconciliation_report(
        user=request.user,
        expected_surplus=query_serializer.validated_data.get('expected_surplus'),
    )

    return Response(ReconciliationReportSerializer(data).data)
