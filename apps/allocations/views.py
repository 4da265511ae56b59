from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from .serializers import (
    # Input serializers
    EnvelopeAllocationsReplaceSerializer,
    EnvelopeAllocationUpsertSerializer,
    ApprovePayEventSerializer,
    SurplusAmountQuerySerializer,
    IncomeDetectionSerializer,
    # Response serializers
    IncomeRealitySerializer,
    EnvelopeIncomeAllocationSerializer,
    AllocationPlanSerializer,
    SurplusAllocationSerializer,
    IncomeDetectionResultSerializer,
    ErrorSerializer,
)
from .services import (
    compute_income_reality,
    get_envelope_allocations,
    replace_envelope_allocations,
    upsert_envelope_allocation,
    approve_pay_event,
    get_allocation_plan,
    preview_surplus_allocation,
    apply_surplus_allocation,
    detect_income_source,
    # Exceptions
    AllocationValidationError,
    EnvelopeNotFoundError,
    IncomeSourceNotFoundError,
    TransactionNotFoundError,
    PlanNotFoundError,
    SurplusEnvelopeMissingError,
    InsufficientSurplusError,
)

NOT_FOUND_ERRORS = (
    EnvelopeNotFoundError,
    IncomeSourceNotFoundError,
    TransactionNotFoundError,
    PlanNotFoundError,
)


@extend_schema(
    responses={200: IncomeRealitySerializer},
    description="Per income source: income, committed amount from the allocation plan and surplus.",
    tags=['allocations'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def income_reality(request):
    """Income vs commitments - thin HTTP handler."""
    data = compute_income_reality(user=request.user)
    return Response(IncomeRealitySerializer(data).data)


@extend_schema(
    methods=['GET'],
    responses={200: EnvelopeIncomeAllocationSerializer(many=True), 404: ErrorSerializer},
    description="Get the saved income allocations for an envelope.",
    tags=['allocations'],
)
@extend_schema(
    methods=['POST'],
    request=EnvelopeAllocationsReplaceSerializer,
    responses={200: EnvelopeIncomeAllocationSerializer(many=True), 400: ErrorSerializer, 404: ErrorSerializer},
    description="Replace every income allocation of an envelope. Zero amounts are dropped.",
    tags=['allocations'],
)
@extend_schema(
    methods=['PATCH'],
    request=EnvelopeAllocationUpsertSerializer,
    responses={200: EnvelopeIncomeAllocationSerializer(many=True), 404: ErrorSerializer},
    description="Set one income source's amount for an envelope; amount <= 0 removes it.",
    tags=['allocations'],
)
@api_view(['GET', 'POST', 'PATCH'])
@permission_classes([IsAuthenticated])
def envelope_allocations(request, envelope_id):
    """Read or edit the plan rows of one envelope."""
    try:
        if request.method == 'POST':
            serializer = EnvelopeAllocationsReplaceSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            replace_envelope_allocations(
                user=request.user,
                envelope_id=envelope_id,
                entries=serializer.validated_data['allocations'],
            )
        elif request.method == 'PATCH':
            serializer = EnvelopeAllocationUpsertSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            upsert_envelope_allocation(
                user=request.user,
                envelope_id=envelope_id,
                income_source_id=serializer.validated_data['income_source_id'],
                amount=serializer.validated_data['amount'],
            )

        allocations = get_envelope_allocations(user=request.user, envelope_id=envelope_id)
    except NOT_FOUND_ERRORS as e:
        raise NotFound(str(e))
    except AllocationValidationError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(EnvelopeIncomeAllocationSerializer(allocations, many=True).data)


@extend_schema(
    request=ApprovePayEventSerializer,
    responses={
        201: AllocationPlanSerializer,
        200: AllocationPlanSerializer,
        400: ErrorSerializer,
        404: ErrorSerializer,
    },
    description=(
        "Commit an incoming transaction across envelopes. Allocations plus surplus "
        "must equal the transaction amount within $0.01. Approving the same "
        "transaction again returns the existing plan (200) without moving money."
    ),
    tags=['allocations'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def approve_allocation(request):
    """Approve a pay event - thin HTTP handler."""
    serializer = ApprovePayEventSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    params = serializer.validated_data

    try:
        plan, created = approve_pay_event(
            user=request.user,
            transaction_id=params['transaction_id'],
            allocations=params['allocations'],
            surplus_amount=params['surplus_amount'],
            income_source_id=params['income_source_id'],
            update_plan=params['update_plan'],
        )
    except NOT_FOUND_ERRORS as e:
        raise NotFound(str(e))
    except AllocationValidationError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    plan = get_allocation_plan(user=request.user, plan_id=plan.id)
    return Response(
        AllocationPlanSerializer(plan).data,
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
    )


@extend_schema(
    responses={200: AllocationPlanSerializer, 404: ErrorSerializer},
    description="Get an approved allocation plan with its items.",
    tags=['allocations'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def allocation_plan_detail(request, plan_id):
    try:
        plan = get_allocation_plan(user=request.user, plan_id=plan_id)
    except PlanNotFoundError as e:
        raise NotFound(str(e))
    return Response(AllocationPlanSerializer(plan).data)


@extend_schema(
    methods=['GET'],
    parameters=[
        OpenApiParameter('amount', OpenApiTypes.DECIMAL, description='Amount to distribute (default: allocatable surplus)'),
    ],
    responses={200: SurplusAllocationSerializer},
    description="Preview a largest-deficit-first distribution of surplus.",
    tags=['allocations'],
)
@extend_schema(
    methods=['POST'],
    request=SurplusAmountQuerySerializer,
    responses={200: SurplusAllocationSerializer, 400: ErrorSerializer, 409: ErrorSerializer},
    description="Move money from the surplus envelope into the envelopes furthest below target.",
    tags=['allocations'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def allocate_surplus(request):
    """Preview (GET) or apply (POST) surplus rebalancing."""
    source = request.query_params if request.method == 'GET' else request.data
    serializer = SurplusAmountQuerySerializer(data=source)
    serializer.is_valid(raise_exception=True)
    amount = serializer.validated_data.get('amount')

    if request.method == 'GET':
        data = preview_surplus_allocation(user=request.user, amount=amount)
        return Response(SurplusAllocationSerializer(data).data)

    try:
        data = apply_surplus_allocation(user=request.user, amount=amount)
    except (SurplusEnvelopeMissingError, AllocationValidationError) as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except InsufficientSurplusError as e:
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)

    return Response(SurplusAllocationSerializer(data).data)


@extend_schema(
    request=IncomeDetectionSerializer,
    responses={200: IncomeDetectionResultSerializer, 404: ErrorSerializer},
    description="Match an incoming transaction to a known income source and suggest its saved plan.",
    tags=['allocations'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def income_detection(request):
    serializer = IncomeDetectionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        data = detect_income_source(
            user=request.user,
            transaction_id=serializer.validated_data['transaction_id'],
        )
    except TransactionNotFoundError as e:
        raise NotFound(str(e))

    return Response(IncomeDetectionResultSerializer(data).data)
