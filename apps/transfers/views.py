from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.budget.serializers import TransactionListSerializer
from .serializers import (
    # Input serializers
    ScanQuerySerializer,
    TransactionIdSerializer,
    LinkTransferSerializer,
    # Response serializers
    TransferDetectionSerializer,
    TransferPairSerializer,
    ErrorSerializer,
)
from .services import (
    detect_for_transaction,
    scan_for_transfers,
    auto_link_transfers,
    link_transfer,
    unlink_transfer,
    list_pending,
    mark_transfer_pending,
    clear_transfer_pending,
    # Exceptions
    TransactionNotFoundError,
    TransferValidationError,
    AlreadyLinkedError,
    NotLinkedError,
)


@extend_schema(
    methods=['GET'],
    parameters=[
        OpenApiParameter('window_days', OpenApiTypes.INT, description='Days to look back (default 30)'),
    ],
    responses={200: TransferPairSerializer(many=True)},
    description="Scan recent unlinked transactions for probable transfer pairs (greedy, best first).",
    tags=['transfers'],
)
@extend_schema(
    methods=['POST'],
    request=TransactionIdSerializer,
    responses={200: TransferDetectionSerializer, 404: ErrorSerializer},
    description="Rank transfer partners for one transaction and suggest an action.",
    tags=['transfers'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def transfers(request):
    """Scan (GET) or detect for one transaction (POST) - thin HTTP handler."""
    if request.method == 'GET':
        query_serializer = ScanQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)

        pairs = scan_for_transfers(
            user=request.user,
            window_days=query_serializer.validated_data.get('window_days'),
        )
        return Response(TransferPairSerializer(pairs, many=True).data)

    serializer = TransactionIdSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        data = detect_for_transaction(
            user=request.user,
            transaction_id=serializer.validated_data['transaction_id'],
        )
    except TransactionNotFoundError as e:
        raise NotFound(str(e))

    return Response(TransferDetectionSerializer(data).data)


@extend_schema(
    responses={200: TransferPairSerializer(many=True)},
    description="Link every high-confidence pair found by a scan.",
    tags=['transfers'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def auto_link(request):
    linked = auto_link_transfers(user=request.user)
    return Response(TransferPairSerializer(linked, many=True).data)


@extend_schema(
    methods=['POST'],
    request=LinkTransferSerializer,
    responses={
        200: TransactionListSerializer(many=True),
        400: ErrorSerializer,
        404: ErrorSerializer,
        409: ErrorSerializer,
    },
    description="Link two transactions as the two sides of one transfer.",
    tags=['transfers'],
)
@extend_schema(
    methods=['DELETE'],
    request=TransactionIdSerializer,
    responses={200: TransactionListSerializer(many=True), 400: ErrorSerializer, 404: ErrorSerializer},
    description="Unlink a transfer; both sides get their previous type back.",
    tags=['transfers'],
)
@api_view(['POST', 'DELETE'])
@permission_classes([IsAuthenticated])
def link(request):
    """Link (POST) or unlink (DELETE) a transfer pair."""
    try:
        if request.method == 'POST':
            serializer = LinkTransferSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            pair = link_transfer(
                user=request.user,
                first_id=serializer.validated_data['first_id'],
                second_id=serializer.validated_data['second_id'],
            )
        else:
            serializer = TransactionIdSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            pair = unlink_transfer(
                user=request.user,
                transaction_id=serializer.validated_data['transaction_id'],
            )
    except TransactionNotFoundError as e:
        raise NotFound(str(e))
    except (TransferValidationError, NotLinkedError) as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except AlreadyLinkedError as e:
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)

    return Response(TransactionListSerializer(pair, many=True).data)


@extend_schema(
    methods=['GET'],
    responses={200: TransactionListSerializer(many=True)},
    description="List transactions flagged as pending transfers.",
    tags=['transfers'],
)
@extend_schema(
    methods=['POST', 'DELETE'],
    request=TransactionIdSerializer,
    responses={200: TransactionListSerializer, 404: ErrorSerializer, 409: ErrorSerializer},
    description="Flag (POST) or unflag (DELETE) a transaction as one side of a pending transfer.",
    tags=['transfers'],
)
@api_view(['GET', 'POST', 'DELETE'])
@permission_classes([IsAuthenticated])
def pending(request):
    if request.method == 'GET':
        rows = list_pending(user=request.user)
        return Response(TransactionListSerializer(rows, many=True).data)

    serializer = TransactionIdSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    transaction_id = serializer.validated_data['transaction_id']

    try:
        if request.method == 'POST':
            row = mark_transfer_pending(user=request.user, transaction_id=transaction_id)
        else:
            row = clear_transfer_pending(user=request.user, transaction_id=transaction_id)
    except TransactionNotFoundError as e:
        raise NotFound(str(e))
    except AlreadyLinkedError as e:
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)

    return Response(TransactionListSerializer(row).data)
