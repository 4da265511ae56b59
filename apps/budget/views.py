from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.pagination import PageNumberPagination
from .exceptions import LinkedTransferError
from .models import BankAccount, IncomeSource, Envelope, Transaction
from .serializers import (
    BankAccountSerializer,
    IncomeSourceSerializer,
    EnvelopeSerializer,
    TransactionSerializer,
    TransactionListSerializer,
    TransactionFilterSerializer,
)


class BudgetPagination(PageNumberPagination):
    """Custom pagination for budget rows."""
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


class OwnedModelViewSet(viewsets.ModelViewSet):
    """
    ModelViewSet scoped to the caller's own rows.

    Rows of other users are simply not in the queryset, so lookups
    return 404 rather than 403.
    """

    permission_classes = [IsAuthenticated]
    pagination_class = BudgetPagination

    def get_queryset(self):
        return self.queryset.filter(user=self.request.user)

    def perform_create(self, serializer):
        serializer.save(user=self.request.user)


class BankAccountViewSet(OwnedModelViewSet):
    """
    list: Get all of the caller's accounts
    create: Add an account
    retrieve/update/destroy: Manage one account
    """

    queryset = BankAccount.objects.all()
    serializer_class = BankAccountSerializer

    def perform_destroy(self, instance):
        # Deleting the account would cascade into one side of a transfer pair
        if instance.transactions.linked_transfers().exists():
            raise LinkedTransferError(
                "Account holds linked transfers; unlink them before deleting the account."
            )
        instance.delete()


class IncomeSourceViewSet(OwnedModelViewSet):

    queryset = IncomeSource.objects.all()
    serializer_class = IncomeSourceSerializer


class EnvelopeViewSet(OwnedModelViewSet):

    queryset = Envelope.objects.all()
    serializer_class = EnvelopeSerializer


class TransactionViewSet(OwnedModelViewSet):
    """
    ViewSet for transactions.

    Amounts are immutable after creation; transfer linking lives in the
    transfers app.
    """

    queryset = Transaction.objects.select_related('account', 'envelope')

    def get_queryset(self):
        """Filter transactions using input serializer validation."""
        queryset = super().get_queryset()

        if self.action != 'list':
            return queryset.prefetch_related('splits__envelope')

        filter_serializer = TransactionFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        if params.get('account'):
            queryset = queryset.filter(account_id=params['account'])
        if params.get('envelope'):
            queryset = queryset.filter(envelope_id=params['envelope'])
        if 'date_from' in params:
            queryset = queryset.filter(occurred_at__gte=params['date_from'])
        if 'date_to' in params:
            queryset = queryset.filter(occurred_at__lte=params['date_to'])
        if params.get('transfer_pending') is not None:
            queryset = queryset.filter(transfer_pending=params['transfer_pending'])

        return queryset

    def get_serializer_class(self):
        if self.action == 'list':
            return TransactionListSerializer
        return TransactionSerializer

    def perform_destroy(self, instance):
        if instance.is_linked:
            raise LinkedTransferError()
        instance.delete()
