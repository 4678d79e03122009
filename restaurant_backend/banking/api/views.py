# banking/api/views.py

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from banking.api.serializers import (
    BankAccountSerializer,
    BankBalanceAdjustSerializer,
    BankEntryCreateSerializer,
    BankEntryDeleteSerializer,
    BankLedgerEntrySerializer,
)
from banking.models import BankAccount, BankLedgerEntry
from banking.services import bank_ledger
from banking.services.bank_ledger import BankLedgerError
from core.api import error_response
from core.context import OperationContext


class BankAccountListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = BankAccountSerializer

    @extend_schema(tags=["banking"], responses=BankAccountSerializer(many=True))
    def get(self, request):
        qs = BankAccount.objects.order_by("name")
        return Response(BankAccountSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["banking"],
        request=BankAccountSerializer,
        responses={201: BankAccountSerializer},
    )
    def post(self, request):
        s = BankAccountSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        account = s.save()
        return Response(BankAccountSerializer(account).data, status=status.HTTP_201_CREATED)


class BankTransactionListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = BankEntryCreateSerializer

    @extend_schema(tags=["banking"], responses=BankLedgerEntrySerializer(many=True))
    def get(self, request, account_id):
        qs = bank_ledger.list_transactions(
            account_id=account_id,
            start_date=request.query_params.get("start_date") or None,
            end_date=request.query_params.get("end_date") or None,
        )
        return Response(BankLedgerEntrySerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["banking"],
        request=BankEntryCreateSerializer,
        responses={201: BankLedgerEntrySerializer},
    )
    def post(self, request, account_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        post = (
            bank_ledger.deposit
            if data["kind"] == BankLedgerEntry.KIND_DEPOSIT
            else bank_ledger.withdraw
        )
        try:
            entry = post(
                account_id=account_id,
                amount=data["amount"],
                particulars=data.get("particulars", ""),
                reference_type=data.get("reference_type", ""),
                reference_id=data.get("reference_id"),
                remarks=data.get("remarks", ""),
                transaction_date=data.get("transaction_date"),
                ctx=OperationContext.from_request(request),
            )
        except BankLedgerError as exc:
            return error_response(exc)

        return Response(BankLedgerEntrySerializer(entry).data, status=status.HTTP_201_CREATED)


class BankBalanceView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = BankBalanceAdjustSerializer

    @extend_schema(tags=["banking"])
    def get(self, request, account_id):
        try:
            balance = bank_ledger.get_balance(account_id=account_id)
        except BankLedgerError as exc:
            return error_response(exc)

        last = bank_ledger.last_transaction(account_id=account_id)
        return Response(
            {
                "account_id": account_id,
                "balance": str(balance),
                "total_deposits": str(bank_ledger.total_deposits(account_id=account_id)),
                "total_withdrawals": str(bank_ledger.total_withdrawals(account_id=account_id)),
                "transaction_count": bank_ledger.transaction_count(account_id=account_id),
                "last_transaction_id": last.id if last else None,
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(tags=["banking"], request=BankBalanceAdjustSerializer)
    def post(self, request, account_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            entry = bank_ledger.adjust_balance(
                account_id=account_id,
                target_balance=s.validated_data["target_balance"],
                remarks=s.validated_data.get("remarks", ""),
                ctx=OperationContext.from_request(request),
            )
        except BankLedgerError as exc:
            return error_response(exc)

        return Response(
            {"entry": BankLedgerEntrySerializer(entry).data if entry else None},
            status=status.HTTP_200_OK,
        )


class BankTransactionDeleteView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = BankEntryDeleteSerializer

    @extend_schema(tags=["banking"], request=BankEntryDeleteSerializer)
    def post(self, request, entry_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            result = bank_ledger.delete_transaction(
                entry_id=entry_id,
                reason=s.validated_data.get("reason", ""),
                ctx=OperationContext.from_request(request),
            )
        except BankLedgerError as exc:
            return error_response(exc)

        return Response(
            {
                "reversal_id": result.reversal_id,
                "account_id": result.account_id,
                "original_entry_id": result.original_entry_id,
                "balance_before": str(result.balance_before),
                "balance_after": str(result.balance_after),
                "rebuilt_snapshots": result.rebuilt_snapshots,
                "mode": result.mode,
            },
            status=status.HTTP_200_OK,
        )
