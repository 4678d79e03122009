# banking/api/serializers.py

from rest_framework import serializers

from banking.models import BankAccount, BankLedgerEntry, BankLedgerReversal


class BankAccountSerializer(serializers.ModelSerializer):
    class Meta:
        model = BankAccount
        fields = "__all__"
        read_only_fields = ("id", "balance", "version", "created_at", "updated_at")


class BankLedgerEntrySerializer(serializers.ModelSerializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = BankLedgerEntry
        fields = [
            "id",
            "account",
            "particulars",
            "deposit",
            "withdraw",
            "amount",
            "balance_after",
            "kind",
            "reference_type",
            "reference_id",
            "remarks",
            "transaction_date",
            "created_by",
            "created_at",
        ]


class BankLedgerReversalSerializer(serializers.ModelSerializer):
    class Meta:
        model = BankLedgerReversal
        fields = "__all__"


class BankEntryCreateSerializer(serializers.Serializer):
    kind = serializers.ChoiceField(choices=[k for k, _ in BankLedgerEntry.KINDS])
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    particulars = serializers.CharField(required=False, allow_blank=True, default="")
    reference_type = serializers.CharField(required=False, allow_blank=True, default="")
    reference_id = serializers.IntegerField(required=False, allow_null=True)
    remarks = serializers.CharField(required=False, allow_blank=True, default="")
    transaction_date = serializers.DateField(required=False, allow_null=True)


class BankBalanceAdjustSerializer(serializers.Serializer):
    target_balance = serializers.DecimalField(max_digits=14, decimal_places=2)
    remarks = serializers.CharField(required=False, allow_blank=True, default="")


class BankEntryDeleteSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")
