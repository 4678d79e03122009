# banking/services/bank_ledger.py

"""
======================================================
PATH: banking/services/bank_ledger.py
======================================================
BANK LEDGER SERVICES

Purpose:
- Deposit / withdraw against a bank account with an immutable ledger entry.
- Reverse ("delete") an entry with a compensation record.
- Explicit balance adjustment (the only way to move balance to a target).
- Balance and history queries.

Rules:
- Amounts must be > 0; validation happens before any write.
- Negative balances are tolerated (no floor check).
- Entry + account balance are written in one atomic unit, with the account
  row locked (select_for_update) and its version bumped.

Reversal modes (settings.BANK_REVERSAL_MODE):
- "replay"  (default): balance = opening_balance + sum(remaining entries);
                       later entries get their balance_after snapshots rebuilt.
- "inverse": balance -= signed amount of the removed entry; later snapshots
             are left as written.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
import logging

from django.conf import settings
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from banking.models import BankAccount, BankLedgerEntry, BankLedgerReversal
from core.context import OperationContext
from core.exceptions import EngineValidationError, EntityNotFoundError
from core.money import ZERO, money


logger = logging.getLogger("banking")


class BankLedgerError(EngineValidationError):
    pass


class BankAccountNotFoundError(BankLedgerError, EntityNotFoundError):
    pass


class BankEntryNotFoundError(BankLedgerError, EntityNotFoundError):
    pass


REVERSAL_REPLAY = "replay"
REVERSAL_INVERSE = "inverse"


@dataclass(frozen=True)
class ReversalResult:
    reversal_id: int
    account_id: int
    original_entry_id: int
    balance_before: Decimal
    balance_after: Decimal
    rebuilt_snapshots: int
    mode: str


# ======================================================
# INTERNALS
# ======================================================

def _reversal_mode() -> str:
    mode = str(getattr(settings, "BANK_REVERSAL_MODE", REVERSAL_REPLAY) or "").lower().strip()
    if mode not in (REVERSAL_REPLAY, REVERSAL_INVERSE):
        logger.warning(
            "Unknown BANK_REVERSAL_MODE, falling back to replay",
            extra={"mode": mode},
        )
        return REVERSAL_REPLAY
    return mode


def _require_amount(amount) -> Decimal:
    if amount is None or amount == "":
        raise BankLedgerError("Amount is required")
    try:
        amt = money(amount)
    except ValueError as exc:
        raise BankLedgerError(str(exc)) from exc
    if amt <= ZERO:
        raise BankLedgerError("Amount must be > 0")
    return amt


def _lock_account(account_id, *, require_active: bool = True) -> BankAccount:
    if account_id is None:
        raise BankLedgerError("Bank account is required")
    try:
        account = BankAccount.objects.select_for_update().get(pk=account_id)
    except BankAccount.DoesNotExist as exc:
        logger.error("Bank account not found", extra={"account_id": account_id})
        raise BankAccountNotFoundError(f"Bank account {account_id} not found") from exc

    if require_active and not account.is_active:
        raise BankLedgerError(f"Bank account {account.name} is inactive")
    return account


def _post_entry(
    *,
    account_id,
    kind: str,
    amount,
    particulars: str = "",
    reference_type: str = "",
    reference_id=None,
    remarks: str = "",
    transaction_date=None,
    ctx: OperationContext | None = None,
) -> BankLedgerEntry:
    amt = _require_amount(amount)
    account = _lock_account(account_id)
    ctx = ctx or OperationContext.system()

    signed = amt if kind == BankLedgerEntry.KIND_DEPOSIT else -amt
    new_balance = money(account.balance) + signed

    entry = BankLedgerEntry.objects.create(
        account=account,
        particulars=particulars or "",
        deposit=amt if kind == BankLedgerEntry.KIND_DEPOSIT else ZERO,
        withdraw=amt if kind == BankLedgerEntry.KIND_WITHDRAW else ZERO,
        balance_after=new_balance,
        kind=kind,
        reference_type=reference_type or "",
        reference_id=reference_id,
        remarks=remarks or "",
        transaction_date=transaction_date or timezone.localdate(),
        created_by=ctx.employee_id,
    )

    account.balance = new_balance
    account.version = account.version + 1
    account.save(update_fields=["balance", "version", "updated_at"])

    if new_balance < ZERO:
        logger.warning(
            "Bank account balance is negative",
            extra={"account_id": account.id, "balance": str(new_balance)},
        )

    logger.info(
        "Bank ledger entry posted",
        extra={
            "entry_id": entry.id,
            "account_id": account.id,
            "kind": kind,
            "amount": str(amt),
            "balance_after": str(new_balance),
            "reference_type": entry.reference_type,
            "reference_id": reference_id,
        },
    )
    return entry


# ======================================================
# COMMANDS
# ======================================================

@transaction.atomic
def deposit(
    *,
    account_id,
    amount,
    particulars: str = "",
    reference_type: str = "",
    reference_id=None,
    remarks: str = "",
    transaction_date=None,
    ctx: OperationContext | None = None,
) -> BankLedgerEntry:
    return _post_entry(
        account_id=account_id,
        kind=BankLedgerEntry.KIND_DEPOSIT,
        amount=amount,
        particulars=particulars,
        reference_type=reference_type,
        reference_id=reference_id,
        remarks=remarks,
        transaction_date=transaction_date,
        ctx=ctx,
    )


@transaction.atomic
def withdraw(
    *,
    account_id,
    amount,
    particulars: str = "",
    reference_type: str = "",
    reference_id=None,
    remarks: str = "",
    transaction_date=None,
    ctx: OperationContext | None = None,
) -> BankLedgerEntry:
    return _post_entry(
        account_id=account_id,
        kind=BankLedgerEntry.KIND_WITHDRAW,
        amount=amount,
        particulars=particulars,
        reference_type=reference_type,
        reference_id=reference_id,
        remarks=remarks,
        transaction_date=transaction_date,
        ctx=ctx,
    )


@transaction.atomic
def record_bill_payment(
    *,
    account_id,
    bill_no: int,
    amount,
    table_name: str = "",
    transaction_date=None,
    ctx: OperationContext | None = None,
) -> BankLedgerEntry:
    """Deposit for a sale bill settled through a bank account."""
    label = f"Bill Payment #{bill_no}"
    if table_name:
        label = f"{label} ({table_name})"

    return deposit(
        account_id=account_id,
        amount=amount,
        particulars=label,
        reference_type=BankLedgerEntry.REF_BILL_PAYMENT,
        reference_id=bill_no,
        remarks=f"Bill-no-{bill_no}",
        transaction_date=transaction_date,
        ctx=ctx,
    )


@transaction.atomic
def adjust_balance(
    *,
    account_id,
    target_balance,
    remarks: str = "",
    ctx: OperationContext | None = None,
) -> BankLedgerEntry | None:
    """
    Move the balance to target_balance by posting the signed delta.
    Returns None when the balance already matches.
    """
    account = _lock_account(account_id)
    try:
        target = money(target_balance)
    except ValueError as exc:
        raise BankLedgerError(str(exc)) from exc

    delta = target - money(account.balance)
    if delta == ZERO:
        return None

    kind = BankLedgerEntry.KIND_DEPOSIT if delta > ZERO else BankLedgerEntry.KIND_WITHDRAW
    return _post_entry(
        account_id=account.id,
        kind=kind,
        amount=abs(delta),
        particulars="Balance Adjustment",
        reference_type=BankLedgerEntry.REF_ADJUSTMENT,
        remarks=remarks or "Manual balance adjustment",
        ctx=ctx,
    )


@transaction.atomic
def delete_transaction(
    *,
    entry_id,
    reason: str = "",
    ctx: OperationContext | None = None,
) -> ReversalResult:
    """
    DELETE = REVERSE

    Removes the entry, writes a BankLedgerReversal and restores the balance
    according to BANK_REVERSAL_MODE. Inactive accounts can still be reversed.
    """
    ctx = ctx or OperationContext.system()

    try:
        entry = BankLedgerEntry.objects.get(pk=entry_id)
    except BankLedgerEntry.DoesNotExist as exc:
        logger.error("Bank ledger entry not found", extra={"entry_id": entry_id})
        raise BankEntryNotFoundError(f"Bank transaction {entry_id} not found") from exc

    account = _lock_account(entry.account_id, require_active=False)
    mode = _reversal_mode()
    balance_before = money(account.balance)

    reversal = BankLedgerReversal.objects.create(
        original_entry_id=entry.id,
        account=account,
        kind=entry.kind,
        amount=entry.amount,
        original_transaction_date=entry.transaction_date,
        reference_type=entry.reference_type,
        reference_id=entry.reference_id,
        balance_before=balance_before,
        balance_after=balance_before,
        mode=mode,
        reason=reason or "",
        reversed_by=ctx.employee_id,
    )

    original_id = entry.id
    signed = entry.signed_amount
    BankLedgerEntry.objects.filter(pk=original_id).delete()

    rebuilt = 0
    if mode == REVERSAL_REPLAY:
        new_balance, rebuilt = _replay_snapshots(account=account)
    else:
        new_balance = balance_before - signed

    account.balance = new_balance
    account.version = account.version + 1
    account.save(update_fields=["balance", "version", "updated_at"])

    reversal.balance_after = new_balance
    reversal.save(update_fields=["balance_after"])

    logger.info(
        "Bank ledger entry reversed",
        extra={
            "entry_id": original_id,
            "account_id": account.id,
            "mode": mode,
            "balance_before": str(balance_before),
            "balance_after": str(new_balance),
            "rebuilt_snapshots": rebuilt,
        },
    )

    return ReversalResult(
        reversal_id=reversal.id,
        account_id=account.id,
        original_entry_id=original_id,
        balance_before=balance_before,
        balance_after=new_balance,
        rebuilt_snapshots=rebuilt,
        mode=mode,
    )


def _replay_snapshots(*, account: BankAccount) -> tuple[Decimal, int]:
    running = money(account.opening_balance)
    rebuilt = 0
    for entry in BankLedgerEntry.objects.filter(account=account).order_by("id"):
        running = running + entry.deposit - entry.withdraw
        if entry.balance_after != running:
            BankLedgerEntry.objects.filter(pk=entry.pk).update(balance_after=running)
            rebuilt += 1
    return running, rebuilt


# ======================================================
# QUERIES
# ======================================================

def get_balance(*, account_id) -> Decimal:
    try:
        return money(BankAccount.objects.values_list("balance", flat=True).get(pk=account_id))
    except BankAccount.DoesNotExist as exc:
        raise BankAccountNotFoundError(f"Bank account {account_id} not found") from exc


def list_transactions(*, account_id, start_date=None, end_date=None):
    qs = BankLedgerEntry.objects.filter(account_id=account_id)
    if start_date:
        qs = qs.filter(transaction_date__gte=start_date)
    if end_date:
        qs = qs.filter(transaction_date__lte=end_date)
    return qs.order_by("transaction_date", "id")


def transactions_by_reference(*, reference_type: str, reference_id=None):
    qs = BankLedgerEntry.objects.filter(reference_type=reference_type)
    if reference_id is not None:
        qs = qs.filter(reference_id=reference_id)
    return qs.order_by("id")


def _sum_between(field: str, *, account_id, start_date=None, end_date=None) -> Decimal:
    total = list_transactions(
        account_id=account_id, start_date=start_date, end_date=end_date
    ).aggregate(total=Sum(field))["total"]
    return money(total or ZERO)


def total_deposits(*, account_id, start_date=None, end_date=None) -> Decimal:
    return _sum_between("deposit", account_id=account_id, start_date=start_date, end_date=end_date)


def total_withdrawals(*, account_id, start_date=None, end_date=None) -> Decimal:
    return _sum_between("withdraw", account_id=account_id, start_date=start_date, end_date=end_date)


def last_transaction(*, account_id) -> BankLedgerEntry | None:
    return BankLedgerEntry.objects.filter(account_id=account_id).order_by("-id").first()


def transaction_count(*, account_id) -> int:
    return BankLedgerEntry.objects.filter(account_id=account_id).count()
