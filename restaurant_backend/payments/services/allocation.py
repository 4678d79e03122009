# payments/services/allocation.py

"""
======================================================
PATH: payments/services/allocation.py
======================================================
ALLOCATION VALIDATION (shared by supplier + customer receipts)

Everything here runs before the first write of a grouped payment:
- at least one allocation, every amount > 0
- a bill appears at most once per receipt
- |sum(allocations) - total_amount| <= LEDGER_AMOUNT_TOLERANCE
- each allocation <= bill balance + LEDGER_AMOUNT_TOLERANCE
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from core.exceptions import EngineValidationError, EntityNotFoundError
from core.money import ZERO, money, tolerance


class PaymentAllocationError(EngineValidationError):
    pass


class ReceiptNotFoundError(PaymentAllocationError, EntityNotFoundError):
    pass


@dataclass(frozen=True)
class Allocation:
    bill_id: int
    amount: Decimal


def _pair(raw) -> tuple:
    if isinstance(raw, Allocation):
        return raw.bill_id, raw.amount
    if isinstance(raw, dict):
        return raw.get("bill_id"), raw.get("amount")
    bill_id, amount = raw
    return bill_id, amount


def parse_allocations(allocations: Iterable, *, total_amount) -> tuple[Decimal, list[Allocation]]:
    """
    Accepts Allocation objects, {"bill_id", "amount"} mappings or
    (bill_id, amount) pairs. Returns (total, allocations).
    """
    try:
        total = money(total_amount)
    except ValueError as exc:
        raise PaymentAllocationError(str(exc)) from exc
    if total <= ZERO:
        raise PaymentAllocationError("total_amount must be greater than zero")

    parsed: list[Allocation] = []
    seen: set[int] = set()
    for raw in allocations or ():
        bill_id, amount = _pair(raw)
        if bill_id is None:
            raise PaymentAllocationError("bill_id is required on every allocation")
        try:
            bill_id = int(bill_id)
            value = money(amount)
        except (TypeError, ValueError) as exc:
            raise PaymentAllocationError(f"Bill #{bill_id}: {exc}") from exc
        if value <= ZERO:
            raise PaymentAllocationError(f"Bill #{bill_id}: amount must be greater than zero")
        if bill_id in seen:
            raise PaymentAllocationError(f"Bill #{bill_id} is allocated more than once")
        seen.add(bill_id)
        parsed.append(Allocation(bill_id=bill_id, amount=value))

    if not parsed:
        raise PaymentAllocationError("At least one bill allocation is required")

    allocated = money(sum((a.amount for a in parsed), ZERO))
    if abs(allocated - total) > tolerance():
        raise PaymentAllocationError(
            f"Total amount ({total}) does not match sum of allocations ({allocated})"
        )
    return total, parsed


def check_balance(*, label: str, amount: Decimal, balance: Decimal) -> None:
    if amount > money(balance) + tolerance():
        raise PaymentAllocationError(
            f"Payment amount ({amount}) exceeds balance ({money(balance)}) for {label}"
        )


def is_fully_paid(*, paid_amount, net_amount) -> bool:
    return money(paid_amount) >= money(net_amount) - tolerance()


def release_amount(*, paid_amount, amount) -> Decimal:
    """paid_amount - amount, floored at zero."""
    return max(money(paid_amount) - money(amount), ZERO)


def particulars_for(*, prefix: str, party_name: str, allocations: list[Allocation]) -> str:
    if len(allocations) > 1:
        return f"{prefix} - {party_name} ({len(allocations)} bills)"
    return f"{prefix} - {party_name} (Bill #{allocations[0].bill_id})"
