# billing/signals.py

"""
TABLE RELEASE

Sent after a bill is finalized (PAID / CREDIT) and its table is free again.
Receivers are best-effort: failures are logged and returned as warnings,
never raised.

Each receiver runs in its own savepoint, so a receiver that writes and then
fails leaves nothing behind and cannot poison the bill's transaction.

Additional callables can be listed in settings.BILLING_TABLE_CLEANUP_HOOKS
as dotted paths; each is called as hook(table_no=..., bill_no=...).
"""

from __future__ import annotations

import logging

from asgiref.sync import async_to_sync
from django.conf import settings
from django.db import transaction
from django.dispatch import Signal
from django.utils.module_loading import import_string


logger = logging.getLogger("billing")

table_released = Signal()


def _receiver_name(receiver) -> str:
    return getattr(receiver, "__qualname__", None) or repr(receiver)


def _isolated_receivers(sender):
    # One savepoint per receiver; send_robust() would share a single one.
    sync_receivers, async_receivers = table_released._live_receivers(sender)
    yield from sync_receivers
    for receiver in async_receivers:
        yield async_to_sync(receiver)


def release_table(*, table_no, bill_no, sender=None) -> list[str]:
    warnings: list[str] = []
    if table_no is None:
        return warnings

    for receiver in _isolated_receivers(sender):
        try:
            with transaction.atomic():
                receiver(
                    signal=table_released,
                    sender=sender,
                    table_no=table_no,
                    bill_no=bill_no,
                )
        except Exception as exc:
            logger.exception(
                "Table cleanup receiver failed",
                extra={
                    "table_no": table_no,
                    "bill_no": bill_no,
                    "receiver": _receiver_name(receiver),
                },
            )
            warnings.append(f"Table {table_no} cleanup failed: {exc}")

    for path in getattr(settings, "BILLING_TABLE_CLEANUP_HOOKS", ()) or ():
        try:
            hook = import_string(path)
            with transaction.atomic():
                hook(table_no=table_no, bill_no=bill_no)
        except Exception as exc:
            logger.exception(
                "Table cleanup hook failed",
                extra={"table_no": table_no, "bill_no": bill_no, "hook": path},
            )
            warnings.append(f"Table {table_no} cleanup hook {path} failed: {exc}")

    return warnings
