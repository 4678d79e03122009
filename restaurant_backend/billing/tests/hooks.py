# billing/tests/hooks.py

CALLS = []


def record_release(*, table_no, bill_no):
    CALLS.append((table_no, bill_no))


def failing_release(*, table_no, bill_no):
    raise RuntimeError("kitchen display offline")
