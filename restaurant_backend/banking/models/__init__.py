from .account import BankAccount
from .ledger import BankLedgerEntry, BankLedgerReversal

__all__ = [
    "BankAccount",
    "BankLedgerEntry",
    "BankLedgerReversal",
]
