from .accounts import Account, DocumentSequence
from .catalog import Item
from .customers import Customer
from .sales import Sale, SaleLine
from .cashbook import Expense, Donation, Capital, Transfer
from .receivables import LedgerTransaction
from .returns import SalesReturn, SalesReturnLine
from .purchases import Purchase, PurchaseLine

__all__ = [
    'Account', 'DocumentSequence',
    'Item',
    'Customer',
    'Sale', 'SaleLine',
    'Expense', 'Donation', 'Capital', 'Transfer',
    'LedgerTransaction',
    'SalesReturn', 'SalesReturnLine',
    'Purchase', 'PurchaseLine',
]
