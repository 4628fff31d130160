from .catalog import Store, ItemGroup, Item
from .stock import StockEntry
from .pos import Transaction, TransactionItem, OutboxEvent

__all__ = [
    'Store', 'ItemGroup', 'Item',
    'StockEntry',
    'Transaction', 'TransactionItem', 'OutboxEvent',
]
