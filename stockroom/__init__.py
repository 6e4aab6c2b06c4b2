"""Two-warehouse inventory tracker with a department movement ledger."""

from .backup import export_backup, restore_backup
from .catalog import CatalogStore
from .commit import CommitProcessor
from .config import StockroomConfig, load_config
from .errors import (
    InvalidBackupFormat,
    InvalidQuantity,
    NotFoundError,
    StockroomError,
    ValidationError,
)
from .ledger import Ledger
from .matrix import Cell, TransactionMatrix
from .models import Department, Item, TransactionRecord
from .reconcile import DisplayCell, Workbench, merge_for_display, replay_committed
from .reversal import ReversalOutcome, ReversalProcessor
from .store import InventoryStore

__all__ = [
    "Item",
    "Department",
    "TransactionRecord",
    "Cell",
    "TransactionMatrix",
    "CatalogStore",
    "Ledger",
    "InventoryStore",
    "CommitProcessor",
    "ReversalProcessor",
    "ReversalOutcome",
    "Workbench",
    "DisplayCell",
    "replay_committed",
    "merge_for_display",
    "export_backup",
    "restore_backup",
    "StockroomConfig",
    "load_config",
    "StockroomError",
    "ValidationError",
    "InvalidQuantity",
    "NotFoundError",
    "InvalidBackupFormat",
]
