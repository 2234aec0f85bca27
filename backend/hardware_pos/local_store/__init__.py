from .access import LocalDataAccess, LocalSession
from .record_store import LocalRecordStore
from .records import (
    LocalDelivery,
    LocalDeliveryItem,
    LocalExpense,
    LocalProduct,
    LocalRecordError,
    LocalSale,
    LocalSaleItem,
    LocalSupplier,
    LocalUser,
)

__all__ = [
    "LocalDataAccess",
    "LocalSession",
    "LocalRecordStore",
    "LocalRecordError",
    "LocalDelivery",
    "LocalDeliveryItem",
    "LocalExpense",
    "LocalProduct",
    "LocalSale",
    "LocalSaleItem",
    "LocalSupplier",
    "LocalUser",
]
