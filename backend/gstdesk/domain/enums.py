from enum import Enum

class LedgerGranularity(str, Enum):
    PER_EVENT = "PER_EVENT"
    PER_DAY = "PER_DAY"

class MovementKind(str, Enum):
    PURCHASE = "PURCHASE"
    SALE = "SALE"

class StockStatus(str, Enum):
    IN_STOCK = "IN_STOCK"
    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"

class CustomerMode(str, Enum):
    EXISTING = "existing"
    NEW = "new"
    GUEST = "guest"

class ImportEntity(str, Enum):
    PRODUCTS = "products"
    CUSTOMERS = "customers"
    PURCHASES = "purchases"
