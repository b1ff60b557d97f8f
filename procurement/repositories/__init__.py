from procurement.repositories.batch import BatchRepository, BatchRequest
from procurement.repositories.binning import BinningConfigRepository, BinTable, CostBin
from procurement.repositories.classification import ClassificationRepository, SkuClassification
from procurement.repositories.customers import (
    Customer,
    CustomerOrder,
    CustomerOrderRepository,
    CustomerRepository,
)
from procurement.repositories.directory import (
    Distributor,
    DistributorDirectory,
    ItemMasterEntry,
    ItemMasterRepository,
)
from procurement.repositories.grns import GoodsReceipt, GRNRepository
from procurement.repositories.orders import (
    LineItem,
    LineItemRepository,
    OrderTrackingRepository,
    PurchaseOrder,
    order_amount,
)
from procurement.repositories.rules import BusinessRule, BusinessRuleRepository
from procurement.repositories.sales import SalesRecord, SalesRepository

__all__ = [
    "BatchRepository",
    "BatchRequest",
    "BinTable",
    "BinningConfigRepository",
    "BusinessRule",
    "BusinessRuleRepository",
    "ClassificationRepository",
    "CostBin",
    "Customer",
    "CustomerOrder",
    "CustomerOrderRepository",
    "CustomerRepository",
    "Distributor",
    "DistributorDirectory",
    "GRNRepository",
    "GoodsReceipt",
    "ItemMasterEntry",
    "ItemMasterRepository",
    "LineItem",
    "LineItemRepository",
    "OrderTrackingRepository",
    "PurchaseOrder",
    "SalesRecord",
    "SalesRepository",
    "SkuClassification",
    "order_amount",
]
