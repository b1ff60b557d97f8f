from procurement.services.binning_service import BinningEngine
from procurement.services.business_rules import BusinessRuleEngine, RuleDecision
from procurement.services.classifier import SKUClassifier
from procurement.services.customer_order_service import CustomerOrderService, OrderItemRequest
from procurement.services.grn_service import GRNService
from procurement.services.notifications import EmailNotifier, Notifier
from procurement.services.order_service import OrderLifecycleManager
from procurement.services.sequences import SequenceService

__all__ = [
    "BinningEngine",
    "BusinessRuleEngine",
    "CustomerOrderService",
    "EmailNotifier",
    "GRNService",
    "Notifier",
    "OrderItemRequest",
    "OrderLifecycleManager",
    "RuleDecision",
    "SKUClassifier",
    "SequenceService",
]
