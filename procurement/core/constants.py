from pathlib import Path


PACKAGE_DIR = Path(__file__).resolve().parents[1]
PROJECT_ROOT = PACKAGE_DIR.parent

# ==============================
# Table names
# ==============================
SALES_TABLE = "SalesData"
BINNING_CONFIG_TABLE = "BinningConfig"
BUSINESS_RULES_TABLE = "BusinessRules"
CLASSIFICATION_TABLE = "SKUClassification"
PO_TRACKING_TABLE = "POTracking"
LINE_ITEMS_TABLE = "POLineItems"
GRN_TABLE = "GRNTracking"
CUSTOMER_ORDERS_TABLE = "CustomerOrders"
CUSTOMER_MASTER_TABLE = "CustomerMaster"
DISTRIBUTOR_MATRIX_TABLE = "Brand_Outlet_Distributor"
VENDOR_DETAILS_TABLE = "Vendor_Details"
ITEM_MASTER_TABLE = "ItemMaster"
PO_BATCH_TABLE = "POBatch"

# ==============================
# Binning
# ==============================
BIN_PERCENTILES = (0.20, 0.40, 0.60, 0.80, 0.95)
BIN_PACK_QUANTITIES = (12, 6, 4, 3, 2, 1)
INFINITY_TEXT = "Infinity"

# ==============================
# Classification labels
# ==============================
REV_CLASSES = ("A", "B", "C")
VOLUME_CLASSES = ("Fast", "Medium", "Slow")
VELOCITY_CLASSES = ("Fast", "Medium", "Slow", "Dead")
MARGIN_CLASSES = ("High", "Medium", "Low")

USAGE_NEW_ITEM = "New-Item"
USAGE_DEAD = "Dead"
USAGE_WATCH_LIST = "Watch-List"
USAGE_AUTO_REORDER = "Auto-ReOrder"

ACTIVE = "Active"
INACTIVE = "Inactive"

# ==============================
# Business rules
# ==============================
WILDCARD = "ANY"
STOCK_CONDITIONS = ("<=", ">=", "=", "between")
DEFAULT_RULE_PRIORITY = 999

# ==============================
# Orders
# ==============================
ORDER_TYPE_PO = "PO"
ORDER_TYPE_CO = "CO"

PO_STATUS_PENDING = "Pending"
PO_STATUS_SENT = "Sent"
PO_STATUS_PARTIALLY_RECEIVED = "Partially Received"
PO_STATUS_LATE_FULFILLMENT = "Late Fulfillment"
PO_STATUS_CLOSED_COMPLETE = "Closed - Complete"
PO_STATUS_CLOSED_PARTIAL = "Closed - Partial"
PO_STATUS_CLOSED_NO_RECEIPT = "Closed - No Receipt"

PO_RECEIVABLE_STATUSES = (
    PO_STATUS_SENT,
    PO_STATUS_PARTIALLY_RECEIVED,
    PO_STATUS_LATE_FULFILLMENT,
)
PO_CLOSED_STATUSES = (
    PO_STATUS_CLOSED_COMPLETE,
    PO_STATUS_CLOSED_PARTIAL,
    PO_STATUS_CLOSED_NO_RECEIPT,
)
PO_AUTO_CLOSE_STATUSES = (PO_STATUS_SENT, PO_STATUS_PARTIALLY_RECEIVED)

CO_STATUS_PENDING = "Pending"
CO_STATUS_APPROVED = "Approved"
CO_STATUS_RECEIVED = "Received"

APPROVAL_MANUAL = "Manual"
APPROVAL_AUTO = "Auto"

NEW_ITEM_CODE = "NEW_ITEM"
UNKNOWN_OUTLET_CODE = "UNK"
CUSTOMER_ID_PREFIX = "CUST"

BATCH_DONE = "DONE"

SEND_OK = "OK"
SEND_SKIPPED = "SKIPPED"
SEND_EMAIL_FAIL = "EMAIL_FAIL"
SEND_ERROR = "ERROR"
