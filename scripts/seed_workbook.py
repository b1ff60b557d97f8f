import argparse
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running this script directly.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from procurement.config import get_settings
from procurement.core.constants import DISTRIBUTOR_MATRIX_TABLE
from procurement.core.logging import setup_logging
from procurement.repositories.batch import BATCH_SCHEMA
from procurement.repositories.classification import CLASSIFICATION_SCHEMA
from procurement.repositories.customers import CUSTOMER_ORDER_SCHEMA, CUSTOMER_SCHEMA
from procurement.repositories.directory import VENDOR_SCHEMA
from procurement.repositories.grns import GRN_SCHEMA
from procurement.repositories.orders import LINE_ITEM_SCHEMA, TRACKING_SCHEMA
from procurement.repositories.rules import BusinessRuleRepository
from procurement.repositories.sales import SALES_SCHEMA
from procurement.storage import WorkbookTableStore

SCHEMAS = (
    SALES_SCHEMA,
    CLASSIFICATION_SCHEMA,
    TRACKING_SCHEMA,
    LINE_ITEM_SCHEMA,
    GRN_SCHEMA,
    CUSTOMER_ORDER_SCHEMA,
    CUSTOMER_SCHEMA,
    VENDOR_SCHEMA,
    BATCH_SCHEMA,
)


def parse_args():
    parser = argparse.ArgumentParser(description="Create an empty procurement workbook.")
    parser.add_argument("--path", default=None, help="Workbook path. Default: WORKBOOK_PATH.")
    parser.add_argument(
        "--outlets",
        nargs="*",
        default=[],
        help="Outlet columns for the brand x outlet distributor matrix.",
    )
    parser.add_argument(
        "--no-rules",
        action="store_true",
        help="Do not create the sample BusinessRules table.",
    )
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()
    path = args.path or get_settings().WORKBOOK_PATH
    store = WorkbookTableStore(path)

    for schema in SCHEMAS:
        schema.ensure(store)
    if not store.has_table(DISTRIBUTOR_MATRIX_TABLE):
        store.create_table(DISTRIBUTOR_MATRIX_TABLE, ["Brand", *args.outlets])
    seeded = 0
    if not args.no_rules:
        seeded = BusinessRuleRepository(store).seed()

    print(f"Workbook ready at {path} ({len(store.table_names())} tables, {seeded} sample rule(s))")


if __name__ == "__main__":
    main()
