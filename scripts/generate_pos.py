import argparse
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running this script directly.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from procurement.core.logging import setup_logging
from procurement.database import ensure_schema
from procurement.dependencies import get_services


def parse_args():
    parser = argparse.ArgumentParser(description="Create purchase orders from SKUClassification.")
    parser.add_argument("--outlet", help="Outlet for a single PO.")
    parser.add_argument("--brand", help="Brand for a single PO.")
    parser.add_argument(
        "--batch",
        action="store_true",
        help="Create a PO for every pending POBatch row.",
    )
    parser.add_argument(
        "--send-approved",
        action="store_true",
        help="Email every approved, unsent PO afterwards.",
    )
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()
    if not args.batch and not (args.outlet and args.brand):
        raise SystemExit("Pass --batch or both --outlet and --brand.")

    ensure_schema()
    services = get_services()

    if args.batch:
        print(f"Batch: {services.orders.generate_pos_from_batch()}")
    else:
        result = services.orders.create_po_from_ui(args.outlet, args.brand)
        if not result.success:
            raise SystemExit(result.message)
        print(result.message)

    if args.send_approved:
        print(f"Send: {services.orders.send_approved_pos()}")


if __name__ == "__main__":
    main()
