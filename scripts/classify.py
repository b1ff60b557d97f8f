import argparse
import sys
from datetime import date
from pathlib import Path

# Ensure repo root is on sys.path when running this script directly.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from openpyxl.utils.exceptions import InvalidFileException

from procurement.core.exceptions import ConfigurationError
from procurement.core.logging import setup_logging
from procurement.dependencies import get_services


def parse_args():
    parser = argparse.ArgumentParser(description="Rebuild the SKUClassification table from SalesData.")
    parser.add_argument(
        "--today",
        type=date.fromisoformat,
        default=None,
        help="Reference date (YYYY-MM-DD). Default: now.",
    )
    parser.add_argument(
        "--recompute-bins",
        action="store_true",
        help="Rebuild BinningConfig from sales before classifying.",
    )
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()
    services = get_services()
    try:
        if args.recompute_bins and services.classifier.sales.exists():
            services.binning.recompute(services.classifier.sales.list_records())
        rows = services.classifier.classify_skus(today=args.today)
    except (OSError, ConfigurationError, InvalidFileException) as exc:
        raise SystemExit(f"Classification failed: {exc}") from exc

    usage: dict[str, int] = {}
    for row in rows:
        usage[row.usage_recommendation] = usage.get(row.usage_recommendation, 0) + 1
    print(f"Classified {len(rows)} SKU(s)")
    for label, count in sorted(usage.items()):
        print(f"  {label}: {count}")


if __name__ == "__main__":
    main()
