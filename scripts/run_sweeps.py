import argparse
import logging
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running this script directly.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from procurement.config import get_settings
from procurement.core.logging import setup_logging
from procurement.database import ensure_schema
from procurement.dependencies import get_services
from procurement.scheduler.sweeps import build_scheduler, run_all_sweeps

logger = logging.getLogger(__name__)


def parse_args():
    parser = argparse.ArgumentParser(description="Run the GRN/CO auto-approval and PO auto-close sweeps.")
    parser.add_argument(
        "--run-once",
        action="store_true",
        help="Run every sweep once and exit.",
    )
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()
    settings = get_settings()

    ensure_schema()
    services = get_services()

    if args.run_once:
        for name, stats in run_all_sweeps(services).items():
            print(f"{name}: {stats if stats is not None else 'failed'}")
        return

    if not settings.SCHEDULER_ENABLED:
        logger.info("Scheduler disabled by SCHEDULER_ENABLED.")
        return

    build_scheduler(services, settings).run_forever()


if __name__ == "__main__":
    main()
