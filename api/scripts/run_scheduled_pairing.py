import argparse
import logging
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from app import config
from app.logging_config import configure_logging
from app.services.pairing import execute_pairing_with_stats
from app.services.scheduler import execute_scheduled_pairing, format_summary

logger = logging.getLogger("pairwise.cron")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the pairing cycle once (meant for crontab)")
    parser.add_argument("--force", action="store_true", help="run even when PAIRING_CRON_ENABLED is false")
    parser.add_argument("--organization-id", type=str, default="", help="pair one organization now instead of the scheduled sweep")
    parser.add_argument("--log-level", type=str, default=config.LOG_LEVEL)
    args = parser.parse_args(argv)

    configure_logging(args.log_level.upper())

    organization_id = args.organization_id.strip()
    if organization_id:
        result = execute_pairing_with_stats(organization_id)
        print(result.message)
        print(f"- pairings_created: {result.pairings_created}")
        print(f"- unpaired_users: {result.unpaired_users}")
        return 0 if result.success else 1

    if not config.PAIRING_CRON_ENABLED and not args.force:
        logger.info("Scheduled pairing is disabled (PAIRING_CRON_ENABLED=false); use --force to run anyway")
        return 0

    summary = execute_scheduled_pairing()
    print(f"Scheduled pairing completed: {format_summary(summary)}")
    return 1 if summary.failed else 0


if __name__ == "__main__":
    sys.exit(main())
