"""
Run one reconciliation pass between the device store and the configured remote.

Usage:
    python scripts/sync_jobs.py [--source rest|sheets] [--local-db URL]
                                [--technician ID --password PASSWORD --shift SHIFT]

With the REST source the script signs in first; credentials can also come from
WORKLOG_TECHNICIAN_ID / WORKLOG_PASSWORD.
"""
import argparse
import logging
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from worklog.core.config import settings
from worklog.core.observability import generate_correlation_id, setup_logging
from worklog.db.session import close_local_session, open_local_session
from worklog.remote.factory import build_remote_source
from worklog.remote.rest import RestJobSource
from worklog.repositories.local_job import LocalJobStore
from worklog.schemas.sync import SyncReport
from worklog.services.exceptions import ServiceError
from worklog.services.sync_services import SyncService

logger = logging.getLogger("worklog.sync")


def print_report(report: SyncReport) -> None:
    print(f"  pushed:             {report.pushed}")
    print(f"  deletions pushed:   {report.tombstones_pushed}")
    print(f"  inserted:           {report.inserted}")
    print(f"  updated:            {report.updated}")
    print(f"  removed:            {report.removed}")
    print(f"  pruned:             {report.pruned}")
    print(f"  kept pending:       {report.kept_pending}")
    print(f"  skipped (deleted):  {report.skipped_tombstoned}")
    if report.warning:
        print(f"\n{report.warning}")
        for error in report.errors:
            print(f"  - {error}")


def run(args: argparse.Namespace) -> int:
    correlation_id = generate_correlation_id(None)
    config = settings.model_copy(update={"REMOTE_SOURCE": args.source}) if args.source else settings
    remote = build_remote_source(config, correlation_id=correlation_id)

    if isinstance(remote, RestJobSource):
        technician_id = args.technician or os.getenv("WORKLOG_TECHNICIAN_ID", "")
        password = args.password or os.getenv("WORKLOG_PASSWORD", "")
        if not technician_id or not password:
            print("The REST source needs --technician and --password.", file=sys.stderr)
            return 2
        remote.client.login(technician_id, password, args.shift or settings.DEFAULT_SHIFT)

    db = open_local_session(args.local_db)
    try:
        service = SyncService(
            remote,
            correlation_id=correlation_id,
            local_store=LocalJobStore(db, correlation_id=correlation_id),
        )
        report = service.synchronize()
    finally:
        close_local_session(db)

    print(f"Sync finished ({config.REMOTE_SOURCE}):")
    print_report(report)
    return 0 if report.fully_synced else 1


def main():
    parser = argparse.ArgumentParser(description="Synchronize local maintenance jobs with the cloud")
    parser.add_argument("--source", choices=["rest", "sheets"], help="Override REMOTE_SOURCE")
    parser.add_argument("--local-db", help="Override LOCAL_DATABASE_URL")
    parser.add_argument("--technician", help="Technician id for the REST login")
    parser.add_argument("--password", help="Password for the REST login")
    parser.add_argument("--shift", help="Shift recorded on the session")
    args = parser.parse_args()

    setup_logging()
    try:
        sys.exit(run(args))
    except ServiceError as e:
        logger.error("Sync aborted", extra={"error_code": e.error_code, "error": e.message})
        print(f"Error: {e.user_message}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
