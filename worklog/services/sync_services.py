"""Job reconciliation between the device store and a remote job source.

One pass runs push, then fetch, then pull, then prune:

* push: pending jobs are upserted remotely and marked synced; ids deleted on
  this device are then deleted remotely.
* pull: each remote row is merged according to `decide_merge_action`.
* prune: synced local jobs the remote no longer lists are dropped.

Remote failures never abort the pass. They are collected on the returned
`SyncReport`, which carries one summarized warning for the caller.
"""

from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Set

from worklog.remote.base import RemoteJobSource
from worklog.schemas.job import Job, RecordState, SyncStatus, get_job_timestamp
from worklog.schemas.sync import SyncReport
from worklog.services.base import BaseService
from worklog.services.exceptions import ResourceNotFoundError, ServiceError, SyncInProgressError


class MergeAction(str, Enum):
    INSERT = "insert"
    OVERWRITE = "overwrite"
    KEEP_LOCAL = "keep_local"
    SKIP_TOMBSTONED = "skip_tombstoned"
    REMOVE_LOCAL = "remove_local"
    NOOP = "noop"


def decide_merge_action(state: Optional[RecordState], remote: Job, local: Optional[Job] = None) -> MergeAction:
    """Decide what one remote row does to the local copy of its id.

    Args:
        state: Local state of the id (None when the device has never seen it)
        remote: The remote row
        local: The local record, used to skip overwrites that change nothing

    Returns:
        The action to apply
    """
    if remote.deleted:
        if state in (RecordState.PENDING, RecordState.SYNCED):
            return MergeAction.REMOVE_LOCAL
        return MergeAction.NOOP
    if state is RecordState.TOMBSTONED:
        return MergeAction.SKIP_TOMBSTONED
    if state is None:
        return MergeAction.INSERT
    if state is RecordState.SYNCED:
        if local is not None and local.content() == remote.content():
            return MergeAction.NOOP
        return MergeAction.OVERWRITE
    return MergeAction.KEEP_LOCAL


def dedupe_remote_jobs(jobs: Iterable[Job]) -> List[Job]:
    """Collapse duplicate ids in one listing.

    The greater effective timestamp wins; on an exact tie a deleted row beats
    an active one; otherwise the first row seen stays. Output keeps the
    position of each id's first appearance.
    """
    chosen: Dict[str, Job] = {}
    for job in jobs:
        current = chosen.get(job.id)
        if current is None:
            chosen[job.id] = job
            continue
        incoming_ts, current_ts = get_job_timestamp(job), get_job_timestamp(current)
        if incoming_ts > current_ts or (incoming_ts == current_ts and job.deleted and not current.deleted):
            chosen[job.id] = job
    return list(chosen.values())


class SyncService(BaseService):
    """Reconciliation engine for one device.

    Not re-entrant: a second `synchronize()` while a pass is running raises
    `SyncInProgressError`. Callers should disable local edits while
    `is_syncing` is true.
    """

    def __init__(self, remote: RemoteJobSource, correlation_id: Optional[str] = None, **repositories):
        super().__init__(correlation_id)
        self.remote = remote
        if repositories:
            self._set_repositories(**repositories)
        self._require_repositories("local_store")
        self._syncing = False

    @property
    def is_syncing(self) -> bool:
        return self._syncing

    def synchronize(self) -> SyncReport:
        """Run one full push/pull/prune pass.

        Returns:
            SyncReport with per-phase counters and the collected errors

        Raises:
            SyncInProgressError: A pass is already running
            SQLAlchemyError: The local store failed; nothing of that phase is kept
        """
        if self._syncing:
            raise SyncInProgressError(correlation_id=self.correlation_id)

        self._syncing = True
        try:
            report = SyncReport()
            db = self.local_store.db
            pushed_ids = self.run_in_transaction(db, lambda: self._push(report))

            remote_jobs = self._fetch(report)
            if remote_jobs is not None:
                self.run_in_transaction(db, lambda: self._pull_and_prune(remote_jobs, pushed_ids, report))

            self.log_operation(
                "synchronize",
                pushed=report.pushed,
                tombstones_pushed=report.tombstones_pushed,
                push_failed=len(report.push_failed_ids),
                pull_failed=report.pull_failed,
                inserted=report.inserted,
                updated=report.updated,
                removed=report.removed,
                pruned=report.pruned,
            )
            if not report.fully_synced:
                self.logger.warning(report.warning, extra={"correlation_id": self.correlation_id, "errors": report.errors})
            return report
        finally:
            self._syncing = False

    def pull(self, remote_jobs: Iterable[Job], pushed_ids: FrozenSet[str] = frozenset()) -> SyncReport:
        """Merge and prune against an already fetched listing, without pushing."""
        report = SyncReport()
        jobs = dedupe_remote_jobs(remote_jobs)
        self.run_in_transaction(self.local_store.db, lambda: self._pull_and_prune(jobs, pushed_ids, report))
        return report

    # -- phases ----------------------------------------------------------

    def _push(self, report: SyncReport) -> Set[str]:
        pushed: Set[str] = set()
        for job in self.local_store.pending_jobs():
            try:
                self.remote.upsert_job(job)
            except ServiceError as e:
                self._record_push_failure(report, job.id, "upsert", e)
                continue
            self.local_store.mark_synced(job.id)
            pushed.add(job.id)
            report.pushed += 1

        for job_id in self.local_store.pending_tombstones():
            try:
                self.remote.delete_job(job_id)
            except ResourceNotFoundError:
                # Remote never had it, nothing left to delete
                pass
            except ServiceError as e:
                self._record_push_failure(report, job_id, "delete", e)
                continue
            self.local_store.mark_tombstone_propagated(job_id)
            report.tombstones_pushed += 1
        return pushed

    def _fetch(self, report: SyncReport) -> Optional[List[Job]]:
        try:
            return dedupe_remote_jobs(self.remote.list_jobs())
        except ServiceError as e:
            report.pull_failed = True
            report.errors.append(e.user_message)
            self.logger.warning(
                "Remote listing failed, keeping local view",
                extra={"correlation_id": self.correlation_id, "error_code": e.error_code, "error": e.message},
            )
            return None

    def _pull_and_prune(self, remote_jobs: List[Job], pushed_ids: Iterable[str], report: SyncReport) -> None:
        active_ids: Set[str] = set()
        for remote_job in remote_jobs:
            if not remote_job.deleted:
                active_ids.add(remote_job.id)
            self._merge(remote_job, report)

        protected = self.local_store.deleted_ids() | set(pushed_ids)
        for job in self.local_store.list_jobs():
            if job.sync_status != SyncStatus.SYNCED or job.id in active_ids or job.id in protected:
                continue
            self.local_store.remove(job.id)
            report.pruned += 1

    def _merge(self, remote_job: Job, report: SyncReport) -> MergeAction:
        state = self.local_store.get_state(remote_job.id)
        local = self.local_store.get_job(remote_job.id) if state is RecordState.SYNCED else None
        action = decide_merge_action(state, remote_job, local)

        if remote_job.deleted:
            self.local_store.record_tombstone(remote_job.id, propagated=True)

        if action is MergeAction.REMOVE_LOCAL:
            self.local_store.remove(remote_job.id)
            report.removed += 1
        elif action is MergeAction.INSERT:
            self.local_store.save(remote_job, sync_status=SyncStatus.SYNCED)
            report.inserted += 1
        elif action is MergeAction.OVERWRITE:
            self.local_store.save(remote_job, sync_status=SyncStatus.SYNCED)
            report.updated += 1
        elif action is MergeAction.KEEP_LOCAL:
            report.kept_pending += 1
        elif action is MergeAction.SKIP_TOMBSTONED:
            report.skipped_tombstoned += 1
        return action

    def _record_push_failure(self, report: SyncReport, item_id: str, operation: str, error: ServiceError) -> None:
        report.push_failed_ids.append(item_id)
        report.errors.append(f"{item_id}: {error.user_message}")
        self.logger.warning(
            "Push failed, item stays queued",
            extra={
                "correlation_id": self.correlation_id,
                "job_id": item_id,
                "operation": operation,
                "error_code": error.error_code,
            },
        )
