import pytest

from conftest import FakeRemote, make_job
from worklog.schemas.job import RecordState, SyncStatus
from worklog.services.exceptions import NetworkError, ParseError, SyncInProgressError
from worklog.services.sync_services import (
    MergeAction,
    SyncService,
    decide_merge_action,
    dedupe_remote_jobs,
)


def _service(remote, store):
    return SyncService(remote, local_store=store)


def _commit(store):
    store.db.commit()


def _ids(store):
    return [job.id for job in store.list_jobs()]


@pytest.mark.parametrize(
    "state, deleted, expected",
    [
        (None, False, MergeAction.INSERT),
        (RecordState.PENDING, False, MergeAction.KEEP_LOCAL),
        (RecordState.SYNCED, False, MergeAction.OVERWRITE),
        (RecordState.TOMBSTONED, False, MergeAction.SKIP_TOMBSTONED),
        (None, True, MergeAction.NOOP),
        (RecordState.PENDING, True, MergeAction.REMOVE_LOCAL),
        (RecordState.SYNCED, True, MergeAction.REMOVE_LOCAL),
        (RecordState.TOMBSTONED, True, MergeAction.NOOP),
    ],
)
def test_merge_decision_covers_every_state(state, deleted, expected):
    remote = make_job("job-1", deleted=deleted, area="Roof")
    local = make_job("job-1", area="Lobby")
    assert decide_merge_action(state, remote, local) == expected


def test_synced_copy_with_same_content_is_left_alone():
    job = make_job("job-1")
    assert decide_merge_action(RecordState.SYNCED, job, job.model_copy()) == MergeAction.NOOP


def test_dedupe_deleted_row_wins_exact_tie_in_either_order():
    active = make_job("job-1")
    deleted = make_job("job-1", deleted=True)
    assert dedupe_remote_jobs([active, deleted])[0].deleted is True
    assert dedupe_remote_jobs([deleted, active])[0].deleted is True


def test_dedupe_prefers_later_effective_timestamp():
    older_deleted = make_job("job-1", deleted=True, finishedAt="2026-03-01T09:00:00Z")
    newer_active = make_job("job-1", area="Roof", finishedAt="2026-03-02T09:00:00Z")
    [winner] = dedupe_remote_jobs([newer_active, older_deleted])
    assert winner.deleted is False
    assert winner.area == "Roof"


def test_dedupe_keeps_first_row_on_tie_between_active_rows_and_preserves_order():
    first = make_job("job-1", area="First")
    second = make_job("job-1", area="Second")
    other = make_job("job-2")
    result = dedupe_remote_jobs([first, other, second])
    assert [job.id for job in result] == ["job-1", "job-2"]
    assert result[0].area == "First"


def test_synced_record_takes_newer_remote_content(local_store):
    local_store.save(make_job("job-1", finishedAt="2026-03-01T09:00:00Z"), sync_status=SyncStatus.SYNCED)
    _commit(local_store)
    remote_copy = make_job("job-1", finishedAt="2026-03-02T09:00:00Z", description="Rewired panel")

    report = _service(FakeRemote(), local_store).pull([remote_copy])

    local = local_store.get_job("job-1")
    assert local.content() == remote_copy.content()
    assert local.sync_status == SyncStatus.SYNCED
    assert report.updated == 1


def test_pending_local_edit_wins_over_remote(local_store):
    local_store.save(make_job("job-2", area="Lobby"))
    _commit(local_store)

    report = _service(FakeRemote(), local_store).pull([make_job("job-2", area="Roof")])

    local = local_store.get_job("job-2")
    assert local.area == "Lobby"
    assert local.sync_status == SyncStatus.PENDING
    assert report.kept_pending == 1
    assert report.local_changes == 0


def test_locally_deleted_job_never_reappears(local_store):
    local_store.save(make_job("job-3"), sync_status=SyncStatus.SYNCED)
    local_store.delete("job-3")
    _commit(local_store)
    service = _service(FakeRemote(), local_store)

    for _ in range(3):
        report = service.pull([make_job("job-3"), make_job("job-3", area="Edited elsewhere")])
        assert report.skipped_tombstoned == 1

    assert local_store.get_job("job-3") is None
    assert "job-3" not in _ids(local_store)


def test_empty_listing_prunes_every_synced_record(local_store):
    for job_id in ("a", "b", "c"):
        local_store.save(make_job(job_id), sync_status=SyncStatus.SYNCED)
    _commit(local_store)

    report = _service(FakeRemote(), local_store).pull([])

    assert local_store.list_jobs() == []
    assert report.pruned == 3


def test_prune_drops_synced_ids_missing_from_listing(local_store):
    local_store.save(make_job("a"), sync_status=SyncStatus.SYNCED)
    local_store.save(make_job("b"), sync_status=SyncStatus.SYNCED)
    local_store.save(make_job("draft"))
    _commit(local_store)

    report = _service(FakeRemote(), local_store).pull([make_job("a"), make_job("c")])

    assert sorted(_ids(local_store)) == ["a", "c", "draft"]
    assert report.pruned == 1
    assert report.inserted == 1
    # pruning does not blacklist
    assert "b" not in local_store.deleted_ids()


def test_pull_is_idempotent(local_store):
    listing = [
        make_job("a", finishedAt="2026-03-03T09:00:00Z"),
        make_job("b", deleted=True),
        make_job("c", finishedAt="2026-03-02T09:00:00Z"),
    ]
    local_store.save(make_job("b"), sync_status=SyncStatus.SYNCED)
    _commit(local_store)
    service = _service(FakeRemote(), local_store)

    first = service.pull(listing)
    snapshot = [job.model_dump() for job in local_store.list_jobs()]
    second = service.pull(listing)

    assert first.local_changes == 3
    assert second.local_changes == 0
    assert [job.model_dump() for job in local_store.list_jobs()] == snapshot


def test_remote_tombstone_removes_local_copy_and_blacklists_it(local_store):
    local_store.save(make_job("job-5"))
    _commit(local_store)

    report = _service(FakeRemote(), local_store).pull([make_job("job-5"), make_job("job-5", deleted=True)])

    assert report.removed == 1
    assert local_store.get_job("job-5") is None
    assert local_store.get_state("job-5") == RecordState.TOMBSTONED
    assert local_store.pending_tombstones() == []


def test_merged_list_is_sorted_by_effective_timestamp(local_store):
    listing = [
        make_job("old", finishedAt="2026-01-01T00:00:00Z"),
        make_job("undated", finishedAt="", createdAt=""),
        make_job("new", finishedAt="2026-05-01T00:00:00Z"),
        make_job("created-only", finishedAt="", createdAt="2026-02-01T00:00:00Z"),
    ]
    _service(FakeRemote(), local_store).pull(listing)
    assert _ids(local_store) == ["new", "created-only", "old", "undated"]


def test_synchronize_pushes_pending_then_pulls(local_store):
    remote = FakeRemote([make_job("from-cloud")])
    local_store.save(make_job("mine"))
    _commit(local_store)

    report = _service(remote, local_store).synchronize()

    assert report.pushed == 1
    assert report.inserted == 1
    assert report.fully_synced
    assert report.warning is None
    assert remote.upserts == ["mine"]
    assert local_store.get_job("mine").sync_status == SyncStatus.SYNCED
    assert local_store.get_job("from-cloud").sync_status == SyncStatus.SYNCED


def test_failed_push_keeps_record_pending_and_reports_once(local_store):
    remote = FakeRemote()
    remote.failing_ids = {"offline-1"}
    local_store.save(make_job("offline-1"))
    local_store.save(make_job("ok-1"))
    _commit(local_store)

    report = _service(remote, local_store).synchronize()

    assert report.push_failed_ids == ["offline-1"]
    assert report.pushed == 1
    assert not report.fully_synced
    assert report.warning.startswith("Could not fully sync")
    assert local_store.get_job("offline-1").sync_status == SyncStatus.PENDING
    assert local_store.get_job("ok-1").sync_status == SyncStatus.SYNCED


def test_listing_failure_leaves_local_view_untouched(local_store):
    remote = FakeRemote()
    remote.list_error = ParseError(target="fake", reason="html page")
    local_store.save(make_job("kept"), sync_status=SyncStatus.SYNCED)
    _commit(local_store)

    report = _service(remote, local_store).synchronize()

    assert report.pull_failed
    assert report.pruned == 0
    assert _ids(local_store) == ["kept"]
    assert "unexpected format" in report.errors[0]


def test_local_delete_is_pushed_and_not_pulled_back(local_store):
    remote = FakeRemote([make_job("job-9")])
    local_store.save(make_job("job-9"), sync_status=SyncStatus.SYNCED)
    local_store.delete("job-9")
    _commit(local_store)

    report = _service(remote, local_store).synchronize()

    assert report.tombstones_pushed == 1
    assert remote.jobs["job-9"].deleted is True
    assert local_store.pending_tombstones() == []
    assert local_store.get_job("job-9") is None


def test_tombstone_unknown_to_remote_counts_as_propagated(local_store):
    remote = FakeRemote()
    local_store.save(make_job("never-uploaded"), sync_status=SyncStatus.SYNCED)
    local_store.delete("never-uploaded")
    _commit(local_store)

    report = _service(remote, local_store).synchronize()

    assert remote.deletes == ["never-uploaded"]
    assert report.tombstones_pushed == 1
    assert report.fully_synced
    assert local_store.pending_tombstones() == []


def test_unpushed_tombstone_still_blocks_stale_listing(local_store):
    remote = FakeRemote()
    remote.failing_ids = {"job-3"}
    remote.listing = [make_job("job-3")]
    local_store.save(make_job("job-3"), sync_status=SyncStatus.SYNCED)
    local_store.delete("job-3")
    _commit(local_store)

    report = _service(remote, local_store).synchronize()

    assert report.push_failed_ids == ["job-3"]
    assert report.skipped_tombstoned == 1
    assert local_store.get_job("job-3") is None
    assert local_store.pending_tombstones() == ["job-3"]


def test_job_pushed_in_same_pass_survives_stale_listing(local_store):
    remote = FakeRemote()
    remote.listing = []
    local_store.save(make_job("just-made"))
    _commit(local_store)

    report = _service(remote, local_store).synchronize()

    assert report.pushed == 1
    assert report.pruned == 0
    assert local_store.get_job("just-made").sync_status == SyncStatus.SYNCED


def test_second_synchronize_while_running_is_rejected(local_store):
    seen = []

    class ReentrantRemote(FakeRemote):
        def list_jobs(self):
            seen.append(service.is_syncing)
            with pytest.raises(SyncInProgressError):
                service.synchronize()
            return []

    service = _service(ReentrantRemote(), local_store)
    service.synchronize()

    assert seen == [True]
    assert service.is_syncing is False


def test_sync_flag_resets_after_unexpected_error(local_store):
    class BrokenRemote(FakeRemote):
        def list_jobs(self):
            raise RuntimeError("local bug")

    service = _service(BrokenRemote(), local_store)
    with pytest.raises(RuntimeError):
        service.synchronize()
    assert service.is_syncing is False


def test_network_error_on_listing_is_summarized(local_store):
    remote = FakeRemote()
    remote.list_error = NetworkError(target="fake", reason="timeout")

    report = _service(remote, local_store).synchronize()

    assert report.warning == "Could not fully sync: cloud records could not be downloaded."
