from datetime import datetime, timezone

from sqlalchemy.engine import Engine

from conftest import make_job
from worklog.db.session import close_local_session, open_local_session
from worklog.schemas.job import EPOCH, Job, RecordState, SyncStatus, get_job_timestamp, sort_jobs


def test_save_assigns_id_and_defaults_to_pending(local_store):
    saved = local_store.save(make_job(""))
    local_store.db.commit()

    assert saved.id
    stored = local_store.get_job(saved.id)
    assert stored.sync_status == SyncStatus.PENDING
    assert local_store.get_state(saved.id) == RecordState.PENDING


def test_save_overwrites_by_id(local_store):
    local_store.save(make_job("job-1", area="Lobby"))
    local_store.save(make_job("job-1", area="Roof"), sync_status=SyncStatus.SYNCED)
    local_store.db.commit()

    [job] = local_store.list_jobs()
    assert job.area == "Roof"
    assert job.sync_status == SyncStatus.SYNCED


def test_sync_status_never_stored_in_payload(local_store):
    local_store.save(make_job("job-1"))
    local_store.db.commit()
    row = local_store.get_by_id("job-1")
    assert "syncStatus" not in row.payload
    assert row.payload["workType"] == "Electrical"


def test_delete_removes_and_blacklists(local_store):
    local_store.save(make_job("job-1"), sync_status=SyncStatus.SYNCED)
    assert local_store.delete("job-1") is True
    local_store.db.commit()

    assert local_store.get_job("job-1") is None
    assert local_store.deleted_ids() == {"job-1"}
    assert local_store.pending_tombstones() == ["job-1"]
    assert local_store.get_state("job-1") == RecordState.TOMBSTONED


def test_remove_does_not_blacklist(local_store):
    local_store.save(make_job("job-1"), sync_status=SyncStatus.SYNCED)
    local_store.remove("job-1")
    local_store.db.commit()

    assert local_store.get_state("job-1") is None
    assert local_store.deleted_ids() == set()


def test_propagated_tombstone_is_never_reset(local_store):
    local_store.record_tombstone("job-1", propagated=True)
    local_store.record_tombstone("job-1", propagated=False)
    local_store.db.commit()

    assert local_store.pending_tombstones() == []
    assert local_store.deleted_ids() == {"job-1"}


def test_mark_synced_and_pending_jobs(local_store):
    local_store.save(make_job("a"))
    local_store.save(make_job("b"))
    local_store.mark_synced("a")
    local_store.db.commit()

    assert [job.id for job in local_store.pending_jobs()] == ["b"]


def test_unknown_id_has_no_state(local_store):
    assert local_store.get_state("nope") is None
    assert local_store.get_job("nope") is None


def test_remote_rows_are_parsed_leniently():
    job = Job.model_validate({
        "id": 42,
        "area": None,
        "workType": "HVAC",
        "description": "Filter swap",
        "beforePhoto": "",
        "afterPhoto": "   ",
        "deleted": "",
        "unknownColumn": "ignored",
    })
    assert job.id == "42"
    assert job.area == ""
    assert job.before_photo is None
    assert job.after_photo is None
    assert job.deleted is False


def test_effective_timestamp_fallbacks():
    assert get_job_timestamp(make_job("a", finishedAt="2026-03-01T09:00:00Z")) == datetime(2026, 3, 1, 9, tzinfo=timezone.utc)
    assert get_job_timestamp(make_job("a", finishedAt="garbage", createdAt="2026-02-01T00:00:00")) == datetime(2026, 2, 1, tzinfo=timezone.utc)
    assert get_job_timestamp(make_job("a", finishedAt="", createdAt="")) == EPOCH


def test_sort_is_stable_for_equal_timestamps():
    jobs = [make_job("first"), make_job("second"), make_job("newest", finishedAt="2027-01-01T00:00:00Z")]
    assert [job.id for job in sort_jobs(jobs)] == ["newest", "first", "second"]


def test_closing_local_session_disposes_its_engine(tmp_path, monkeypatch):
    disposed = []
    original_dispose = Engine.dispose

    def spy(self, *args, **kwargs):
        disposed.append(self)
        return original_dispose(self, *args, **kwargs)

    monkeypatch.setattr(Engine, "dispose", spy)
    db = open_local_session(f"sqlite:///{tmp_path / 'device.db'}")
    bind = db.get_bind()

    close_local_session(db)

    assert disposed == [bind]
