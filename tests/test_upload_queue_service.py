import os
import threading
from datetime import datetime, timedelta

import pytest

from dataset_capture.config import UploadConfig
from dataset_capture.models.recording import RecordingEntity, UploadStatus
from dataset_capture.models.upload import JobStatus, UploadJob
from dataset_capture.services.frame_set_uploader import FrameSetUploader
from dataset_capture.services.upload_queue_service import UploadQueueService, session_folder_name_for
from dataset_capture.services.upload_worker import UploadWorker
from fakes import write_frame_set

LATER = timedelta(days=1)


@pytest.fixture
def upload_config():
    return UploadConfig(workers=2, poll_interval=0.05)


@pytest.fixture
def queue(upload_config, job_repository, recording_repository, account_provider):
    worker = UploadWorker(account_provider, FrameSetUploader(upload_config))
    service = UploadQueueService(upload_config, job_repository, recording_repository, worker)
    yield service
    service.stop()


@pytest.fixture
def recording(recording_repository, frames_dir):
    return recording_repository.upsert_recording(RecordingEntity(
        id="1700000000000",
        object_name="mug",
        video_path="/videos/VIDEO_1.mp4",
        frame_folder_path=frames_dir,
        timestamp=1700000000000,
        frame_count=3
    ))


def run_attempt(queue, job_repository, at):
    job = job_repository.claim_next("test-worker", at)
    assert job is not None
    return queue.process_job(job)


def test_session_folder_name():
    assert session_folder_name_for("mug", datetime(2026, 10, 19, 14, 3, 7)) == "mug_20261019_140307"


def test_successful_upload_completes_and_cleans_up(queue, recording, remote_store, recording_repository):
    job = queue.enqueue_upload(recording.frame_folder_path, "mug", recording_id=recording.id)
    assert job.status == JobStatus.QUEUED
    assert job.folder_name == "mug_1700000000000"

    finished = queue.run_pending()

    assert len(finished) == 1
    assert finished[0].status == JobStatus.SUCCEEDED
    assert finished[0].uploaded_count == 4
    assert not os.path.exists(recording.frame_folder_path)
    assert recording_repository.get_recording(recording.id).upload_status == UploadStatus.COMPLETED
    assert remote_store.folder_path("mug", job.session_folder_name) is not None


def test_progress_is_kept_for_polling(queue, recording):
    seen = []
    queue.add_progress_callback(lambda job_id, progress: seen.append((job_id, progress.current_file)))
    job = queue.enqueue_upload(recording.frame_folder_path, "mug", recording_id=recording.id)

    queue.run_pending()

    assert seen == [(job.id, 1), (job.id, 2), (job.id, 3), (job.id, 4)]
    assert queue.get_progress(job.id).overall_progress == 1.0


def test_progress_history_is_bounded(queue, tmp_path):
    queue.progress_history_limit = 2
    jobs = []
    for name in ("cup", "bowl", "plate"):
        folder = str(tmp_path / "sets" / f"{name}_1")
        write_frame_set(folder, frame_count=1)
        jobs.append(queue.enqueue_upload(folder, name))

    queue.run_pending()

    assert queue.get_progress(jobs[0].id) is None
    assert queue.get_progress(jobs[1].id).overall_progress == 1.0
    assert queue.get_progress(jobs[2].id).overall_progress == 1.0


def test_failures_retry_with_backoff_until_ceiling(queue, recording, remote_store, recording_repository,
                                                    job_repository, upload_config):
    remote_store.failing_files = {"frame_0002.jpg"}
    job = queue.enqueue_upload(recording.frame_folder_path, "mug", recording_id=recording.id)

    before = datetime.now()
    first = queue.run_pending()[0]
    assert first.status == JobStatus.QUEUED
    assert first.attempt_count == 1
    assert first.next_attempt_at >= before + timedelta(seconds=upload_config.retry_base_seconds)
    assert "frame_0002.jpg" in first.last_error
    assert recording_repository.get_recording(recording.id).upload_status == UploadStatus.PENDING
    assert queue.run_pending() == []

    second = run_attempt(queue, job_repository, datetime.now() + LATER)
    assert second.status == JobStatus.QUEUED
    assert second.attempt_count == 2
    assert second.next_attempt_at >= datetime.now() + timedelta(seconds=upload_config.retry_base_seconds * 2 - 1)

    third = run_attempt(queue, job_repository, datetime.now() + LATER * 2)
    assert third.status == JobStatus.FAILED
    assert third.attempt_count == 3
    assert third.last_error
    assert recording_repository.get_recording(recording.id).upload_status == UploadStatus.FAILED
    assert os.path.isdir(recording.frame_folder_path)
    assert job_repository.claim_next("test-worker", datetime.now() + LATER * 3) is None
    assert queue.get_job(job.id).status == JobStatus.FAILED


def test_retry_reuses_session_folder(queue, recording, remote_store, job_repository):
    remote_store.failing_files = {"frame_0001.jpg"}
    job = queue.enqueue_upload(recording.frame_folder_path, "mug", recording_id=recording.id)
    queue.run_pending()

    remote_store.failing_files = set()
    remote_store.uploads = []
    finished = run_attempt(queue, job_repository, datetime.now() + LATER)

    assert finished.status == JobStatus.SUCCEEDED
    assert [name for name, _ in remote_store.uploads] == ["frame_0001.jpg"]
    assert [name for name, _ in remote_store.created_folders] == ["mug", job.session_folder_name]


def test_not_authenticated_does_not_consume_attempts(queue, recording, account_provider,
                                                     recording_repository, job_repository):
    account_provider.sign_out()
    queue.enqueue_upload(recording.frame_folder_path, "mug", recording_id=recording.id)

    for day in range(1, 6):
        job = run_attempt(queue, job_repository, datetime.now() + LATER * day)
        assert job.status == JobStatus.QUEUED
        assert job.attempt_count == 0

    assert recording_repository.get_recording(recording.id).upload_status == UploadStatus.PENDING
    assert os.path.isdir(recording.frame_folder_path)

    account_provider.sign_in("tester@example.com", "token-123")
    job = run_attempt(queue, job_repository, datetime.now() + LATER * 10)
    assert job.status == JobStatus.SUCCEEDED


def test_expired_token_does_not_consume_attempts(queue, recording, remote_store, job_repository):
    remote_store.unauthorized = True
    queue.enqueue_upload(recording.frame_folder_path, "mug", recording_id=recording.id)

    job = queue.run_pending()[0]

    assert job.status == JobStatus.QUEUED
    assert job.attempt_count == 0


def test_missing_directory_counts_as_attempt(queue, tmp_path, job_repository):
    job = queue.enqueue_upload(str(tmp_path / "gone"), "mug")

    job = queue.run_pending()[0]
    assert job.attempt_count == 1
    assert job.last_error == "Frames directory not found or empty"

    run_attempt(queue, job_repository, datetime.now() + LATER)
    job = run_attempt(queue, job_repository, datetime.now() + LATER * 2)
    assert job.status == JobStatus.FAILED


def test_folder_creation_failure_counts_as_attempt(queue, recording, remote_store):
    remote_store.fail_folder_names = {"mug"}
    queue.enqueue_upload(recording.frame_folder_path, "mug", recording_id=recording.id)

    job = queue.run_pending()[0]

    assert job.attempt_count == 1
    assert remote_store.uploads == []


def test_enqueue_reuses_active_job(queue, recording):
    first = queue.enqueue_upload(recording.frame_folder_path, "mug", recording_id=recording.id)
    second = queue.enqueue_upload(recording.frame_folder_path, "mug", recording_id=recording.id)

    assert first.id == second.id


def test_claim_is_exclusive(job_repository):
    job = job_repository.create_job(UploadJob(
        folder_path="/frames/mug_1", folder_name="mug_1", object_name="mug", session_folder_name="mug_s"
    ))
    now = datetime.now() + timedelta(seconds=1)
    claims = []
    barrier = threading.Barrier(4)

    def claim(worker_id):
        barrier.wait()
        claims.append(job_repository.claim_next(worker_id, now))

    threads = [threading.Thread(target=claim, args=(f"w{i}",)) for i in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    winners = [c for c in claims if c is not None]
    assert len(winners) == 1
    assert winners[0].id == job.id
    assert winners[0].status == JobStatus.RUNNING
    assert job_repository.get_job(job.id).claimed_by == winners[0].claimed_by


def test_resume_requeues_interrupted_and_pending(queue, job_repository, recording_repository, tmp_path):
    interrupted_dir = str(tmp_path / "frames" / "cup_1")
    write_frame_set(interrupted_dir)
    interrupted = queue.enqueue_upload(interrupted_dir, "cup")
    job_repository.claim_next("dead-worker", datetime.now() + timedelta(seconds=1))

    pending_dir = str(tmp_path / "frames" / "box_2")
    write_frame_set(pending_dir)
    recording_repository.upsert_recording(RecordingEntity(
        id="2", object_name="box", video_path="/v.mp4", frame_folder_path=pending_dir,
        upload_status=UploadStatus.FAILED, timestamp=2
    ))
    recording_repository.upsert_recording(RecordingEntity(
        id="3", object_name="gone", video_path="/v.mp4", frame_folder_path=str(tmp_path / "missing"),
        upload_status=UploadStatus.PENDING, timestamp=3
    ))

    resumed = queue.resume_pending_uploads()

    assert [job.recording_id for job in resumed] == ["2"]
    assert job_repository.get_job(interrupted.id).status == JobStatus.QUEUED
    assert queue.resume_pending_uploads() == []

    finished = queue.run_pending()
    assert sorted(job.object_name for job in finished) == ["box", "cup"]
    assert all(job.status == JobStatus.SUCCEEDED for job in finished)


def test_worker_threads_drain_queue(queue, recording, recording_repository):
    done = threading.Event()
    queue.add_completion_callback(lambda job: done.set())
    queue.start()

    queue.enqueue_upload(recording.frame_folder_path, "mug", recording_id=recording.id)

    assert done.wait(5.0)
    queue.stop()
    assert recording_repository.get_recording(recording.id).upload_status == UploadStatus.COMPLETED
    assert queue.get_stats()["workers"] == 0
