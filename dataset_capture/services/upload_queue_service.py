# dataset_capture/services/upload_queue_service.py
import logging
import os
import threading
import uuid
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from dataset_capture.config.upload import UploadConfig
from dataset_capture.errors import RecordingNotFoundError
from dataset_capture.models.recording import UploadStatus
from dataset_capture.models.upload import UploadJob, UploadProgress, WorkOutcome, WorkResult
from dataset_capture.repositories.recording_repository import RecordingRepository
from dataset_capture.repositories.upload_job_repository import UploadJobRepository
from dataset_capture.services.frame_set_uploader import list_frame_set_files
from dataset_capture.services.upload_worker import UploadWorker

logger = logging.getLogger(__name__)

# Finished jobs keep their last progress for polling until evicted
PROGRESS_HISTORY_LIMIT = 256


def session_folder_name_for(object_name: str, upload_time: Optional[datetime] = None) -> str:
    upload_time = upload_time or datetime.now()
    return f"{object_name}_{upload_time.strftime('%Y%m%d_%H%M%S')}"


class UploadQueueService:
    """Durable upload queue with a pool of background worker threads.

    Jobs live in the upload_jobs table, so a restart loses nothing: jobs that
    were RUNNING when the process died are re-queued by resume_pending_uploads().
    Each attempt is executed by UploadWorker; this service applies the retry
    ceiling and keeps the recording status in step with the job.
    """

    def __init__(self, config: UploadConfig, job_repository: UploadJobRepository,
                 recording_repository: RecordingRepository, worker: UploadWorker):
        self.config = config
        self.job_repo = job_repository
        self.recording_repo = recording_repository
        self.worker = worker

        self.running = False
        self.worker_threads: List[threading.Thread] = []
        self._wake_event = threading.Event()

        # Latest progress per job, for polling; oldest entries evicted first
        self._progress: "OrderedDict[int, UploadProgress]" = OrderedDict()
        self.progress_history_limit = PROGRESS_HISTORY_LIMIT
        self._progress_lock = threading.Lock()

        # Progress callbacks - (job_id, progress)
        self.progress_callbacks: List[Callable[[int, UploadProgress], None]] = []
        # Completion callbacks - (job)
        self.completion_callbacks: List[Callable[[UploadJob], None]] = []

    def add_progress_callback(self, callback: Callable[[int, UploadProgress], None]):
        self.progress_callbacks.append(callback)

    def add_completion_callback(self, callback: Callable[[UploadJob], None]):
        """Called when a job reaches SUCCEEDED or FAILED"""
        self.completion_callbacks.append(callback)

    def start(self):
        """Start the worker pool"""
        if self.running:
            return

        self.running = True
        self._wake_event.clear()
        for i in range(self.config.workers):
            worker_id = f"upload_worker_{i}_{uuid.uuid4().hex[:6]}"
            thread = threading.Thread(target=self._worker_loop, args=(worker_id,), daemon=True, name=worker_id)
            thread.start()
            self.worker_threads.append(thread)
        logger.info(f"📤 Upload service started with {self.config.workers} workers")

    def stop(self):
        """Stop the worker pool; running attempts finish first"""
        self.running = False
        self._wake_event.set()
        for thread in self.worker_threads:
            thread.join(timeout=10)
        self.worker_threads = []
        logger.info("📤 Upload service stopped")

    def enqueue_upload(self, folder_path: str, object_name: str,
                       recording_id: Optional[str] = None,
                       folder_name: Optional[str] = None) -> UploadJob:
        """Persist an upload request; an active job for the same recording is reused"""
        if recording_id:
            active_jobs = self.job_repo.list_active_for_recording(recording_id)
            if active_jobs:
                logger.info(f"Upload already queued for recording {recording_id}: job {active_jobs[0].id}")
                return active_jobs[0]

        job = self.job_repo.create_job(UploadJob(
            folder_path=os.path.abspath(folder_path),
            folder_name=folder_name or os.path.basename(os.path.normpath(folder_path)),
            object_name=object_name,
            session_folder_name=session_folder_name_for(object_name),
            recording_id=recording_id
        ))
        logger.info(f"📋 Queued upload job {job.id}: {job.folder_name}")
        self._wake_event.set()
        return job

    def get_job(self, job_id: int) -> Optional[UploadJob]:
        return self.job_repo.get_job(job_id)

    def get_progress(self, job_id: int) -> Optional[UploadProgress]:
        with self._progress_lock:
            return self._progress.get(job_id)

    def run_pending(self, worker_id: str = "inline") -> List[UploadJob]:
        """Run every job that is due now on the calling thread, once each"""
        now = datetime.now()
        finished = []
        while True:
            job = self.job_repo.claim_next(worker_id, now)
            if job is None:
                return finished
            finished.append(self.process_job(job))

    def resume_pending_uploads(self) -> List[UploadJob]:
        """Re-queue interrupted jobs and enqueue pending recordings that still have frames"""
        requeued = self.job_repo.requeue_running()
        if requeued:
            logger.info(f"🔁 Re-queued {requeued} interrupted upload jobs")

        jobs = []
        for recording in self.recording_repo.list_by_status([UploadStatus.PENDING, UploadStatus.FAILED]):
            if not list_frame_set_files(recording.frame_folder_path):
                continue
            if self.job_repo.list_active_for_recording(recording.id):
                continue
            jobs.append(self.enqueue_upload(
                folder_path=recording.frame_folder_path,
                object_name=recording.object_name,
                recording_id=recording.id
            ))

        if jobs:
            logger.info(f"🔁 Resumed {len(jobs)} pending uploads")
        return jobs

    def process_job(self, job: UploadJob) -> UploadJob:
        """Execute one claimed attempt and persist the resulting transition"""
        self._set_recording_status(job, UploadStatus.UPLOADING)

        def on_progress(progress: UploadProgress):
            self._publish_progress(job, progress)

        try:
            result = self.worker.do_work(job, on_progress=on_progress)
        except Exception as e:
            logger.error(f"Error in upload worker for job {job.id}: {e}", exc_info=True)
            result = WorkResult.retry(f"Upload error: {e}")

        if result.outcome == WorkOutcome.SUCCESS:
            updated = self.job_repo.mark_succeeded(job.id, result.uploaded_count)
            self._set_recording_status(job, UploadStatus.COMPLETED)
            self._notify_completion(updated)
            return updated

        attempt_count = job.attempt_count + (1 if result.counts_as_attempt else 0)
        if attempt_count < self.config.max_attempts:
            delay = self.config.retry_delay(max(1, attempt_count))
            updated = self.job_repo.schedule_retry(
                job.id,
                attempt_count=attempt_count,
                next_attempt_at=datetime.now() + timedelta(seconds=delay),
                error_message=result.error_message,
                uploaded_count=result.uploaded_count
            )
            self._set_recording_status(job, UploadStatus.PENDING)
            logger.info(f"⏳ Job {job.id} retry {attempt_count}/{self.config.max_attempts} in {delay:.0f}s")
            return updated

        updated = self.job_repo.mark_failed(
            job.id,
            attempt_count=attempt_count,
            error_message=result.error_message,
            uploaded_count=result.uploaded_count
        )
        self._set_recording_status(job, UploadStatus.FAILED)
        logger.error(f"❌ Job {job.id} failed permanently after {attempt_count} attempts: {result.error_message}")
        self._notify_completion(updated)
        return updated

    def get_stats(self) -> dict:
        """Get upload service statistics"""
        return {
            "running": self.running,
            "workers": len(self.worker_threads),
            "max_attempts": self.config.max_attempts,
            "root_folder_id": self.config.root_folder_id
        }

    def _worker_loop(self, worker_id: str):
        logger.info(f"📤 Upload worker {worker_id} started")

        while self.running:
            try:
                job = self.job_repo.claim_next(worker_id, datetime.now())
                if job is None:
                    self._wake_event.wait(self.config.poll_interval)
                    self._wake_event.clear()
                    continue
                self.process_job(job)
            except Exception as e:
                logger.error(f"Error in upload worker {worker_id}: {e}")
                self._wake_event.wait(self.config.poll_interval)

        logger.info(f"📤 Upload worker {worker_id} ended")

    def _set_recording_status(self, job: UploadJob, status: UploadStatus):
        if not job.recording_id:
            return
        try:
            self.recording_repo.update_status(job.recording_id, status)
        except RecordingNotFoundError:
            logger.warning(f"Job {job.id} refers to unknown recording {job.recording_id}")

    def _publish_progress(self, job: UploadJob, progress: UploadProgress):
        with self._progress_lock:
            self._progress[job.id] = progress
            self._progress.move_to_end(job.id)
            while len(self._progress) > self.progress_history_limit:
                self._progress.popitem(last=False)
        logger.debug(f"Uploading {progress.current_file}/{progress.total_files}: {progress.current_file_name}")

        for callback in self.progress_callbacks:
            try:
                callback(job.id, progress)
            except Exception as e:
                logger.error(f"Error in upload progress callback: {e}")

    def _notify_completion(self, job: UploadJob):
        for callback in self.completion_callbacks:
            try:
                callback(job)
            except Exception as e:
                logger.error(f"Error in upload completion callback: {e}")
