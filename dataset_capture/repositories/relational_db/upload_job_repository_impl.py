# dataset_capture/repositories/relational_db/upload_job_repository_impl.py
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Generator, List, Optional
import logging

from sqlalchemy.orm import Session

from dataset_capture.db.models import UploadJobModel
from dataset_capture.models.upload import ACTIVE_JOB_STATUSES, JobStatus, UploadJob
from dataset_capture.repositories.upload_job_repository import UploadJobRepository

logger = logging.getLogger(__name__)

CLAIM_BATCH = 5


class UploadJobRepositoryImpl(UploadJobRepository):
    """Persisted upload queue.

    Claiming is a conditional UPDATE on (id, status=QUEUED): only the worker whose
    update hits a row owns the job, so two workers never run the same frame set.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        session = self.session_factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_job(self, job: UploadJob) -> UploadJob:
        now = datetime.now()
        try:
            with self._session() as session:
                model = UploadJobModel(
                    recording_id=job.recording_id,
                    folder_path=job.folder_path,
                    folder_name=job.folder_name,
                    object_name=job.object_name,
                    session_folder_name=job.session_folder_name,
                    status=JobStatus.QUEUED,
                    attempt_count=0,
                    uploaded_count=0,
                    next_attempt_at=job.next_attempt_at or now,
                    created_at=now,
                    updated_at=now
                )
                session.add(model)
                session.commit()
                session.refresh(model)
                return self._to_domain(model)
        except Exception as e:
            logger.error(f"Error creating upload job for {job.folder_path}: {e}")
            raise

    def get_job(self, job_id: int) -> Optional[UploadJob]:
        try:
            with self._session() as session:
                model = session.get(UploadJobModel, job_id)
                return self._to_domain(model) if model else None
        except Exception as e:
            logger.error(f"Error getting upload job {job_id}: {e}")
            raise

    def list_active_for_recording(self, recording_id: str) -> List[UploadJob]:
        try:
            with self._session() as session:
                models = session.query(UploadJobModel).filter(
                    UploadJobModel.recording_id == recording_id,
                    UploadJobModel.status.in_(list(ACTIVE_JOB_STATUSES))
                ).all()
                return [self._to_domain(model) for model in models]
        except Exception as e:
            logger.error(f"Error listing jobs for recording {recording_id}: {e}")
            raise

    def claim_next(self, worker_id: str, now: datetime) -> Optional[UploadJob]:
        try:
            with self._session() as session:
                candidates = session.query(UploadJobModel.id).filter(
                    UploadJobModel.status == JobStatus.QUEUED,
                    UploadJobModel.next_attempt_at <= now
                ).order_by(UploadJobModel.next_attempt_at, UploadJobModel.id).limit(CLAIM_BATCH).all()

                for (job_id,) in candidates:
                    claimed = session.query(UploadJobModel).filter(
                        UploadJobModel.id == job_id,
                        UploadJobModel.status == JobStatus.QUEUED
                    ).update(
                        {
                            UploadJobModel.status: JobStatus.RUNNING,
                            UploadJobModel.claimed_by: worker_id,
                            UploadJobModel.updated_at: now
                        },
                        synchronize_session=False
                    )
                    session.commit()
                    if claimed == 1:
                        return self._to_domain(session.get(UploadJobModel, job_id))
                return None
        except Exception as e:
            logger.error(f"Error claiming upload job for {worker_id}: {e}")
            raise

    def mark_succeeded(self, job_id: int, uploaded_count: int) -> UploadJob:
        return self._finish(job_id, JobStatus.SUCCEEDED, uploaded_count=uploaded_count, last_error=None)

    def schedule_retry(self, job_id: int, attempt_count: int, next_attempt_at: datetime,
                       error_message: Optional[str], uploaded_count: int) -> UploadJob:
        return self._finish(
            job_id, JobStatus.QUEUED,
            attempt_count=attempt_count,
            next_attempt_at=next_attempt_at,
            last_error=error_message,
            uploaded_count=uploaded_count
        )

    def mark_failed(self, job_id: int, attempt_count: int, error_message: Optional[str],
                    uploaded_count: int) -> UploadJob:
        return self._finish(
            job_id, JobStatus.FAILED,
            attempt_count=attempt_count,
            last_error=error_message,
            uploaded_count=uploaded_count
        )

    def requeue_running(self) -> int:
        try:
            with self._session() as session:
                count = session.query(UploadJobModel).filter(
                    UploadJobModel.status == JobStatus.RUNNING
                ).update(
                    {
                        UploadJobModel.status: JobStatus.QUEUED,
                        UploadJobModel.claimed_by: None,
                        UploadJobModel.next_attempt_at: datetime.now()
                    },
                    synchronize_session=False
                )
                session.commit()
                return count
        except Exception as e:
            logger.error(f"Error re-queuing interrupted upload jobs: {e}")
            raise

    def _finish(self, job_id: int, status: JobStatus, **fields) -> UploadJob:
        try:
            with self._session() as session:
                model = session.get(UploadJobModel, job_id)
                if not model:
                    raise ValueError(f"Upload job with ID {job_id} not found")

                model.status = status
                model.claimed_by = None
                model.updated_at = datetime.now()
                for name, value in fields.items():
                    setattr(model, name, value)

                session.commit()
                session.refresh(model)
                return self._to_domain(model)
        except Exception as e:
            logger.error(f"Error moving upload job {job_id} to {status.value}: {e}")
            raise

    def _to_domain(self, model: UploadJobModel) -> UploadJob:
        """Convert SQLAlchemy model to domain model"""
        return UploadJob(
            id=model.id,
            recording_id=model.recording_id,
            folder_path=model.folder_path,
            folder_name=model.folder_name,
            object_name=model.object_name,
            session_folder_name=model.session_folder_name,
            status=JobStatus(model.status),
            attempt_count=model.attempt_count,
            uploaded_count=model.uploaded_count,
            last_error=model.last_error,
            next_attempt_at=model.next_attempt_at,
            claimed_by=model.claimed_by,
            created_at=model.created_at,
            updated_at=model.updated_at
        )
