# dataset_capture/repositories/relational_db/recording_repository_impl.py
from contextlib import contextmanager
from typing import Callable, Generator, List, Optional
import logging

from sqlalchemy.orm import Session

from dataset_capture.db.models import RecordingModel
from dataset_capture.errors import RecordingNotFoundError
from dataset_capture.models.recording import RecordingEntity, UploadStatus
from dataset_capture.repositories.recording_repository import RecordingRepository

logger = logging.getLogger(__name__)


class RecordingRepositoryImpl(RecordingRepository):
    """SQLAlchemy recording store; every call runs in its own transaction"""

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

    def upsert_recording(self, recording: RecordingEntity) -> RecordingEntity:
        try:
            with self._session() as session:
                model = session.merge(RecordingModel(
                    id=recording.id,
                    object_name=recording.object_name,
                    video_path=recording.video_path,
                    frame_folder_path=recording.frame_folder_path,
                    upload_status=recording.upload_status,
                    timestamp=recording.timestamp,
                    frame_count=recording.frame_count
                ))
                session.commit()
                session.refresh(model)
                return self._to_domain(model)
        except Exception as e:
            logger.error(f"Error saving recording {recording.id}: {e}")
            raise

    def get_recording(self, recording_id: str) -> Optional[RecordingEntity]:
        try:
            with self._session() as session:
                model = session.query(RecordingModel).filter_by(id=recording_id).first()
                return self._to_domain(model) if model else None
        except Exception as e:
            logger.error(f"Error getting recording {recording_id}: {e}")
            raise

    def list_all(self) -> List[RecordingEntity]:
        try:
            with self._session() as session:
                models = session.query(RecordingModel).order_by(RecordingModel.timestamp.desc()).all()
                return [self._to_domain(model) for model in models]
        except Exception as e:
            logger.error(f"Error listing recordings: {e}")
            raise

    def list_by_status(self, statuses: List[UploadStatus]) -> List[RecordingEntity]:
        try:
            with self._session() as session:
                models = session.query(RecordingModel).filter(
                    RecordingModel.upload_status.in_(list(statuses))
                ).all()
                return [self._to_domain(model) for model in models]
        except Exception as e:
            logger.error(f"Error listing recordings by status {statuses}: {e}")
            raise

    def update_status(self, recording_id: str, status: UploadStatus) -> RecordingEntity:
        try:
            with self._session() as session:
                model = session.query(RecordingModel).filter_by(id=recording_id).first()
                if not model:
                    raise RecordingNotFoundError(f"Recording with ID {recording_id} not found")

                model.upload_status = status
                session.commit()
                session.refresh(model)
                return self._to_domain(model)
        except Exception as e:
            logger.error(f"Error updating recording {recording_id} to {status.value}: {e}")
            raise

    def _to_domain(self, model: RecordingModel) -> RecordingEntity:
        """Convert SQLAlchemy model to domain model"""
        return RecordingEntity(
            id=model.id,
            object_name=model.object_name,
            video_path=model.video_path,
            frame_folder_path=model.frame_folder_path,
            upload_status=UploadStatus(model.upload_status),
            timestamp=model.timestamp,
            frame_count=model.frame_count
        )
