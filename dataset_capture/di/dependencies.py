# dataset_capture/di/dependencies.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from typing import Optional
import logging

from dataset_capture.config import AppConfig
from dataset_capture.db.models import Base
from dataset_capture.processors.capture_sequencer import CapturePhaseSequencer
from dataset_capture.processors.frame_extractor import FrameExtractor
from dataset_capture.repositories.recording_repository import RecordingRepository
from dataset_capture.repositories.upload_job_repository import UploadJobRepository
from dataset_capture.repositories.relational_db.recording_repository_impl import RecordingRepositoryImpl
from dataset_capture.repositories.relational_db.upload_job_repository_impl import UploadJobRepositoryImpl
from dataset_capture.services.account_session import AccountSessionProvider
from dataset_capture.services.frame_set_uploader import FrameSetUploader
from dataset_capture.services.local_storage_service import LocalStorageService
from dataset_capture.services.upload_queue_service import UploadQueueService
from dataset_capture.services.upload_worker import UploadWorker
from dataset_capture.services.video_recorder import OpenCVVideoRecorder, VideoRecorder
from dataset_capture.usecases.capture_usecase import CaptureUseCase
from dataset_capture.usecases.pipeline_usecase import PipelineUseCase
from dataset_capture.usecases.recording_usecase import RecordingUseCase

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Manages database connections and sessions"""

    def __init__(self, config: AppConfig):
        self.config: AppConfig = config
        self._engine = None
        self._session_factory = None
        self._initialize_database()

    def _initialize_database(self):
        """Initialize database engine, schema and session factory"""
        try:
            database = self.config.database
            logger.info(f"Initializing database connection to: {database.url}")

            engine_kwargs = {"echo": database.echo or self.config.debug}
            if database.is_sqlite:
                # Worker threads share the engine
                engine_kwargs["connect_args"] = {
                    "check_same_thread": False,
                    "timeout": database.connection_timeout
                }
                if database.is_memory:
                    engine_kwargs["poolclass"] = StaticPool
            else:
                engine_kwargs["pool_pre_ping"] = True
                engine_kwargs["pool_timeout"] = database.connection_timeout
                engine_kwargs["pool_recycle"] = 3600

            self._engine = create_engine(database.url, **engine_kwargs)
            Base.metadata.create_all(self._engine)

            self._session_factory = sessionmaker(
                bind=self._engine,
                autocommit=False,
                autoflush=False,
                expire_on_commit=False
            )

            logger.info("Database initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
            raise

    def get_session(self) -> Session:
        """Get a new database session"""
        if not self._session_factory:
            raise RuntimeError("Database not initialized")
        return self._session_factory()

    def close(self):
        """Close database connections"""
        if self._engine:
            self._engine.dispose()
            logger.info("Database connections closed")


class DependencyContainer:
    """Dependency injection container"""

    def __init__(self, config: AppConfig, recorder: Optional[VideoRecorder] = None,
                 account_provider: Optional[AccountSessionProvider] = None,
                 frame_extractor: Optional[FrameExtractor] = None):
        self.config = config
        self.db_manager = DatabaseManager(config)

        self._recording_repository: RecordingRepository = None
        self._upload_job_repository: UploadJobRepository = None
        self._account_provider = account_provider
        self._frame_extractor = frame_extractor
        self._recorder = recorder
        self._upload_queue_service: UploadQueueService = None
        self._capture_usecase: CaptureUseCase = None

        logger.info("Dependency container initialized")

    def get_recording_repository(self) -> RecordingRepository:
        if self._recording_repository is None:
            self._recording_repository = RecordingRepositoryImpl(self.db_manager.get_session)
        return self._recording_repository

    def get_upload_job_repository(self) -> UploadJobRepository:
        if self._upload_job_repository is None:
            self._upload_job_repository = UploadJobRepositoryImpl(self.db_manager.get_session)
        return self._upload_job_repository

    def get_account_provider(self) -> AccountSessionProvider:
        """Get account session provider (singleton)"""
        if self._account_provider is None:
            self._account_provider = AccountSessionProvider(
                self.config.storage.account_settings_file,
                self.config.upload
            )
        return self._account_provider

    def get_frame_extractor(self) -> FrameExtractor:
        if self._frame_extractor is None:
            self._frame_extractor = FrameExtractor(self.config.extraction)
        return self._frame_extractor

    def get_recording_usecase(self) -> RecordingUseCase:
        """Get RecordingUseCase; repositories open a session per call"""
        return RecordingUseCase(self.get_recording_repository(), self.config.extraction)

    def get_upload_queue_service(self) -> UploadQueueService:
        """Get upload queue service instance (singleton)"""
        if self._upload_queue_service is None:
            worker = UploadWorker(self.get_account_provider(), FrameSetUploader(self.config.upload))
            self._upload_queue_service = UploadQueueService(
                self.config.upload,
                self.get_upload_job_repository(),
                self.get_recording_repository(),
                worker
            )
            logger.info("Upload queue service initialized")
        return self._upload_queue_service

    def get_pipeline_usecase(self) -> PipelineUseCase:
        return PipelineUseCase(
            self.get_frame_extractor(),
            self.get_recording_usecase(),
            LocalStorageService(self.config.storage),
            self.get_upload_queue_service()
        )

    def get_capture_usecase(self) -> CaptureUseCase:
        """Get capture usecase instance (singleton, owns the camera)"""
        if self._capture_usecase is None:
            recorder = self._recorder or OpenCVVideoRecorder(self.config.capture)
            sequencer = CapturePhaseSequencer(self.config.capture.phases, self.config.capture.tick_seconds)
            self._capture_usecase = CaptureUseCase(recorder, sequencer, self.get_recording_usecase())
            logger.info("Capture usecase initialized")
        return self._capture_usecase

    def close(self):
        """Close all resources"""
        if self._upload_queue_service is not None:
            self._upload_queue_service.stop()
        if self._capture_usecase is not None:
            self._capture_usecase.sequencer.stop()
        self.db_manager.close()
        # Reset singletons
        self._upload_queue_service = None
        self._capture_usecase = None


# Global dependency container (initialized later)
_container: DependencyContainer = None


def initialize_dependencies(config: AppConfig, **overrides) -> DependencyContainer:
    """Initialize the global dependency container"""
    global _container
    _container = DependencyContainer(config, **overrides)
    logger.info("Global dependencies initialized")
    return _container


def get_dependency_container() -> DependencyContainer:
    """Get the global dependency container"""
    if _container is None:
        raise RuntimeError("Dependencies not initialized. Call initialize_dependencies() first.")
    return _container


def shutdown_dependencies():
    """Shutdown all dependencies"""
    global _container
    if _container:
        _container.close()
        _container = None
    logger.info("Dependencies shutdown complete")
