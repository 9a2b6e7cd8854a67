# config/settings.py
from dataclasses import dataclass
import logging
import os
from .base import BaseConfig
from .database import DatabaseConfig
from .capture import CaptureConfig
from .extraction import ExtractionConfig, MIN_EXTRACTION_FPS, MAX_EXTRACTION_FPS
from .upload import UploadConfig
from .storage import StorageConfig

logger = logging.getLogger(__name__)


@dataclass
class AppConfig(BaseConfig):
    """Main application configuration"""
    # Application settings
    data_dir: str = "data"
    log_level: str = "INFO"
    debug: bool = False
    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Component configurations
    database: DatabaseConfig = None
    capture: CaptureConfig = None
    extraction: ExtractionConfig = None
    upload: UploadConfig = None
    storage: StorageConfig = None

    def __post_init__(self):
        if self.database is None:
            self.database = DatabaseConfig.from_env()
        if self.capture is None:
            self.capture = CaptureConfig.from_env()
        if self.extraction is None:
            self.extraction = ExtractionConfig.from_env()
        if self.upload is None:
            self.upload = UploadConfig.from_env()
        if self.storage is None:
            self.storage = StorageConfig.from_env()

    @classmethod
    def from_env(cls) -> 'AppConfig':
        """Create complete configuration from environment variables"""
        return cls(
            data_dir=os.getenv('DATA_DIR', 'data'),
            log_level=os.getenv('LOG_LEVEL', 'INFO'),
            debug=cls.get_env_bool('DEBUG', False),
            api_host=os.getenv('API_HOST', '0.0.0.0'),
            api_port=cls.get_env_int('API_PORT', 8080),

            database=DatabaseConfig.from_env(),
            capture=CaptureConfig.from_env(),
            extraction=ExtractionConfig.from_env(),
            upload=UploadConfig.from_env(),
            storage=StorageConfig.from_env()
        )

    def ensure_directories(self):
        """Create the local directories the pipeline writes into"""
        for path in (self.data_dir, self.extraction.videos_dir, self.extraction.temp_frames_dir):
            os.makedirs(path, exist_ok=True)
        sqlite_path = self.database.sqlite_path
        if sqlite_path and os.path.dirname(sqlite_path):
            os.makedirs(os.path.dirname(sqlite_path), exist_ok=True)

    def validate(self) -> bool:
        """Validate configuration settings"""
        errors = []

        if not self.capture.phases:
            errors.append("At least one capture phase must be configured")
        if self.capture.tick_seconds <= 0:
            errors.append("Capture tick interval must be positive")

        if not MIN_EXTRACTION_FPS <= self.extraction.frame_rate <= MAX_EXTRACTION_FPS:
            errors.append(f"Frame rate must be between {MIN_EXTRACTION_FPS} and {MAX_EXTRACTION_FPS}")
        if not 0 <= self.extraction.jpeg_quality <= 100:
            errors.append("JPEG quality must be between 0 and 100")

        if self.upload.max_attempts < 1:
            errors.append("Upload max attempts must be at least 1")
        if self.upload.workers < 1:
            errors.append("At least one upload worker is required")
        if not self.upload.root_folder_id:
            errors.append("Drive root folder id is required for cloud upload")

        if not self.database.url:
            errors.append("Database URL is not configured")

        if errors:
            logger.error("Configuration validation errors:")
            for error in errors:
                logger.error(f"  - {error}")
            return False

        return True
