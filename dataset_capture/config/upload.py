# config/upload.py
from dataclasses import dataclass
import os
from .base import BaseConfig


@dataclass
class UploadConfig(BaseConfig):
    """Remote drive upload and retry configuration"""
    root_folder_id: str = "root"
    max_attempts: int = 3
    retry_base_seconds: float = 30.0
    workers: int = 2
    poll_interval: float = 2.0
    skip_existing_files: bool = True
    http_timeout: int = 60
    drive_api_url: str = "https://www.googleapis.com/drive/v3"
    drive_upload_url: str = "https://www.googleapis.com/upload/drive/v3"

    @classmethod
    def from_env(cls) -> 'UploadConfig':
        return cls(
            root_folder_id=os.getenv('DRIVE_ROOT_FOLDER_ID', 'root'),
            max_attempts=cls.get_env_int('UPLOAD_MAX_ATTEMPTS', 3),
            retry_base_seconds=cls.get_env_float('UPLOAD_RETRY_BASE_SECONDS', 30.0),
            workers=cls.get_env_int('UPLOAD_WORKERS', 2),
            poll_interval=cls.get_env_float('UPLOAD_POLL_INTERVAL', 2.0),
            skip_existing_files=cls.get_env_bool('UPLOAD_SKIP_EXISTING', True),
            http_timeout=cls.get_env_int('UPLOAD_HTTP_TIMEOUT', 60),
            drive_api_url=os.getenv('DRIVE_API_URL', cls.drive_api_url),
            drive_upload_url=os.getenv('DRIVE_UPLOAD_URL', cls.drive_upload_url)
        )

    def retry_delay(self, attempt: int) -> float:
        """Exponential backoff for the given (1-based) failed attempt"""
        return self.retry_base_seconds * (2 ** max(0, attempt - 1))
