# config/__init__.py
from .settings import AppConfig
from .database import DatabaseConfig
from .capture import CaptureConfig
from .extraction import ExtractionConfig
from .upload import UploadConfig
from .storage import StorageConfig

__all__ = [
    'AppConfig',
    'DatabaseConfig',
    'CaptureConfig',
    'ExtractionConfig',
    'UploadConfig',
    'StorageConfig'
]
