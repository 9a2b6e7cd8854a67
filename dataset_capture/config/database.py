# config/database.py
import os
from dataclasses import dataclass
from dataset_capture.config.base import BaseConfig

DEFAULT_DATA_DIR = "data"


@dataclass
class DatabaseConfig(BaseConfig):
    """Recording store database configuration"""
    url: str = f"sqlite:///{DEFAULT_DATA_DIR}/dataset_capture.db"
    connection_timeout: int = 30
    echo: bool = False

    @classmethod
    def from_env(cls) -> 'DatabaseConfig':
        data_dir = os.getenv('DATA_DIR', DEFAULT_DATA_DIR)
        return cls(
            url=os.getenv('DATABASE_URL', f"sqlite:///{data_dir}/dataset_capture.db"),
            connection_timeout=cls.get_env_int('DB_CONNECTION_TIMEOUT', 30),
            echo=cls.get_env_bool('DB_ECHO', False)
        )

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def is_memory(self) -> bool:
        return self.is_sqlite and (self.url.rstrip("/") == "sqlite:" or ":memory:" in self.url)

    @property
    def sqlite_path(self) -> str:
        """Filesystem path of a file-backed SQLite database, empty otherwise"""
        if not self.is_sqlite or self.is_memory:
            return ""
        return self.url.split("///", 1)[-1]
