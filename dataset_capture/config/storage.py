# config/storage.py
from dataclasses import dataclass
import os
from .base import BaseConfig


@dataclass
class StorageConfig(BaseConfig):
    """Public storage and account settings locations"""
    public_documents_dir: str = os.path.join(os.path.expanduser("~"), "Documents")
    app_folder_name: str = "DatasetGenerator"
    account_settings_file: str = "data/account.json"

    @classmethod
    def from_env(cls) -> 'StorageConfig':
        data_dir = os.getenv('DATA_DIR', 'data')
        return cls(
            public_documents_dir=os.getenv('PUBLIC_DOCUMENTS_DIR', cls.public_documents_dir),
            app_folder_name=os.getenv('APP_FOLDER_NAME', 'DatasetGenerator'),
            account_settings_file=os.getenv('ACCOUNT_SETTINGS_FILE', os.path.join(data_dir, 'account.json'))
        )

    @property
    def public_root(self) -> str:
        return os.path.join(self.public_documents_dir, self.app_folder_name)
