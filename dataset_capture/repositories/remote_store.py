# dataset_capture/repositories/remote_store.py
from abc import ABC, abstractmethod
from typing import Optional
import logging

from dataset_capture.errors import NotAuthenticatedError, RemoteFolderCreateError

logger = logging.getLogger(__name__)

MIME_TYPE_FOLDER = "application/vnd.google-apps.folder"
MIME_TYPE_JPEG = "image/jpeg"
MIME_TYPE_JSON = "application/json"
MIME_TYPE_DEFAULT = "application/octet-stream"


def mime_type_for(file_name: str) -> str:
    extension = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else ""
    if extension in ("jpg", "jpeg"):
        return MIME_TYPE_JPEG
    if extension == "json":
        return MIME_TYPE_JSON
    return MIME_TYPE_DEFAULT


class RemoteStore(ABC):
    """Cloud folder/file service available only to a signed-in account"""

    @abstractmethod
    def find_folder(self, name: str, parent_id: str) -> Optional[str]:
        pass

    @abstractmethod
    def create_folder(self, name: str, parent_id: str) -> str:
        pass

    @abstractmethod
    def find_file(self, name: str, parent_id: str) -> Optional[str]:
        pass

    @abstractmethod
    def upload_file(self, local_path: str, parent_id: str, mime_type: str) -> str:
        pass

    def find_or_create_folder(self, name: str, parent_id: str) -> str:
        """Existing folder id by exact name under the parent, else a new folder"""
        try:
            folder_id = self.find_folder(name, parent_id)
            if folder_id:
                logger.debug(f"Found existing folder: {name}")
                return folder_id

            folder_id = self.create_folder(name, parent_id)
            logger.info(f"📁 Created folder: {name} with ID: {folder_id}")
            return folder_id
        except NotAuthenticatedError:
            raise
        except Exception as e:
            logger.error(f"Failed to get/create folder {name}: {e}")
            raise RemoteFolderCreateError(f"Failed to create folder: {name}") from e
