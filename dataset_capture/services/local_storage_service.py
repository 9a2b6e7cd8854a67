# dataset_capture/services/local_storage_service.py
import logging
import os
import shutil

from dataset_capture.config.storage import StorageConfig
from dataset_capture.errors import LocalPersistenceError
from dataset_capture.services.frame_set_uploader import list_frame_set_files

logger = logging.getLogger(__name__)


class LocalStorageService:
    """Copies a frame set into the user-visible documents folder"""

    def __init__(self, config: StorageConfig):
        self.config = config

    def save_frames(self, source_directory: str, folder_name: str) -> str:
        """Copy every regular file of ``source_directory`` to ``{public_root}/{folder_name}``.

        Returns the destination path. Raises LocalPersistenceError when the
        source has no files or when any file could not be copied; the source
        is left untouched in that case.
        """
        source_files = list_frame_set_files(source_directory)
        if not source_files:
            raise LocalPersistenceError(f"No files to save in {source_directory}")

        destination = os.path.join(self.config.public_root, folder_name)
        try:
            os.makedirs(destination, exist_ok=True)
        except OSError as e:
            logger.error(f"Error creating {destination}: {e}")
            raise LocalPersistenceError(f"Cannot create {destination}: {e}") from e

        logger.debug(f"Saving {len(source_files)} files to {destination}")
        failed = []
        for file_path in source_files:
            file_name = os.path.basename(file_path)
            try:
                shutil.copy2(file_path, os.path.join(destination, file_name))
            except OSError as e:
                logger.error(f"Failed to save file {file_name}: {e}")
                failed.append(file_name)

        if failed:
            raise LocalPersistenceError(
                f"Saved {len(source_files) - len(failed)}/{len(source_files)} files to {destination}, "
                f"missing: {', '.join(failed)}"
            )

        logger.info(f"💾 Saved {len(source_files)} frames to {destination}")
        return destination
