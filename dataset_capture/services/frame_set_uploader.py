# dataset_capture/services/frame_set_uploader.py
import logging
import os
from typing import Callable, List, Optional

from dataset_capture.config.upload import UploadConfig
from dataset_capture.errors import NotAuthenticatedError, RemoteFolderCreateError
from dataset_capture.models.upload import UploadProgress, UploadResult
from dataset_capture.repositories.remote_store import RemoteStore, mime_type_for

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[UploadProgress], None]


def list_frame_set_files(frames_directory: str) -> List[str]:
    """Regular files of a frame set sorted by name (frame_* before metadata.json)"""
    if not os.path.isdir(frames_directory):
        return []
    names = sorted(
        name for name in os.listdir(frames_directory)
        if os.path.isfile(os.path.join(frames_directory, name))
    )
    return [os.path.join(frames_directory, name) for name in names]


class FrameSetUploader:
    """Uploads one frame-set directory into ``{root}/{object}/{session}/``"""

    def __init__(self, config: UploadConfig):
        self.config = config

    def upload_frames(
        self,
        store: RemoteStore,
        frames_directory: str,
        session_folder_name: str,
        object_name: str,
        on_progress: Optional[ProgressCallback] = None
    ) -> UploadResult:
        """Upload every file of the frame set.

        Folder failures abort before any file is attempted. A failed file is
        logged and counted; the rest of the batch still runs. Success means every
        file is present remotely. NotAuthenticatedError from folder lookup is
        left to the caller.
        """
        try:
            object_folder_id = store.find_or_create_folder(object_name, self.config.root_folder_id)
        except RemoteFolderCreateError:
            return UploadResult(success=False, error_message=f"Failed to create object folder: {object_name}")

        try:
            session_folder_id = store.find_or_create_folder(session_folder_name, object_folder_id)
        except RemoteFolderCreateError:
            return UploadResult(success=False, error_message=f"Failed to create session folder: {session_folder_name}")

        files_to_upload = list_frame_set_files(frames_directory)
        if not files_to_upload:
            return UploadResult(
                success=False,
                folder_id=session_folder_id,
                folder_name=session_folder_name,
                error_message="No files to upload"
            )

        total_files = len(files_to_upload)
        uploaded_count = 0
        last_error = None

        for index, file_path in enumerate(files_to_upload, start=1):
            file_name = os.path.basename(file_path)
            try:
                if self._already_uploaded(store, file_name, session_folder_id):
                    logger.debug(f"Already uploaded, skipping: {file_name}")
                else:
                    store.upload_file(file_path, session_folder_id, mime_type_for(file_name))
                    logger.debug(f"Uploaded: {file_name}")
                uploaded_count += 1
            except Exception as e:
                last_error = f"{file_name}: {e}"
                logger.warning(f"Failed to upload {file_name}: {e}")

            self._report(on_progress, UploadProgress(
                current_file=index,
                total_files=total_files,
                current_file_name=file_name,
                overall_progress=index / total_files
            ))

        success = uploaded_count == total_files
        error_message = None
        if not success:
            error_message = f"{total_files - uploaded_count} of {total_files} files failed to upload"
            if last_error:
                error_message = f"{error_message} (last error: {last_error})"

        logger.info(f"📤 Uploaded {uploaded_count}/{total_files} files to {object_name}/{session_folder_name}")
        return UploadResult(
            success=success,
            folder_id=session_folder_id,
            folder_name=session_folder_name,
            uploaded_count=uploaded_count,
            total_files=total_files,
            error_message=error_message
        )

    def _already_uploaded(self, store: RemoteStore, file_name: str, folder_id: str) -> bool:
        if not self.config.skip_existing_files:
            return False
        try:
            return store.find_file(file_name, folder_id) is not None
        except NotAuthenticatedError:
            raise
        except Exception as e:
            logger.debug(f"Existence check failed for {file_name}, uploading anyway: {e}")
            return False

    def _report(self, callback: Optional[ProgressCallback], progress: UploadProgress):
        if callback is None:
            return
        try:
            callback(progress)
        except Exception as e:
            logger.error(f"Error in upload progress callback: {e}")
