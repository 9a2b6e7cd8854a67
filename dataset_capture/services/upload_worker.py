# dataset_capture/services/upload_worker.py
import logging
from typing import Callable, Optional

from dataset_capture.errors import NotAuthenticatedError
from dataset_capture.models.upload import UploadJob, UploadProgress, WorkResult
from dataset_capture.processors.frame_extractor import FrameExtractor
from dataset_capture.services.account_session import AccountSessionProvider
from dataset_capture.services.frame_set_uploader import FrameSetUploader, list_frame_set_files

logger = logging.getLogger(__name__)


class UploadWorker:
    """Runs one attempt of an upload job and says what should happen next"""

    def __init__(self, account_provider: AccountSessionProvider, uploader: FrameSetUploader,
                 cleanup: Callable[[str], bool] = FrameExtractor.cleanup_frames):
        self.account_provider = account_provider
        self.uploader = uploader
        self.cleanup = cleanup

    def do_work(self, job: UploadJob,
                on_progress: Optional[Callable[[UploadProgress], None]] = None) -> WorkResult:
        if not list_frame_set_files(job.folder_path):
            logger.error(f"Invalid or empty frames directory: {job.folder_path}")
            return WorkResult.retry("Frames directory not found or empty")

        store = self.account_provider.get_remote_store()
        if store is None:
            logger.warning("Not authenticated to the remote drive")
            return WorkResult.retry(
                "Not authenticated. Please sign in to upload.",
                counts_as_attempt=False
            )

        logger.info(f"📤 Starting upload for folder: {job.folder_name} at {job.folder_path}")
        try:
            result = self.uploader.upload_frames(
                store=store,
                frames_directory=job.folder_path,
                session_folder_name=job.session_folder_name,
                object_name=job.object_name,
                on_progress=on_progress
            )
        except NotAuthenticatedError as e:
            logger.warning(f"Remote drive rejected credentials: {e}")
            return WorkResult.retry(str(e), counts_as_attempt=False)
        except Exception as e:
            logger.error(f"Upload failed: {e}", exc_info=True)
            return WorkResult.retry(f"Upload error: {e}")

        if result.success:
            logger.info(f"✅ Upload successful: {result.uploaded_count} files uploaded")
            if not self.cleanup(job.folder_path):
                logger.warning(f"Uploaded but could not clean up {job.folder_path}")
            return WorkResult.succeeded(result.uploaded_count)

        logger.error(f"❌ Upload failed: {result.error_message}")
        return WorkResult.retry(result.error_message or "Upload failed", uploaded_count=result.uploaded_count)
