# dataset_capture/usecases/pipeline_usecase.py
import logging
import os
import time
from typing import Callable, Optional

from dataset_capture.errors import (
    InvalidVideoError, LocalPersistenceError, MetadataWriteError, NoFramesProducedError
)
from dataset_capture.models.pipeline import PipelineOutcome
from dataset_capture.models.recording import UploadStatus
from dataset_capture.processors.frame_extractor import FrameExtractor
from dataset_capture.processors.metadata_generator import generate_metadata_file
from dataset_capture.services.local_storage_service import LocalStorageService
from dataset_capture.services.upload_queue_service import UploadQueueService
from dataset_capture.usecases.recording_usecase import RecordingUseCase

logger = logging.getLogger(__name__)

EXTRACTION_FAILED = "Failed to extract frames from video"
METADATA_FAILED = "Failed to generate metadata"
LOCAL_SAVE_FAILED = "Failed to save to Documents folder"
UPLOAD_QUEUE_FAILED = "Failed to queue upload"


class PipelineUseCase:
    """Post-recording flow: extract, write metadata, then save locally or queue upload.

    Every method returns a PipelineOutcome; failures are reported as
    ``PipelineOutcome.error`` and never raised to the caller.
    """

    def __init__(self, extractor: FrameExtractor, recording_usecase: RecordingUseCase,
                 local_storage: LocalStorageService, upload_queue: UploadQueueService):
        self.extractor = extractor
        self.recording_usecase = recording_usecase
        self.local_storage = local_storage
        self.upload_queue = upload_queue

    def extract(self, video_path: str, object_name: str, fps: Optional[int] = None,
                recording_id: Optional[str] = None,
                on_progress: Optional[Callable[[float], None]] = None) -> PipelineOutcome:
        """Extract frames and metadata for a video and register the recording"""
        timestamp = int(time.time() * 1000)
        if recording_id:
            recording = self.recording_usecase.get_recording(recording_id)
            if recording:
                timestamp = recording.timestamp
        recording_id = recording_id or str(timestamp)

        try:
            result = self.extractor.extract_frames(
                video_path=video_path,
                object_name=object_name,
                timestamp=timestamp,
                fps=fps,
                on_progress=on_progress
            )
        except (InvalidVideoError, NoFramesProducedError) as e:
            logger.error(f"{EXTRACTION_FAILED}: {e}")
            return PipelineOutcome.error(EXTRACTION_FAILED)
        except Exception as e:
            logger.error(f"{EXTRACTION_FAILED}: {e}", exc_info=True)
            return PipelineOutcome.error(EXTRACTION_FAILED)

        try:
            generate_metadata_file(
                output_directory=result.output_directory,
                object_name=object_name,
                timestamp=timestamp,
                frame_count=result.frame_count,
                video_width=result.video_width,
                video_height=result.video_height,
                video_duration_ms=result.video_duration_ms,
                extraction_fps=result.fps
            )
        except MetadataWriteError as e:
            logger.error(f"{METADATA_FAILED}: {e}")
            FrameExtractor.cleanup_frames(result.output_directory)
            return PipelineOutcome.error(METADATA_FAILED)

        try:
            self.recording_usecase.record(
                recording_id=recording_id,
                object_name=object_name,
                video_path=video_path,
                frame_count=result.frame_count,
                frame_folder_path=result.output_directory,
                timestamp=timestamp
            )
        except Exception as e:
            logger.error(f"Error registering recording {recording_id}: {e}")
            return PipelineOutcome.error(f"Failed to register recording: {e}")

        return PipelineOutcome.success(
            f"Extracted {result.frame_count} frames",
            location=result.output_directory,
            frame_count=result.frame_count,
            recording_id=recording_id
        )

    def save_locally(self, folder_path: str, folder_name: Optional[str] = None,
                     recording_id: Optional[str] = None) -> PipelineOutcome:
        """Copy a frame set to the documents folder, then drop the temporary copy"""
        folder_name = folder_name or os.path.basename(os.path.normpath(folder_path))
        try:
            saved_path = self.local_storage.save_frames(folder_path, folder_name)
        except LocalPersistenceError as e:
            logger.error(f"{LOCAL_SAVE_FAILED}: {e}")
            return PipelineOutcome.error(LOCAL_SAVE_FAILED)

        FrameExtractor.cleanup_frames(folder_path)
        if recording_id:
            try:
                self.recording_usecase.update_status(recording_id, UploadStatus.COMPLETED)
            except Exception as e:
                logger.warning(f"Saved {folder_name} but could not update recording {recording_id}: {e}")

        return PipelineOutcome.success(f"Saved to {saved_path}", location=saved_path, recording_id=recording_id)

    def queue_upload(self, folder_path: str, object_name: str,
                     recording_id: Optional[str] = None) -> PipelineOutcome:
        """Hand the frame set to the background upload queue"""
        try:
            job = self.upload_queue.enqueue_upload(
                folder_path=folder_path,
                object_name=object_name,
                recording_id=recording_id
            )
        except Exception as e:
            logger.error(f"{UPLOAD_QUEUE_FAILED}: {e}")
            return PipelineOutcome.error(UPLOAD_QUEUE_FAILED)

        return PipelineOutcome.success(
            "Upload queued",
            location=job.folder_path,
            job_id=job.id,
            recording_id=recording_id
        )
