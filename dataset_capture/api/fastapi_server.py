# dataset_capture/api/fastapi_server.py
from fastapi import FastAPI, HTTPException, Response
from pydantic import BaseModel
from dataclasses import asdict
from typing import List, Optional
import logging
import uvicorn

from dataset_capture import __version__
from dataset_capture.config import AppConfig
from dataset_capture.di.dependencies import DependencyContainer
from dataset_capture.models.capture import RecordingSession, phases_to_dicts
from dataset_capture.models.pipeline import PipelineOutcome
from dataset_capture.models.recording import RecordingEntity
from dataset_capture.models.upload import UploadJob

logger = logging.getLogger(__name__)


class ExtractRequest(BaseModel):
    video_path: str
    object_name: str
    fps: Optional[int] = None
    recording_id: Optional[str] = None


class SaveLocalRequest(BaseModel):
    folder_path: str
    folder_name: Optional[str] = None
    recording_id: Optional[str] = None


class UploadRequest(BaseModel):
    folder_path: str
    object_name: str
    recording_id: Optional[str] = None


class ApproveRequest(BaseModel):
    object_name: str


class SignInRequest(BaseModel):
    email: str
    access_token: str


def recording_to_dict(recording: RecordingEntity) -> dict:
    data = asdict(recording)
    data["upload_status"] = recording.upload_status.value
    return data


def outcome_to_dict(outcome: PipelineOutcome) -> dict:
    data = asdict(outcome)
    data["kind"] = outcome.kind.value
    return data


def session_to_dict(session: RecordingSession, remaining_seconds: int) -> dict:
    return {
        "phase_index": session.phase_index,
        "instruction": session.phase.instruction,
        "short_label": session.phase.short_label,
        "icon": session.phase.icon,
        "elapsed_seconds": session.elapsed_seconds,
        "remaining_seconds": remaining_seconds,
        "total_seconds": session.total_seconds,
        "pulse": session.pulse,
        "is_running": session.is_running
    }


class DatasetCaptureServer:
    """HTTP control surface for capture, extraction and uploads"""

    def __init__(self, config: AppConfig, container: DependencyContainer):
        self.config = config
        self.container = container
        self.app = FastAPI(
            title="Dataset Capture API",
            description="Guided video capture, frame extraction and frame-set upload",
            version=__version__
        )
        self.server: Optional[uvicorn.Server] = None

        self._setup_routes()

    def _setup_routes(self):
        """Setup FastAPI routes"""

        @self.app.get("/health")
        async def health():
            return {
                "status": "ok",
                "version": __version__,
                "authenticated": self.container.get_account_provider().is_authenticated(),
                "uploads": self.container.get_upload_queue_service().get_stats()
            }

        @self.app.get("/api/recordings")
        def list_recordings():
            """All recordings, newest first"""
            recordings = self.container.get_recording_usecase().list_recordings()
            return [recording_to_dict(r) for r in recordings]

        @self.app.get("/api/recordings/pending")
        def list_pending_recordings():
            """Recordings still waiting for a successful upload"""
            recordings = self.container.get_recording_usecase().list_pending_or_failed()
            return [recording_to_dict(r) for r in recordings]

        @self.app.get("/api/videos", response_model=List[str])
        def list_videos():
            return self.container.get_recording_usecase().list_videos()

        @self.app.get("/api/capture/session")
        def get_capture_session():
            capture = self.container.get_capture_usecase()
            return {
                "is_recording": capture.is_recording,
                "recorded_video_path": capture.recorded_video_path,
                "last_error": capture.last_error,
                "session": session_to_dict(capture.session(), capture.sequencer.remaining_seconds()),
                "phases": phases_to_dicts(capture.sequencer.phases)
            }

        @self.app.get("/api/capture/preview")
        def get_capture_preview():
            """Latest camera frame as JPEG"""
            image = self.container.get_capture_usecase().preview_jpeg()
            if image is None:
                raise HTTPException(status_code=404, detail="No preview frame available")
            return Response(content=image, media_type="image/jpeg")

        @self.app.post("/api/capture/acknowledge-pulse")
        def acknowledge_pulse():
            return {"acknowledged": self.container.get_capture_usecase().acknowledge_pulse()}

        @self.app.post("/api/capture/toggle")
        def toggle_recording():
            capture = self.container.get_capture_usecase()
            started = capture.toggle_recording()
            return {"started": started, "recorded_video_path": capture.recorded_video_path}

        @self.app.post("/api/capture/retake")
        def retake():
            discarded = self.container.get_capture_usecase().retake()
            return {"discarded": discarded}

        @self.app.post("/api/capture/approve")
        def approve(request: ApproveRequest):
            try:
                recording = self.container.get_capture_usecase().approve(request.object_name)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return recording_to_dict(recording)

        @self.app.post("/api/pipeline/extract")
        def extract_frames(request: ExtractRequest):
            """Extract frames and metadata; runs in the threadpool"""
            outcome = self.container.get_pipeline_usecase().extract(
                video_path=request.video_path,
                object_name=request.object_name,
                fps=request.fps,
                recording_id=request.recording_id
            )
            return outcome_to_dict(outcome)

        @self.app.post("/api/pipeline/save-local")
        def save_locally(request: SaveLocalRequest):
            outcome = self.container.get_pipeline_usecase().save_locally(
                folder_path=request.folder_path,
                folder_name=request.folder_name,
                recording_id=request.recording_id
            )
            return outcome_to_dict(outcome)

        @self.app.post("/api/uploads")
        def queue_upload(request: UploadRequest):
            outcome = self.container.get_pipeline_usecase().queue_upload(
                folder_path=request.folder_path,
                object_name=request.object_name,
                recording_id=request.recording_id
            )
            return outcome_to_dict(outcome)

        @self.app.get("/api/uploads/{job_id}")
        def get_upload(job_id: int):
            queue = self.container.get_upload_queue_service()
            job = queue.get_job(job_id)
            if job is None:
                raise HTTPException(status_code=404, detail="Upload job not found")
            progress = queue.get_progress(job_id)
            return {
                "job": self._job_to_dict(job),
                "progress": asdict(progress) if progress else None
            }

        @self.app.post("/api/uploads/resume")
        def resume_uploads():
            jobs = self.container.get_upload_queue_service().resume_pending_uploads()
            return {"queued": [self._job_to_dict(job) for job in jobs]}

        @self.app.post("/api/account/sign-in")
        def sign_in(request: SignInRequest):
            session = self.container.get_account_provider().sign_in(request.email, request.access_token)
            return {"email": session.email}

        @self.app.post("/api/account/sign-out")
        def sign_out():
            self.container.get_account_provider().sign_out()
            return {"signed_out": True}

    @staticmethod
    def _job_to_dict(job: UploadJob) -> dict:
        data = asdict(job)
        data["status"] = job.status.value
        for key in ("next_attempt_at", "created_at", "updated_at"):
            if data[key] is not None:
                data[key] = data[key].isoformat()
        return data

    def run(self):
        """Serve the API until interrupted"""
        uvicorn_config = uvicorn.Config(
            self.app,
            host=self.config.api_host,
            port=self.config.api_port,
            log_level=self.config.log_level.lower()
        )
        self.server = uvicorn.Server(uvicorn_config)
        logger.info(f"🌐 API listening on http://{self.config.api_host}:{self.config.api_port}")
        self.server.run()
