# dataset_capture/db/models.py
from datetime import datetime
from sqlalchemy import Column, String, Integer, BigInteger, DateTime, Enum, Text
from sqlalchemy.orm import declarative_base

from dataset_capture.models.recording import UploadStatus
from dataset_capture.models.upload import JobStatus

Base = declarative_base()


class RecordingModel(Base):
    __tablename__ = "recordings"

    id = Column(String(64), primary_key=True)  # Timestamp-based, ensuring uniqueness
    object_name = Column(String(255), nullable=False)
    video_path = Column(Text, nullable=False)
    frame_folder_path = Column(Text, nullable=False)
    upload_status = Column(Enum(UploadStatus, name="upload_status_enum"), nullable=False,
                           default=UploadStatus.PENDING, index=True)
    timestamp = Column(BigInteger, nullable=False)
    frame_count = Column(Integer, nullable=False, default=0)


class UploadJobModel(Base):
    __tablename__ = "upload_jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    recording_id = Column(String(64), nullable=True, index=True)
    folder_path = Column(Text, nullable=False)
    folder_name = Column(String(255), nullable=False)
    object_name = Column(String(255), nullable=False)
    session_folder_name = Column(String(255), nullable=False)
    status = Column(Enum(JobStatus, name="job_status_enum"), nullable=False,
                    default=JobStatus.QUEUED, index=True)
    attempt_count = Column(Integer, nullable=False, default=0)
    uploaded_count = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    next_attempt_at = Column(DateTime, nullable=False, default=datetime.now)
    claimed_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)
