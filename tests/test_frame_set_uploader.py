import pytest

from dataset_capture.config import UploadConfig
from dataset_capture.errors import NotAuthenticatedError, RemoteFolderCreateError
from dataset_capture.repositories.remote_store import MIME_TYPE_JPEG, MIME_TYPE_JSON, mime_type_for
from dataset_capture.services.frame_set_uploader import FrameSetUploader, list_frame_set_files


@pytest.fixture
def uploader():
    return FrameSetUploader(UploadConfig())


def test_mime_types():
    assert mime_type_for("frame_0001.jpg") == MIME_TYPE_JPEG
    assert mime_type_for("metadata.json") == MIME_TYPE_JSON
    assert mime_type_for("README") == "application/octet-stream"


def test_list_frame_set_files_sorted(frames_dir, tmp_path):
    names = [path.rsplit("/", 1)[-1] for path in list_frame_set_files(frames_dir)]
    assert names == ["frame_0001.jpg", "frame_0002.jpg", "frame_0003.jpg", "metadata.json"]
    assert list_frame_set_files(str(tmp_path / "missing")) == []


def test_uploads_into_object_and_session_folders(uploader, remote_store, frames_dir):
    progress = []
    result = uploader.upload_frames(remote_store, frames_dir, "mug_20261019_140307", "mug",
                                    on_progress=progress.append)

    assert result.success
    assert result.uploaded_count == result.total_files == 4
    session_id = remote_store.folder_path("mug", "mug_20261019_140307")
    assert result.folder_id == session_id
    assert remote_store.file_names_in(session_id) == [
        "frame_0001.jpg", "frame_0002.jpg", "frame_0003.jpg", "metadata.json"
    ]
    assert [(p.current_file, p.total_files) for p in progress] == [(1, 4), (2, 4), (3, 4), (4, 4)]
    assert progress[-1].overall_progress == 1.0
    assert progress[0].current_file_name == "frame_0001.jpg"


def test_partial_failure_counts_and_continues(uploader, remote_store, frames_dir):
    remote_store.failing_files = {"frame_0002.jpg"}
    progress = []

    result = uploader.upload_frames(remote_store, frames_dir, "mug_s", "mug", on_progress=progress.append)

    assert not result.success
    assert result.uploaded_count == 3
    assert result.total_files == 4
    assert "frame_0002.jpg" in result.error_message
    assert len(progress) == 4


def test_folder_failure_attempts_no_files(uploader, remote_store, frames_dir):
    remote_store.fail_folder_names = {"mug_s"}

    result = uploader.upload_frames(remote_store, frames_dir, "mug_s", "mug")

    assert not result.success
    assert result.uploaded_count == 0
    assert remote_store.uploads == []
    assert "mug_s" in result.error_message


def test_find_or_create_folder_is_idempotent(remote_store):
    first = remote_store.find_or_create_folder("mug", "root")
    second = remote_store.find_or_create_folder("mug", "root")

    assert first == second
    assert remote_store.created_folders == [("mug", "root")]


def test_find_or_create_folder_wraps_errors(remote_store):
    remote_store.fail_folder_names = {"mug"}
    with pytest.raises(RemoteFolderCreateError):
        remote_store.find_or_create_folder("mug", "root")


def test_not_authenticated_propagates(uploader, remote_store, frames_dir):
    remote_store.unauthorized = True
    with pytest.raises(NotAuthenticatedError):
        uploader.upload_frames(remote_store, frames_dir, "mug_s", "mug")


def test_retry_skips_files_already_uploaded(uploader, remote_store, frames_dir):
    remote_store.failing_files = {"frame_0003.jpg"}
    uploader.upload_frames(remote_store, frames_dir, "mug_s", "mug")

    remote_store.failing_files = set()
    remote_store.uploads = []
    result = uploader.upload_frames(remote_store, frames_dir, "mug_s", "mug")

    assert result.success
    assert [name for name, _ in remote_store.uploads] == ["frame_0003.jpg"]
    assert len(remote_store.created_folders) == 2


def test_skip_existing_can_be_disabled(remote_store, frames_dir):
    uploader = FrameSetUploader(UploadConfig(skip_existing_files=False))
    uploader.upload_frames(remote_store, frames_dir, "mug_s", "mug")
    remote_store.uploads = []

    uploader.upload_frames(remote_store, frames_dir, "mug_s", "mug")

    assert len(remote_store.uploads) == 4
