# dataset_capture/errors.py


class DatasetCaptureError(Exception):
    """Base class for pipeline failures surfaced to callers"""


class InvalidVideoError(DatasetCaptureError):
    """Video container unreadable or reports no positive duration"""


class NoFramesProducedError(DatasetCaptureError):
    """Every sampled offset failed to decode"""


class MetadataWriteError(DatasetCaptureError):
    pass


class MetadataReadError(DatasetCaptureError):
    pass


class NotAuthenticatedError(DatasetCaptureError):
    """No signed-in account; the remote store is unavailable until sign-in"""


class RemoteStoreError(DatasetCaptureError):
    pass


class RemoteFolderCreateError(RemoteStoreError):
    pass


class LocalPersistenceError(DatasetCaptureError):
    pass


class RecordingNotFoundError(DatasetCaptureError):
    pass
