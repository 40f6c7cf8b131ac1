"""texsync - keep a local texture pack in sync with its GitHub repository."""

from .api import GitHubClient
from .exceptions import (
    HashError,
    MissingTargetFolderError,
    PathNotFound,
    RemoteError,
    RemoteInvalidResponseError,
    RemoteNetworkError,
    RemoteNotFoundError,
    RemoteRateLimitError,
    ScanError,
    SyncCancelledError,
    TexsyncConfigError,
    TexsyncError,
    TransferError,
)
from .utils import compute_blob_id, hash_file

__all__ = [
    "GitHubClient",
    "TexsyncError",
    "TexsyncConfigError",
    "RemoteError",
    "RemoteInvalidResponseError",
    "RemoteNetworkError",
    "RemoteNotFoundError",
    "RemoteRateLimitError",
    "PathNotFound",
    "MissingTargetFolderError",
    "ScanError",
    "HashError",
    "TransferError",
    "SyncCancelledError",
    "compute_blob_id",
    "hash_file",
]
