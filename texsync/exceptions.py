"""Custom exceptions for texsync."""

from __future__ import annotations

from pathlib import Path


class TexsyncError(Exception):
    """Base exception for all texsync errors."""

    pass


class TexsyncConfigError(TexsyncError):
    """Configuration is missing or invalid."""

    pass


class SyncCancelledError(TexsyncError):
    """The caller cancelled a running sync."""

    def __init__(self, message: str = "Sync cancelled"):
        super().__init__(message)


# =========================
# Remote errors
# =========================


class RemoteError(TexsyncError):
    """Non-success response or transport failure from the remote API.

    Attributes:
        status: HTTP status code, or None for transport failures
        body: Response body (or transport error text)
    """

    def __init__(self, status: int | None, body: str, message: str | None = None):
        self.status = status
        self.body = body
        if message is None:
            if status is None:
                message = f"Remote request failed: {body}"
            else:
                message = f"Remote API error: HTTP {status} - {body}"
        super().__init__(message)


class RemoteNotFoundError(RemoteError):
    """The requested remote resource does not exist (HTTP 404)."""

    pass


class RemoteRateLimitError(RemoteError):
    """The remote API rate limit is exhausted."""

    pass


class RemoteNetworkError(RemoteError):
    """The request never produced a response (DNS, TLS, timeout, ...)."""

    def __init__(self, body: str):
        super().__init__(None, body, f"Network error: {body}")


class RemoteInvalidResponseError(RemoteError):
    """The remote API returned a payload that could not be understood."""

    pass


class PathNotFound(TexsyncError):
    """A segment of the configured remote subtree path does not exist."""

    def __init__(self, segment: str):
        self.segment = segment
        super().__init__(f"Path component '{segment}' not found in repository")


# =========================
# Local errors
# =========================


class MissingTargetFolderError(TexsyncError):
    """The local root lacks the required target folder."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"{path.name} folder not found in {path.parent}")


class ScanError(TexsyncError):
    """A local directory or file could not be read during a scan."""

    def __init__(self, path: Path | str, cause: BaseException, action: str = "read"):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to {action} {path}: {cause}")


class HashError(ScanError):
    """A local file could not be read to compute its content id."""

    def __init__(self, path: Path | str, cause: BaseException):
        super().__init__(path, cause, action="hash")


class TransferError(TexsyncError):
    """Downloading or deleting a single planned item failed."""

    def __init__(self, path: str, cause: BaseException, action: str = "download"):
        self.path = path
        self.cause = cause
        self.action = action
        super().__init__(f"Failed to {action} {path}: {cause}")
