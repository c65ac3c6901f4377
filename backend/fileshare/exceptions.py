"""Exceptions raised by the blob store."""


class FileShareError(Exception):
    """Base class for fileshare errors."""


class BlobTooLargeError(FileShareError):
    """Raised when an upload stream grows past the configured size limit."""

    def __init__(self, limit_bytes: int, received_bytes: int) -> None:
        self.limit_bytes = limit_bytes
        self.received_bytes = received_bytes
        super().__init__(
            f'File too large: received at least {received_bytes} bytes, '
            f'limit is {limit_bytes} bytes',
        )


class InvalidBlobNameError(FileShareError):
    """Raised when a blob name resolves outside the storage directory."""

    def __init__(self, filename: str) -> None:
        self.filename = filename
        super().__init__(f'Invalid blob name: {filename!r}')
