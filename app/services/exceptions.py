from __future__ import annotations

from typing import Optional


class ServiceError(Exception):
    """Base class that carries a default HTTP status code for API mapping."""

    default_status = 400

    def __init__(self, message: str = "", *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code if status_code is not None else self.default_status


class VideoNotFoundError(ServiceError):
    default_status = 404


class FileNotFoundOnDiskError(ServiceError):
    default_status = 404


class FilesystemError(ServiceError):
    """Directory walk failed during build/reload."""

    default_status = 500

    def __init__(self, message: str = "", *, path: Optional[str] = None, status_code: int | None = None) -> None:
        super().__init__(message, status_code=status_code)
        self.path = path


class InvalidRangeError(ServiceError):
    default_status = 416


class RangeNotSatisfiableError(ServiceError):
    default_status = 416
