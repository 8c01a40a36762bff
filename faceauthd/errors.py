"""Errors raised by the face authentication daemon."""

from __future__ import annotations


class DaemonError(Exception):
    """Base class for daemon failures."""


class UserNotFound(DaemonError):
    """No such user is known."""

    def __init__(self, user_id: int) -> None:
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class FaceNotFound(DaemonError):
    """No such face is stored."""

    def __init__(self, face_id: str) -> None:
        super().__init__(f"Face not found: {face_id}")
        self.face_id = face_id


class AccessDenied(DaemonError):
    """The caller may not act on the requested user or path."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Access denied: {reason}")
        self.reason = reason


class StorageError(DaemonError):
    """Reading or writing stored faces failed."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Storage failed: {reason}")
        self.reason = reason


class CameraFailure(DaemonError):
    """The camera could not deliver usable frames."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Camera: {reason}")
        self.reason = reason