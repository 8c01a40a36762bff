"""Camera frames, camera configuration and the camera backend interface."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass


class CameraError(Exception):
    """Raised when a camera cannot be opened, read or configured."""


class FrameFormat(enum.Enum):
    """Pixel layout of a captured frame."""

    RGB8 = "rgb8"
    GRAY8 = "gray8"
    MJPEG = "mjpeg"

    def channels(self) -> int:
        """Number of colour channels; MJPEG decodes to RGB."""
        return 1 if self is FrameFormat.GRAY8 else 3


@dataclass
class Frame:
    """One captured image with its raw pixel data."""

    data: bytes
    width: int
    height: int
    format: FrameFormat
    timestamp_ms: int = 0

    def channels(self) -> int:
        """Number of colour channels of this frame's format."""
        return self.format.channels()

    def validate(self) -> None:
        """Check that the data length matches the dimensions.

        Compressed frames have a variable size and always pass.
        """
        if self.format is FrameFormat.MJPEG:
            return
        expected = self.width * self.height * self.format.channels()
        if len(self.data) != expected:
            raise CameraError(
                f"Frame size mismatch: expected {expected}, got {len(self.data)}"
            )


@dataclass
class CameraConfig:
    """Settings used when opening a camera device."""

    device_path: str = "/dev/video0"
    width: int = 640
    height: int = 480
    preferred_format: FrameFormat = FrameFormat.RGB8
    fps: int = 30
    capture_timeout_ms: int = 5000


class CameraBackend(ABC):
    """Interface every camera backend implements."""

    @abstractmethod
    def open(self) -> None:
        """Start the camera."""

    @abstractmethod
    def close(self) -> None:
        """Stop the camera."""

    @abstractmethod
    def capture(self, timeout_ms: int) -> Frame:
        """Capture one frame, blocking up to ``timeout_ms``."""

    @abstractmethod
    def pending_frames(self) -> int:
        """Number of frames waiting to be read."""

    @abstractmethod
    def flush_buffers(self) -> None:
        """Drop any buffered frames."""

    @abstractmethod
    def is_open(self) -> bool:
        """Whether the camera is currently open."""

    @abstractmethod
    def backend_name(self) -> str:
        """Human-readable name of the backend."""